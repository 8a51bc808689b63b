import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from infrastructure.storage.graph_workbook_storage import FetchError, GraphWorkbookStorage
from use_cases.domain_models import Query, Record, ResultPage

log = logging.getLogger(__name__)

# --- CONSTANTS ---
# Spreadsheet bookkeeping columns never shown in the dashboard.
SKIP_COLUMNS = ("Id", "Start time", "Email", "Name")
HEADER_MAP = {
    "Completion time": "Submitted Time",
    "Name1": "Name",
}
DATE_COLUMN = "Completion time"
NAME_COLUMN = "Name"
EQUIPMENT_COLUMN = "Equipment"

EXCEL_EPOCH_OFFSET_DAYS = 25569  # 1899-12-30 -> 1970-01-01
SECONDS_PER_DAY = 86400
DEFAULT_DATE_FORMAT = "%c"


# --- HELPERS ---

def _to_serial(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        serial = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(serial) or serial == 0:
        return None
    return serial


def excel_serial_to_datetime(serial: Any) -> Optional[datetime]:
    """
    Local date-time for a spreadsheet date serial.

    The whole-day part is taken as a UTC midnight, moved to local time, then
    the fractional day is applied as local hours/minutes/seconds.
    """
    value = _to_serial(serial)
    if value is None:
        return None
    utc_days = math.floor(value - EXCEL_EPOCH_OFFSET_DAYS)
    total_seconds = math.floor(SECONDS_PER_DAY * (value - math.floor(value)))
    seconds = total_seconds % 60
    minutes = (total_seconds // 60) % 60
    hours = total_seconds // 3600
    try:
        date_info = datetime.fromtimestamp(utc_days * SECONDS_PER_DAY)
        return date_info.replace(hour=hours, minute=minutes, second=seconds)
    except (ValueError, OverflowError, OSError) as e:
        log.warning(f"Date serial {serial!r} is out of range: {e}")
        return None


def excel_serial_to_local_string(serial: Any, fmt: str = DEFAULT_DATE_FORMAT) -> str:
    dt = excel_serial_to_datetime(serial)
    if dt is None:
        return ""
    return dt.strftime(fmt)


def transform_headers(raw_headers: Sequence[Any]) -> List[str]:
    columns = []
    for header in raw_headers:
        if header in SKIP_COLUMNS:
            continue
        column = HEADER_MAP.get(header, header)
        if column not in columns:
            columns.append(column)
    return columns


def transform_rows(values: Optional[Sequence[Sequence[Any]]], date_format: str = DEFAULT_DATE_FORMAT) -> Tuple[List[str], List[Record]]:
    """
    Reshape a used-range value grid into (columns, records).
    Row 0 holds the headers. Records come back newest first.
    """
    values = values or []
    raw_headers = list(values[0]) if values else []
    raw_rows = values[1:]

    columns = transform_headers(raw_headers)
    records = []
    for row in raw_rows:
        record: Dict[str, Any] = {}
        for i, header in enumerate(raw_headers):
            if header in SKIP_COLUMNS:
                continue
            val = row[i] if i < len(row) else None
            if header == DATE_COLUMN:
                val = excel_serial_to_local_string(val, date_format)
            record[HEADER_MAP.get(header, header)] = val
        records.append(record)

    records.reverse()
    return columns, records


def _contains(df: pd.DataFrame, column: str, needle: str) -> pd.Series:
    if column not in df.columns:
        return pd.Series(False, index=df.index)
    return df[column].astype("string").str.lower().str.contains(needle.lower(), regex=False, na=False)


def filter_records(records: List[Record], columns: Sequence[str], name_filter: str = "", equipment_filter: str = "") -> List[Record]:
    if not records or not (name_filter or equipment_filter):
        return list(records)

    df = pd.DataFrame.from_records(records, columns=list(columns))
    mask = pd.Series(True, index=df.index)
    if name_filter:
        mask &= _contains(df, NAME_COLUMN, name_filter)
    if equipment_filter:
        mask &= _contains(df, EQUIPMENT_COLUMN, equipment_filter)
    return [records[i] for i in df.index[mask]]


def paginate(records: List[Record], page: int, page_size: int) -> List[Record]:
    start = (page - 1) * page_size
    return records[start:start + page_size]


# --- FETCH ---

def fetch_page(token: Optional[str], query: Query, storage: Optional[GraphWorkbookStorage] = None, date_format: str = DEFAULT_DATE_FORMAT) -> ResultPage:
    """
    Fetch the worksheet, reshape it and return one page of matching records.
    Raises FetchError; needs_reauth is set for a missing or rejected token.
    """
    if not token:
        raise FetchError("No valid access token", needs_reauth=True)

    storage = storage or GraphWorkbookStorage()
    payload = storage.get_used_range(token)

    columns, records = transform_rows(payload.get("values"), date_format)
    matching = filter_records(records, columns, query.name_filter, query.equipment_filter)
    log.info(f"Fetched {len(records)} rows, {len(matching)} match the filters")

    return ResultPage(
        records=paginate(matching, query.page, query.page_size),
        total_matching=len(matching),
        columns=tuple(columns),
        all_matching=matching,
    )
