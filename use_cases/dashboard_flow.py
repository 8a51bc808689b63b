"""Dashboard controller state and fetch orchestration."""

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from infrastructure.storage.graph_workbook_storage import FetchError
from services import data_loader
from use_cases.domain_models import Query, ResultPage

log = logging.getLogger(__name__)

PAGE_SIZE_OPTIONS = (5, 10, 20, 50)
DEFAULT_PAGE_SIZE = 10


class FetchSequencer:
    """Tags fetches with increasing numbers so a late, older response can be dropped."""

    def __init__(self):
        self._latest = 0

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, seq: int) -> bool:
        return seq == self._latest


@dataclass
class DashboardState:
    query: Query = field(default_factory=lambda: Query(page_size=DEFAULT_PAGE_SIZE))
    result: ResultPage = field(default_factory=ResultPage)
    error: str = ""
    needs_reauth: bool = False
    loading: bool = False
    sequencer: FetchSequencer = field(default_factory=FetchSequencer)
    fetched_query: Optional[Query] = None
    fetched_token: Optional[str] = None


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size)


def update_query(query: Query, **changes) -> Query:
    """New query with changes applied. A new page size or filter restarts at page 1."""
    resets_page = any(
        key in changes and changes[key] != getattr(query, key)
        for key in ("name_filter", "equipment_filter", "page_size")
    )
    if resets_page and "page" not in changes:
        changes["page"] = 1
    return replace(query, **changes)


def needs_fetch(state: DashboardState, token: Optional[str]) -> bool:
    return state.fetched_query != state.query or state.fetched_token != token


def run_fetch(state: DashboardState, token: Optional[str], fetch: Callable[..., ResultPage] = data_loader.fetch_page, **fetch_kwargs) -> bool:
    """
    Fetch the page for state.query into state. Returns False when the response
    was superseded by a newer fetch and therefore discarded.
    """
    seq = state.sequencer.issue()
    query = state.query
    state.loading = True
    state.error = ""
    state.needs_reauth = False

    try:
        result = fetch(token, query, **fetch_kwargs)
    except FetchError as e:
        if not state.sequencer.is_current(seq):
            return False
        log.error(f"Dashboard fetch failed: {e}")
        state.error = str(e)
        state.needs_reauth = e.needs_reauth
        state.result = ResultPage()
    else:
        if not state.sequencer.is_current(seq):
            log.info(f"Discarding stale fetch #{seq}")
            return False
        state.result = result
    finally:
        if state.sequencer.is_current(seq):
            state.loading = False

    state.fetched_query = query
    state.fetched_token = token
    return True
