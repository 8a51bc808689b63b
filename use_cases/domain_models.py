from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

Record = Dict[str, Any]


@dataclass(frozen=True)
class Query:
    """Filter and pagination parameters supplied by the dashboard."""
    name_filter: str = ""
    equipment_filter: str = ""
    page: int = 1
    page_size: int = 10

    def __post_init__(self):
        if not isinstance(self.page, int) or self.page < 1:
            raise ValueError(f"page must be a positive integer, got {self.page!r}")
        if not isinstance(self.page_size, int) or self.page_size < 1:
            raise ValueError(f"page_size must be a positive integer, got {self.page_size!r}")


@dataclass(frozen=True)
class ResultPage:
    records: List[Record] = field(default_factory=list)
    total_matching: int = 0
    columns: Tuple[str, ...] = ()
    # Full filtered set (before slicing) for export and print.
    all_matching: List[Record] = field(default_factory=list)
