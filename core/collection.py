"""
core/collection.py -- Paginated, sorted collection queries shared by every resource.

Two steps, deliberately split so validation always happens before any
connection is acquired:

  parse_query_spec()  untrusted query params -> QuerySpec (or InvalidSortError)
  fetch_page()        QuerySpec + base SELECT -> CollectionPage(rows, total)

Pagination is forgiving: missing, non-numeric or out-of-range page/pageSize
values fall back to defaults (pageSize is clamped to the max, page to the
last page whose OFFSET fits a signed 64-bit integer). Sorting is not:
an unknown sortBy is rejected, because the sort column is the only part of
the statement chosen by the caller.

Security: the caller's sortBy string is only ever used as a dictionary key.
The ORDER BY clause is built from the SQLAlchemy Column object stored under
that key, so no user text is spliced into SQL.

Layer rule: no imports from api/, auth/, or contacts/.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection
from sqlalchemy.sql import ColumnElement, Select

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_SORT = "id"

# Leading integer, like a lenient parseInt: "3", " 3", "3abc" -> 3.
_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")

_DESCENDING = {"desc", "descending"}

# Largest OFFSET a signed 64-bit driver column can bind.
_MAX_OFFSET = 2**63 - 1


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class InvalidSortError(ValueError):
    """Raised when sortBy is not in the resource's allow-list."""

    def __init__(self, sort_by: str, allowed: list[str]) -> None:
        self.sort_by = sort_by
        self.allowed = sorted(allowed)
        super().__init__(f"Invalid sort column {sort_by[:50]!r}; allowed: {', '.join(self.allowed)}")


@dataclass(frozen=True)
class QuerySpec:
    """Validated listing parameters. Only parse_query_spec() should build these from user input."""

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: str = DEFAULT_SORT
    order: SortOrder = SortOrder.asc

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class CollectionPage:
    """One window of a collection plus the size of the whole collection.

    total is counted independently of the window, so total >= len(rows)
    and len(rows) <= the requested page size always hold.
    """

    rows: list[Any] = field(default_factory=list)
    total: int = 0


def _coerce_positive_int(raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    match = _INT_PREFIX.match(str(raw))
    if match is None:
        return default
    value = int(match.group(1))
    return value if value >= 1 else default


def parse_query_spec(
    params: Mapping[str, str],
    sort_columns: Mapping[str, ColumnElement],
    *,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
    default_sort: str = DEFAULT_SORT,
) -> QuerySpec:
    """Build a QuerySpec from raw query parameters.

    Args:
        params:        Raw query mapping (page, pageSize, sortBy, order).
        sort_columns:  Allow-list for this resource: public name -> Column.
        default_page_size / max_page_size: Page size bounds, identical for
                       every resource.
        default_sort:  sortBy used when the parameter is missing or empty.

    Raises:
        InvalidSortError: sortBy is not a key of sort_columns.
    """
    page = _coerce_positive_int(params.get("page"), 1)
    page_size = min(_coerce_positive_int(params.get("pageSize"), default_page_size), max_page_size)
    # Clamp page so the OFFSET stays bindable.
    page = min(page, _MAX_OFFSET // page_size + 1)

    sort_by = params.get("sortBy") or default_sort
    if sort_by not in sort_columns:
        raise InvalidSortError(sort_by, list(sort_columns))

    raw_order = (params.get("order") or "").strip().lower()
    order = SortOrder.desc if raw_order in _DESCENDING else SortOrder.asc

    return QuerySpec(page=page, page_size=page_size, sort_by=sort_by, order=order)


def fetch_page(
    conn: Connection,
    query: Select,
    spec: QuerySpec,
    sort_columns: Mapping[str, ColumnElement],
    tiebreaker: Optional[ColumnElement] = None,
) -> CollectionPage:
    """Execute the window query and the count query for one page.

    query is the unordered, unpaginated base SELECT for the resource. The
    count runs over the same statement wrapped as a subquery, so joins and
    filters in the base query apply to both.

    tiebreaker (normally the primary key) is appended to ORDER BY when the
    sort column is something else, so rows with equal sort values keep a
    stable position across pages.
    """
    column = sort_columns.get(spec.sort_by)
    if column is None:
        raise InvalidSortError(spec.sort_by, list(sort_columns))

    ordering = [column.desc() if spec.order is SortOrder.desc else column.asc()]
    if tiebreaker is not None and tiebreaker is not column:
        ordering.append(tiebreaker.asc())

    window = query.order_by(*ordering).limit(spec.page_size).offset(spec.offset)
    rows = conn.execute(window).fetchall()
    total = conn.execute(select(func.count()).select_from(query.subquery())).scalar_one()
    return CollectionPage(rows=list(rows), total=int(total))
