"""
PawSpot API — Pagination Calculator
====================================

What:  Offset pagination for the list endpoint.
How:   page/limit → skip offset; (page, limit, total) → next/prev descriptors.

    startIndex = (page - 1) * limit
    endIndex   = page * limit
    next       = {page: page + 1, limit}  when endIndex < total
    prev       = {page: page - 1, limit}  when startIndex > 0
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 5

# OFFSET and LIMIT are bound as signed 64-bit integers by every backend
MAX_SQL_INT = 2**63 - 1

# Leading base-10 integer, the way `parseInt(value, 10)` reads it ("3abc" → 3)
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_positive_int(value: Optional[str], default: int) -> int:
    """
    Read a base-10 integer.

    Missing, unparseable, zero, negative or out-of-range (> MAX_SQL_INT)
    input → default.
    """
    if value is None:
        return default
    match = _LEADING_INT.match(str(value))
    if not match:
        return default
    number = int(match.group(1))
    return number if 1 <= number <= MAX_SQL_INT else default


@dataclass(frozen=True)
class PageWindow:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def end_index(self) -> int:
        return self.page * self.limit


def resolve_page_window(
    page: Optional[str],
    limit: Optional[str],
    default_limit: int = DEFAULT_LIMIT,
    max_limit: Optional[int] = None,
) -> PageWindow:
    """
    Build a PageWindow from raw query values; `max_limit` clamps when set.

    A page whose offset would not fit in MAX_SQL_INT falls back to page 1.
    """
    resolved_limit = parse_positive_int(limit, default_limit)
    if max_limit is not None:
        resolved_limit = min(resolved_limit, max_limit)
    window = PageWindow(page=parse_positive_int(page, DEFAULT_PAGE), limit=resolved_limit)
    if window.start_index > MAX_SQL_INT:
        return PageWindow(page=DEFAULT_PAGE, limit=resolved_limit)
    return window


def compute_pagination(window: PageWindow, total: int) -> Dict[str, Dict[str, int]]:
    """Return the `pagination` object: only the `next`/`prev` keys that apply."""
    pagination: Dict[str, Dict[str, int]] = {}
    if window.end_index < total:
        pagination["next"] = {"page": window.page + 1, "limit": window.limit}
    if window.start_index > 0:
        pagination["prev"] = {"page": window.page - 1, "limit": window.limit}
    return pagination
