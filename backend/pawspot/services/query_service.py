"""
PawSpot API — Query Translator
===============================

What:  Turns the list endpoint's raw query string into a filter expression,
       a projection, a sort order and a page window.
How:   1. Bracket keys are expanded into a nested mapping
          (`averageRating[gte]=3` → {"averageRating": {"gte": "3"}})
       2. Control parameters (select, sort, page, limit) are split off
       3. Operator keys gt/gte/lt/lte/in are rewritten to `$gt` ... by a
          recursive walk over mapping keys; values are never touched
Who:   Called by the locations route; the result is compiled into SQL by
       services.filter_compiler and executed by LocationService.

Example:
    ?averageRating[gt]=3&services[in]=Food,Walking&select=title&sort=-title&page=2

    filter     = {"averageRating": {"$gt": "3"}, "services": {"$in": "Food,Walking"}}
    projection = Projection(fields=("title",), exclude=False)
    sort       = (SortKey("title", descending=True),)
    window     = PageWindow(page=2, limit=5)
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pawspot.exceptions import ValidationError
from pawspot.services.pagination import PageWindow, resolve_page_window

logger = logging.getLogger(__name__)

# Parameters that shape the result instead of filtering it
RESERVED_PARAMS = ("select", "sort", "page", "limit")

# Comparison keywords rewritten to `$`-prefixed store operators
OPERATORS = ("gt", "gte", "lt", "lte", "in")
OPERATOR_PREFIX = "$"

DEFAULT_SORT_FIELD = "createdAt"

# `name[a][b]` → "name", "[a][b]"
_KEY_PATTERN = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_SEGMENT_PATTERN = re.compile(r"\[([^\[\]]*)\]")


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Projection:
    """
    Field selection for list results.

    `exclude=False`: return only `fields` (plus `id`).
    `exclude=True`:  return everything except `fields` (`select=-description`).
    """

    fields: Tuple[str, ...] = ()
    exclude: bool = False

    def __bool__(self) -> bool:
        return bool(self.fields)


@dataclass
class ListQuery:
    """Everything the Record Service needs to run one list request."""

    filter: Dict[str, Any] = field(default_factory=dict)
    projection: Projection = field(default_factory=Projection)
    sort: Tuple[SortKey, ...] = (SortKey(DEFAULT_SORT_FIELD, descending=True),)
    window: PageWindow = field(default_factory=PageWindow)


# ══════════════════════════════════════════════════════════════════════════
# Query string → nested mapping
# ══════════════════════════════════════════════════════════════════════════


def _split_key(key: str) -> Tuple[List[str], bool]:
    """Return the path segments of a bracket key and whether it ends in `[]`."""
    match = _KEY_PATTERN.match(key)
    if not match:
        return [key], False
    segments = [match.group(1)] + _SEGMENT_PATTERN.findall(match.group(2))
    append = len(segments) > 1 and segments[-1] == ""
    if append:
        segments = segments[:-1]
    if any(s == "" for s in segments):
        raise ValidationError(message=f"Malformed query parameter '{key}'", field=key)
    return segments, append


def _assign(target: Dict[str, Any], leaf: str, value: str, append: bool) -> None:
    if leaf not in target:
        target[leaf] = [value] if append else value
        return
    existing = target[leaf]
    if isinstance(existing, dict):
        raise ValidationError(message=f"Conflicting query parameter '{leaf}'", field=leaf)
    if isinstance(existing, list):
        existing.append(value)
    else:
        target[leaf] = [existing, value]


def parse_query_params(items: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """
    Expand raw (key, value) pairs into a nested mapping.

    `a=1` → {"a": "1"}; `a=1&a=2` or `a[]=1&a[]=2` → {"a": ["1", "2"]};
    `a[b][c]=1` → {"a": {"b": {"c": "1"}}}.

    Raises:
        ValidationError: a key is used both as a value and as a nested mapping
    """
    parsed: Dict[str, Any] = {}
    for key, value in items:
        segments, append = _split_key(key)
        node = parsed
        for segment in segments[:-1]:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ValidationError(
                    message=f"Conflicting query parameter '{segment}'", field=segment
                )
            node = child
        _assign(node, segments[-1], value, append)
    return parsed


# ══════════════════════════════════════════════════════════════════════════
# Filter expression
# ══════════════════════════════════════════════════════════════════════════


def rewrite_operators(node: Any) -> Any:
    """Prefix every mapping key named gt/gte/lt/lte/in with `$`, at any depth."""
    if isinstance(node, Mapping):
        return {
            (f"{OPERATOR_PREFIX}{key}" if key in OPERATORS else key): rewrite_operators(value)
            for key, value in node.items()
        }
    if isinstance(node, list):
        return [rewrite_operators(item) for item in node]
    return node


def build_filter(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop the control parameters and rewrite operator keys."""
    remaining = {k: v for k, v in params.items() if k not in RESERVED_PARAMS}
    return rewrite_operators(remaining)


# ══════════════════════════════════════════════════════════════════════════
# Projection and sort
# ══════════════════════════════════════════════════════════════════════════


def _as_text(value: Any) -> Optional[str]:
    """Repeated control params (`sort=a&sort=b`) behave like `sort=a,b`."""
    if value is None:
        return None
    if isinstance(value, list):
        return ",".join(str(v) for v in value)
    if isinstance(value, dict):
        raise ValidationError(message="Control parameters cannot be nested")
    return str(value)


def _split_fields(value: Optional[str]) -> List[str]:
    if not value:
        return []
    seen: List[str] = []
    for part in value.split(","):
        name = part.strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def parse_select(value: Any) -> Projection:
    """`title,address` → include projection; `-description` → exclude projection."""
    names = _split_fields(_as_text(value))
    if not names:
        return Projection()
    excluded = [n for n in names if n.startswith("-")]
    if excluded and len(excluded) != len(names):
        raise ValidationError(
            message="Cannot mix field inclusion and exclusion in select",
            field="select",
        )
    if excluded:
        return Projection(fields=tuple(n[1:] for n in excluded), exclude=True)
    return Projection(fields=tuple(names))


def parse_sort(value: Any) -> Tuple[SortKey, ...]:
    """`-averageRating,title` → averageRating descending, then title ascending."""
    names = _split_fields(_as_text(value))
    if not names:
        return (SortKey(DEFAULT_SORT_FIELD, descending=True),)
    keys = []
    for name in names:
        if name.startswith("-"):
            keys.append(SortKey(name[1:], descending=True))
        else:
            keys.append(SortKey(name.lstrip("+")))
    return tuple(keys)


def translate_query(
    items: Iterable[Tuple[str, str]],
    default_limit: int = 5,
    max_limit: Optional[int] = None,
) -> ListQuery:
    """
    Full translation of a list request's query string.

    Args:
        items: Raw query pairs (e.g. `request.query_params.multi_items()`)
        default_limit: Page size when `limit` is absent or unparseable
        max_limit: Optional clamp for `limit`
    """
    params = parse_query_params(items)
    query = ListQuery(
        filter=build_filter(params),
        projection=parse_select(params.get("select")),
        sort=parse_sort(params.get("sort")),
        window=resolve_page_window(
            _as_text(params.get("page")),
            _as_text(params.get("limit")),
            default_limit=default_limit,
            max_limit=max_limit,
        ),
    )
    logger.debug(
        "Translated list query: filter=%s select=%s sort=%s page=%d limit=%d",
        query.filter,
        query.projection,
        query.sort,
        query.window.page,
        query.window.limit,
    )
    return query
