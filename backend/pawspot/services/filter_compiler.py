"""
PawSpot API — Filter Compiler
==============================

What:  Compiles translator output (filter expression, projection, sort keys)
       against the Location model.
How:   Each API field name maps to a FieldSpec describing its column and how
       raw query-string values are coerced for it. Unknown fields, unknown
       operators and values that cannot be coerced raise ValidationError (400).

Operator semantics:
    scalar field   {"f": v}           f = v
                   {"f": {"$gt": v}}  f > v   (also $gte, $lt, $lte)
                   {"f": {"$in": v}}  f IN (...)   v: list or "a,b,c"
                   {"f": [v1, v2]}    same as $in
    list field     {"f": v}           f contains v
                   {"f": {"$in": v}}  f contains any of v
    location       {"location.city": v} or {"location": {"city": v}}
                                      sub-field of the JSON column
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set

from sqlalchemy import ColumnElement, and_
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import UnaryExpression

from pawspot.exceptions import ValidationError
from pawspot.models.location import Location, LocationAnimalType, LocationServiceType
from pawspot.services.query_service import OPERATOR_PREFIX, Projection, SortKey

COMPARISON_OPERATORS = ("$gt", "$gte", "$lt", "$lte")
LIST_OPERATORS = ("$in",)

GEO_FIELDS = ("formattedAddress", "street", "city", "state", "zipcode", "country")

# Fields a response item can carry, in response order
PROJECTABLE_FIELDS = (
    "id",
    "title",
    "slug",
    "description",
    "address",
    "location",
    "animalTypes",
    "services",
    "averageRating",
    "photo",
    "createdAt",
)


def _coerce_text(value: Any) -> str:
    if isinstance(value, (dict, list)):
        raise ValueError("expected a single value")
    return str(value)


def _coerce_number(value: Any) -> float:
    return float(_coerce_text(value))


def _coerce_datetime(value: Any) -> datetime:
    return datetime.fromisoformat(_coerce_text(value))


def _coerce_uuid(value: Any) -> uuid.UUID:
    return uuid.UUID(_coerce_text(value))


@dataclass(frozen=True)
class FieldSpec:
    """How one API field maps onto the model."""

    name: str
    column: Any
    coerce: Callable[[Any], Any] = _coerce_text
    # Set for list-valued fields: the relationship and the child value column
    rows: Optional[InstrumentedAttribute] = None
    row_value: Optional[InstrumentedAttribute] = None
    sortable: bool = True

    @property
    def is_list(self) -> bool:
        return self.rows is not None


FIELD_SPECS: Dict[str, FieldSpec] = {
    field_spec.name: field_spec
    for field_spec in (
        FieldSpec("id", Location.id, _coerce_uuid),
        FieldSpec("title", Location.title),
        FieldSpec("slug", Location.slug),
        FieldSpec("description", Location.description),
        FieldSpec("address", Location.address),
        FieldSpec("photo", Location.photo),
        FieldSpec("averageRating", Location.average_rating, _coerce_number),
        FieldSpec("createdAt", Location.created_at, _coerce_datetime),
        FieldSpec(
            "animalTypes",
            None,
            rows=Location.animal_type_rows,
            row_value=LocationAnimalType.value,
            sortable=False,
        ),
        FieldSpec(
            "services",
            None,
            rows=Location.service_rows,
            row_value=LocationServiceType.value,
            sortable=False,
        ),
    )
}


def resolve_field(name: str) -> FieldSpec:
    """Look up a filterable field, including `location.<part>` paths."""
    field_spec = FIELD_SPECS.get(name)
    if field_spec is not None:
        return field_spec
    prefix, _, part = name.partition(".")
    if prefix == "location" and part in GEO_FIELDS:
        return FieldSpec(name, Location.location[part].as_string())
    raise ValidationError(message=f"Unknown field '{name}'", field=name)


# ══════════════════════════════════════════════════════════════════════════
# Filters
# ══════════════════════════════════════════════════════════════════════════


def _coerce(field_spec: FieldSpec, value: Any) -> Any:
    try:
        return field_spec.coerce(value)
    except (TypeError, ValueError):
        raise ValidationError(
            message=f"Invalid value '{value}' for field '{field_spec.name}'",
            field=field_spec.name,
        )


def _values_for_in(field_spec: FieldSpec, value: Any) -> List[Any]:
    if isinstance(value, list):
        raw = value
    elif isinstance(value, str):
        raw = [part.strip() for part in value.split(",") if part.strip()]
    else:
        raw = [value]
    return [_coerce(field_spec, item) for item in raw]


def _equals(field_spec: FieldSpec, value: Any) -> ColumnElement[bool]:
    if field_spec.is_list:
        return field_spec.rows.any(field_spec.row_value == _coerce(field_spec, value))
    return field_spec.column == _coerce(field_spec, value)


def _operator(field_spec: FieldSpec, op: str, value: Any) -> ColumnElement[bool]:
    if op in LIST_OPERATORS:
        values = _values_for_in(field_spec, value)
        if field_spec.is_list:
            return field_spec.rows.any(field_spec.row_value.in_(values))
        return field_spec.column.in_(values)

    if op in COMPARISON_OPERATORS:
        if field_spec.is_list:
            raise ValidationError(
                message=f"Operator '{op}' is not supported for field '{field_spec.name}'",
                field=field_spec.name,
            )
        operand = _coerce(field_spec, value)
        if op == "$gt":
            return field_spec.column > operand
        if op == "$gte":
            return field_spec.column >= operand
        if op == "$lt":
            return field_spec.column < operand
        return field_spec.column <= operand

    raise ValidationError(message=f"Unknown operator '{op}'", field=field_spec.name)


def _condition(name: str, condition: Any) -> List[ColumnElement[bool]]:
    # {"location": {"city": "Boston"}} reads as {"location.city": "Boston"}
    if name == "location" and isinstance(condition, Mapping):
        clauses: List[ColumnElement[bool]] = []
        for part, sub_condition in condition.items():
            clauses.extend(_condition(f"location.{part}", sub_condition))
        return clauses

    field_spec = resolve_field(name)

    if isinstance(condition, Mapping):
        clauses = []
        for op, value in condition.items():
            if not op.startswith(OPERATOR_PREFIX):
                raise ValidationError(
                    message=f"Unknown operator '{op}' for field '{name}'",
                    field=name,
                )
            clauses.append(_operator(field_spec, op, value))
        return clauses

    if isinstance(condition, list):
        return [_operator(field_spec, "$in", condition)]

    return [_equals(field_spec, condition)]


def compile_filter(expression: Mapping[str, Any]) -> List[ColumnElement[bool]]:
    """Compile a `$`-operator filter expression into WHERE clauses (ANDed)."""
    clauses: List[ColumnElement[bool]] = []
    for name, condition in expression.items():
        clauses.extend(_condition(name, condition))
    return clauses


def combine(clauses: Sequence[ColumnElement[bool]]) -> Optional[ColumnElement[bool]]:
    if not clauses:
        return None
    return and_(*clauses)


# ══════════════════════════════════════════════════════════════════════════
# Sort and projection
# ══════════════════════════════════════════════════════════════════════════


def compile_sort(keys: Sequence[SortKey]) -> List[UnaryExpression]:
    """ORDER BY clauses; `id` is appended so equal sort values page stably."""
    order: List[UnaryExpression] = []
    for key in keys:
        field_spec = resolve_field(key.field)
        if not field_spec.sortable:
            raise ValidationError(
                message=f"Cannot sort by field '{key.field}'",
                field="sort",
            )
        order.append(field_spec.column.desc() if key.descending else field_spec.column.asc())
    order.append(Location.id.asc())
    return order


def projected_fields(projection: Projection) -> Set[str]:
    """The response keys a projection keeps; `id` is always kept."""
    if not projection:
        return set(PROJECTABLE_FIELDS)
    unknown = [name for name in projection.fields if name not in PROJECTABLE_FIELDS]
    if unknown:
        raise ValidationError(
            message=f"Unknown field '{unknown[0]}' in select",
            field="select",
        )
    if projection.exclude:
        keep = set(PROJECTABLE_FIELDS) - set(projection.fields)
    else:
        keep = set(projection.fields)
    keep.add("id")
    return keep


def apply_projection(item: Dict[str, Any], keep: Set[str]) -> Dict[str, Any]:
    return {key: value for key, value in item.items() if key in keep}
