"""
PawSpot API — Location Validation
==================================

What:  Enumerates every entity constraint of a location record.
How:   validate_location() inspects a snake_case field mapping and returns a
       list of FieldViolation; it never raises. LocationService raises one
       ValidationError carrying all violations when the list is non-empty.
Who:   Called by LocationService.create and LocationService.update (on the
       merged record, so a partial update is checked as a whole).

Constraints:
    title          required, ≤ 50 characters (after trimming)
    description    required, ≤ 500 characters
    address        required
    animalTypes    required, non-empty, each of Dog / Cat / Other
    services       required, non-empty, each of Food / Toys / Walking
    averageRating  optional, finite, 1 ≤ rating ≤ 5
    (title uniqueness needs the database and is checked by the service)
"""

import math
from typing import Any, List, Mapping, Optional, Sequence

from pawspot.exceptions import FieldViolation
from pawspot.models.location import ANIMAL_TYPES, SERVICES

TITLE_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500
RATING_MIN = 1
RATING_MAX = 5


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _check_enum_list(
    field: str,
    values: Optional[Sequence[str]],
    allowed: Sequence[str],
    missing_message: str,
    label: str,
) -> List[FieldViolation]:
    if not values:
        return [FieldViolation(field, missing_message)]
    return [
        FieldViolation(field, f"`{value}` is not a valid {label}")
        for value in values
        if value not in allowed
    ]


def validate_location(data: Mapping[str, Any]) -> List[FieldViolation]:
    """Return every violated constraint for a full location record."""
    violations: List[FieldViolation] = []

    title = data.get("title")
    if _is_blank(title):
        violations.append(FieldViolation("title", "Please add a name"))
    elif len(title.strip()) > TITLE_MAX_LENGTH:
        violations.append(
            FieldViolation("title", f"Title can not be more than {TITLE_MAX_LENGTH} characters")
        )

    description = data.get("description")
    if _is_blank(description):
        violations.append(FieldViolation("description", "Please add description"))
    elif len(description) > DESCRIPTION_MAX_LENGTH:
        violations.append(
            FieldViolation(
                "description",
                f"Description can not be more than {DESCRIPTION_MAX_LENGTH} characters",
            )
        )

    if _is_blank(data.get("address")):
        violations.append(FieldViolation("address", "Please add an address"))

    violations.extend(
        _check_enum_list(
            "animalTypes",
            data.get("animal_types"),
            ANIMAL_TYPES,
            "Please add at least one animal type",
            "animal type",
        )
    )
    violations.extend(
        _check_enum_list(
            "services",
            data.get("services"),
            SERVICES,
            "Please add at least one service",
            "service",
        )
    )

    rating = data.get("average_rating")
    if rating is not None:
        # NaN compares False against both bounds
        if not math.isfinite(rating):
            violations.append(
                FieldViolation(
                    "averageRating",
                    f"Rating must be a number between {RATING_MIN} and {RATING_MAX}",
                )
            )
        elif rating < RATING_MIN:
            violations.append(FieldViolation("averageRating", f"Rating must be at least {RATING_MIN}"))
        elif rating > RATING_MAX:
            violations.append(
                FieldViolation("averageRating", f"Rating can not be more than {RATING_MAX}")
            )

    return violations
