"""
PawSpot API — Pydantic Request/Response Schemas
================================================

What:  Pydantic models defining the API contract for location records.
How:   FastAPI uses these to parse request bodies, serialize responses, and
       generate the OpenAPI document. Python attributes are snake_case; the
       wire format is camelCase (`animalTypes`, `averageRating`, `createdAt`).

Design Decision:
    Request schemas only check *shape* (types). Entity rules (required
    fields, length limits, enumerations, rating range) are enforced by
    services.validation.validate_location so that create and a partial
    update run the exact same checks against the merged record.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeoLocation(BaseModel):
    """Geocoded breakdown of a postal address; every part is optional."""

    model_config = CAMEL_CONFIG

    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class LocationPayload(BaseModel):
    """
    Body of POST /api/v1/locations and PUT /api/v1/locations/{id}.

    Every field is optional at this layer: on update only the fields the
    client sent are applied (`model_dump(exclude_unset=True)`). Unknown keys
    and server-owned fields (`slug`, `createdAt`, `photo`, `id`) are ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    title: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[GeoLocation] = None
    animal_types: Optional[List[str]] = None
    services: Optional[List[str]] = None
    average_rating: Optional[float] = Field(default=None, allow_inf_nan=False)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class LocationResponse(BaseModel):
    """Full representation of a stored location."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: uuid.UUID
    title: str
    slug: str
    description: str
    address: str
    location: Optional[GeoLocation] = None
    animal_types: List[str] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    average_rating: Optional[float] = None
    photo: str
    created_at: datetime

    @field_validator("animal_types", "services", mode="before")
    @classmethod
    def materialize_values(cls, v: Any) -> Any:
        """ORM association proxies are list-like but not lists."""
        if v is None:
            return []
        if isinstance(v, (str, bytes)):
            return v
        return list(v)

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Stored timestamps are UTC; SQLite hands them back without tzinfo."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class PageRef(BaseModel):
    """Pointer to a neighbouring page of a list result."""

    page: int
    limit: int


class LocationEnvelope(BaseModel):
    """`{success, data}` wrapper for single-record responses."""

    success: bool = True
    data: LocationResponse


class LocationListResponse(BaseModel):
    """
    Response of GET /api/v1/locations.

    `pagination` only holds the keys that apply (`next` and/or `prev`).
    `data` items are projected: with `?select=` they hold the selected
    fields plus `id`.
    """

    total: int
    success: bool = True
    count: int
    pagination: Dict[str, PageRef] = Field(default_factory=dict)
    data: List[Dict[str, Any]]


class PhotoEnvelope(BaseModel):
    """Response of PUT /api/v1/locations/{id}/photo; `data` is the stored filename."""

    success: bool = True
    data: str


class EmptyEnvelope(BaseModel):
    """Response of DELETE /api/v1/locations/{id}."""

    success: bool = True
    data: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """
    Error body shared by every endpoint.

    Example:
        {"success": false, "error": "Location not found with id of 5d7a..."}
    """

    success: bool = False
    error: str


class HealthResponse(BaseModel):
    """Health check response for monitoring and container liveness checks."""

    model_config = CAMEL_CONFIG

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
