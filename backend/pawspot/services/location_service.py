"""
PawSpot API — Location Service (Record Service)
================================================

What:  Create / read / update / delete for location records, plus the list
       query that applies filters, projection, sort order and paging.
How:   Composes the filter compiler, the validation function and async
       SQLAlchemy operations. Changes are flushed here; the request-scoped
       session (database.get_db_session) commits or rolls back.
Who:   Called by the locations routes and by PhotoService.

Flow (GET /api/v1/locations):
    ┌───────────┐    ┌──────────────┐    ┌──────────────┐    ┌────────────┐
    │ Translate │───▶│ Compile to   │───▶│ SELECT page  │───▶│ Project +  │
    │ (route)   │    │ WHERE/ORDER  │    │ + COUNT(*)   │    │ paginate   │
    └───────────┘    └──────────────┘    └──────────────┘    └────────────┘

Error Handling:
    NotFoundError / ValidationError propagate unchanged. SQLAlchemy failures
    are logged and re-raised as DatabaseError (generic message to client).
    A UNIQUE violation on `title` becomes ValidationError.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from slugify import slugify
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pawspot.exceptions import DatabaseError, NotFoundError, PawSpotError, ValidationError
from pawspot.models.location import Location
from pawspot.schemas.location import LocationPayload, LocationResponse
from pawspot.services.filter_compiler import (
    apply_projection,
    combine,
    compile_filter,
    compile_sort,
    projected_fields,
)
from pawspot.services.query_service import Projection, SortKey
from pawspot.services.validation import validate_location

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Duplicate field value entered"

# Columns a payload may write directly; list fields go through the proxies
_SCALAR_FIELDS = ("title", "description", "address", "location", "average_rating")
_LIST_FIELDS = ("animal_types", "services")


def _payload_values(payload: LocationPayload, partial: bool) -> Dict[str, Any]:
    """snake_case field → value, with the nested location stored as a camelCase dict."""
    values = payload.model_dump(exclude_unset=partial)
    if payload.location is not None and "location" in values:
        values["location"] = payload.location.model_dump(by_alias=True, exclude_none=True)
    if isinstance(values.get("title"), str):
        values["title"] = values["title"].strip()
    return values


class LocationService:
    """
    Business logic for location records.

    The ORM model is injected at construction; nothing here reaches for a
    global model registry.
    """

    def __init__(self, model: Type[Location] = Location):
        self.model = model

    # ── Helpers ───────────────────────────────────────────────────────────

    def serialize(self, location: Location) -> Dict[str, Any]:
        """JSON-ready camelCase dict of a stored record."""
        return LocationResponse.model_validate(location).model_dump(mode="json", by_alias=True)

    def _parse_id(self, location_id: Any) -> uuid.UUID:
        if isinstance(location_id, uuid.UUID):
            return location_id
        try:
            return uuid.UUID(str(location_id))
        except ValueError:
            # A malformed id can never match a record
            raise NotFoundError(resource="Location", resource_id=str(location_id))

    async def _ensure_unique_title(
        self,
        db: AsyncSession,
        title: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        stmt = select(self.model.id).where(self.model.title == title)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        result = await db.execute(stmt)
        if result.first() is not None:
            raise ValidationError(message=DUPLICATE_MESSAGE, field="title")

    async def _flush(self, db: AsyncSession, action: str) -> None:
        try:
            await db.flush()
        except IntegrityError as e:
            logger.warning("Integrity error during %s: %s", action, e.orig)
            raise ValidationError(message=DUPLICATE_MESSAGE, field="title")

    # ── List ──────────────────────────────────────────────────────────────

    async def list_locations(
        self,
        db: AsyncSession,
        filter: Mapping[str, Any],
        projection: Optional[Projection] = None,
        sort: Sequence[SortKey] = (SortKey("createdAt", descending=True),),
        skip: int = 0,
        limit: int = 5,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Run a filtered, sorted, paged query.

        Args:
            db: Async database session
            filter: `$`-operator filter expression from the query translator
            projection: Fields to keep in each item (None/empty keeps all)
            sort: Sort keys, applied in order
            skip: Rows to skip (startIndex)
            limit: Page size

        Returns:
            (projected items, total number of records matching `filter`)

        Raises:
            ValidationError: unknown field/operator or bad value in the query
            DatabaseError: query execution failed
        """
        keep = projected_fields(projection or Projection())
        where = combine(compile_filter(filter))
        order_by = compile_sort(sort)

        query = select(self.model)
        count_query = select(func.count()).select_from(self.model)
        if where is not None:
            query = query.where(where)
            count_query = count_query.where(where)
        query = query.order_by(*order_by).offset(skip).limit(limit)

        try:
            result = await db.execute(query)
            locations = list(result.scalars().all())
            total = (await db.execute(count_query)).scalar_one()
        except SQLAlchemyError as e:
            logger.error("Database error listing locations: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve locations. Please try again.",
                context={"error_type": type(e).__name__},
            )

        items = [apply_projection(self.serialize(loc), keep) for loc in locations]
        return items, total

    # ── Single record ─────────────────────────────────────────────────────

    async def get_location(self, db: AsyncSession, location_id: Any) -> Location:
        """
        Fetch one record.

        Raises:
            NotFoundError: no record with this id (→ 404)
            DatabaseError: query execution failed (→ 500)
        """
        parsed_id = self._parse_id(location_id)
        try:
            result = await db.execute(select(self.model).where(self.model.id == parsed_id))
            location = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching location %s: %s", parsed_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the location. Please try again.",
                context={"location_id": str(parsed_id)},
            )

        if location is None:
            raise NotFoundError(resource="Location", resource_id=str(location_id))
        return location

    async def create_location(self, db: AsyncSession, payload: LocationPayload) -> Location:
        """
        Validate and insert a new record; slug and timestamps are set here.

        Raises:
            ValidationError: constraint violations or duplicate title
        """
        values = _payload_values(payload, partial=False)
        violations = validate_location(values)
        if violations:
            raise ValidationError(violations=violations)

        await self._ensure_unique_title(db, values["title"])

        location = self.model(
            title=values["title"],
            slug=slugify(values["title"]),
            description=values["description"],
            address=values["address"],
            location=values.get("location"),
            average_rating=values.get("average_rating"),
        )
        location.animal_types = list(values["animal_types"])
        location.services = list(values["services"])

        try:
            db.add(location)
            await self._flush(db, "create")
        except PawSpotError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating location: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("Location created: %s (%s)", location.id, location.slug)
        return location

    async def update_location(
        self,
        db: AsyncSession,
        location_id: Any,
        payload: LocationPayload,
    ) -> Location:
        """
        Apply the fields present in `payload`, then re-validate the whole record.

        `slug`, `createdAt` and `photo` are never changed here.

        Raises:
            NotFoundError: no record with this id
            ValidationError: the merged record breaks a constraint
        """
        location = await self.get_location(db, location_id)
        changes = _payload_values(payload, partial=True)

        merged: Dict[str, Any] = {
            "title": location.title,
            "description": location.description,
            "address": location.address,
            "location": location.location,
            "average_rating": location.average_rating,
            "animal_types": list(location.animal_types),
            "services": list(location.services),
        }
        merged.update(changes)

        violations = validate_location(merged)
        if violations:
            raise ValidationError(violations=violations)

        if "title" in changes and changes["title"] != location.title:
            await self._ensure_unique_title(db, changes["title"], exclude_id=location.id)

        for name in _SCALAR_FIELDS:
            if name in changes:
                setattr(location, name, changes[name])
        for name in _LIST_FIELDS:
            if name in changes:
                setattr(location, name, list(changes[name]))

        try:
            await self._flush(db, "update")
        except PawSpotError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating location %s: %s", location.id, str(e))
            raise DatabaseError(context={"location_id": str(location.id)})

        logger.info("Location updated: %s (fields=%s)", location.id, sorted(changes))
        return location

    async def delete_location(self, db: AsyncSession, location_id: Any) -> None:
        """Hard-delete a record and its value rows."""
        location = await self.get_location(db, location_id)
        try:
            await db.delete(location)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting location %s: %s", location.id, str(e))
            raise DatabaseError(context={"location_id": str(location.id)})
        logger.info("Location deleted: %s", location.id)

    async def set_photo(self, db: AsyncSession, location_id: Any, filename: str) -> Location:
        """Point the record at a stored photo filename."""
        location = await self.get_location(db, location_id)
        location.photo = filename
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error saving photo for %s: %s", location.id, str(e))
            raise DatabaseError(context={"location_id": str(location.id)})
        logger.info("Location %s photo set to %s", location.id, filename)
        return location


# ── Singleton Instance ────────────────────────────────────────────────────
location_service = LocationService(model=Location)
