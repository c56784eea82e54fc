"""
PawSpot API — Location SQLAlchemy Models
=========================================

What:  ORM models for the `locations` table and its two value tables.
How:   Inherits from the shared DeclarativeBase; Alembic reads these for migrations.
Who:   Used by LocationService for CRUD and by the filter compiler for WHERE clauses.

Table Design:
    - locations: one row per facility; `title` is UNIQUE, `slug` is derived
      from the title once at creation.
    - location_animal_types / location_services: one row per enumerated value.
      List-valued fields live in child rows so "contains" and "contains any"
      filters compile to a plain EXISTS subquery on every backend.
    - location (JSON): the geocoded address breakdown
      (formattedAddress, street, city, state, zipcode, country).

    Index on created_at DESC backs the default list order (newest first).
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawspot.database import Base

DEFAULT_PHOTO = "no-photo.jpg"

ANIMAL_TYPES = ("Dog", "Cat", "Other")
SERVICES = ("Food", "Toys", "Walking")


class LocationAnimalType(Base):
    """One enumerated animal type (Dog, Cat, Other) attached to a location."""

    __tablename__ = "location_animal_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("locations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    value: Mapped[str] = mapped_column(String(20), nullable=False)


class LocationServiceType(Base):
    """One enumerated service (Food, Toys, Walking) offered at a location."""

    __tablename__ = "location_services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("locations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    value: Mapped[str] = mapped_column(String(20), nullable=False)


class Location(Base):
    """
    A pet-care facility.

    Lifecycle:
        1. Created by LocationService.create (slug, created_at, photo defaulted)
        2. Updated field-by-field by LocationService.update (slug and
           created_at never change)
        3. Photo filename replaced by LocationService.set_photo
        4. Hard-deleted by LocationService.delete; value rows go with it

    Query Patterns:
        - List page: SELECT ... WHERE <filters> ORDER BY created_at DESC
          LIMIT :limit OFFSET :skip
        - Single record: SELECT ... WHERE id = :uuid
        - Title uniqueness check: SELECT id WHERE title = :title
    """

    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    slug: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    address: Mapped[str] = mapped_column(Text, nullable=False)

    location: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    photo: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=DEFAULT_PHOTO,
    )

    # UTC; conversion to local time is a client concern
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # ── Enumerated value rows ─────────────────────────────────────────────
    # selectin: async sessions cannot lazy-load, so the rows come back with
    # every SELECT of Location
    animal_type_rows: Mapped[List[LocationAnimalType]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=LocationAnimalType.id,
    )
    service_rows: Mapped[List[LocationServiceType]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=LocationServiceType.id,
    )

    animal_types: AssociationProxy[List[str]] = association_proxy(
        "animal_type_rows",
        "value",
        creator=lambda value: LocationAnimalType(value=value),
    )
    services: AssociationProxy[List[str]] = association_proxy(
        "service_rows",
        "value",
        creator=lambda value: LocationServiceType(value=value),
    )

    __table_args__ = (
        Index("idx_locations_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, title='{self.title}')>"
