"""Create locations tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates `locations` plus its two value tables,
       `location_animal_types` and `location_services`.
How:   Portable column types (sa.Uuid, sa.JSON) so the same revision runs on
       PostgreSQL and SQLite.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _value_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("location_id", sa.Uuid(), nullable=False),
        sa.Column("value", sa.String(20), nullable=False),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{name}_location_id", name, ["location_id"])


def upgrade() -> None:
    op.create_table(
        "locations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "title",
            sa.String(50),
            nullable=False,
            comment="Display name, unique across all locations",
        ),
        sa.Column(
            "slug",
            sa.String(255),
            nullable=False,
            comment="URL-safe form of the title at creation time",
        ),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column(
            "location",
            sa.JSON(),
            nullable=True,
            comment="formattedAddress, street, city, state, zipcode, country",
        ),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column(
            "photo",
            sa.String(255),
            nullable=False,
            server_default=sa.text("'no-photo.jpg'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this location was created (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("title"),
    )
    op.create_index("ix_locations_slug", "locations", ["slug"])
    op.create_index(
        "idx_locations_created_at",
        "locations",
        [sa.text("created_at DESC")],
    )

    _value_table("location_animal_types")
    _value_table("location_services")


def downgrade() -> None:
    for name in ("location_services", "location_animal_types"):
        op.drop_index(f"ix_{name}_location_id", table_name=name)
        op.drop_table(name)
    op.drop_index("idx_locations_created_at", table_name="locations")
    op.drop_index("ix_locations_slug", table_name="locations")
    op.drop_table("locations")
