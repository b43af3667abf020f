"""Create entity, item metadata, source state and schedule tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "entity",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("owner_id", sa.String(), nullable=True),
        sa.Column("fields", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_entity")),
    )
    op.create_index(op.f("ix_entity_entity_type"), "entity", ["entity_type"])

    op.create_table(
        "entity_field_value",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("field", sa.String(), nullable=False),
        sa.Column("column_name", sa.String(), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column("value", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ["entity_id"],
            ["entity.id"],
            name=op.f("fk_entity_field_value_entity_id_entity"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_entity_field_value")),
    )
    op.create_index(
        op.f("ix_entity_field_value_entity_id"), "entity_field_value", ["entity_id"]
    )
    op.create_index(
        "ix_entity_field_value_lookup",
        "entity_field_value",
        ["entity_type", "field", "column_name", "value"],
    )

    op.create_table(
        "feeds_item",
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("source_id", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("imported_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("fingerprint", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(
            ["entity_id"],
            ["entity.id"],
            name=op.f("fk_feeds_item_entity_id_entity"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("entity_id", name=op.f("pk_feeds_item")),
    )
    op.create_index(
        "ix_feeds_item_source_imported", "feeds_item", ["source_id", "imported_at"]
    )

    op.create_table(
        "source_state",
        sa.Column("source_id", sa.String(), nullable=False),
        sa.Column("lock_operation", sa.String(length=16), nullable=True),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("progress", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("source_id", name=op.f("pk_source_state")),
    )

    op.create_table(
        "schedule_state",
        sa.Column("source_id", sa.String(), nullable=False),
        sa.Column("import_period", sa.Integer(), nullable=True),
        sa.Column("expire_period", sa.Integer(), nullable=True),
        sa.Column("next_import_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_expire_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reschedule", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("source_id", name=op.f("pk_schedule_state")),
    )


def downgrade() -> None:
    op.drop_table("schedule_state")
    op.drop_table("source_state")
    op.drop_index("ix_feeds_item_source_imported", table_name="feeds_item")
    op.drop_table("feeds_item")
    op.drop_index("ix_entity_field_value_lookup", table_name="entity_field_value")
    op.drop_index(op.f("ix_entity_field_value_entity_id"), table_name="entity_field_value")
    op.drop_table("entity_field_value")
    op.drop_index(op.f("ix_entity_entity_type"), table_name="entity")
    op.drop_table("entity")
