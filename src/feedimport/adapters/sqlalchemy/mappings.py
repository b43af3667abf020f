"""SQLAlchemy tables and imperative mappings for the import domain."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from feedimport.domain.model import (
    Entity,
    ItemMetadata,
    OperationKind,
    ScheduleState,
    SourceState,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

entity_table = Table(
    "entity",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("entity_type", String(64), nullable=False, index=True),
    Column("owner_id", String, nullable=True),
    Column("fields", JSON, nullable=False, default=dict),
)

# scalar field values of every entity, searched by unique lookups
entity_field_value_table = Table(
    "entity_field_value",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "entity_id",
        UUIDColumnType,
        ForeignKey("entity.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("entity_type", String(64), nullable=False),
    Column("field", String, nullable=False),
    Column("column_name", String, nullable=False),
    Column("delta", Integer, nullable=False),
    Column("value", String, nullable=True),
    Index("ix_entity_field_value_lookup", "entity_type", "field", "column_name", "value"),
)

feeds_item_table = Table(
    "feeds_item",
    mapper_registry.metadata,
    Column(
        "entity_id",
        UUIDColumnType,
        ForeignKey("entity.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("source_id", String, nullable=False),
    Column("entity_type", String(64), nullable=False),
    Column("imported_at", UTCDateTime, nullable=False),
    Column("fingerprint", String(32), nullable=False),
    Index("ix_feeds_item_source_imported", "source_id", "imported_at"),
)

source_state_table = Table(
    "source_state",
    mapper_registry.metadata,
    Column("source_id", String, primary_key=True),
    Column(
        "lock_operation",
        Enum(
            OperationKind,
            native_enum=False,
            length=16,
            values_callable=lambda kinds: [kind.value for kind in kinds],
        ),
        nullable=True,
    ),
    Column("locked_at", UTCDateTime, nullable=True),
    Column("progress", JSON, nullable=False, default=dict),
)

schedule_state_table = Table(
    "schedule_state",
    mapper_registry.metadata,
    Column("source_id", String, primary_key=True),
    Column("import_period", Integer, nullable=True),
    Column("expire_period", Integer, nullable=True),
    Column("next_import_at", UTCDateTime, nullable=True),
    Column("next_expire_at", UTCDateTime, nullable=True),
    Column("reschedule", Boolean, nullable=False, default=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Entity, entity_table)
    mapper_registry.map_imperatively(ItemMetadata, feeds_item_table)
    mapper_registry.map_imperatively(SourceState, source_state_table)
    mapper_registry.map_imperatively(ScheduleState, schedule_state_table)

    configure_mappers()
    return mapper_registry
