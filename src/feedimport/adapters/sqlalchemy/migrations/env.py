"""Alembic entry point; accepts a caller-supplied connection or a configured URL."""

from __future__ import annotations

from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import create_engine, pool

from feedimport.adapters.sqlalchemy.mappings import mapper_registry, start_mappers
from feedimport.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

start_mappers()

_OPTIONS: dict[str, object] = {
    "target_metadata": mapper_registry.metadata,
    # SQLite cannot ALTER most constraints in place
    "render_as_batch": True,
    "compare_type": True,
}


def _url() -> str:
    return context.config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(connection: Connection | None = None) -> None:
    if connection is None:
        context.configure(url=_url(), literal_binds=True, **_OPTIONS)
    else:
        context.configure(connection=connection, **_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def _migrate_online() -> None:
    supplied = context.config.attributes.get("connection")
    if supplied is not None:
        _migrate(supplied)
        return
    engine = create_engine(_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    _migrate()
else:
    _migrate_online()
