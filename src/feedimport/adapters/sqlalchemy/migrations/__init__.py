"""Schema migrations for the feed store, driven through Alembic's command API."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from feedimport.config.storage import get_database_uri

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

log = getLogger(__name__)

SCRIPT_LOCATION: Final[Path] = Path(__file__).resolve().parent


def alembic_config(database_uri: str | None = None) -> Config:
    config = Config()
    config.set_main_option("script_location", str(SCRIPT_LOCATION))
    if database_uri is not None:
        config.set_main_option("sqlalchemy.url", database_uri)
    return config


def head_revision() -> str | None:
    """Newest revision shipped with the package."""

    return ScriptDirectory.from_config(alembic_config()).get_current_head()


def current_revision(connection: Connection) -> str | None:
    """Revision stamped in the database, ``None`` for an unmigrated schema."""

    return MigrationContext.configure(connection).get_current_revision()


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Bring the schema behind ``engine`` (or ``database_uri``) up to the newest revision."""

    if engine is None:
        uri = database_uri or get_database_uri()
        log.debug("Upgrading schema at %s", uri)
        command.upgrade(alembic_config(uri), "head")
        return

    config = alembic_config()
    with engine.begin() as connection:
        before = current_revision(connection)
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
        after = current_revision(connection)
    if before != after:
        log.info("Migrated schema from %s to %s", before or "<empty>", after)
