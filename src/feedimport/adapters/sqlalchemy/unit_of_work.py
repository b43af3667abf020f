"""SQLAlchemy unit of work and the process-wide database it draws sessions from."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from feedimport.adapters.sqlalchemy.mappings import start_mappers
from feedimport.adapters.sqlalchemy.migrations import upgrade_head
from feedimport.adapters.sqlalchemy.repositories import (
    SqlAlchemyEntityStore,
    SqlAlchemyItemMetadataRepository,
    SqlAlchemyScheduleRepository,
    SqlAlchemySourceStateRepository,
)
from feedimport.config.storage import get_database_uri
from feedimport.domain.errors import StoreError
from feedimport.domain.ports.unit_of_work import FeedRepositories

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

    from feedimport.domain.reconciliation import AccessPolicy

log = getLogger(__name__)


class StartupError(RuntimeError):
    """The database adapter is not in the state the caller expects."""


@dataclass(frozen=True, slots=True)
class _Database:
    engine: Engine
    sessions: sessionmaker[Session]


_database: _Database | None = None


def _autocommit_off(dbapi_connection: Any, _record: Any) -> None:
    # pysqlite issues its own BEGIN otherwise and SAVEPOINT breaks
    dbapi_connection.isolation_level = None


def _emit_begin(connection: Connection) -> None:
    connection.exec_driver_sql("BEGIN")


def _prepare_sqlite(engine: Engine) -> None:
    if engine.dialect.name != "sqlite":
        return
    for name, listener in (("connect", _autocommit_off), ("begin", _emit_begin)):
        if not event.contains(engine, name, listener):
            event.listen(engine, name, listener)


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Open the database, migrate it to the newest schema and make it current."""

    global _database
    if _database is not None and not force:
        raise StartupError("Database already started; pass force=True to replace it")

    engine = engine or create_engine(database_uri or get_database_uri())
    _prepare_sqlite(engine)
    start_mappers()
    upgrade_head(engine=engine)
    _database = _Database(
        engine=engine,
        sessions=sessionmaker(bind=engine, expire_on_commit=False, autoflush=False),
    )
    log.debug("Database ready at %r", engine.url)


def shutdown() -> None:
    global _database
    if _database is not None:
        _database.engine.dispose()
    _database = None


def is_started() -> bool:
    return _database is not None


def configured_engine() -> Engine | None:
    return None if _database is None else _database.engine


class SqlAlchemyFeedUnitOfWork:
    """One session scoped to an entity type; commit explicitly, roll back on error."""

    def __init__(
        self,
        entity_type: str = "item",
        *,
        access_policy: AccessPolicy | None = None,
    ) -> None:
        if _database is None:
            raise StartupError("Call startup() before opening a unit of work")
        self._sessions = _database.sessions
        self.entity_type = entity_type
        self.access_policy = access_policy
        self._session: Session | None = None
        self._repositories: FeedRepositories | None = None

    def __enter__(self) -> SqlAlchemyFeedUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        session = self._sessions()
        self._session = session
        self._repositories = FeedRepositories(
            entities=SqlAlchemyEntityStore(
                session, self.entity_type, access_policy=self.access_policy
            ),
            items=SqlAlchemyItemMetadataRepository(session),
            sources=SqlAlchemySourceStateRepository(session),
            schedules=SqlAlchemyScheduleRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> FeedRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        """Nested transaction around the block; database failures become ``StoreError``."""

        try:
            with self.session.begin_nested():
                yield
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc


if TYPE_CHECKING:
    from feedimport.domain.ports.unit_of_work import FeedUnitOfWork

    _uow_check: FeedUnitOfWork = SqlAlchemyFeedUnitOfWork()
