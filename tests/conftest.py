from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session  # noqa: TC002

from feedimport.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyFeedUnitOfWork,
    configured_engine,
    shutdown,
    startup,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    startup(engine=engine, force=True)
    try:
        yield engine
    finally:
        shutdown()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session = Session(bind=sqlite_engine, autoflush=False, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Callable[[], SqlAlchemyFeedUnitOfWork]:
    assert configured_engine() is sqlite_engine

    def factory() -> SqlAlchemyFeedUnitOfWork:
        return SqlAlchemyFeedUnitOfWork("item")

    return factory
