from __future__ import annotations

from typing import TYPE_CHECKING

from feedimport.config import get_database_config, get_storage_config

if TYPE_CHECKING:
    from pathlib import Path

    import pytest


def test_storage_config_uses_data_dir_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("FEEDIMPORT_DATA_DIR", str(tmp_path / "data"))

    storage = get_storage_config()

    assert storage.database_path() == (tmp_path / "data" / "feedimport.db").resolve()
    assert (tmp_path / "data").is_dir()
    assert storage.http_cache_path(ensure=False).name == "http_cache.db"


def test_database_uri_prefers_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://feeds@localhost/feeds")
    assert get_database_config().uri == "postgresql+psycopg://feeds@localhost/feeds"

    monkeypatch.delenv("DATABASE_URI")
    monkeypatch.setenv("FEEDIMPORT_DATA_DIR", str(tmp_path))
    assert get_database_config().uri == f"sqlite+pysqlite:///{tmp_path.resolve() / 'feedimport.db'}"
