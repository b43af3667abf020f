"""Where feedimport keeps its database and HTTP cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import DATA_DIR_ENV_VAR, DATABASE_URI_ENV_VAR, optional_env_var

APP_DIR_NAME: Final[str] = "feedimport"
DEFAULT_DB_FILENAME: Final[str] = "feedimport.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


def _platform_data_home() -> Path:
    if os.name == "nt":
        local = optional_env_var("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = optional_env_var("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Data directory holding the SQLite database and the feed cache.

    Paths are created lazily: asking for a file path creates the directory
    unless ``ensure=False`` is passed.
    """

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME
    http_cache_filename: str = HTTP_CACHE_FILENAME

    def _file(self, filename: str, *, ensure: bool) -> Path:
        directory = self.data_dir.expanduser().resolve()
        if ensure:
            directory.mkdir(parents=True, exist_ok=True)
        return directory / filename

    def database_path(self, *, ensure: bool = True) -> Path:
        return self._file(self.database_filename, ensure=ensure)

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self._file(self.http_cache_filename, ensure=ensure)

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    configured = optional_env_var(DATA_DIR_ENV_VAR)
    data_dir = Path(configured) if configured else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""

    uri = optional_env_var(DATABASE_URI_ENV_VAR)
    if uri is None:
        uri = (storage or get_storage_config()).database_uri()
    return DatabaseConfig(uri=uri)


def get_database_uri() -> str:
    return get_database_config().uri


def get_http_cache_path() -> Path:
    return get_storage_config().http_cache_path()
