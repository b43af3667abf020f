"""Importer definitions loaded from TOML documents."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Literal, cast

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from feedimport.domain.fingerprint import FingerprintPolicy
from feedimport.domain.model import DEFAULT_COLUMN, PATH_SEPARATOR, FieldMapping
from feedimport.domain.reconciliation import UpdatePolicy

from .env import CONFIG_ENV_VAR, require_env_var
from .errors import ConfigurationError, InvalidDefinitionError
from .http_resilience import DEFAULT_FEED_TIMEOUT_SECONDS, DEFAULT_USER_AGENT


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ImporterBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ImporterSection(ImporterBaseModel):
    id: str = Field(min_length=1)
    entity_type: str = Field(default="item", min_length=1)
    label: str | None = None
    limit: int = Field(default=50, ge=1, le=1000)
    update_existing: UpdatePolicy = UpdatePolicy.SKIP
    force_update: bool = False
    authorize: bool = True
    authorized_owners: tuple[str, ...] | None = None
    owner_id: str | None = None
    expire_after_seconds: int | None = Field(default=None, ge=0)
    import_period_seconds: int | None = Field(default=1800, ge=1)
    expire_period_seconds: int | None = Field(default=3600, ge=1)
    fingerprint_policy: FingerprintPolicy = FingerprintPolicy.FULL
    required_fields: tuple[str, ...] = ()
    defaults: dict[str, object] = Field(default_factory=dict)

    _normalize_label = field_validator("label", "owner_id", mode="before")(_blank_to_none)


class FetcherSection(ImporterBaseModel):
    type: Literal["http", "file"] = "http"
    timeout_seconds: float = Field(default=DEFAULT_FEED_TIMEOUT_SECONDS, gt=0)
    user_agent: str = DEFAULT_USER_AGENT
    max_calls_per_second: float | None = Field(default=None, gt=0)
    cache: bool = True
    pattern: str = "*"
    recursive: bool = False


class ParserSection(ImporterBaseModel):
    type: Literal["syndication", "opml", "delimited", "directory"] = "syndication"
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    encoding: str = "utf-8-sig"
    fieldnames: tuple[str, ...] | None = None


class TargetSection(ImporterBaseModel):
    name: str = Field(min_length=1)
    type: Literal["field", "timestamp", "owner"] = "field"
    multiple: bool | None = None
    columns: tuple[str, ...] | None = None
    column_defaults: dict[str, str | int | float | bool] = Field(default_factory=dict)


class MappingSection(ImporterBaseModel):
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    column: str | None = None
    unique: bool = False

    @model_validator(mode="after")
    def _check_column(self) -> MappingSection:
        _, separator, column = self.target.partition(PATH_SEPARATOR)
        if separator and self.column is not None and column != self.column:
            raise ValueError(
                f"mapping target {self.target!r} conflicts with column {self.column!r}"
            )
        return self

    def to_mapping(self) -> FieldMapping:
        target, _, column = self.target.partition(PATH_SEPARATOR)
        return FieldMapping(
            source=self.source,
            target=target,
            column=self.column or column or DEFAULT_COLUMN,
            unique=self.unique,
        )


class SourceSection(ImporterBaseModel):
    id: str = Field(min_length=1)
    location: str = Field(min_length=1)
    options: dict[str, str] = Field(default_factory=dict)


class ImporterDefinition(ImporterBaseModel):
    """A complete importer: settings, collaborators, mappings and sources."""

    importer: ImporterSection
    fetcher: FetcherSection = Field(default_factory=FetcherSection)
    parser: ParserSection = Field(default_factory=ParserSection)
    targets: tuple[TargetSection, ...] = ()
    mappings: tuple[MappingSection, ...] = Field(min_length=1)
    sources: tuple[SourceSection, ...] = ()

    @model_validator(mode="after")
    def _check_unique_ids(self) -> ImporterDefinition:
        source_ids = [source.id for source in self.sources]
        if len(source_ids) != len(set(source_ids)):
            raise ValueError("source ids must be unique")
        target_names = [target.name for target in self.targets]
        if len(target_names) != len(set(target_names)):
            raise ValueError("target names must be unique")
        return self

    def field_mappings(self) -> list[FieldMapping]:
        return [mapping.to_mapping() for mapping in self.mappings]

    def source(self, source_id: str) -> SourceSection:
        for source in self.sources:
            if source.id == source_id:
                return source
        raise ConfigurationError(
            f"Importer {self.importer.id!r} has no source {source_id!r}"
        )


def _describe_problems(exc: ValidationError) -> list[str]:
    problems: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        problems.append(f"{location}: {error['msg']}")
    return problems


def parse_importer_definition(
    document: Mapping[str, object],
    *,
    path: Path | None = None,
) -> ImporterDefinition:
    try:
        return ImporterDefinition.model_validate(document)
    except ValidationError as exc:
        problems = _describe_problems(exc)
        origin = f" in {path}" if path is not None else ""
        raise InvalidDefinitionError(
            f"Invalid importer definition{origin}: {'; '.join(problems)}",
            path=path,
            problems=problems,
        ) from exc


def load_importer_definition(path: Path | str) -> ImporterDefinition:
    """Read and validate an importer definition from a TOML file."""

    config_path = Path(path).expanduser()
    try:
        with config_path.open("rb") as config_file:
            document = tomllib.load(config_file)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Importer definition not found: {config_path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Cannot parse {config_path}: {exc}") from exc
    return parse_importer_definition(cast("Mapping[str, object]", document), path=config_path)


def get_importer_config_path(path: Path | str | None = None) -> Path:
    """Return ``path`` or, when absent, the path named by ``FEEDIMPORT_CONFIG``."""

    if path is not None:
        return Path(path)
    return Path(require_env_var(CONFIG_ENV_VAR))
