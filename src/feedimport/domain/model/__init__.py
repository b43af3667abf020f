"""Domain model of the import pipeline."""

from __future__ import annotations

from .entity import Entity, EntityOperation, FieldTuple, FieldValues, initial_field_values
from .mapping import DEFAULT_COLUMN, PATH_SEPARATOR, FieldMapping
from .metadata import ItemMetadata
from .progress import (
    MAX_MESSAGES,
    OperationKind,
    OperationStatus,
    Phase,
    ProgressState,
    SourceState,
)
from .record import Record, RecordValue, Scalar, to_scalar
from .results import Err, ErrorKind, Ok, Outcome, RecordResult
from .schedule import ScheduleState

__all__ = [
    "DEFAULT_COLUMN",
    "MAX_MESSAGES",
    "PATH_SEPARATOR",
    "Entity",
    "EntityOperation",
    "Err",
    "ErrorKind",
    "FieldMapping",
    "FieldTuple",
    "FieldValues",
    "ItemMetadata",
    "Ok",
    "OperationKind",
    "OperationStatus",
    "Outcome",
    "Phase",
    "ProgressState",
    "Record",
    "RecordResult",
    "RecordValue",
    "Scalar",
    "ScheduleState",
    "SourceState",
    "initial_field_values",
    "to_scalar",
]
