"""Chunked, resumable operations."""

from __future__ import annotations

from .controller import DEFAULT_LIMIT, MAX_LIMIT, BatchController, UnitOfWorkFactory
from .summary import OperationResult, OperationSummary, SourceStatus

__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "BatchController",
    "OperationResult",
    "OperationSummary",
    "SourceStatus",
    "UnitOfWorkFactory",
]
