"""Reconciliation of parsed records against the entity store."""

from __future__ import annotations

from .access import AccessPolicy, OwnerAccessPolicy
from .contracts import ProcessorSettings, UpdatePolicy
from .engine import ReconciliationEngine, utcnow
from .hooks import DefaultValues, EntityHook, RequiredFields

__all__ = [
    "AccessPolicy",
    "DefaultValues",
    "EntityHook",
    "OwnerAccessPolicy",
    "ProcessorSettings",
    "ReconciliationEngine",
    "RequiredFields",
    "UpdatePolicy",
    "utcnow",
]
