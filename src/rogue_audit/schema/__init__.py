"""
Schema audit package for rogue-audit.

This package provides:
- Rogue table reconciliation against module and field metadata
- Pattern-based drop planning
- Guarded DROP TABLE operations
"""

from .reconciler import Candidate, ReasonCode, RogueReconciler, summarize
from .orchestrator import (
    CleanOptions,
    CleanResult,
    CleanStatus,
    DropOrchestrator,
    build_plan,
)
from .operations import SafeSchemaOperations, SchemaChange, ChangeType
from .patterns import matches, parse_csv

__all__ = [
    "Candidate",
    "ReasonCode",
    "RogueReconciler",
    "summarize",
    "CleanOptions",
    "CleanResult",
    "CleanStatus",
    "DropOrchestrator",
    "build_plan",
    "SafeSchemaOperations",
    "SchemaChange",
    "ChangeType",
    "matches",
    "parse_csv",
]
