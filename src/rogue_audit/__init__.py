"""
rogue-audit: find and drop tables no installed module or field accounts for.

rogue-audit compares the tables in a PostgreSQL schema with the tables
declared by installed modules and the field storage tables expected from
entity metadata, reports the leftovers and drops them on request.
"""

__version__ = "0.1.0"
__author__ = "rogue-audit Contributors"

from .config import RogueAuditConfig
from .exceptions import (
    RogueAuditError,
    ConfigurationError,
    DatabaseError,
    DropFailureError,
    MetadataError,
)

__all__ = [
    "__version__",
    "RogueAuditConfig",
    "RogueAuditError",
    "ConfigurationError",
    "DatabaseError",
    "DropFailureError",
    "MetadataError",
]
