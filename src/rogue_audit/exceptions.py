"""
Exception classes for rogue-audit.
"""

from typing import Any, Dict, List, Optional


class RogueAuditError(Exception):
    """Base exception for all rogue-audit errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            result += f" [{details_str}]"
        if self.cause:
            result += f" (caused by: {self.cause})"
        return result


class ConfigurationError(RogueAuditError):
    """Raised when there's an error in configuration."""

    pass


class ValidationError(RogueAuditError):
    """Raised when there's a validation error."""

    pass


class DatabaseError(RogueAuditError):
    """Raised when there's an error with database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when there's an error establishing or maintaining database connections."""

    pass


class DatabaseConfigurationError(DatabaseError):
    """Raised when there's an error in database configuration."""

    pass


class SchemaError(DatabaseError):
    """Raised when there's an error with database schema operations."""

    pass


class DropFailureError(SchemaError):
    """Raised when the database rejects a DROP TABLE in a clean batch."""

    def __init__(
        self,
        table_name: str,
        dropped: Optional[List[str]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        dropped = list(dropped or [])
        super().__init__(
            f"Failed to drop table '{table_name}'",
            {"already_dropped": len(dropped)} if dropped else None,
            cause,
        )
        self.table_name = table_name
        self.dropped = dropped


class MetadataError(RogueAuditError):
    """Raised when application metadata cannot be read."""

    pass


class MetadataUnavailableError(MetadataError):
    """Raised when an entity type has no field storage metadata."""

    def __init__(self, entity_type: str, reason: Optional[str] = None) -> None:
        message = f"Field storage metadata unavailable for entity type '{entity_type}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.entity_type = entity_type
        self.reason = reason
