"""
Database integration package for rogue-audit.

This package provides:
- Async PostgreSQL connection pooling
- Table listing and existence checks
"""

from .connection import ConnectionConfig, ConnectionPool
from .introspection import SchemaIntrospector, qualified_name, quote_identifier

__all__ = [
    "ConnectionConfig",
    "ConnectionPool",
    "SchemaIntrospector",
    "qualified_name",
    "quote_identifier",
]
