"""
Database schema introspection for rogue-audit.

Lists the tables that exist on the live connection and answers
existence checks. Read-only.
"""

import logging
from typing import List

from .connection import ConnectionPool
from ..exceptions import DatabaseError, SchemaError


logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Quote a PostgreSQL identifier for use in DDL."""
    return '"' + name.replace('"', '""') + '"'


def qualified_name(schema: str, table: str) -> str:
    """Quoted schema-qualified table name."""
    return f"{quote_identifier(schema)}.{quote_identifier(table)}"


class SchemaIntrospector:
    """Database schema introspection utilities."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    async def list_tables(self, schema: str = "public") -> List[str]:
        """List all base tables in a schema."""
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = $1
            AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """

        try:
            rows = await self.pool.fetch(query, schema)
        except Exception as e:
            logger.error(f"Error listing tables in schema {schema}: {e}")
            raise SchemaError(f"Failed to list tables: {e}") from e

        return [row["table_name"] for row in rows]

    async def table_exists(self, schema: str, table: str) -> bool:
        """Check if a table exists."""
        query = """
            SELECT EXISTS (
                SELECT 1 FROM information_schema.tables
                WHERE table_schema = $1 AND table_name = $2
            )
        """

        try:
            result = await self.pool.fetchval(query, schema, table)
            return bool(result)
        except Exception as e:
            logger.error(f"Error checking table existence for {schema}.{table}: {e}")
            raise DatabaseError(f"Failed to check table existence: {e}") from e
