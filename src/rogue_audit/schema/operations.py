"""
Guarded schema operations for rogue-audit.

Provides DROP TABLE with an existence check, a statement timeout and
per-operation execution records. Each drop is its own transaction.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional
from enum import Enum

from ..database.connection import ConnectionPool
from ..database.introspection import SchemaIntrospector, qualified_name
from ..exceptions import SchemaError


logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    """Types of schema changes."""

    DROP_TABLE = "drop_table"


@dataclass
class SchemaChange:
    """Represents a schema change operation and its outcome."""

    change_type: ChangeType
    schema: str
    table: str
    description: str
    sql: str

    # Execution results
    executed: bool = False
    skipped: bool = False
    execution_time_ms: Optional[float] = None
    error: Optional[str] = None

    @property
    def full_table_name(self) -> str:
        """Get fully qualified table name."""
        return f"{self.schema}.{self.table}"

    @property
    def has_error(self) -> bool:
        """Check if this change has an error."""
        return self.error is not None

    @property
    def change_id(self) -> str:
        """Get unique identifier for this change."""
        return f"{self.change_type.value}_{self.schema}_{self.table}"


class SafeSchemaOperations:
    """Schema operation executor for table drops."""

    def __init__(self, pool: ConnectionPool, timeout_seconds: int = 300):
        self.pool = pool
        self.timeout_seconds = timeout_seconds
        self.introspector = SchemaIntrospector(pool)

    async def drop_table_if_exists(self, schema: str, table: str) -> SchemaChange:
        """
        Drop a table unless it is already gone.

        A table that no longer exists is reported as skipped rather than
        failed.

        Raises:
            SchemaError: If the database rejects the drop
        """
        change = SchemaChange(
            change_type=ChangeType.DROP_TABLE,
            schema=schema,
            table=table,
            description=f"Drop table {schema}.{table}",
            sql=f"DROP TABLE {qualified_name(schema, table)}",
        )

        if not await self.introspector.table_exists(schema, table):
            change.skipped = True
            logger.info(f"Table {change.full_table_name} no longer exists, skipping")
            return change

        return await self._execute_change(change)

    async def _execute_change(self, change: SchemaChange) -> SchemaChange:
        """Execute a schema change inside its own transaction."""
        start_time = time.time()

        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute(
                        f"SET LOCAL statement_timeout = '{int(self.timeout_seconds)}s'"
                    )
                    await conn.execute(change.sql, timeout=self.timeout_seconds)
        except Exception as e:
            change.error = str(e)
            logger.error(f"Failed to execute {change.change_id}: {e}")
            raise SchemaError(
                f"Failed to drop table {change.full_table_name}: {e}"
            ) from e
        finally:
            change.execution_time_ms = (time.time() - start_time) * 1000

        change.executed = True
        logger.debug(
            f"Executed {change.change_id} ({change.execution_time_ms:.1f}ms)"
        )
        return change
