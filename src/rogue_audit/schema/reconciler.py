"""
Rogue table reconciliation for rogue-audit.

Reconciles the tables that exist in the live schema against the tables
declared by installed modules and the field storage tables expected from
entity metadata, and classifies every unaccounted table.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set
from enum import Enum

from ..database.introspection import SchemaIntrospector
from ..exceptions import MetadataUnavailableError
from ..metadata.base import EntityMetadataProvider, ModuleRegistry


logger = logging.getLogger(__name__)

FIELD_TABLE_SEPARATOR = "__"
LEGACY_LEFTOVER_PREFIX = "field_deleted_"


class ReasonCode(str, Enum):
    """Why a table was flagged."""

    ORPHAN_FIELD_STORAGE = "orphan_field_storage"
    UNDECLARED_BY_MODULE = "undeclared_by_module"
    LEGACY_DELETED_FIELD_LEFTOVER = "legacy_deleted_field_leftover"

    @property
    def description(self) -> str:
        return _REASON_DESCRIPTIONS[self]


_REASON_DESCRIPTIONS = {
    ReasonCode.ORPHAN_FIELD_STORAGE: "Orphan field storage (no matching field storage definition)",
    ReasonCode.UNDECLARED_BY_MODULE: "Not declared by any installed module schema",
    ReasonCode.LEGACY_DELETED_FIELD_LEFTOVER: "Legacy field_deleted_* leftover",
}


@dataclass(frozen=True)
class Candidate:
    """A table suspected to be rogue."""

    table: str
    reason: ReasonCode

    @property
    def description(self) -> str:
        """Human-readable reason."""
        return self.reason.description


def field_table_names(entity_type: str, field: str) -> List[str]:
    """Current and revision table names for one field of an entity type."""
    return [
        f"{entity_type}{FIELD_TABLE_SEPARATOR}{field}",
        f"{entity_type}_revision{FIELD_TABLE_SEPARATOR}{field}",
    ]


def classify(table: str, owned: Set[str], expected_field: Set[str]) -> Optional[Candidate]:
    """
    Classify one table against the owned and expected field table sets.

    Rules are evaluated in order and the first match wins:

    1. a field-style name (contains ``__``) with no matching field storage
       definition is orphan field storage;
    2. a non field-style name not declared by any module is undeclared;
    3. a ``field_deleted_`` name reaching this point is a legacy leftover.

    Rule 2 shadows rule 3 for every non field-style leftover that no module
    declares, so such tables are reported as undeclared.
    """
    is_field_style = FIELD_TABLE_SEPARATOR in table
    is_legacy_leftover = table.startswith(LEGACY_LEFTOVER_PREFIX)

    if is_field_style and table not in expected_field:
        return Candidate(table, ReasonCode.ORPHAN_FIELD_STORAGE)
    if table not in owned and not is_field_style:
        return Candidate(table, ReasonCode.UNDECLARED_BY_MODULE)
    if is_legacy_leftover:
        return Candidate(table, ReasonCode.LEGACY_DELETED_FIELD_LEFTOVER)
    return None


def summarize(candidates: List[Candidate]) -> Dict[str, Any]:
    """Get a summary of scan results."""
    counts = Counter(c.reason for c in candidates)
    return {
        "total": len(candidates),
        "by_reason": {reason.value: counts.get(reason, 0) for reason in ReasonCode},
    }


class RogueReconciler:
    """
    Finds rogue tables in a schema.

    Every call re-reads the live table list and both metadata sources;
    nothing is cached between scans.
    """

    def __init__(
        self,
        introspector: SchemaIntrospector,
        module_registry: ModuleRegistry,
        entity_metadata: EntityMetadataProvider,
        schema: str = "public",
    ):
        self.introspector = introspector
        self.module_registry = module_registry
        self.entity_metadata = entity_metadata
        self.schema = schema

    async def list_actual_tables(self) -> List[str]:
        """Tables currently present in the schema, in store order."""
        return await self.introspector.list_tables(self.schema)

    async def module_owned_tables(self) -> Set[str]:
        """Tables declared by installed modules."""
        owned: Set[str] = set()
        for module in await self.module_registry.list_modules():
            owned.update(await self.module_registry.get_declared_schema(module))
        return owned

    async def expected_field_tables(self) -> Set[str]:
        """Tables expected from SQL-storable field storage definitions."""
        expected: Set[str] = set()
        for entity_type in await self.entity_metadata.list_entity_types():
            try:
                definitions = await self.entity_metadata.get_field_storage_definitions(
                    entity_type
                )
            except MetadataUnavailableError as e:
                # Some entity types have no field storage at all
                logger.debug(f"Skipping entity type {entity_type}: {e}")
                continue
            except Exception as e:
                logger.warning(
                    f"Field storage lookup failed for entity type {entity_type}, skipping: {e}"
                )
                continue

            for definition in definitions:
                if not definition.sql_storable:
                    continue
                expected.update(field_table_names(entity_type, definition.name))
        return expected

    async def find_rogues(self) -> List[Candidate]:
        """
        Compute rogue table candidates.

        Returns:
            Candidates in the order the store listed the tables, at most
            one per table
        """
        tables = await self.list_actual_tables()
        owned = await self.module_owned_tables()
        expected_field = await self.expected_field_tables()

        logger.info(
            f"Scanning {len(tables)} tables in schema {self.schema} "
            f"({len(owned)} module tables, {len(expected_field)} field tables expected)"
        )

        candidates: List[Candidate] = []
        for table in tables:
            candidate = classify(table, owned, expected_field)
            if candidate is not None:
                candidates.append(candidate)

        logger.info(f"Found {len(candidates)} rogue table candidates")
        return candidates
