"""
Pytest configuration and shared fixtures for rogue-audit tests.

This module provides shared fixtures and utilities for testing all rogue-audit components.
"""

import os
import tempfile
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml

from rogue_audit.config import EntitySourceConfig
from rogue_audit.database.connection import ConnectionPool
from rogue_audit.database.introspection import SchemaIntrospector
from rogue_audit.metadata.static import StaticEntityMetadataProvider, StaticModuleRegistry
from rogue_audit.schema.operations import ChangeType, SchemaChange
from rogue_audit.schema.reconciler import RogueReconciler


# ============================================================================
# Schema Fixtures
# ============================================================================

@pytest.fixture
def actual_tables() -> List[str]:
    """Tables present in the live schema, in store order."""
    return [
        "node",
        "node__body",
        "node_revision__body",
        "node__field_old",
        "users",
        "custom_table",
        "field_deleted_data_12",
        "cache_render",
    ]


@pytest.fixture
def module_tables() -> Dict[str, List[str]]:
    """Tables declared by installed modules."""
    return {
        "node": ["node", "node_revision"],
        "user": ["users"],
        "system": ["sequences"],
    }


@pytest.fixture
def entity_fields() -> Dict[str, Any]:
    """Field storage definitions per entity type."""
    return {
        "node": ["body", {"name": "computed_score", "sql_storable": False}],
        "user": ["user_picture"],
        "path_alias": None,
    }


@pytest.fixture
def mock_pool():
    """Mock connection pool."""
    return MagicMock(spec=ConnectionPool)


@pytest.fixture
def mock_introspector(actual_tables):
    """Introspector returning the fixture table list."""
    introspector = AsyncMock(spec=SchemaIntrospector)
    introspector.list_tables.return_value = list(actual_tables)
    return introspector


@pytest.fixture
def reconciler(mock_introspector, module_tables, entity_fields) -> RogueReconciler:
    """Reconciler wired to the fixture schema and manifests."""
    entities = EntitySourceConfig(entity_types=entity_fields)
    return RogueReconciler(
        mock_introspector,
        StaticModuleRegistry(module_tables),
        StaticEntityMetadataProvider(entities.entity_types),
    )


@pytest.fixture
def make_drop_change():
    """Factory for the SchemaChange a drop returns."""
    def _make(table: str, skipped: bool = False, schema: str = "public") -> SchemaChange:
        return SchemaChange(
            change_type=ChangeType.DROP_TABLE,
            schema=schema,
            table=table,
            description=f"Drop table {schema}.{table}",
            sql=f'DROP TABLE "{schema}"."{table}"',
            executed=not skipped,
            skipped=skipped,
        )
    return _make


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config_data(module_tables, entity_fields) -> Dict[str, Any]:
    """Complete rogue-audit configuration data."""
    return {
        "database": {
            "host": "localhost",
            "port": 5432,
            "database": "app",
            "user": "auditor",
            "password": "secret",
            "schema_name": "public",
        },
        "modules": {"provider": "static", "modules": module_tables},
        "entities": {"provider": "static", "entity_types": entity_fields},
        "clean": {"ignore": ["cache_*"]},
    }


@pytest.fixture
def temp_config_file(sample_config_data):
    """Temporary configuration file."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.safe_dump(sample_config_data, f)
    yield f.name
    os.unlink(f.name)


@pytest.fixture
def temp_manifest_file(module_tables, entity_fields):
    """Temporary metadata manifest holding modules and entity types."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.safe_dump({"modules": module_tables, "entity_types": entity_fields}, f)
    yield f.name
    os.unlink(f.name)
