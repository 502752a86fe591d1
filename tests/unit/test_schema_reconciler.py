"""
Tests for rogue_audit.schema.reconciler module.
"""

from unittest.mock import AsyncMock

import pytest

from rogue_audit.database.introspection import SchemaIntrospector
from rogue_audit.exceptions import MetadataUnavailableError, SchemaError
from rogue_audit.metadata.base import EntityMetadataProvider, FieldStorageDefinition
from rogue_audit.metadata.static import StaticEntityMetadataProvider, StaticModuleRegistry
from rogue_audit.schema.reconciler import (
    Candidate,
    ReasonCode,
    RogueReconciler,
    classify,
    field_table_names,
    summarize,
)


def make_reconciler(tables, owned, expected_fields):
    """Reconciler over plain sets; expected_fields maps entity type to fields."""
    introspector = AsyncMock(spec=SchemaIntrospector)
    introspector.list_tables.return_value = list(tables)
    return RogueReconciler(
        introspector,
        StaticModuleRegistry({"app": owned}),
        StaticEntityMetadataProvider(expected_fields),
    )


class TestReasonCode:
    """Test ReasonCode enum."""

    def test_reason_code_values(self):
        assert ReasonCode.ORPHAN_FIELD_STORAGE == "orphan_field_storage"
        assert ReasonCode.UNDECLARED_BY_MODULE == "undeclared_by_module"
        assert ReasonCode.LEGACY_DELETED_FIELD_LEFTOVER == "legacy_deleted_field_leftover"

    def test_every_reason_has_description(self):
        for reason in ReasonCode:
            assert reason.description

    def test_candidate_description(self):
        candidate = Candidate("custom_table", ReasonCode.UNDECLARED_BY_MODULE)
        assert candidate.description == "Not declared by any installed module schema"


class TestFieldTableNames:
    """Test field storage table naming."""

    def test_current_and_revision_names(self):
        assert field_table_names("node", "body") == ["node__body", "node_revision__body"]


class TestClassify:
    """Test per-table classification rules."""

    def test_orphan_field_storage(self):
        candidate = classify("node__field_old", owned=set(), expected_field={"node__body"})
        assert candidate == Candidate("node__field_old", ReasonCode.ORPHAN_FIELD_STORAGE)

    def test_expected_field_table_is_clean(self):
        assert classify("node__body", owned=set(), expected_field={"node__body"}) is None

    def test_field_style_table_ignores_module_ownership(self):
        # Declared by a module but not expected as field storage
        candidate = classify("node__body", owned={"node__body"}, expected_field=set())
        assert candidate.reason == ReasonCode.ORPHAN_FIELD_STORAGE

    def test_undeclared_by_module(self):
        candidate = classify("custom_table", owned={"node"}, expected_field=set())
        assert candidate == Candidate("custom_table", ReasonCode.UNDECLARED_BY_MODULE)

    def test_owned_table_is_clean(self):
        assert classify("node", owned={"node"}, expected_field=set()) is None

    def test_undeclared_takes_priority_over_legacy_leftover(self):
        candidate = classify("field_deleted_legacy", owned=set(), expected_field=set())
        assert candidate.reason == ReasonCode.UNDECLARED_BY_MODULE

    def test_orphan_takes_priority_over_legacy_leftover(self):
        candidate = classify("field_deleted_foo__bar", owned=set(), expected_field=set())
        assert candidate.reason == ReasonCode.ORPHAN_FIELD_STORAGE

    def test_legacy_leftover_when_owned(self):
        candidate = classify(
            "field_deleted_data_1", owned={"field_deleted_data_1"}, expected_field=set()
        )
        assert candidate.reason == ReasonCode.LEGACY_DELETED_FIELD_LEFTOVER

    def test_legacy_leftover_when_expected_field_table(self):
        candidate = classify(
            "field_deleted_x__y", owned=set(), expected_field={"field_deleted_x__y"}
        )
        assert candidate.reason == ReasonCode.LEGACY_DELETED_FIELD_LEFTOVER

    def test_heuristics_are_case_sensitive(self):
        candidate = classify(
            "Field_Deleted_data", owned={"Field_Deleted_data"}, expected_field=set()
        )
        assert candidate is None


class TestSummarize:
    """Test scan summaries."""

    def test_counts_by_reason(self):
        summary = summarize([
            Candidate("a__b", ReasonCode.ORPHAN_FIELD_STORAGE),
            Candidate("c", ReasonCode.UNDECLARED_BY_MODULE),
            Candidate("d", ReasonCode.UNDECLARED_BY_MODULE),
        ])

        assert summary["total"] == 3
        assert summary["by_reason"] == {
            "orphan_field_storage": 1,
            "undeclared_by_module": 2,
            "legacy_deleted_field_leftover": 0,
        }

    def test_empty(self):
        assert summarize([])["total"] == 0


class TestRogueReconciler:
    """Test RogueReconciler class."""

    @pytest.mark.asyncio
    async def test_module_owned_tables(self, reconciler):
        owned = await reconciler.module_owned_tables()
        assert owned == {"node", "node_revision", "users", "sequences"}

    @pytest.mark.asyncio
    async def test_expected_field_tables(self, reconciler):
        expected = await reconciler.expected_field_tables()
        assert expected == {
            "node__body",
            "node_revision__body",
            "user__user_picture",
            "user_revision__user_picture",
        }

    @pytest.mark.asyncio
    async def test_non_sql_storable_fields_excluded(self, reconciler):
        expected = await reconciler.expected_field_tables()
        assert "node__computed_score" not in expected

    @pytest.mark.asyncio
    async def test_find_rogues(self, reconciler, mock_introspector):
        candidates = await reconciler.find_rogues()

        assert candidates == [
            Candidate("node__field_old", ReasonCode.ORPHAN_FIELD_STORAGE),
            Candidate("custom_table", ReasonCode.UNDECLARED_BY_MODULE),
            Candidate("field_deleted_data_12", ReasonCode.UNDECLARED_BY_MODULE),
            Candidate("cache_render", ReasonCode.UNDECLARED_BY_MODULE),
        ]
        mock_introspector.list_tables.assert_awaited_once_with("public")

    @pytest.mark.asyncio
    async def test_unowned_leftover_reported_as_undeclared(self):
        reconciler = make_reconciler(
            tables=["node", "node__field_a", "field_deleted_legacy", "custom_table"],
            owned=["node", "custom_table"],
            expected_fields={"node": ["field_a"]},
        )

        candidates = await reconciler.find_rogues()

        assert candidates == [
            Candidate("field_deleted_legacy", ReasonCode.UNDECLARED_BY_MODULE)
        ]

    @pytest.mark.asyncio
    async def test_order_follows_store(self):
        reconciler = make_reconciler(
            tables=["zeta", "alpha", "mid__x"], owned=[], expected_fields={}
        )

        candidates = await reconciler.find_rogues()

        assert [c.table for c in candidates] == ["zeta", "alpha", "mid__x"]

    @pytest.mark.asyncio
    async def test_at_most_one_candidate_per_table(self, reconciler):
        candidates = await reconciler.find_rogues()
        tables = [c.table for c in candidates]
        assert len(tables) == len(set(tables))

    @pytest.mark.asyncio
    async def test_candidates_exist_in_schema(self, reconciler, actual_tables):
        candidates = await reconciler.find_rogues()
        assert all(c.table in actual_tables for c in candidates)

    @pytest.mark.asyncio
    async def test_empty_schema(self):
        reconciler = make_reconciler(tables=[], owned=["node"], expected_fields={})
        assert await reconciler.find_rogues() == []

    @pytest.mark.asyncio
    async def test_unavailable_entity_type_skipped(self):
        reconciler = make_reconciler(
            tables=["node__body", "path_alias__x"],
            owned=[],
            expected_fields={"node": ["body"], "path_alias": None},
        )

        candidates = await reconciler.find_rogues()

        assert candidates == [Candidate("path_alias__x", ReasonCode.ORPHAN_FIELD_STORAGE)]

    @pytest.mark.asyncio
    async def test_failing_entity_type_does_not_abort_scan(self):
        entity_metadata = AsyncMock(spec=EntityMetadataProvider)
        entity_metadata.list_entity_types.return_value = ["broken", "node"]

        async def definitions(entity_type):
            if entity_type == "broken":
                raise RuntimeError("storage handler missing")
            return [FieldStorageDefinition("body")]

        entity_metadata.get_field_storage_definitions.side_effect = definitions
        introspector = AsyncMock(spec=SchemaIntrospector)
        introspector.list_tables.return_value = ["node__body", "broken__x"]
        reconciler = RogueReconciler(
            introspector, StaticModuleRegistry({}), entity_metadata
        )

        candidates = await reconciler.find_rogues()

        assert candidates == [Candidate("broken__x", ReasonCode.ORPHAN_FIELD_STORAGE)]

    @pytest.mark.asyncio
    async def test_metadata_unavailable_is_skipped(self):
        entity_metadata = AsyncMock(spec=EntityMetadataProvider)
        entity_metadata.list_entity_types.return_value = ["config"]
        entity_metadata.get_field_storage_definitions.side_effect = (
            MetadataUnavailableError("config")
        )
        reconciler = RogueReconciler(
            AsyncMock(spec=SchemaIntrospector), StaticModuleRegistry({}), entity_metadata
        )

        assert await reconciler.expected_field_tables() == set()

    @pytest.mark.asyncio
    async def test_table_listing_failure_propagates(self, reconciler, mock_introspector):
        mock_introspector.list_tables.side_effect = SchemaError("Failed to list tables")

        with pytest.raises(SchemaError):
            await reconciler.find_rogues()

    @pytest.mark.asyncio
    async def test_every_scan_reads_live_state(self, reconciler, mock_introspector):
        await reconciler.find_rogues()
        mock_introspector.list_tables.return_value = ["node"]

        candidates = await reconciler.find_rogues()

        assert candidates == []
        assert mock_introspector.list_tables.await_count == 2

    @pytest.mark.asyncio
    async def test_custom_schema(self, mock_introspector, module_tables):
        reconciler = RogueReconciler(
            mock_introspector,
            StaticModuleRegistry(module_tables),
            StaticEntityMetadataProvider({}),
            schema="drupal",
        )

        await reconciler.find_rogues()

        mock_introspector.list_tables.assert_awaited_once_with("drupal")
