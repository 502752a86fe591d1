"""
Manifest-backed metadata providers.

The manifest is either inlined in the rogue-audit configuration or kept in
a separate YAML file exported by the host application::

    modules:
      system: [sessions, key_value]
      node: [node, node_revision, node_field_data]
    entity_types:
      node: [body, field_tags]
      user:
        - name: user_picture
        - name: computed_badge
          sql_storable: false
      path_alias: null
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Union

import yaml
from pydantic import TypeAdapter, ValidationError

from .base import EntityMetadataProvider, FieldStorageDefinition, ModuleRegistry
from ..config import FieldStorageEntry
from ..exceptions import ConfigurationError, MetadataUnavailableError


logger = logging.getLogger(__name__)

_ModulesAdapter = TypeAdapter(Dict[str, List[str]])
_EntityTypesAdapter = TypeAdapter(
    Dict[str, Optional[List[Union[str, FieldStorageEntry]]]]
)


def load_manifest(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML metadata manifest."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigurationError(f"Metadata manifest not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in metadata manifest: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Metadata manifest must be a mapping: {path}")
    return data


class StaticModuleRegistry(ModuleRegistry):
    """Module registry over a fixed module to tables mapping."""

    def __init__(self, modules: Mapping[str, Iterable[str]]):
        self._modules = {name: set(tables or ()) for name, tables in modules.items()}

    @classmethod
    def from_manifest(cls, path: Union[str, Path]) -> "StaticModuleRegistry":
        data = load_manifest(path)
        try:
            modules = _ModulesAdapter.validate_python(data.get("modules") or {})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid 'modules' in {path}: {e}")
        return cls(modules)

    async def list_modules(self) -> List[str]:
        return list(self._modules)

    async def get_declared_schema(self, module: str) -> Set[str]:
        return set(self._modules.get(module, ()))


class StaticEntityMetadataProvider(EntityMetadataProvider):
    """Entity metadata over a fixed entity type to fields mapping."""

    def __init__(
        self,
        entity_types: Mapping[str, Optional[Iterable[Union[str, FieldStorageEntry]]]],
    ):
        self._entity_types: Dict[str, Optional[List[FieldStorageDefinition]]] = {}
        for entity_type, fields in entity_types.items():
            if fields is None:
                self._entity_types[entity_type] = None
                continue
            self._entity_types[entity_type] = [
                self._to_definition(field) for field in fields
            ]

    @staticmethod
    def _to_definition(field: Union[str, FieldStorageEntry]) -> FieldStorageDefinition:
        if isinstance(field, str):
            return FieldStorageDefinition(name=field)
        return FieldStorageDefinition(name=field.name, sql_storable=field.sql_storable)

    @classmethod
    def from_manifest(cls, path: Union[str, Path]) -> "StaticEntityMetadataProvider":
        data = load_manifest(path)
        try:
            entity_types = _EntityTypesAdapter.validate_python(
                data.get("entity_types") or {}
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid 'entity_types' in {path}: {e}")
        return cls(entity_types)

    async def list_entity_types(self) -> List[str]:
        return list(self._entity_types)

    async def get_field_storage_definitions(
        self, entity_type: str
    ) -> List[FieldStorageDefinition]:
        if entity_type not in self._entity_types:
            raise MetadataUnavailableError(entity_type, "unknown entity type")

        definitions = self._entity_types[entity_type]
        if definitions is None:
            raise MetadataUnavailableError(entity_type, "no field storage support")
        return list(definitions)
