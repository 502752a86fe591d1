"""
Abstract interfaces for application metadata sources.

The reconciler needs two views of the host application: which tables its
installed modules declare, and which field storage definitions exist per
entity type. Implementations are injected into the reconciler.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Set


@dataclass(frozen=True)
class FieldStorageDefinition:
    """A field storage definition of one entity type."""

    name: str
    sql_storable: bool = True


class ModuleRegistry(ABC):
    """Installed modules and their statically declared tables."""

    @abstractmethod
    async def list_modules(self) -> List[str]:
        """List installed module names."""

    @abstractmethod
    async def get_declared_schema(self, module: str) -> Set[str]:
        """Table names declared by a module's schema definition."""


class EntityMetadataProvider(ABC):
    """Entity types and their field storage definitions."""

    @abstractmethod
    async def list_entity_types(self) -> List[str]:
        """List known entity type ids."""

    @abstractmethod
    async def get_field_storage_definitions(
        self, entity_type: str
    ) -> List[FieldStorageDefinition]:
        """
        Field storage definitions for an entity type.

        Raises:
            MetadataUnavailableError: If the entity type has no field storage
        """
