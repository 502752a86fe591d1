"""
Application metadata package for rogue-audit.

This package provides:
- Module registry and entity metadata interfaces
- Manifest-backed implementations
- Provider factory driven by configuration
"""

from .base import EntityMetadataProvider, FieldStorageDefinition, ModuleRegistry
from .static import StaticEntityMetadataProvider, StaticModuleRegistry, load_manifest
from .factory import MetadataProviderFactory

__all__ = [
    "EntityMetadataProvider",
    "FieldStorageDefinition",
    "ModuleRegistry",
    "StaticEntityMetadataProvider",
    "StaticModuleRegistry",
    "load_manifest",
    "MetadataProviderFactory",
]
