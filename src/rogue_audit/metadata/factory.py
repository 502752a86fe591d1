"""
Metadata provider factory for creating providers based on configuration.
"""

from typing import Callable, Dict
import logging

from .base import EntityMetadataProvider, ModuleRegistry
from .static import StaticEntityMetadataProvider, StaticModuleRegistry
from ..config import EntitySourceConfig, ModuleSourceConfig
from ..exceptions import ValidationError


logger = logging.getLogger(__name__)


class MetadataProviderFactory:
    """Factory for module registries and entity metadata providers."""

    _MODULE_REGISTRY: Dict[str, Callable[[ModuleSourceConfig], ModuleRegistry]] = {
        "static": lambda config: StaticModuleRegistry(config.modules),
        "file": lambda config: StaticModuleRegistry.from_manifest(config.path),
    }

    _ENTITY_REGISTRY: Dict[str, Callable[[EntitySourceConfig], EntityMetadataProvider]] = {
        "static": lambda config: StaticEntityMetadataProvider(config.entity_types),
        "file": lambda config: StaticEntityMetadataProvider.from_manifest(config.path),
    }

    @classmethod
    def create_module_registry(cls, config: ModuleSourceConfig) -> ModuleRegistry:
        """
        Create a module registry for the configured provider.

        Raises:
            ValidationError: If the provider is not supported
            ConfigurationError: If the provider's manifest cannot be loaded
        """
        provider = config.provider.lower()
        if provider not in cls._MODULE_REGISTRY:
            raise ValidationError(
                f"Unsupported module provider: {provider}. "
                f"Available providers: {list(cls._MODULE_REGISTRY)}"
            )

        logger.debug(f"Creating module registry with provider '{provider}'")
        return cls._MODULE_REGISTRY[provider](config)

    @classmethod
    def create_entity_metadata(cls, config: EntitySourceConfig) -> EntityMetadataProvider:
        """
        Create an entity metadata provider for the configured provider.

        Raises:
            ValidationError: If the provider is not supported
            ConfigurationError: If the provider's manifest cannot be loaded
        """
        provider = config.provider.lower()
        if provider not in cls._ENTITY_REGISTRY:
            raise ValidationError(
                f"Unsupported entity metadata provider: {provider}. "
                f"Available providers: {list(cls._ENTITY_REGISTRY)}"
            )

        logger.debug(f"Creating entity metadata provider with provider '{provider}'")
        return cls._ENTITY_REGISTRY[provider](config)
