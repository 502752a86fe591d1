"""
Configuration system for rogue-audit using Pydantic.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union
from urllib.parse import quote

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .database.connection import ConnectionConfig
from .exceptions import ConfigurationError


class DatabaseConnection(BaseModel):
    """Database connection configuration."""

    url: Optional[str] = Field(None, description="PostgreSQL connection URL")
    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: Optional[str] = Field(None, description="Database name")
    user: str = Field("", description="Database user")
    password: str = Field("", description="Database password")
    ssl_mode: str = Field("prefer", description="SSL mode")
    connect_timeout: int = Field(30, description="Connection timeout in seconds")
    command_timeout: int = Field(60, description="Command timeout in seconds")
    schema_name: str = Field("public", description="Schema to audit")

    @model_validator(mode="after")
    def check_target(self) -> "DatabaseConnection":
        if not self.url and not self.database:
            raise ValueError("Either 'url' or 'database' must be set")
        return self

    def to_dsn(self) -> str:
        """Convert to PostgreSQL DSN string."""
        if self.url:
            return self.url
        return (
            f"postgresql://{quote(self.user, safe='')}:{quote(self.password, safe='')}"
            f"@{self.host}:{self.port}/"
            f"{self.database}?sslmode={self.ssl_mode}"
        )

    def to_connection_config(self) -> ConnectionConfig:
        """Build the pool configuration for this connection."""
        if self.url:
            config = ConnectionConfig.from_url(self.url)
            config.command_timeout = float(self.command_timeout)
            config.connect_timeout = float(self.connect_timeout)
            return config

        return ConnectionConfig(
            host=self.host,
            port=self.port,
            database=self.database,
            user=self.user,
            password=self.password,
            ssl_mode=self.ssl_mode,
            connect_timeout=float(self.connect_timeout),
            command_timeout=float(self.command_timeout),
        )


class FieldStorageEntry(BaseModel):
    """A field storage definition declared in a metadata manifest."""

    name: str = Field(..., description="Field machine name")
    sql_storable: bool = Field(
        True, description="Whether the field keeps values in dedicated SQL tables"
    )


class ModuleSourceConfig(BaseModel):
    """Where installed modules and their declared tables come from."""

    provider: Literal["static", "file"] = Field(
        "static", description="Module registry provider"
    )
    path: Optional[str] = Field(None, description="Manifest file for the 'file' provider")
    modules: Dict[str, List[str]] = Field(
        default_factory=dict, description="Module name to declared table names"
    )

    @model_validator(mode="after")
    def check_path(self) -> "ModuleSourceConfig":
        if self.provider == "file" and not self.path:
            raise ValueError("The 'file' module provider requires 'path'")
        return self


class EntitySourceConfig(BaseModel):
    """Where entity types and their field storage definitions come from."""

    provider: Literal["static", "file"] = Field(
        "static", description="Entity metadata provider"
    )
    path: Optional[str] = Field(None, description="Manifest file for the 'file' provider")
    # A null entry marks an entity type without field storage support.
    entity_types: Dict[str, Optional[List[Union[str, FieldStorageEntry]]]] = Field(
        default_factory=dict, description="Entity type to field storage definitions"
    )

    @model_validator(mode="after")
    def check_path(self) -> "EntitySourceConfig":
        if self.provider == "file" and not self.path:
            raise ValueError("The 'file' entity provider requires 'path'")
        return self


class CleanDefaults(BaseModel):
    """Defaults applied to every clean run."""

    ignore: List[str] = Field(
        default_factory=list,
        description="Table patterns never dropped, in addition to --ignore",
    )

    @field_validator("ignore")
    @classmethod
    def strip_patterns(cls, v: List[str]) -> List[str]:
        return [p.strip() for p in v if p and p.strip()]


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "WARNING", description="Log level"
    )
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format for the log file",
    )
    file: Optional[str] = Field(None, description="Log file path")
    max_size: int = Field(10485760, description="Max log file size in bytes")  # 10MB
    backup_count: int = Field(5, description="Number of backup log files")


class RogueAuditConfig(BaseSettings):
    """Main rogue-audit configuration."""

    debug: bool = Field(False, description="Enable debug mode")

    database: Optional[DatabaseConnection] = Field(
        None, description="Database to audit"
    )
    modules: ModuleSourceConfig = Field(
        default_factory=ModuleSourceConfig, description="Module registry source"
    )
    entities: EntitySourceConfig = Field(
        default_factory=EntitySourceConfig, description="Entity metadata source"
    )
    clean: CleanDefaults = Field(
        default_factory=CleanDefaults, description="Clean defaults"
    )

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ROGUE_AUDIT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "RogueAuditConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            # Expand environment variables in the data
            data = cls._expand_env_vars(data)

            return cls(**data)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """Recursively expand environment variables in configuration data."""
        if isinstance(data, dict):
            return {k: cls._expand_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._expand_env_vars(item) for item in data]
        elif isinstance(data, str):
            return os.path.expandvars(data)
        else:
            return data

    def get_database(self) -> DatabaseConnection:
        """Get the database connection configuration."""
        if self.database is None:
            raise ConfigurationError("No database configured")
        return self.database

    def validate_config(self) -> None:
        """Validate the entire configuration for consistency."""
        self.get_database()

        for label, source in (("modules", self.modules), ("entities", self.entities)):
            if source.provider == "file" and not Path(source.path).is_file():
                raise ConfigurationError(
                    f"Manifest for {label} not found: {source.path}"
                )

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )
