"""
Configuration management for CosmoStart.

Handles loading, validation, and access to configuration settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator, ValidationError, ConfigDict

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackendType(str, Enum):
    """Supported document store backends."""
    COSMOS = "cosmos"
    MEMORY = "memory"


class ConnectionConfig(BaseModel):
    """
    Document store connection settings.

    ``EndPointUri`` and ``PrimaryKey`` are accepted as aliases so existing
    app settings files can be reused.
    """
    backend: StoreBackendType = StoreBackendType.COSMOS
    endpoint_uri: Optional[str] = Field(default=None, alias="EndPointUri")
    primary_key: Optional[str] = Field(default=None, alias="PrimaryKey")
    application_name: str = "CosmosDBPythonQuickstart"
    snapshot_path: Optional[str] = Field(
        default=None,
        description="JSON snapshot file for the memory backend"
    )

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    @model_validator(mode="after")
    def require_credentials(self) -> "ConnectionConfig":
        """Fail fast when the Cosmos backend has no endpoint or key."""
        if self.backend == StoreBackendType.COSMOS.value:
            missing = [
                name for name, value in (
                    ("endpoint_uri", self.endpoint_uri),
                    ("primary_key", self.primary_key),
                )
                if not value
            ]
            if missing:
                raise ValueError(
                    f"The cosmos backend requires {', '.join(missing)}; "
                    f"set COSMOSTART_ENDPOINT_URI / COSMOSTART_PRIMARY_KEY or use the memory backend"
                )
        return self


class WorkflowConfig(BaseModel):
    """Resources and sample values used by the getting-started workflow."""
    database_id: str = "db"
    container_id: str = "items"
    partition_key_path: str = "/LastName"
    initial_throughput: int = Field(default=400, ge=400)
    throughput_increment: int = Field(default=100, ge=0)
    query_last_name: str = "Andersen"
    delete_database: bool = Field(
        default=True,
        description="Delete the database at the end of the run"
    )
    max_item_count: Optional[int] = Field(
        default=None,
        gt=0,
        description="Page size for queries (store default if unset)"
    )

    @field_validator("partition_key_path")
    @classmethod
    def validate_partition_key_path(cls, v: str) -> str:
        """Validate partition key path."""
        if not v.startswith("/") or len(v) < 2:
            raise ValueError(f"Partition key path must start with '/': {v}")
        if "/" in v[1:]:
            raise ValueError(f"Nested partition key paths are not supported: {v}")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'cosmostart.store': 'DEBUG'}"
    )

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ("text", "json"):
            raise ValueError("Log format must be 'text' or 'json'")
        return v


class CosmoStartConfig(BaseModel):
    """Main CosmoStart configuration schema."""

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)

    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(use_enum_values=True)

    def redacted(self) -> Dict[str, Any]:
        """Configuration as a dict with the account key hidden."""
        config_dict = self.model_dump(mode="json")
        if config_dict["connection"].get("primary_key"):
            config_dict["connection"]["primary_key"] = "***REDACTED***"
        return config_dict


class ConfigManager:
    """
    Manages CosmoStart configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables (COSMOSTART_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    APP_SETTING_ALIASES = {
        "EndPointUri": "endpoint_uri",
        "PrimaryKey": "primary_key",
    }

    def __init__(self):
        self._config: Optional[CosmoStartConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> CosmoStartConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Dictionary of CLI argument overrides

        Returns:
            Validated CosmoStartConfig instance

        Raises:
            ValidationError: If configuration is invalid, including a cosmos
                backend without endpoint or key
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading CosmoStart configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            logger.info(f"Applied {len(cli_overrides)} CLI argument overrides")

        config_dict.setdefault("connection", {})

        try:
            self._config = CosmoStartConfig(**config_dict)
            logger.info("Configuration validated successfully")
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                data = yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

        return self._normalize_app_settings(data)

    def _normalize_app_settings(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Map ``EndPointUri`` / ``PrimaryKey`` app settings onto connection fields."""
        data = dict(data)
        connection = dict(data.get("connection") or {})

        for alias, field_name in self.APP_SETTING_ALIASES.items():
            if alias in data:
                connection[field_name] = data.pop(alias)
            if alias in connection:
                connection[field_name] = connection.pop(alias)

        if connection:
            data["connection"] = connection
        return data

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        # Connection configuration
        if backend := os.getenv("COSMOSTART_BACKEND"):
            config.setdefault("connection", {})["backend"] = backend.lower()
        if endpoint := os.getenv("COSMOSTART_ENDPOINT_URI"):
            config.setdefault("connection", {})["endpoint_uri"] = endpoint
        if key := os.getenv("COSMOSTART_PRIMARY_KEY"):
            config.setdefault("connection", {})["primary_key"] = key
        if snapshot := os.getenv("COSMOSTART_SNAPSHOT_PATH"):
            config.setdefault("connection", {})["snapshot_path"] = snapshot

        # Workflow configuration
        if database_id := os.getenv("COSMOSTART_DATABASE_ID"):
            config.setdefault("workflow", {})["database_id"] = database_id
        if container_id := os.getenv("COSMOSTART_CONTAINER_ID"):
            config.setdefault("workflow", {})["container_id"] = container_id

        # Logging configuration
        if log_level := os.getenv("COSMOSTART_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_format := os.getenv("COSMOSTART_LOG_FORMAT"):
            config.setdefault("logging", {})["format"] = log_format.lower()

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration (with sensitive data redacted)."""
        if not self._config:
            return

        logger.info(f"Active configuration: {json.dumps(self._config.redacted(), indent=2)}")

    def get_config(self) -> CosmoStartConfig:
        """
        Get the loaded configuration.

        Returns:
            CosmoStartConfig instance

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> CosmoStartConfig:
        """
        Reload configuration from the same sources.

        Returns:
            Reloaded CosmoStartConfig instance
        """
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
