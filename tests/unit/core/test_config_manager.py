"""
Tests for ConfigManager.
"""

import os
import json
import tempfile

import pytest
import yaml
from pydantic import ValidationError

from cosmostart.core.config_manager import (
    ConfigManager,
    ConnectionConfig,
    CosmoStartConfig,
    LogLevel,
    StoreBackendType,
    WorkflowConfig,
)


ENV_VARS = [
    "COSMOSTART_ENDPOINT_URI",
    "COSMOSTART_PRIMARY_KEY",
    "COSMOSTART_BACKEND",
    "COSMOSTART_SNAPSHOT_PATH",
    "COSMOSTART_DATABASE_ID",
    "COSMOSTART_CONTAINER_ID",
    "COSMOSTART_LOG_LEVEL",
    "COSMOSTART_LOG_FORMAT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Run every test without COSMOSTART_* variables from the outer environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestConfigManager:
    """Test suite for ConfigManager."""

    def test_load_defaults(self):
        """Test default values once a backend that needs no credentials is chosen."""
        config = ConfigManager().load(cli_overrides={"connection": {"backend": "memory"}})

        assert config.connection.backend == StoreBackendType.MEMORY
        assert config.connection.application_name == "CosmosDBPythonQuickstart"
        assert config.workflow.database_id == "db"
        assert config.workflow.container_id == "items"
        assert config.workflow.partition_key_path == "/LastName"
        assert config.workflow.initial_throughput == 400
        assert config.workflow.throughput_increment == 100
        assert config.workflow.query_last_name == "Andersen"
        assert config.workflow.delete_database is True
        assert config.logging.level == LogLevel.INFO

    def test_default_backend_is_cosmos(self):
        """Test that no backend and no credentials fails instead of picking memory."""
        with pytest.raises(ValidationError) as exc_info:
            ConfigManager().load()

        assert "endpoint_uri" in str(exc_info.value)

    def test_misnamed_env_variable_fails_fast(self, monkeypatch):
        """Test that a misspelled endpoint variable is not silently ignored."""
        monkeypatch.setenv("COSMOSTART_ENDPOINT", "https://acct.documents.azure.com:443/")
        monkeypatch.setenv("COSMOSTART_PRIMARY_KEY", "secret==")

        with pytest.raises(ValidationError) as exc_info:
            ConfigManager().load()

        assert "endpoint_uri" in str(exc_info.value)

    def test_load_from_yaml_file(self):
        """Test loading configuration from YAML file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            yaml.dump({
                "connection": {"backend": "memory"},
                "workflow": {"database_id": "familydb", "throughput_increment": 200},
                "logging": {"level": "DEBUG"}
            }, f)
            config_file = f.name

        try:
            config = ConfigManager().load(config_file=config_file)

            assert config.workflow.database_id == "familydb"
            assert config.workflow.throughput_increment == 200
            assert config.logging.level == LogLevel.DEBUG
        finally:
            os.unlink(config_file)

    def test_load_app_settings_json(self):
        """Test that EndPointUri / PrimaryKey app settings select the cosmos backend."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump({
                "EndPointUri": "https://acct.documents.azure.com:443/",
                "PrimaryKey": "secret=="
            }, f)
            config_file = f.name

        try:
            config = ConfigManager().load(config_file=config_file)

            assert config.connection.backend == StoreBackendType.COSMOS
            assert config.connection.endpoint_uri == "https://acct.documents.azure.com:443/"
            assert config.connection.primary_key == "secret=="
        finally:
            os.unlink(config_file)

    def test_load_from_env_variables(self):
        """Test loading configuration from environment variables."""
        os.environ["COSMOSTART_ENDPOINT_URI"] = "https://env.documents.azure.com:443/"
        os.environ["COSMOSTART_PRIMARY_KEY"] = "envkey"
        os.environ["COSMOSTART_DATABASE_ID"] = "envdb"
        os.environ["COSMOSTART_LOG_LEVEL"] = "warning"

        try:
            config = ConfigManager().load()

            assert config.connection.backend == StoreBackendType.COSMOS
            assert config.connection.endpoint_uri == "https://env.documents.azure.com:443/"
            assert config.workflow.database_id == "envdb"
            assert config.logging.level == LogLevel.WARNING
        finally:
            del os.environ["COSMOSTART_ENDPOINT_URI"]
            del os.environ["COSMOSTART_PRIMARY_KEY"]
            del os.environ["COSMOSTART_DATABASE_ID"]
            del os.environ["COSMOSTART_LOG_LEVEL"]

    def test_env_overrides_app_settings_file(self, tmp_path):
        """Test that environment variables win over file aliases."""
        config_file = tmp_path / "appsettings.json"
        config_file.write_text(json.dumps({
            "EndPointUri": "https://file.documents.azure.com:443/",
            "PrimaryKey": "filekey"
        }))
        os.environ["COSMOSTART_ENDPOINT_URI"] = "https://env.documents.azure.com:443/"

        try:
            config = ConfigManager().load(config_file=str(config_file))

            assert config.connection.endpoint_uri == "https://env.documents.azure.com:443/"
            assert config.connection.primary_key == "filekey"
        finally:
            del os.environ["COSMOSTART_ENDPOINT_URI"]

    def test_cli_overrides(self):
        """Test CLI argument overrides beat environment variables."""
        os.environ["COSMOSTART_CONTAINER_ID"] = "envitems"

        try:
            config = ConfigManager().load(cli_overrides={
                "connection": {"backend": "memory"},
                "workflow": {"container_id": "cliitems", "delete_database": False},
                "logging": {"level": "ERROR"}
            })

            assert config.workflow.container_id == "cliitems"
            assert config.workflow.delete_database is False
            assert config.logging.level == LogLevel.ERROR
        finally:
            del os.environ["COSMOSTART_CONTAINER_ID"]

    def test_cosmos_backend_requires_credentials(self):
        """Test fail-fast when the cosmos backend has no endpoint or key."""
        with pytest.raises(ValidationError) as exc_info:
            ConfigManager().load(cli_overrides={"connection": {"backend": "cosmos"}})

        assert "endpoint_uri" in str(exc_info.value)
        assert "primary_key" in str(exc_info.value)

    def test_cosmos_backend_requires_key(self):
        """Test fail-fast when only the endpoint is set."""
        with pytest.raises(ValidationError) as exc_info:
            ConfigManager().load(cli_overrides={
                "connection": {"endpoint_uri": "https://acct.documents.azure.com:443/"}
            })

        assert "primary_key" in str(exc_info.value)

    def test_explicit_memory_backend_ignores_credentials(self):
        """Test that an explicit memory backend does not need credentials."""
        os.environ["COSMOSTART_BACKEND"] = "MEMORY"
        os.environ["COSMOSTART_SNAPSHOT_PATH"] = "/tmp/cosmostart.json"

        try:
            config = ConfigManager().load()

            assert config.connection.backend == StoreBackendType.MEMORY
            assert config.connection.snapshot_path == "/tmp/cosmostart.json"
        finally:
            del os.environ["COSMOSTART_BACKEND"]
            del os.environ["COSMOSTART_SNAPSHOT_PATH"]

    def test_invalid_log_format(self):
        """Test validation of log format."""
        with pytest.raises(ValidationError):
            ConfigManager().load(cli_overrides={"connection": {"backend": "memory"}, "logging": {"format": "xml"}})

    def test_invalid_throughput(self):
        """Test that initial throughput below the minimum is rejected."""
        with pytest.raises(ValidationError):
            ConfigManager().load(cli_overrides={"connection": {"backend": "memory"}, "workflow": {"initial_throughput": 100}})

    def test_missing_config_file(self):
        """Test error when config file doesn't exist."""
        with pytest.raises(FileNotFoundError):
            ConfigManager().load(config_file="/nonexistent/config.yaml")

    def test_unsupported_config_format(self, tmp_path):
        """Test error for unsupported file extensions."""
        config_file = tmp_path / "config.toml"
        config_file.write_text("[workflow]")

        with pytest.raises(ValueError, match="Unsupported config file format"):
            ConfigManager().load(config_file=str(config_file))

    def test_get_config_before_load(self):
        """Test getting config before loading raises error."""
        with pytest.raises(RuntimeError, match="Configuration not loaded"):
            ConfigManager().get_config()

    def test_reload(self, tmp_path):
        """Test reloading configuration picks up file changes."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"connection": {"backend": "memory"}, "workflow": {"database_id": "first"}}))

        manager = ConfigManager()
        assert manager.load(config_file=str(config_file)).workflow.database_id == "first"

        config_file.write_text(yaml.dump({"connection": {"backend": "memory"}, "workflow": {"database_id": "second"}}))
        assert manager.reload().workflow.database_id == "second"
        assert manager.get_config().workflow.database_id == "second"


class TestConfigModels:
    """Test suite for configuration models."""

    def test_connection_aliases(self):
        """Test that app setting names populate connection fields."""
        connection = ConnectionConfig(
            EndPointUri="https://acct.documents.azure.com:443/",
            PrimaryKey="key=="
        )

        assert connection.endpoint_uri == "https://acct.documents.azure.com:443/"
        assert connection.primary_key == "key=="

    def test_partition_key_path_validation(self):
        """Test that partition key paths must start with '/'."""
        with pytest.raises(ValidationError):
            WorkflowConfig(partition_key_path="LastName")

    def test_nested_partition_key_path_rejected(self):
        """Test that only top-level partition key fields are accepted."""
        with pytest.raises(ValidationError, match="Nested partition key paths"):
            WorkflowConfig(partition_key_path="/Address/State")

    def test_redacted_hides_primary_key(self):
        """Test that redacted() hides the account key."""
        config = CosmoStartConfig(connection=ConnectionConfig(
            endpoint_uri="https://acct.documents.azure.com:443/",
            primary_key="key=="
        ))

        redacted = config.redacted()

        assert redacted["connection"]["primary_key"] == "***REDACTED***"
        assert redacted["connection"]["endpoint_uri"] == "https://acct.documents.azure.com:443/"
        assert "key==" not in json.dumps(redacted)
