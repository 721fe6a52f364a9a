"""Unit tests for configuration management."""

from pathlib import Path

import pytest
import yaml

from tradebridge.config.defaults import get_default_config
from tradebridge.config.loader import ConfigLoader, load_app_config
from tradebridge.config.validation import ConfigValidator
from tradebridge.errors import ConfigurationError

VALID_SETTINGS = {
    "zmq_settings": {
        "market_data_address": "tcp://127.0.0.1:5556",
        "command_address": "tcp://127.0.0.1:5557",
        "status_report_address": "tcp://127.0.0.1:5558",
    }
}


def write_settings(directory: Path, name: str, data) -> None:
    with open(directory / name, "w") as f:
        yaml.safe_dump(data, f)


class TestDefaultConfig:
    """Test suite for default configuration."""

    def test_default_config_creation(self) -> None:
        """Test that default configuration can be created."""
        config = get_default_config()

        assert config.connector.command_timeout_seconds == 5.0
        assert config.connector.recent_items_capacity == 10
        assert config.connector.startup_command == "GET_ACCOUNT_BALANCE"
        assert config.zmq_settings.missing_fields() == [
            "market_data_address", "command_address", "status_report_address"
        ]


class TestConfigLoader:
    """Test suite for configuration loader."""

    def test_config_loader_creation(self) -> None:
        """Test that ConfigLoader can be created with the bundled settings."""
        loader = ConfigLoader.create(env={})

        assert isinstance(loader.config_dir, Path)
        assert loader.environment == "production"

    def test_bundled_settings_load(self) -> None:
        """Test the repository settings file is valid."""
        config = ConfigLoader.create(env={}).load()

        assert config.zmq_settings.market_data_address == "tcp://127.0.0.1:5556"
        assert config.zmq_settings.command_address == "tcp://127.0.0.1:5557"
        assert config.zmq_settings.status_report_address == "tcp://127.0.0.1:5558"

    def test_environment_file_overrides_base(self, tmp_path) -> None:
        """Test appsettings.<environment>.yaml layers over appsettings.yaml."""
        write_settings(tmp_path, "appsettings.yaml", VALID_SETTINGS)
        write_settings(tmp_path, "appsettings.staging.yaml", {
            "zmq_settings": {"command_address": "tcp://10.0.0.5:6000"},
            "connector": {"command_timeout_seconds": 2.5},
        })

        config = ConfigLoader.create(tmp_path, "staging", env={}).load()

        assert config.zmq_settings.command_address == "tcp://10.0.0.5:6000"
        assert config.zmq_settings.market_data_address == "tcp://127.0.0.1:5556"
        assert config.connector.command_timeout_seconds == 2.5
        assert config.connector.shutdown_timeout_seconds == 5.0
        assert config.environment == "staging"

    def test_environment_variables_override_files(self, tmp_path) -> None:
        """Test TRADEBRIDGE_* variables take precedence over files."""
        write_settings(tmp_path, "appsettings.yaml", VALID_SETTINGS)
        env = {
            "TRADEBRIDGE_STATUS_REPORT_ADDRESS": "ipc:///tmp/status",
            "TRADEBRIDGE_LOG_LEVEL": "DEBUG",
            "TRADEBRIDGE_ENVIRONMENT": "qa",
        }

        config = ConfigLoader.create(tmp_path, env=env).load()

        assert config.zmq_settings.status_report_address == "ipc:///tmp/status"
        assert config.logging.level == "DEBUG"
        assert config.environment == "qa"

    def test_explicit_overrides_win(self, tmp_path) -> None:
        """Test explicit overrides have the highest priority."""
        write_settings(tmp_path, "appsettings.yaml", VALID_SETTINGS)
        env = {"TRADEBRIDGE_LOG_LEVEL": "DEBUG"}

        config = ConfigLoader.create(tmp_path, env=env).load({"logging": {"level": "WARNING"}})

        assert config.logging.level == "WARNING"

    def test_unknown_keys_are_ignored(self, tmp_path) -> None:
        """Test unknown settings keys do not break construction."""
        settings = {**VALID_SETTINGS, "connector": {"retry_policy": "none"}}
        write_settings(tmp_path, "appsettings.yaml", settings)

        config = ConfigLoader.create(tmp_path, env={}).load()
        assert config.connector.command_timeout_seconds == 5.0

    def test_missing_endpoint_raises(self, tmp_path) -> None:
        """Test a missing endpoint is a configuration error."""
        settings = {"zmq_settings": dict(VALID_SETTINGS["zmq_settings"])}
        del settings["zmq_settings"]["command_address"]
        write_settings(tmp_path, "appsettings.yaml", settings)

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader.create(tmp_path, env={}).load()

        assert exc_info.value.missing_fields == ["command_address"]

    def test_no_settings_files_raises(self, tmp_path) -> None:
        """Test defaults alone lack endpoints."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_app_config(tmp_path, "production")

        assert len(exc_info.value.missing_fields) == 3

    def test_non_mapping_file_raises(self, tmp_path) -> None:
        """Test a settings file must contain a mapping."""
        write_settings(tmp_path, "appsettings.yaml", ["not", "a", "mapping"])

        with pytest.raises(ConfigurationError):
            ConfigLoader.create(tmp_path, env={}).load()

    def test_empty_file_is_ignored(self, tmp_path) -> None:
        """Test an empty settings file contributes nothing."""
        write_settings(tmp_path, "appsettings.yaml", VALID_SETTINGS)
        (tmp_path / "appsettings.production.yaml").write_text("")

        config = ConfigLoader.create(tmp_path, env={}).load()
        assert config.zmq_settings.command_address == "tcp://127.0.0.1:5557"


class TestConfigValidator:
    """Test suite for configuration validation."""

    def test_valid_endpoints(self) -> None:
        """Test validation of valid endpoints."""
        assert ConfigValidator.validate_endpoints(VALID_SETTINGS["zmq_settings"]) == []

    @pytest.mark.parametrize("address,message", [
        ("", "non-empty"),
        ("   ", "non-empty"),
        ("127.0.0.1:5556", "form"),
        ("tcp://", "form"),
        ("http://localhost:80", "Unsupported"),
    ])
    def test_invalid_endpoint(self, address, message) -> None:
        """Test validation of malformed endpoint addresses."""
        params = {**VALID_SETTINGS["zmq_settings"], "market_data_address": address}

        errors = ConfigValidator.validate_endpoints(params)

        assert len(errors) == 1
        assert errors[0].field == "market_data_address"
        assert message in errors[0].message

    def test_valid_connector_params(self) -> None:
        """Test validation of valid connector parameters."""
        params = {
            "command_timeout_seconds": 5,
            "shutdown_timeout_seconds": 0.5,
            "recent_items_capacity": 10,
            "linger_ms": 0,
            "send_startup_command": False,
            "startup_command": "GET_ACCOUNT_BALANCE",
            "startup_command_delay_seconds": 0,
        }
        assert ConfigValidator.validate_connector_params(params) == []

    @pytest.mark.parametrize("field,value", [
        ("command_timeout_seconds", 0),
        ("command_timeout_seconds", "5"),
        ("shutdown_timeout_seconds", -1.0),
        ("recent_items_capacity", 0),
        ("recent_items_capacity", 2.5),
        ("linger_ms", -2),
        ("send_startup_command", "yes"),
        ("startup_command", ""),
        ("startup_command_delay_seconds", -0.1),
    ])
    def test_invalid_connector_params(self, field, value) -> None:
        """Test validation of invalid connector parameters."""
        errors = ConfigValidator.validate_connector_params({field: value})

        assert len(errors) == 1
        assert errors[0].field == field

    def test_invalid_connector_param_raises_on_load(self, tmp_path) -> None:
        """Test invalid connector parameters are reported by field."""
        settings = {**VALID_SETTINGS, "connector": {"command_timeout_seconds": -5}}
        write_settings(tmp_path, "appsettings.yaml", settings)

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader.create(tmp_path, env={}).load()

        assert exc_info.value.invalid_fields == ["command_timeout_seconds"]
