"""Configuration loader with layered precedence."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import AppConfig, ConnectorParams, EndpointConfig, LoggingParams, get_default_config
from .validation import ConfigValidator

ENV_PREFIX = "TRADEBRIDGE_"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "MARKET_DATA_ADDRESS": ("zmq_settings", "market_data_address"),
    "COMMAND_ADDRESS": ("zmq_settings", "command_address"),
    "STATUS_REPORT_ADDRESS": ("zmq_settings", "status_report_address"),
    "LOG_LEVEL": ("logging", "level"),
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with layered precedence."""

    config_dir: Path
    defaults: AppConfig
    environment: str = "production"
    env: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        config_dir: Optional[Path] = None,
        environment: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None
    ) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        if env is None:
            env = dict(os.environ)

        if environment is None:
            environment = env.get(f"{ENV_PREFIX}ENVIRONMENT", "production")

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
            environment=environment,
            env=env,
        )

    def load_file(self, filename: str) -> dict[str, Any]:
        """Load one YAML settings file, empty if it does not exist."""
        path = self.config_dir / filename

        if not path.exists():
            return {}

        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Settings file {path} must contain a mapping",
                context={"path": str(path)}
            )
        return data

    def load_environment_overrides(self) -> dict[str, Any]:
        """Collect TRADEBRIDGE_* environment variable overrides."""
        overrides: dict[str, Any] = {}

        for suffix, (section, key) in ENV_OVERRIDES.items():
            value = self.env.get(f"{ENV_PREFIX}{suffix}")
            if value is not None:
                overrides.setdefault(section, {})[key] = value

        return overrides

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with layered precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. Environment variables
        3. appsettings.<environment>.yaml
        4. appsettings.yaml
        5. Built-in defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_file("appsettings.yaml"))
        config = self._deep_merge(config, self.load_file(f"appsettings.{self.environment}.yaml"))
        config = self._deep_merge(config, self.load_environment_overrides())

        if overrides:
            config = self._deep_merge(config, overrides)

        config["environment"] = self.environment
        return config

    def load(self, overrides: Optional[dict[str, Any]] = None) -> AppConfig:
        """Load, validate and build the application configuration."""
        config = self.merge_config(overrides)

        errors = ConfigValidator.validate_config(config)
        if errors:
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(
                    f"{err.field}: {err.message} (got: {err.value!r})" for err in errors
                ),
                missing_fields=[err.field for err in errors if not err.value],
                invalid_fields=[err.field for err in errors if err.value],
                context={"config_dir": str(self.config_dir), "environment": self.environment}
            )

        return AppConfig(
            zmq_settings=self._build(EndpointConfig, config.get("zmq_settings")),
            connector=self._build(ConnectorParams, config.get("connector")),
            logging=self._build(LoggingParams, config.get("logging")),
            environment=self.environment,
        )

    def _build(self, cls: type, values: Optional[dict[str, Any]]) -> Any:
        """Instantiate a config dataclass from known keys only."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (values or {}).items() if k in known})

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def load_app_config(
    config_dir: Optional[Path] = None,
    environment: Optional[str] = None
) -> AppConfig:
    """Load the application configuration from disk and environment."""
    return ConfigLoader.create(config_dir, environment).load()
