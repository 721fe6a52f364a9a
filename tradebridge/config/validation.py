"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from .defaults import SUPPORTED_SCHEMES

ENDPOINT_FIELDS = ("market_data_address", "command_address", "status_report_address")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_endpoints(params: dict[str, Any]) -> list[ValidationError]:
        """Validate the three endpoint addresses."""
        errors = []

        for name in ENDPOINT_FIELDS:
            value = params.get(name)
            if not isinstance(value, str) or not value.strip():
                errors.append(ValidationError(
                    field=name,
                    message="Must be a non-empty transport address",
                    value=value
                ))
                continue

            scheme, sep, rest = value.partition("://")
            if not sep or not rest:
                errors.append(ValidationError(
                    field=name,
                    message="Must have the form <transport>://<address>",
                    value=value
                ))
            elif scheme.lower() not in SUPPORTED_SCHEMES:
                errors.append(ValidationError(
                    field=name,
                    message=f"Unsupported transport '{scheme}'",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_connector_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate connector timing and buffering parameters."""
        errors = []

        for name in ("command_timeout_seconds", "shutdown_timeout_seconds"):
            if name in params:
                value = params[name]
                if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a positive number",
                        value=value
                    ))

        if "startup_command_delay_seconds" in params:
            value = params["startup_command_delay_seconds"]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                errors.append(ValidationError(
                    field="startup_command_delay_seconds",
                    message="Must be a non-negative number",
                    value=value
                ))

        if "recent_items_capacity" in params:
            value = params["recent_items_capacity"]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                errors.append(ValidationError(
                    field="recent_items_capacity",
                    message="Must be a positive integer",
                    value=value
                ))

        if "linger_ms" in params:
            value = params["linger_ms"]
            if isinstance(value, bool) or not isinstance(value, int) or value < -1:
                errors.append(ValidationError(
                    field="linger_ms",
                    message="Must be an integer >= -1",
                    value=value
                ))

        if "send_startup_command" in params:
            value = params["send_startup_command"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="send_startup_command",
                    message="Must be a boolean",
                    value=value
                ))

        if "startup_command" in params:
            value = params["startup_command"]
            if not isinstance(value, str) or not value.strip():
                errors.append(ValidationError(
                    field="startup_command",
                    message="Must be a non-empty string",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        errors.extend(ConfigValidator.validate_endpoints(config.get("zmq_settings") or {}))

        if "connector" in config:
            errors.extend(ConfigValidator.validate_connector_params(config["connector"]))

        return errors
