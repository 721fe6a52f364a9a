"""Default configuration parameters for the messaging connector."""

from dataclasses import dataclass, field

SUPPORTED_SCHEMES = ("tcp", "ipc", "inproc", "pgm", "epgm", "ws", "wss")


@dataclass(frozen=True)
class EndpointConfig:
    """Transport addresses of the three bus channels."""
    market_data_address: str = ""                    # SUB, broadcast market data
    command_address: str = ""                        # REQ, command request/reply
    status_report_address: str = ""                  # PULL, pushed status reports

    def as_channels(self) -> dict[str, str]:
        """Map channel names to their addresses."""
        return {
            "market_data": self.market_data_address,
            "command": self.command_address,
            "status_report": self.status_report_address,
        }

    def missing_fields(self) -> list[str]:
        """Names of address fields that are empty or blank."""
        return [
            name for name in ("market_data_address", "command_address", "status_report_address")
            if not (getattr(self, name) or "").strip()
        ]


@dataclass(frozen=True)
class ConnectorParams:
    """Connector timing and buffering parameters."""
    # Command channel
    command_timeout_seconds: float = 5.0             # Max wait for a command reply

    # Shutdown
    shutdown_timeout_seconds: float = 5.0            # Bounded wait for graceful stop
    linger_ms: int = 0                               # Socket linger on close

    # Status sink
    recent_items_capacity: int = 10                  # Ring log size per message type

    # Startup command
    send_startup_command: bool = True                # Query the command channel on start
    startup_command: str = "GET_ACCOUNT_BALANCE"
    startup_command_delay_seconds: float = 1.0       # Delay before the startup command is sent


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False
    include_timestamp: bool = True
    include_caller: bool = False


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    zmq_settings: EndpointConfig = field(default_factory=EndpointConfig)
    connector: ConnectorParams = field(default_factory=ConnectorParams)
    logging: LoggingParams = field(default_factory=LoggingParams)
    environment: str = "production"


def get_default_config() -> AppConfig:
    """Get the default configuration instance."""
    return AppConfig(
        zmq_settings=EndpointConfig(),
        connector=ConnectorParams(),
        logging=LoggingParams(),
    )
