"""
Application host for the TradeBridge connector.

Wires configuration, domain services, the status service and the connector
worker together, runs until SIGINT/SIGTERM and stops the worker within the
configured shutdown timeout.

Usage:
    python -m tradebridge --config-dir config --environment development
"""

import argparse
import signal
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import structlog

from .config.defaults import AppConfig
from .config.loader import ConfigLoader
from .connector.cancellation import CancellationSignal
from .connector.worker import ConnectorState, ConnectorWorker
from .errors import ConfigurationError
from .logging.config import configure_logging, get_connector_logger
from .services.managers import (
    EvaluationSystem,
    FundingManager,
    PerformanceManager,
    RiskManager,
    StrategyManager,
)
from .status.service import StatusEvent, StatusEventKind, SystemStatusService

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2


@dataclass
class TradeBridgeApp:
    """All long-lived services of one running shell."""
    config: AppConfig
    status: SystemStatusService
    strategy: StrategyManager
    performance: PerformanceManager
    funding: FundingManager
    risk: RiskManager
    evaluation: EvaluationSystem
    worker: ConnectorWorker

    @classmethod
    def build(cls, config: AppConfig) -> "TradeBridgeApp":
        """Create services and the connector worker from configuration."""
        status = SystemStatusService(capacity=config.connector.recent_items_capacity)
        strategy = StrategyManager()
        performance = PerformanceManager()

        worker = ConnectorWorker(
            endpoints=config.zmq_settings,
            strategy=strategy,
            performance=performance,
            status_sink=status,
            params=config.connector,
            bound_logger=get_connector_logger("tradebridge.connector", environment=config.environment),
        )

        return cls(
            config=config,
            status=status,
            strategy=strategy,
            performance=performance,
            funding=FundingManager(),
            risk=RiskManager(),
            evaluation=EvaluationSystem(),
            worker=worker,
        )

    def run(self, cancel: Optional[CancellationSignal] = None) -> int:
        """Run the connector until cancelled; returns a process exit code."""
        cancel = cancel or CancellationSignal()
        self.status.add_listener(_log_status_event)

        self.worker.start_background(cancel)
        threading.Thread(
            target=self._cancel_when_finished,
            args=(cancel,),
            name="connector-watch",
            daemon=True
        ).start()
        cancel.wait()

        graceful = self.worker.stop()
        self.status.remove_listener(_log_status_event)

        if not graceful:
            logger.warning("Connector stop was forced")

        if self.worker.state is ConnectorState.FAILED:
            return EXIT_FAILED
        return EXIT_OK

    def _cancel_when_finished(self, cancel: CancellationSignal) -> None:
        # A connector that fails on its own ends the run as well
        self.worker.wait_for_state(ConnectorState.STOPPED, ConnectorState.FAILED)
        cancel.cancel()


def _log_status_event(event: StatusEvent) -> None:
    if event.kind is StatusEventKind.CHANNEL_STATUS:
        logger.info("Channel status", channel=event.channel, status=event.payload)


def _install_signal_handlers(cancel: CancellationSignal) -> None:
    def handle_signal(signum, frame):
        logger.info("Shutdown signal received", signal=signal.Signals(signum).name)
        cancel.cancel()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="ZeroMQ trading bus connector")
    parser.add_argument("--config-dir", type=Path, default=None,
                        help="Directory holding appsettings.yaml")
    parser.add_argument("--environment", type=str, default=None,
                        help="Settings overlay name (appsettings.<environment>.yaml)")
    parser.add_argument("--log-level", type=str, default=None)
    parser.add_argument("--json-logs", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    overrides = {}
    if args.log_level:
        overrides["logging"] = {"level": args.log_level}
    if args.json_logs:
        overrides.setdefault("logging", {})["format_json"] = True

    try:
        config = ConfigLoader.create(args.config_dir, args.environment).load(overrides)
    except ConfigurationError as e:
        configure_logging(level="ERROR")
        logger.error("Configuration error", error=str(e), missing_fields=e.missing_fields)
        return EXIT_CONFIG_ERROR

    configure_logging(
        level=config.logging.level,
        format_json=config.logging.format_json,
        include_timestamp=config.logging.include_timestamp,
        include_caller=config.logging.include_caller,
    )
    logger.info("Starting TradeBridge", environment=config.environment)

    try:
        app = TradeBridgeApp.build(config)
    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e), missing_fields=e.missing_fields)
        return EXIT_CONFIG_ERROR

    cancel = CancellationSignal()
    _install_signal_handlers(cancel)
    exit_code = app.run(cancel)
    logger.info("TradeBridge exited", exit_code=exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
