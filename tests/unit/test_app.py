"""Tests for the application host."""

import threading

import pytest
import yaml

from tradebridge.app import (
    EXIT_CONFIG_ERROR,
    EXIT_FAILED,
    EXIT_OK,
    TradeBridgeApp,
    main,
    parse_args,
)
from tradebridge.config.defaults import AppConfig, ConnectorParams, EndpointConfig
from tradebridge.connector.cancellation import CancellationSignal
from tradebridge.connector.worker import ConnectorState


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("TRADEBRIDGE_ENVIRONMENT", "TRADEBRIDGE_MARKET_DATA_ADDRESS",
                 "TRADEBRIDGE_COMMAND_ADDRESS", "TRADEBRIDGE_STATUS_REPORT_ADDRESS",
                 "TRADEBRIDGE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def make_config(endpoints: EndpointConfig) -> AppConfig:
    return AppConfig(
        zmq_settings=endpoints,
        connector=ConnectorParams(
            command_timeout_seconds=0.3,
            shutdown_timeout_seconds=2.0,
            send_startup_command=False,
        ),
    )


class TestParseArgs:

    def test_defaults(self):
        args = parse_args([])
        assert args.config_dir is None
        assert args.environment is None
        assert args.json_logs is False

    def test_options(self, tmp_path):
        args = parse_args([
            "--config-dir", str(tmp_path),
            "--environment", "development",
            "--log-level", "DEBUG",
            "--json-logs",
        ])
        assert args.config_dir == tmp_path
        assert args.environment == "development"
        assert args.log_level == "DEBUG"
        assert args.json_logs is True


class TestTradeBridgeApp:

    def test_build_wires_services(self, endpoints):
        app = TradeBridgeApp.build(make_config(endpoints))

        assert app.worker.state is ConnectorState.CREATED
        assert app.worker.status_sink is app.status
        assert app.worker.handlers.strategy is app.strategy
        assert app.worker.handlers.performance is app.performance

    def test_run_until_cancelled(self, bus_peers):
        app = TradeBridgeApp.build(make_config(bus_peers.endpoints))
        cancel = CancellationSignal()

        def cancel_when_running():
            app.worker.wait_for_state(ConnectorState.RUNNING, timeout=5.0)
            cancel.cancel()

        threading.Thread(target=cancel_when_running, daemon=True).start()

        assert app.run(cancel) == EXIT_OK
        assert app.worker.state is ConnectorState.STOPPED
        assert app.status.get_channel_status("command") == "Disconnected"

    def test_run_reports_connector_failure(self):
        endpoints = EndpointConfig(
            market_data_address="bogus://nowhere",
            command_address="tcp://127.0.0.1:5557",
            status_report_address="tcp://127.0.0.1:5558",
        )
        app = TradeBridgeApp.build(make_config(endpoints))

        assert app.run(CancellationSignal()) == EXIT_FAILED
        assert app.worker.state is ConnectorState.FAILED


class TestMain:

    def test_missing_endpoints_exit_code(self, tmp_path):
        assert main(["--config-dir", str(tmp_path)]) == EXIT_CONFIG_ERROR

    def test_invalid_settings_exit_code(self, tmp_path):
        with open(tmp_path / "appsettings.yaml", "w") as f:
            yaml.safe_dump({"zmq_settings": {
                "market_data_address": "tcp://127.0.0.1:5556",
                "command_address": "http://127.0.0.1:5557",
                "status_report_address": "tcp://127.0.0.1:5558",
            }}, f)

        assert main(["--config-dir", str(tmp_path)]) == EXIT_CONFIG_ERROR
