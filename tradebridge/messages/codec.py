"""
JSON wire codec for bus messages.

Payloads are UTF-8 JSON objects with PascalCase keys. Key lookup is
case-insensitive, numeric fields accept JSON numbers or numeric strings and
timestamps are ISO 8601. Every decoding problem is reported as a
MalformedMessageError so callers can drop the message.
"""

from datetime import datetime
from typing import Any, Union

import orjson

from ..errors import MalformedMessageError
from ..utils.time import format_wire_timestamp, parse_wire_timestamp
from .models import Command, MarketData, StatusReport

MARKET_DATA_FORMAT = "{Symbol:string, Bid:number, Ask:number, Timestamp:ISO-datetime}"
STATUS_REPORT_FORMAT = "{StrategyId:string, Status:string, Message:string, Timestamp:ISO-datetime}"
COMMAND_FORMAT = "{CommandName:string, Parameters:any|null}"

Payload = Union[str, bytes]


def _load_object(payload: Payload, expected_format: str) -> dict[str, Any]:
    """Decode a payload into a JSON object with lower-cased keys."""
    try:
        # orjson rejects invalid UTF-8 in bytes input itself
        data = orjson.loads(payload)
    except orjson.JSONDecodeError as e:
        raise MalformedMessageError(
            f"Payload is not valid UTF-8 JSON: {e}",
            raw_data=_preview(payload),
            expected_format=expected_format
        ) from e

    if not isinstance(data, dict):
        raise MalformedMessageError(
            f"Expected a JSON object, got {type(data).__name__}",
            raw_data=_preview(payload),
            expected_format=expected_format
        )

    return {str(key).lower(): value for key, value in data.items()}


def _dumps(obj: dict[str, Any]) -> str:
    return orjson.dumps(obj).decode("utf-8")


def _preview(raw: Any, limit: int = 200) -> str:
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")
    return str(raw)[:limit]


def _require(data: dict[str, Any], key: str, expected_format: str) -> Any:
    if key.lower() not in data:
        raise MalformedMessageError(
            f"Missing field '{key}'",
            expected_format=expected_format,
            context={"field": key}
        )
    return data[key.lower()]


def _as_str(data: dict[str, Any], key: str, expected_format: str) -> str:
    value = _require(data, key, expected_format)
    if not isinstance(value, str):
        raise MalformedMessageError(
            f"Field '{key}' must be a string, got {type(value).__name__}",
            expected_format=expected_format,
            context={"field": key, "value": value}
        )
    return value


def _as_float(data: dict[str, Any], key: str, expected_format: str) -> float:
    value = _require(data, key, expected_format)
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise MalformedMessageError(
            f"Field '{key}' must be a number, got {type(value).__name__}",
            expected_format=expected_format,
            context={"field": key, "value": value}
        )
    try:
        return float(value)
    except ValueError as e:
        raise MalformedMessageError(
            f"Field '{key}' is not numeric: {value!r}",
            expected_format=expected_format,
            context={"field": key, "value": value}
        ) from e


def _as_timestamp(data: dict[str, Any], key: str, expected_format: str) -> datetime:
    value = _as_str(data, key, expected_format)
    try:
        return parse_wire_timestamp(value)
    except ValueError as e:
        raise MalformedMessageError(
            f"Field '{key}' is not an ISO 8601 timestamp: {value!r}",
            expected_format=expected_format,
            context={"field": key, "value": value}
        ) from e


def decode_market_data(payload: Payload) -> MarketData:
    """Decode a market-data payload frame."""
    data = _load_object(payload, MARKET_DATA_FORMAT)
    return MarketData(
        symbol=_as_str(data, "Symbol", MARKET_DATA_FORMAT),
        bid=_as_float(data, "Bid", MARKET_DATA_FORMAT),
        ask=_as_float(data, "Ask", MARKET_DATA_FORMAT),
        timestamp=_as_timestamp(data, "Timestamp", MARKET_DATA_FORMAT),
    )


def encode_market_data(data: MarketData) -> str:
    """Encode market data in the publisher's wire format."""
    return _dumps({
        "Symbol": data.symbol,
        "Bid": data.bid,
        "Ask": data.ask,
        "Timestamp": format_wire_timestamp(data.timestamp),
    })


def decode_status_report(payload: Payload) -> StatusReport:
    """Decode a status-report frame."""
    data = _load_object(payload, STATUS_REPORT_FORMAT)
    return StatusReport(
        strategy_id=_as_str(data, "StrategyId", STATUS_REPORT_FORMAT),
        status=_as_str(data, "Status", STATUS_REPORT_FORMAT),
        message=_as_str(data, "Message", STATUS_REPORT_FORMAT),
        timestamp=_as_timestamp(data, "Timestamp", STATUS_REPORT_FORMAT),
    )


def encode_status_report(report: StatusReport) -> str:
    """Encode a status report in the pusher's wire format."""
    return _dumps({
        "StrategyId": report.strategy_id,
        "Status": report.status,
        "Message": report.message,
        "Timestamp": format_wire_timestamp(report.timestamp),
    })


def encode_command(command: Command) -> str:
    """
    Encode a command request frame.

    Raises:
        TypeError: If the parameters are not JSON-serializable
    """
    return _dumps({
        "CommandName": command.name,
        "Parameters": command.parameters,
    })


def decode_command(payload: Payload) -> Command:
    """Decode a command request frame (used by the command-side peer)."""
    data = _load_object(payload, COMMAND_FORMAT)
    return Command(
        name=_as_str(data, "CommandName", COMMAND_FORMAT),
        parameters=data.get("parameters"),
    )
