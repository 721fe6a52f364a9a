"""
Domain service stubs.

Funding, evaluation, strategy, risk and performance management live outside
the connector. These implementations only log what they receive so the
shell runs end to end.
"""

import structlog

from ..messages.models import MarketData, StatusReport

logger = structlog.get_logger(__name__)


class StrategyManager:
    """Strategy collaborator: logs market updates and status changes."""

    def __init__(self):
        self.logger = logger.bind(service="strategy")

    def on_market_update(self, data: MarketData) -> None:
        self.logger.info("Processing market update", symbol=data.symbol)

    def on_status_update(self, report: StatusReport) -> None:
        self.logger.info(
            "Updating strategy status",
            strategy_id=report.strategy_id,
            status=report.status
        )


class PerformanceManager:
    """Performance collaborator: logs market updates."""

    def __init__(self):
        self.logger = logger.bind(service="performance")

    def on_market_update(self, data: MarketData) -> None:
        self.logger.info("Updating performance data", symbol=data.symbol)


class FundingManager:
    def __init__(self):
        self.logger = logger.bind(service="funding")
        self.logger.debug("Funding manager created")


class RiskManager:
    def __init__(self):
        self.logger = logger.bind(service="risk")
        self.logger.debug("Risk manager created")


class EvaluationSystem:
    def __init__(self):
        self.logger = logger.bind(service="evaluation")
        self.logger.debug("Evaluation system created")
