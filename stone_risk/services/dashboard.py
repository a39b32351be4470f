"""Market risk orchestration — oracle prices, rate curves and collateral at risk per market."""
from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Callable, Sequence

from ..chains.cosmwasm import CosmWasmClient
from ..config import AppConfig, MarketConfig
from ..denoms import DenomRegistry
from ..errors import StoneRiskError
from ..models import (
    CollateralRiskPoint,
    DenomStatus,
    IRMCurvePoint,
    MarketReport,
    OracleRequirement,
    Position,
    PriceQuote,
)
from ..numeric import HUNDRED, ZERO
from ..oracles import PythOracle
from ..risk.collateral import collateral_risk_to_usd, simulate_collateral_at_risk
from ..risk.irm import curve_sample, rate_at_target
from ..storage import PruneSchedule, SnapshotRetentionManager, SqliteSnapshotStore
from .freshness import FreshnessThresholds, freshness_label, quote_freshness
from .oracle_aggregator import OracleAggregator
from .price_feeds import PriceFeedAggregator

logger = logging.getLogger(__name__)


class RiskDashboard:
    """Wires the aggregators to the configured markets and renders reports."""

    def __init__(
        self, config: AppConfig, clock: Callable[[], float] = time.time
    ) -> None:
        self._config = config
        self._clock = clock
        self._thresholds = FreshnessThresholds.from_config(config.freshness)
        self._denoms = DenomRegistry(config.denoms)

        self._client = CosmWasmClient(config.chain)
        self._aggregator = OracleAggregator(
            self._client,
            [
                OracleRequirement(
                    address=m.oracle_address,
                    denoms=(m.collateral_denom, m.debt_denom),
                )
                for m in config.markets
            ],
            refresh_seconds=config.polling.oracle_refresh_seconds,
            clock=clock,
        )

        denoms = {
            self._denoms.chain_denom(d)
            for m in config.markets
            for d in (m.collateral_denom, m.debt_denom)
        }
        pyth = PythOracle(config.pyth)
        self._price_feeds = PriceFeedAggregator(
            pyth,
            pyth.price_feeds,
            denoms=denoms,
            refresh_seconds=config.polling.price_feed_refresh_seconds,
            stale_seconds=config.freshness.stale_seconds,
            clock=clock,
        )
        self._prune_schedule = PruneSchedule(config.retention.prune_every_heights)

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_address(address: str) -> str:
        if len(address) > 16:
            return f"{address[:10]}...{address[-6:]}"
        return address

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    @staticmethod
    def format_price_with_confidence(
        value: Decimal, confidence: Decimal, decimals: int = 4
    ) -> str:
        """e.g. ``"$89,539.3000 (89,494.1765 - 89,584.4235)"``."""
        low, high = value - confidence, value + confidence
        return f"${value:,.{decimals}f} ({low:,.{decimals}f} - {high:,.{decimals}f})"

    @classmethod
    def _format_denom(cls, status: DenomStatus) -> str:
        price = f"${status.price:,.4f}" if status.price is not None else "—"
        label = status.symbol or status.denom
        line = f"  {label}: {price} {freshness_label(status.freshness)}"
        if status.age_seconds is not None:
            line += f" ({status.age_seconds}s old)"
        if status.error:
            line += f" [{status.error}]"
        if status.reference_price is not None:
            line += " · Pyth " + cls.format_price_with_confidence(
                status.reference_price, status.reference_confidence or ZERO
            )
        return line

    @classmethod
    def format_market_report(cls, report: MarketReport) -> str:
        lines = [
            f"📊 {report.market_id} · oracle {cls._format_address(report.oracle_address)}",
            cls._format_denom(report.collateral),
            cls._format_denom(report.debt),
        ]
        if report.config_error:
            lines.append(f"  Oracle config: {report.config_error}")
        if report.oracle_price is not None:
            line = f"  Oracle price: {report.oracle_price:,.4f}"
            if report.reference_price is not None:
                line += f" · Pyth: {report.reference_price:,.4f}"
            if report.reference_deviation_percent is not None:
                line += f" ({report.reference_deviation_percent:+.2f}%)"
            lines.append(line)
        if report.rate_at_target is not None:
            lines.append(f"  Rate at target: {report.rate_at_target * HUNDRED:.2f}%")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Report building
    # ------------------------------------------------------------------

    def _denom_status(self, market: MarketConfig, denom: str, now: float) -> DenomStatus:
        state = self._aggregator.state(market.oracle_address)
        quote = state.prices.get(denom) if state is not None else None
        error = state.price_errors.get(denom) if state is not None else None
        reference = self._pyth_quote(denom)
        return DenomStatus(
            denom=denom,
            price=quote.value if quote is not None else None,
            freshness=quote_freshness(state, denom, now, self._thresholds),
            age_seconds=int(now - quote.published_at) if quote is not None else None,
            error=error,
            symbol=self._denoms.display_symbol(denom),
            reference_price=reference.value if reference is not None else None,
            reference_confidence=reference.confidence if reference is not None else None,
        )

    def _pyth_quote(self, denom: str) -> PriceQuote | None:
        return self._price_feeds.price(self._denoms.chain_denom(denom))

    @staticmethod
    def _ratio(numerator: Decimal | None, denominator: Decimal | None) -> Decimal | None:
        if numerator is None or denominator is None or denominator <= ZERO:
            return None
        return numerator / denominator

    def _reference_price(self, market: MarketConfig) -> Decimal | None:
        collateral = self._pyth_quote(market.collateral_denom)
        debt = self._pyth_quote(market.debt_denom)
        return self._ratio(
            collateral.value if collateral is not None else None,
            debt.value if debt is not None else None,
        )

    def market_price(self, market: MarketConfig) -> Decimal | None:
        """Collateral priced in debt units from the market's own oracle."""
        state = self._aggregator.state(market.oracle_address)
        if state is None:
            return None
        collateral = state.prices.get(market.collateral_denom)
        debt = state.prices.get(market.debt_denom)
        return self._ratio(
            collateral.value if collateral is not None else None,
            debt.value if debt is not None else None,
        )

    def build_market_report(
        self, market: MarketConfig, now: float | None = None
    ) -> MarketReport:
        now = self._clock() if now is None else now
        state = self._aggregator.state(market.oracle_address)

        oracle_price = self.market_price(market)
        reference_price = self._reference_price(market)
        deviation = None
        if oracle_price is not None and reference_price is not None:
            deviation = (oracle_price - reference_price) / reference_price * HUNDRED

        return MarketReport(
            market_id=market.market_id,
            oracle_address=market.oracle_address,
            collateral=self._denom_status(market, market.collateral_denom, now),
            debt=self._denom_status(market, market.debt_denom, now),
            oracle_price=oracle_price,
            reference_price=reference_price,
            reference_deviation_percent=deviation,
            rate_at_target=rate_at_target(market.irm),
            config_error=state.config_error if state is not None else None,
        )

    def build_reports(self) -> list[MarketReport]:
        now = self._clock()
        return [self.build_market_report(m, now) for m in self._config.markets]

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    def _log_reports(self, reports: Sequence[MarketReport]) -> None:
        for report in reports:
            logger.info("%s", self.format_market_report(report))
        feeds = self._price_feeds.snapshot
        if feeds.error:
            logger.warning("Pyth reference prices unavailable: %s", feeds.error)
        elif feeds.is_stale:
            logger.warning("Some Pyth reference prices are stale")

    async def check(self) -> list[MarketReport]:
        """One refresh of every oracle and reference feed, then a report per market."""
        await asyncio.gather(self._aggregator.refresh(), self._price_feeds.refresh())
        reports = self.build_reports()
        self._log_reports(reports)
        logger.info("Checked %d market(s) at %s UTC", len(reports), self._now_str())
        return reports

    async def simulate(
        self,
        market_id: str,
        positions: Sequence[Position],
        usd: bool = False,
    ) -> list[CollateralRiskPoint]:
        """Collateral-at-risk curve for ``positions`` at the market's live oracle price."""
        market = self._config.market(market_id)
        if self.market_price(market) is None:
            await self._aggregator.refresh()

        price = self.market_price(market)
        if price is None:
            raise StoneRiskError(f"No oracle price available for market '{market_id}'")

        points = simulate_collateral_at_risk(
            positions, price, market.liquidation_threshold
        )
        logger.info(
            "Simulated %d position(s) in %s at price %s", len(positions), market_id, price
        )
        if usd:
            return collateral_risk_to_usd(points, price)
        return points

    def market(self, market_id: str) -> MarketConfig:
        return self._config.market(market_id)

    def irm_report(self, market_id: str, num_points: int = 101) -> list[IRMCurvePoint]:
        return curve_sample(self.market(market_id).irm, num_points)

    def _retention_manager(self, db_path: str | Path | None = None) -> SnapshotRetentionManager:
        retention = self._config.retention
        store = SqliteSnapshotStore(db_path or retention.database_path)
        return SnapshotRetentionManager(
            store, batch_size=retention.delete_batch_size, clock=self._clock
        )

    def prune_snapshots(self, db_path: str | Path | None = None) -> int:
        """One retention pass over the snapshot database."""
        return self._retention_manager(db_path).prune()

    def on_block(self, height: int) -> int:
        """Prune once every ``retention.prune_every_heights`` blocks; the first height is the baseline."""
        if not self._prune_schedule.should_run(height):
            return 0
        return self._retention_manager().prune()

    async def run_continuous(self, interval_seconds: float | None = None) -> None:
        """Keep both aggregators polling and log reports every interval."""
        interval = interval_seconds or self._config.polling.report_interval_seconds
        logger.info("Starting continuous monitoring (reporting every %.0f seconds)", interval)

        self._aggregator.start()
        self._price_feeds.start()
        try:
            while True:
                await asyncio.sleep(interval)
                try:
                    self._log_reports(self.build_reports())
                except Exception as e:
                    logger.error("Error in monitoring loop: %s", e)
        finally:
            await self._aggregator.stop()
            await self._price_feeds.stop()
