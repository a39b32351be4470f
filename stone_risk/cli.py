"""Command-line interface for the market risk engine."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import load_config
from .errors import StoneRiskError
from .logging_setup import configure_logging
from .numeric import percent
from .positions import StaticPositionSource
from .risk.irm import borrow_to_target, rate_at_target
from .services import RiskDashboard

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="stone-risk",
        description="Market risk engine for collateralized lending markets",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("check", help="Refresh every oracle once and report per market")

    monitor_parser = sub.add_parser("monitor", help="Continuous polling with periodic reports")
    monitor_parser.add_argument(
        "interval",
        nargs="?",
        type=float,
        default=None,
        help="Report interval in seconds (overrides config)",
    )

    simulate_parser = sub.add_parser("simulate", help="Collateral-at-risk curve for a market")
    simulate_parser.add_argument("market", help="Market id from config")
    simulate_parser.add_argument(
        "--positions", required=True, help="YAML file with the market's positions"
    )
    simulate_parser.add_argument(
        "--usd", action="store_true", help="Report collateral in USD instead of tokens"
    )

    irm_parser = sub.add_parser("irm", help="Sample a market's interest rate curve")
    irm_parser.add_argument("market", help="Market id from config")
    irm_parser.add_argument("--points", type=int, default=101, help="Curve points (default: 101)")
    irm_parser.add_argument("--utilization", default=None, help="Current utilization (0-1)")
    irm_parser.add_argument("--total-supply", default=None, help="Total supplied, in tokens")
    irm_parser.add_argument("--price", default=None, help="Debt token USD price")

    prune_parser = sub.add_parser("prune", help="Downsample historical snapshots once")
    prune_parser.add_argument("--db", default=None, help="Snapshot database path (overrides config)")

    return parser


def _print_irm(dashboard: RiskDashboard, args: argparse.Namespace) -> None:
    market = dashboard.market(args.market)
    for point in dashboard.irm_report(args.market, args.points):
        print(f"{point.utilization_percent:7.2f}%  {point.rate_percent:8.4f}%")

    target_rate = rate_at_target(market.irm)
    if target_rate is not None:
        print(
            f"Rate at target ({percent(market.irm.optimal_utilization):.1f}% utilization): "
            f"{percent(target_rate):.2f}%"
        )

    if args.utilization is not None:
        amount = borrow_to_target(
            args.utilization,
            market.irm.optimal_utilization,
            args.total_supply,
            args.price if args.price is not None else 1,
        )
        if amount is None:
            logger.error("--utilization needs --total-supply and numeric values")
        else:
            print(f"Borrow to reach target: ${amount:,.2f}")


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    dashboard = RiskDashboard(config)

    if args.command == "check":
        await dashboard.check()
    elif args.command == "monitor":
        await dashboard.run_continuous(args.interval)
    elif args.command == "simulate":
        source = StaticPositionSource.from_yaml(args.positions)
        positions = await source.fetch_positions(args.market)
        points = await dashboard.simulate(args.market, positions, usd=args.usd)
        unit = "USD" if args.usd else "tokens"
        for point in points:
            print(f"{point.price_drop_percent:5}%  {point.collateral_at_risk:,.4f} {unit}")
    elif args.command == "irm":
        _print_irm(dashboard, args)
    elif args.command == "prune":
        deleted = dashboard.prune_snapshots(args.db)
        print(f"Deleted {deleted} snapshot(s)")
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except (StoneRiskError, KeyError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(1)
