"""Command-line interface for the liquidation tracker."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import AppConfig, load_config
from .errors import ValidationError
from .formatting import (
    format_large_number,
    format_percentage,
    format_pnl,
    format_price,
)
from .logging_setup import configure_logging
from .models import CloseReason, PositionType
from .oracles import AlternativeMeOracle, TickerCache
from .positions import parse_number
from .services import Tracker
from .valuation import initial_risk_level, leverage_risk_score, quick_exit_prices


def _add_position_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("symbol", help="Ticker symbol, e.g. BTC")
    parser.add_argument("entry_price", help="Entry price in USD")
    parser.add_argument("leverage", help="Leverage multiplier (> 1)")
    parser.add_argument(
        "position_type", choices=[t.value for t in PositionType], help="long or short"
    )
    parser.add_argument("position_size", help="Position size in USD")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="liquidation-tracker",
        description="Leveraged position liquidation calculator and portfolio tracker",
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

    _add_position_args(sub.add_parser("calc", help="Compute liquidation price and risk"))

    pnl_parser = sub.add_parser("pnl", help="Project profit/loss at an exit price")
    _add_position_args(pnl_parser)
    pnl_parser.add_argument(
        "exit_price", nargs="?", default=None, help="Exit price (default: quick table)"
    )

    _add_position_args(sub.add_parser("add", help="Add a position to the portfolio"))

    close_parser = sub.add_parser("close", help="Close an open position")
    close_parser.add_argument("position_id")
    close_parser.add_argument("exit_price")
    close_parser.add_argument(
        "--reason",
        default=CloseReason.MANUAL.value,
        choices=[r.value for r in CloseReason],
    )
    close_parser.add_argument("--notes", default="")

    remove_parser = sub.add_parser("remove", help="Remove a position")
    remove_parser.add_argument("position_id")

    sub.add_parser("list", help="List portfolio positions")
    sub.add_parser("refresh", help="Refresh prices for open positions")
    sub.add_parser("report", help="Send a portfolio report")

    market_parser = sub.add_parser("market", help="List ranked coins from the ticker")
    market_parser.add_argument(
        "query", nargs="?", default="", help="Filter by name or symbol"
    )
    market_parser.add_argument("--limit", type=int, default=20)

    monitor_parser = sub.add_parser("monitor", help="Continuous price refresh loop")
    monitor_parser.add_argument(
        "interval",
        nargs="?",
        type=float,
        default=None,
        help="Refresh interval in seconds (overrides config)",
    )

    return parser


def _print_calculation(args: argparse.Namespace) -> None:
    position, result = Tracker.calculate(
        args.symbol, args.entry_price, args.leverage, args.position_type,
        args.position_size,
    )
    print(f"{position.symbol} {position.position_type.value.upper()} {position.leverage:g}x")
    print(f"  Liquidation price: ${format_price(result.liquidation_price)}")
    print(f"  Margin required:   ${format_price(result.margin_required)}")
    print(f"  Risk:              {result.risk_percentage:.2f}% of position")
    print(
        f"  Risk level:        {initial_risk_level(position.leverage).value.upper()} "
        f"(score {leverage_risk_score(position.leverage):.0f}/100)"
    )


def _print_projection(args: argparse.Namespace) -> None:
    position, result = Tracker.calculate(
        args.symbol, args.entry_price, args.leverage, args.position_type,
        args.position_size,
    )
    if args.exit_price is not None:
        targets = [("exit", parse_number("Exit price", args.exit_price))]
    else:
        targets = quick_exit_prices(position.entry_price)

    for label, price in targets:
        p = Tracker.project_exit(position, result, price)
        flag = "  LIQUIDATED" if p.liquidated else ""
        print(
            f"{label:>5} ${format_price(price)}: {format_pnl(p.profit_loss)} "
            f"({format_percentage(p.profit_loss_percentage)}) "
            f"ROI {format_percentage(p.roi)}{flag}"
        )


async def _print_market(config: AppConfig, query: str, limit: int) -> int:
    oracle = AlternativeMeOracle(
        config.market_data, TickerCache(config.market_data.cache_ttl_seconds)
    )
    entries = await oracle.search(query, limit=limit)
    if not entries:
        print("No market data available.", file=sys.stderr)
        return 1

    for e in entries:
        print(
            f"#{e.rank:<4} {e.symbol:<6} {e.name[:18]:<18} "
            f"${format_price(e.price):>14} "
            f"{format_percentage(e.percentage_change_24h):>8}  "
            f"cap {format_large_number(e.market_cap)}  "
            f"vol {format_large_number(e.volume_24h)}"
        )
    return 0


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command; returns the process exit status."""
    configure_logging(args.log_level)

    if args.command == "calc":
        _print_calculation(args)
        return 0
    if args.command == "pnl":
        _print_projection(args)
        return 0

    config = load_config(args.config)
    if args.command == "market":
        return await _print_market(config, args.query, args.limit)

    tracker = Tracker(config)

    if args.command == "add":
        outcome = await tracker.add_position(
            args.symbol, args.entry_price, args.leverage, args.position_type,
            args.position_size,
        )
    elif args.command == "close":
        outcome = await tracker.close_position(
            args.position_id, args.exit_price, CloseReason(args.reason), args.notes
        )
    elif args.command == "remove":
        outcome = await tracker.remove_position(args.position_id)
    elif args.command == "list":
        print(tracker.build_report())
        return 0
    elif args.command == "refresh":
        result = await tracker.refresh()
        return 1 if result.batch_failed else 0
    elif args.command == "report":
        print(await tracker.generate_report())
        return 0
    elif args.command == "monitor":
        await tracker.run_continuous(args.interval)
        return 0
    else:
        build_parser().print_help()
        return 1

    if outcome.ok:
        print(tracker.format_position(outcome.position))
        return 0
    print(f"Error: {outcome.error}", file=sys.stderr)
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        status = asyncio.run(_run(args))
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        status = 1
    sys.exit(status)
