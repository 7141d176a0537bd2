"""Command-line entry point.

Usage:
    python main.py backtest --coin ETH --trades data/trades.csv
    python main.py sanitize --coins ETH BTC
"""

import argparse
import logging
import sys
from pathlib import Path

from config import load_config
from data.loader import load_trades
from data.sanitizer import sanitize
from engine.backtester import run_backtest
from reporting.summary import print_summary

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lending pool backtester")
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every fill")
    sub = parser.add_subparsers(dest="command", required=True)

    bt = sub.add_parser("backtest", help="Replay trades against the pool")
    bt.add_argument("--coin", help="Instrument to backtest (overrides config)")
    bt.add_argument("--trades", help="Trade history file (overrides config)")
    bt.add_argument("--fills-csv", help="Write matched close chunks to this CSV")
    bt.add_argument("--chart", help="Write the pool balance chart to this HTML file")

    sz = sub.add_parser("sanitize", help="Split trades by direction into CSVs")
    sz.add_argument("--trades", help="Trade history file (overrides config)")
    sz.add_argument("--coins", nargs="*", help="Only keep these coins")
    sz.add_argument("--output-dir", help="Export directory (overrides config)")
    return parser


def _run_backtest(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    if args.coin:
        config.backtest.target_instrument = args.coin
    trades_file = args.trades or config.data.trades_file

    trades = load_trades(trades_file, time_format=config.data.time_format)
    result = run_backtest(config, trades)
    print_summary(result)

    if args.fills_csv:
        result.fills.to_csv(args.fills_csv, index=False)
        logger.info("Fills written to %s", args.fills_csv)
    if args.chart:
        from reporting.charts import create_balance_chart
        create_balance_chart(result).write_html(args.chart)
        logger.info("Chart written to %s", args.chart)
    return 0


def _run_sanitize(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    coins = args.coins if args.coins is not None else config.sanitize.coins
    sanitize(
        args.trades or config.data.trades_file,
        coins=coins,
        output_dir=Path(args.output_dir or config.data.output_dir),
        time_format=config.data.time_format,
        tolerance=config.sanitize.size_tolerance,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "backtest":
        return _run_backtest(args)
    return _run_sanitize(args)


if __name__ == "__main__":
    sys.exit(main())
