"""Trade history sanitizer: coin filter, direction split, CSV export."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from config import DEFAULT_TIME_FORMAT
from data.loader import load_trades
from engine.types import Direction, Trade

logger = logging.getLogger(__name__)

EXPORT_FILES = {
    Direction.OPEN_LONG: "open_long_trades.csv",
    Direction.CLOSE_LONG: "close_long_trades.csv",
    Direction.OPEN_SHORT: "open_short_trades.csv",
    Direction.CLOSE_SHORT: "close_short_trades.csv",
    Direction.OTHER: "other_trades.csv",
}

EXPORT_HEADER = [
    "Time", "Coin", "Direction", "Price", "Size", "Notional", "Fee", "Closed PnL",
]


@dataclass
class PartitionSummary:
    """Counts and size totals per direction category."""
    counts: dict[str, int] = field(default_factory=dict)
    sizes: dict[str, float] = field(default_factory=dict)
    open_size: float = 0.0
    close_size: float = 0.0
    size_mismatch: bool = False

    @property
    def size_difference(self) -> float:
        return abs(self.open_size - self.close_size)


def filter_coins(
    trades: Iterable[Trade],
    coins: Optional[Iterable[str]] = None,
) -> list[Trade]:
    """Keep trades whose instrument is in ``coins``. No filter if empty."""
    trades = list(trades)
    if not coins:
        return trades
    wanted = set(coins)
    return [t for t in trades if t.instrument in wanted]


def partition_trades(
    trades: Iterable[Trade],
    coins: Optional[Iterable[str]] = None,
) -> dict[Direction, list[Trade]]:
    """Split trades by direction category, preserving input order."""
    partition: dict[Direction, list[Trade]] = {d: [] for d in Direction}
    for trade in filter_coins(trades, coins):
        partition[trade.direction].append(trade)
    return partition


def summarize_partition(
    partition: dict[Direction, list[Trade]],
    tolerance: float = 0.0001,
) -> PartitionSummary:
    """Total sizes per category and flag an open/close size mismatch.

    Longs and shorts are pooled: total opened size is compared with total
    closed size, within ``tolerance`` for float noise.
    """
    summary = PartitionSummary()
    for direction, trades in partition.items():
        summary.counts[direction.value] = len(trades)
        summary.sizes[direction.value] = sum(t.size for t in trades)

    summary.open_size = (
        summary.sizes[Direction.OPEN_LONG.value]
        + summary.sizes[Direction.OPEN_SHORT.value]
    )
    summary.close_size = (
        summary.sizes[Direction.CLOSE_LONG.value]
        + summary.sizes[Direction.CLOSE_SHORT.value]
    )
    summary.size_mismatch = summary.size_difference > tolerance
    return summary


def trades_to_dataframe(
    trades: list[Trade],
    time_format: str = DEFAULT_TIME_FORMAT,
) -> pd.DataFrame:
    """Render trades with the export header and the input time format."""
    if not trades:
        return pd.DataFrame(columns=EXPORT_HEADER)
    return pd.DataFrame([
        {
            "Time": t.time.strftime(time_format),
            "Coin": t.instrument,
            "Direction": t.raw_direction,
            "Price": t.price,
            "Size": t.size,
            "Notional": t.notional,
            "Fee": t.fee,
            "Closed PnL": t.closed_pnl,
        }
        for t in trades
    ])


def write_partition(
    partition: dict[Direction, list[Trade]],
    output_dir: str | Path = "output",
    time_format: str = DEFAULT_TIME_FORMAT,
) -> dict[Direction, Path]:
    """Write one CSV per direction category. Creates ``output_dir``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written: dict[Direction, Path] = {}
    for direction, filename in EXPORT_FILES.items():
        path = output_dir / filename
        df = trades_to_dataframe(partition.get(direction, []), time_format)
        df.to_csv(path, index=False)
        written[direction] = path
        logger.info("Wrote %d trades to %s", len(df), path)
    return written


def sanitize(
    path: str | Path,
    coins: Optional[Iterable[str]] = None,
    output_dir: str | Path = "output",
    time_format: str = DEFAULT_TIME_FORMAT,
    tolerance: float = 0.0001,
) -> PartitionSummary:
    """Load, filter, split and export a trade history file."""
    trades = load_trades(path, time_format=time_format)
    logger.info("Total formatted trades: %d", len(trades))

    coins = list(coins) if coins else []
    partition = partition_trades(trades, coins)
    if coins:
        logger.info(
            "Filtered trades for coins %s: %d remain",
            ", ".join(coins), sum(len(v) for v in partition.values()),
        )

    summary = summarize_partition(partition, tolerance)
    for direction in Direction:
        logger.info(
            "%s trades: %d, total size: %.4f", direction.value,
            summary.counts[direction.value], summary.sizes[direction.value],
        )

    if summary.size_mismatch:
        logger.warning(
            "Mismatch between open and close sizes: open %.4f, close %.4f, "
            "difference %.4f",
            summary.open_size, summary.close_size, summary.size_difference,
        )
    else:
        logger.info("Open and close trade sizes match: %.4f", summary.open_size)

    write_partition(partition, output_dir, time_format)
    return summary
