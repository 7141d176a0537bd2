"""Shared test fixtures for the lending pool backtester."""

import sys
from pathlib import Path

import pandas as pd
import pytest

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from engine.types import Direction, Trade  # noqa: E402

T0 = pd.Timestamp("2024-01-01 10:00")


def make_trade(
    direction: Direction,
    price: float,
    size: float,
    time: pd.Timestamp = T0,
    instrument: str = "ETH",
) -> Trade:
    return Trade(
        time=time,
        instrument=instrument,
        direction=direction,
        price=price,
        size=size,
    )


@pytest.fixture
def raw_trades_df() -> pd.DataFrame:
    """A raw export as the spreadsheet tool writes it (all text, unsorted)."""
    return pd.DataFrame({
        "time": [
            "03/01/2024 - 10:00:00",
            "01/01/2024 - 10:00:00",
            "02/01/2024 - 09:30:00",
            "02/01/2024 - 12:00:00",
            "04/01/2024 - 08:00:00",
        ],
        "coin": ["ETH", "ETH", "BTC", "ETH", "ETH"],
        "dir": ["Close Long", "Open Long", "Open Short", "Open Long", "Settlement"],
        "px": ["110", "100", "42000", "105.5", "0"],
        "sz": ["10", "10", "0.5", "4", "0"],
        "ntl": ["1100", "1000", "21000", "422", "0"],
        "fee": ["0.5", "0.4", "8.4", "0.2", "0"],
        "closedPnl": ["100", "0", "0", "0", "0"],
    })
