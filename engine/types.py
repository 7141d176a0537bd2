"""Shared types for the engine and data modules."""

from dataclasses import dataclass
from enum import Enum

import pandas as pd


class Direction(str, Enum):
    OPEN_LONG = "OPEN_LONG"
    CLOSE_LONG = "CLOSE_LONG"
    OPEN_SHORT = "OPEN_SHORT"
    CLOSE_SHORT = "CLOSE_SHORT"
    OTHER = "OTHER"


@dataclass(frozen=True)
class Trade:
    """A single normalized fill from the trade history export.

    Built only by the loader after the numeric and time fields have been
    validated; the engine never re-validates.
    """
    time: pd.Timestamp
    instrument: str
    direction: Direction
    price: float
    size: float

    # Passthrough columns, only used by the sanitizer export
    notional: float = float("nan")
    fee: float = float("nan")
    closed_pnl: float = float("nan")
    raw_direction: str = ""

    @property
    def cost(self) -> float:
        """Notional value of the fill (price * size)."""
        return self.price * self.size
