"""Borrowing interest charged on matched close chunks."""

import math

import pandas as pd

DEFAULT_DAILY_RATE = 0.01
_ONE_DAY = pd.Timedelta(days=1)


def days_held(open_time: pd.Timestamp, close_time: pd.Timestamp) -> int:
    """Whole calendar days between open and close, rounded up.

    Any started day is billed as a full day; zero elapsed time is zero days.
    """
    elapsed = close_time - open_time
    if elapsed < pd.Timedelta(0):
        raise ValueError(
            f"Close time {close_time} precedes open time {open_time}"
        )
    return math.ceil(elapsed / _ONE_DAY)


def compute_interest(
    open_price: float,
    closed_size: float,
    open_time: pd.Timestamp,
    close_time: pd.Timestamp,
    daily_rate: float = DEFAULT_DAILY_RATE,
) -> float:
    """Simple (non-compounding) interest on the notional at open.

    interest = open_price * closed_size * daily_rate * days_held
    """
    return open_price * closed_size * daily_rate * days_held(open_time, close_time)
