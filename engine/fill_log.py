"""Journal of matched close chunks."""

from dataclasses import dataclass

import pandas as pd

FILL_COLUMNS = [
    "fill_id", "instrument", "open_time", "close_time", "open_price",
    "close_price", "chunk_size", "days_held", "closing_value",
    "initial_cost", "to_pool", "interest", "user_profit", "pool_loss",
    "outcome",
]


@dataclass
class FillRecord:
    """Accounting of one close chunk against one open position."""

    fill_id: int
    instrument: str

    open_time: pd.Timestamp
    close_time: pd.Timestamp
    open_price: float
    close_price: float
    chunk_size: float
    days_held: int

    # Value split
    closing_value: float  # close_price * chunk_size
    initial_cost: float  # open_price * chunk_size
    to_pool: float  # min(closing_value, initial_cost)
    interest: float
    user_profit: float  # max(0, closing_value - initial_cost)
    pool_loss: float  # max(0, initial_cost - closing_value)

    outcome: str = ""  # PROFIT, LOSS, FLAT


def classify_outcome(user_profit: float, pool_loss: float) -> str:
    """Classify a chunk as PROFIT (user gain), LOSS (pool loss) or FLAT."""
    if user_profit > 0:
        return "PROFIT"
    if pool_loss > 0:
        return "LOSS"
    return "FLAT"


class FillLog:
    """Accumulates FillRecords during a backtest."""

    def __init__(self) -> None:
        self._fills: list[FillRecord] = []

    def record(
        self,
        instrument: str,
        open_time: pd.Timestamp,
        close_time: pd.Timestamp,
        open_price: float,
        close_price: float,
        chunk_size: float,
        days_held: int,
        interest: float,
    ) -> FillRecord:
        """Record a matched chunk and derive its value split."""
        closing_value = close_price * chunk_size
        initial_cost = chunk_size * open_price
        user_profit = max(0.0, closing_value - initial_cost)
        pool_loss = max(0.0, initial_cost - closing_value)

        fill = FillRecord(
            fill_id=len(self._fills),
            instrument=instrument,
            open_time=open_time,
            close_time=close_time,
            open_price=open_price,
            close_price=close_price,
            chunk_size=chunk_size,
            days_held=days_held,
            closing_value=closing_value,
            initial_cost=initial_cost,
            to_pool=min(closing_value, initial_cost),
            interest=interest,
            user_profit=user_profit,
            pool_loss=pool_loss,
            outcome=classify_outcome(user_profit, pool_loss),
        )
        self._fills.append(fill)
        return fill

    def get_fill(self, fill_id: int) -> FillRecord:
        """Get fill by ID."""
        if fill_id < 0 or fill_id >= len(self._fills):
            raise KeyError(f"Fill {fill_id} not found")
        return self._fills[fill_id]

    def get_fills(self) -> list[FillRecord]:
        return list(self._fills)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert all fills to DataFrame."""
        if not self._fills:
            return pd.DataFrame(columns=FILL_COLUMNS)
        return pd.DataFrame([
            {col: getattr(f, col) for col in FILL_COLUMNS}
            for f in self._fills
        ])

    def to_csv(self, path: str) -> None:
        """Export fill log to CSV."""
        df = self.to_dataframe()
        df.to_csv(path, index=False)

    def __len__(self) -> int:
        return len(self._fills)
