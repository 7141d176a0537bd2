"""Pool diagnostics recorded while replaying trades.

Each record carries the figures that explain it: a rejected open keeps the
cost it asked for and the balance that could not cover it, an over-close
keeps the size that had no open position behind it. Run-level counters in
the report are read back from these records.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import pandas as pd

from engine.types import Trade


class EventType(str, Enum):
    POSITION_OPENED = "POSITION_OPENED"
    POSITION_CLOSED = "POSITION_CLOSED"
    INSUFFICIENT_LIQUIDITY = "INSUFFICIENT_LIQUIDITY"
    OVER_CLOSE = "OVER_CLOSE"
    TRADE_IGNORED = "TRADE_IGNORED"


EVENT_COLUMNS = [
    "type", "time", "instrument", "direction", "size", "price", "cost",
    "balance", "interest", "pool_loss", "excess", "reason",
]


@dataclass(frozen=True)
class PoolEvent:
    """One diagnostic tied to the trade that caused it."""

    type: EventType
    time: pd.Timestamp
    instrument: str
    direction: str
    size: float  # size on the trade, or the matched size for a close
    price: float

    cost: float = 0.0  # notional financed, or requested when rejected
    balance: float = math.nan  # pool balance once the event is applied
    interest: float = 0.0
    pool_loss: float = 0.0
    excess: float = 0.0  # close size with no open position behind it
    reason: str = ""


class EventLog:
    """Append-only record of what the pool did with each trade."""

    def __init__(self) -> None:
        self._events: list[PoolEvent] = []

    def _append(self, event_type: EventType, trade: Trade, **fields) -> PoolEvent:
        fields.setdefault("size", trade.size)
        event = PoolEvent(
            type=event_type,
            time=trade.time,
            instrument=trade.instrument,
            direction=trade.direction.value,
            price=trade.price,
            **fields,
        )
        self._events.append(event)
        return event

    def opened(self, trade: Trade, cost: float, balance: float) -> PoolEvent:
        return self._append(
            EventType.POSITION_OPENED, trade, cost=cost, balance=balance,
        )

    def rejected(self, trade: Trade, cost: float, balance: float) -> PoolEvent:
        """Open the pool could not finance. The balance is left untouched."""
        return self._append(
            EventType.INSUFFICIENT_LIQUIDITY, trade, cost=cost, balance=balance,
        )

    def closed(
        self,
        trade: Trade,
        matched_size: float,
        interest: float,
        pool_loss: float,
        balance: float,
    ) -> PoolEvent:
        return self._append(
            EventType.POSITION_CLOSED, trade,
            size=matched_size, interest=interest, pool_loss=pool_loss,
            balance=balance,
        )

    def over_closed(self, trade: Trade, excess: float) -> PoolEvent:
        return self._append(EventType.OVER_CLOSE, trade, excess=excess)

    def ignored(self, trade: Trade, reason: str) -> PoolEvent:
        return self._append(EventType.TRADE_IGNORED, trade, reason=reason)

    def get_events(self, event_type: Optional[EventType] = None) -> list[PoolEvent]:
        if event_type is None:
            return list(self._events)
        return [e for e in self._events if e.type == event_type]

    @property
    def opens_rejected(self) -> int:
        return len(self.get_events(EventType.INSUFFICIENT_LIQUIDITY))

    @property
    def over_close_size(self) -> float:
        """Total close size that found no open position."""
        return sum(e.excess for e in self.get_events(EventType.OVER_CLOSE))

    @property
    def financed_cost(self) -> float:
        """Total notional the pool paid out for accepted opens."""
        return sum(e.cost for e in self.get_events(EventType.POSITION_OPENED))

    def to_dataframe(self) -> pd.DataFrame:
        """One row per event, enum values as plain strings."""
        if not self._events:
            return pd.DataFrame(columns=EVENT_COLUMNS)
        rows = []
        for e in self._events:
            row = {col: getattr(e, col) for col in EVENT_COLUMNS}
            row["type"] = e.type.value
            rows.append(row)
        return pd.DataFrame(rows, columns=EVENT_COLUMNS)

    def __len__(self) -> int:
        return len(self._events)
