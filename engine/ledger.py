"""FIFO ledger of open long positions for a single instrument."""

from collections import deque
from dataclasses import dataclass
from typing import Iterator, Optional

import pandas as pd

# Sizes at or below this are float residue from subtracting chunk sizes
SIZE_EPSILON = 1e-12


@dataclass
class Position:
    """An open long position. Only the ledger mutates remaining_size."""
    remaining_size: float
    open_price: float
    open_time: pd.Timestamp


@dataclass(frozen=True)
class Match:
    """Portion of a close request matched against one open position."""
    chunk_size: float
    open_price: float
    open_time: pd.Timestamp


class PositionLedger:
    """Queue of open positions, always closed oldest first.

    Positions are matched in strict opening order regardless of price.
    A position leaves the queue the moment its remaining size drops to
    SIZE_EPSILON or below, so every position held here has a real size.
    """

    def __init__(self) -> None:
        self._positions: deque[Position] = deque()

    def push(self, position: Position) -> None:
        """Append a newly opened position to the tail."""
        if position.remaining_size <= 0:
            raise ValueError(
                f"Position size must be positive, got {position.remaining_size}"
            )
        self._positions.append(position)

    def match_close(
        self,
        requested_size: float,
        close_time: pd.Timestamp,
    ) -> tuple[list[Match], float]:
        """Consume open size from the head of the queue.

        Returns (matches, unmatched_size). Never raises when the request
        exceeds the open size: whatever could not be matched comes back as
        unmatched_size.
        """
        matches: list[Match] = []
        remaining = requested_size

        while remaining > SIZE_EPSILON and self._positions:
            head = self._positions[0]
            chunk = min(remaining, head.remaining_size)

            head.remaining_size -= chunk
            remaining -= chunk
            matches.append(Match(
                chunk_size=chunk,
                open_price=head.open_price,
                open_time=head.open_time,
            ))

            if head.remaining_size <= SIZE_EPSILON:
                self._positions.popleft()

        return matches, remaining if remaining > SIZE_EPSILON else 0.0

    def peek(self) -> Optional[Position]:
        """Return the oldest live position without removing it."""
        if not self._positions:
            return None
        return self._positions[0]

    @property
    def total_open_size(self) -> float:
        return sum(p.remaining_size for p in self._positions)

    def __iter__(self) -> Iterator[Position]:
        return iter(self._positions)

    def __len__(self) -> int:
        return len(self._positions)
