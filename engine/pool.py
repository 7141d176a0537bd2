"""Lending pool accounting: financing opens, settling closes."""

import logging
from dataclasses import dataclass
from typing import Optional

from config import PoolConfig
from engine.events import EventLog
from engine.fill_log import FillLog
from engine.interest import compute_interest, days_held
from engine.ledger import PositionLedger, Position
from engine.types import Trade

logger = logging.getLogger(__name__)


@dataclass
class CloseResult:
    """Outcome of a single close event, summed over its chunks."""
    user_gross_profit: float = 0.0
    user_net_profit: float = 0.0
    interest_paid: float = 0.0
    matched_size: float = 0.0
    unmatched_size: float = 0.0
    pool_loss: float = 0.0
    n_chunks: int = 0


class PoolAccount:
    """Pool balance and cumulative totals for one backtest run.

    The pool pays the full notional of every long it finances. On close
    it recovers at most the original cost plus interest; any shortfall is
    a pool loss, any excess is user profit.
    """

    def __init__(
        self,
        pool_config: PoolConfig,
        ledger: PositionLedger,
        fill_log: FillLog,
        event_log: Optional[EventLog] = None,
    ) -> None:
        self._ledger = ledger
        self._fill_log = fill_log
        self._event_log = event_log
        self._daily_rate: float = pool_config.daily_interest_rate

        self._initial_balance: float = pool_config.initial_balance
        self._balance: float = pool_config.initial_balance
        self._cumulative_loss: float = 0.0
        self._cumulative_interest: float = 0.0
        self._cumulative_gross_profit: float = 0.0

    @property
    def initial_balance(self) -> float:
        return self._initial_balance

    @property
    def balance(self) -> float:
        return self._balance

    @property
    def cumulative_loss(self) -> float:
        return self._cumulative_loss

    @property
    def cumulative_interest_collected(self) -> float:
        return self._cumulative_interest

    @property
    def cumulative_user_gross_profit(self) -> float:
        return self._cumulative_gross_profit

    @property
    def cumulative_user_net_profit(self) -> float:
        """Gross profit minus interest, derived so the identity always holds."""
        return self._cumulative_gross_profit - self._cumulative_interest

    def open_long(self, trade: Trade) -> bool:
        """Finance a long. Returns False if the pool cannot cover the cost.

        A rejected open is dropped for good: no position, no balance change.
        An open with no size finances nothing and is skipped the same way.
        """
        if trade.size <= 0:
            logger.debug(
                "Ignoring zero-size %s open at %s", trade.instrument, trade.time,
            )
            if self._event_log is not None:
                self._event_log.ignored(trade, reason="zero_size")
            return False

        cost = trade.price * trade.size
        if self._balance < cost:
            logger.warning(
                "Insufficient liquidity for %s open at %s: cost %.2f, balance %.2f",
                trade.instrument, trade.time, cost, self._balance,
            )
            if self._event_log is not None:
                self._event_log.rejected(trade, cost=cost, balance=self._balance)
            return False

        self._balance -= cost
        self._ledger.push(Position(
            remaining_size=trade.size,
            open_price=trade.price,
            open_time=trade.time,
        ))
        logger.debug(
            "Opened long %s: %s @ %s, cost %.2f",
            trade.instrument, trade.size, trade.price, cost,
        )

        if self._event_log is not None:
            self._event_log.opened(trade, cost=cost, balance=self._balance)
        return True

    def close_long(self, trade: Trade) -> CloseResult:
        """Settle a close against the oldest open positions first."""
        matches, unmatched = self._ledger.match_close(trade.size, trade.time)
        result = CloseResult(unmatched_size=unmatched, n_chunks=len(matches))

        for match in matches:
            interest = compute_interest(
                match.open_price, match.chunk_size, match.open_time,
                trade.time, self._daily_rate,
            )
            fill = self._fill_log.record(
                instrument=trade.instrument,
                open_time=match.open_time,
                close_time=trade.time,
                open_price=match.open_price,
                close_price=trade.price,
                chunk_size=match.chunk_size,
                days_held=days_held(match.open_time, trade.time),
                interest=interest,
            )

            self._balance += fill.to_pool + interest

            result.matched_size += match.chunk_size
            result.user_gross_profit += fill.user_profit
            result.interest_paid += interest
            result.pool_loss += fill.pool_loss

        result.user_net_profit = result.user_gross_profit - result.interest_paid

        self._cumulative_gross_profit += result.user_gross_profit
        self._cumulative_interest += result.interest_paid
        self._cumulative_loss += result.pool_loss

        if matches:
            logger.debug(
                "Closed long %s: %s @ %s, interest %.2f, pool loss %.2f, "
                "user gross %.2f, user net %.2f",
                trade.instrument, result.matched_size, trade.price,
                result.interest_paid, result.pool_loss,
                result.user_gross_profit, result.user_net_profit,
            )
            if self._event_log is not None:
                self._event_log.closed(
                    trade,
                    matched_size=result.matched_size,
                    interest=result.interest_paid,
                    pool_loss=result.pool_loss,
                    balance=self._balance,
                )

        if unmatched > 0:
            logger.warning(
                "Close of %s %s exceeds open positions. Excess: %s",
                trade.size, trade.instrument, unmatched,
            )
            if self._event_log is not None:
                self._event_log.over_closed(trade, excess=unmatched)

        return result
