"""Main backtest orchestrator: trade-by-trade replay of the lending pool."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from config import Config
from engine.events import EventLog
from engine.fill_log import FillLog
from engine.ledger import PositionLedger
from engine.pool import PoolAccount
from engine.report import PoolReport, build_report
from engine.types import Direction, Trade

logger = logging.getLogger(__name__)


@dataclass
class BacktestResult:
    """Complete output of a backtest run."""
    report: PoolReport
    fills: pd.DataFrame
    events: pd.DataFrame
    balance_curve: np.ndarray
    timestamps: pd.DatetimeIndex
    config: Config


class Backtester:
    """Replays a time-sorted trade sequence against a fresh lending pool.

    Every call to run() builds its own ledger, account and logs, so the
    same Backtester can be reused and repeated runs never share state.
    """

    def __init__(self, config: Config) -> None:
        self._config = config
        self._ledger: Optional[PositionLedger] = None
        self._account: Optional[PoolAccount] = None
        self._fill_log: Optional[FillLog] = None
        self._event_log: Optional[EventLog] = None
        self._totals: dict[str, float] = {}
        self._direction_counts: dict[str, int] = {}

    def run(
        self,
        trades: Iterable[Trade],
        instrument: Optional[str] = None,
    ) -> BacktestResult:
        """Execute the full backtest for one instrument."""
        target = instrument or self._config.backtest.target_instrument
        if not target:
            raise ValueError("No target instrument configured")

        # 1. Fresh state for this run
        self._ledger = PositionLedger()
        self._fill_log = FillLog()
        self._event_log = EventLog()
        self._account = PoolAccount(
            pool_config=self._config.pool,
            ledger=self._ledger,
            fill_log=self._fill_log,
            event_log=self._event_log,
        )
        self._totals = {
            "user_gross_profit": 0.0,
            "user_net_profit": 0.0,
            "interest_paid": 0.0,
        }
        self._direction_counts = {d.value: 0 for d in Direction}

        balances: list[float] = [self._account.balance]
        times: list[pd.Timestamp] = []

        # 2. Main loop
        for trade in trades:
            if trade.instrument != target:
                continue
            self._process_trade(trade)
            balances.append(self._account.balance)
            times.append(trade.time)

        # 3. Assemble report
        balance_curve = np.asarray(balances, dtype=np.float64)
        report = build_report(
            instrument=target,
            account=self._account,
            ledger=self._ledger,
            balance_curve=balance_curve,
            run_totals=self._totals,
            direction_counts=self._direction_counts,
            opens_rejected=self._event_log.opens_rejected,
            over_close_size=self._event_log.over_close_size,
        )
        logger.info(
            "Backtest %s: %d trades, final balance %.2f, overall profit %.2f",
            target, report.trades_processed, report.final_balance,
            report.overall_profit,
        )

        return BacktestResult(
            report=report,
            fills=self._fill_log.to_dataframe(),
            events=self._event_log.to_dataframe(),
            # First point is the initial balance, before any trade
            balance_curve=balance_curve,
            timestamps=pd.DatetimeIndex(times),
            config=self._config,
        )

    def _process_trade(self, trade: Trade) -> None:
        """Dispatch a single target-instrument trade by direction."""
        self._direction_counts[trade.direction.value] += 1

        if trade.direction == Direction.OPEN_LONG:
            self._account.open_long(trade)

        elif trade.direction == Direction.CLOSE_LONG:
            result = self._account.close_long(trade)
            self._totals["user_gross_profit"] += result.user_gross_profit
            self._totals["user_net_profit"] += result.user_net_profit
            self._totals["interest_paid"] += result.interest_paid

        else:
            # Shorts and other fills are counted but never touch the pool
            self._event_log.ignored(trade, reason="not_a_long")


def run_backtest(
    config: Config,
    trades: Iterable[Trade],
    instrument: Optional[str] = None,
) -> BacktestResult:
    """Convenience entry point.

    Usage:
        from config import load_config
        from data.loader import load_trades
        from engine.backtester import run_backtest

        config = load_config()
        trades = load_trades(config.data.trades_file)
        result = run_backtest(config, trades)
    """
    return Backtester(config).run(trades, instrument)
