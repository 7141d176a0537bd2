"""Backtest engine: FIFO ledger, interest accrual and lending pool accounting."""

from engine.backtester import run_backtest, Backtester, BacktestResult
from engine.ledger import PositionLedger, Position, Match
from engine.interest import compute_interest, days_held
from engine.pool import PoolAccount, CloseResult
from engine.fill_log import FillLog, FillRecord
from engine.report import PoolReport, build_report
from engine.events import EventLog, EventType, PoolEvent
from engine.types import Direction, Trade

__all__ = [
    "run_backtest",
    "Backtester",
    "BacktestResult",
    "PositionLedger",
    "Position",
    "Match",
    "compute_interest",
    "days_held",
    "PoolAccount",
    "CloseResult",
    "FillLog",
    "FillRecord",
    "PoolReport",
    "build_report",
    "EventLog",
    "EventType",
    "PoolEvent",
    "Direction",
    "Trade",
]
