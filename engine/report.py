"""End-of-run pool report and balance curve analytics."""

from dataclasses import dataclass, field

import numpy as np

from engine.ledger import PositionLedger
from engine.pool import PoolAccount


@dataclass
class PoolReport:
    """Summary of a backtest run for one instrument."""

    instrument: str = ""

    # Pool
    initial_balance: float = 0.0
    final_balance: float = 0.0
    total_interest_earned_by_pool: float = 0.0
    total_loss_borne_by_pool: float = 0.0
    overall_profit: float = 0.0

    # Users
    total_user_gross_profit: float = 0.0
    total_interest_paid_by_users: float = 0.0
    total_user_net_profit: float = 0.0

    # Diagnostics
    trades_processed: int = 0
    direction_counts: dict[str, int] = field(default_factory=dict)
    opens_rejected: int = 0
    over_close_size: float = 0.0
    open_positions: int = 0
    open_size: float = 0.0

    # Balance curve
    min_balance: float = 0.0
    max_drawdown_pct: float = 0.0


def compute_drawdown(balance_curve: np.ndarray) -> tuple[np.ndarray, float]:
    """Compute drawdown series and max drawdown % of the pool balance.

    Returns: (drawdown_series, max_dd_pct)
    """
    if len(balance_curve) == 0:
        return np.zeros(0), 0.0

    peak = np.maximum.accumulate(balance_curve)
    dd = np.where(peak > 0, (balance_curve - peak) / peak, 0.0)
    max_dd_pct = float(abs(dd.min())) * 100
    return dd, max_dd_pct


def build_report(
    instrument: str,
    account: PoolAccount,
    ledger: PositionLedger,
    balance_curve: np.ndarray,
    run_totals: dict[str, float],
    direction_counts: dict[str, int],
    opens_rejected: int = 0,
    over_close_size: float = 0.0,
) -> PoolReport:
    """Assemble the report from the final account state and run totals.

    run_totals holds the per-close results folded by the engine:
    ``user_gross_profit``, ``user_net_profit`` and ``interest_paid``.
    """
    _, max_dd_pct = compute_drawdown(balance_curve)
    min_balance = (
        float(balance_curve.min()) if len(balance_curve) > 0
        else account.initial_balance
    )

    return PoolReport(
        instrument=instrument,
        initial_balance=account.initial_balance,
        final_balance=account.balance,
        total_interest_earned_by_pool=account.cumulative_interest_collected,
        total_loss_borne_by_pool=account.cumulative_loss,
        overall_profit=account.balance - account.initial_balance,
        total_user_gross_profit=run_totals.get("user_gross_profit", 0.0),
        total_interest_paid_by_users=run_totals.get("interest_paid", 0.0),
        total_user_net_profit=run_totals.get("user_net_profit", 0.0),
        trades_processed=sum(direction_counts.values()),
        direction_counts=dict(direction_counts),
        opens_rejected=opens_rejected,
        over_close_size=over_close_size,
        open_positions=len(ledger),
        open_size=ledger.total_open_size,
        min_balance=min_balance,
        max_drawdown_pct=max_dd_pct,
    )
