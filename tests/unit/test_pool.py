"""Unit tests for engine.pool module."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pandas as pd
import pytest

from config import PoolConfig
from engine.events import EventLog, EventType
from engine.fill_log import FillLog
from engine.ledger import PositionLedger
from engine.pool import PoolAccount
from engine.types import Direction
from tests.conftest import T0, make_trade

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------
POOL_CONFIG = PoolConfig(initial_balance=1_000_000.0, daily_interest_rate=0.01)

ONE_DAY = pd.Timedelta(days=1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _make_account(
    config: PoolConfig = POOL_CONFIG,
) -> tuple[PoolAccount, PositionLedger, FillLog, EventLog]:
    """Create a PoolAccount with fresh ledger and logs."""
    ledger = PositionLedger()
    fill_log = FillLog()
    event_log = EventLog()
    account = PoolAccount(
        pool_config=config,
        ledger=ledger,
        fill_log=fill_log,
        event_log=event_log,
    )
    return account, ledger, fill_log, event_log


def _open(account: PoolAccount, price: float, size: float, time=T0) -> bool:
    return account.open_long(make_trade(Direction.OPEN_LONG, price, size, time))


def _close(account: PoolAccount, price: float, size: float, time):
    return account.close_long(make_trade(Direction.CLOSE_LONG, price, size, time))


# ---------------------------------------------------------------------------
# open_long
# ---------------------------------------------------------------------------
class TestOpenLong:
    def test_open_debits_cost_and_pushes_position(self):
        account, ledger, _, event_log = _make_account()

        assert _open(account, price=100.0, size=10.0) is True

        assert account.balance == pytest.approx(999_000.0)
        assert len(ledger) == 1
        position = ledger.peek()
        assert position.remaining_size == 10.0
        assert position.open_price == 100.0
        assert position.open_time == T0

        events = event_log.get_events()
        assert len(events) == 1
        assert events[0].type == EventType.POSITION_OPENED
        assert events[0].cost == pytest.approx(1000.0)
        assert events[0].balance == pytest.approx(999_000.0)

    def test_open_exactly_equal_to_balance_is_accepted(self):
        account, ledger, _, _ = _make_account(PoolConfig(initial_balance=1000.0))
        assert _open(account, price=100.0, size=10.0) is True
        assert account.balance == 0
        assert len(ledger) == 1

    def test_insufficient_liquidity_rejects_open(self):
        account, ledger, _, event_log = _make_account(PoolConfig(initial_balance=500.0))

        assert _open(account, price=100.0, size=10.0) is False

        assert account.balance == 500.0
        assert len(ledger) == 0
        rejected = event_log.get_events(EventType.INSUFFICIENT_LIQUIDITY)
        assert len(rejected) == 1
        assert rejected[0].cost == pytest.approx(1000.0)
        assert rejected[0].balance == 500.0

    def test_rejected_open_is_not_retried(self):
        account, ledger, _, _ = _make_account(PoolConfig(initial_balance=1000.0))
        assert _open(account, price=100.0, size=20.0) is False
        # Liquidity is available again, but the dropped open stays dropped
        assert _open(account, price=100.0, size=5.0) is True
        assert len(ledger) == 1
        assert ledger.total_open_size == 5.0

    def test_zero_size_open_is_ignored(self):
        account, ledger, _, event_log = _make_account()

        assert _open(account, price=100.0, size=0.0) is False

        assert account.balance == POOL_CONFIG.initial_balance
        assert len(ledger) == 0
        ignored = event_log.get_events(EventType.TRADE_IGNORED)
        assert len(ignored) == 1
        assert ignored[0].reason == "zero_size"
        assert event_log.get_events(EventType.POSITION_OPENED) == []

        # A later open is financed as usual
        assert _open(account, price=100.0, size=1.0, time=T0 + ONE_DAY) is True
        assert len(ledger) == 1

    def test_works_without_event_log(self):
        account = PoolAccount(POOL_CONFIG, PositionLedger(), FillLog())
        assert _open(account, price=100.0, size=1.0) is True
        assert account.balance == pytest.approx(999_900.0)


# ---------------------------------------------------------------------------
# close_long
# ---------------------------------------------------------------------------
class TestCloseLongProfit:
    def test_profitable_close(self):
        """10 @ 100 held two days, closed @ 110."""
        account, ledger, fill_log, event_log = _make_account()
        _open(account, price=100.0, size=10.0)

        result = _close(account, price=110.0, size=10.0, time=T0 + 2 * ONE_DAY)

        assert result.interest_paid == pytest.approx(20.0)
        assert result.user_gross_profit == pytest.approx(100.0)
        assert result.user_net_profit == pytest.approx(80.0)
        assert result.pool_loss == 0
        assert result.unmatched_size == 0
        assert account.balance == pytest.approx(1_000_020.0)
        assert len(ledger) == 0

        fill = fill_log.get_fill(0)
        assert fill.closing_value == pytest.approx(1100.0)
        assert fill.initial_cost == pytest.approx(1000.0)
        assert fill.to_pool == pytest.approx(1000.0)
        assert fill.days_held == 2
        assert fill.outcome == "PROFIT"

        closed = event_log.get_events(EventType.POSITION_CLOSED)
        assert len(closed) == 1
        assert closed[0].size == pytest.approx(10.0)
        assert closed[0].interest == pytest.approx(20.0)
        assert closed[0].balance == pytest.approx(1_000_020.0)


class TestCloseLongLoss:
    def test_losing_close_still_pays_interest(self):
        """5 @ 200 held one day, closed @ 150: pool loses 250, user owes 10."""
        account, _, fill_log, _ = _make_account()
        _open(account, price=200.0, size=5.0)
        balance_after_open = account.balance

        result = _close(account, price=150.0, size=5.0, time=T0 + ONE_DAY)

        assert result.interest_paid == pytest.approx(10.0)
        assert result.user_gross_profit == 0
        assert result.user_net_profit == pytest.approx(-10.0)
        assert result.pool_loss == pytest.approx(250.0)
        assert account.balance == pytest.approx(balance_after_open + 760.0)
        assert account.cumulative_loss == pytest.approx(250.0)

        fill = fill_log.get_fill(0)
        assert fill.to_pool == pytest.approx(750.0)
        assert fill.outcome == "LOSS"


class TestCloseAcrossPositions:
    def test_close_spans_chunks_fifo(self):
        account, ledger, fill_log, _ = _make_account()
        _open(account, price=100.0, size=4.0, time=T0)
        _open(account, price=120.0, size=6.0, time=T0 + ONE_DAY)

        result = _close(account, price=110.0, size=7.0, time=T0 + 3 * ONE_DAY)

        assert result.n_chunks == 2
        assert result.matched_size == pytest.approx(7.0)
        fills = fill_log.get_fills()
        # Chunk 1: 4 @ 100, held 3 days -> profit 40, interest 12
        assert fills[0].chunk_size == 4.0
        assert fills[0].user_profit == pytest.approx(40.0)
        assert fills[0].interest == pytest.approx(12.0)
        # Chunk 2: 3 @ 120, held 2 days -> loss 30, interest 7.2
        assert fills[1].chunk_size == 3.0
        assert fills[1].pool_loss == pytest.approx(30.0)
        assert fills[1].interest == pytest.approx(7.2)

        # Loss is booked per chunk, not netted against the other chunk's profit
        assert result.pool_loss == pytest.approx(30.0)
        assert result.user_gross_profit == pytest.approx(40.0)
        assert result.interest_paid == pytest.approx(19.2)
        assert ledger.total_open_size == pytest.approx(3.0)

    def test_chunk_value_conservation(self):
        account, _, fill_log, _ = _make_account()
        _open(account, price=100.0, size=2.0, time=T0)
        _open(account, price=90.0, size=2.0, time=T0)
        _open(account, price=130.0, size=2.0, time=T0)
        _close(account, price=110.0, size=6.0, time=T0 + ONE_DAY)

        for fill in fill_log.get_fills():
            if fill.closing_value >= fill.initial_cost:
                assert fill.to_pool + fill.user_profit == pytest.approx(fill.closing_value)
                assert fill.pool_loss == 0
            else:
                assert fill.to_pool == pytest.approx(fill.closing_value)
                assert fill.pool_loss == pytest.approx(fill.initial_cost - fill.closing_value)


class TestOverClose:
    def test_over_close_reports_excess_without_raising(self):
        account, ledger, _, event_log = _make_account()
        _open(account, price=100.0, size=5.0)

        result = _close(account, price=100.0, size=8.0, time=T0 + ONE_DAY)

        assert result.matched_size == pytest.approx(5.0)
        assert result.unmatched_size == pytest.approx(3.0)
        assert len(ledger) == 0
        over = event_log.get_events(EventType.OVER_CLOSE)
        assert len(over) == 1
        assert over[0].excess == pytest.approx(3.0)

    def test_close_with_nothing_open(self):
        account, _, fill_log, event_log = _make_account()
        result = _close(account, price=100.0, size=1.0, time=T0)

        assert result.n_chunks == 0
        assert result.user_net_profit == 0
        assert account.balance == POOL_CONFIG.initial_balance
        assert len(fill_log) == 0
        assert event_log.get_events(EventType.POSITION_CLOSED) == []
        assert len(event_log.get_events(EventType.OVER_CLOSE)) == 1


class TestCumulativeTotals:
    def test_net_profit_identity_holds_after_every_close(self):
        account, _, _, _ = _make_account()
        schedule = [
            (100.0, 10.0, 130.0, 2),
            (200.0, 5.0, 150.0, 1),
            (50.0, 8.0, 50.0, 4),
        ]
        for i, (open_px, size, close_px, days) in enumerate(schedule):
            opened_at = T0 + pd.Timedelta(days=10 * i)
            _open(account, open_px, size, opened_at)
            _close(account, close_px, size, opened_at + days * ONE_DAY)

            assert account.cumulative_user_net_profit == pytest.approx(
                account.cumulative_user_gross_profit
                - account.cumulative_interest_collected
            )

        assert account.cumulative_loss == pytest.approx(250.0)
        assert account.cumulative_user_gross_profit == pytest.approx(300.0)
