"""
Tests for the position ledger.
"""

import itertools

import pytest

from futures_replay.catalog.store import InstrumentCatalog
from futures_replay.domain.order import Direction
from futures_replay.domain.trade import TradeType
from futures_replay.replay.errors import LedgerInvariantError
from futures_replay.replay.ledger import PositionLedger


def assert_cash_identity(ledger: PositionLedger) -> None:
    """cash must equal initial + realized - fees at all times."""
    expected = ledger.initial_cash + ledger.realized_pnl - ledger.fees_paid
    assert ledger.cash == pytest.approx(expected)


# =============================================================================
# Opening and adding
# =============================================================================


class TestOpen:
    """Tests for opening positions."""

    def test_open_from_flat(self, ledger: PositionLedger) -> None:
        """A fill from flat opens a position and charges the fee."""
        outcome = ledger.apply_fill("rb2501", Direction.LONG, 2, 3300, 1000)

        position = ledger.get_position("rb2501")
        assert position is not None
        assert position.direction == Direction.LONG
        assert position.quantity == 2
        assert position.avg_price == 3300
        assert ledger.cash == pytest.approx(99990)
        assert outcome.fee == 10
        assert outcome.realized_pnl == 0
        assert [t.trade_type for t in outcome.trades] == [TradeType.OPEN]
        assert outcome.trades[0].pnl is None
        assert ledger.trade_count == 0

    def test_add_uses_weighted_average(self, ledger: PositionLedger) -> None:
        """Adding lots re-weights the average entry."""
        ledger.apply_fill("rb2501", Direction.LONG, 1, 100, 1)
        ledger.apply_fill("rb2501", Direction.LONG, 2, 130, 2)
        ledger.apply_fill("rb2501", Direction.LONG, 3, 90, 3)

        position = ledger.get_position("rb2501")
        assert position is not None
        assert position.quantity == 6
        assert position.avg_price == pytest.approx(105)

    def test_average_independent_of_fill_order(self, small_catalog: InstrumentCatalog) -> None:
        """The weighted average does not depend on how adds are ordered."""
        fills = [(1, 100.0), (2, 130.0), (3, 90.0)]
        for ordering in itertools.permutations(fills):
            ledger = PositionLedger(catalog=small_catalog, initial_cash=100000.0)
            for quantity, price in ordering:
                ledger.apply_fill("rb2501", Direction.SHORT, quantity, price, 1)
            position = ledger.get_position("rb2501")
            assert position is not None
            assert position.avg_price == pytest.approx(105)

    def test_trade_ids_are_sequential(self, ledger: PositionLedger) -> None:
        """Trade legs get increasing ids across fills."""
        ledger.apply_fill("rb2501", Direction.LONG, 1, 3300, 1)
        ledger.apply_fill("rb2501", Direction.SHORT, 3, 3310, 2)

        assert [t.id for t in ledger.history] == [1, 2, 3]


# =============================================================================
# Closing and reversing
# =============================================================================


class TestCloseAndReverse:
    """Tests for reducing, closing and reversing positions."""

    def test_reverse_example(self, ledger: PositionLedger) -> None:
        """Buy 2 @3300 then sell 3 @3350 closes 2 and opens 1 short."""
        ledger.apply_fill("rb2501", Direction.LONG, 2, 3300, 1)
        outcome = ledger.apply_fill("rb2501", Direction.SHORT, 3, 3350, 2)

        assert outcome.realized_pnl == pytest.approx(1000)
        assert outcome.fee == 15
        assert ledger.cash == pytest.approx(100975)
        assert ledger.trade_count == 1
        assert ledger.win_count == 1

        position = ledger.get_position("rb2501")
        assert position is not None
        assert position.direction == Direction.SHORT
        assert position.quantity == 1
        assert position.avg_price == 3350

        legs = [(t.trade_type, t.quantity, t.pnl) for t in outcome.trades]
        assert legs == [
            (TradeType.CLOSE, 2, pytest.approx(1000)),
            (TradeType.REVERSE, 1, None),
        ]
        assert sum(t.fee for t in outcome.trades) == outcome.fee
        assert outcome.closed_quantity == 2
        assert_cash_identity(ledger)

    def test_full_close_removes_position(self, ledger: PositionLedger) -> None:
        """Closing exactly the held quantity leaves the book flat."""
        ledger.apply_fill("rb2501", Direction.SHORT, 2, 3300, 1)
        outcome = ledger.apply_fill("rb2501", Direction.LONG, 2, 3320, 2)

        assert outcome.position is None
        assert not ledger.has_position("rb2501")
        assert outcome.realized_pnl == pytest.approx(-400)
        assert ledger.trade_count == 1
        assert ledger.win_count == 0

    def test_partial_close_keeps_average(self, ledger: PositionLedger) -> None:
        """Partial closes realize PnL and leave the average unchanged."""
        ledger.apply_fill("rb2501", Direction.LONG, 5, 3300, 1)
        ledger.apply_fill("rb2501", Direction.SHORT, 2, 3310, 2)

        position = ledger.get_position("rb2501")
        assert position is not None
        assert position.quantity == 3
        assert position.avg_price == 3300
        assert ledger.realized_pnl == pytest.approx(200)

    def test_pnl_conserved_across_partial_closes(self, ledger: PositionLedger) -> None:
        """Closing in pieces realizes the same PnL as closing at once."""
        ledger.apply_fill("rb2501", Direction.LONG, 6, 3300, 1)
        for quantity in (1, 2, 3):
            ledger.apply_fill("rb2501", Direction.SHORT, quantity, 3340, 2)

        assert not ledger.has_position("rb2501")
        assert ledger.realized_pnl == pytest.approx((3340 - 3300) * 6 * 10)
        assert ledger.trade_count == 3
        assert_cash_identity(ledger)

    def test_breakeven_close_is_not_a_win(self, ledger: PositionLedger) -> None:
        """Zero realized PnL counts as a trade but not a win."""
        ledger.apply_fill("rb2501", Direction.LONG, 1, 3300, 1)
        ledger.apply_fill("rb2501", Direction.SHORT, 1, 3300, 2)

        assert ledger.trade_count == 1
        assert ledger.win_count == 0
        assert ledger.win_rate == 0.0

    def test_account_state_feeds_summary(self, ledger: PositionLedger) -> None:
        """Cash and win statistics agree between the state and the summary."""
        ledger.apply_fill("rb2501", Direction.LONG, 2, 3300, 1)
        ledger.apply_fill("rb2501", Direction.SHORT, 1, 3350, 2)
        ledger.apply_fill("rb2501", Direction.SHORT, 1, 3250, 3)

        state = ledger.account_state()
        assert state.trade_count == 2
        assert state.win_count == 1
        assert state.win_rate == 0.5
        assert state.net_change == pytest.approx(500 - 500 - 20)

        summary = ledger.account_summary()
        assert summary.cash == state.cash
        assert summary.win_rate == state.win_rate
        assert summary.initial_balance == state.initial_balance


# =============================================================================
# Marks and margin
# =============================================================================


class TestMarksAndMargin:
    """Tests for mark-to-market figures and margin checks."""

    def test_equity_includes_floating(self, ledger: PositionLedger) -> None:
        """Equity is cash plus floating PnL at the marks."""
        ledger.apply_fill("rb2501", Direction.LONG, 2, 3300, 1)
        ledger.mark_to_market({"rb2501": 3400})

        assert ledger.floating_pnl == pytest.approx(2000)
        assert ledger.equity == pytest.approx(99990 + 2000)
        assert ledger.used_margin == pytest.approx(3400 * 2 * 10 * 0.10)
        assert ledger.free_margin == pytest.approx(ledger.equity - ledger.used_margin)

    def test_unmarked_position_uses_entry(self, ledger: PositionLedger) -> None:
        """Without a mark the entry price is used."""
        ledger.apply_fill("rb2501", Direction.LONG, 1, 3300, 1)
        assert ledger.mark_for("rb2501") == 3300
        assert ledger.floating_pnl == 0

    def test_margin_check_rejects_over_free(self, small_catalog: InstrumentCatalog) -> None:
        """Opening beyond free margin is refused."""
        ledger = PositionLedger(catalog=small_catalog, initial_cash=1000.0)
        allowed, reason = ledger.margin_check("rb2501", Direction.LONG, 1, 3300)

        assert not allowed
        assert reason is not None

    def test_margin_check_allows_reducing(self, ledger: PositionLedger) -> None:
        """Reducing or reversing fills always pass the check."""
        ledger.apply_fill("rb2501", Direction.LONG, 10, 3300, 1)
        ledger.mark_to_market({"rb2501": 100})
        assert ledger.free_margin < 0

        allowed, reason = ledger.margin_check("rb2501", Direction.SHORT, 50, 100)
        assert allowed
        assert reason is None


# =============================================================================
# Invariants and reset
# =============================================================================


class TestInvariants:
    """Tests for invariant errors and reset."""

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
    def test_bad_quantity_raises(self, ledger: PositionLedger, quantity) -> None:
        """Impossible quantities are invariant violations."""
        with pytest.raises(LedgerInvariantError):
            ledger.apply_fill("rb2501", Direction.LONG, quantity, 3300, 1)
        assert ledger.history == []

    def test_bad_price_raises(self, ledger: PositionLedger) -> None:
        """Non-positive prices are invariant violations."""
        with pytest.raises(LedgerInvariantError):
            ledger.apply_fill("rb2501", Direction.LONG, 1, 0, 1)

    def test_unknown_symbol_raises(self, ledger: PositionLedger) -> None:
        """Fills for instruments outside the catalog are refused."""
        with pytest.raises(LedgerInvariantError) as exc_info:
            ledger.apply_fill("zz9999", Direction.LONG, 1, 100, 1)
        assert exc_info.value.symbol == "zz9999"

    def test_clear_book_keeps_cash(self, ledger: PositionLedger) -> None:
        """Clearing the book keeps the realized balance."""
        ledger.apply_fill("rb2501", Direction.LONG, 1, 3300, 1)
        ledger.apply_fill("rb2501", Direction.SHORT, 1, 3310, 2)
        cash = ledger.cash

        ledger.clear_book()

        assert ledger.cash == cash
        assert ledger.history == []
        assert ledger.trade_count == 0

    def test_reset_restores_initial_cash(self, ledger: PositionLedger) -> None:
        """Reset returns to the starting balance."""
        ledger.apply_fill("rb2501", Direction.LONG, 1, 3300, 1)
        ledger.reset(initial_cash=50000.0)

        assert ledger.cash == 50000.0
        assert ledger.positions == {}
        summary = ledger.to_summary()
        assert summary["fees_paid"] == 0.0
        assert summary["position_count"] == 0
