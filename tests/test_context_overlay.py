"""
Tests for the context overlay engine and signal oracle.
"""

import logging
import random
from unittest.mock import Mock

import pytest

from blockflow.analytics.context_overlay import (
    DEFAULT_SIGNAL_MOVES,
    OVERLAY_RULES,
    ContextOverlayEngine,
    RaiseFallback,
    RandomFallback,
    SignalOracle,
    ZeroFallback,
)
from blockflow.config.settings import OverlayThresholds
from blockflow.core.errors import ErrorCodes, SignalUnavailableError
from blockflow.core.models import Direction, OverlayTag


@pytest.fixture
def engine(zero_oracle):
    """Overlay engine with a deterministic oracle."""
    return ContextOverlayEngine(oracle=zero_oracle)


# =============================================================================
# Signal Oracle
# =============================================================================


class TestSignalOracle:
    """Tests for SignalOracle lookups and miss strategies."""

    def test_known_date(self, zero_oracle):
        assert zero_oracle.move_for("2026-01-07") == 5.4

    def test_defaults_to_mock_moves(self):
        """Test an oracle built without moves uses the shipped mock table."""
        oracle = SignalOracle(fallback=ZeroFallback())
        assert oracle.moves == DEFAULT_SIGNAL_MOVES
        assert oracle.move_for("2026-01-06") == -2.5

    def test_empty_mapping_is_respected(self):
        """Test an explicitly empty mapping is not replaced by the defaults."""
        oracle = SignalOracle(moves={}, fallback=ZeroFallback())
        assert oracle.move_for("2026-01-07") == 0.0

    def test_zero_fallback(self, zero_oracle):
        assert zero_oracle.move_for("2030-01-01") == 0.0

    def test_raise_fallback(self):
        """Test the error strategy refuses unknown dates."""
        oracle = SignalOracle(moves={}, fallback=RaiseFallback())

        with pytest.raises(SignalUnavailableError) as exc_info:
            oracle.move_for("2030-01-01")

        assert exc_info.value.error_code is ErrorCodes.SIGNAL_UNAVAILABLE
        assert exc_info.value.context == {"date": "2030-01-01"}

    def test_random_fallback_seeded(self):
        """Test a seeded random fallback is reproducible and bounded."""
        first = SignalOracle(moves={}, fallback=RandomFallback(random.Random(42)))
        second = SignalOracle(moves={}, fallback=RandomFallback(random.Random(42)))

        moves = [first.move_for(f"2030-01-0{i}") for i in range(1, 6)]
        assert moves == [second.move_for(f"2030-01-0{i}") for i in range(1, 6)]
        assert all(-1.0 <= m <= 1.0 for m in moves)

    def test_random_fallback_warns(self, caplog):
        """Test a random move is logged as a warning."""
        oracle = SignalOracle(moves={}, fallback=RandomFallback(random.Random(1)))

        with caplog.at_level(logging.WARNING, logger="blockflow.analytics.context_overlay"):
            oracle.move_for("2030-01-01")

        assert "No signal for 2030-01-01" in caplog.text

    @pytest.mark.parametrize(
        "strategy,fallback_type",
        [("random", RandomFallback), ("zero", ZeroFallback), ("error", RaiseFallback)],
    )
    def test_with_strategy(self, strategy, fallback_type):
        oracle = SignalOracle.with_strategy(strategy)
        assert isinstance(oracle.fallback, fallback_type)

    def test_with_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown signal fallback"):
            SignalOracle.with_strategy("guess")


# =============================================================================
# Gate
# =============================================================================


class TestOverlayGate:
    """Tests for which records are eligible for an overlay."""

    def test_proxy_always_gated(self, engine, make_record):
        assert engine.is_gated(make_record(ticker="COIN", sector="Financial Services"), 0.1)

    @pytest.mark.parametrize("sector", ["Technology", "Financial Services", "Comm Services"])
    def test_correlated_sector_needs_large_move(self, engine, make_record, sector):
        """Test correlated sectors open only when |move| > 1.5."""
        record = make_record(ticker="NVDA", sector=sector)

        assert engine.is_gated(record, 2.0)
        assert engine.is_gated(record, -2.0)
        assert not engine.is_gated(record, 1.5)

    def test_uncorrelated_sector_never_gated(self, engine, make_record):
        assert not engine.is_gated(make_record(ticker="GE", sector="Industrials"), 9.0)

    def test_custom_proxies_upper_cased(self, make_record):
        """Test configured proxy tickers are normalized to upper case."""
        engine = ContextOverlayEngine(
            oracle=SignalOracle(moves={}, fallback=ZeroFallback()),
            thresholds=OverlayThresholds(correlated_proxies=[" nvda ", ""]),
        )
        assert engine.is_proxy(make_record(ticker="NVDA"))
        assert not engine.is_proxy(make_record(ticker="COIN"))


# =============================================================================
# Overlay Rules
# =============================================================================


class TestOverlayRules:
    """Tests for the ordered overlay table."""

    def test_rule_order(self):
        assert [rule.tag for rule in OVERLAY_RULES] == [
            OverlayTag.SYMPATHY_PLAY,
            OverlayTag.DRAG,
            OverlayTag.BETA,
        ]

    def test_sympathy_play(self, engine, make_record):
        """Test a large block in a correlated sector rides a surge."""
        overlay = engine.overlay_for(make_record(ticker="NVDA", sector="Technology", relative_size=20), 5.4)

        assert overlay.tag is OverlayTag.SYMPATHY_PLAY
        assert overlay.direction is Direction.UP
        assert overlay.signal_magnitude == 5.4
        assert "+5.4%" in overlay.rationale

    def test_drag(self, engine, make_record):
        """Test a small block in a correlated sector is dragged by a drop."""
        overlay = engine.overlay_for(
            make_record(ticker="GRAB", sector="Financial Services", relative_size=3), -2.5
        )

        assert overlay.tag is OverlayTag.DRAG
        assert overlay.direction is Direction.DOWN
        assert "-2.5%" in overlay.rationale

    def test_gated_non_proxy_without_rule(self, engine, make_record):
        """Test a gated record matching no rule gets no overlay."""
        record = make_record(ticker="INTU", sector="Technology", relative_size=10)
        assert engine.overlay_for(record, 5.4) is None

    def test_drag_beats_beta_for_proxy(self, engine, make_record):
        """Test earlier rules win for proxies too."""
        overlay = engine.overlay_for(make_record(ticker="MSTR", relative_size=2), -2.5)
        assert overlay.tag is OverlayTag.DRAG

    @pytest.mark.parametrize(
        "move,direction",
        [(0.7, Direction.UP), (-0.4, Direction.DOWN), (0.0, Direction.FLAT)],
    )
    def test_beta_follows_move_sign(self, engine, make_record, move, direction):
        """Test proxies not matching earlier rules get BETA in the move's direction."""
        overlay = engine.overlay_for(make_record(ticker="HOOD", relative_size=8), move)

        assert overlay.tag is OverlayTag.BETA
        assert overlay.direction is direction

    def test_not_gated(self, engine, make_record):
        record = make_record(ticker="GE", sector="Industrials", relative_size=30)
        assert engine.overlay_for(record, 5.4) is None


# =============================================================================
# Apply
# =============================================================================


class TestApply:
    """Tests for ContextOverlayEngine.apply."""

    def test_sets_overlay_on_every_record(self, engine, make_record):
        """Test tagged and untagged records are both written."""
        tagged = make_record(ticker="NVDA", sector="Technology", relative_size=20)
        untagged = make_record(ticker="GE", sector="Industrials")

        result = engine.apply([tagged, untagged], "2026-01-07")

        assert result == [tagged, untagged]
        assert tagged.context_overlay.tag is OverlayTag.SYMPATHY_PLAY
        assert untagged.context_overlay is None

    def test_reapply_replaces_overlay(self, engine, make_record):
        """Test a later date's overlay replaces the earlier one."""
        record = make_record(ticker="NVDA", sector="Technology", relative_size=20)

        engine.apply([record], "2026-01-07")
        engine.apply([record], "2026-01-09")

        assert record.context_overlay is None

    def test_move_resolved_once(self, make_record):
        """Test the oracle is consulted once per call, not per record."""
        oracle = Mock(spec=SignalOracle)
        oracle.move_for.return_value = 5.4
        engine = ContextOverlayEngine(oracle=oracle)

        engine.apply([make_record(ticker="COIN") for _ in range(5)], "2026-01-07")

        oracle.move_for.assert_called_once_with("2026-01-07")

    def test_unknown_date_with_error_strategy(self, make_record):
        """Test the error strategy propagates and leaves records untouched."""
        engine = ContextOverlayEngine(oracle=SignalOracle(moves={}, fallback=RaiseFallback()))
        record = make_record(ticker="COIN")

        with pytest.raises(SignalUnavailableError):
            engine.apply([record], "2030-01-01")

        assert record.context_overlay is None

    def test_empty_batch(self, engine):
        assert engine.apply([], "2026-01-07") == []
