"""
Context Overlay Module

Tag trades with secondary context from a correlated asset's daily move.

The move for a date comes from an injected ``date -> percent move`` mapping.
Dates the mapping does not know go to an explicit fallback strategy. The
default draws a random move in [-1, 1], which makes runs unreproducible;
tests and batch jobs should pick the zero or error strategy instead.
"""

import logging
import random
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from blockflow.config.logging import pipeline_logger
from blockflow.config.settings import OverlayThresholds
from blockflow.core.errors import SignalUnavailableError
from blockflow.core.models import ContextOverlay, Direction, OverlayTag, TradeRecord

logger = logging.getLogger(__name__)

# Known dates of the mock oracle
DEFAULT_SIGNAL_MOVES: Dict[str, float] = {
    "2026-01-02": 1.2,
    "2026-01-05": -0.4,
    "2026-01-06": -2.5,
    "2026-01-07": 5.4,
    "2026-01-08": -0.8,
}

CORRELATED_SECTOR_KEYWORDS = ("tech", "financial", "comm")


# =============================================================================
# Signal Oracle
# =============================================================================


class RandomFallback:
    """Uniform move in [-1, 1] for unknown dates."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def __call__(self, date: str) -> float:
        move = self.rng.uniform(-1.0, 1.0)
        logger.warning(f"No signal for {date}, using random move {move:+.3f}%")
        return move


class ZeroFallback:
    """Treat unknown dates as flat."""

    def __call__(self, date: str) -> float:
        logger.info(f"No signal for {date}, treating as flat")
        return 0.0


class RaiseFallback:
    """Refuse unknown dates."""

    def __call__(self, date: str) -> float:
        raise SignalUnavailableError(detail=date, context={"date": date})


FALLBACK_STRATEGIES: Dict[str, Callable[[], Callable[[str], float]]] = {
    "random": RandomFallback,
    "zero": ZeroFallback,
    "error": RaiseFallback,
}


class SignalOracle:
    """
    Date-keyed correlated-asset moves with an explicit miss strategy.
    """

    def __init__(
        self,
        moves: Optional[Mapping[str, float]] = None,
        fallback: Optional[Callable[[str], float]] = None,
    ):
        """
        Initialize signal oracle.

        Args:
            moves: Percent move per ISO date (defaults to the mock oracle)
            fallback: Called with the date on a miss (RandomFallback by default)
        """
        self.moves: Dict[str, float] = dict(DEFAULT_SIGNAL_MOVES if moves is None else moves)
        self.fallback = fallback or RandomFallback()

    @classmethod
    def with_strategy(
        cls, strategy: str, moves: Optional[Mapping[str, float]] = None
    ) -> "SignalOracle":
        """Build an oracle from a strategy name: random, zero or error."""
        if strategy not in FALLBACK_STRATEGIES:
            raise ValueError(f"Unknown signal fallback: {strategy}")
        return cls(moves=moves, fallback=FALLBACK_STRATEGIES[strategy]())

    def move_for(self, date: str) -> float:
        if date in self.moves:
            return self.moves[date]
        return self.fallback(date)


# =============================================================================
# Overlay Rules
# =============================================================================


@dataclass(frozen=True)
class OverlayContext:
    """Inputs a rule sees for one record."""

    record: TradeRecord
    move: float
    is_proxy: bool
    thresholds: OverlayThresholds


def _direction(move: float) -> Direction:
    if move > 0:
        return Direction.UP
    if move < 0:
        return Direction.DOWN
    return Direction.FLAT


@dataclass(frozen=True)
class OverlayRule:
    """One row of the overlay table."""

    tag: OverlayTag
    predicate: Callable[[OverlayContext], bool]
    direction: Callable[[OverlayContext], Direction]
    rationale: Callable[[OverlayContext], str]


OVERLAY_RULES: Tuple[OverlayRule, ...] = (
    OverlayRule(
        OverlayTag.SYMPATHY_PLAY,
        lambda c: c.move > c.thresholds.sympathy_move
        and c.record.relative_size > c.thresholds.sympathy_rs,
        lambda c: Direction.UP,
        lambda c: f"Aligned with correlated asset +{c.move}% surge",
    ),
    OverlayRule(
        OverlayTag.DRAG,
        lambda c: c.move < c.thresholds.drag_move
        and c.record.relative_size < c.thresholds.drag_rs,
        lambda c: Direction.DOWN,
        lambda c: f"Weighed down by correlated asset {c.move}% drop",
    ),
    OverlayRule(
        OverlayTag.BETA,
        lambda c: c.is_proxy,
        lambda c: _direction(c.move),
        lambda c: "Direct correlated-asset exposure",
    ),
)


class ContextOverlayEngine:
    """
    Apply the correlated-asset overlay to a scored batch.
    """

    def __init__(
        self,
        oracle: Optional[SignalOracle] = None,
        thresholds: Optional[OverlayThresholds] = None,
        rules: Sequence[OverlayRule] = OVERLAY_RULES,
    ):
        """
        Initialize context overlay engine.

        Args:
            oracle: Source of the daily move
            thresholds: Gate and rule cut-offs
            rules: Ordered overlay table, first match wins
        """
        self.oracle = oracle or SignalOracle()
        self.thresholds = thresholds or OverlayThresholds()
        self.rules = tuple(rules)
        self._proxies: FrozenSet[str] = frozenset(self.thresholds.correlated_proxies)

    def is_proxy(self, record: TradeRecord) -> bool:
        return record.ticker in self._proxies

    def is_gated(self, record: TradeRecord, move: float) -> bool:
        """Proxies always pass; correlated sectors pass on a large enough move."""
        if self.is_proxy(record):
            return True
        sector = (record.sector or "").lower()
        correlated = any(k in sector for k in CORRELATED_SECTOR_KEYWORDS)
        return correlated and abs(move) > self.thresholds.gate_move

    def overlay_for(self, record: TradeRecord, move: float) -> Optional[ContextOverlay]:
        """Overlay for one record given the day's move, or None."""
        if not self.is_gated(record, move):
            return None

        context = OverlayContext(
            record=record,
            move=move,
            is_proxy=self.is_proxy(record),
            thresholds=self.thresholds,
        )
        for rule in self.rules:
            if rule.predicate(context):
                return ContextOverlay(
                    tag=rule.tag,
                    direction=rule.direction(context),
                    rationale=rule.rationale(context),
                    signal_magnitude=move,
                )
        return None

    def apply(self, records: Iterable[TradeRecord], date: str) -> List[TradeRecord]:
        """
        Set ``context_overlay`` on every record for the given date.

        The move is looked up once per call.

        Args:
            records: Scored batch (usually one observed date)
            date: ISO date used for the signal lookup

        Returns:
            The records, annotated
        """
        move = self.oracle.move_for(date)
        annotated = list(records)
        tagged = 0
        for record in annotated:
            record.context_overlay = self.overlay_for(record, move)
            if record.context_overlay is not None:
                tagged += 1

        pipeline_logger.log_overlay(date, move, tagged)
        return annotated
