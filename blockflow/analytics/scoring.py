"""
Score Engine Module

Two-pass scoring of a normalized batch: first the batch extrema, then
per-record conviction, whale-force and defense scores plus a sentiment
category from an ordered decision table.

Scores are batch-relative. Whale force normalizes relative size and
log-notional against the batch's own maxima, so the same print can score
differently in a different batch.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from blockflow.config.logging import log_performance
from blockflow.config.settings import ScoringThresholds
from blockflow.core.models import SentimentCategory, TradeRecord

logger = logging.getLogger(__name__)

# log10 of this stands in for an empty or non-positive minimum
MIN_NOTIONAL_SENTINEL = 1_000_000

CONVICTION_RS_WEIGHT = 2.0
CONVICTION_RANK_WEIGHT = 2.5
WHALE_RS_WEIGHT = 60.0
WHALE_VALUE_WEIGHT = 40.0
DEFENSE_BUCKETS = 9

TECH_SECTOR_KEYWORDS = ("tech", "semis", "software")
ENERGY_SECTOR_KEYWORDS = ("energy", "oil")


@dataclass(frozen=True)
class BatchStatistics:
    """Extrema collected in the first pass."""

    max_relative_size: float
    max_notional: float
    min_notional: float
    max_log_notional: float
    min_log_notional: float

    @property
    def log_range(self) -> float:
        return self.max_log_notional - self.min_log_notional


def compute_batch_statistics(records: Sequence[TradeRecord]) -> BatchStatistics:
    """
    First pass: batch extrema.

    An empty batch yields zeros for the raw extrema and the sentinels for
    the log extrema.
    """
    max_rs = 0.0
    max_value = 0.0
    min_value = math.inf

    for record in records:
        if record.relative_size > max_rs:
            max_rs = record.relative_size
        if record.notional_value > max_value:
            max_value = record.notional_value
        if record.notional_value < min_value:
            min_value = record.notional_value

    if min_value == math.inf:
        min_value = 0.0

    return BatchStatistics(
        max_relative_size=max_rs,
        max_notional=max_value,
        min_notional=min_value,
        max_log_notional=float(np.log10(max_value if max_value > 0 else 1)),
        min_log_notional=float(
            np.log10(min_value if min_value > 0 else MIN_NOTIONAL_SENTINEL)
        ),
    )


# =============================================================================
# Per-record Scores
# =============================================================================


def conviction_score(record: TradeRecord) -> float:
    score = record.relative_size * CONVICTION_RS_WEIGHT
    if record.rank is not None:
        score += (100 - record.rank) * CONVICTION_RANK_WEIGHT
    return score


def log_notional(record: TradeRecord) -> float:
    return float(np.log10(max(record.notional_value, 1)))


def whale_force_score(record: TradeRecord, stats: BatchStatistics) -> float:
    """60% relative size versus batch max, 40% log-notional versus batch max."""
    rs_part = record.relative_size / max(stats.max_relative_size, 1) * WHALE_RS_WEIGHT
    value_part = log_notional(record) / max(stats.max_log_notional, 1) * WHALE_VALUE_WEIGHT
    return rs_part + value_part


def defense_score(record: TradeRecord, stats: BatchStatistics) -> int:
    """Bucket log-notional into 1-10 across the batch's log range."""
    if stats.log_range <= 0:
        return 1
    normalized = (log_notional(record) - stats.min_log_notional) / stats.log_range
    bucket = math.floor(normalized * DEFENSE_BUCKETS) + 1
    return int(np.clip(bucket, 1, 10))


# =============================================================================
# Sentiment Decision Table
# =============================================================================


def _sector_has(record: TradeRecord, keywords: Tuple[str, ...]) -> bool:
    sector = (record.sector or "").lower()
    return any(k in sector for k in keywords)


@dataclass(frozen=True)
class SentimentRule:
    """One row of the sentiment table."""

    name: str
    predicate: Callable[[TradeRecord, ScoringThresholds], bool]
    category: SentimentCategory
    vibe: str


SENTIMENT_RULES: Tuple[SentimentRule, ...] = (
    SentimentRule(
        "maximum_impact",
        lambda r, t: r.relative_size > t.momentum_rs,
        SentimentCategory.MOMENTUM,
        "Maximum impact block trade. High conviction entry.",
    ),
    SentimentRule(
        "algorithmic_flow",
        lambda r, t: r.relative_size < t.contrarian_max_rs
        and r.notional_value > t.contrarian_min_value,
        SentimentCategory.CONTRARIAN,
        "High value flow executed algorithmically.",
    ),
    SentimentRule(
        "lagging_accumulation",
        lambda r, t: r.relative_size > t.stealth_rs
        and (r.rank is None or r.rank > t.stealth_min_rank),
        SentimentCategory.STEALTH,
        "Large size accumulation in lagging name.",
    ),
    SentimentRule(
        "tech_allocation",
        lambda r, t: _sector_has(r, TECH_SECTOR_KEYWORDS) and r.relative_size > t.sector_rs,
        SentimentCategory.MOMENTUM,
        "Aggressive size allocation in tech sector.",
    ),
    SentimentRule(
        "cyclical_blocks",
        lambda r, t: _sector_has(r, ENERGY_SECTOR_KEYWORDS) and r.relative_size > t.sector_rs,
        SentimentCategory.CONTRARIAN,
        "Heavy block trading in cyclical asset.",
    ),
    SentimentRule(
        "standard_block",
        lambda r, t: True,
        SentimentCategory.MOMENTUM,
        "Standard institutional block size.",
    ),
)


def classify_sentiment(
    record: TradeRecord,
    thresholds: Optional[ScoringThresholds] = None,
    rules: Sequence[SentimentRule] = SENTIMENT_RULES,
) -> SentimentRule:
    """
    Evaluate the sentiment table top to bottom and return the first match.

    The last rule always matches, so every record gets a category.
    """
    thresholds = thresholds or ScoringThresholds()
    for rule in rules:
        if rule.predicate(record, thresholds):
            return rule
    return SENTIMENT_RULES[-1]


# =============================================================================
# Engine
# =============================================================================


class ScoreEngine:
    """
    Score a full batch. Needs the whole batch up front for the extrema.
    """

    def __init__(self, thresholds: Optional[ScoringThresholds] = None):
        """
        Initialize score engine.

        Args:
            thresholds: Sentiment cut-offs (defaults when omitted)
        """
        self.thresholds = thresholds or ScoringThresholds()

    @log_performance(threshold_ms=500)
    def score(
        self,
        records: List[TradeRecord],
        stats: Optional[BatchStatistics] = None,
    ) -> List[TradeRecord]:
        """
        Compute derived scores and sentiment for every record in place.

        Args:
            records: Normalized batch
            stats: Extrema of this batch, computed from it when omitted

        Returns:
            The same list, scored
        """
        if stats is None:
            stats = compute_batch_statistics(records)
        if not records:
            return records

        logger.debug(
            f"Batch extrema: max_rs={stats.max_relative_size:.2f} "
            f"log_range=[{stats.min_log_notional:.3f}, {stats.max_log_notional:.3f}]"
        )

        for record in records:
            record.conviction_score = conviction_score(record)
            record.whale_force_score = whale_force_score(record, stats)
            record.defense_score = defense_score(record, stats)

            rule = classify_sentiment(record, self.thresholds)
            record.sentiment_category = rule.category
            record.sentiment_vibe = rule.vibe

        return records
