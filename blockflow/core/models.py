"""
Trade Record Models

The canonical trade record produced by the normalizer and annotated in place
by the scoring, relationship, and overlay passes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

UNCATEGORIZED_SECTOR = "Uncategorized"
GENERAL_INDUSTRY = "General"


class SentimentCategory(Enum):
    """Sentiment bucket assigned by the score engine."""

    MOMENTUM = "MOMENTUM"
    CONTRARIAN = "CONTRARIAN"
    STEALTH = "STEALTH"


class BehavioralTag(Enum):
    """Ticker-level behavior derived from repeat prints in one batch."""

    WHALE = "WHALE"
    BLITZ = "BLITZ"
    ACCUMULATOR = "ACCUMULATOR"


class OverlayTag(Enum):
    """Secondary context from the correlated-asset signal."""

    SYMPATHY_PLAY = "SYMPATHY_PLAY"
    DRAG = "DRAG"
    BETA = "BETA"


class Direction(Enum):
    UP = "UP"
    DOWN = "DOWN"
    FLAT = "FLAT"


@dataclass(frozen=True)
class GravityAnchor:
    """A price level where several prints of one ticker landed."""

    is_anchor: bool
    total_volume_at_level: float
    cluster_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_anchor": self.is_anchor,
            "total_volume_at_level": self.total_volume_at_level,
            "cluster_count": self.cluster_count,
        }


@dataclass(frozen=True)
class ContextOverlay:
    """Correlated-asset context attached to a trade."""

    tag: OverlayTag
    direction: Direction
    rationale: str
    signal_magnitude: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag.value,
            "direction": self.direction.value,
            "rationale": self.rationale,
            "signal_magnitude": self.signal_magnitude,
        }


@dataclass
class TradeRecord:
    """One institutional block print."""

    id: str
    ticker: str
    trade_timestamp: str
    trade_price: float
    notional_value: float
    observed_date: str

    sector: str = UNCATEGORIZED_SECTOR
    industry: str = GENERAL_INDUSTRY
    share_count: int = 0
    relative_size: float = 0.0  # size versus the ticker's typical print
    percentile_rank: float = 0.0
    rank: Optional[int] = None  # lower is more significant

    # Derived scores
    conviction_score: float = 0.0
    whale_force_score: float = 0.0
    defense_score: int = 0

    # Derived annotations
    sentiment_category: Optional[SentimentCategory] = None
    sentiment_vibe: str = ""
    behavioral_tag: Optional[BehavioralTag] = None
    gravity_anchor: Optional[GravityAnchor] = None
    shadow_cluster: bool = False
    context_overlay: Optional[ContextOverlay] = None

    def to_dict(self) -> Dict[str, Any]:
        """Flat output schema for presentation layers."""
        return {
            "id": self.id,
            "ticker": self.ticker,
            "trade_timestamp": self.trade_timestamp,
            "trade_price": self.trade_price,
            "sector": self.sector,
            "industry": self.industry,
            "share_count": self.share_count,
            "notional_value": self.notional_value,
            "relative_size": self.relative_size,
            "percentile_rank": self.percentile_rank,
            "rank": self.rank,
            "observed_date": self.observed_date,
            "conviction_score": self.conviction_score,
            "whale_force_score": self.whale_force_score,
            "defense_score": self.defense_score,
            "sentiment_category": (
                self.sentiment_category.value if self.sentiment_category else None
            ),
            "sentiment_vibe": self.sentiment_vibe,
            "behavioral_tag": self.behavioral_tag.value if self.behavioral_tag else None,
            "gravity_anchor": self.gravity_anchor.to_dict() if self.gravity_anchor else None,
            "shadow_cluster": self.shadow_cluster,
            "context_overlay": (
                self.context_overlay.to_dict() if self.context_overlay else None
            ),
        }


@dataclass
class SectorGroup:
    """Records sharing a sector, summed by notional value."""

    group_key: str
    aggregate_value: float
    member_records: List[TradeRecord] = field(default_factory=list)

    @property
    def top_record(self) -> Optional[TradeRecord]:
        """Member with the highest whale-force score."""
        if not self.member_records:
            return None
        return max(self.member_records, key=lambda r: r.whale_force_score)


def records_to_dataframe(records: Iterable[TradeRecord]) -> pd.DataFrame:
    """
    Flatten records into a DataFrame, one row per record in insertion order.

    Nested annotations are expanded into prefixed columns
    (``gravity_total_volume_at_level``, ``overlay_tag`` ...).
    """
    rows = []
    for record in records:
        row = record.to_dict()
        anchor = row.pop("gravity_anchor")
        overlay = row.pop("context_overlay")
        row["gravity_anchor"] = anchor is not None
        row["gravity_total_volume_at_level"] = anchor["total_volume_at_level"] if anchor else None
        row["gravity_cluster_count"] = anchor["cluster_count"] if anchor else None
        row["overlay_tag"] = overlay["tag"] if overlay else None
        row["overlay_direction"] = overlay["direction"] if overlay else None
        row["overlay_rationale"] = overlay["rationale"] if overlay else None
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=list(_EMPTY_COLUMNS))
    return pd.DataFrame(rows)


_EMPTY_COLUMNS = (
    "id",
    "ticker",
    "trade_timestamp",
    "trade_price",
    "sector",
    "industry",
    "share_count",
    "notional_value",
    "relative_size",
    "percentile_rank",
    "rank",
    "observed_date",
    "conviction_score",
    "whale_force_score",
    "defense_score",
    "sentiment_category",
    "sentiment_vibe",
    "behavioral_tag",
    "shadow_cluster",
    "gravity_anchor",
    "gravity_total_volume_at_level",
    "gravity_cluster_count",
    "overlay_tag",
    "overlay_direction",
    "overlay_rationale",
)
