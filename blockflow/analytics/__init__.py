# Blockflow Analytics Module

from blockflow.analytics.scoring import (
    SENTIMENT_RULES,
    BatchStatistics,
    ScoreEngine,
    SentimentRule,
    classify_sentiment,
    compute_batch_statistics,
)
from blockflow.analytics.relationships import RelationshipDetector
from blockflow.analytics.context_overlay import (
    DEFAULT_SIGNAL_MOVES,
    OVERLAY_RULES,
    ContextOverlayEngine,
    OverlayRule,
    RaiseFallback,
    RandomFallback,
    SignalOracle,
    ZeroFallback,
)
from blockflow.analytics.layout import (
    LayoutCell,
    LayoutItem,
    Rect,
    layout_sector_groups,
    slice_and_dice,
)

# Sector panels and summary hand-off
from blockflow.analytics.sectors import (
    build_sector_groups,
    sector_leaderboard,
    sector_totals,
)
from blockflow.analytics.summaries import (
    Summarizer,
    anomaly_candidates,
    brief_candidates,
    format_trade_line,
    summarize_brief,
)

__all__ = [
    # Scoring
    "SENTIMENT_RULES",
    "BatchStatistics",
    "ScoreEngine",
    "SentimentRule",
    "classify_sentiment",
    "compute_batch_statistics",
    # Relationships
    "RelationshipDetector",
    # Context overlay
    "DEFAULT_SIGNAL_MOVES",
    "OVERLAY_RULES",
    "ContextOverlayEngine",
    "OverlayRule",
    "RaiseFallback",
    "RandomFallback",
    "SignalOracle",
    "ZeroFallback",
    # Layout
    "LayoutCell",
    "LayoutItem",
    "Rect",
    "layout_sector_groups",
    "slice_and_dice",
    # Sectors
    "build_sector_groups",
    "sector_leaderboard",
    "sector_totals",
    # Summaries
    "Summarizer",
    "anomaly_candidates",
    "brief_candidates",
    "format_trade_line",
    "summarize_brief",
]
