"""
Summary Candidates

The narrative layer is external: anything with ``summarize(records)``
returning a list of strings. This module owns what it is handed, namely
value-sorted subsets of the batch and a compact one-line rendering per
trade.
"""

import logging
from typing import Dict, List, Protocol, Sequence, runtime_checkable

from blockflow.core.models import TradeRecord

logger = logging.getLogger(__name__)

BRIEF_LIMIT = 50
ANOMALY_VALUE_LIMIT = 30
ANOMALY_RS_LIMIT = 30
ANOMALY_RANK_LIMIT = 20


@runtime_checkable
class Summarizer(Protocol):
    """Opaque narrative generator."""

    def summarize(self, records: Sequence[TradeRecord]) -> List[str]:
        ...


def brief_candidates(records: Sequence[TradeRecord], limit: int = BRIEF_LIMIT) -> List[TradeRecord]:
    """Largest prints by notional value, descending."""
    return sorted(records, key=lambda r: r.notional_value, reverse=True)[:limit]


def anomaly_candidates(records: Sequence[TradeRecord]) -> List[TradeRecord]:
    """
    Union of the biggest prints, the most outsized prints, and the best
    ranked prints, deduplicated by id.

    Order is value leaders first, then relative-size leaders, then rank
    leaders, each record kept at its first appearance.
    """
    by_value = sorted(records, key=lambda r: r.notional_value, reverse=True)[:ANOMALY_VALUE_LIMIT]
    by_rs = sorted(records, key=lambda r: r.relative_size, reverse=True)[:ANOMALY_RS_LIMIT]
    ranked = sorted(
        (r for r in records if r.rank is not None), key=lambda r: r.rank
    )[:ANOMALY_RANK_LIMIT]

    combined: Dict[str, TradeRecord] = {}
    for record in [*by_value, *by_rs, *ranked]:
        combined.setdefault(record.id, record)
    return list(combined.values())


def format_trade_line(record: TradeRecord) -> str:
    """One-line rendering used in narrative prompts."""
    rank = record.rank if record.rank is not None else "N/A"
    return (
        f"{record.ticker} ({record.sector}): ${record.notional_value / 1_000_000:.1f}M, "
        f"RS:{record.relative_size:.1f}, Rank:{rank}"
    )


def summarize_brief(summarizer: Summarizer, records: Sequence[TradeRecord]) -> List[str]:
    """Hand the brief subset to a summarizer."""
    candidates = brief_candidates(records)
    if not candidates:
        return []
    logger.debug(f"Requesting brief over {len(candidates)} trades")
    return list(summarizer.summarize(candidates))
