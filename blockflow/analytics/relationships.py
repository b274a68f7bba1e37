"""
Relationship Detector Module

Three grouping passes over a scored batch:

- Behavioral tagging: repeat prints of one ticker are labeled WHALE, BLITZ
  or ACCUMULATOR from the group's total value and mean rank.
- Shadow clustering: an industry with more than a handful of outsized
  prints flags those prints.
- Gravity clustering: prints of one ticker landing within a narrow price
  band mark an anchor level.

Each pass materializes its groups before touching any member.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from blockflow.config.logging import log_performance
from blockflow.config.settings import RelationshipThresholds
from blockflow.core.models import BehavioralTag, GravityAnchor, TradeRecord

logger = logging.getLogger(__name__)

UNKNOWN_INDUSTRY = "Unknown"


def group_by_ticker(records: List[TradeRecord]) -> Dict[str, List[TradeRecord]]:
    groups: Dict[str, List[TradeRecord]] = defaultdict(list)
    for record in records:
        groups[record.ticker].append(record)
    return dict(groups)


def group_by_industry(records: List[TradeRecord]) -> Dict[str, List[TradeRecord]]:
    groups: Dict[str, List[TradeRecord]] = defaultdict(list)
    for record in records:
        groups[record.industry or UNKNOWN_INDUSTRY].append(record)
    return dict(groups)


class RelationshipDetector:
    """
    Detect ticker- and industry-level relationships in a scored batch.
    """

    def __init__(self, thresholds: Optional[RelationshipThresholds] = None):
        """
        Initialize relationship detector.

        Args:
            thresholds: Grouping cut-offs (defaults when omitted)
        """
        self.thresholds = thresholds or RelationshipThresholds()

    @log_performance(threshold_ms=500)
    def detect(self, records: List[TradeRecord]) -> List[TradeRecord]:
        """
        Run all passes in place.

        Gravity runs last: an anchor clears any behavioral tag.

        Args:
            records: Scored batch

        Returns:
            The same list, annotated
        """
        self.tag_behavior(records)
        self.detect_shadow_clusters(records)
        self.detect_gravity_anchors(records)
        return records

    def classify_group(self, group: List[TradeRecord]) -> Optional[BehavioralTag]:
        """
        Behavioral tag for one ticker group, or None if the group is too small.
        """
        t = self.thresholds
        if len(group) <= t.behavior_min_group:
            return None

        total_value = sum(r.notional_value for r in group)
        if total_value > t.whale_group_value:
            return BehavioralTag.WHALE

        mean_rank = sum(
            r.rank if r.rank is not None else t.unranked_rank for r in group
        ) / len(group)
        if mean_rank < t.blitz_mean_rank:
            return BehavioralTag.BLITZ

        return BehavioralTag.ACCUMULATOR

    def tag_behavior(self, records: List[TradeRecord]) -> Dict[str, Optional[BehavioralTag]]:
        """
        Tag every member of a ticker group with the group's behavior.

        Returns:
            Mapping of ticker to assigned tag (None for untagged groups)
        """
        assigned: Dict[str, Optional[BehavioralTag]] = {}
        for ticker, group in group_by_ticker(records).items():
            tag = self.classify_group(group)
            assigned[ticker] = tag
            for record in group:
                record.behavioral_tag = tag

        tagged = sum(1 for tag in assigned.values() if tag is not None)
        logger.debug(f"Behavioral tags assigned to {tagged} of {len(assigned)} tickers")
        return assigned

    def detect_shadow_clusters(self, records: List[TradeRecord]) -> Dict[str, int]:
        """
        Flag outsized prints in industries where they bunch up.

        Only the qualifying prints are flagged, never the whole industry.

        Returns:
            Mapping of industry to number of flagged records
        """
        t = self.thresholds
        clusters: Dict[str, int] = {}

        for record in records:
            record.shadow_cluster = False

        for industry, group in group_by_industry(records).items():
            outsized = [r for r in group if r.relative_size > t.shadow_rs]
            if len(outsized) > t.shadow_min_members:
                for record in outsized:
                    record.shadow_cluster = True
                clusters[industry] = len(outsized)

        if clusters:
            logger.debug(f"Shadow clusters: {clusters}")
        return clusters

    def detect_gravity_anchors(self, records: List[TradeRecord]) -> int:
        """
        Mark prints that anchor a price level for their ticker.

        Within a ticker, prints are sorted by price and each one scans
        forward while the next price stays within the variance band of its
        own price. Once a price leaves the band no later (higher) price can
        re-enter it, so the scan stops there.

        Returns:
            Number of anchors marked
        """
        variance_limit = self.thresholds.gravity_variance
        anchors = 0

        for record in records:
            record.gravity_anchor = None

        for group in group_by_ticker(records).values():
            if len(group) < 2:
                continue
            ordered = sorted(group, key=lambda r: r.trade_price)

            for i, current in enumerate(ordered):
                if current.trade_price <= 0:
                    continue
                level_value = current.notional_value
                level_count = 1

                for candidate in ordered[i + 1:]:
                    variance = abs(candidate.trade_price - current.trade_price) / current.trade_price
                    if variance > variance_limit:
                        break
                    level_value += candidate.notional_value
                    level_count += 1

                if level_count > 1:
                    current.gravity_anchor = GravityAnchor(
                        is_anchor=True,
                        total_volume_at_level=level_value,
                        cluster_count=level_count,
                    )
                    current.behavioral_tag = None
                    anchors += 1

        logger.debug(f"Gravity anchors marked: {anchors}")
        return anchors
