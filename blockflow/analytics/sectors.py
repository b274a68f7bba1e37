"""
Sector Aggregation Module

Sum notional value by sector for the layout engine, the sector
leaderboard, and keyword-bucket totals.
"""

import logging
from typing import Dict, List, Mapping, Sequence, Tuple

import pandas as pd

from blockflow.core.models import SectorGroup, TradeRecord

logger = logging.getLogger(__name__)

UNCLASSIFIED_SECTOR = "Unclassified"

# Keyword buckets for the headline sector panel
SECTOR_PANELS: Dict[str, Tuple[str, ...]] = {
    "Technology": ("technology", "tech"),
    "Healthcare": ("healthcare", "health"),
}


def build_sector_groups(records: Sequence[TradeRecord]) -> List[SectorGroup]:
    """
    Group records by sector and sum their notional value.

    Args:
        records: Trade records (scored or not)

    Returns:
        Sector groups sorted descending by aggregate value
    """
    groups: Dict[str, SectorGroup] = {}
    for record in records:
        key = record.sector or UNCLASSIFIED_SECTOR
        group = groups.get(key)
        if group is None:
            group = groups[key] = SectorGroup(group_key=key, aggregate_value=0.0)
        group.aggregate_value += record.notional_value
        group.member_records.append(record)

    return sorted(groups.values(), key=lambda g: g.aggregate_value, reverse=True)


def sector_leaderboard(records: Sequence[TradeRecord], limit: int = 5) -> pd.DataFrame:
    """
    Top sectors by notional value.

    Args:
        records: Trade records
        limit: Number of sectors to keep

    Returns:
        DataFrame with columns:
        - sector: Sector name
        - total_value: Summed notional
        - trade_count: Number of prints
        - share_of_leader: Percent of the top sector's value
    """
    columns = ["sector", "total_value", "trade_count", "share_of_leader"]
    if not records or limit <= 0:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(
        {
            "sector": [r.sector or UNCLASSIFIED_SECTOR for r in records],
            "notional_value": [r.notional_value for r in records],
        }
    )
    board = (
        df.groupby("sector", sort=False)["notional_value"]
        .agg(total_value="sum", trade_count="count")
        .reset_index()
        .sort_values("total_value", ascending=False, kind="stable")
        .head(limit)
        .reset_index(drop=True)
    )

    leader_value = board["total_value"].iloc[0]
    board["share_of_leader"] = (
        board["total_value"] / leader_value * 100 if leader_value > 0 else 0.0
    )
    return board[columns]


def sector_totals(
    records: Sequence[TradeRecord],
    panels: Mapping[str, Tuple[str, ...]] = SECTOR_PANELS,
) -> Dict[str, float]:
    """
    Notional value per keyword bucket.

    A record counts toward the first bucket whose keywords appear in its
    sector name, and toward no other.
    """
    totals = {name: 0.0 for name in panels}
    for record in records:
        sector = (record.sector or "").lower()
        for name, keywords in panels.items():
            if any(k in sector for k in keywords):
                totals[name] += record.notional_value
                break
    return totals
