"""
Trade Dataset

A caller-owned set of uploaded row batches, one per date. The pipeline
reads it and builds fresh records every run, so no derived state is kept
between runs and two datasets never share records.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass
class UploadBatch:
    """Rows uploaded for one date."""

    date: str
    name: str
    rows: List[Dict[str, Any]]


class TradeDataset:
    """
    Uploaded batches keyed by date.

    Registering a batch for a date that already has one replaces it.
    """

    def __init__(self):
        self._batches: Dict[str, UploadBatch] = {}

    def register(
        self,
        date: str,
        name: str,
        rows: Sequence[Mapping[str, Any]],
    ) -> UploadBatch:
        """
        Add or replace the batch for a date.

        Args:
            date: ISO date stamped on every row of the batch
            name: Source file name
            rows: Raw rows keyed by header

        Returns:
            The stored batch
        """
        batch = UploadBatch(date=date, name=name, rows=[dict(r) for r in rows])
        replaced = date in self._batches
        self._batches[date] = batch
        logger.info(
            f"{'Replaced' if replaced else 'Registered'} upload {name} for {date} "
            f"({len(batch.rows)} rows)"
        )
        return batch

    def remove(self, date: str) -> bool:
        return self._batches.pop(date, None) is not None

    def batches_for(self, date: str) -> List[UploadBatch]:
        batch = self._batches.get(date)
        return [batch] if batch else []

    def dates(self) -> List[str]:
        """Registered dates, newest first."""
        return sorted(self._batches, reverse=True)

    def __len__(self) -> int:
        return len(self._batches)

    def __contains__(self, date: object) -> bool:
        return date in self._batches

    def batches(self) -> List[UploadBatch]:
        """All batches, oldest date first."""
        return [self._batches[d] for d in sorted(self._batches)]
