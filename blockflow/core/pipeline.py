"""
Blockflow Pipeline

Coordinates one batch run: normalize -> score -> detect relationships,
with the context overlay applied per date on request.

A run reads a TradeDataset (or raw rows) and returns a PipelineResult
holding freshly built records. Nothing is cached on the pipeline between
runs.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd

from blockflow.analytics.context_overlay import ContextOverlayEngine, SignalOracle
from blockflow.analytics.layout import LayoutCell, Rect, layout_sector_groups
from blockflow.analytics.relationships import RelationshipDetector
from blockflow.analytics.scoring import BatchStatistics, ScoreEngine, compute_batch_statistics
from blockflow.analytics.sectors import build_sector_groups
from blockflow.config.logging import (
    clear_run_context,
    get_run_id,
    pipeline_logger,
    set_run_context,
)
from blockflow.config.settings import BlockflowSettings
from blockflow.core.dataset import TradeDataset
from blockflow.core.models import SectorGroup, TradeRecord, records_to_dataframe
from blockflow.ingest.normalizer import normalize_rows

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Scored and annotated records from one run."""

    records: List[TradeRecord]
    statistics: BatchStatistics
    run_id: Optional[str] = None
    duration_ms: float = 0.0
    discarded_rows: int = 0

    @property
    def available_dates(self) -> List[str]:
        """Observed dates present, newest first."""
        return sorted({r.observed_date for r in self.records if r.observed_date}, reverse=True)

    def for_date(self, date: str) -> List[TradeRecord]:
        return [r for r in self.records if r.observed_date == date]

    def sector_groups(self, date: Optional[str] = None) -> List[SectorGroup]:
        return build_sector_groups(self.for_date(date) if date else self.records)

    def layout(self, date: Optional[str] = None, rect: Optional[Rect] = None) -> List[LayoutCell]:
        """Treemap cells for the sector groups of one date (or all records)."""
        return layout_sector_groups(self.sector_groups(date), rect)

    def to_dataframe(self) -> pd.DataFrame:
        return records_to_dataframe(self.records)


class TradePipeline:
    """
    Batch analytics pipeline for institutional block prints.
    """

    def __init__(
        self,
        settings: Optional[BlockflowSettings] = None,
        oracle: Optional[SignalOracle] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Thresholds and options (defaults when omitted)
            oracle: Correlated-asset signal source; built from
                ``settings.signal_fallback`` when omitted
        """
        self.settings = settings or BlockflowSettings()
        self.score_engine = ScoreEngine(self.settings.scoring)
        self.detector = RelationshipDetector(self.settings.relationships)
        self.overlay_engine = ContextOverlayEngine(
            oracle=oracle or SignalOracle.with_strategy(self.settings.signal_fallback),
            thresholds=self.settings.overlay,
        )
        logger.info("TradePipeline initialized")

    def analyze(self, records: List[TradeRecord]) -> List[TradeRecord]:
        """Score and annotate already-normalized records in place."""
        self.score_engine.score(records)
        self.detector.detect(records)
        return records

    def run(self, dataset: TradeDataset) -> PipelineResult:
        """
        Run the pipeline over every batch in a dataset.

        Scores are computed across all batches together, matching a single
        combined upload.
        """
        token = set_run_context()
        run_id = get_run_id()
        start = time.perf_counter()
        try:
            records: List[TradeRecord] = []
            discarded = 0
            for batch in dataset.batches():
                batch_records = normalize_rows(
                    batch.rows,
                    force_date=batch.date,
                    default_date=self.settings.default_date,
                )
                pipeline_logger.log_ingest(batch.date, len(batch.rows), len(batch_records))
                discarded += len(batch.rows) - len(batch_records)
                records.extend(batch_records)

            return self._finish(records, run_id, start, discarded)
        finally:
            clear_run_context(token)

    def run_rows(
        self,
        rows: Iterable[Mapping[str, Any]],
        force_date: Optional[str] = None,
    ) -> PipelineResult:
        """
        Run the pipeline over one batch of raw rows.

        Args:
            rows: Raw rows keyed by header
            force_date: Date stamped on every record; the row's own date
                column (or the configured default) when omitted
        """
        token = set_run_context()
        run_id = get_run_id()
        start = time.perf_counter()
        try:
            row_list = list(rows)
            records = normalize_rows(
                row_list,
                force_date=force_date,
                default_date=self.settings.default_date,
            )
            pipeline_logger.log_ingest(force_date, len(row_list), len(records))
            return self._finish(records, run_id, start, len(row_list) - len(records))
        finally:
            clear_run_context(token)

    def apply_context(self, records: List[TradeRecord], date: str) -> List[TradeRecord]:
        """Apply the correlated-asset overlay for one date in place."""
        return self.overlay_engine.apply(records, date)

    def _finish(
        self,
        records: List[TradeRecord],
        run_id: str,
        start: float,
        discarded: int,
    ) -> PipelineResult:
        statistics = compute_batch_statistics(records)
        self.score_engine.score(records, statistics)
        self.detector.detect(records)
        duration_ms = (time.perf_counter() - start) * 1000

        pipeline_logger.log_run_complete(
            record_count=len(records),
            duration_ms=duration_ms,
            anchors=sum(1 for r in records if r.gravity_anchor is not None),
            shadow_clusters=sum(1 for r in records if r.shadow_cluster),
        )
        return PipelineResult(
            records=records,
            statistics=statistics,
            run_id=run_id,
            duration_ms=duration_ms,
            discarded_rows=discarded,
        )
