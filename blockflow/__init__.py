"""
Blockflow - institutional block-trade analytics.

Normalizes uploaded block-print rows, scores them against their batch,
detects ticker, industry and price-level relationships, overlays a
correlated-asset signal, and lays sector totals out as a treemap.
"""

__version__ = "0.1.0"

from blockflow.core.dataset import TradeDataset, UploadBatch
from blockflow.core.pipeline import PipelineResult, TradePipeline

__all__ = [
    "__version__",
    "TradeDataset",
    "UploadBatch",
    "TradePipeline",
    "PipelineResult",
]
