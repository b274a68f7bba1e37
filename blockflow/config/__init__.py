# Blockflow Configuration

from blockflow.config.logging import (
    configure_logging,
    log_performance,
    pipeline_logger,
)
from blockflow.config.settings import (
    BlockflowSettings,
    OverlayThresholds,
    RelationshipThresholds,
    ScoringThresholds,
    configure_logging_from,
    get_settings,
    load_settings,
)

__all__ = [
    "configure_logging",
    "log_performance",
    "pipeline_logger",
    "BlockflowSettings",
    "OverlayThresholds",
    "RelationshipThresholds",
    "ScoringThresholds",
    "configure_logging_from",
    "get_settings",
    "load_settings",
]
