# Blockflow Core Module

from blockflow.core.errors import (
    BlockflowError,
    ConfigurationError,
    ErrorCategory,
    ErrorCode,
    ErrorCodes,
    ErrorSeverity,
    IngestError,
    SignalUnavailableError,
)
from blockflow.core.models import (
    BehavioralTag,
    ContextOverlay,
    Direction,
    GravityAnchor,
    OverlayTag,
    SectorGroup,
    SentimentCategory,
    TradeRecord,
    records_to_dataframe,
)

__all__ = [
    # Errors
    "BlockflowError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorCode",
    "ErrorCodes",
    "ErrorSeverity",
    "IngestError",
    "SignalUnavailableError",
    # Models
    "BehavioralTag",
    "ContextOverlay",
    "Direction",
    "GravityAnchor",
    "OverlayTag",
    "SectorGroup",
    "SentimentCategory",
    "TradeRecord",
    "records_to_dataframe",
]
