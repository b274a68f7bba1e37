"""
Blockflow Error Handling Module

Structured error codes, user-facing messages, and recovery hints for the
few places where the pipeline raises instead of filtering.

Malformed rows are never errors: they are dropped by the normalizer. The
errors here cover unreadable uploads, invalid configuration, and a signal
oracle configured to refuse unknown dates.
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Error Code Taxonomy
# =============================================================================


class ErrorCategory(Enum):
    """Top-level error categories."""

    DATA = "DATA"
    CONFIG = "CONFIG"
    SIGNAL = "SIGNAL"


class ErrorSeverity(Enum):
    """Error severity levels."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class ErrorCode:
    """Structured error code with metadata."""

    code: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    retryable: bool = False
    recovery_hint: str = ""

    def __str__(self) -> str:
        return f"{self.category.value}_{self.code}"


class ErrorCodes:
    """Central registry of blockflow error codes."""

    # Data Errors (1xxx)
    DATA_UNSUPPORTED_FORMAT = ErrorCode(
        code="1001",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.ERROR,
        message="Unsupported upload format",
        user_message="This file type cannot be ingested.",
        recovery_hint="Upload a .csv, .xlsx or .xls file.",
    )

    DATA_READ_FAILED = ErrorCode(
        code="1002",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.ERROR,
        message="Failed to read upload",
        user_message="The file could not be read.",
        retryable=True,
        recovery_hint="Check that the file exists and is not open in another program.",
    )

    # Configuration Errors (2xxx)
    CONFIG_INVALID = ErrorCode(
        code="2001",
        category=ErrorCategory.CONFIG,
        severity=ErrorSeverity.ERROR,
        message="Invalid configuration",
        user_message="The configuration file contains invalid values.",
        recovery_hint="Compare the file against the documented settings keys.",
    )

    CONFIG_UNPARSEABLE = ErrorCode(
        code="2002",
        category=ErrorCategory.CONFIG,
        severity=ErrorSeverity.ERROR,
        message="Configuration file is not valid YAML",
        user_message="The configuration file could not be parsed.",
        recovery_hint="Validate the YAML syntax.",
    )

    # Signal Errors (3xxx)
    SIGNAL_UNAVAILABLE = ErrorCode(
        code="3001",
        category=ErrorCategory.SIGNAL,
        severity=ErrorSeverity.WARNING,
        message="No external signal for date",
        user_message="No correlated-asset move is known for this date.",
        recovery_hint="Add the date to the signal mapping or choose another fallback.",
    )


# =============================================================================
# Base Exception Classes
# =============================================================================


class BlockflowError(Exception):
    """
    Base exception for all blockflow errors.

    Carries an error code, optional detail, and structured context.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        detail: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.detail = detail
        self.original_error = original_error
        self.context = context or {}
        self.debug_info: Dict[str, Any] = {}
        self.timestamp = datetime.now(timezone.utc)

        if original_error:
            self.debug_info["original_traceback"] = traceback.format_exception(
                type(original_error), original_error, original_error.__traceback__
            )

        super().__init__(self.technical_message)

    @property
    def code(self) -> str:
        """Full error code string."""
        return str(self.error_code)

    @property
    def category(self) -> ErrorCategory:
        return self.error_code.category

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_code.severity

    @property
    def is_retryable(self) -> bool:
        return self.error_code.retryable

    @property
    def user_message(self) -> str:
        """User-friendly error message."""
        msg = self.error_code.user_message
        if self.detail:
            msg = f"{msg} ({self.detail})"
        return msg

    @property
    def technical_message(self) -> str:
        """Technical error message for logging."""
        msg = f"[{self.code}] {self.error_code.message}"
        if self.detail:
            msg = f"{msg}: {self.detail}"
        return msg

    @property
    def recovery_hint(self) -> str:
        return self.error_code.recovery_hint

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        """
        Convert error to a dictionary.

        Args:
            include_debug: Include technical message, context and tracebacks
        """
        result = {
            "code": self.code,
            "category": self.category.value,
            "message": self.user_message,
            "recovery_hint": self.recovery_hint,
            "retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

        if include_debug:
            result["debug"] = {
                "technical_message": self.technical_message,
                "context": self.context,
                "debug_info": self.debug_info,
            }

        return result

    def log(self) -> None:
        """Log the error with appropriate severity."""
        log_method = getattr(logger, self.severity.name.lower(), logger.error)
        log_method(
            f"{self.technical_message}",
            extra={
                "ctx_error_code": self.code,
                "ctx_context": self.context,
                "ctx_retryable": self.is_retryable,
            },
        )


class IngestError(BlockflowError):
    """Upload could not be turned into rows."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.DATA_READ_FAILED,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class ConfigurationError(BlockflowError):
    """Settings could not be loaded or validated."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.CONFIG_INVALID,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class SignalUnavailableError(BlockflowError):
    """The signal oracle has no move for the requested date."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.SIGNAL_UNAVAILABLE,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


__all__ = [
    "ErrorCategory",
    "ErrorSeverity",
    "ErrorCode",
    "ErrorCodes",
    "BlockflowError",
    "IngestError",
    "ConfigurationError",
    "SignalUnavailableError",
]
