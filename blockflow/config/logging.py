"""
Blockflow Logging Configuration

Provides structured logging with JSON format support, run correlation,
stage timing, and configurable log levels for batch pipeline runs.
"""

import json
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

# Context variable for pipeline run correlation
run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


# =============================================================================
# Log Level Strategy
# =============================================================================
#
# DEBUG   - Per-row and per-group diagnostics
#           - Discarded rows during normalization
#           - Group sizes and cluster hits
#           - Stage timings below threshold
#
# INFO    - Batch-level events
#           - Ingest complete with kept/discarded counts
#           - Pipeline run complete with timing
#           - Component initialization
#
# WARNING - Degraded but recoverable behavior
#           - Signal oracle miss falling back to a random move
#           - Slow pipeline stages
#           - Unreadable config file falling back to defaults
#
# ERROR   - A run or read could not complete
#           - Unsupported upload format
#           - Invalid configuration content
# =============================================================================


class StructuredFormatter(logging.Formatter):
    """
    JSON structured log formatter.

    One JSON object per line, suitable for log aggregation systems.
    """

    def __init__(self, service_name: str = "blockflow", environment: str = "development"):
        super().__init__()
        self.service_name = service_name
        self.environment = environment
        self.hostname = os.uname().nodename

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "level_num": record.levelno,
            "service": self.service_name,
            "environment": self.environment,
            "hostname": self.hostname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "run_id": run_id_var.get(),
            "process_id": record.process,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        # Context fields prefixed with ctx_ are included without the prefix
        for key, value in record.__dict__.items():
            if key.startswith("ctx_"):
                log_data[key[4:]] = value

        log_data = {k: v for k, v in log_data.items() if v is not None}

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter for development.
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        run_id = run_id_var.get()
        run_str = f"[{run_id[:8]}]" if run_id else ""

        formatted = (
            f"{timestamp} {color}{record.levelname:8}{self.RESET} "
            f"{run_str} {record.name} - {record.getMessage()}"
        )

        extras = []
        for key, value in record.__dict__.items():
            if key.startswith("ctx_"):
                extras.append(f"{key[4:]}={value}")
        if extras:
            formatted += f" | {', '.join(extras)}"

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    service_name: str = "blockflow",
    environment: str = "development",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure logging for blockflow.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging
        service_name: Service name for structured logs
        environment: Environment name (development, staging, production)
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    if json_format:
        formatter = StructuredFormatter(service_name, environment)
    else:
        formatter = ConsoleFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter(service_name, environment))
        root_logger.addHandler(file_handler)

    # openpyxl is chatty about workbook styles
    logging.getLogger("openpyxl").setLevel(logging.WARNING)


# =============================================================================
# Run Context
# =============================================================================


def set_run_context(run_id: Optional[str] = None) -> Token:
    """
    Set the pipeline run id used to correlate log lines.

    Args:
        run_id: Run ID (generated if not provided)

    Returns:
        Token for restoring the previous run id
    """
    return run_id_var.set(run_id or str(uuid.uuid4()))


def clear_run_context(token: Token) -> None:
    """Restore the run id that was current before ``set_run_context``."""
    run_id_var.reset(token)


def get_run_id() -> Optional[str]:
    """Get current run ID."""
    return run_id_var.get()


# =============================================================================
# Performance Logging Decorator
# =============================================================================

T = TypeVar("T")


def log_performance(threshold_ms: float = 1000.0) -> Callable:
    """
    Decorator to log how long a pipeline stage takes.

    Args:
        threshold_ms: Log a warning if execution exceeds this threshold

    Example:
        @log_performance(threshold_ms=500)
        def score(self, records):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        logger = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            start_time = time.perf_counter()

            extra: Dict[str, Any] = {
                "ctx_function": func.__name__,
                "ctx_operation": "pipeline_stage",
            }

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                extra["ctx_duration_ms"] = round(duration_ms, 2)
                extra["ctx_status"] = "error"
                extra["ctx_error_type"] = type(e).__name__
                logger.error(
                    f"Stage failed: {func.__name__} - {str(e)}",
                    extra=extra,
                    exc_info=True,
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            extra["ctx_duration_ms"] = round(duration_ms, 2)
            extra["ctx_status"] = "success"

            if duration_ms > threshold_ms:
                logger.warning(
                    f"Slow stage: {func.__name__} took {duration_ms:.2f}ms",
                    extra=extra,
                )
            else:
                logger.debug(
                    f"Stage completed: {func.__name__} in {duration_ms:.2f}ms",
                    extra=extra,
                )

            return result

        return wrapper

    return decorator


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log a message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Additional context fields
    """
    extra = {f"ctx_{k}": v for k, v in context.items()}
    logger.log(level, message, extra=extra)


# =============================================================================
# Pipeline Event Logging
# =============================================================================


class PipelineLogger:
    """
    Logger for batch-level pipeline events with structured context.
    """

    def __init__(self, logger_name: str = "blockflow.pipeline"):
        self.logger = logging.getLogger(logger_name)

    def log_ingest(
        self,
        batch_date: Optional[str],
        rows_in: int,
        records_out: int,
    ) -> None:
        """Log a normalization batch."""
        extra = {
            "ctx_event": "ingest",
            "ctx_batch_date": batch_date,
            "ctx_rows_in": rows_in,
            "ctx_records_out": records_out,
            "ctx_discarded": rows_in - records_out,
        }
        self.logger.info(
            f"Normalized {records_out}/{rows_in} rows for {batch_date or 'row dates'}",
            extra=extra,
        )

    def log_run_complete(
        self,
        record_count: int,
        duration_ms: float,
        anchors: int = 0,
        shadow_clusters: int = 0,
    ) -> None:
        """Log pipeline run completion."""
        extra = {
            "ctx_event": "pipeline_run",
            "ctx_record_count": record_count,
            "ctx_duration_ms": round(duration_ms, 2),
            "ctx_gravity_anchors": anchors,
            "ctx_shadow_clusters": shadow_clusters,
        }
        self.logger.info(
            f"Pipeline run complete: {record_count} records ({duration_ms:.2f}ms)",
            extra=extra,
        )

    def log_overlay(self, date: str, move: float, tagged: int) -> None:
        """Log a context overlay application."""
        extra = {
            "ctx_event": "context_overlay",
            "ctx_date": date,
            "ctx_move": move,
            "ctx_tagged": tagged,
        }
        self.logger.info(
            f"Context overlay for {date}: move {move:+.2f}%, {tagged} records tagged",
            extra=extra,
        )


pipeline_logger = PipelineLogger()
