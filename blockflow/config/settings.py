"""
Blockflow Settings

Thresholds and runtime options for the analytics pipeline, loaded from
environment variables (prefix ``BLOCKFLOW_``) and optionally a YAML file.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blockflow.config.logging import configure_logging
from blockflow.core.errors import ConfigurationError, ErrorCodes

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config") / "blockflow.yaml"


# =============================================================================
# Threshold Groups
# =============================================================================


class ScoringThresholds(BaseModel):
    """Cut-offs used by the sentiment decision table."""

    momentum_rs: float = Field(default=20.0, description="RS above which a block is maximum impact")
    contrarian_max_rs: float = Field(default=5.0, description="RS below which high value flow is algorithmic")
    contrarian_min_value: float = Field(default=10_000_000, gt=0, description="Notional for algorithmic flow")
    stealth_rs: float = Field(default=15.0, description="RS above which a lagging name is accumulated")
    stealth_min_rank: int = Field(default=50, ge=1, description="Rank beyond which a name is lagging")
    sector_rs: float = Field(default=10.0, description="RS for sector-conditioned rules")


class RelationshipThresholds(BaseModel):
    """Cut-offs used by the grouping passes."""

    behavior_min_group: int = Field(default=2, ge=0, description="Ticker groups larger than this get a tag")
    whale_group_value: float = Field(default=100_000_000, gt=0, description="Group notional for WHALE")
    blitz_mean_rank: float = Field(default=20.0, description="Mean rank below which a group is BLITZ")
    unranked_rank: float = Field(default=100.0, description="Rank substituted for unranked trades")
    shadow_rs: float = Field(default=10.0, description="RS a trade needs to count toward a shadow cluster")
    shadow_min_members: int = Field(default=3, ge=0, description="Qualifying trades needed, exclusive")
    gravity_variance: float = Field(default=0.01, gt=0, lt=1, description="Relative price band for a level")


class OverlayThresholds(BaseModel):
    """Cut-offs used by the context overlay."""

    gate_move: float = Field(default=1.5, ge=0, description="Absolute move that opens correlated sectors")
    sympathy_move: float = Field(default=2.0, description="Move above which large blocks ride along")
    sympathy_rs: float = Field(default=15.0, description="RS needed for a sympathy play")
    drag_move: float = Field(default=-2.0, description="Move below which small blocks are dragged")
    drag_rs: float = Field(default=5.0, description="RS below which a block is dragged")
    correlated_proxies: List[str] = Field(
        default=["COIN", "MSTR", "SQ", "HOOD", "RIOT", "MARA", "CLSK", "PYPL"],
        description="Tickers that always receive the overlay",
    )

    @field_validator("correlated_proxies")
    @classmethod
    def upper_case_proxies(cls, v: List[str]) -> List[str]:
        return [t.strip().upper() for t in v if t and t.strip()]


# =============================================================================
# Settings
# =============================================================================


class BlockflowSettings(BaseSettings):
    """
    Pipeline configuration.

    Nested groups can be set from the environment with a double underscore,
    e.g. ``BLOCKFLOW_SCORING__MOMENTUM_RS=25``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BLOCKFLOW_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    default_date: str = Field(
        default="2026-01-05",
        pattern=r"^\d{4}-\d{2}-\d{2}$",
        description="Date stamped on rows with neither a forced nor a trailing date.",
    )
    signal_fallback: Literal["random", "zero", "error"] = Field(
        default="random",
        description="What the signal oracle does for dates it does not know.",
    )
    log_level: str = Field(default="INFO", description="Root log level.")
    log_json: bool = Field(default=False, description="Emit JSON structured logs.")

    scoring: ScoringThresholds = Field(default_factory=ScoringThresholds)
    relationships: RelationshipThresholds = Field(default_factory=RelationshipThresholds)
    overlay: OverlayThresholds = Field(default_factory=OverlayThresholds)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


def load_settings(path: Optional[Union[str, Path]] = None) -> BlockflowSettings:
    """
    Load settings from a YAML file layered over environment defaults.

    Args:
        path: YAML file path. A missing file yields defaults.

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_FILE
    data: Dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                ErrorCodes.CONFIG_UNPARSEABLE,
                detail=str(config_path),
                original_error=e,
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                detail=f"{config_path} must contain a mapping at the top level",
                context={"path": str(config_path)},
            )
        logger.info(f"Loaded settings from {config_path}")
    else:
        logger.debug(f"No config file at {config_path}, using defaults")

    try:
        return BlockflowSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(
            detail=f"{config_path}: {e.error_count()} invalid value(s)",
            original_error=e,
            context={"errors": e.errors(include_url=False)},
        ) from e


@lru_cache()
def get_settings() -> BlockflowSettings:
    """Cached settings for callers that do not manage their own."""
    return load_settings()


def configure_logging_from(settings: BlockflowSettings, log_file: Optional[str] = None) -> None:
    """
    Configure root logging from ``log_level`` and ``log_json``.

    Args:
        settings: Loaded settings
        log_file: Optional path for an additional JSON log file
    """
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        log_file=log_file,
    )
