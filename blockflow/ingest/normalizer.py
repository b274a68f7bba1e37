"""
Row Normalizer Module

Map heterogeneous spreadsheet/CSV rows onto canonical trade records.

Block-print exports do not agree on headers: one desk sends ``Ticker (#T)``
and ``$$``, another ``Symbol`` and ``Value``. Each canonical field is
resolved through an ordered list of header matchers, first match wins:
the exact export header, then case-insensitive regex patterns.
"""

import hashlib
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Pattern, Tuple

from blockflow.core.models import GENERAL_INDUSTRY, UNCATEGORIZED_SECTOR, TradeRecord

logger = logging.getLogger(__name__)

# Currency symbols, percent signs, thousands separators and whitespace
_NUMERIC_NOISE = re.compile(r"[\s,$€£¥%]")


# =============================================================================
# Value Parsers
# =============================================================================


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a spreadsheet cell into a float.

    Args:
        value: Raw cell (str, int, float or None)

    Returns:
        Parsed float, or None when blank or unparseable
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _NUMERIC_NOISE.sub("", str(value))
        if not text:
            return None
        # Accounting negatives: (1,234)
        if text.startswith("(") and text.endswith(")"):
            text = "-" + text[1:-1]
        try:
            number = float(text)
        except ValueError:
            return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def parse_rank(value: Any) -> Optional[int]:
    """Rank is nullable: blank, unparseable, or non-positive means unranked."""
    number = parse_number(value)
    if number is None or number <= 0:
        return None
    return int(number)


def parse_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "nan":
        return None
    return text


# =============================================================================
# Field Mappings
# =============================================================================


@dataclass(frozen=True)
class FieldMapping:
    """How one canonical field is found in a row and parsed."""

    field: str
    exact: Tuple[str, ...]
    patterns: Tuple[Pattern, ...]
    parser: Callable[[Any], Any]


def _patterns(*expressions: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(expr, re.IGNORECASE) for expr in expressions)


FIELD_MAPPINGS: Tuple[FieldMapping, ...] = (
    FieldMapping("ticker", ("Ticker (#T)", "Ticker"), _patterns(r"ticker", r"symbol"), parse_text),
    FieldMapping("trade_timestamp", ("Time",), _patterns(r"^time$", r"timestamp", r"^time\b"), parse_text),
    FieldMapping("trade_price", ("TP",), _patterns(r"^tp$", r"trade\s*price", r"price"), parse_number),
    FieldMapping("sector", ("Sector",), _patterns(r"sector"), parse_text),
    FieldMapping("industry", ("Industry",), _patterns(r"industry"), parse_text),
    FieldMapping("share_count", ("Sh",), _patterns(r"^sh$", r"shares", r"quantity"), parse_number),
    FieldMapping("notional_value", ("$$",), _patterns(r"^\$\$$", r"value", r"notional"), parse_number),
    FieldMapping("relative_size", ("RS",), _patterns(r"^rs$", r"relative"), parse_number),
    FieldMapping("percentile_rank", ("PCT",), _patterns(r"^pct$", r"percentile"), parse_number),
    FieldMapping("rank", ("R",), _patterns(r"^r$", r"^rank$"), parse_rank),
    FieldMapping("row_date", ("Last",), _patterns(r"^last$", r"date"), parse_text),
)

_MAPPINGS_BY_FIELD: Dict[str, FieldMapping] = {m.field: m for m in FIELD_MAPPINGS}


def resolve_header(headers: Iterable[str], mapping: FieldMapping) -> Optional[str]:
    """
    Find the header that supplies a canonical field.

    Exact names are tried in order, then each pattern against every header.
    """
    header_list = [h for h in headers if isinstance(h, str)]
    for name in mapping.exact:
        if name in header_list:
            return name
    for pattern in mapping.patterns:
        for header in header_list:
            if pattern.search(header.strip()):
                return header
    return None


def resolve_field(row: Mapping[str, Any], mapping: FieldMapping) -> Any:
    """Parsed value for a canonical field, or None when absent."""
    header = resolve_header(row.keys(), mapping)
    if header is None:
        return None
    return mapping.parser(row.get(header))


def build_header_map(headers: Iterable[str]) -> Dict[str, Optional[str]]:
    """
    Resolve every canonical field against one header set.

    A header claimed by an earlier field is not offered to later ones, so
    ``Trade Price`` cannot be read again as ``notional_value``.
    """
    remaining = [h for h in headers if isinstance(h, str)]
    resolved: Dict[str, Optional[str]] = {}
    for mapping in FIELD_MAPPINGS:
        header = resolve_header(remaining, mapping)
        resolved[mapping.field] = header
        if header is not None:
            remaining.remove(header)
    return resolved


# =============================================================================
# Identity
# =============================================================================


def make_record_id(
    ticker: str,
    observed_date: str,
    trade_timestamp: str,
    notional_value: float,
) -> str:
    """
    Stable composite key for a print.

    The same print ingested twice yields the same id, so batches can be
    deduplicated and re-runs compared.
    """
    key = f"{ticker}|{observed_date}|{trade_timestamp}|{notional_value:.2f}"
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]
    return f"{ticker}-{observed_date}-{digest}"


# =============================================================================
# Normalization
# =============================================================================


def normalize_row(
    row: Mapping[str, Any],
    observed_date: Optional[str],
    default_date: str,
    header_map: Optional[Dict[str, Optional[str]]] = None,
) -> Optional[TradeRecord]:
    """
    Normalize one row.

    Args:
        row: Raw row keyed by header
        observed_date: Forced batch date, overrides any date column
        default_date: Date used when neither forced nor present in the row
        header_map: Pre-resolved headers (from ``build_header_map``)

    Returns:
        TradeRecord, or None when the ticker is unresolved or notional <= 0
    """
    if header_map is None:
        header_map = build_header_map(row.keys())

    def value(field_name: str) -> Any:
        header = header_map.get(field_name)
        if header is None:
            return None
        return _MAPPINGS_BY_FIELD[field_name].parser(row.get(header))

    ticker = value("ticker")
    if not ticker:
        return None
    ticker = ticker.upper()

    notional = value("notional_value") or 0.0
    if notional <= 0:
        return None

    date = observed_date or value("row_date") or default_date
    timestamp = value("trade_timestamp") or ""

    return TradeRecord(
        id=make_record_id(ticker, date, timestamp, notional),
        ticker=ticker,
        trade_timestamp=timestamp,
        trade_price=value("trade_price") or 0.0,
        notional_value=notional,
        observed_date=date,
        sector=value("sector") or UNCATEGORIZED_SECTOR,
        industry=value("industry") or GENERAL_INDUSTRY,
        share_count=max(int(value("share_count") or 0), 0),
        relative_size=max(value("relative_size") or 0.0, 0.0),
        percentile_rank=value("percentile_rank") or 0.0,
        rank=value("rank"),
    )


def normalize_rows(
    rows: Iterable[Mapping[str, Any]],
    force_date: Optional[str] = None,
    default_date: str = "2026-01-05",
) -> List[TradeRecord]:
    """
    Normalize a batch of raw rows into trade records.

    Rows that cannot be resolved are dropped silently; an all-invalid batch
    gives an empty list.

    Args:
        rows: Raw rows from a CSV/XLSX reader
        force_date: Date stamped on every record in the batch
        default_date: Fallback date for rows without a date column value

    Returns:
        Records with derived scores zero-initialized
    """
    records: List[TradeRecord] = []
    header_map: Optional[Dict[str, Optional[str]]] = None
    header_key: Optional[Tuple[str, ...]] = None
    total = 0

    for row in rows:
        total += 1
        keys = tuple(row.keys())
        if keys != header_key:
            header_key = keys
            header_map = build_header_map(keys)

        record = normalize_row(row, force_date, default_date, header_map)
        if record is None:
            logger.debug(f"Discarded row {total}: unresolved ticker or non-positive value")
            continue
        records.append(record)

    if total:
        logger.debug(f"Normalized {len(records)} of {total} rows")
    return records
