"""
Upload Readers

Turn an uploaded CSV or Excel export into plain row dictionaries for the
normalizer. Every cell is read as text; typing happens in normalization.
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

from blockflow.core.errors import ErrorCodes, IngestError

logger = logging.getLogger(__name__)

CSV_SUFFIXES = {".csv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xls"}


def _frame_to_rows(df: pd.DataFrame) -> List[Dict[str, str]]:
    df = df.fillna("")
    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient="records")


def _skip_bad_line(fields: List[str]) -> None:
    logger.warning(f"Skipping malformed CSV line with {len(fields)} fields")
    return None


def read_csv_text(content: str) -> List[Dict[str, str]]:
    """
    Parse CSV text (e.g. an upload held in memory).

    Lines with more fields than the header are logged and skipped; the
    remaining rows are still returned.

    Args:
        content: Raw CSV including the header line

    Returns:
        List of rows keyed by header
    """
    if not content.strip():
        return []
    df = pd.read_csv(
        io.StringIO(content),
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        skip_blank_lines=True,
        engine="python",
        on_bad_lines=_skip_bad_line,
    )
    return _frame_to_rows(df)


def read_rows(path: Union[str, Path]) -> List[Dict[str, str]]:
    """
    Read an uploaded file into row dictionaries.

    Args:
        path: Path to a .csv, .xlsx or .xls file

    Returns:
        List of rows keyed by header

    Raises:
        IngestError: If the format is unsupported or the file cannot be read
    """
    file_path = Path(path)
    suffix = file_path.suffix.lower()

    if suffix not in CSV_SUFFIXES | EXCEL_SUFFIXES:
        raise IngestError(
            ErrorCodes.DATA_UNSUPPORTED_FORMAT,
            detail=file_path.name,
            context={"suffix": suffix},
        )

    try:
        if suffix in CSV_SUFFIXES:
            rows = read_csv_text(file_path.read_text(encoding="utf-8-sig"))
        else:
            engine = "openpyxl" if suffix == ".xlsx" else None
            df = pd.read_excel(file_path, dtype=str, engine=engine)
            rows = _frame_to_rows(df)
    except (OSError, UnicodeDecodeError, ValueError, zipfile.BadZipFile) as e:
        error = IngestError(
            ErrorCodes.DATA_READ_FAILED,
            detail=f"{file_path.name}: {e}",
            original_error=e,
            context={"path": str(file_path)},
        )
        error.log()
        raise error from e

    logger.info(f"Read {len(rows)} rows from {file_path.name}")
    return rows
