# Blockflow Ingest Module

from blockflow.ingest.normalizer import (
    FIELD_MAPPINGS,
    FieldMapping,
    build_header_map,
    make_record_id,
    normalize_row,
    normalize_rows,
    parse_number,
    parse_rank,
    resolve_field,
)
from blockflow.ingest.readers import read_csv_text, read_rows

__all__ = [
    "FIELD_MAPPINGS",
    "FieldMapping",
    "build_header_map",
    "make_record_id",
    "normalize_row",
    "normalize_rows",
    "parse_number",
    "parse_rank",
    "resolve_field",
    "read_csv_text",
    "read_rows",
]
