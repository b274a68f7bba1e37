"""
Tests for upload readers.
"""

import pandas as pd
import pytest

from blockflow.core.errors import ErrorCodes, IngestError
from blockflow.ingest.normalizer import normalize_rows
from blockflow.ingest.readers import read_csv_text, read_rows


class TestReadCsvText:
    """Tests for read_csv_text."""

    def test_reads_rows_as_text(self, sample_csv):
        """Test every cell comes back as a string keyed by header."""
        rows = read_csv_text(sample_csv)

        assert len(rows) == 9
        assert rows[0]["Ticker (#T)"] == "GE"
        assert rows[0]["$$"] == "23555362"
        assert all(isinstance(v, str) for v in rows[0].values())

    def test_blank_cells_are_empty_strings(self, sample_csv):
        """Test blank rank cells are empty strings, not NaN."""
        rows = read_csv_text(sample_csv)
        assert rows[0]["R"] == ""
        assert rows[3]["R"] == "44.0"

    def test_quoted_field_with_comma(self, sample_csv):
        """Test quoted industry names keep their commas."""
        rows = read_csv_text(sample_csv)
        assert rows[2]["Industry"] == "Oil, Gas and Consumable Fuels"

    def test_line_with_extra_field_is_skipped(self, caplog):
        """Test an unquoted comma drops only its own line."""
        content = (
            "Time,Ticker (#T),TP,Sector,Industry,Sh,$$,RS,PCT,R,Last\n"
            "6:08:50 PM,GE,324.32,Industrials,Industrial Conglomerates,72630,23555362,7.46,98.0,,2026-01-02\n"
            "6:05:02 PM,COP,99.2,Energy,Oil, Gas and Consumable Fuels,318105,31556016,5.68,96.0,,2026-01-02\n"
            "5:35:27 PM,AMD,221.08,Technology,Semis,393200,86928656,19.98,99.0,,2026-01-02\n"
        )

        with caplog.at_level("WARNING", logger="blockflow.ingest.readers"):
            rows = read_csv_text(content)

        assert [r["Ticker (#T)"] for r in rows] == ["GE", "AMD"]
        assert rows[1]["$$"] == "86928656"
        assert "Skipping malformed CSV line" in caplog.text

    def test_upload_with_bad_line_still_reads(self, tmp_path, sample_csv):
        """Test read_rows keeps the good rows of a partly malformed file."""
        path = tmp_path / "blocks.csv"
        path.write_text(
            sample_csv + "6:01:00 PM,XOM,110.5,Energy,Oil, Gas,1000,110500,1.2,90.0,,2026-01-02\n",
            encoding="utf-8",
        )

        rows = read_rows(path)
        assert len(rows) == 9

    def test_empty_content(self):
        """Test empty uploads give no rows."""
        assert read_csv_text("") == []
        assert read_csv_text("   \n") == []

    def test_rows_feed_normalizer(self, sample_csv):
        """Test reader output normalizes end to end."""
        records = normalize_rows(read_csv_text(sample_csv), force_date="2026-01-05")

        assert len(records) == 9
        assert records[2].industry == "Oil, Gas and Consumable Fuels"
        assert records[3].rank == 44


class TestReadRows:
    """Tests for read_rows."""

    def test_reads_csv_file(self, tmp_path, sample_csv):
        """Test a .csv upload is read from disk."""
        path = tmp_path / "blocks_2026-01-05.csv"
        path.write_text(sample_csv, encoding="utf-8")

        rows = read_rows(path)
        assert len(rows) == 9
        assert rows[4]["Ticker (#T)"] == "NVDA"

    def test_reads_csv_with_bom(self, tmp_path, sample_csv):
        """Test a byte-order mark does not leak into the first header."""
        path = tmp_path / "blocks.csv"
        path.write_text(sample_csv, encoding="utf-8-sig")

        rows = read_rows(str(path))
        assert "Time" in rows[0]

    def test_reads_xlsx_file(self, tmp_path):
        """Test an .xlsx upload is read through openpyxl."""
        path = tmp_path / "blocks.xlsx"
        pd.DataFrame(
            {
                "Ticker (#T)": ["GE", "AMD"],
                "TP": ["324.32", "221.08"],
                "$$": ["23555362", "86928656"],
                "R": ["", "5"],
            }
        ).to_excel(path, index=False, engine="openpyxl")

        rows = read_rows(path)

        assert [r["Ticker (#T)"] for r in rows] == ["GE", "AMD"]
        assert rows[0]["R"] == ""
        records = normalize_rows(rows, force_date="2026-01-05")
        assert records[1].rank == 5
        assert records[1].notional_value == pytest.approx(86928656.0)

    def test_corrupt_xlsx(self, tmp_path):
        """Test a file that is not a workbook raises IngestError."""
        path = tmp_path / "blocks.xlsx"
        path.write_bytes(b"Time,Ticker\n")

        with pytest.raises(IngestError) as exc_info:
            read_rows(path)

        assert exc_info.value.error_code is ErrorCodes.DATA_READ_FAILED

    def test_unsupported_suffix(self, tmp_path):
        """Test unsupported formats raise IngestError."""
        path = tmp_path / "blocks.json"
        path.write_text("[]")

        with pytest.raises(IngestError) as exc_info:
            read_rows(path)

        assert exc_info.value.error_code is ErrorCodes.DATA_UNSUPPORTED_FORMAT
        assert "blocks.json" in exc_info.value.user_message

    def test_missing_file(self, tmp_path):
        """Test an unreadable file raises IngestError with the cause attached."""
        with pytest.raises(IngestError) as exc_info:
            read_rows(tmp_path / "missing.csv")

        error = exc_info.value
        assert error.error_code is ErrorCodes.DATA_READ_FAILED
        assert isinstance(error.original_error, OSError)
        assert error.context["path"].endswith("missing.csv")
