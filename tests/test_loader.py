"""
Tests for reading spreadsheet exports into raw rows.
"""

from __future__ import annotations

import random
from pathlib import Path

import pandas as pd
import pytest

from textrecon.ingestion.loader import ExportFormatError, ExportLoader
from textrecon.ingestion.transformer import ExportTransformer

CSV_TEXT = (
    "Type,Date,Name / Number,Content\n"
    'Sent,"Tuesday, July 29, 2025 9:58 AM",,Can we meet at ten thirty?\n'
    ",,,\n"
    'Received,"Tuesday, July 29, 2025",,\n'
    ',"10:05 AM",(555) 123-4567,"Yes, ten thirty works for me."\n'
)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    """Write ``text`` to ``tmp_path / name`` and return the path."""

    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_load_csv_rows_as_text(tmp_path: Path) -> None:
    """Cells come back as strings and blank rows are dropped."""

    rows = ExportLoader(_write(tmp_path, "export.csv", CSV_TEXT)).load_rows()

    assert len(rows) == 3
    assert rows[0]["Type"] == "Sent"
    assert rows[0]["Name / Number"] == ""
    assert rows[2]["Name / Number"] == "(555) 123-4567"


def test_loaded_rows_feed_the_pipeline(tmp_path: Path) -> None:
    """A split CSV export reconstructs into two messages."""

    rows = ExportLoader(_write(tmp_path, "export.csv", CSV_TEXT)).load_rows()
    result = ExportTransformer(rng=random.Random(0)).process(rows)

    assert result.summary.processed_messages == 2
    assert result.summary.reconstructed_rows == 1
    assert [m.role for m in result.messages] == ["you", "client"]


def test_load_excel_first_sheet(tmp_path: Path) -> None:
    """Excel exports are read from their first sheet."""

    path = tmp_path / "export.xlsx"
    pd.DataFrame(
        {"Type": ["Sent", None], "Content": ["Hello from the spreadsheet", None]}
    ).to_excel(path, index=False)

    rows = ExportLoader(path).load_rows()

    assert rows == [{"Type": "Sent", "Content": "Hello from the spreadsheet"}]


def test_missing_file_raises(tmp_path: Path) -> None:
    """A missing export is a FileNotFoundError."""

    with pytest.raises(FileNotFoundError):
        ExportLoader(tmp_path / "nope.csv").load_rows()


def test_unsupported_extension_raises(tmp_path: Path) -> None:
    """Only csv/xls/xlsx exports are understood."""

    path = _write(tmp_path, "export.pdf", "not a table")

    with pytest.raises(ExportFormatError):
        ExportLoader(path).load_rows()


def test_to_dataframe_flattens_metadata(tmp_path: Path) -> None:
    """Processed messages become one flat row each."""

    rows = ExportLoader(_write(tmp_path, "export.csv", CSV_TEXT)).load_rows()
    result = ExportTransformer(rng=random.Random(0)).process(rows)

    df = ExportLoader.to_dataframe(result.messages)

    assert len(df) == 2
    assert {"role", "confidence", "parse_success", "original_row"} <= set(df.columns)
    assert df["original_row"].tolist() == [0, 1]
    assert ExportLoader.to_dataframe([]).empty
