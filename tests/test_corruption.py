"""
Tests for the read-only corruption analysis of raw rows.
"""

from __future__ import annotations

import pytest

from textrecon.analytics.corruption import CorruptionAnalyzer

CLEAN_ROW = {
    "Type": "Sent",
    "Date": "July 29, 2025",
    "Content": "Clean row with everything it needs.",
}


def test_clean_row_has_no_issues() -> None:
    """A complete row is not reported."""

    assert CorruptionAnalyzer().detect(CLEAN_ROW) == []


def test_type_only_row_is_missing_date_and_content() -> None:
    """Missing pieces are weighted by severity."""

    analyzer = CorruptionAnalyzer()
    issues = analyzer.detect({"Type": "Received"})

    assert {(i.field, i.severity) for i in issues} == {
        ("timestamp", "high"),
        ("content", "critical"),
    }
    assert analyzer.row_health(issues) == pytest.approx(0.35)


def test_short_leftover_values_flag_fragmentation() -> None:
    """Short word-bearing values in a busy row suggest split content."""

    issues = CorruptionAnalyzer().detect(
        {"a": "Sent", "b": "Tuesday, July 29, 2025", "c": "Hey can"}
    )

    assert "fragmented_data" in {i.type for i in issues}


def test_encoding_artifacts_are_low_severity() -> None:
    """Mojibake is reported against the column it appears in."""

    row = dict(CLEAN_ROW, Content="Donâ€™t forget the keys tonight")
    issues = CorruptionAnalyzer().detect(row)

    assert [(i.type, i.field, i.severity) for i in issues] == [
        ("encoding_error", "Content", "low")
    ]


def test_non_mapping_row_is_a_structure_mismatch() -> None:
    """Rows that are not column mappings are critical."""

    issues = CorruptionAnalyzer().detect(["Sent", "hello"])

    assert [i.type for i in issues] == ["structure_mismatch"]


def test_analyze_reports_stats() -> None:
    """Stats count corrupted rows and rank issue types."""

    rows = [CLEAN_ROW, {"Type": "Received"}, {"Date": "2025"}]
    report = CorruptionAnalyzer().analyze(rows)

    assert report.stats.total_rows == 3
    assert report.stats.corrupted_rows == 2
    assert [r.row_index for r in report.corrupted_rows] == [1, 2]
    assert report.stats.common_issues[0]["type"] == "missing_field"
    assert report.stats.common_issues[0]["count"] == 4


def test_analyze_clean_rows() -> None:
    """No corrupted rows means full health."""

    report = CorruptionAnalyzer().analyze([CLEAN_ROW])

    assert report.corrupted_rows == []
    assert report.stats.average_health == 1.0
