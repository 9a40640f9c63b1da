"""
Tests for the post-run review report.
"""

from __future__ import annotations

import random

import pytest

from textrecon.analytics.engine import ReviewEngine
from textrecon.ingestion.schema import ProcessingResult
from textrecon.ingestion.transformer import ExportTransformer

DATED_ROWS = [
    {"Type": "Sent", "Date": "July 29, 2025 9:58 AM", "Content": "Can we meet at ten thirty?"},
    {"Type": "Received", "Date": "July 29, 2025 10:05 AM", "Content": "Yes, that works for me."},
    {"Type": "Sent", "Date": "August 1, 2025 8:00 PM", "Content": "Thanks again for today!"},
]


def _process(rows) -> ProcessingResult:
    """Run the pipeline with a seeded random source."""

    return ExportTransformer(rng=random.Random(0)).process(rows)


def test_clean_conversation_does_not_need_review() -> None:
    """All dates parsed and confident messages: nothing to flag."""

    report = ReviewEngine(_process(DATED_ROWS)).run_review()

    assert report["volume_metrics"]["total_messages"] == 3
    assert report["volume_metrics"]["messages_by_role"] == {"you": 2, "client": 1}
    assert report["confidence_metrics"]["mean_confidence"] == pytest.approx(0.95)
    assert report["confidence_metrics"]["low_confidence_rows"] == []
    assert report["parse_metrics"]["date_parse_success_rate"] == pytest.approx(1.0)
    assert report["needs_review"] is False


def test_monthly_volume_by_role() -> None:
    """Messages are bucketed per month in the configured timezone."""

    volume = ReviewEngine(_process(DATED_ROWS)).monthly_volume()

    assert volume == {
        "2025-07": {"client": 1, "you": 1},
        "2025-08": {"client": 0, "you": 1},
    }


def test_fallback_messages_are_flagged() -> None:
    """A fallback timestamp drops confidence below the review threshold."""

    rows = DATED_ROWS + [{"Type": "Sent", "Content": "This row lost its date."}]
    report = ReviewEngine(_process(rows)).run_review()

    assert report["confidence_metrics"]["low_confidence_count"] == 1
    assert report["confidence_metrics"]["low_confidence_rows"] == [3]
    assert report["needs_review"] is True


def test_errors_force_review() -> None:
    """Any row-level error needs a human look."""

    report = ReviewEngine(_process([None] + DATED_ROWS)).run_review()

    assert report["volume_metrics"]["error_count"] == 1
    assert report["needs_review"] is True


def test_empty_result() -> None:
    """An empty result still produces a report."""

    report = ReviewEngine(ProcessingResult()).run_review()

    assert report["volume_metrics"]["total_messages"] == 0
    assert report["monthly_volume"] == {}
    assert report["needs_review"] is False
