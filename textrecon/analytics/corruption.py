from collections import Counter
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, Field

from textrecon.core.config import RuleSet
from textrecon.ingestion.classifier import RowClassifier, is_type_marker, row_values
from textrecon.ingestion.patterns import is_timestamp_fragment

IssueType = Literal["missing_field", "fragmented_data", "encoding_error", "structure_mismatch"]
Severity = Literal["low", "medium", "high", "critical"]

SEVERITY_WEIGHTS: Dict[str, float] = {
    "critical": 0.4,
    "high": 0.25,
    "medium": 0.15,
    "low": 0.05,
}

# Mojibake left behind by UTF-8 text decoded as cp1252
ENCODING_ARTIFACTS = ("�", "â€", "Â")
SHORT_VALUE_LENGTH = 10


class CorruptionIssue(BaseModel):
    type: IssueType
    field: str
    severity: Severity
    description: str


class CorruptedRow(BaseModel):
    row_index: int
    original_data: Dict[str, Any]
    issues: List[CorruptionIssue]
    health: float = Field(..., ge=0.0, le=1.0)


class CorruptionStats(BaseModel):
    total_rows: int
    corrupted_rows: int
    average_health: float
    common_issues: List[Dict[str, Any]] = Field(default_factory=list)


class CorruptionReport(BaseModel):
    corrupted_rows: List[CorruptedRow]
    stats: CorruptionStats


class CorruptionAnalyzer:
    """
    Read-only pass over the raw rows that reports which ones look broken and how.
    Rows are judged by what their values look like, same as the pipeline.
    """

    def __init__(self, rules: Optional[RuleSet] = None):
        self.classifier = RowClassifier(rules)

    def detect(self, row: Mapping[str, Any]) -> List[CorruptionIssue]:
        if not isinstance(row, Mapping):
            return [CorruptionIssue(
                type="structure_mismatch", field="entire_row", severity="critical",
                description="Row is not a column mapping",
            )]

        issues: List[CorruptionIssue] = []
        parts = self.classifier.classify(row)
        values = row_values(row)

        if not parts.message_type:
            issues.append(CorruptionIssue(
                type="missing_field", field="message_type", severity="high",
                description="Message type/direction missing",
            ))
        if not parts.timestamp_components:
            issues.append(CorruptionIssue(
                type="missing_field", field="timestamp", severity="high",
                description="No timestamp fragments",
            ))
        if not parts.content:
            issues.append(CorruptionIssue(
                type="missing_field", field="content", severity="critical",
                description="Message content missing",
            ))

        leftovers = [
            v for v in values
            if len(v) < SHORT_VALUE_LENGTH
            and any(c.isalnum() for c in v)
            and not is_type_marker(v)
            and not is_timestamp_fragment(v)
            and not self.classifier.is_sender_identifier(v)
        ]
        if leftovers and len(values) > 2:
            issues.append(CorruptionIssue(
                type="fragmented_data", field="content", severity="medium",
                description="Message content may be fragmented across cells",
            ))

        for key, value in row.items():
            if isinstance(value, str) and self._has_encoding_issues(value):
                issues.append(CorruptionIssue(
                    type="encoding_error", field=str(key), severity="low",
                    description="Text contains encoding artifacts",
                ))

        return issues

    @staticmethod
    def _has_encoding_issues(text: str) -> bool:
        if any(a in text for a in ENCODING_ARTIFACTS):
            return True
        return any(ord(c) < 0x20 and c not in "\t\n\r" for c in text)

    @staticmethod
    def row_health(issues: Sequence[CorruptionIssue]) -> float:
        health = 1.0 - sum(SEVERITY_WEIGHTS[i.severity] for i in issues)
        return max(0.0, health)

    def analyze(self, rows: Sequence[Mapping[str, Any]]) -> CorruptionReport:
        logger.info(f"Analyzing {len(rows)} rows for corruption...")

        corrupted: List[CorruptedRow] = []
        issue_counts: Counter = Counter()

        for index, row in enumerate(rows):
            issues = self.detect(row)
            if not issues:
                continue

            corrupted.append(CorruptedRow(
                row_index=index,
                original_data=dict(row) if isinstance(row, Mapping) else {"value": row},
                issues=issues,
                health=self.row_health(issues),
            ))
            issue_counts.update(i.type for i in issues)

        average_health = (
            sum(r.health for r in corrupted) / len(corrupted) if corrupted else 1.0
        )
        common_issues = [
            {
                "type": issue_type,
                "count": count,
                "percentage": round(count / max(len(corrupted), 1) * 100, 1),
            }
            for issue_type, count in issue_counts.most_common()
        ]

        stats = CorruptionStats(
            total_rows=len(rows),
            corrupted_rows=len(corrupted),
            average_health=average_health,
            common_issues=common_issues,
        )
        logger.info(
            f"Corruption analysis: {stats.corrupted_rows}/{stats.total_rows} rows flagged, "
            f"average health {stats.average_health:.0%}"
        )
        return CorruptionReport(corrupted_rows=corrupted, stats=stats)
