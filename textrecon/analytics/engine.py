import pandas as pd
from loguru import logger
from textrecon.ingestion.loader import ExportLoader
from textrecon.ingestion.schema import ProcessingResult

MIN_PARSE_SUCCESS_RATE = 0.5


class ReviewEngine:
    """
    Summarises a processing result so an operator can decide whether an
    imported conversation needs manual review.
    """

    def __init__(
        self,
        result: ProcessingResult,
        confidence_threshold: float = 0.7,
        tz: str = "America/New_York",
    ):
        self.result = result
        self.confidence_threshold = confidence_threshold
        self.df = ExportLoader.to_dataframe(result.messages)

        # Mixed offsets (real vs fallback) -> one timezone
        self.df["timestamp"] = pd.to_datetime(self.df["timestamp"], utc=True, format="ISO8601").dt.tz_convert(tz)

    def run_review(self) -> dict:
        logger.info("--- Generating Review Report ---")

        report = {
            "volume_metrics": self._get_volume_metrics(),
            "confidence_metrics": self._get_confidence_metrics(),
            "parse_metrics": self._get_parse_metrics(),
            "monthly_volume": self.monthly_volume(),
        }
        report["needs_review"] = self._needs_review(report)

        if report["needs_review"]:
            logger.warning("Conversation flagged for manual review")
        return report

    def _get_volume_metrics(self):
        counts = self.df["role"].value_counts().to_dict()
        return {
            "total_messages": len(self.df),
            "messages_by_role": {role: int(n) for role, n in counts.items()},
            "skipped_rows": self.result.summary.skipped_rows,
            "error_count": len(self.result.errors),
        }

    def _get_confidence_metrics(self):
        if self.df.empty:
            return {
                "mean_confidence": 0.0,
                "min_confidence": 0.0,
                "low_confidence_count": 0,
                "low_confidence_rows": [],
            }

        low = self.df[self.df["confidence"] < self.confidence_threshold]
        return {
            "mean_confidence": round(float(self.df["confidence"].mean()), 3),
            "min_confidence": round(float(self.df["confidence"].min()), 3),
            "low_confidence_count": len(low),
            "low_confidence_rows": sorted(int(r) for r in low["original_row"]),
        }

    def _get_parse_metrics(self):
        total = len(self.df)
        if total == 0:
            return {"date_parse_success_rate": 0.0, "reconstructed_ratio": 0.0}

        return {
            "date_parse_success_rate": round(float(self.df["parse_success"].mean()), 3),
            "reconstructed_ratio": round(float(self.df["reconstructed"].mean()), 3),
        }

    def monthly_volume(self) -> dict:
        """Messages per month and role, e.g. {"2025-07": {"you": 3, "client": 2}}."""
        if self.df.empty:
            return {}

        df = self.df.copy()
        df["month"] = df["timestamp"].dt.strftime("%Y-%m")
        table = df.groupby(["month", "role"]).size().unstack(fill_value=0)

        return {
            str(month): {str(role): int(n) for role, n in row.items()}
            for month, row in table.iterrows()
        }

    def _needs_review(self, report: dict) -> bool:
        if report["volume_metrics"]["error_count"] > 0:
            return True
        if report["confidence_metrics"]["low_confidence_count"] > 0:
            return True
        total = report["volume_metrics"]["total_messages"]
        return total > 0 and report["parse_metrics"]["date_parse_success_rate"] < MIN_PARSE_SUCCESS_RATE
