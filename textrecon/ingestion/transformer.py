import json
import random
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from textrecon.core.config import RuleSet
from textrecon.ingestion.assembler import BlockAssembler, MessageBuilder, RowProcessingError
from textrecon.ingestion.classifier import RowClassifier
from textrecon.ingestion.schema import ProcessedMessage, ProcessingError, ProcessingResult, ProcessingSummary
from textrecon.ingestion.speakers import SpeakerIdentifier
from textrecon.ingestion.timestamps import DEFAULT_ANCHOR, TimestampReconstructor


class ExportTransformer:
    def __init__(
        self,
        rules: Optional[RuleSet] = None,
        rng: Optional[random.Random] = None,
        tz: str = "America/New_York",
        max_lookahead: int = 5,
        fallback_anchor: datetime = DEFAULT_ANCHOR,
        fallback_window_days: int = 30,
        fallback_strategy: str = "random",
    ):
        """
        Args:
            rules: Speaker identifiers and default client name for this conversation.
            rng: Source for synthetic fallback timestamps. Seed it for repeatable runs.
            tz: The one timezone reconstructed wall-clock times are read in.
            max_lookahead: Most rows a single message may be spread across.
        """
        self.rules = rules or RuleSet()
        self.rng = rng or random.Random()
        self.tz = tz
        self.max_lookahead = max_lookahead
        self.fallback_anchor = fallback_anchor
        self.fallback_window_days = fallback_window_days
        self.fallback_strategy = fallback_strategy

    @classmethod
    def from_settings(cls, s, rng: Optional[random.Random] = None) -> "ExportTransformer":
        if rng is None and s.RANDOM_SEED is not None:
            rng = random.Random(s.RANDOM_SEED)
        return cls(
            rules=RuleSet.from_settings(s),
            rng=rng,
            tz=s.TIMEZONE,
            max_lookahead=s.MAX_LOOKAHEAD,
            fallback_anchor=s.FALLBACK_ANCHOR,
            fallback_window_days=s.FALLBACK_WINDOW_DAYS,
            fallback_strategy=s.FALLBACK_STRATEGY,
        )

    def _assembler(self) -> BlockAssembler:
        # fresh per run: the reconstructor counts its fallbacks
        reconstructor = TimestampReconstructor(
            tz=self.tz,
            rng=self.rng,
            anchor=self.fallback_anchor,
            window_days=self.fallback_window_days,
            strategy=self.fallback_strategy,
        )
        builder = MessageBuilder(reconstructor, SpeakerIdentifier(self.rules))
        return BlockAssembler(RowClassifier(self.rules), builder, self.max_lookahead)

    def process(self, rows: Sequence[Mapping[str, Any]]) -> ProcessingResult:
        """
        The Main Pipeline: Raw Rows -> Blocks -> Messages sorted by time.
        Never raises for malformed rows; problems land in `errors` and the summary.
        """
        rows = list(rows or [])
        logger.info(f"Reconstructing messages from {len(rows)} raw rows...")

        assembler = self._assembler()
        summary = ProcessingSummary(total_rows=len(rows))
        messages: List[ProcessedMessage] = []
        errors: List[ProcessingError] = []

        index = 0
        while index < len(rows):
            try:
                block = assembler.assemble(rows, index)
            except RowProcessingError as e:
                bad = e.row_index
                logger.warning(f"Skipping row {bad}: {e}")
                errors.append(
                    ProcessingError(row=bad, error=str(e), content=_snapshot(rows[bad]))
                )
                summary.skipped_rows += 1
                index = bad + 1
                continue

            if block.message is None:
                summary.skipped_rows += block.rows_consumed
            else:
                message = block.message
                messages.append(message)
                summary.processed_messages += 1
                if message.metadata.reconstructed:
                    summary.reconstructed_rows += 1
                if message.metadata.parse_success:
                    summary.date_parse_success += 1
                logger.debug(
                    f"Message {len(messages)}: {message.content[:50]!r} "
                    f"(confidence: {message.metadata.confidence:.0%})"
                )

            index += block.rows_consumed

        if messages:
            summary.confidence_average = sum(m.metadata.confidence for m in messages) / len(messages)

        messages.sort(key=lambda m: datetime.fromisoformat(m.timestamp))

        logger.success(
            f"Reconstruction complete: {summary.processed_messages} messages, "
            f"{summary.reconstructed_rows} reconstructed, "
            f"{summary.date_parse_success}/{summary.processed_messages} dates parsed, "
            f"avg confidence {summary.confidence_average:.0%}, {len(errors)} errors"
        )
        return ProcessingResult(messages=messages, summary=summary, errors=errors)


def _snapshot(row: Any) -> str:
    try:
        return json.dumps(row, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(row)


def to_conversation_messages(result: ProcessingResult) -> List[Dict[str, Any]]:
    """Convert a processing result into the CRM's standard message dicts."""
    converted = []
    for m in result.messages:
        converted.append(
            {
                "id": m.id,
                "role": m.role,
                "content": m.content,
                "timestamp": m.timestamp,
                "type": m.type,
                "metadata": {
                    "confidence": m.metadata.confidence,
                    "parseSuccess": m.metadata.parse_success,
                    "reconstructed": m.metadata.reconstructed,
                    "originalSender": m.metadata.original_sender,
                    "originalType": m.metadata.original_type,
                },
            }
        )
    return converted
