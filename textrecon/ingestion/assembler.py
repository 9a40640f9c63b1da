import uuid
from typing import Any, List, Mapping, Sequence

from loguru import logger

from textrecon.ingestion.classifier import RowClassifier, is_block_boundary
from textrecon.ingestion.cleaner import clean_content
from textrecon.ingestion.schema import BlockResult, MessageMetadata, ProcessedMessage
from textrecon.ingestion.speakers import SpeakerIdentifier
from textrecon.ingestion.timestamps import TimestampReconstructor

FALLBACK_PENALTY = 0.7
RECONSTRUCTION_PENALTY = 0.9
MIN_COMPLETE_CONTENT = 5


class RowProcessingError(Exception):
    """Raised when one row of a block cannot be classified."""

    def __init__(self, row_index: int, cause: Exception):
        super().__init__(f"Row {row_index}: {type(cause).__name__}: {cause}")
        self.row_index = row_index
        self.cause = cause


class MessageBuilder:
    """Turns the fields gathered for one block into a ProcessedMessage."""

    def __init__(self, reconstructor: TimestampReconstructor, speakers: SpeakerIdentifier):
        self.reconstructor = reconstructor
        self.speakers = speakers

    def build(
        self,
        message_type: str,
        timestamp_components: Sequence[str],
        sender: str,
        content: str,
        original_row: int,
        reconstructed: bool,
    ) -> ProcessedMessage:
        stamp = self.reconstructor.reconstruct(timestamp_components)
        if stamp is None:
            stamp = self.reconstructor.fallback()
        parse_success = stamp.parse_success

        speaker = self.speakers.identify(message_type, sender)

        confidence = (
            speaker.confidence
            * (1.0 if parse_success else FALLBACK_PENALTY)
            * (RECONSTRUCTION_PENALTY if reconstructed else 1.0)
        )
        confidence = min(1.0, max(0.0, confidence))

        return ProcessedMessage(
            id=str(uuid.uuid4()),
            role=speaker.role,
            content=clean_content(content),
            timestamp=stamp.timestamp,
            metadata=MessageMetadata(
                original_sender=sender,
                original_type=message_type,
                parse_success=parse_success,
                confidence=confidence,
                reconstructed=reconstructed,
                original_row=original_row,
            ),
        )


class BlockAssembler:
    def __init__(
        self,
        classifier: RowClassifier,
        builder: MessageBuilder,
        max_lookahead: int = 5,
    ):
        """
        Args:
            max_lookahead: A message is never spread over more rows than this.
        """
        self.classifier = classifier
        self.builder = builder
        self.max_lookahead = max(1, max_lookahead)

    def assemble(self, rows: Sequence[Mapping[str, Any]], start: int) -> BlockResult:
        """
        Fold rows[start:] into one message, stopping at the next type marker,
        once the message is complete, or at the lookahead limit.

        Raises RowProcessingError only for rows[start]. A later row that cannot
        be read ends the block just before it, like a type marker does.
        """
        message_type = ""
        fragments: List[str] = []
        sender = ""
        content = ""
        reconstructed = False
        consumed = 0

        lookahead = min(self.max_lookahead, len(rows) - start)

        for i in range(lookahead):
            index = start + i
            row = rows[index]

            try:
                if i > 0 and is_block_boundary(row):
                    break
                parts = self.classifier.classify(row)
            except Exception as e:
                if i == 0:
                    raise RowProcessingError(index, e) from e
                # the bad row opens the next call, which reports it on its own
                logger.debug(f"Row {index} unreadable, closing block at row {start} before it")
                break

            if parts.message_type and not message_type:
                message_type = parts.message_type
            fragments.extend(parts.timestamp_components)
            if parts.sender and not sender:
                sender = parts.sender
            if parts.content:
                content = f"{content} {parts.content}" if content else parts.content

            consumed = i + 1
            if i > 0:
                reconstructed = True

            if self._is_complete(message_type, fragments, content):
                break

        consumed = max(consumed, 1)

        if not content.strip():
            logger.debug(f"Block at row {start} ({consumed} rows) has no content, skipping")
            return BlockResult(message=None, rows_consumed=consumed)

        message = self.builder.build(
            message_type, fragments, sender, content, start, reconstructed
        )
        if reconstructed:
            logger.debug(f"Reconstructed message at row {start} from {consumed} rows")
        return BlockResult(message=message, rows_consumed=consumed)

    @staticmethod
    def _is_complete(message_type: str, fragments: List[str], content: str) -> bool:
        return bool(message_type) and len(fragments) > 0 and len(content.strip()) > MIN_COMPLETE_CONTENT
