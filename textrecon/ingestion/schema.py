from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional

Role = Literal["you", "client"]


class _ExportModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RowComponents(BaseModel):
    """
    What a single raw row contributes to a message block.
    """
    message_type: str = ""
    timestamp_components: List[str] = Field(default_factory=list)
    sender: str = ""
    content: str = ""


class SpeakerIdentity(_ExportModel):
    name: str
    role: Role
    confidence: float = Field(..., ge=0.0, le=1.0)
    identifiers: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ReconstructedTimestamp(BaseModel):
    timestamp: str  # ISO-8601, always parseable
    parse_success: bool
    fallback: bool = False

    model_config = ConfigDict(frozen=True)


class MessageMetadata(_ExportModel):
    original_sender: str = ""
    original_type: str = ""
    parse_success: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    reconstructed: bool
    original_row: int


class ProcessedMessage(_ExportModel):
    """
    Represents a single reconstructed message
    """
    id: str
    role: Role
    content: str
    timestamp: str
    type: Literal["text"] = "text"
    metadata: MessageMetadata

    model_config = ConfigDict(frozen=True)


class BlockResult(BaseModel):
    """
    One block of 1..N consecutive rows folded into (at most) one message.
    """
    message: Optional[ProcessedMessage] = None
    rows_consumed: int = Field(..., ge=1)


class ProcessingSummary(_ExportModel):
    total_rows: int = 0
    processed_messages: int = 0
    skipped_rows: int = 0
    reconstructed_rows: int = 0
    confidence_average: float = 0.0
    date_parse_success: int = 0


class ProcessingError(_ExportModel):
    row: int
    error: str
    content: Optional[str] = None


class ProcessingResult(_ExportModel):
    messages: List[ProcessedMessage] = Field(default_factory=list)
    summary: ProcessingSummary = Field(default_factory=ProcessingSummary)
    errors: List[ProcessingError] = Field(default_factory=list)
