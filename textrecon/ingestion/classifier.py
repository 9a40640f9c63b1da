import math
from typing import Any, List, Mapping, Optional

from loguru import logger

from textrecon.core.config import RuleSet
from textrecon.ingestion.patterns import is_phone_number, is_timestamp_fragment, words
from textrecon.ingestion.schema import RowComponents

MIN_CONTENT_LENGTH = 10


def cell_text(value: Any) -> str:
    """Render one scalar cell as stripped text ("" for empty / NaN)."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            # spreadsheets hand back 2025.0 for a year cell
            return str(int(value))
    return str(value).strip()


def row_values(row: Mapping[str, Any]) -> List[str]:
    """Pool every non-empty cell of a row. Column names carry no meaning."""
    values = (cell_text(v) for v in row.values())
    return [v for v in values if v]


def is_type_marker(text: str) -> bool:
    lowered = text.strip().lower()
    return lowered == "sent" or lowered.startswith("received")


def is_block_boundary(row: Mapping[str, Any]) -> bool:
    """A row whose first non-empty value is a type marker starts a new message."""
    values = row_values(row)
    return bool(values) and is_type_marker(values[0])


class RowClassifier:
    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules or RuleSet()
        self._known = {i.lower() for i in self.rules.known_identifiers}

    def is_sender_identifier(self, text: str) -> bool:
        """
        A known person token ("Me", "Client", configured names) or a phone number.
        Every word must be a known token so that chatty content containing
        "you" or "me" is not mistaken for a sender.
        """
        tokens = words(text)
        if tokens and all(t in self._known for t in tokens):
            return True
        if text.lower().strip() in self._known:
            return True
        return is_phone_number(text)

    def classify(self, row: Mapping[str, Any]) -> RowComponents:
        message_type = ""
        fragments: List[str] = []
        sender = ""
        content = ""

        for value in row_values(row):
            if is_type_marker(value):
                if not message_type:
                    message_type = value
                continue

            if is_timestamp_fragment(value):
                fragments.append(value)
                continue

            if self.is_sender_identifier(value) and not sender:
                sender = value
                continue

            if len(value) > MIN_CONTENT_LENGTH:
                # content never spans cells within one row; last one wins
                content = value

        logger.debug(
            f"Classified row: type={message_type!r} fragments={fragments} "
            f"sender={sender!r} content={len(content)} chars"
        )
        return RowComponents(
            message_type=message_type,
            timestamp_components=fragments,
            sender=sender,
            content=content,
        )
