import re
from typing import Optional

from loguru import logger

from textrecon.core.config import RuleSet
from textrecon.ingestion.patterns import PHONE_SHAPE
from textrecon.ingestion.schema import SpeakerIdentity

RECEIVED_SENT_BY = "Received Sent by:"
RULE_CONFIDENCE = 0.95
FALLBACK_CONFIDENCE = 0.5


class SpeakerIdentifier:
    """
    Maps (type marker, sender) to a speaker via an ordered rule table.

    Rules are overlapping substring tests; the first match wins:
      1. "Sent" without "Received"      -> you / "Me"
      2. "Received Sent by: <name>"     -> client / <name>
      3. anything else with "Received"  -> client / sender name or default
      4. nothing matched                -> client / default, low confidence
    """

    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules or RuleSet()

    def identify(self, message_type: str, sender: str) -> SpeakerIdentity:
        message_type = message_type or ""
        sender = sender or ""

        if message_type == "Sent" or ("Sent" in message_type and "Received" not in message_type):
            return SpeakerIdentity(
                name="Me", role="you", confidence=RULE_CONFIDENCE, identifiers=["rule:sent"]
            )

        if RECEIVED_SENT_BY in message_type:
            name = message_type.split(RECEIVED_SENT_BY, 1)[1].strip()
            return SpeakerIdentity(
                name=name or self.rules.default_client_name,
                role="client",
                confidence=RULE_CONFIDENCE,
                identifiers=["rule:received_sent_by"],
            )

        if "Received" in message_type:
            return SpeakerIdentity(
                name=self._client_name(sender),
                role="client",
                confidence=RULE_CONFIDENCE,
                identifiers=["rule:received"],
            )

        logger.warning(f"No speaker rule matched type={message_type!r}, using fallback")
        return SpeakerIdentity(
            name=self.rules.default_client_name,
            role="client",
            confidence=FALLBACK_CONFIDENCE,
            identifiers=["rule:fallback"],
        )

    def _client_name(self, sender: str) -> str:
        """
        A recognised client token found in the sender wins, as written there.
        Otherwise a non-phone sender is the name, and the default covers the rest.
        """
        sender = sender.strip()
        default = self.rules.default_client_name

        if not sender:
            return default

        tokens = [default, *self.rules.client_identifiers]
        for token in filter(None, tokens):
            found = re.search(rf"\b{re.escape(token)}\b", sender, re.IGNORECASE)
            if found:
                return found.group(0)

        if not PHONE_SHAPE.match(sender):
            return sender
        return default
