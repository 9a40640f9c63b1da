"""
Tests for the ordered speaker rule table.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from textrecon.core.config import RuleSet
from textrecon.ingestion.speakers import SpeakerIdentifier


def test_sent_is_always_me() -> None:
    """An exact 'Sent' type maps to the user regardless of sender."""

    speaker = SpeakerIdentifier().identify("Sent", "Mark Levy")

    assert speaker.role == "you"
    assert speaker.name == "Me"
    assert speaker.confidence == pytest.approx(0.95)
    assert speaker.identifiers == ["rule:sent"]


def test_received_sent_by_takes_name_from_marker() -> None:
    """'Received Sent by:' must not fall through to the generic Received rule."""

    speaker = SpeakerIdentifier().identify("Received Sent by: Mark Levy", "555-123-4567")

    assert speaker.role == "client"
    assert speaker.name == "Mark Levy"
    assert speaker.confidence == pytest.approx(0.95)
    assert speaker.identifiers == ["rule:received_sent_by"]


def test_received_uses_sender_name() -> None:
    """A non-phone sender becomes the client's display name."""

    speaker = SpeakerIdentifier().identify("Received", " Jane Doe ")

    assert speaker.role == "client"
    assert speaker.name == "Jane Doe"


def test_received_with_phone_sender_uses_default_name() -> None:
    """Phone numbers are not display names."""

    rules = RuleSet(default_client_name="Mark Levy")
    identifier = SpeakerIdentifier(rules)

    assert identifier.identify("Received", "(555) 123-4567").name == "Mark Levy"
    assert identifier.identify("Received", "").name == "Mark Levy"
    assert identifier.identify("Received", "Mark Levy (mobile)").name == "Mark Levy"


def test_received_with_client_token_uses_that_token() -> None:
    """A configured client identifier inside the sender is used as written."""

    rules = RuleSet(default_client_name="Mark Levy", client_identifiers=("client", "acme"))
    identifier = SpeakerIdentifier(rules)

    assert identifier.identify("Received", "Client 555-123-4567").name == "Client"
    assert identifier.identify("Received", "ACME support line").name == "ACME"
    assert identifier.identify("Received", "Clientele desk").name == "Clientele desk"


def test_unknown_type_falls_back_with_low_confidence() -> None:
    """No matching rule gives the default client at 0.5 confidence."""

    speaker = SpeakerIdentifier(RuleSet(default_client_name="Acme")).identify("", "Bob")

    assert speaker.role == "client"
    assert speaker.name == "Acme"
    assert speaker.confidence == pytest.approx(0.5)
    assert speaker.identifiers == ["rule:fallback"]


def test_rule_sets_are_independent_and_frozen() -> None:
    """Two identifiers with different rule sets do not interfere."""

    first = SpeakerIdentifier(RuleSet(default_client_name="Alice"))
    second = SpeakerIdentifier(RuleSet(default_client_name="Bob"))

    assert first.identify("Received", "").name == "Alice"
    assert second.identify("Received", "").name == "Bob"
    with pytest.raises(ValidationError):
        first.rules.default_client_name = "Carol"
