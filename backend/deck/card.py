"""Card entity and its generation lifecycle.

A card starts ``PENDING`` with the placeholder image and moves exactly once
to either ``RESOLVED`` (a generated image) or ``FAILED`` (placeholder kept
for good). There is no way back to ``PENDING``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from enum import Enum

from backend.config import settings

GENERATED_ID_PREFIX = "initial-"
MAX_PHRASE_LENGTH = 150


def check_phrase(phrase: str) -> None:
    """Reject captions outside 1-150 characters."""
    if not phrase or len(phrase) > MAX_PHRASE_LENGTH:
        raise ValueError(
            f"Card phrase must be 1-{MAX_PHRASE_LENGTH} characters, got {len(phrase)}"
        )


class GenerationStatus(Enum):
    """Where a card is in its image generation lifecycle."""

    PENDING = "pending"       # Not attempted yet, shows the placeholder
    RESOLVED = "resolved"     # Generated image attached
    FAILED = "failed"         # Attempted and failed, placeholder is permanent


@dataclass(frozen=True)
class Card:
    """A single deck entry: a caption and the image that goes with it."""

    id: str
    phrase: str
    image_url: str
    status: GenerationStatus = GenerationStatus.PENDING
    ai_hint: str | None = None

    def __post_init__(self) -> None:
        check_phrase(self.phrase)
        if self.is_pending and self.image_url != settings.placeholder_image_url:
            raise ValueError(f"Pending card {self.id} must show the placeholder image")

    @property
    def image_generated(self) -> bool:
        """True once generation has been attempted, whatever the outcome."""
        return self.status is not GenerationStatus.PENDING

    @property
    def is_ai_generated(self) -> bool:
        """True when the image came from the generation gateway."""
        return self.status is GenerationStatus.RESOLVED

    @property
    def is_pending(self) -> bool:
        return self.status is GenerationStatus.PENDING

    @property
    def is_user_card(self) -> bool:
        """User cards live outside the generated-id namespace."""
        return not self.id.startswith(GENERATED_ID_PREFIX)

    def resolved(self, image_url: str) -> Card:
        """Return a copy carrying the generated image."""
        self._require_pending()
        return replace(self, image_url=image_url, status=GenerationStatus.RESOLVED)

    def failed(self) -> Card:
        """Return a copy marked as permanently failed, placeholder retained."""
        self._require_pending()
        return replace(self, status=GenerationStatus.FAILED)

    def _require_pending(self) -> None:
        if not self.is_pending:
            raise ValueError(f"Card {self.id} was already {self.status.value}")


def generated_card_id(position: int) -> str:
    """Return the id for the generated card at a 0-based deck position."""
    return f"{GENERATED_ID_PREFIX}{position + 1}"


def new_user_card(phrase: str, image_url: str) -> Card:
    """Build a fully resolved user card with a fresh opaque id."""
    return Card(
        id=str(uuid.uuid4()),
        phrase=phrase,
        image_url=image_url,
        status=GenerationStatus.RESOLVED,
    )


def placeholder_card(card_id: str, phrase: str, ai_hint: str | None = None) -> Card:
    """Build a pending card showing the canonical placeholder."""
    return Card(
        id=card_id,
        phrase=phrase,
        image_url=settings.placeholder_image_url,
        ai_hint=ai_hint,
    )
