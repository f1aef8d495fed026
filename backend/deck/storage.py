"""Persistence of user-created cards across sessions.

The generated deck is never stored; only cards the user added survive a
restart. They are kept as one JSON document under a fixed key, in the same
camelCase record shape the browser client used for local storage.
"""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config import settings
from backend.deck.card import Card, GenerationStatus
from backend.deck.errors import StorageCorrupt
from backend.models.stored_value import StoredValue

logger = logging.getLogger(__name__)


class StoredCard(BaseModel):
    """On-disk form of a card."""

    id: str
    phrase: str
    image_url: str = Field(alias="imageUrl")
    is_ai_generated: bool = Field(default=False, alias="isAIGenerated")
    image_generated: bool = Field(default=True, alias="imageGenerated")
    ai_hint: str | None = Field(default=None, alias="aiHint")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_card(cls, card: Card) -> StoredCard:
        return cls(
            id=card.id,
            phrase=card.phrase,
            image_url=card.image_url,
            is_ai_generated=card.is_ai_generated,
            image_generated=card.image_generated,
            ai_hint=card.ai_hint,
        )

    def to_card(self) -> Card:
        if self.is_ai_generated:
            status = GenerationStatus.RESOLVED
        elif self.image_generated:
            status = GenerationStatus.FAILED
        else:
            status = GenerationStatus.PENDING
        return Card(
            id=self.id,
            phrase=self.phrase,
            image_url=self.image_url,
            status=status,
            ai_hint=self.ai_hint,
        )


_stored_cards = TypeAdapter(list[StoredCard])


def encode_cards(cards: list[Card]) -> str:
    """Serialize cards to the stored JSON document."""
    records = [StoredCard.from_card(c).model_dump(by_alias=True, exclude_none=True) for c in cards]
    return json.dumps(records)


def decode_cards(raw: str) -> list[Card]:
    """Parse a stored JSON document back into cards.

    Raises:
        StorageCorrupt: If the document is not valid JSON or not a list of cards.
    """
    try:
        records = _stored_cards.validate_json(raw)
        cards = [record.to_card() for record in records]
    except (ValidationError, ValueError) as e:
        raise StorageCorrupt(f"Stored user cards are unreadable: {e}") from e

    ids = [c.id for c in cards]
    if len(set(ids)) != len(ids) or not all(c.is_user_card for c in cards):
        raise StorageCorrupt("Stored user cards have duplicate or reserved ids")
    return cards


class UserCardStore:
    """Key-value storage for the user-card list."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        key: str | None = None,
    ) -> None:
        """Initialize the store with a session factory and storage key."""
        self.session_factory = session_factory
        self.key = key or settings.user_cards_key

    async def load(self) -> list[Card]:
        """Return the stored user cards.

        A corrupt value is deleted and treated as empty; the error never
        reaches the caller.
        """
        async with self.session_factory() as db:
            raw = (
                await db.execute(select(StoredValue.value).where(StoredValue.key == self.key))
            ).scalar_one_or_none()
        if raw is None:
            return []
        try:
            cards = decode_cards(raw)
        except StorageCorrupt:
            logger.exception("Failed to parse user cards from storage, discarding them")
            await self.clear()
            return []
        logger.debug("Restored %d user cards", len(cards))
        return cards

    async def save(self, cards: list[Card]) -> int:
        """Persist the user cards among ``cards`` and return how many were written."""
        user_cards = [c for c in cards if c.is_user_card]
        payload = encode_cards(user_cards)
        async with self.session_factory() as db:
            stored = await db.get(StoredValue, self.key)
            if stored is None:
                db.add(StoredValue(key=self.key, value=payload))
            else:
                stored.value = payload
            await db.commit()
        return len(user_cards)

    async def clear(self) -> None:
        async with self.session_factory() as db:
            await db.execute(delete(StoredValue).where(StoredValue.key == self.key))
            await db.commit()
