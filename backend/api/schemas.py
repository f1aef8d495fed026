"""Pydantic schemas for API request/response models."""

from datetime import datetime

from pydantic import BaseModel, Field

from backend.deck.card import Card
from backend.deck.notices import Notice
from backend.deck.scheduler import BatchResult
from backend.deck.state import Deck, DeckStatus

# --- Cards ---


class CardResponse(BaseModel):
    """A single card as shown to the viewer."""

    id: str
    phrase: str
    image_url: str
    status: str  # pending, resolved, failed
    is_ai_generated: bool
    image_generated: bool
    ai_hint: str | None = None

    @classmethod
    def from_card(cls, card: Card) -> "CardResponse":
        return cls(
            id=card.id,
            phrase=card.phrase,
            image_url=card.image_url,
            status=card.status.value,
            is_ai_generated=card.is_ai_generated,
            image_generated=card.image_generated,
            ai_hint=card.ai_hint,
        )


class AddCardRequest(BaseModel):
    """Request to create a new user card."""

    phrase: str = Field(min_length=5, max_length=150)
    prompt: str = Field(min_length=10, max_length=200)


# --- Deck ---


class DeckResponse(BaseModel):
    """Where the viewer is in the deck."""

    status: str  # loading, ready, empty
    current_index: int
    total: int
    generating: bool
    current_card: CardResponse | None = None
    actions: list[str]

    @classmethod
    def from_deck(cls, deck: Deck) -> "DeckResponse":
        current = CardResponse.from_card(deck.current_card) if len(deck) else None
        if deck.status is DeckStatus.LOADING:
            actions: list[str] = []
        elif deck.status is DeckStatus.EMPTY:
            actions = ["add", "shuffle"]
        else:
            actions = ["next", "prev", "start", "add", "shuffle"]
        return cls(
            status=deck.status.value,
            current_index=deck.current_index,
            total=len(deck),
            generating=deck.generating,
            current_card=current,
            actions=actions,
        )


class BatchResponse(BaseModel):
    """Outcome of a manually triggered generation batch."""

    started: bool
    start_index: int | None = None
    resolved: int = 0
    failed: int = 0

    @classmethod
    def from_result(cls, result: BatchResult | None) -> "BatchResponse":
        if result is None:
            return cls(started=False)
        return cls(
            started=True,
            start_index=result.start_index,
            resolved=result.resolved,
            failed=result.failed,
        )


class NoticeResponse(BaseModel):
    """An informational message for the viewer."""

    title: str
    description: str
    level: str
    created_at: datetime

    @classmethod
    def from_notice(cls, notice: Notice) -> "NoticeResponse":
        return cls(
            title=notice.title,
            description=notice.description,
            level=notice.level.value,
            created_at=notice.created_at,
        )
