"""Deck engine: cards, lazy image generation and user-card persistence.

- Deck / DeckController: deck state and the operations that change it
- LazyGenerationScheduler: fills placeholders ahead of the viewer
- build_initial_deck: deals a fresh generated deck
- UserCardStore: keeps user-created cards between sessions
"""

from backend.deck.card import Card, GenerationStatus
from backend.deck.controller import DeckController
from backend.deck.errors import (
    ContentRejected,
    DeckBusy,
    DeckError,
    EmptyDeck,
    GatewayFailure,
    StorageCorrupt,
)
from backend.deck.initializer import build_initial_deck
from backend.deck.scheduler import BatchResult, LazyGenerationScheduler
from backend.deck.state import Deck, DeckStatus
from backend.deck.storage import UserCardStore

__all__ = [
    "BatchResult",
    "Card",
    "ContentRejected",
    "Deck",
    "DeckBusy",
    "DeckController",
    "DeckError",
    "DeckStatus",
    "EmptyDeck",
    "GatewayFailure",
    "GenerationStatus",
    "LazyGenerationScheduler",
    "StorageCorrupt",
    "UserCardStore",
    "build_initial_deck",
]
