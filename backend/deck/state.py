"""Deck state: the ordered card list, the viewing position and the in-flight flag."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum

from backend.deck.card import Card
from backend.deck.errors import DeckBusy, EmptyDeck

logger = logging.getLogger(__name__)


class DeckStatus(Enum):
    LOADING = "loading"   # Initial deck still being built
    READY = "ready"
    EMPTY = "empty"       # Nothing to show; offer add/shuffle instead


@dataclass
class Deck:
    """A single deck for one viewing session.

    ``current_index`` always points at a card, or is 0 for an empty deck.
    ``generating`` is set while any generation operation is outstanding.
    """

    cards: list[Card] = field(default_factory=list)
    current_index: int = 0
    generating: bool = False
    status: DeckStatus = DeckStatus.LOADING

    def __len__(self) -> int:
        return len(self.cards)

    @property
    def current_card(self) -> Card:
        """Return the card at the viewing position."""
        if not self.cards:
            raise EmptyDeck("The void is empty... for now.")
        return self.cards[self.current_index]

    # --- Navigation ---

    def next(self) -> int:
        """Move forward one card, wrapping to the start."""
        if self.cards:
            self.current_index = (self.current_index + 1) % len(self.cards)
        return self.current_index

    def prev(self) -> int:
        """Move back one card, wrapping to the end."""
        if self.cards:
            self.current_index = (self.current_index - 1) % len(self.cards)
        return self.current_index

    def go_to_start(self) -> int:
        self.current_index = 0
        return self.current_index

    def next_index(self) -> int | None:
        """Index the next ``next()`` call would land on."""
        if not self.cards:
            return None
        return (self.current_index + 1) % len(self.cards)

    # --- Contents ---

    def reset(self, cards: list[Card]) -> None:
        """Replace every card and go back to the start."""
        ids = [c.id for c in cards]
        if len(set(ids)) != len(ids):
            raise ValueError("Card ids must be unique within a deck")
        self.cards = list(cards)
        self.current_index = 0
        self.status = DeckStatus.READY if self.cards else DeckStatus.EMPTY

    def append(self, card: Card) -> int:
        """Add a card at the end and return its index."""
        if self.index_of(card.id) is not None:
            raise ValueError(f"Duplicate card id {card.id}")
        self.cards.append(card)
        self.status = DeckStatus.READY
        return len(self.cards) - 1

    def index_of(self, card_id: str) -> int | None:
        for i, card in enumerate(self.cards):
            if card.id == card_id:
                return i
        return None

    def replace_card(self, card: Card) -> bool:
        """Swap in a new version of a card by id.

        Returns False when the id is no longer part of the deck, e.g. after
        a shuffle replaced everything while the card was being generated.
        """
        index = self.index_of(card.id)
        if index is None:
            logger.info("Dropping result for card %s: no longer in the deck", card.id)
            return False
        self.cards[index] = card
        return True

    def first_pending_index(self) -> int | None:
        for i, card in enumerate(self.cards):
            if card.is_pending:
                return i
        return None

    def window_has_pending(self, width: int) -> bool:
        """Check ``width`` positions starting at the current card (no wrap)."""
        window = self.cards[self.current_index:self.current_index + width]
        return any(card.is_pending for card in window)

    def user_cards(self) -> list[Card]:
        return [card for card in self.cards if card.is_user_card]

    # --- In-flight flag ---

    @contextmanager
    def generation(self) -> Iterator[None]:
        """Hold the in-flight flag for the duration of the block."""
        if self.generating:
            raise DeckBusy("A generation operation is already in flight")
        self.generating = True
        try:
            yield
        finally:
            self.generating = False
