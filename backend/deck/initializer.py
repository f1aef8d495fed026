"""Builds the initial generated deck.

The deck is a fixed number of cards cycling through a shuffled phrase pool.
Only the first few cards get images straight away; the rest start out as
placeholders and are filled in later by the scheduler.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import TypeVar

from backend.config import settings
from backend.deck.card import Card, generated_card_id, placeholder_card
from backend.deck.errors import GatewayFailure
from backend.deck.gateways import ImageGateway, styled_prompt
from backend.deck.phrases import BASE_PHRASES, placeholder_hint

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy of ``items``.

    Walks from the last index down to 1, swapping each slot with a random
    index at or below it.
    """
    rng = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


async def build_initial_deck(
    gateway: ImageGateway,
    *,
    size: int | None = None,
    eager: int | None = None,
    phrases: Sequence[str] = BASE_PHRASES,
    rng: random.Random | None = None,
) -> list[Card]:
    """Build the generated portion of a fresh deck.

    Args:
        gateway: Image generation gateway used for the eager cards.
        size: Number of cards to build (default from settings).
        eager: How many leading cards to render right away (default from settings).
        phrases: Pool of base phrases, assigned round-robin after shuffling.
        rng: Random source for the shuffle.

    Returns:
        Exactly ``size`` cards. Eager cards are resolved or failed,
        the rest are pending placeholders.
    """
    size = settings.deck_size if size is None else size
    eager = settings.eager_generation_count if eager is None else eager
    if not phrases:
        raise ValueError("Phrase pool is empty")

    pool = fisher_yates_shuffle(phrases, rng)
    cards: list[Card] = []

    for position in range(size):
        phrase = pool[position % len(pool)]
        card = placeholder_card(
            generated_card_id(position),
            phrase,
            ai_hint=placeholder_hint(phrase, position),
        )

        # One call at a time to keep the burst on the upstream service small
        if position < eager:
            try:
                image_url = await gateway.generate(styled_prompt(phrase))
                card = card.resolved(image_url)
            except GatewayFailure as e:
                logger.error("Failed to generate initial image for card %r: %s", phrase, e)
                card = card.failed()

        cards.append(card)

    logger.info(
        "Built initial deck: %d cards, %d resolved up front",
        len(cards),
        sum(1 for c in cards if c.is_ai_generated),
    )
    return cards
