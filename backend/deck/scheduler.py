"""Lazy image generation for the cards around the viewing position.

The scheduler looks a few cards ahead of the viewer. As soon as anything in
that window still shows a placeholder it catches up on the backlog: the
batch starts at the first pending card of the whole deck, not at the
window. Only one generation operation runs at a time; triggers that arrive
while one is in flight are dropped, not queued.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from backend.config import settings
from backend.deck.card import Card
from backend.deck.errors import GatewayFailure
from backend.deck.gateways import ImageGateway, styled_prompt
from backend.deck.notices import NoticeLog
from backend.deck.state import Deck, DeckStatus

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """What one scheduler run did."""

    start_index: int
    card_ids: list[str] = field(default_factory=list)
    resolved: int = 0
    failed: int = 0

    @property
    def attempted(self) -> int:
        return self.resolved + self.failed


class LazyGenerationScheduler:
    """Fills in placeholder images shortly before the viewer reaches them."""

    def __init__(
        self,
        deck: Deck,
        gateway: ImageGateway,
        notices: NoticeLog | None = None,
        look_ahead: int | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the scheduler for a deck, with settings-based defaults."""
        self.deck = deck
        self.gateway = gateway
        self.notices = notices or NoticeLog()
        self.look_ahead = settings.look_ahead if look_ahead is None else look_ahead
        self.batch_size = settings.batch_size if batch_size is None else batch_size
        self.timeout = settings.gateway_timeout_seconds if timeout is None else timeout

    def _ready(self) -> bool:
        return (
            self.deck.status is DeckStatus.READY
            and not self.deck.generating
            and len(self.deck) > 0
        )

    async def trigger(self) -> BatchResult | None:
        """Run one generation batch if the look-ahead window needs it.

        Returns None when nothing ran: another operation was in flight,
        or every card in the window has already been attempted.
        """
        if not self._ready() or not self.deck.window_has_pending(self.look_ahead):
            return None
        start = self.deck.first_pending_index()
        if start is None:
            return None

        # The flag is taken before the first await, so a second trigger
        # in the same tick sees it and backs off.
        with self.deck.generation():
            self.notices.post(
                "Summoning More Horrors...",
                f"Generating images for the next batch, starting with card #{start + 1}.",
            )
            end = min(start + self.batch_size, len(self.deck))
            targets = [card for card in self.deck.cards[start:end] if card.is_pending]

            result = BatchResult(start_index=start)
            for card in targets:
                outcome = await self._resolve(card)
                self._record(result, outcome)

        logger.info(
            "Batch from card #%d done: %d resolved, %d failed",
            start + 1,
            result.resolved,
            result.failed,
        )
        if result.resolved > 0:
            self.notices.post(
                "More Entities Have Manifested",
                f"{result.resolved} new card images materialized.",
            )
        else:
            self.notices.post(
                "The Veil Remains Thin",
                "Attempted to summon more images, but the spirits are quiet for now.",
            )
        return result

    async def resolve_next(self) -> BatchResult | None:
        """Resolve only the card the viewer is about to move onto.

        Used for one-step forward navigation; the caller waits for this
        before moving.
        """
        if not self._ready():
            return None
        index = self.deck.next_index()
        if index is None or not self.deck.cards[index].is_pending:
            return None

        with self.deck.generation():
            result = BatchResult(start_index=index)
            outcome = await self._resolve(self.deck.cards[index])
            self._record(result, outcome)
        return result

    def _record(self, result: BatchResult, outcome: Card) -> None:
        # Applied by id: a card the viewer moved past still gets its image
        if not self.deck.replace_card(outcome):
            return
        result.card_ids.append(outcome.id)
        if outcome.is_ai_generated:
            result.resolved += 1
        else:
            result.failed += 1

    async def _resolve(self, card: Card) -> Card:
        """Generate one card's image; failure is final for that card."""
        try:
            image_url = await self._generate(styled_prompt(card.phrase))
        except GatewayFailure as e:
            logger.warning("Failed to generate image for card %r in batch: %s", card.phrase, e)
            return card.failed()
        return card.resolved(image_url)

    async def _generate(self, prompt: str) -> str:
        if self.timeout and self.timeout > 0:
            try:
                return await asyncio.wait_for(self.gateway.generate(prompt), self.timeout)
            except TimeoutError as e:
                raise GatewayFailure(f"Image generation timed out after {self.timeout:.0f}s") from e
        return await self.gateway.generate(prompt)
