"""Deck controller: the one owner of a session's deck.

Ties the initializer, the lazy scheduler, the upstream gateways and the
user-card store together behind the operations a viewer needs: navigate,
add a card, reshuffle.
"""

from __future__ import annotations

import asyncio
import logging
import random

from backend.deck.card import Card, check_phrase, new_user_card
from backend.deck.errors import ContentRejected, DeckBusy
from backend.deck.gateways import ContentGate, ImageGateway, styled_prompt
from backend.deck.initializer import build_initial_deck
from backend.deck.notices import NoticeLevel, NoticeLog
from backend.deck.scheduler import LazyGenerationScheduler
from backend.deck.state import Deck, DeckStatus
from backend.deck.storage import UserCardStore

logger = logging.getLogger(__name__)


class DeckController:
    """Owns one deck and drives every change made to it."""

    def __init__(
        self,
        gateway: ImageGateway,
        gate: ContentGate,
        store: UserCardStore,
        *,
        deck_size: int | None = None,
        eager: int | None = None,
        look_ahead: int | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
        rng: random.Random | None = None,
        notices: NoticeLog | None = None,
    ) -> None:
        """Initialize an empty deck; call ``load()`` to populate it."""
        self.gateway = gateway
        self.gate = gate
        self.store = store
        self.deck_size = deck_size
        self.eager = eager
        self.rng = rng
        self.deck = Deck()
        self.notices = notices or NoticeLog()
        self.scheduler = LazyGenerationScheduler(
            self.deck,
            gateway,
            self.notices,
            look_ahead=look_ahead,
            batch_size=batch_size,
            timeout=timeout,
        )
        self._tasks: set[asyncio.Task] = set()

    @property
    def generating(self) -> bool:
        return self.deck.generating

    async def _build_generated(self) -> list[Card]:
        return await build_initial_deck(
            self.gateway, size=self.deck_size, eager=self.eager, rng=self.rng
        )

    async def load(self) -> None:
        """Build the generated deck, append restored user cards, start lazy generation."""
        self.deck.status = DeckStatus.LOADING
        self.notices.post(
            "Summoning First Horrors...",
            "Generating images for the first few cards. More will materialize as you delve deeper.",
        )
        with self.deck.generation():
            generated = await self._build_generated()
            user_cards = await self.store.load()
            self.deck.reset(generated + user_cards)

        if generated:
            self.notices.post(
                "The First Visions Are Ready",
                "Initial creepy cards have been summoned. More will appear as you explore.",
            )
        else:
            self.notices.post(
                "A Quiet Start",
                "No initial cards were generated. Feel free to create your own!",
                NoticeLevel.WARNING,
            )
        logger.info(
            "Deck loaded: %d generated + %d user cards (%s)",
            len(generated),
            len(user_cards),
            self.deck.status.value,
        )
        self.kick()

    # --- Navigation ---

    # Navigation stays available while images generate; only the trigger is dropped
    async def next(self) -> int:
        index = self.deck.next()
        self.kick()
        return index

    async def prev(self) -> int:
        index = self.deck.prev()
        self.kick()
        return index

    async def go_to_start(self) -> int:
        index = self.deck.go_to_start()
        self.kick()
        return index

    async def advance(self) -> int:
        """Step forward one card, resolving its image first if it still needs one.

        When another generation is already running the step happens right
        away and the card keeps its placeholder until that work reaches it.
        """
        result = await self.scheduler.resolve_next()
        index = self.deck.next()
        if result is not None:
            await self._persist()
        self.kick()
        return index

    # --- Card list changes ---

    async def add_card(self, phrase: str, image_prompt: str) -> Card:
        """Create a user card from a phrase and an image prompt.

        The prompt has to pass the content gate before an image is
        generated. On any failure the deck is left exactly as it was.

        Raises:
            DeckBusy: If the deck is still loading or a generation
                operation is in flight.
            ContentRejected: If the prompt is not creepy enough.
            GatewayFailure: If scoring or image generation failed.
            ValueError: If the phrase is empty or too long.
        """
        check_phrase(phrase)
        self._check_loaded()
        with self.deck.generation():
            verdict = await self.gate.score(image_prompt)
            if not verdict.passed:
                logger.info("Rejected prompt with creepiness score %.2f", verdict.score)
                raise ContentRejected(verdict.score)
            image_url = await self.gateway.generate(styled_prompt(image_prompt))

        card = new_user_card(phrase, image_url)
        self.deck.current_index = self.deck.append(card)
        await self._persist()
        self.notices.post("Card Created!", "Your new creepy card has been added to the deck.")
        logger.info("Added user card %s at #%d", card.id, self.deck.current_index + 1)
        self.kick()
        return card

    async def shuffle(self) -> None:
        """Throw the deck away, forget the user's cards and deal a fresh one.

        Raises:
            DeckBusy: If the deck is still loading or a generation
                operation is in flight.
        """
        self._check_loaded()
        if self.deck.generating:
            raise DeckBusy("Cannot shuffle while images are being generated")
        with self.deck.generation():
            await self.store.clear()
            generated = await self._build_generated()
        self.deck.reset(generated)
        await self._persist()
        self.notices.post("The Deck Has Been Reshuffled", "A fresh set of horrors awaits.")
        logger.info("Deck reshuffled: %d cards", len(self.deck))
        self.kick()

    def _check_loaded(self) -> None:
        if self.deck.status is DeckStatus.LOADING:
            raise DeckBusy("The deck is still being summoned")

    # --- Background generation ---

    def kick(self) -> asyncio.Task | None:
        """Start background generation if the look-ahead window needs it."""
        if (
            self.deck.generating
            or self.deck.status is not DeckStatus.READY
            or not self.deck.window_has_pending(self.scheduler.look_ahead)
        ):
            return None
        task = asyncio.create_task(self._run_scheduler())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_scheduler(self) -> None:
        # Each batch changes the deck, which is a reason to look again
        try:
            while await self.scheduler.trigger() is not None:
                await self._persist()
        except Exception:
            logger.exception("Background image generation stopped unexpectedly")

    async def _persist(self) -> None:
        if self.deck.status is DeckStatus.LOADING:
            return
        await self.store.save(self.deck.cards)

    async def wait_idle(self) -> None:
        """Wait until no background generation is left running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel background generation; in-flight results are discarded."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
