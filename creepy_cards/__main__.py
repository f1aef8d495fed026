"""CLI interface for Creepy Cards.

Usage:
    python -m creepy_cards deck                   Deal a deck and list it
    python -m creepy_cards add "phrase" "prompt"  Create a new user card
    python -m creepy_cards score "prompt"         Score a prompt's creepiness
    python -m creepy_cards cards                  List your saved cards
    python -m creepy_cards clear                  Forget your saved cards
"""

import argparse
import asyncio
import logging
import sys

from backend.database import async_session, engine
from backend.deck.card import Card
from backend.deck.content_gate import CreepinessGate
from backend.deck.controller import DeckController
from backend.deck.errors import ContentRejected, DeckError
from backend.deck.storage import UserCardStore
from backend.image_client import GeminiImageGateway
from backend.llm_client import LLMClient
from backend.models import Base

STATUS_MARKS = {
    "pending": " ",
    "resolved": "*",
    "failed": "x",
}


async def ensure_db() -> None:
    """Create tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def make_controller(deck_size: int | None = None, eager: int | None = None) -> DeckController:
    return DeckController(
        gateway=GeminiImageGateway(),
        gate=CreepinessGate(LLMClient()),
        store=UserCardStore(async_session),
        deck_size=deck_size,
        eager=eager,
    )


def format_card(position: int, card: Card) -> str:
    mark = STATUS_MARKS[card.status.value]
    return f"  [{mark}] #{position:<3} {card.phrase}"


async def cmd_deck(args: argparse.Namespace) -> None:
    """Deal a deck (eager images included) and print it."""
    await ensure_db()
    controller = make_controller(deck_size=args.size, eager=args.eager)
    await controller.load()
    await controller.close()

    deck = controller.deck
    print(f"\n  {len(deck)} cards ({deck.status.value})")
    print("  [*] image generated  [x] generation failed  [ ] placeholder\n")
    for i, card in enumerate(deck.cards, 1):
        print(format_card(i, card))


async def cmd_add(args: argparse.Namespace) -> None:
    """Create a user card through the content gate and image generation."""
    await ensure_db()
    # Only the user's cards are needed here, so skip dealing a generated deck
    controller = make_controller(deck_size=0, eager=0)
    await controller.load()
    try:
        card = await controller.add_card(args.phrase, args.prompt)
    except ContentRejected as e:
        print(f"  Prompt Not Creepy Enough: {e}", file=sys.stderr)
        sys.exit(1)
    except (DeckError, ValueError) as e:
        print(f"  Generation Failed: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await controller.close()
    print(f"  Card Created! ({card.id})")
    print(format_card(len(controller.deck), card))


async def cmd_score(args: argparse.Namespace) -> None:
    """Score a prompt without generating anything."""
    gate = CreepinessGate(LLMClient())
    try:
        verdict = await gate.score(args.prompt)
    except DeckError as e:
        print(f"  Scoring failed: {e}", file=sys.stderr)
        sys.exit(1)
    result = "creepy enough" if verdict.passed else "not creepy enough"
    print(f"  Score {verdict.score:.2f}: {result}")


async def cmd_cards(args: argparse.Namespace) -> None:
    """List saved user cards."""
    await ensure_db()
    cards = await UserCardStore(async_session).load()
    if not cards:
        print("\n  The void is empty... for now.")
        return
    print(f"\n  {len(cards)} saved cards\n")
    for i, card in enumerate(cards, 1):
        print(format_card(i, card))


async def cmd_clear(args: argparse.Namespace) -> None:
    """Delete saved user cards."""
    await ensure_db()
    await UserCardStore(async_session).clear()
    print("  Saved cards cleared.")


def main() -> None:
    """Entry point for the Creepy Cards CLI application."""
    parser = argparse.ArgumentParser(
        prog="creepy_cards",
        description="Creepy Cards deck tools",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # deck
    deck_parser = subparsers.add_parser("deck", help="Deal a deck and list it")
    deck_parser.add_argument("--size", type=int, default=None, help="Number of cards")
    deck_parser.add_argument("--eager", type=int, default=None, help="Images generated up front")

    # add
    add_parser = subparsers.add_parser("add", help="Create a new user card")
    add_parser.add_argument("phrase", help="Story phrase shown on the card")
    add_parser.add_argument("prompt", help="Image prompt for the AI")

    # score
    score_parser = subparsers.add_parser("score", help="Score a prompt's creepiness")
    score_parser.add_argument("prompt", help="Image prompt to score")

    # cards, clear
    subparsers.add_parser("cards", help="List your saved cards")
    subparsers.add_parser("clear", help="Forget your saved cards")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.command:
        parser.print_help()
        return

    cmd_map = {
        "deck": cmd_deck,
        "add": cmd_add,
        "score": cmd_score,
        "cards": cmd_cards,
        "clear": cmd_clear,
    }

    asyncio.run(cmd_map[args.command](args))


if __name__ == "__main__":
    main()
