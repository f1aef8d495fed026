"""API routes for viewing and changing the deck."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from backend.api.schemas import (
    AddCardRequest,
    BatchResponse,
    CardResponse,
    DeckResponse,
    NoticeResponse,
)
from backend.deck.controller import DeckController
from backend.deck.errors import ContentRejected, DeckBusy, GatewayFailure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/deck", tags=["deck"])


def get_controller(request: Request) -> DeckController:
    """Return the deck controller owned by the application."""
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Deck is not initialized")
    return controller


@router.get("", response_model=DeckResponse)
async def deck_state(controller: DeckController = Depends(get_controller)) -> DeckResponse:
    """Get the viewing position and the current card."""
    return DeckResponse.from_deck(controller.deck)


@router.get("/cards", response_model=list[CardResponse])
async def deck_cards(controller: DeckController = Depends(get_controller)) -> list[CardResponse]:
    """List every card in deck order."""
    return [CardResponse.from_card(card) for card in controller.deck.cards]


@router.post("/next", response_model=DeckResponse)
async def deck_next(controller: DeckController = Depends(get_controller)) -> DeckResponse:
    """Move to the next card."""
    await controller.next()
    return DeckResponse.from_deck(controller.deck)


@router.post("/prev", response_model=DeckResponse)
async def deck_prev(controller: DeckController = Depends(get_controller)) -> DeckResponse:
    """Move to the previous card."""
    await controller.prev()
    return DeckResponse.from_deck(controller.deck)


@router.post("/start", response_model=DeckResponse)
async def deck_start(controller: DeckController = Depends(get_controller)) -> DeckResponse:
    """Go back to the first card."""
    await controller.go_to_start()
    return DeckResponse.from_deck(controller.deck)


@router.post("/advance", response_model=DeckResponse)
async def deck_advance(controller: DeckController = Depends(get_controller)) -> DeckResponse:
    """Move to the next card once its image is ready."""
    await controller.advance()
    return DeckResponse.from_deck(controller.deck)


@router.post("/cards", response_model=CardResponse, status_code=201)
async def deck_add_card(
    request: AddCardRequest,
    controller: DeckController = Depends(get_controller),
) -> CardResponse:
    """Create a new card from a phrase and an image prompt."""
    try:
        card = await controller.add_card(request.phrase, request.prompt)
    except DeckBusy as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except ContentRejected as e:
        raise HTTPException(
            status_code=422,
            detail={"message": f"Prompt Not Creepy Enough. {e}", "score": e.score},
        ) from e
    except GatewayFailure as e:
        logger.warning("Add card failed: %s", e)
        raise HTTPException(
            status_code=502,
            detail="Something went wrong while creating your card. Please try again.",
        ) from e
    return CardResponse.from_card(card)


@router.post("/shuffle", response_model=DeckResponse)
async def deck_shuffle(controller: DeckController = Depends(get_controller)) -> DeckResponse:
    """Deal a fresh deck and drop all user cards."""
    try:
        await controller.shuffle()
    except DeckBusy as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return DeckResponse.from_deck(controller.deck)


@router.post("/generate", response_model=BatchResponse)
async def deck_generate(controller: DeckController = Depends(get_controller)) -> BatchResponse:
    """Run one generation batch now, if the window needs one."""
    result = await controller.scheduler.trigger()
    return BatchResponse.from_result(result)


@router.get("/notices", response_model=list[NoticeResponse])
async def deck_notices(controller: DeckController = Depends(get_controller)) -> list[NoticeResponse]:
    """Return and clear the notices posted since the last call."""
    return [NoticeResponse.from_notice(n) for n in controller.notices.drain()]
