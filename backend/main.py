"""FastAPI application entry point and configuration."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from backend.api.deck_router import router as deck_router
from backend.database import async_session, engine
from backend.deck.content_gate import CreepinessGate
from backend.deck.controller import DeckController
from backend.deck.storage import UserCardStore
from backend.image_client import GeminiImageGateway
from backend.llm_client import LLMClient
from backend.models import Base

logger = logging.getLogger(__name__)


def build_controller() -> DeckController:
    """Wire the deck controller to the real upstream services and the database."""
    return DeckController(
        gateway=GeminiImageGateway(),
        gate=CreepinessGate(LLMClient()),
        store=UserCardStore(async_session),
    )


async def load_deck(controller: DeckController) -> None:
    """Deal the first deck; a failure leaves the deck in its loading state."""
    try:
        await controller.load()
    except Exception:
        logger.exception("Failed to load the deck")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables, deal the deck in the background, clean up on shutdown."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    controller = getattr(app.state, "controller", None)
    if controller is None:
        controller = build_controller()
        app.state.controller = controller
    load_task = asyncio.create_task(load_deck(controller))
    yield
    load_task.cancel()
    await asyncio.gather(load_task, return_exceptions=True)
    await controller.close()
    await engine.dispose()


app = FastAPI(
    title="Creepy Cards",
    description="AI-generated creepy flashcards with lazy image generation",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(deck_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Check database connectivity and return status."""
    async with async_session() as session:
        await session.execute(text("SELECT 1"))
    return {"status": "ok"}
