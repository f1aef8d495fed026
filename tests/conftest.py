"""Shared fixtures: in-memory database and fake upstream services."""

import asyncio
import os

# Must be set before backend.config is imported anywhere
os.environ.setdefault("CREEPY_CARDS_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config import settings
from backend.database import build_engine
from backend.deck.errors import GatewayFailure
from backend.deck.gateways import CreepinessVerdict
from backend.deck.storage import UserCardStore
from backend.models import Base


class FakeImageGateway:
    """Records prompts; fails for listed phrases; can be held open with an event."""

    def __init__(self, fail_on: set[str] | None = None, fail_all: bool = False) -> None:
        self.prompts: list[str] = []
        self.fail_on = fail_on or set()
        self.fail_all = fail_all
        self.hold: asyncio.Event | None = None

    @property
    def phrases(self) -> list[str]:
        return [p.removesuffix(settings.style_suffix) for p in self.prompts]

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.hold is not None:
            await self.hold.wait()
        else:
            await asyncio.sleep(0)
        if self.fail_all or prompt.removesuffix(settings.style_suffix) in self.fail_on:
            raise GatewayFailure("The spirits are uncooperative!")
        return f"data:image/png;base64,aW1hZ2U{len(self.prompts)}"


class FakeContentGate:
    def __init__(self, score: float = 0.9) -> None:
        self.score_value = score
        self.prompts: list[str] = []

    async def score(self, prompt: str) -> CreepinessVerdict:
        self.prompts.append(prompt)
        return CreepinessVerdict(score=self.score_value, passed=self.score_value > 0.5)


@pytest.fixture
def gateway() -> FakeImageGateway:
    return FakeImageGateway()


@pytest.fixture
def gate() -> FakeContentGate:
    return FakeContentGate()


@pytest_asyncio.fixture
async def session_factory() -> async_sessionmaker[AsyncSession]:
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def store(session_factory: async_sessionmaker[AsyncSession]) -> UserCardStore:
    return UserCardStore(session_factory, key="testUserCards")
