"""Tests for the deck HTTP API."""

import random

import pytest
import pytest_asyncio
from conftest import FakeContentGate, FakeImageGateway
from httpx import ASGITransport, AsyncClient

from backend.deck.controller import DeckController
from backend.deck.storage import UserCardStore
from backend.main import app

ADD_CARD = {"phrase": "The old house sighed", "prompt": "A shadowy figure in a derelict room"}


@pytest_asyncio.fixture
async def controller(
    gateway: FakeImageGateway, gate: FakeContentGate, store: UserCardStore
) -> DeckController:
    controller = DeckController(
        gateway=gateway,
        gate=gate,
        store=store,
        deck_size=10,
        eager=3,
        rng=random.Random(2),
    )
    await controller.load()
    await controller.wait_idle()
    app.state.controller = controller
    yield controller
    await controller.close()
    del app.state.controller


@pytest_asyncio.fixture
async def client(controller: DeckController) -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestDeckRoutes:
    @pytest.mark.asyncio
    async def test_deck_state(self, client: AsyncClient) -> None:
        response = await client.get("/api/deck")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["total"] == 10
        assert body["current_index"] == 0
        assert body["current_card"]["id"] == "initial-1"
        assert body["current_card"]["is_ai_generated"] is True
        assert "shuffle" in body["actions"]

    @pytest.mark.asyncio
    async def test_cards(self, client: AsyncClient) -> None:
        response = await client.get("/api/deck/cards")
        cards = response.json()
        assert len(cards) == 10
        assert cards[9]["status"] == "pending"
        assert cards[9]["image_generated"] is False

    @pytest.mark.asyncio
    async def test_navigation(self, client: AsyncClient) -> None:
        assert (await client.post("/api/deck/prev")).json()["current_index"] == 9
        assert (await client.post("/api/deck/next")).json()["current_index"] == 0
        await client.post("/api/deck/next")
        assert (await client.post("/api/deck/start")).json()["current_index"] == 0

    @pytest.mark.asyncio
    async def test_advance(self, client: AsyncClient, controller: DeckController) -> None:
        controller.deck.current_index = 5
        response = await client.post("/api/deck/advance")
        body = response.json()
        assert body["current_index"] == 6
        assert body["current_card"]["status"] == "resolved"

    @pytest.mark.asyncio
    async def test_add_card(self, client: AsyncClient) -> None:
        response = await client.post("/api/deck/cards", json=ADD_CARD)
        assert response.status_code == 201
        assert response.json()["phrase"] == ADD_CARD["phrase"]
        state = (await client.get("/api/deck")).json()
        assert state["total"] == 11
        assert state["current_index"] == 10

    @pytest.mark.asyncio
    async def test_add_card_rejected(self, client: AsyncClient, gate: FakeContentGate) -> None:
        gate.score_value = 0.3
        response = await client.post("/api/deck/cards", json=ADD_CARD)
        assert response.status_code == 422
        assert response.json()["detail"]["score"] == 0.3
        assert "0.30" in response.json()["detail"]["message"]
        assert (await client.get("/api/deck")).json()["total"] == 10

    @pytest.mark.asyncio
    async def test_add_card_gateway_failure(
        self, client: AsyncClient, gateway: FakeImageGateway
    ) -> None:
        gateway.fail_all = True
        response = await client.post("/api/deck/cards", json=ADD_CARD)
        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_add_card_validation(self, client: AsyncClient) -> None:
        response = await client.post("/api/deck/cards", json={"phrase": "Boo", "prompt": "short"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_busy(self, client: AsyncClient, controller: DeckController) -> None:
        controller.deck.generating = True
        assert (await client.post("/api/deck/cards", json=ADD_CARD)).status_code == 409
        assert (await client.post("/api/deck/shuffle")).status_code == 409
        assert (await client.post("/api/deck/generate")).json() == {
            "started": False,
            "start_index": None,
            "resolved": 0,
            "failed": 0,
        }
        controller.deck.generating = False

    @pytest.mark.asyncio
    async def test_shuffle(self, client: AsyncClient, controller: DeckController) -> None:
        await client.post("/api/deck/cards", json=ADD_CARD)
        response = await client.post("/api/deck/shuffle")
        assert response.status_code == 200
        assert response.json()["total"] == 10
        assert controller.deck.user_cards() == []

    @pytest.mark.asyncio
    async def test_generate(self, client: AsyncClient, controller: DeckController) -> None:
        controller.deck.current_index = 7
        body = (await client.post("/api/deck/generate")).json()
        assert body["started"] is True
        assert body["start_index"] == 6
        assert body["resolved"] == 3

    @pytest.mark.asyncio
    async def test_notices_drain(self, client: AsyncClient) -> None:
        notices = (await client.get("/api/deck/notices")).json()
        assert notices[0]["title"] == "Summoning First Horrors..."
        assert (await client.get("/api/deck/notices")).json() == []


@pytest.mark.asyncio
async def test_missing_controller() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/deck")
    assert response.status_code == 503
