"""Tests for the upstream clients: creepiness gate and Gemini image gateway."""

import time
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import pytest

from backend.deck.content_gate import CreepinessGate, parse_creepiness_response
from backend.deck.errors import GatewayFailure
from backend.image_client import GeminiImageGateway, image_data_uri
from backend.llm_client import LLMClient


def _make_response(*parts: SimpleNamespace) -> SimpleNamespace:
    content = SimpleNamespace(parts=list(parts))
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)])


def _image_part(data: bytes = b"image", mime_type: str = "image/png") -> SimpleNamespace:
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))


def _text_part(text: str = "Here is your image") -> SimpleNamespace:
    return SimpleNamespace(text=text, inline_data=None)


# --- Content gate ---


class TestParseCreepiness:
    def test_plain_json(self) -> None:
        verdict = parse_creepiness_response('{"creepinessScore": 0.8, "isCreepyEnough": true}')
        assert verdict.score == 0.8
        assert verdict.passed is True

    def test_threshold_is_exclusive(self) -> None:
        verdict = parse_creepiness_response('{"creepinessScore": 0.5, "isCreepyEnough": true}')
        assert verdict.passed is False

    def test_model_flag_is_ignored(self) -> None:
        verdict = parse_creepiness_response('{"creepinessScore": 0.3, "isCreepyEnough": true}')
        assert verdict.passed is False

    def test_fenced_json(self) -> None:
        verdict = parse_creepiness_response('```json\n{"creepinessScore": 0.9}\n```')
        assert verdict.score == 0.9

    def test_score_clamped(self) -> None:
        assert parse_creepiness_response('{"creepinessScore": 1.7}').score == 1.0

    @pytest.mark.parametrize("reply", ["no json here", "{}", '{"creepinessScore": "very"}'])
    def test_unusable_reply(self, reply: str) -> None:
        with pytest.raises(GatewayFailure):
            parse_creepiness_response(reply)


class TestCreepinessGate:
    @pytest.mark.asyncio
    async def test_scores_prompt(self) -> None:
        llm = MagicMock(spec=LLMClient)
        llm.create_message.return_value = '{"creepinessScore": 0.72, "isCreepyEnough": true}'
        gate = CreepinessGate(llm)
        verdict = await gate.score("A doll with too many teeth")
        assert verdict.passed is True
        assert verdict.score == 0.72
        prompt = llm.create_message.call_args.kwargs["prompt"]
        assert "A doll with too many teeth" in prompt

    @pytest.mark.asyncio
    async def test_llm_error_becomes_gateway_failure(self) -> None:
        llm = MagicMock(spec=LLMClient)
        llm.create_message.side_effect = RuntimeError("overloaded")
        gate = CreepinessGate(llm)
        with pytest.raises(GatewayFailure):
            await gate.score("A doll with too many teeth")


class TestLLMClient:
    def test_sdk_retries_left_at_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        sdk = MagicMock()
        monkeypatch.setattr(anthropic, "Anthropic", sdk)
        LLMClient(api_key="test-key", model="test-model")
        assert sdk.call_args.kwargs == {"api_key": "test-key"}

    def test_retries_three_times_then_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(anthropic, "Anthropic", MagicMock())
        monkeypatch.setattr(time, "sleep", lambda _: None)
        llm = LLMClient(api_key="test-key", model="test-model")
        llm.client.messages.create.side_effect = RuntimeError("overloaded")
        with pytest.raises(RuntimeError):
            llm.create_message("Rate this prompt")
        assert llm.client.messages.create.call_count == 3


# --- Image gateway ---


class TestImageDataUri:
    def test_picks_image_part(self) -> None:
        response = _make_response(_text_part(), _image_part(b"abc", "image/jpeg"))
        assert image_data_uri(response) == "data:image/jpeg;base64,YWJj"

    def test_no_image(self) -> None:
        assert image_data_uri(_make_response(_text_part())) is None
        assert image_data_uri(SimpleNamespace(candidates=None)) is None


class TestGeminiImageGateway:
    def _make_gateway(self, response=None, error: Exception | None = None) -> GeminiImageGateway:
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=error)
        return GeminiImageGateway(client=client, model="test-image-model")

    @pytest.mark.asyncio
    async def test_returns_data_uri(self) -> None:
        gateway = self._make_gateway(_make_response(_image_part(b"abc")))
        assert await gateway.generate("A doll") == "data:image/png;base64,YWJj"
        call = gateway.client.aio.models.generate_content.call_args
        assert call.kwargs["model"] == "test-image-model"
        assert call.kwargs["contents"] == "A doll"

    @pytest.mark.asyncio
    async def test_prompt_is_sent_unchanged(self) -> None:
        gateway = self._make_gateway(_make_response(_image_part()))
        await gateway.generate("A doll, in a spooky style.")
        assert gateway.client.aio.models.generate_content.call_args.kwargs["contents"] == (
            "A doll, in a spooky style."
        )

    @pytest.mark.asyncio
    async def test_missing_image_fails(self) -> None:
        gateway = self._make_gateway(_make_response(_text_part()))
        with pytest.raises(GatewayFailure):
            await gateway.generate("A doll")

    @pytest.mark.asyncio
    async def test_client_error_fails(self) -> None:
        gateway = self._make_gateway(error=ValueError("bad request"))
        with pytest.raises(GatewayFailure):
            await gateway.generate("A doll")
        assert gateway.client.aio.models.generate_content.await_count == 1
