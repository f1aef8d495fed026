"""Interfaces of the upstream services the deck depends on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from backend.config import settings


@dataclass(frozen=True)
class CreepinessVerdict:
    """Outcome of scoring a prompt with the content gate."""

    score: float    # 0 = not creepy at all, 1 = extremely creepy
    passed: bool


class ImageGateway(Protocol):
    """Turns a text prompt into an image reference."""

    async def generate(self, prompt: str) -> str:
        """Return a ``data:<mime>;base64,...`` URI or raise ``GatewayFailure``."""
        ...


class ContentGate(Protocol):
    """Scores how creepy a prompt is before anything gets generated."""

    async def score(self, prompt: str) -> CreepinessVerdict:
        """Return the verdict or raise ``GatewayFailure``."""
        ...


def styled_prompt(text: str, suffix: str | None = None) -> str:
    """Append the deck's art-style suffix to a prompt."""
    return text + (settings.style_suffix if suffix is None else suffix)
