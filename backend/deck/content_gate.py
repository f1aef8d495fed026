"""Creepiness scoring for user-supplied image prompts.

A prompt only gets turned into an image when the LLM scores it above the
threshold. Scores are parsed from a JSON reply; the pass/fail decision is
made here from the score, not taken from the model.
"""

from __future__ import annotations

import asyncio
import json
import logging

from backend.config import settings
from backend.deck.errors import GatewayFailure
from backend.deck.gateways import CreepinessVerdict
from backend.llm_client import LLMClient

logger = logging.getLogger(__name__)

CREEPINESS_SYSTEM_PROMPT = """\
You are an AI that analyzes text prompts and assigns a creepiness score from 0 to 1. \
A score of 0 indicates not creepy at all, while a score of 1 indicates extremely creepy.

Respond with JSON only."""

CREEPINESS_USER_PROMPT = """\
Analyze the following prompt:
{prompt}

Return JSON:
{{
  "creepinessScore": <number from 0 to 1>,
  "isCreepyEnough": true/false  (true when the score is greater than {threshold})
}}"""


def parse_creepiness_response(response: str, threshold: float | None = None) -> CreepinessVerdict:
    """Parse the LLM reply into a verdict.

    Raises:
        GatewayFailure: If the reply has no usable score.
    """
    threshold = settings.creepiness_threshold if threshold is None else threshold
    text = response.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

    try:
        data = json.loads(text)
        score = float(data["creepinessScore"])
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise GatewayFailure(f"Unreadable creepiness score: {text[:200]!r}") from e

    score = min(1.0, max(0.0, score))
    return CreepinessVerdict(score=score, passed=score > threshold)


class CreepinessGate:
    """Content gate backed by the shared LLM client."""

    def __init__(self, llm: LLMClient, threshold: float | None = None) -> None:
        """Initialize the gate with an LLM client and pass threshold."""
        self.llm = llm
        self.threshold = settings.creepiness_threshold if threshold is None else threshold

    async def score(self, prompt: str) -> CreepinessVerdict:
        """Score a prompt; the blocking API call runs in a worker thread."""
        try:
            reply = await asyncio.to_thread(
                self.llm.create_message,
                prompt=CREEPINESS_USER_PROMPT.format(prompt=prompt, threshold=self.threshold),
                system=CREEPINESS_SYSTEM_PROMPT,
                max_tokens=128,
                temperature=0.1,
            )
        except Exception as e:
            logger.exception("Creepiness scoring failed")
            raise GatewayFailure("The creepiness check could not be completed") from e

        verdict = parse_creepiness_response(reply, self.threshold)
        logger.debug("Prompt scored %.2f (passed=%s)", verdict.score, verdict.passed)
        return verdict
