"""Gemini image generation client.

Sends a prompt to a Gemini image model and returns the first image part of
the reply as a ``data:`` URI. Any error or empty reply surfaces as
``GatewayFailure``; the caller decides what that means for the card.
"""

import base64
import logging

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from backend.config import settings
from backend.deck.errors import GatewayFailure

logger = logging.getLogger(__name__)

SAFETY_CATEGORIES = [
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
]


def image_data_uri(response: types.GenerateContentResponse) -> str | None:
    """Return the first inline image of a response as a data URI, if any."""
    for candidate in response.candidates or []:
        if candidate.content is None:
            continue
        for part in candidate.content.parts or []:
            inline = part.inline_data
            if inline and inline.data and (inline.mime_type or "").startswith("image/"):
                b64 = base64.b64encode(inline.data).decode("utf-8")
                return f"data:{inline.mime_type};base64,{b64}"
    return None


class GeminiImageGateway:
    """Image generation gateway backed by the Gemini API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: genai.Client | None = None,
        max_attempts: int = 3,
    ) -> None:
        """Initialize the gateway with API credentials and the image model name."""
        self.client = client or genai.Client(api_key=api_key or settings.gemini_api_key)
        self.model = model or settings.gemini_image_model
        self.max_attempts = max_attempts
        self.config = types.GenerateContentConfig(
            response_modalities=["TEXT", "IMAGE"],
            safety_settings=[
                types.SafetySetting(
                    category=category,
                    threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
                )
                for category in SAFETY_CATEGORIES
            ],
        )

    async def _request(self, prompt: str) -> types.GenerateContentResponse:
        # Only server-side errors are worth another attempt
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            retry=retry_if_exception_type(genai_errors.ServerError),
            reraise=True,
        ):
            with attempt:
                return await self.client.aio.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=self.config,
                )
        raise GatewayFailure("Image generation was never attempted")  # pragma: no cover

    async def generate(self, prompt: str) -> str:
        """Generate an image for ``prompt`` and return it as a data URI."""
        try:
            response = await self._request(prompt)
        except Exception as e:
            logger.exception("Image generation request failed")
            raise GatewayFailure(f"Image generation failed: {e}") from e

        data_uri = image_data_uri(response)
        if data_uri is None:
            logger.error("Image generation failed: no image returned for prompt %r", prompt[:120])
            raise GatewayFailure(
                "Image generation failed to return a valid image. The spirits are uncooperative!"
            )
        return data_uri
