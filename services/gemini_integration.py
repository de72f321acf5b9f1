import asyncio
import logging
from typing import Any

from google import genai
from google.genai import types

from core import config

logger = logging.getLogger(__name__)
logging.getLogger("google_genai.models").setLevel(logging.ERROR)
logging.getLogger("httpx").setLevel(logging.ERROR)

_client: genai.Client | None = None


class GeminiError(Exception):
    pass


TEXT_GENERATION_CONFIG = types.GenerateContentConfig(
    # Low temperature: the answer is a number, not prose
    temperature=0.2,
    response_mime_type="application/json",
)


def get_client() -> genai.Client | None:
    """Create the Gemini client on first use; None when no key is configured."""
    global _client
    if _client is None and config.settings.GEMINI_API_KEY:
        _client = genai.Client(api_key=config.settings.GEMINI_API_KEY)
    return _client


def is_configured() -> bool:
    return bool(config.settings.GEMINI_API_KEY)


def _unpack_response(response: types.GenerateContentResponse) -> Any:
    if not response or not response.candidates:
        raise GeminiError("Failed to generate content")
    content = response.candidates[0].content
    if not content or not content.parts:
        raise GeminiError("Empty response content")
    return content.parts[0].text


def generate_text(prompt: str, model: str | None = None) -> str:
    client = get_client()
    if client is None:
        raise GeminiError("GEMINI_API_KEY not set")

    return _unpack_response(
        client.models.generate_content(
            model=model or config.settings.GEMINI_MODEL,
            config=TEXT_GENERATION_CONFIG,
            contents=[prompt],
        )
    )


async def generate_text_async(prompt: str, model: str | None = None) -> str:
    return await asyncio.to_thread(generate_text, prompt, model)
