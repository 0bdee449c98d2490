"""
Secondary vision call that lists the furniture and decor items in a generated image.

The descriptions feed the keyword product search. Extraction is best-effort: every
failure comes back as a failed Result and the caller continues with no descriptions.
"""
import asyncio
import json
import logging
from typing import List

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from roomspark.core.config import settings
from roomspark.core.exceptions import ProviderError
from roomspark.services.image_generation.base import Result, retry_on_failure

logger = logging.getLogger(__name__)

MAX_DESCRIPTIONS = 12

# google-genai surfaces transport failures as raw httpx errors
_RETRYABLE = (ProviderError, genai_errors.APIError, httpx.HTTPError)

EXTRACTION_PROMPT = """List every distinct piece of furniture and decor visible in this room image.

Return ONLY a JSON array of strings. Each string is a single line in the form
"<item name> <category>, <material>, <style>, <color>", for example:
["Tufted three-seat sofa, velvet, mid-century modern, emerald green",
 "Round coffee table, walnut wood, Scandinavian, natural"]

Do not include walls, floors, windows or doors. Do not add any other text."""


def parse_descriptions(text: str) -> List[str]:
    """Parse the model's JSON reply; raises ValueError if it is not a list of strings"""
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.startswith("json"):
            cleaned = cleaned[4:]

    data = json.loads(cleaned)
    if isinstance(data, dict):
        data = data.get("items") or data.get("descriptions")
    if not isinstance(data, list):
        raise ValueError("expected a JSON array")

    descriptions = [" ".join(str(item).split()) for item in data if isinstance(item, str) and item.strip()]
    return descriptions[:MAX_DESCRIPTIONS]


class ItemDescriptionExtractor:
    """Gemini-backed item lister"""

    def __init__(self, api_key: str = None, model: str = None, client=None):
        self.api_key = settings.google_ai_api_key if api_key is None else api_key
        self.model = model or settings.google_ai_model

        if client is not None:
            self.genai_client = client
        elif self.api_key:
            self.genai_client = genai.Client(api_key=self.api_key)
            logger.info(f"Item description extraction enabled with {self.model}")
        else:
            self.genai_client = None
            logger.warning("Google AI API key not configured - item descriptions will be empty")

    @property
    def enabled(self) -> bool:
        return self.genai_client is not None

    @retry_on_failure(retry_on=_RETRYABLE)
    async def _request(self, image_bytes: bytes) -> str:
        def _run_generate():
            """Run the blocking generate_content call in a separate thread"""
            response = self.genai_client.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type="image/png"),
                    EXTRACTION_PROMPT,
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    temperature=0.2,
                ),
            )
            return response.text

        text = await asyncio.to_thread(_run_generate)
        if not text:
            raise ProviderError("Empty response from description model")
        return text

    async def extract(self, image_bytes: bytes) -> Result[List[str]]:
        if not self.enabled:
            return Result.success([])

        try:
            text = await self._request(image_bytes)
        except _RETRYABLE as e:
            return Result.failure(f"description request failed: {e}")
        except Exception as e:
            logger.error(f"Unexpected description extraction error: {e}", exc_info=True)
            return Result.failure(f"description request failed: {type(e).__name__}")

        try:
            descriptions = parse_descriptions(text)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Malformed description response: {text[:200]}")
            return Result.failure(f"malformed description response: {e}")

        logger.info(f"Extracted {len(descriptions)} item descriptions")
        return Result.success(descriptions)
