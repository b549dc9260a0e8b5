"""Google GenAI provider using structured (schema-validated) output."""
import logging

from google import genai
from google.genai import types

from ipo_radar.models import MarketSnapshot
from ipo_radar.providers.base import ProviderError, parse_snapshot_text
from ipo_radar.providers.prompts import RESPONSE_SCHEMA, build_prompt

logger = logging.getLogger(__name__)


class GeminiProvider:
    """Fetches IPO listings from Gemini with Google Search grounding."""

    name = "gemini"

    def __init__(self, api_key: str, model: str = "gemini-3-flash-preview", client: genai.Client | None = None):
        self.model = model
        self._client = client or genai.Client(api_key=api_key)

    def _build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
            response_mime_type="application/json",
            response_schema=RESPONSE_SCHEMA,
        )

    async def fetch_snapshot(self) -> MarketSnapshot:
        logger.info(f"Using Google GenAI mode ({self.model})...")

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=build_prompt(),
                config=self._build_config(),
            )
        except Exception as e:
            # SDK surfaces both API and transport errors
            raise ProviderError(f"Gemini request failed: {e}") from e

        text = getattr(response, "text", None)
        if not text:
            raise ProviderError("No data returned from Gemini")

        return parse_snapshot_text(text, source=self.name, default_summary="No summary available.")
