"""OpenRouter chat-completions provider (Perplexity online model)."""
import asyncio
import logging
from typing import Any

import aiohttp

from ipo_radar.models import MarketSnapshot
from ipo_radar.providers.base import ProviderError, parse_snapshot_text
from ipo_radar.providers.prompts import JSON_SHAPE_INSTRUCTIONS, SYSTEM_PROMPT, build_prompt

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


class OpenRouterProvider:
    """Fetches IPO listings through an OpenRouter chat-completion call.

    The model replies with free text that should be JSON; code fences
    around it are stripped before parsing.
    """

    name = "openrouter"

    def __init__(
        self,
        api_key: str,
        model: str = "perplexity/llama-3.1-sonar-large-128k-online",
        referer: str = "https://nepal-ipo-radar.vercel.app",
        timeout: float = 120.0,
    ):
        self.api_key = api_key
        self.model = model
        self.referer = referer
        self.timeout = timeout

    def _build_request(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt() + "\n\n" + JSON_SHAPE_INSTRUCTIONS},
            ],
            "temperature": 0.1,
        }

    async def _request(self, body: dict[str, Any]) -> dict[str, Any]:
        """POST the completion request and return the decoded JSON body."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.referer,
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    OPENROUTER_URL,
                    json=body,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise ProviderError(f"OpenRouter API error: HTTP {response.status} {response.reason}")
                    return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderError(f"OpenRouter request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise ProviderError(f"OpenRouter request timed out after {self.timeout}s") from e
        except ValueError as e:
            raise ProviderError(f"OpenRouter returned a non-JSON body: {e}") from e

    async def fetch_snapshot(self) -> MarketSnapshot:
        logger.info(f"Using OpenRouter mode ({self.model})...")
        data = await self._request(self._build_request())

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected OpenRouter response shape: {e}") from e
        if not isinstance(content, str):
            raise ProviderError("OpenRouter response has no text content")

        return parse_snapshot_text(
            content,
            source=self.name,
            default_summary="Market data retrieved via OpenRouter.",
        )
