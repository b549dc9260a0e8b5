"""Resolve the configured market data provider once at startup."""
import logging

from ipo_radar.core.config import ProviderConfig
from ipo_radar.providers.base import MarketDataProvider, UnconfiguredProvider
from ipo_radar.providers.gemini import GeminiProvider
from ipo_radar.providers.openrouter import OpenRouterProvider

logger = logging.getLogger(__name__)

OPENROUTER_KEY_PREFIX = "sk-or-"


def detect_provider_kind(api_key: str) -> str:
    """Infer the upstream from the credential shape."""
    if not api_key:
        return "unconfigured"
    if api_key.startswith(OPENROUTER_KEY_PREFIX):
        return "openrouter"
    return "gemini"


def create_provider(config: ProviderConfig) -> MarketDataProvider:
    """Build the provider selected by configuration.

    An explicit `kind` wins over key detection; no key at all always
    yields the UnconfiguredProvider.
    """
    kind = detect_provider_kind(config.api_key)
    if kind != "unconfigured" and config.kind != "auto":
        kind = config.kind

    if kind == "openrouter":
        provider = OpenRouterProvider(
            api_key=config.api_key,
            model=config.openrouter_model,
            referer=config.referer,
            timeout=config.timeout_seconds,
        )
    elif kind == "gemini":
        provider = GeminiProvider(api_key=config.api_key, model=config.gemini_model)
    else:
        provider = UnconfiguredProvider()

    logger.info(f"Market data provider: {provider.name}")
    return provider
