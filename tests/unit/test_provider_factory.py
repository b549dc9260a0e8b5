"""Tests for provider selection."""
import pytest


@pytest.mark.parametrize("api_key,expected", [
    ("", "unconfigured"),
    ("sk-or-v1-abc", "openrouter"),
    ("AIzaSyExample", "gemini"),
])
def test_detect_provider_kind(api_key, expected):
    from ipo_radar.providers.factory import detect_provider_kind

    assert detect_provider_kind(api_key) == expected


def test_create_provider_without_key():
    from ipo_radar.core.config import ProviderConfig
    from ipo_radar.providers.base import UnconfiguredProvider
    from ipo_radar.providers.factory import create_provider

    provider = create_provider(ProviderConfig(api_key="", kind="gemini"))

    assert isinstance(provider, UnconfiguredProvider)


def test_create_provider_openrouter_from_key():
    from ipo_radar.core.config import ProviderConfig
    from ipo_radar.providers.factory import create_provider
    from ipo_radar.providers.openrouter import OpenRouterProvider

    provider = create_provider(ProviderConfig(api_key="sk-or-v1-abc", timeout_seconds=30))

    assert isinstance(provider, OpenRouterProvider)
    assert provider.api_key == "sk-or-v1-abc"
    assert provider.timeout == 30


def test_create_provider_gemini_from_key():
    from unittest.mock import patch
    from ipo_radar.core.config import ProviderConfig
    from ipo_radar.providers.factory import create_provider
    from ipo_radar.providers.gemini import GeminiProvider

    with patch("ipo_radar.providers.gemini.genai.Client") as MockClient:
        provider = create_provider(ProviderConfig(api_key="AIzaSyExample"))

    assert isinstance(provider, GeminiProvider)
    MockClient.assert_called_once_with(api_key="AIzaSyExample")


def test_create_provider_explicit_kind_overrides_detection():
    from ipo_radar.core.config import ProviderConfig
    from ipo_radar.providers.factory import create_provider
    from ipo_radar.providers.openrouter import OpenRouterProvider

    provider = create_provider(ProviderConfig(api_key="plain-key", kind="openrouter"))

    assert isinstance(provider, OpenRouterProvider)
