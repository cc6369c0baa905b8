"""Tests for environment-driven configuration and runtime wiring."""

import pytest

from voicesketch.api.runtime import build_runtime
from voicesketch.core.models import AIProvider
from voicesketch.core.styles import ArtStyle
from voicesketch.image import provider_config
from voicesketch.image.client import FalAIClient, UnsupportedClient
from voicesketch.image.provider_config import GenerationConfig


@pytest.fixture
def config(tmp_path):
    return GenerationConfig(
        cache_dir=str(tmp_path / "cache"),
        store_path=str(tmp_path / "artworks.json"),
        keys_dir=str(tmp_path / "keys"),
    )


@pytest.fixture
def no_credentials(monkeypatch):
    for name in ("FAL_API_KEY", "OPENAI_API_KEY", "STABILITY_API_KEY"):
        monkeypatch.delenv(name, raising=False)


class TestProviderFromEnv:

    @pytest.mark.parametrize("value, expected", [
        ("dalle", AIProvider.DALLE),
        ("DALL-E", AIProvider.DALLE),
        ("stable", AIProvider.STABLE),
        ("Stable Diffusion", AIProvider.STABLE),
        ("fal.ai", AIProvider.FAL_AI),
        (" fal_ai ", AIProvider.FAL_AI),
    ])
    def test_known_values(self, monkeypatch, value, expected):
        monkeypatch.setenv("IMAGE_PROVIDER", value)

        assert provider_config._provider_from_env("IMAGE_PROVIDER") is expected

    def test_unset(self, monkeypatch):
        monkeypatch.delenv("IMAGE_PROVIDER", raising=False)

        assert provider_config._provider_from_env("IMAGE_PROVIDER") is None

    def test_unknown_value_is_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("IMAGE_PROVIDER", "midjourney")

        assert provider_config._provider_from_env("IMAGE_PROVIDER") is None
        assert "midjourney" in caplog.text


class TestStyleFromEnv:

    def test_label(self, monkeypatch):
        monkeypatch.setenv("VOICESKETCH_DEFAULT_STYLE", "oil painting")

        style = provider_config._style_from_env("VOICESKETCH_DEFAULT_STYLE", ArtStyle.PHOTOREALISTIC)

        assert style is ArtStyle.OIL_PAINTING

    def test_unknown_label_falls_back(self, monkeypatch):
        monkeypatch.setenv("VOICESKETCH_DEFAULT_STYLE", "baroque")

        style = provider_config._style_from_env("VOICESKETCH_DEFAULT_STYLE", ArtStyle.PHOTOREALISTIC)

        assert style is ArtStyle.PHOTOREALISTIC


class TestBuildRuntime:

    def test_configured_provider_wins_over_credentials(self, config, no_credentials, monkeypatch):
        monkeypatch.setenv("FAL_API_KEY", "fal-secret")
        monkeypatch.setattr(provider_config, "IMAGE_PROVIDER", AIProvider.STABLE)

        runtime = build_runtime(config)

        assert runtime.orchestrator.provider is AIProvider.STABLE
        assert isinstance(runtime.orchestrator.client, UnsupportedClient)

    def test_argument_wins_over_configured_provider(self, config, no_credentials, monkeypatch):
        monkeypatch.setattr(provider_config, "IMAGE_PROVIDER", AIProvider.STABLE)

        runtime = build_runtime(config, provider=AIProvider.FAL_AI)

        assert runtime.orchestrator.provider is AIProvider.FAL_AI
        assert isinstance(runtime.orchestrator.client, FalAIClient)

    def test_selects_by_credentials_without_configured_provider(self, config, no_credentials, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "openai-secret")
        monkeypatch.setattr(provider_config, "IMAGE_PROVIDER", None)

        runtime = build_runtime(config)

        assert runtime.orchestrator.provider is AIProvider.DALLE
        assert runtime.store.all() == []
