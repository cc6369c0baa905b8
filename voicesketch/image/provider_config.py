"""Provider/runtime configuration for the image-generation layer.

Architectural role:
    Centralizes provider selection, endpoints, model names, pricing, retry
    settings and local storage paths for `voicesketch.image` and
    `voicesketch.storage`.

Integration:
    - `factory.ClientFactory` consumes `IMAGE_PROVIDERS` and `resolve_api_key`.
    - `retry.RetryPolicy.from_config` consumes the retry settings.
    - `service.build_generation_request` consumes `DEFAULT_STYLE`.

Determinism:
    Deterministic for a fixed process environment. Values are resolved at import
    time; `.env` is loaded once via `load_dotenv()`.

Failure behavior:
    Missing credentials resolve to `None` and are treated by the factory as an
    unavailable provider.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from dotenv import load_dotenv

from voicesketch.core.models import AIProvider, ImageQuality
from voicesketch.core.styles import ArtStyle

load_dotenv()

logger = logging.getLogger(__name__)


def _style_from_env(name: str, default: ArtStyle) -> ArtStyle:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return ArtStyle.from_label(value)
    except ValueError:
        logger.warning("Ignoring unknown %s=%r; using %s", name, value, default.label)
        return default


def _provider_from_env(name: str) -> AIProvider | None:
    """Provider forced by the environment, matched on display name, member name or keychain id."""
    value = (os.getenv(name) or "").strip().lower()
    if not value:
        return None
    for provider in AIProvider:
        if value in (provider.value.lower(), provider.name.lower(), provider.keychain_key):
            return provider
    logger.warning("Ignoring unknown %s=%r; selecting provider by credentials", name, value)
    return None


# Primary provider routing controls. `IMAGE_PROVIDER` unset means: first
# provider with a credential (`factory.ClientFactory.select_best_provider`).
IMAGE_PROVIDER = _provider_from_env("IMAGE_PROVIDER")
DEFAULT_STYLE = _style_from_env("VOICESKETCH_DEFAULT_STYLE", ArtStyle.PHOTOREALISTIC)

# Provider map: endpoint, model identifier, credential env var, per-quality cost (USD).
IMAGE_PROVIDERS: dict[AIProvider, dict[str, Any]] = {

    AIProvider.FAL_AI: {
        "url": os.getenv("FAL_ENDPOINT", "https://fal.run/fal-ai/fast-lcm-diffusion"),
        "model": "fast-lcm-diffusion",
        "key_env": "FAL_API_KEY",
        "cost": {
            ImageQuality.STANDARD: Decimal("0.001"),
            ImageQuality.HIGH: Decimal("0.002"),
            ImageQuality.ULTRA: Decimal("0.003"),
        },
    },

    AIProvider.DALLE: {
        "url": "https://api.openai.com/v1/images/generations",
        "model": "dall-e-3",
        "key_env": "OPENAI_API_KEY",
        "cost": None,
    },

    AIProvider.STABLE: {
        "url": "https://api.stability.ai/v2beta/stable-image/generate/core",
        "model": "stable-diffusion-core",
        "key_env": "STABILITY_API_KEY",
        "cost": None,
    },

}

# fal.ai LCM is tuned for 4 to 8 inference steps.
FAL_INFERENCE_STEPS = 4
FAL_GUIDANCE_SCALE = 1.0
MAX_RANDOM_SEED = 999_999


def model_name(provider: AIProvider) -> str:
    return IMAGE_PROVIDERS[provider]["model"]


def estimated_cost(provider: AIProvider, quality: ImageQuality) -> Decimal:
    """Price of one generation; providers without a price table cost 0."""
    table = IMAGE_PROVIDERS[provider].get("cost")
    if not table:
        return Decimal("0")
    return table[quality]


@dataclass(frozen=True)
class GenerationConfig:
    """Runtime configuration for generation, retries, and local storage.

    Relevant environment variables:
        - `GENERATION_TIMEOUT_SECONDS`
        - `GENERATION_RETRY_ATTEMPTS`
        - `GENERATION_BACKOFF_BASE`
        - `VOICESKETCH_CACHE_DIR`
        - `VOICESKETCH_STORE_PATH`
        - `VOICESKETCH_KEYS_DIR`
        - `THUMBNAIL_SIZE`
    """

    timeout_seconds: float = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "30"))
    retry_attempts: int = int(os.getenv("GENERATION_RETRY_ATTEMPTS", "3"))
    backoff_base: float = float(os.getenv("GENERATION_BACKOFF_BASE", "2.0"))
    cache_dir: str = os.getenv("VOICESKETCH_CACHE_DIR", "data/artwork_cache")
    store_path: str = os.getenv("VOICESKETCH_STORE_PATH", "data/artworks.json")
    keys_dir: str = os.getenv("VOICESKETCH_KEYS_DIR", "config/keys")
    thumbnail_size: int = int(os.getenv("THUMBNAIL_SIZE", "300"))


def resolve_api_key(provider: AIProvider, key_store: Any = None) -> str | None:
    """Resolve the credential for a provider.

    Resolution order:
        1. Stored secret in `key_store` under the provider's keychain id.
        2. The provider's environment variable (for example `FAL_API_KEY`).

    Returns:
        Key string, or `None` when neither source has a non-empty value.
    """
    if key_store is not None:
        stored = key_store.get(provider.keychain_key)
        if stored:
            return stored
    env_value = os.getenv(IMAGE_PROVIDERS[provider]["key_env"], "").strip()
    return env_value or None
