"""Client construction and provider selection.

Architectural role:
    Builds `GenerationClient` instances for a provider from stored or
    environment credentials. One factory is constructed at startup and passed to
    the adapters that need it; the engine itself only ever receives a client.

Selection:
    `select_best_provider` prefers fal.ai, then DALL-E, then Stable Diffusion,
    choosing the first one with a credential, and falls back to fal.ai.
"""

from __future__ import annotations

import logging

import httpx

from voicesketch.core.models import AIProvider
from voicesketch.image import provider_config
from voicesketch.image.client import FalAIClient, GenerationClient, UnsupportedClient
from voicesketch.storage.key_store import KeyStore


logger = logging.getLogger(__name__)

PROVIDER_PREFERENCE = [AIProvider.FAL_AI, AIProvider.DALLE, AIProvider.STABLE]


class ClientFactory:

    def __init__(
        self,
        key_store: KeyStore | None = None,
        config: provider_config.GenerationConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.key_store = key_store
        self.config = config or provider_config.GenerationConfig()
        self._transport = transport

    def create_client(self, provider: AIProvider) -> GenerationClient:
        logger.info("Creating generation client: %s", provider.value)

        if provider is AIProvider.FAL_AI:
            return FalAIClient(
                api_key=provider_config.resolve_api_key(provider, self.key_store),
                endpoint=provider_config.IMAGE_PROVIDERS[provider]["url"],
                timeout_seconds=self.config.timeout_seconds,
                transport=self._transport,
            )

        return UnsupportedClient(provider)

    def select_best_provider(self) -> AIProvider:
        for provider in PROVIDER_PREFERENCE:
            if provider_config.resolve_api_key(provider, self.key_store):
                return provider
        return AIProvider.FAL_AI
