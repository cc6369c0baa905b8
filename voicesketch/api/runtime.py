"""Process-wide wiring of the generation engine and its collaborators.

Architectural role:
    Builds one `Runtime` at adapter startup (CLI or HTTP) and hands it to request
    handlers by reference. Core modules never look collaborators up globally.

Side effects:
    Creating a runtime creates the cache directory and loads the artwork store
    document if it exists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from voicesketch.core.engine import ArtworkOrchestrator
from voicesketch.core.models import AIProvider
from voicesketch.image import provider_config
from voicesketch.image.factory import ClientFactory
from voicesketch.image.provider_config import GenerationConfig
from voicesketch.image.retry import RetryPolicy
from voicesketch.storage.artwork_store import JsonArtworkStore
from voicesketch.storage.image_cache import ImageCache
from voicesketch.storage.key_store import KeyStore


logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    config: GenerationConfig
    key_store: KeyStore
    factory: ClientFactory
    cache: ImageCache
    store: JsonArtworkStore
    orchestrator: ArtworkOrchestrator


def build_runtime(
    config: GenerationConfig | None = None,
    provider: AIProvider | None = None,
) -> Runtime:
    """Construct collaborators and the orchestrator from configuration.

    Provider precedence: the `provider` argument, then `IMAGE_PROVIDER` from
    the environment, then the first provider with a configured credential.
    """
    config = config or GenerationConfig()
    key_store = KeyStore(config.keys_dir)
    factory = ClientFactory(key_store=key_store, config=config)
    selected = provider or provider_config.IMAGE_PROVIDER or factory.select_best_provider()
    cache = ImageCache(config.cache_dir)
    store = JsonArtworkStore(config.store_path)

    orchestrator = ArtworkOrchestrator(
        client=factory.create_client(selected),
        cache=cache,
        store=store,
        provider=selected,
        retry_policy=RetryPolicy.from_config(config),
        thumbnail_size=(config.thumbnail_size, config.thumbnail_size),
    )

    logger.info("Runtime ready (provider=%s)", selected.value)
    return Runtime(
        config=config,
        key_store=key_store,
        factory=factory,
        cache=cache,
        store=store,
        orchestrator=orchestrator,
    )
