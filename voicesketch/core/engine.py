"""Core generation orchestration: transcript to persisted artwork.

Architectural role:
    Provides the pipeline used by the CLI and HTTP adapters to turn a voice
    transcript (or a typed prompt) into a generated, cached, and stored artwork.

Control-flow model (`generate_from_transcript`):
    1. Parse the transcript (`voicesketch.nlp.intent_parser.parse`).
    2. Reject non-create intents (`InvalidPrompt`) and confidence <= 0.5
       (`VoiceRecognitionFailed`).
    3. Build the `GenerationRequest` (`voicesketch.image.service`).
    4. Call the provider under the retry policy, timing the call.
    5. Save bytes to the image cache and derive a thumbnail.
    6. Build the `Artwork` and commit it through the store.

    Steps run strictly in this order. The engine suspends only at the provider
    call (and its backoff delays) and at the cache steps.

Collaborators:
    Client, cache and store are passed in explicitly; there is no module-level
    default instance.

Side effects:
    Exactly one cache write and one store insert + save per successful run.
    Nothing is written when a step before the cache write fails, including when
    the enclosing task is cancelled during a retry delay.

Error handling strategy:
    Validation errors are raised before any I/O. Provider failures are retried in
    `voicesketch.image.retry` and surface only after every attempt has failed. Store
    failures are raised as `SaveFailed` and are not retried.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Protocol

from voicesketch.core.commands import (
    CreateIntent,
    DeleteIntent,
    EditIntent,
    ExportIntent,
    FavoriteIntent,
    VoiceCommand,
)
from voicesketch.core.errors import APIError, InvalidPrompt, SaveFailed, VoiceRecognitionFailed
from voicesketch.core.models import (
    AIProvider,
    Artwork,
    EditRecord,
    GenerationMetadata,
    GenerationRequest,
    ImageQuality,
    utcnow,
)
from voicesketch.core.styles import ArtStyle
from voicesketch.image import provider_config
from voicesketch.image.client import GenerationClient
from voicesketch.image.retry import RetryPolicy, Sleep, generate_with_retry
from voicesketch.image.service import build_generation_request, compose_edit_prompt
from voicesketch.nlp.intent_parser import extract_tags, parse
from voicesketch.storage.artwork_store import ArtworkStore


logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD = 0.5
UNDO_COMMAND = "undo"


class ImageCacheProtocol(Protocol):
    """Cache operations the engine relies on."""

    async def save(self, data: bytes) -> str:
        ...

    async def thumbnail(self, locator: str, size: tuple[int, int]) -> bytes | None:
        ...


@dataclass
class CommandResult:
    """Outcome of `process_command`.

    Attributes:
        command: Parsed voice command.
        action: Intent kind that was executed.
        artwork: Affected artwork, if any (`None` after delete).
        locator: Exported image locator for export commands.
    """

    command: VoiceCommand
    action: str
    artwork: Artwork | None = None
    locator: str | None = None


class ArtworkOrchestrator:
    """Runs generation and edit pipelines against explicit collaborators."""

    def __init__(
        self,
        client: GenerationClient,
        cache: ImageCacheProtocol,
        store: ArtworkStore,
        provider: AIProvider = AIProvider.FAL_AI,
        retry_policy: RetryPolicy | None = None,
        quality: ImageQuality = ImageQuality.HIGH,
        thumbnail_size: tuple[int, int] = (300, 300),
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.cache = cache
        self.store = store
        self.provider = provider
        self.retry_policy = retry_policy or RetryPolicy()
        self.quality = quality
        self.thumbnail_size = thumbnail_size
        self._sleep = sleep

    # =====================================================
    # GENERATION ENTRY POINTS
    # =====================================================

    async def generate_from_transcript(
        self,
        transcript: str,
        quality: ImageQuality | None = None,
    ) -> Artwork:
        """Generate and persist an artwork from a voice transcript."""
        logger.info("Starting generation from transcript")

        command = parse(transcript)
        intent = command.intent

        if not isinstance(intent, CreateIntent):
            logger.warning("Rejected transcript with intent=%s", intent.kind)
            raise InvalidPrompt(f"Expected a create command, got {intent.kind}")

        self._require_confidence(command)

        if not intent.description.strip():
            raise InvalidPrompt("Transcript did not contain a description")

        request = build_generation_request(
            intent.description,
            style=intent.style,
            quality=quality or self.quality,
            provider=self.provider,
        )
        return await self._run(request, original_prompt=transcript)

    async def generate_from_prompt(
        self,
        prompt: str,
        style: ArtStyle,
        quality: ImageQuality | None = None,
    ) -> Artwork:
        """Generate and persist an artwork from a typed prompt (no parsing)."""
        logger.info("Starting generation from prompt")

        if not prompt or not prompt.strip():
            raise InvalidPrompt("Prompt is empty")

        request = build_generation_request(
            prompt.strip(),
            style=style,
            quality=quality or self.quality,
            provider=self.provider,
        )
        return await self._run(request, original_prompt=request.prompt)

    async def _run(self, request: GenerationRequest, original_prompt: str) -> Artwork:
        image_data, elapsed_ms = await self._generate(request)
        locator, thumbnail = await self._cache(image_data)

        artwork = Artwork(
            prompt=request.prompt,
            image_url=locator,
            style=request.style,
            original_prompt=original_prompt,
            thumbnail_data=thumbnail,
            tags=extract_tags(request.prompt),
        )
        artwork.metadata = self._metadata(request, elapsed_ms)

        self._commit(artwork)

        logger.info("Generation complete: %s", artwork.id)
        return artwork

    # =====================================================
    # EDITS
    # =====================================================

    async def apply_edit(self, artwork: Artwork, transcript: str) -> Artwork:
        """Regenerate `artwork` according to a voice edit and record it.

        The previous locator and a snapshot of the prompt, style, thumbnail
        and metadata are kept in a new `EditRecord` so the edit can be undone.
        """
        command = parse(transcript)
        intent = command.intent

        if not isinstance(intent, EditIntent):
            logger.warning("Rejected edit transcript with intent=%s", intent.kind)
            raise InvalidPrompt(f"Expected an edit command, got {intent.kind}")

        self._require_confidence(command)

        prompt, style = compose_edit_prompt(artwork.prompt, artwork.style, intent.edit)
        request = build_generation_request(
            prompt,
            style=style,
            quality=self.quality,
            provider=self.provider,
        )

        image_data, elapsed_ms = await self._generate(request)
        locator, thumbnail = await self._cache(image_data)

        artwork.record_edit(transcript, locator)
        artwork.prompt = request.prompt
        artwork.style = request.style
        artwork.thumbnail_data = thumbnail
        artwork.metadata = self._metadata(request, elapsed_ms)

        self._commit()
        logger.info("Edit applied to %s (%s)", artwork.id, intent.edit.kind)
        return artwork

    def undo_last_edit(self, artwork: Artwork) -> Artwork:
        """Revert the most recent edit that is still in effect.

        History stays append-only: the undo itself is recorded. Repeated undos
        step further back; an edit made after an undo is undone first.
        Locator, prompt, style, thumbnail and metadata are restored together.
        """
        target = _undo_target(artwork.edit_history)
        if target is None or not target.previous_image_url:
            raise InvalidPrompt("Nothing to undo")

        artwork.record_edit(UNDO_COMMAND, target.previous_image_url)
        artwork.restore(target)
        self._commit()
        logger.info("Undo applied to %s", artwork.id)
        return artwork

    # =====================================================
    # COMMAND DISPATCH
    # =====================================================

    async def process_command(self, transcript: str, artwork: Artwork | None = None) -> CommandResult:
        """Parse a transcript and run the matching action.

        Routing:
            create -> `generate_from_transcript`
            edit -> `apply_edit` on `artwork`
            delete -> remove `artwork` from the store
            favorite -> toggle `artwork.is_favorite`
            export -> return `artwork.image_url`

        Commands other than create need an `artwork`; without one they raise
        `InvalidPrompt`.
        """
        command = parse(transcript)
        intent = command.intent

        if isinstance(intent, CreateIntent):
            created = await self.generate_from_transcript(transcript)
            return CommandResult(command, intent.kind, artwork=created)

        if artwork is None:
            raise InvalidPrompt(f"No artwork selected for {intent.kind} command")

        if isinstance(intent, EditIntent):
            edited = await self.apply_edit(artwork, transcript)
            return CommandResult(command, intent.kind, artwork=edited)

        if isinstance(intent, DeleteIntent):
            self.store.delete(artwork.id)
            self._commit()
            logger.info("Deleted artwork %s", artwork.id)
            return CommandResult(command, intent.kind)

        if isinstance(intent, FavoriteIntent):
            artwork.is_favorite = not artwork.is_favorite
            artwork.modified_at = utcnow()
            self._commit()
            return CommandResult(command, intent.kind, artwork=artwork)

        if isinstance(intent, ExportIntent):
            return CommandResult(command, intent.kind, artwork=artwork, locator=artwork.image_url)

        raise InvalidPrompt(f"Unsupported command: {intent.kind}")

    # =====================================================
    # PIPELINE STEPS
    # =====================================================

    @staticmethod
    def _require_confidence(command: VoiceCommand) -> None:
        if command.confidence <= CONFIDENCE_THRESHOLD:
            logger.warning("Low confidence: %.2f", command.confidence)
            raise VoiceRecognitionFailed(f"Low confidence: {command.confidence:.2f}")

    async def _generate(self, request: GenerationRequest) -> tuple[bytes, int]:
        if not await self.client.is_available():
            raise APIError(
                detail=(
                    f"{request.provider.display_name} is not available. "
                    "Configure it in Settings > AI Providers."
                )
            )

        logger.info("Generating: %s", request.enhanced_prompt)
        started = time.monotonic()
        image_data = await generate_with_retry(
            self.client,
            request,
            policy=self.retry_policy,
            sleep=self._sleep,
        )
        elapsed_ms = int((time.monotonic() - started) * 1000)
        return image_data, elapsed_ms

    async def _cache(self, image_data: bytes) -> tuple[str, bytes | None]:
        locator = await self.cache.save(image_data)
        thumbnail = await self.cache.thumbnail(locator, self.thumbnail_size)
        return locator, thumbnail

    def _metadata(self, request: GenerationRequest, elapsed_ms: int) -> GenerationMetadata:
        return GenerationMetadata(
            provider=request.provider,
            model=provider_config.model_name(request.provider),
            seed=request.seed,
            generation_time_ms=elapsed_ms,
            cost=self.client.estimated_cost(request.quality),
            parameters={"quality": request.quality.value, "style": request.style.value},
        )

    def _commit(self, new_artwork: Artwork | None = None) -> None:
        try:
            if new_artwork is not None:
                self.store.insert(new_artwork)
            self.store.save()
        except SaveFailed:
            raise
        except Exception as exc:
            logger.exception("Artwork store commit failed")
            raise SaveFailed(str(exc)) from exc


def _undo_target(history: list[EditRecord]) -> EditRecord | None:
    """Newest edit still in effect, replaying undo records as stack pops."""
    applied: list[EditRecord] = []
    for record in history:
        if record.voice_command == UNDO_COMMAND:
            if applied:
                applied.pop()
        else:
            applied.append(record)
    return applied[-1] if applied else None
