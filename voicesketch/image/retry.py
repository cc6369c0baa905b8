"""Retry/backoff wrapper around a single logical generation call.

Retry policy:
    Up to `max_attempts` attempts (3 by default). After failed attempt `n`
    (counted from 1) the wrapper waits `backoff_base ** n` seconds, so 2s then 4s
    with the defaults. No delay follows the final attempt; its error is raised.

Error translation:
    Every failure is mapped to the caller-facing taxonomy as soon as it happens:
    - HTTP 429 -> `QuotaExceeded`
    - timeouts -> `NetworkTimeout`
    - other transport / HTTP / malformed-body failures -> `APIError(underlying)`
    - a successful response without an image -> `ImageProcessingFailed`
    All of them stay eligible for retry; only the last one reaches the caller.

Cancellation:
    The inter-attempt delay is an awaited sleep. `asyncio.CancelledError` is not
    caught here, so cancelling the enclosing task abandons the pending delay or
    the in-flight provider call immediately.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from voicesketch.core.errors import (
    APIError,
    NetworkTimeout,
    ProviderHTTPError,
    ProviderNetworkError,
    QuotaExceeded,
    VoiceSketchError,
)
from voicesketch.core.models import GenerationRequest
from voicesketch.image.client import GenerationClient
from voicesketch.image.provider_config import GenerationConfig


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

QUOTA_STATUS = 429


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_base: float = 2.0

    @classmethod
    def from_config(cls, config: GenerationConfig) -> "RetryPolicy":
        return cls(max_attempts=config.retry_attempts, backoff_base=config.backoff_base)

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after failed attempt `attempt` (1-based)."""
        return self.backoff_base ** attempt


def translate_failure(exc: Exception) -> VoiceSketchError:
    """Map one failed attempt to the caller-facing error taxonomy."""
    if isinstance(exc, VoiceSketchError):
        return exc
    if isinstance(exc, ProviderHTTPError):
        if exc.status_code == QUOTA_STATUS:
            return QuotaExceeded(f"Provider returned HTTP {QUOTA_STATUS}")
        return APIError(exc)
    if isinstance(exc, ProviderNetworkError) and exc.timed_out:
        return NetworkTimeout(str(exc))
    return APIError(exc)


async def generate_with_retry(
    client: GenerationClient,
    request: GenerationRequest,
    policy: RetryPolicy | None = None,
    sleep: Sleep = asyncio.sleep,
) -> bytes:
    """Call `client.generate` under the retry policy.

    Returns:
        Image bytes from the first successful attempt.

    Raises:
        VoiceSketchError: The translated error of the final failed attempt.
    """
    policy = policy or RetryPolicy()
    attempts = max(1, policy.max_attempts)
    last_error: VoiceSketchError | None = None

    for attempt in range(1, attempts + 1):
        try:
            return await client.generate(request)
        except Exception as exc:
            last_error = translate_failure(exc)
            if last_error is not exc:
                last_error.__cause__ = exc
            logger.warning(
                "Generation attempt %d/%d failed: %s (%s)",
                attempt,
                attempts,
                last_error.kind.value,
                exc,
            )

        if attempt < attempts:
            await sleep(policy.delay_for(attempt))

    if last_error is not None:
        raise last_error

    raise RuntimeError("Generation failed without error details")
