"""Error taxonomy for the generation pipeline.

Two layers:
    - `ProviderError` subclasses are raised by generation clients for a single
      failed attempt (transport, HTTP status, malformed body). They stay inside
      the retry wrapper.
    - `VoiceSketchError` subclasses are what callers of the orchestrator see.
      Each carries an `ErrorKind`; the user-facing message and recovery
      suggestion come from static tables keyed by that kind.

Propagation:
    Validation errors are raised before any network or storage side effect.
    Provider errors are translated by `voicesketch.image.retry` and surfaced only
    after every attempt has failed. Store failures surface as `SaveFailed`
    and are never retried here.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    VOICE_PERMISSION_DENIED = "voice_permission_denied"
    VOICE_RECOGNITION_FAILED = "voice_recognition_failed"
    API_ERROR = "api_error"
    NETWORK_TIMEOUT = "network_timeout"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_PROMPT = "invalid_prompt"
    IMAGE_PROCESSING_FAILED = "image_processing_failed"
    SAVE_FAILED = "save_failed"


ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.VOICE_PERMISSION_DENIED: "Microphone access is required to create art with your voice.",
    ErrorKind.VOICE_RECOGNITION_FAILED: "Unable to recognize speech. Please try again.",
    ErrorKind.API_ERROR: "Unable to generate image. Please try again.",
    ErrorKind.NETWORK_TIMEOUT: "Request timed out. Check your connection.",
    ErrorKind.QUOTA_EXCEEDED: "You've reached your monthly limit. Upgrade to Pro for unlimited generations.",
    ErrorKind.INVALID_PROMPT: "Please provide a valid description.",
    ErrorKind.IMAGE_PROCESSING_FAILED: "Failed to process image.",
    ErrorKind.SAVE_FAILED: "Failed to save artwork.",
}

RECOVERY_SUGGESTIONS: dict[ErrorKind, str] = {
    ErrorKind.VOICE_PERMISSION_DENIED: "Enable microphone access in Settings",
    ErrorKind.NETWORK_TIMEOUT: "Check your internet connection and try again",
    ErrorKind.QUOTA_EXCEEDED: "Upgrade to Pro",
}

DEFAULT_RECOVERY_SUGGESTION = "Try again"


class VoiceSketchError(Exception):
    """Base class for errors that reach callers of the generation core."""

    kind: ErrorKind = ErrorKind.API_ERROR

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(detail or self.message)

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self.kind]

    @property
    def recovery_suggestion(self) -> str:
        return RECOVERY_SUGGESTIONS.get(self.kind, DEFAULT_RECOVERY_SUGGESTION)

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "kind": self.kind.value,
            "message": self.message,
            "recovery_suggestion": self.recovery_suggestion,
        }
        if self.detail:
            payload["detail"] = self.detail
        return payload


class VoicePermissionDenied(VoiceSketchError):
    kind = ErrorKind.VOICE_PERMISSION_DENIED


class VoiceRecognitionFailed(VoiceSketchError):
    kind = ErrorKind.VOICE_RECOGNITION_FAILED


class APIError(VoiceSketchError):
    """Provider-side or transport failure after retries were exhausted."""

    kind = ErrorKind.API_ERROR

    def __init__(self, underlying: BaseException | None = None, detail: str | None = None) -> None:
        self.underlying = underlying
        if detail is None and underlying is not None:
            detail = str(underlying)
        super().__init__(detail)


class NetworkTimeout(VoiceSketchError):
    kind = ErrorKind.NETWORK_TIMEOUT


class QuotaExceeded(VoiceSketchError):
    kind = ErrorKind.QUOTA_EXCEEDED


class InvalidPrompt(VoiceSketchError):
    kind = ErrorKind.INVALID_PROMPT


class ImageProcessingFailed(VoiceSketchError):
    kind = ErrorKind.IMAGE_PROCESSING_FAILED


class SaveFailed(VoiceSketchError):
    kind = ErrorKind.SAVE_FAILED


# =========================================================
# PROVIDER (SINGLE-ATTEMPT) FAILURES
# =========================================================

class ProviderError(Exception):
    """One failed attempt against a generation provider."""


class ProviderNetworkError(ProviderError):
    def __init__(self, message: str, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class ProviderHTTPError(ProviderError):
    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class MalformedProviderResponse(ProviderError):
    pass
