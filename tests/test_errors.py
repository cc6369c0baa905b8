"""Tests for the user-facing error taxonomy."""

import pytest

from voicesketch.core.errors import (
    APIError,
    ErrorKind,
    ImageProcessingFailed,
    InvalidPrompt,
    NetworkTimeout,
    QuotaExceeded,
    SaveFailed,
    VoicePermissionDenied,
    VoiceRecognitionFailed,
    ProviderHTTPError,
)


@pytest.mark.parametrize(
    "error, suggestion",
    [
        (VoicePermissionDenied(), "Enable microphone access in Settings"),
        (NetworkTimeout(), "Check your internet connection and try again"),
        (QuotaExceeded(), "Upgrade to Pro"),
        (InvalidPrompt(), "Try again"),
        (SaveFailed(), "Try again"),
    ],
)
def test_recovery_suggestions(error, suggestion):
    assert error.recovery_suggestion == suggestion


def test_every_error_has_a_message():
    errors = [
        VoicePermissionDenied(),
        VoiceRecognitionFailed(),
        APIError(),
        NetworkTimeout(),
        QuotaExceeded(),
        InvalidPrompt(),
        ImageProcessingFailed(),
        SaveFailed(),
    ]

    assert {error.kind for error in errors} == set(ErrorKind)
    assert all(error.message for error in errors)


def test_api_error_wraps_underlying():
    underlying = ProviderHTTPError(500)
    error = APIError(underlying)

    assert error.underlying is underlying
    assert error.detail == "HTTP 500"
    assert error.to_dict() == {
        "kind": "api_error",
        "message": "Unable to generate image. Please try again.",
        "recovery_suggestion": "Try again",
        "detail": "HTTP 500",
    }


def test_str_falls_back_to_message():
    assert str(QuotaExceeded()) == QuotaExceeded().message
