"""Voice command data contracts produced by the intent parser.

Architectural role:
    Defines the structured result returned by `voicesketch.nlp.intent_parser.parse`
    and consumed by `voicesketch.core.engine` when deciding which pipeline to run.

Shape:
    `VoiceCommand` wraps one `Intent` variant. Intents and edit types are small
    frozen dataclasses forming closed unions (`Intent`, `EditType`); callers
    branch with `isinstance` or on the stable `kind` string.

Determinism:
    The classes are purely structural and state-free. Determinism depends on the
    parser that populates them.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Union

from voicesketch.core.styles import ArtStyle


# =========================================================
# EDIT TYPES
# =========================================================

@dataclass(frozen=True)
class AddElement:
    text: str
    kind = "add_element"


@dataclass(frozen=True)
class RemoveElement:
    text: str
    kind = "remove_element"


@dataclass(frozen=True)
class ChangeColor:
    color: str
    element: str | None = None
    kind = "change_color"


@dataclass(frozen=True)
class ChangeStyle:
    style: ArtStyle
    kind = "change_style"


@dataclass(frozen=True)
class Enhance:
    aspect: str
    kind = "enhance"


EditType = Union[AddElement, RemoveElement, ChangeColor, ChangeStyle, Enhance]


# =========================================================
# INTENTS
# =========================================================

@dataclass(frozen=True)
class CreateIntent:
    description: str
    style: ArtStyle | None = None
    kind = "create"


@dataclass(frozen=True)
class EditIntent:
    edit: EditType
    kind = "edit"


@dataclass(frozen=True)
class DeleteIntent:
    kind = "delete"


@dataclass(frozen=True)
class ExportIntent:
    kind = "export"


@dataclass(frozen=True)
class FavoriteIntent:
    kind = "favorite"


@dataclass(frozen=True)
class UnknownIntent:
    kind = "unknown"


Intent = Union[CreateIntent, EditIntent, DeleteIntent, ExportIntent, FavoriteIntent, UnknownIntent]


@dataclass(frozen=True)
class VoiceCommand:
    """Classified transcript.

    Attributes:
        raw_transcript: Transcript exactly as received, original casing.
        intent: Classified purpose of the transcript.
        confidence: Parser confidence in [0, 1].
    """

    raw_transcript: str
    intent: Intent
    confidence: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "raw_transcript": self.raw_transcript,
            "intent": _payload(self.intent),
            "confidence": self.confidence,
        }


def _payload(value: Any) -> dict[str, Any]:
    """JSON-friendly dict for an intent or edit type, tagged by `kind`."""
    data: dict[str, Any] = {"kind": value.kind}
    for item in fields(value):
        attr = getattr(value, item.name)
        if isinstance(attr, Enum):
            attr = attr.value
        elif hasattr(attr, "kind"):
            attr = _payload(attr)
        data[item.name] = attr
    return data
