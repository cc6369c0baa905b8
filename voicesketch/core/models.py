"""Generation request, metadata, and artwork data contracts.

Architectural role:
    Holds the value types exchanged between the request builder, the
    orchestrator (`voicesketch.core.engine`), and the storage collaborators.

Ownership:
    - `GenerationRequest` and `GenerationMetadata` are immutable values owned by
      the generation core.
    - `Artwork` and `EditRecord` describe the persisted entity. Its lifecycle
      belongs to the artwork store; the core only creates it and appends to its
      edit history.

Serialization:
    `GenerationMetadata` is stored as an opaque JSON blob (`metadata_json`) next
    to the artwork. `Artwork.to_dict` / `Artwork.from_dict` define the JSON
    document shape used by `voicesketch.storage.artwork_store`.
"""

from __future__ import annotations

import base64
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from voicesketch.core.styles import ArtStyle


def utcnow() -> datetime:
    """Timezone-aware current time used for all artwork timestamps."""
    return datetime.now(timezone.utc)


class ImageQuality(Enum):
    STANDARD = "standard"
    HIGH = "high"
    ULTRA = "ultra"

    @property
    def dimensions(self) -> tuple[int, int]:
        return QUALITY_DIMENSIONS[self]


QUALITY_DIMENSIONS: dict[ImageQuality, tuple[int, int]] = {
    ImageQuality.STANDARD: (512, 512),
    ImageQuality.HIGH: (768, 768),
    ImageQuality.ULTRA: (1024, 1024),
}


class AIProvider(Enum):
    """Image-generation backend identifiers; value is the display name."""

    FAL_AI = "fal.ai"
    DALLE = "DALL-E"
    STABLE = "Stable Diffusion"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def keychain_key(self) -> str:
        return PROVIDER_KEYCHAIN_KEYS[self]


PROVIDER_KEYCHAIN_KEYS: dict[AIProvider, str] = {
    AIProvider.FAL_AI: "fal.ai",
    AIProvider.DALLE: "dalle",
    AIProvider.STABLE: "stable",
}


@dataclass(frozen=True)
class GenerationRequest:
    """Provider-agnostic generation request.

    `enhanced_prompt` is derived on every access and never stored, so it always
    reflects the current `prompt` and `style`.
    """

    prompt: str
    style: ArtStyle
    provider: AIProvider = AIProvider.FAL_AI
    seed: int | None = None
    quality: ImageQuality = ImageQuality.HIGH

    @property
    def enhanced_prompt(self) -> str:
        return f"{self.prompt}, {self.style.prompt_suffix}"

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.quality.dimensions


@dataclass(frozen=True)
class GenerationMetadata:
    """How an artwork was generated.

    Attributes:
        provider: Backend that produced the image.
        model: Provider model identifier.
        seed: Seed for reproducibility, when known.
        generation_time_ms: Wall-clock duration of the provider call.
        cost: Estimated cost in USD.
        parameters: Free-form extra parameters.
    """

    provider: AIProvider
    model: str
    generation_time_ms: int
    seed: int | None = None
    cost: Decimal | None = None
    parameters: dict[str, str] | None = None

    def to_json(self) -> str:
        return json.dumps({
            "provider": self.provider.value,
            "model": self.model,
            "seed": self.seed,
            "generation_time_ms": self.generation_time_ms,
            "cost": str(self.cost) if self.cost is not None else None,
            "parameters": self.parameters,
        }, sort_keys=True)

    @classmethod
    def from_json(cls, blob: str) -> "GenerationMetadata":
        data = json.loads(blob)
        cost = data.get("cost")
        return cls(
            provider=AIProvider(data["provider"]),
            model=data["model"],
            seed=data.get("seed"),
            generation_time_ms=int(data["generation_time_ms"]),
            cost=Decimal(cost) if cost is not None else None,
            parameters=data.get("parameters"),
        )


@dataclass(frozen=True)
class EditRecord:
    """One voice edit applied to an artwork, kept for undo.

    The `previous_*` fields snapshot the artwork as it was before the edit, so
    undo can restore the prompt, style, thumbnail and metadata together with
    the locator. Snapshot fields are `None` on records written before they
    existed.
    """

    voice_command: str
    previous_image_url: str | None = None
    timestamp: datetime = field(default_factory=utcnow)
    previous_prompt: str | None = None
    previous_style: ArtStyle | None = None
    previous_thumbnail_data: bytes | None = None
    previous_metadata_json: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "voice_command": self.voice_command,
            "previous_image_url": self.previous_image_url,
            "previous_prompt": self.previous_prompt,
            "previous_style": self.previous_style.value if self.previous_style else None,
            "previous_thumbnail_data": (
                base64.b64encode(self.previous_thumbnail_data).decode("ascii")
                if self.previous_thumbnail_data is not None
                else None
            ),
            "previous_metadata_json": self.previous_metadata_json,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EditRecord":
        style = data.get("previous_style")
        thumbnail = data.get("previous_thumbnail_data")
        return cls(
            voice_command=data["voice_command"],
            previous_image_url=data.get("previous_image_url"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            previous_prompt=data.get("previous_prompt"),
            previous_style=ArtStyle(style) if style else None,
            previous_thumbnail_data=base64.b64decode(thumbnail) if thumbnail else None,
            previous_metadata_json=data.get("previous_metadata_json"),
        )


@dataclass
class Artwork:
    """Generated image plus metadata and edit history, as tracked by the store."""

    prompt: str
    image_url: str
    style: ArtStyle
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=utcnow)
    modified_at: datetime = field(default_factory=utcnow)
    original_prompt: str | None = None
    edit_history: list[EditRecord] = field(default_factory=list)
    thumbnail_data: bytes | None = None
    is_favorite: bool = False
    tags: list[str] = field(default_factory=list)
    metadata_json: str | None = None

    def __post_init__(self) -> None:
        if self.original_prompt is None:
            self.original_prompt = self.prompt

    @property
    def metadata(self) -> GenerationMetadata | None:
        if not self.metadata_json:
            return None
        return GenerationMetadata.from_json(self.metadata_json)

    @metadata.setter
    def metadata(self, value: GenerationMetadata | None) -> None:
        self.metadata_json = value.to_json() if value is not None else None

    def record_edit(self, voice_command: str, new_image_url: str) -> EditRecord:
        """Append an edit and move the artwork to `new_image_url`.

        The record keeps the locator that was current before the edit, so it
        always references a locator that existed when the record was made,
        plus a snapshot of the prompt, style, thumbnail and metadata.
        """
        record = EditRecord(
            voice_command=voice_command,
            previous_image_url=self.image_url,
            previous_prompt=self.prompt,
            previous_style=self.style,
            previous_thumbnail_data=self.thumbnail_data,
            previous_metadata_json=self.metadata_json,
        )
        self.edit_history.append(record)
        self.image_url = new_image_url
        self.modified_at = record.timestamp
        return record

    def restore(self, record: EditRecord) -> None:
        """Return to the state `record` captured before its edit.

        Records without a snapshot (no `previous_prompt`) restore the locator
        only.
        """
        if record.previous_image_url:
            self.image_url = record.previous_image_url
        if record.previous_prompt is None:
            return
        self.prompt = record.previous_prompt
        if record.previous_style is not None:
            self.style = record.previous_style
        self.thumbnail_data = record.previous_thumbnail_data
        self.metadata_json = record.previous_metadata_json

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "image_url": self.image_url,
            "style": self.style.value,
            "created_at": self.created_at.isoformat(),
            "modified_at": self.modified_at.isoformat(),
            "original_prompt": self.original_prompt,
            "edit_history": [record.to_dict() for record in self.edit_history],
            "thumbnail_data": (
                base64.b64encode(self.thumbnail_data).decode("ascii")
                if self.thumbnail_data is not None
                else None
            ),
            "is_favorite": self.is_favorite,
            "tags": list(self.tags),
            "metadata_json": self.metadata_json,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Artwork":
        thumbnail = data.get("thumbnail_data")
        return cls(
            id=data["id"],
            prompt=data["prompt"],
            image_url=data["image_url"],
            style=ArtStyle(data["style"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            modified_at=datetime.fromisoformat(data["modified_at"]),
            original_prompt=data.get("original_prompt"),
            edit_history=[EditRecord.from_dict(item) for item in data.get("edit_history", [])],
            thumbnail_data=base64.b64decode(thumbnail) if thumbnail else None,
            is_favorite=bool(data.get("is_favorite", False)),
            tags=list(data.get("tags", [])),
            metadata_json=data.get("metadata_json"),
        )
