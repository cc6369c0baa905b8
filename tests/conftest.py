"""Shared fakes for engine, retry and adapter tests."""

from __future__ import annotations

import io
from decimal import Decimal

import pytest
from PIL import Image

from voicesketch.core.engine import ArtworkOrchestrator
from voicesketch.core.models import Artwork, GenerationRequest, ImageQuality
from voicesketch.core.errors import SaveFailed
from voicesketch.image.retry import RetryPolicy


def png_bytes(size: tuple[int, int] = (64, 32), color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeClient:
    """Scripted generation client.

    Each entry in `outcomes` is consumed by one `generate` call: an exception
    instance is raised, bytes are returned. Once the script is exhausted the
    last entry repeats.
    """

    def __init__(self, outcomes=None, available: bool = True) -> None:
        self.outcomes = list(outcomes) if outcomes is not None else [png_bytes()]
        self.available = available
        self.requests: list[GenerationRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def is_available(self) -> bool:
        return self.available

    def estimated_cost(self, quality: ImageQuality) -> Decimal:
        return Decimal("0.002")

    async def generate(self, request: GenerationRequest) -> bytes:
        self.requests.append(request)
        index = min(len(self.requests), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeCache:

    def __init__(self) -> None:
        self.saved: list[bytes] = []
        self.thumbnails: list[tuple[str, tuple[int, int]]] = []

    async def save(self, data: bytes) -> str:
        self.saved.append(data)
        return f"cache://{len(self.saved)}"

    async def thumbnail(self, locator: str, size: tuple[int, int]) -> bytes | None:
        self.thumbnails.append((locator, size))
        return b"thumb"


class FakeStore:

    def __init__(self, fail_on_save: bool = False) -> None:
        self.fail_on_save = fail_on_save
        self.inserted: list[Artwork] = []
        self.deleted: list[str] = []
        self.saves = 0

    def insert(self, artwork: Artwork) -> None:
        self.inserted.append(artwork)

    def save(self) -> None:
        if self.fail_on_save:
            raise SaveFailed("disk full")
        self.saves += 1

    def get(self, artwork_id: str) -> Artwork | None:
        return next((a for a in self.inserted if a.id == artwork_id), None)

    def delete(self, artwork_id: str) -> None:
        self.deleted.append(artwork_id)

    def all(self) -> list[Artwork]:
        return [a for a in self.inserted if a.id not in self.deleted]


class RecordingSleep:
    """Stands in for `asyncio.sleep`; records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def fake_cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_orchestrator(fake_cache, fake_store, recording_sleep):
    def build(client=None, store=None, **kwargs) -> ArtworkOrchestrator:
        return ArtworkOrchestrator(
            client=client or FakeClient(),
            cache=fake_cache,
            store=store or fake_store,
            retry_policy=RetryPolicy(max_attempts=3, backoff_base=2.0),
            sleep=recording_sleep,
            **kwargs,
        )

    return build
