"""Artifact cache for generated image bytes.

Purpose of this abstraction:
    Store generated images on disk and keep recently used ones in a bounded
    in-memory LRU so gallery reads do not hit the filesystem (or the network)
    again.

Locators:
    `save` returns the absolute file path of the stored image as a string. The
    engine treats it as opaque.

Read semantics:
    `read` is idempotent: memory first, then disk (re-populating memory). It
    never calls a generation provider.

Thumbnails:
    `thumbnail` aspect-fits the image into the target size on a transparent
    canvas and returns PNG bytes, or `None` when the locator is missing or does
    not decode as an image.

Concurrency:
    File and image work runs through `asyncio.to_thread`. A `threading.Lock`
    guards the memory LRU.
"""

from __future__ import annotations

import asyncio
import io
import logging
import os
import tempfile
import threading
import uuid
from collections import OrderedDict
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError


logger = logging.getLogger(__name__)

DEFAULT_MEMORY_LIMIT = 50
DEFAULT_MEMORY_COST_LIMIT = 100 * 1024 * 1024
DEFAULT_THUMBNAIL_SIZE = (300, 300)


class ImageCache:

    def __init__(
        self,
        directory: str | os.PathLike[str],
        memory_limit: int = DEFAULT_MEMORY_LIMIT,
        memory_cost_limit: int = DEFAULT_MEMORY_COST_LIMIT,
    ) -> None:
        self.directory = Path(directory).resolve()
        self.directory.mkdir(parents=True, exist_ok=True)
        self.memory_limit = memory_limit
        self.memory_cost_limit = memory_cost_limit
        self._memory: OrderedDict[str, bytes] = OrderedDict()
        self._memory_cost = 0
        self._lock = threading.Lock()
        logger.info("Image cache initialized at %s", self.directory)

    # =====================================================
    # MEMORY LRU
    # =====================================================

    def _remember(self, locator: str, data: bytes) -> None:
        with self._lock:
            previous = self._memory.pop(locator, None)
            if previous is not None:
                self._memory_cost -= len(previous)
            self._memory[locator] = data
            self._memory_cost += len(data)
            while self._memory and (
                len(self._memory) > self.memory_limit
                or self._memory_cost > self.memory_cost_limit
            ):
                _, evicted = self._memory.popitem(last=False)
                self._memory_cost -= len(evicted)

    def _recall(self, locator: str) -> bytes | None:
        with self._lock:
            data = self._memory.get(locator)
            if data is not None:
                self._memory.move_to_end(locator)
            return data

    def clear_memory(self) -> None:
        with self._lock:
            self._memory.clear()
            self._memory_cost = 0
        logger.info("Memory cache cleared")

    # =====================================================
    # PUBLIC API
    # =====================================================

    async def save(self, data: bytes) -> str:
        """Persist `data` and return its locator."""
        path = self.directory / f"{uuid.uuid4().hex}.png"
        await asyncio.to_thread(self._write_atomic, path, data)
        locator = str(path)
        self._remember(locator, data)
        logger.info("Saved image %s (%d bytes)", path.name, len(data))
        return locator

    async def read(self, locator: str) -> bytes | None:
        cached = self._recall(locator)
        if cached is not None:
            logger.debug("Memory cache hit: %s", locator)
            return cached

        data = await asyncio.to_thread(self._read_file, locator)
        if data is None:
            logger.debug("Cache miss: %s", locator)
            return None

        self._remember(locator, data)
        logger.debug("Disk cache hit: %s", locator)
        return data

    async def thumbnail(
        self,
        locator: str,
        size: tuple[int, int] = DEFAULT_THUMBNAIL_SIZE,
    ) -> bytes | None:
        data = await self.read(locator)
        if data is None:
            return None
        return await asyncio.to_thread(render_thumbnail, data, size)

    async def clear(self) -> None:
        self.clear_memory()
        await asyncio.to_thread(self._clear_directory)
        logger.info("All caches cleared")

    async def total_size(self) -> int:
        return await asyncio.to_thread(self._directory_size)

    # =====================================================
    # FILE HELPERS
    # =====================================================

    def _write_atomic(self, path: Path, data: bytes) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    @staticmethod
    def _read_file(locator: str) -> bytes | None:
        path = Path(locator)
        if not path.is_file():
            return None
        return path.read_bytes()

    def _clear_directory(self) -> None:
        for path in self.directory.iterdir():
            if path.is_file():
                path.unlink()

    def _directory_size(self) -> int:
        return sum(path.stat().st_size for path in self.directory.iterdir() if path.is_file())


def render_thumbnail(data: bytes, size: tuple[int, int]) -> bytes | None:
    """Aspect-fit `data` into `size` on a transparent canvas; PNG bytes."""
    try:
        with Image.open(io.BytesIO(data)) as source:
            image = ImageOps.contain(source.convert("RGBA"), size)
    except (UnidentifiedImageError, OSError):
        logger.warning("Could not decode image for thumbnail")
        return None

    canvas = Image.new("RGBA", size, (0, 0, 0, 0))
    offset = ((size[0] - image.width) // 2, (size[1] - image.height) // 2)
    canvas.paste(image, offset)

    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG")
    return buffer.getvalue()
