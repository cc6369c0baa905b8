"""Artwork store backed by a single JSON document.

Purpose of this abstraction:
    Durable storage for `Artwork` entities with a unit-of-work shape: `insert`
    stages a new artwork, `save` commits every staged and loaded artwork to disk
    in one atomic replace of the document file.

Interaction with the engine:
    `voicesketch.core.engine` calls `insert` then `save` once per successful
    generation, and `save` after edits. Any failure inside `save` is raised as
    `SaveFailed`; staged artworks stay staged so a later `save` can retry.

Concurrency:
    A `threading.Lock` serializes staging and commits. The engine adds no
    locking of its own.

External dependencies:
    Standard library only: `json`, `os`, `tempfile`, `threading`, `logging`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

from voicesketch.core.errors import SaveFailed
from voicesketch.core.models import Artwork


logger = logging.getLogger(__name__)

DOCUMENT_VERSION = 1


class ArtworkStore(Protocol):
    """Persistence collaborator consumed by the engine."""

    def insert(self, artwork: Artwork) -> None:
        ...

    def save(self) -> None:
        ...

    def get(self, artwork_id: str) -> Artwork | None:
        ...

    def delete(self, artwork_id: str) -> None:
        ...


class JsonArtworkStore:

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._artworks: dict[str, Artwork] = {}
        self._pending: dict[str, Artwork] = {}
        self._deleted: set[str] = set()
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                document = json.load(handle)
        except (OSError, json.JSONDecodeError):
            logger.exception("Failed to load artwork store from %s", self.path)
            raise

        for item in document.get("artworks", []):
            artwork = Artwork.from_dict(item)
            self._artworks[artwork.id] = artwork

    def insert(self, artwork: Artwork) -> None:
        with self._lock:
            self._pending[artwork.id] = artwork
            self._deleted.discard(artwork.id)

    def get(self, artwork_id: str) -> Artwork | None:
        with self._lock:
            if artwork_id in self._pending:
                return self._pending[artwork_id]
            return self._artworks.get(artwork_id)

    def delete(self, artwork_id: str) -> None:
        """Stage removal of an artwork; takes effect on the next `save`."""
        with self._lock:
            self._pending.pop(artwork_id, None)
            if artwork_id in self._artworks:
                self._deleted.add(artwork_id)

    def all(self) -> list[Artwork]:
        """Committed and staged artworks, newest first."""
        with self._lock:
            merged = {**self._artworks, **self._pending}
            for artwork_id in self._deleted:
                merged.pop(artwork_id, None)
        return sorted(merged.values(), key=lambda artwork: artwork.created_at, reverse=True)

    def save(self) -> None:
        with self._lock:
            merged = {**self._artworks, **self._pending}
            for artwork_id in self._deleted:
                merged.pop(artwork_id, None)

            document = {
                "version": DOCUMENT_VERSION,
                "artworks": [artwork.to_dict() for artwork in merged.values()],
            }

            try:
                self._write_atomic(document)
            except (OSError, TypeError, ValueError) as exc:
                logger.exception("Failed to save artwork store to %s", self.path)
                raise SaveFailed(str(exc)) from exc

            self._artworks = merged
            self._pending.clear()
            self._deleted.clear()

        logger.info("Artwork store saved (%d artworks)", len(merged))

    def _write_atomic(self, document: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
