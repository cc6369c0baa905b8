"""File-backed secret store for provider credentials.

Storage layout:
    One file per key id under the configured directory. Key ids are sanitized to
    a safe filename (`fal.ai` -> `fal.ai.key`, `../x` -> `___x.key`). Files are
    written with mode 0600.

Scope:
    Only get/set/delete. Credential precedence (stored vs environment) lives in
    `voicesketch.image.provider_config.resolve_api_key`.

Edge cases:
    - Missing or empty file -> `get` returns `None`.
    - Deleting a missing key is a no-op.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path


logger = logging.getLogger(__name__)


class KeyStore:

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = Path(directory)

    def _path(self, key_id: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key_id).replace("..", "__")
        if not safe:
            raise ValueError("key_id must not be empty")
        return self.directory / f"{safe}.key"

    def get(self, key_id: str) -> str | None:
        path = self._path(key_id)
        if not path.exists():
            return None
        value = path.read_text(encoding="utf-8").strip()
        return value or None

    def set(self, key_id: str, secret: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key_id)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(secret.strip())
        logger.info("Stored credential for %s", key_id)

    def delete(self, key_id: str) -> None:
        path = self._path(key_id)
        if path.exists():
            path.unlink()
            logger.info("Deleted credential for %s", key_id)
