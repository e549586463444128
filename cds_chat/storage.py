"""LocalStorage: a JSON-file key/value store for small client-side state."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import TYPE_CHECKING

from cds_chat.config import settings

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class LocalStorage:
    """String key/value pairs persisted in a single JSON document.

    Values are opaque strings; callers encode their own payloads. A missing
    or unreadable file behaves like an empty store.

    All methods are synchronous. Each write rewrites the whole file through
    a temp file + ``os.replace`` so a crash never leaves a half-written
    document behind.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or settings.storage_path

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError:
            logger.exception("Could not read storage file %s", self._path)
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Storage file %s is corrupt, treating as empty", self._path)
            return {}

        if not isinstance(data, dict):
            logger.warning("Storage file %s is not a JSON object, treating as empty", self._path)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            os.unlink(tmp_name)
            raise

    def get_item(self, key: str) -> str | None:
        """Return the stored value for *key*, or None."""
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)
        logger.debug("Stored %s (%d chars)", key, len(value))

    def remove_item(self, key: str) -> bool:
        """Delete *key*. Returns True if it existed."""
        data = self._load()
        if key not in data:
            return False
        del data[key]
        self._save(data)
        return True

    def keys(self) -> list[str]:
        return sorted(self._load())
