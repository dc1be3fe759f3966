"""Saved access keys, kept in a JSON file in the user's config directory."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import NamedTuple

logger = logging.getLogger(__name__)

CREDENTIALS_FILE_MODE = 0o600


class Credentials(NamedTuple):
    access_id: str
    access_key: str


def redact(value: str) -> str:
    """Mask all but the last four characters."""
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


class CredentialStore:
    """JSON object mapping ``"<endpoint>/<bucket>"`` or ``"<endpoint>"`` to ``[access_id, access_key]``."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._entries: dict[str, list[str]] = {}

    @classmethod
    def load(cls, path: Path) -> CredentialStore:
        """Read the store from ``path``.

        A missing file yields an empty store. So does an unreadable one, after
        logging why.
        """
        store = cls(path)
        if not store.path.exists():
            return store
        try:
            data = json.loads(store.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            store._entries = data
        except Exception:
            logger.exception("Failed to load saved credentials from %s; continuing without them", store.path)
        return store

    def lookup(self, endpoint: str, bucket: str) -> tuple[Credentials, str] | None:
        """Find saved credentials, preferring ones saved for this exact bucket.

        Returns:
            The credentials and the scope they were saved under (``"bucket"``
            or ``"server"``), or None.
        """
        for scope, entry_id in (("bucket", f"{endpoint}/{bucket}"), ("server", endpoint)):
            entry = self._entries.get(entry_id)
            if isinstance(entry, list) and len(entry) == 2:
                return Credentials(str(entry[0]), str(entry[1])), scope
        return None

    def add(self, endpoint: str, bucket: str, credentials: Credentials) -> None:
        pair = [credentials.access_id, credentials.access_key]
        self._entries[f"{endpoint}/{bucket}"] = pair
        self._entries[endpoint] = pair

    def save(self) -> bool:
        """Write the store to disk, readable by the owner only. Failures are logged, not raised."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Owner-only from creation; fchmod also tightens a file that already existed.
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CREDENTIALS_FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                if hasattr(os, "fchmod"):
                    os.fchmod(handle.fileno(), CREDENTIALS_FILE_MODE)
                json.dump(self._entries, handle, indent=2)
        except OSError:
            logger.exception("Failed to save credentials to %s", self.path)
            return False
        return True

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self._entries
