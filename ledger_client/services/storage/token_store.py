"""
Token Storage Backends

FileTokenStorage keeps the session in a small JSON file so it survives
restarts, the way a browser keeps it in local storage. Writes go through
a temporary file in the same directory and an atomic rename, so a crash
never leaves half a session behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog

from ledger_client.services.storage.interface import (
    CorruptSessionError,
    StorageError,
    TokenStorageInterface,
)


logger = structlog.get_logger(__name__)


class InMemoryTokenStorage(TokenStorageInterface):
    """Token storage that lives as long as the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._tokens: dict[str, str] = dict(initial or {})

    def load(self) -> dict[str, str]:
        return dict(self._tokens)

    def save(self, tokens: dict[str, str]) -> None:
        self._tokens = dict(tokens)

    def clear(self) -> None:
        self._tokens = {}


class FileTokenStorage(TokenStorageInterface):
    """
    Token storage backed by a JSON file.

    A missing file is an empty session. A file that cannot be decoded is
    logged and also treated as empty; the next write replaces it.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, str]:
        try:
            return self._read()
        except CorruptSessionError as e:
            logger.warning("session_file_unreadable", path=str(self._path), error=str(e))
            return {}

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not read session file {self._path}") from e

        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as e:
            raise CorruptSessionError(f"Invalid JSON in {self._path}") from e

        if not isinstance(data, dict):
            raise CorruptSessionError(f"Expected a JSON object in {self._path}")

        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def save(self, tokens: dict[str, str]) -> None:
        self._atomic_write(json.dumps(tokens))

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not remove session file {self._path}") from e

    def _atomic_write(self, content: str) -> None:
        """Write to a temp file next to the target and rename it into place."""
        directory = self._path.parent
        temp_name: Optional[str] = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                prefix=self._path.name + "-",
                suffix=".tmp",
                dir=directory,
                delete=False,
            ) as tf:
                temp_name = tf.name
                tf.write(content)
                tf.flush()
                os.fsync(tf.fileno())

            # Tokens are credentials: owner-only
            os.chmod(temp_name, 0o600)
            os.replace(temp_name, self._path)
        except OSError as e:
            if temp_name and os.path.exists(temp_name):
                try:
                    os.unlink(temp_name)
                except OSError:
                    logger.exception("session_temp_cleanup_failed", temp_file=temp_name)
            raise StorageError(f"Could not write session file {self._path}") from e

        logger.debug("session_written", path=str(self._path))
