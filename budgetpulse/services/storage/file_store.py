"""
File-Backed Key-Value Store

DESIGN DECISION: One file per key, under a single data directory.
This keeps each collection's JSON readable (and diffable) on its own, and
lets a write replace exactly one key.

Writes go to a temporary file in the same directory, are fsynced, then
moved over the target with os.replace. A reader therefore sees either the
previous file or the complete new one, never a partial write.

TRADEOFFS:
- No locking: one process owns the data directory at a time
- Transient failures are retried a few times, a full disk is not
"""

import contextlib
import errno
import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budgetpulse.services.storage.interface import (
    KeyValueStore,
    QuotaExceededError,
    StorageError,
    StoreUnavailableError,
)


_NO_SPACE_ERRNOS = {
    code
    for code in (getattr(errno, "ENOSPC", None), getattr(errno, "EDQUOT", None))
    if code is not None
}


def _translate_os_error(error: OSError, key: str, operation: str) -> StorageError:
    """Map an OSError to the storage exception callers handle."""
    if error.errno in _NO_SPACE_ERRNOS:
        return QuotaExceededError(f"No space left to {operation} '{key}': {error}")
    return StoreUnavailableError(f"Failed to {operation} '{key}': {error}")


class FileKeyValueStore(KeyValueStore):
    """
    Key-value store that keeps each key in <data_dir>/<key>.json.

    The directory is created on first write.
    """

    def __init__(self, data_dir: Path, write_attempts: int = 3):
        self._data_dir = Path(data_dir)
        self._write_attempts = write_attempts

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            # Undecodable bytes surface later as a JSON error, i.e. corruption
            return path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise _translate_os_error(e, key, "read") from e

    def set_item(self, key: str, value: str) -> None:
        for attempt in Retrying(
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
            retry=retry_if_exception_type(StoreUnavailableError),
            reraise=True,
        ):
            with attempt:
                self._write_atomically(key, value)

    def _write_atomically(self, key: str, value: str) -> None:
        tmp_path: Optional[str] = None
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._data_dir,
                prefix=f".{key}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path_for(key))
            tmp_path = None
        except OSError as e:
            raise _translate_os_error(e, key, "write") from e
        finally:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)

    def remove_item(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise _translate_os_error(e, key, "remove") from e
