"""A JSON array on disk shared by every process that opens the same path.

Every load-modify-persist cycle runs under a thread lock plus an OS file
lock on ``<file>.lock``, so the JSON stores' conditional updates stay
atomic across threads and across separate ``pos`` processes. Writes go
to a unique temp file that is then renamed over the original.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from pos.domain.exceptions import StoreTimeoutError, UnavailableError


class JsonFile:

    def __init__(self, file_path: Path, lock_timeout: float) -> None:
        self._file_path = file_path
        self._lock_timeout = lock_timeout
        self._lock = threading.RLock()
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_lock = FileLock(str(file_path) + ".lock", timeout=lock_timeout)
        with self.locked():
            self._ensure_file()

    @property
    def path(self) -> Path:
        return self._file_path

    @contextmanager
    def locked(self):
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise self._timed_out()
        try:
            try:
                self._file_lock.acquire()
            except Timeout as exc:
                raise self._timed_out() from exc
            try:
                yield
            finally:
                self._file_lock.release()
        finally:
            self._lock.release()

    def load(self) -> list[dict]:
        try:
            return json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise UnavailableError(f"Cannot read {self._file_path}: {exc}") from exc

    def persist(self, records: list[dict]) -> None:
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                dir=self._file_path.parent,
                prefix=self._file_path.name + ".",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(json.dumps(records, indent=2) + "\n")
            os.replace(tmp_name, self._file_path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise UnavailableError(f"Cannot write {self._file_path}: {exc}") from exc

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self.persist([])

    def _timed_out(self) -> StoreTimeoutError:
        return StoreTimeoutError(
            f"Timed out after {self._lock_timeout}s waiting for {self._file_path.name}"
        )

