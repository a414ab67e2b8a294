from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from .errors import LockError

# Seconds to wait for a cell lock before giving up; None waits forever.
DEFAULT_TIMEOUT: Optional[float] = 10.0


class ReadWriteLock:
    """Readers/writer lock: any number of concurrent readers or one writer.

    Waiting writers block new readers so a steady stream of lookups cannot
    starve a commit. Acquisition that does not succeed within ``timeout``
    raises :class:`LockError` instead of hanging.

    The lock is not reentrant: a thread holding it must not acquire it again.
    """

    def __init__(self, name: str = "", *, timeout: Optional[float] = DEFAULT_TIMEOUT):
        self.name = name
        self.timeout = timeout
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def _wait_for(self, predicate, mode: str) -> None:
        if not self._cond.wait_for(predicate, timeout=self.timeout):
            raise LockError(
                f"Could not get {mode} lock for {self.name or 'cell'} within {self.timeout}s"
            )

    def acquire_read(self) -> None:
        with self._cond:
            self._wait_for(lambda: not self._writer and self._waiting_writers == 0, "read")
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise LockError(f"Read lock of {self.name or 'cell'} released without being held")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                self._wait_for(lambda: not self._writer and self._readers == 0, "write")
            finally:
                self._waiting_writers -= 1
                # readers parked behind this writer must re-check after a timeout
                self._cond.notify_all()
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise LockError(f"Write lock of {self.name or 'cell'} released without being held")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def locked_for_write(self) -> bool:
        return self._writer
