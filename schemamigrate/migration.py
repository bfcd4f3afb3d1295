"""A migration ready to run against a database, with background buffering."""

from __future__ import annotations

import io
import queue
from datetime import datetime
from typing import BinaryIO, Optional

DEFAULT_BUFFER_SIZE = 100000

_EOF = object()


class _PipeReader(io.RawIOBase):
    """Reader side of a pipe fed in chunks by ``Migration.buffer``."""

    def __init__(self) -> None:
        super().__init__()
        self._chunks: "queue.SimpleQueue[object]" = queue.SimpleQueue()
        self._pending = memoryview(b"")
        self._done = False

    def readable(self) -> bool:
        return True

    def _put(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.put(chunk)

    def _finish(self) -> None:
        self._chunks.put(_EOF)

    def _fail(self, err: BaseException) -> None:
        self._chunks.put(err)

    def readinto(self, buf) -> int:
        if not self._pending:
            if self._done:
                return 0
            item = self._chunks.get()
            if item is _EOF:
                self._done = True
                return 0
            if isinstance(item, BaseException):
                self._done = True
                raise item
            self._pending = memoryview(item)
        n = min(len(buf), len(self._pending))
        buf[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n


class Migration:
    """A migration from ``version`` to ``target_version``.

    A migration without a body (a nil migration) only moves the version.
    ``target_version`` -1 means no version at all. The body is handed over
    through ``buffered_body`` once ``buffer`` runs, usually in another thread.
    """

    def __init__(
        self,
        body: Optional[BinaryIO],
        identifier: str,
        version: int,
        target_version: int,
    ) -> None:
        if version < 0:
            raise ValueError(f"version must be >= 0, got {version}")
        now = datetime.now()
        self.identifier = identifier
        self.version = version
        self.target_version = target_version
        self.body = body
        self.buffered_body: Optional[io.RawIOBase] = None
        self.buffer_size = 0
        self.scheduled = now
        self.started_buffering: Optional[datetime] = None
        self.finished_buffering: Optional[datetime] = None
        self.finished_reading: Optional[datetime] = None
        self.bytes_read = 0
        self._pipe: Optional[_PipeReader] = None

        if body is None:
            if not identifier:
                self.identifier = "<empty>"
            self.started_buffering = now
            self.finished_buffering = now
            self.finished_reading = now
            return

        self._pipe = _PipeReader()
        self.buffered_body = self._pipe
        self.buffer_size = DEFAULT_BUFFER_SIZE

    def __str__(self) -> str:
        return f"{self.identifier} [{self.version}=>{self.target_version}]"

    def __repr__(self) -> str:
        return f"Migration({self})"

    def log_string(self) -> str:
        """Describe the migration for humans, e.g. ``12/u create_users``."""
        direction = "d" if self.target_version < self.version else "u"
        return f"{self.version}/{direction} {self.identifier}"

    def buffer(self) -> None:
        """Read the body into ``buffered_body`` in chunks of ``buffer_size``.

        Errors from the body are raised here and also by reads of
        ``buffered_body``. The body is closed once fully read.
        """
        if self.body is None or self._pipe is None:
            return
        self.started_buffering = datetime.now()
        size = max(int(self.buffer_size), 1)
        total = 0
        try:
            chunk = self.body.read(size)
            self.finished_buffering = datetime.now()
            while chunk:
                self._pipe._put(bytes(chunk))
                total += len(chunk)
                chunk = self.body.read(size)
        except Exception as err:
            self._pipe._fail(err)
            raise
        self.finished_reading = datetime.now()
        self.bytes_read = total
        self._pipe._finish()
        self.body.close()