"""An in-memory source driver whose migration bodies are their identifiers."""

from __future__ import annotations

import errno
import io
import os
from dataclasses import dataclass, field
from typing import Any, BinaryIO

from .driver import Driver, register
from .migrations import Migrations


def _not_exist(op: str, path: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, f"{op}: {os.strerror(errno.ENOENT)}", path)


@dataclass
class StubConfig:
    """Configuration for the stub source (currently empty)."""


@dataclass
class StubSource(Driver):
    """Source driver backed by a Migrations index held in memory."""

    url: str = ""
    instance: Any = None
    migrations: Migrations = field(default_factory=Migrations)
    config: StubConfig = field(default_factory=StubConfig)

    def open(self, url: str) -> "StubSource":
        return StubSource(url=url, migrations=Migrations(), config=StubConfig())

    def close(self) -> None:
        return None

    def first(self) -> int:
        version = self.migrations.first()
        if version is None:
            raise _not_exist("first", self.url)
        return version

    def prev(self, version: int) -> int:
        result = self.migrations.prev(version)
        if result is None:
            raise _not_exist(f"prev for version {version}", self.url)
        return result

    def next(self, version: int) -> int:
        result = self.migrations.next(version)
        if result is None:
            raise _not_exist(f"next for version {version}", self.url)
        return result

    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        migration = self.migrations.up(version)
        if migration is None:
            raise _not_exist(f"read up version {version}", self.url)
        return io.BytesIO(migration.identifier.encode()), f"{version}.up.stub"

    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        migration = self.migrations.down(version)
        if migration is None:
            raise _not_exist(f"read down version {version}", self.url)
        return io.BytesIO(migration.identifier.encode()), f"{version}.down.stub"


def with_instance(instance: Any, config: StubConfig) -> StubSource:
    """Return a stub source wrapping ``instance``."""
    return StubSource(instance=instance, migrations=Migrations(), config=config)


register("stub", StubSource())