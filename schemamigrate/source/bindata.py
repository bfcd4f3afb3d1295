"""Source driver reading migrations from named in-memory assets."""

from __future__ import annotations

import errno
import io
import os
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable, Optional

from .driver import Driver, register
from .migrations import Migration, Migrations, ParseError, parse

AssetFunc = Callable[[str], bytes]


def _not_exist(op: str, path: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, f"{op}: {os.strerror(errno.ENOENT)}", path)


@dataclass
class AssetSource:
    """Asset names and a function returning an asset's bytes by name."""

    names: list[str]
    asset_func: AssetFunc


def resource(names: list[str], asset_func: AssetFunc) -> AssetSource:
    """Wrap asset names and a loader function into an AssetSource."""
    return AssetSource(names=list(names), asset_func=asset_func)


@dataclass
class BindataSource(Driver):
    """Source driver over an AssetSource; build it with ``with_instance``."""

    path: str = "<bindata>"
    asset_source: Optional[AssetSource] = None
    migrations: Migrations = field(default_factory=Migrations)

    def open(self, url: str) -> Driver:
        raise ValueError("bindata sources cannot be opened by URL; use with_instance")

    def close(self) -> None:
        return None

    def first(self) -> int:
        version = self.migrations.first()
        if version is None:
            raise _not_exist("first", self.path)
        return version

    def prev(self, version: int) -> int:
        result = self.migrations.prev(version)
        if result is None:
            raise _not_exist(f"prev for version {version}", self.path)
        return result

    def next(self, version: int) -> int:
        result = self.migrations.next(version)
        if result is None:
            raise _not_exist(f"next for version {version}", self.path)
        return result

    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        migration = self.migrations.up(version)
        if migration is None:
            raise _not_exist(f"read version {version}", self.path)
        return self._load(migration)

    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        migration = self.migrations.down(version)
        if migration is None:
            raise _not_exist(f"read version {version}", self.path)
        return self._load(migration)

    def _load(self, migration: Migration) -> tuple[BinaryIO, str]:
        assert self.asset_source is not None
        body = self.asset_source.asset_func(migration.raw)
        return io.BytesIO(body), migration.identifier


def with_instance(instance: Any) -> BindataSource:
    """Return a source over the migrations named in an AssetSource."""
    if not isinstance(instance, AssetSource):
        raise TypeError("expects AssetSource")
    driver = BindataSource(asset_source=instance)
    for name in instance.names:
        try:
            migration = parse(name)
        except ParseError:
            continue
        if not driver.migrations.append(migration):
            raise ValueError(f"unable to parse file {name}")
    return driver


register("bindata", BindataSource())