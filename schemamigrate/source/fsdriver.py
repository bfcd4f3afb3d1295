"""Source drivers that read migrations from a directory-like file tree.

A tree is any object with the ``joinpath``, ``iterdir``, ``is_dir``,
``is_file``, ``name`` and ``open`` methods of ``pathlib.Path``; for example
``pathlib.Path`` itself or ``zipfile.Path``. Plain strings and path-like
objects are accepted and turned into ``pathlib.Path``.
"""

from __future__ import annotations

import errno
import os
import pathlib
import posixpath
from typing import Any, BinaryIO

from .driver import Driver
from .migrations import DuplicateMigrationError, Migrations, ParseError, parse


def _not_exist(op: str, path: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, f"{op}: {os.strerror(errno.ENOENT)}", path)


def _as_tree(fs: Any) -> Any:
    if isinstance(fs, (str, os.PathLike)):
        return pathlib.Path(fs)
    return fs


def _descend(root: Any, path: str) -> Any:
    for part in path.split("/"):
        if part and part != ".":
            root = root.joinpath(part)
    return root


class PartialDriver(Driver):
    """A source driver over a file tree, complete except for ``open``.

    Call ``init`` before use.
    """

    def __init__(self) -> None:
        self._migrations = Migrations()
        self._fs: Any = None
        self._root: Any = None
        self._path = ""

    def init(self, fs: Any, path: str) -> None:
        """Index the migration files found directly under ``path`` in ``fs``."""
        tree = _as_tree(fs)
        root = _descend(tree, path)
        if not root.is_dir():
            if root.is_file():
                raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), path)
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)

        migrations = Migrations()
        for entry in sorted(root.iterdir(), key=lambda e: e.name):
            if entry.is_dir():
                continue
            try:
                migration = parse(entry.name)
            except ParseError:
                continue
            if not migrations.append(migration):
                raise DuplicateMigrationError(migration, entry.name)

        self._fs = tree
        self._root = root
        self._path = path
        self._migrations = migrations

    def close(self) -> None:
        """Close the file tree if it can be closed."""
        closer = getattr(self._fs, "close", None)
        if callable(closer):
            closer()

    def first(self) -> int:
        version = self._migrations.first()
        if version is None:
            raise _not_exist("first", self._path)
        return version

    def prev(self, version: int) -> int:
        result = self._migrations.prev(version)
        if result is None:
            raise _not_exist(f"prev for version {version}", self._path)
        return result

    def next(self, version: int) -> int:
        result = self._migrations.next(version)
        if result is None:
            raise _not_exist(f"next for version {version}", self._path)
        return result

    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        migration = self._migrations.up(version)
        if migration is None:
            raise _not_exist(f"read up for version {version}", self._path)
        return self._open(migration.raw), migration.identifier

    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        migration = self._migrations.down(version)
        if migration is None:
            raise _not_exist(f"read down for version {version}", self._path)
        return self._open(migration.raw), migration.identifier

    def _open(self, raw: str) -> BinaryIO:
        location = posixpath.normpath(posixpath.join(self._path, raw))
        try:
            return self._root.joinpath(raw).open("rb")
        except OSError as err:
            # Some trees raise errors without a file name; add one.
            if err.filename is None:
                raise type(err)(err.errno, err.strerror or str(err), location) from err
            raise
        except KeyError as err:
            raise FileNotFoundError(
                errno.ENOENT, f"open: {os.strerror(errno.ENOENT)}", location
            ) from err


class FsSource(PartialDriver):
    """A file-tree source that can only be built with ``new``."""

    def open(self, url: str) -> Driver:
        raise ValueError("open cannot be called on the file tree passthrough driver")


def new(fs: Any, path: str) -> FsSource:
    """Return a source reading migrations under ``path`` in the tree ``fs``."""
    driver = FsSource()
    driver.init(fs, path)
    return driver