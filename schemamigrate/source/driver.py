"""The source driver interface and the registry of named drivers."""

from __future__ import annotations

import abc
import threading
from typing import BinaryIO
from urllib.parse import urlsplit

_lock = threading.RLock()
_drivers: dict[str, "Driver"] = {}


class Driver(abc.ABC):
    """A read-only source of migrations.

    ``first``, ``prev``, ``next``, ``read_up`` and ``read_down`` raise
    FileNotFoundError when the requested item does not exist.
    """

    @abc.abstractmethod
    def open(self, url: str) -> "Driver":
        """Return a new driver configured from ``url``."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the underlying source."""

    @abc.abstractmethod
    def first(self) -> int:
        """Return the lowest available version."""

    @abc.abstractmethod
    def prev(self, version: int) -> int:
        """Return the version before ``version``."""

    @abc.abstractmethod
    def next(self, version: int) -> int:
        """Return the version after ``version``."""

    @abc.abstractmethod
    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        """Return the up body (unread) and an identifier for ``version``."""

    @abc.abstractmethod
    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        """Return the down body (unread) and an identifier for ``version``."""

    def __enter__(self) -> "Driver":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def register(name: str, driver: Driver) -> None:
    """Register ``driver`` under the URL scheme ``name``."""
    if driver is None:
        raise ValueError("register driver is None")
    with _lock:
        if name in _drivers:
            raise ValueError(f"register called twice for driver {name}")
        _drivers[name] = driver


def open_source(url: str) -> Driver:
    """Open a source driver chosen by the scheme of ``url``."""
    scheme = urlsplit(url).scheme
    if not scheme:
        raise ValueError("source driver: invalid URL scheme")
    with _lock:
        driver = _drivers.get(scheme)
    if driver is None:
        raise ValueError(f"source driver: unknown driver '{scheme}' (forgotten import?)")
    return driver.open(url)


def list_drivers() -> list[str]:
    """Return the names of the registered drivers."""
    with _lock:
        return list(_drivers)