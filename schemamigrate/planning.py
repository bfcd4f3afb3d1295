"""Work out which migrations take a database from one version to another.

The ``read`` functions are generators over a source driver. They yield
unbuffered Migration objects in the order they must run and raise an error
where planning cannot go on; migrations yielded before the error are valid.
The caller is responsible for buffering each yielded migration.
"""

from __future__ import annotations

import errno
import os
from typing import Callable, Iterator, Optional

from .errors import NoChangeError, ShortLimitError
from .migration import Migration
from .source.driver import Driver

StopCheck = Optional[Callable[[], bool]]


def _never() -> bool:
    return False


def new_migration(source: Driver, version: int, target_version: int) -> Migration:
    """Return the migration from ``version`` to ``target_version``.

    An up body is read when the target is not below the version, a down body
    otherwise; a missing body gives an empty migration.
    """
    reader = source.read_up if target_version >= version else source.read_down
    try:
        body, identifier = reader(version)
    except FileNotFoundError:
        return Migration(None, "", version, target_version)
    return Migration(body, identifier, version, target_version)


def version_exists(source: Driver, version: int) -> None:
    """Raise FileNotFoundError unless an up or down migration has ``version``."""
    for reader in (source.read_up, source.read_down):
        try:
            body, _ = reader(version)
        except FileNotFoundError as err:
            last = err
            continue
        body.close()
        return
    raise FileNotFoundError(
        errno.ENOENT,
        f"no migration found for version {version}: {os.strerror(errno.ENOENT)}",
    ) from last


def read(
    source: Driver, from_version: int, to_version: int, should_stop: StopCheck = None
) -> Iterator[Migration]:
    """Yield the migrations from ``from_version`` to ``to_version`` (-1 is none)."""
    stop = should_stop or _never
    if from_version >= 0:
        version_exists(source, from_version)
    if to_version >= 0:
        version_exists(source, to_version)
    if from_version == to_version:
        raise NoChangeError()

    current = from_version
    if current < to_version:
        if current == -1:
            first = source.first()
            yield new_migration(source, first, first)
            current = first
        while current < to_version:
            if stop():
                return
            following = source.next(current)
            yield new_migration(source, following, following)
            current = following
        return

    while current > to_version and current >= 0:
        if stop():
            return
        try:
            previous = source.prev(current)
        except FileNotFoundError:
            if to_version == -1:
                yield new_migration(source, current, -1)
                return
            raise
        yield new_migration(source, current, previous)
        current = previous


def read_up(
    source: Driver, from_version: int, limit: int, should_stop: StopCheck = None
) -> Iterator[Migration]:
    """Yield up to ``limit`` up migrations after ``from_version``; -1 means all."""
    stop = should_stop or _never
    if from_version >= 0:
        version_exists(source, from_version)
    if limit == 0:
        raise NoChangeError()

    current = from_version
    count = 0
    while count < limit or limit == -1:
        if stop():
            return
        if current == -1:
            first = source.first()
            yield new_migration(source, first, first)
            current = first
            count += 1
            continue
        try:
            following = source.next(current)
        except FileNotFoundError:
            if limit == -1 and count == 0:
                raise NoChangeError() from None
            if limit == -1:
                return
            if count == 0:
                raise
            raise ShortLimitError(limit - count) from None
        yield new_migration(source, following, following)
        current = following
        count += 1


def read_down(
    source: Driver, from_version: int, limit: int, should_stop: StopCheck = None
) -> Iterator[Migration]:
    """Yield up to ``limit`` down migrations from ``from_version``; -1 means all."""
    stop = should_stop or _never
    if from_version >= 0:
        version_exists(source, from_version)
    if limit == 0:
        raise NoChangeError()
    if from_version == -1 and limit == -1:
        raise NoChangeError()
    if from_version == -1 and limit > 0:
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT))

    current = from_version
    count = 0
    while count < limit or limit == -1:
        if stop():
            return
        try:
            previous = source.prev(current)
        except FileNotFoundError:
            if limit == -1 or limit - count > 0:
                first = source.first()
                yield new_migration(source, first, -1)
                count += 1
            if count < limit:
                raise ShortLimitError(limit - count) from None
            return
        yield new_migration(source, current, previous)
        current = previous
        count += 1