"""Migration file records, an ordered index of them, and file-name parsing."""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

_MAX_VERSION = 2**64 - 1

# Matches names such as ``123_name.up.ext`` and ``123_name.down.ext``.
_PATTERN = re.compile(r"([0-9]+)_(.*)\.(down|up)\.(.*)")


class Direction(str, Enum):
    """Direction of a migration file."""

    DOWN = "down"
    UP = "up"


@dataclass(frozen=True)
class Migration:
    """A single migration file as known to a source."""

    version: int
    identifier: str = ""
    direction: Direction = Direction.UP
    raw: str = ""


class ParseError(ValueError):
    """Raised when a file name is not a migration file name."""

    def __init__(self, message: str = "no match") -> None:
        super().__init__(message)


class DuplicateMigrationError(Exception):
    """Raised when two files describe the same version and direction."""

    def __init__(self, migration: Migration, name: str) -> None:
        self.migration = migration
        self.name = name
        super().__init__(f"duplicate migration file: {name}")


class Migrations:
    """Migrations kept in version order, at most one per version and direction."""

    def __init__(self) -> None:
        self._index: list[int] = []
        self._migrations: dict[int, dict[Direction, Migration]] = {}

    def append(self, migration: Optional[Migration]) -> bool:
        """Add a migration; return False if it is None or a duplicate."""
        if migration is None:
            return False
        by_direction = self._migrations.get(migration.version)
        if by_direction is None:
            by_direction = {}
            self._migrations[migration.version] = by_direction
            bisect.insort(self._index, migration.version)
        if migration.direction in by_direction:
            return False
        by_direction[migration.direction] = migration
        return True

    def first(self) -> Optional[int]:
        """Return the lowest version, or None when empty."""
        return self._index[0] if self._index else None

    def prev(self, version: int) -> Optional[int]:
        """Return the version before ``version``, or None."""
        pos = self._find_pos(version)
        if pos >= 1:
            return self._index[pos - 1]
        return None

    def next(self, version: int) -> Optional[int]:
        """Return the version after ``version``, or None."""
        pos = self._find_pos(version)
        if pos >= 0 and pos + 1 < len(self._index):
            return self._index[pos + 1]
        return None

    def up(self, version: int) -> Optional[Migration]:
        """Return the up migration for ``version``, or None."""
        return self._migrations.get(version, {}).get(Direction.UP)

    def down(self, version: int) -> Optional[Migration]:
        """Return the down migration for ``version``, or None."""
        return self._migrations.get(version, {}).get(Direction.DOWN)

    def _find_pos(self, version: int) -> int:
        pos = bisect.bisect_left(self._index, version)
        if pos < len(self._index) and self._index[pos] == version:
            return pos
        return -1


def parse(raw: str) -> Migration:
    """Parse a migration file name into a Migration."""
    match = _PATTERN.fullmatch(raw)
    if match is None:
        raise ParseError()
    version = int(match.group(1))
    if version > _MAX_VERSION:
        raise ParseError(f"version out of range: {match.group(1)}")
    return Migration(
        version=version,
        identifier=match.group(2),
        direction=Direction(match.group(3)),
        raw=raw,
    )