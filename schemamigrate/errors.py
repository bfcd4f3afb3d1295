"""Errors raised while planning and running migrations."""

from __future__ import annotations


class MigrateError(Exception):
    """Base class for errors raised by the migration runner."""


class NoChangeError(MigrateError):
    """Nothing to do: the database is already at the requested version."""

    def __init__(self, message: str = "no change") -> None:
        super().__init__(message)


class NilVersionError(MigrateError):
    """No migration has been applied to the database yet."""

    def __init__(self, message: str = "no migration") -> None:
        super().__init__(message)


class InvalidVersionError(MigrateError, ValueError):
    """A version below -1 was requested."""

    def __init__(self, message: str = "version must be >= -1") -> None:
        super().__init__(message)


class LockedError(MigrateError):
    """The database is already locked by this runner."""

    def __init__(self, message: str = "database locked") -> None:
        super().__init__(message)


class LockTimeoutError(MigrateError, TimeoutError):
    """The database lock could not be acquired in time."""

    def __init__(self, message: str = "timeout: can't acquire database lock") -> None:
        super().__init__(message)


class ShortLimitError(MigrateError):
    """The source ran out of migrations ``short`` steps before the limit."""

    def __init__(self, short: int) -> None:
        self.short = short
        super().__init__(f"limit {short} short")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ShortLimitError):
            return NotImplemented
        return self.short == other.short

    def __hash__(self) -> int:
        return hash((ShortLimitError, self.short))


class DirtyError(MigrateError):
    """The database was left dirty at ``version`` by a failed migration."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"Dirty database version {version}. Fix and force version.")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DirtyError):
            return NotImplemented
        return self.version == other.version

    def __hash__(self) -> int:
        return hash((DirtyError, self.version))