import pytest

from schemamigrate.errors import (
    DirtyError,
    InvalidVersionError,
    LockedError,
    LockTimeoutError,
    MigrateError,
    NilVersionError,
    NoChangeError,
    ShortLimitError,
)


@pytest.mark.parametrize(
    "error, message",
    [
        (NoChangeError(), "no change"),
        (NilVersionError(), "no migration"),
        (InvalidVersionError(), "version must be >= -1"),
        (LockedError(), "database locked"),
        (LockTimeoutError(), "timeout: can't acquire database lock"),
    ],
)
def test_default_messages(error, message):
    assert str(error) == message
    assert isinstance(error, MigrateError)


def test_short_limit_message_and_value():
    err = ShortLimitError(1)
    assert str(err) == "limit 1 short"
    assert err.short == 1


def test_short_limit_equality():
    assert ShortLimitError(2) == ShortLimitError(2)
    assert not (ShortLimitError(2) == ShortLimitError(3))
    assert hash(ShortLimitError(4)) == hash(ShortLimitError(4))


def test_dirty_message_and_version():
    err = DirtyError(3)
    assert str(err) == "Dirty database version 3. Fix and force version."
    assert err.version == 3
    assert err == DirtyError(3)


def test_builtin_bases():
    timeout = LockTimeoutError()
    assert isinstance(timeout, TimeoutError)
    assert str(timeout) == "timeout: can't acquire database lock"
    invalid = InvalidVersionError()
    assert isinstance(invalid, ValueError)
    assert str(invalid) == "version must be >= -1"