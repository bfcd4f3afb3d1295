import pytest

from schemamigrate.source.migrations import (
    Direction,
    DuplicateMigrationError,
    Migration,
    Migrations,
    ParseError,
    parse,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("1_foobar.up.sql", Migration(1, "foobar", Direction.UP, "1_foobar.up.sql")),
        ("1_foobar.down.sql", Migration(1, "foobar", Direction.DOWN, "1_foobar.down.sql")),
        ("1_f-o_ob+ar.up.sql", Migration(1, "f-o_ob+ar", Direction.UP, "1_f-o_ob+ar.up.sql")),
        (
            "1485385885_foobar.up.sql",
            Migration(1485385885, "foobar", Direction.UP, "1485385885_foobar.up.sql"),
        ),
        (
            "20170412214116_date_foobar.up.sql",
            Migration(20170412214116, "date_foobar", Direction.UP, "20170412214116_date_foobar.up.sql"),
        ),
    ],
)
def test_parse_valid(name, expected):
    assert parse(name) == expected


@pytest.mark.parametrize(
    "name",
    ["-1_foobar.up.sql", "foobar.up.sql", "1.up.sql", "1_foobar.sql", "1_foobar.up", "1_foobar.down"],
)
def test_parse_invalid(name):
    with pytest.raises(ParseError):
        parse(name)


def test_parse_error_message():
    with pytest.raises(ParseError, match="no match"):
        parse("foobar.up.sql")


def test_parse_version_overflow():
    with pytest.raises(ParseError):
        parse("99999999999999999999999_foo.up.sql")


def _three():
    ms = Migrations()
    for v in (3, 1, 2):
        assert ms.append(Migration(v, direction=Direction.UP))
    return ms


def test_find_position_via_prev_next():
    ms = _three()
    assert ms.next(0) is None
    assert ms.prev(0) is None
    assert ms.next(1) == 2
    assert ms.prev(1) is None
    assert ms.prev(3) == 2
    assert ms.next(3) is None


def test_first():
    assert Migrations().first() is None
    assert _three().first() == 1


def test_append_rejects_duplicates_and_none():
    ms = Migrations()
    assert ms.append(None) is False
    assert ms.append(Migration(1, "a", Direction.UP)) is True
    assert ms.append(Migration(1, "b", Direction.UP)) is False
    assert ms.append(Migration(1, "c", Direction.DOWN)) is True
    assert ms.up(1).identifier == "a"
    assert ms.down(1).identifier == "c"


def test_up_and_down_missing():
    ms = Migrations()
    ms.append(Migration(5, "x", Direction.DOWN))
    assert ms.up(5) is None
    assert ms.down(5).identifier == "x"
    assert ms.down(6) is None


def test_duplicate_migration_error_message():
    m = parse("1_foo.up.sql")
    err = DuplicateMigrationError(m, "1_foo.up.sql")
    assert str(err) == "duplicate migration file: 1_foo.up.sql"
    assert err.migration == m