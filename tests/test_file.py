import os

import pytest

from schemamigrate.source.driver import open_source
from schemamigrate.source.file import FileSource, parse_url
from schemamigrate.source.migrations import DuplicateMigrationError

MIGRATIONS = {
    "1_foobar.up.sql": "1 up",
    "1_foobar.down.sql": "1 down",
    "3_foobar.up.sql": "3 up",
    "4_foobar.up.sql": "4 up",
    "4_foobar.down.sql": "4 down",
    "5_foobar.down.sql": "5 down",
    "7_foobar.up.sql": "7 up",
    "7_foobar.down.sql": "7 down",
}

PREV = {3: 1, 4: 3, 5: 4, 7: 5}
NEXT = {1: 3, 3: 4, 4: 5, 5: 7}
UP = {1, 3, 4, 7}
DOWN = {1, 4, 5, 7}


def check_source(d):
    assert d.first() == 1
    for version in range(10):
        if version in PREV:
            assert d.prev(version) == PREV[version]
        else:
            with pytest.raises(FileNotFoundError):
                d.prev(version)
        if version in NEXT:
            assert d.next(version) == NEXT[version]
        else:
            with pytest.raises(FileNotFoundError):
                d.next(version)
    for version in range(9):
        if version in UP:
            body, identifier = d.read_up(version)
            with body:
                assert body.read() == f"{version} up".encode()
            assert identifier == "foobar"
        else:
            with pytest.raises(FileNotFoundError):
                d.read_up(version)
        if version in DOWN:
            body, identifier = d.read_down(version)
            with body:
                assert body.read() == f"{version} down".encode()
            assert identifier == "foobar"
        else:
            with pytest.raises(FileNotFoundError):
                d.read_down(version)


def write(directory, name, body=""):
    (directory / name).write_text(body)


def test_conformance(tmp_path):
    for name, body in MIGRATIONS.items():
        write(tmp_path, name, body)
    check_source(FileSource().open("file://" + str(tmp_path)))


def test_open_absolute(tmp_path):
    write(tmp_path, "1_foobar.up.sql")
    write(tmp_path, "1_foobar.down.sql")
    d = FileSource().open("file://" + str(tmp_path))
    assert d.path == str(tmp_path)
    assert d.first() == 1


def test_open_with_relative_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "foo").mkdir()
    write(tmp_path / "foo", "1_foobar.up.sql")
    assert FileSource().open("file://foo").first() == 1
    assert FileSource().open("file://./foo").first() == 1


def test_open_defaults_to_current_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    d = FileSource().open("file://")
    assert d.path == os.getcwd()


def test_open_with_duplicate_version(tmp_path):
    write(tmp_path, "1_foo.up.sql")
    write(tmp_path, "1_bar.up.sql")
    with pytest.raises(DuplicateMigrationError):
        FileSource().open("file://" + str(tmp_path))


def test_open_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        FileSource().open("file://" + str(tmp_path / "missing"))


def test_close_and_url(tmp_path):
    url = "file://" + str(tmp_path)
    d = FileSource().open(url)
    assert d.url == url
    assert d.close() is None


def test_registered_under_file_scheme(tmp_path):
    write(tmp_path, "2_x.up.sql", "2 up")
    d = open_source("file://" + str(tmp_path))
    assert isinstance(d, FileSource)
    assert d.first() == 2


def test_parse_url_absolute():
    assert parse_url("file:///srv/migrations") == "/srv/migrations"


def test_parse_url_unescapes():
    assert parse_url("file:///srv/my%20migrations") == "/srv/my migrations"


def test_parse_url_relative(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert parse_url("file://foo") == os.path.join(os.getcwd(), "foo")
    assert parse_url("file://./foo") == os.path.join(os.getcwd(), "foo")