from urllib.parse import parse_qs, urlsplit

from schemamigrate.util import MultiError, filter_custom_query


def test_filter_custom_query():
    result = filter_custom_query("foo://host?a=b&x-custom=foo&c=d&ok=y")
    query = parse_qs(urlsplit(result).query)
    assert "x-custom" not in query
    assert query["ok"] == ["y"]
    assert result == "foo://host?a=b&c=d&ok=y"


def test_filter_custom_query_keeps_short_keys_and_repeats():
    result = filter_custom_query("db://h/p?x=1&x-a=2&b=3&b=4")
    assert result == "db://h/p?b=3&b=4&x=1"


def test_filter_custom_query_without_query():
    assert filter_custom_query("db://host/path") == "db://host/path"


def test_multi_error_drops_none_and_joins():
    err = MultiError(ValueError("a"), None, ValueError(""), ValueError("b"))
    assert len(err.errors) == 3
    assert str(err) == "a and b"


def test_multi_error_empty():
    assert str(MultiError(None)) == ""
    assert MultiError().errors == []