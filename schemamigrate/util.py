"""Small helpers shared by the migration runner and drivers."""

from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


class MultiError(Exception):
    """Several errors reported as one; None entries are dropped."""

    def __init__(self, *errors: Optional[BaseException]) -> None:
        self.errors = [e for e in errors if e is not None]
        super().__init__(str(self))

    def __str__(self) -> str:
        return " and ".join(m for m in (str(e) for e in self.errors) if m)


def filter_custom_query(url: str) -> str:
    """Return ``url`` without query parameters whose names start with ``x-``.

    The remaining parameters are re-encoded sorted by name.
    """
    parts = urlsplit(url)
    grouped: dict[str, list[str]] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if not key.startswith("x-"):
            grouped.setdefault(key, []).append(value)
    query = urlencode([(key, value) for key in sorted(grouped) for value in grouped[key]])
    return urlunsplit(parts._replace(query=query))