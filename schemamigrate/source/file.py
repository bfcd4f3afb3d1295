"""Source driver reading migrations from a local directory (``file://``)."""

from __future__ import annotations

import os
import pathlib
from urllib.parse import unquote, urlsplit

from .driver import register
from .fsdriver import PartialDriver


def parse_url(url: str) -> str:
    """Return the absolute directory named by a ``file:`` URL.

    Host and path are joined, so ``file://./dir`` and ``file://dir`` are
    relative to the working directory; an empty path means the working
    directory itself.
    """
    parts = urlsplit(url)
    host = parts.netloc.rpartition("@")[2]
    path = host + unquote(parts.path)
    if not path:
        return os.getcwd()
    if not path.startswith("/"):
        return os.path.abspath(path)
    return path


class FileSource(PartialDriver):
    """Migrations stored as files in one directory."""

    def __init__(self, url: str = "", path: str = "") -> None:
        super().__init__()
        self.url = url
        self.path = path

    def open(self, url: str) -> "FileSource":
        directory = parse_url(url)
        source = FileSource(url=url, path=directory)
        source.init(pathlib.Path(directory), ".")
        return source


register("file", FileSource())