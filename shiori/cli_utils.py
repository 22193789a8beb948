"""Helpers shared by the command-line commands."""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Callable, Collection, Iterable, Optional, TextIO, TypeVar, Union

from shiori.bookmarks import Bookmark
from shiori.urls import InvalidURLError, remove_utm_params

_INDEX = "96"
_SYMBOL = "95"
_TITLE = "92;1"
_URL = "93"
_EXCERPT = "97"
_TAG = "94"

_Cfg = TypeVar("_Cfg")


class InvalidIndexError(ValueError):
    """Raised when a bookmark index or range cannot be parsed."""

    def __init__(self) -> None:
        super().__init__("index is not valid")


def normalize_space(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim the ends."""
    return " ".join(text.split())


def is_url_valid(url: str) -> bool:
    """Tell whether ``url`` is absolute and names a host."""
    try:
        remove_utm_params(url)
    except InvalidURLError:
        return False
    return True


def _atoi(text: str) -> int:
    digits = text[1:] if text[:1] in ("+", "-") else text
    if not digits or not all("0" <= ch <= "9" for ch in digits):
        raise InvalidIndexError()
    return int(text)


def parse_str_indices(indices: Iterable[str]) -> list[int]:
    """Turn arguments such as ``5`` or ``1-3`` into a list of indices."""
    result: list[int] = []
    for item in indices:
        if "-" not in item:
            index = _atoi(item)
            if index < 1:
                raise InvalidIndexError()
            result.append(index)
            continue

        parts = item.split("-")
        if len(parts) != 2:
            raise InvalidIndexError()
        low, high = _atoi(parts[0]), _atoi(parts[1])
        if low < 1 or low > high:
            raise InvalidIndexError()
        result.extend(range(low, high + 1))
    return result


def _is_surrogate(ch: str) -> bool:
    return 0xD800 <= ord(ch) <= 0xDFFF


def validate_title(title: Union[str, bytes], fallback: str) -> str:
    """Normalise a title, dropping invalid UTF-8; use ``fallback`` if empty."""
    if isinstance(title, bytes):
        title = title.decode("utf-8", "surrogateescape")
    title = normalize_space(title)
    if not title:
        return fallback
    if not any(_is_surrogate(ch) for ch in title):
        return title

    cleaned = "".join(
        ch for ch in title if not _is_surrogate(ch) and ch != "\ufffd"
    ).strip()
    return cleaned or fallback


def open_browser(url: str) -> None:
    """Open ``url`` with the platform's default handler.

    Raises :class:`OSError` or :class:`subprocess.CalledProcessError` on failure.
    """
    if sys.platform == "darwin":
        args = ["open"]
    elif sys.platform.startswith("win"):
        args = ["cmd", "/c", "start"]
    else:
        args = ["xdg-open"]
    subprocess.run([*args, url], check=True)


def get_terminal_width() -> int:
    """Return the width of the terminal on standard input, or 0."""
    try:
        return os.get_terminal_size(sys.stdin.fileno()).columns
    except (OSError, ValueError, AttributeError):
        return 0


def _painter(stream: TextIO) -> Callable[[str, str], str]:
    isatty = getattr(stream, "isatty", None)
    if callable(isatty) and isatty() and "NO_COLOR" not in os.environ:
        return lambda text, code: f"\x1b[{code}m{text}\x1b[0m"
    return lambda text, code: text


def print_bookmarks(
    bookmarks: Iterable[Bookmark], stream: Optional[TextIO] = None
) -> None:
    """Write a readable listing of bookmarks, coloured on a terminal."""
    out = stream if stream is not None else sys.stdout
    paint = _painter(out)

    for bookmark in bookmarks:
        index = f"{bookmark.id}. "
        space = " " * len(index)

        out.write(paint(index, _INDEX) + paint(bookmark.title, _TITLE) + "\n")
        out.write(paint(space + "> ", _SYMBOL) + paint(bookmark.url, _URL) + "\n")

        if bookmark.excerpt:
            out.write(
                paint(space + "+ ", _SYMBOL) + paint(bookmark.excerpt, _EXCERPT) + "\n"
            )

        if bookmark.tags:
            names = ", ".join(tag.name for tag in bookmark.tags)
            out.write(paint(space + "# ", _SYMBOL) + paint(names, _TAG) + "\n")

        out.write("\n")


def set_if_flag_changed(
    flag_name: str,
    changed_flags: Collection[str],
    cfg: _Cfg,
    fn: Callable[[_Cfg], None],
) -> None:
    """Apply ``fn`` to ``cfg`` only when ``flag_name`` was set explicitly."""
    if flag_name in changed_flags:
        fn(cfg)