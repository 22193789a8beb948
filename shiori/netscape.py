"""Reading and writing bookmark files in the Netscape and Pocket HTML formats."""

from __future__ import annotations

import logging
import os
import re
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, Optional, TextIO, Union

from bs4 import BeautifulSoup

from shiori.bookmarks import Bookmark, Tag
from shiori.cli_utils import normalize_space, validate_title
from shiori.urls import InvalidURLError, remove_utm_params

_log = logging.getLogger("shiori")

DATABASE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

EXPORT_HEADER = (
    "<!DOCTYPE NETSCAPE-Bookmark-file-1>"
    '<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">'
    "<TITLE>Bookmarks</TITLE>"
    "<H1>Bookmarks</H1>"
    "<DL>"
)
EXPORT_FOOTER = "</DL>"

_INT = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

ExistsFn = Callable[[str], bool]
_Markup = Union[str, bytes]
# (raw url, title, tags, modified_at)
_Entry = tuple[str, str, list[Tag], str]


def _unix_timestamp(modified_at: str) -> int:
    try:
        parsed = datetime.strptime(modified_at, DATABASE_DATE_FORMAT)
    except ValueError:
        return int(time.time())
    return int(parsed.replace(tzinfo=timezone.utc).timestamp())


def export_bookmarks(bookmarks: Iterable[Bookmark], stream: TextIO) -> None:
    """Write bookmarks to ``stream`` as a Netscape bookmark file."""
    stream.write(EXPORT_HEADER + "\n")
    for book in bookmarks:
        stamp = _unix_timestamp(book.modified_at)
        tags = ",".join(tag.name for tag in book.tags)
        title = validate_title(book.title, book.url)
        stream.write(
            f'<DT><A HREF="{book.url}" ADD_DATE="{stamp}" '
            f'LAST_MODIFIED="{stamp}" TAGS="{tags}">{title}</A>\n'
        )
    stream.write(EXPORT_FOOTER + "\n")


def write_export_file(bookmarks: Iterable[Bookmark], path: str) -> None:
    """Export bookmarks into the file at ``path``, creating its directory.

    Raises :class:`ValueError` when there is nothing to export.
    """
    books = list(bookmarks)
    if not books:
        raise ValueError("No saved bookmarks yet")

    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)

    with open(path, "w", encoding="utf-8", newline="") as handle:
        export_bookmarks(books, handle)
        handle.flush()
        os.fsync(handle.fileno())


def _parse_int64(text: str) -> Optional[int]:
    if not _INT.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _format_timestamp(stamp: int) -> str:
    return datetime.fromtimestamp(stamp).strftime(DATABASE_DATE_FORMAT)


def _accept(entries: Iterable[_Entry], exists: Optional[ExistsFn]) -> list[Bookmark]:
    """Clean URLs and titles, dropping duplicates and already stored URLs."""
    seen: set[str] = set()
    result: list[Bookmark] = []
    for raw_url, title, tags, modified_at in entries:
        try:
            url = remove_utm_params(raw_url)
        except InvalidURLError:
            _log.error("Skip %s: URL is not valid", raw_url)
            continue

        title = validate_title(title, url)

        if url in seen:
            _log.error("Skip %s: URL already exists", url)
            continue

        if exists is not None:
            try:
                found = exists(url)
            except Exception as exc:  # the lookup is supplied by the caller
                _log.error("Skip %s: Get Bookmark fail, %s", url, exc)
                continue
            if found:
                _log.error("Skip %s: URL already exists", url)
                seen.add(url)
                continue

        seen.add(url)
        result.append(
            Bookmark(url=url, title=title, tags=tags, modified_at=modified_at)
        )
    return result


def _netscape_entries(soup: BeautifulSoup, generate_tag: bool) -> Iterator[_Entry]:
    for anchor in soup.find_all("a"):
        dt = anchor.parent
        if dt is None or dt.name != "dt":
            continue
        dl = dt.find_parent("dl") or dt.parent
        container = dl.parent if dl is not None else None
        h3 = container.find("h3") if container is not None else None

        title = anchor.get_text()
        url = anchor.get("href", "")
        str_tags = anchor.get("tags", "")

        if anchor.has_attr("last_modified"):
            date_str = anchor["last_modified"]
        else:
            date_str = anchor.get("add_date", "")

        if date_str:
            stamp = _parse_int64(date_str)
            if stamp is None:
                _log.error("Skip %s: date field is not valid: %r", url, date_str)
                continue
            try:
                modified_at = _format_timestamp(stamp)
            except (OverflowError, OSError, ValueError) as exc:
                _log.error("Skip %s: date field is not valid: %s", url, exc)
                continue
        else:
            modified_at = datetime.now().strftime(DATABASE_DATE_FORMAT)

        tags = [
            Tag(name=name)
            for name in (normalize_space(part) for part in str_tags.split(","))
            if name
        ]

        category = normalize_space(h3.get_text()) if h3 is not None else ""
        if category and generate_tag:
            tags.append(Tag(name=category))

        yield url, title, tags, modified_at


def parse_netscape(
    html: _Markup, generate_tag: bool = False, exists: Optional[ExistsFn] = None
) -> list[Bookmark]:
    """Read bookmarks from a Netscape bookmark file.

    With ``generate_tag`` the name of the enclosing folder becomes a tag.
    ``exists`` tells whether a URL is already stored; such URLs are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    return _accept(_netscape_entries(soup, generate_tag), exists)


def _pocket_entries(soup: BeautifulSoup) -> Iterator[_Entry]:
    for anchor in soup.find_all("a"):
        title = anchor.get_text()
        url = anchor.get("href", "")
        str_tags = anchor.get("tags", "")
        stamp = _parse_int64(anchor.get("time_added", "")) or 0
        try:
            modified_at = _format_timestamp(stamp)
        except (OverflowError, OSError, ValueError):
            modified_at = _format_timestamp(0)

        tags = [Tag(name=name) for name in str_tags.split(",") if name]
        yield url, title, tags, modified_at


def parse_pocket(html: _Markup, exists: Optional[ExistsFn] = None) -> list[Bookmark]:
    """Read bookmarks from a file exported by Pocket."""
    soup = BeautifulSoup(html, "html.parser")
    return _accept(_pocket_entries(soup), exists)