"""Checking that bookmarked pages can still be reached."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Optional
from urllib.error import HTTPError
from urllib.request import urlopen

from shiori.bookmarks import Bookmark

DEFAULT_TIMEOUT = 60.0
DEFAULT_WORKERS = 10

# Called with (position, total, message, failed) as each check finishes.
MessageFn = Callable[[int, int, str, bool], None]


def _reach(url: str, timeout: float) -> Optional[str]:
    """Return ``None`` when the URL answers, else a description of the failure."""
    try:
        with urlopen(url, timeout=timeout):
            pass
    except HTTPError as err:
        err.close()
        return None
    except (OSError, ValueError) as err:
        return str(err)
    return None


def check_bookmarks(
    bookmarks: Iterable[Bookmark],
    timeout: float = DEFAULT_TIMEOUT,
    workers: int = DEFAULT_WORKERS,
    on_message: Optional[MessageFn] = None,
) -> list[int]:
    """Request every bookmark's URL and return the sorted IDs of those unreachable.

    Any HTTP response, whatever its status, counts as reachable.
    """
    if workers < 1:
        raise ValueError("workers must be at least 1")

    books = list(bookmarks)
    total = len(books)
    unreachable: list[int] = []

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(_reach, book.url, timeout): book for book in books}
        for position, future in enumerate(as_completed(futures), start=1):
            book = futures[future]
            error = future.result()
            if error is None:
                message, failed = f"Reached {book.url}", False
            else:
                unreachable.append(book.id)
                message, failed = f"failed to reach {book.url}: {error}", True
            if on_message is not None:
                on_message(position, total, message, failed)

    return sorted(unreachable)