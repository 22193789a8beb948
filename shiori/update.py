"""Applying user-submitted changes to stored bookmarks."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from shiori.bookmarks import Bookmark, Tag
from shiori.cli_utils import normalize_space, validate_title
from shiori.urls import remove_utm_params


def split_tag_flags(tags: Iterable[str]) -> tuple[list[str], list[str]]:
    """Split tag arguments into tags to add and tags to remove.

    Names are lower-cased and trimmed; a leading ``-`` marks a tag for removal.
    Each list keeps first-seen order and holds no duplicates.
    """
    added: dict[str, None] = {}
    deleted: dict[str, None] = {}
    for tag in tags:
        name = tag.lower().strip()
        if name.startswith("-"):
            deleted[name[1:]] = None
        else:
            added[name] = None
    return list(added), list(deleted)


def apply_updates(
    bookmark: Bookmark,
    title: str = "",
    excerpt: str = "",
    url: str = "",
    added_tags: Iterable[str] = (),
    deleted_tags: Iterable[str] = (),
) -> Bookmark:
    """Return a copy of ``bookmark`` with the given changes applied.

    Empty ``title``, ``excerpt`` or ``url`` leave the field as it is. Existing
    tags named in ``deleted_tags`` are marked deleted; tags in ``added_tags``
    that the bookmark lacks are appended.
    """
    deleted = set(deleted_tags)
    pending = dict.fromkeys(added_tags)

    new_url = url or bookmark.url
    new_title = validate_title(title or bookmark.title, new_url)
    new_excerpt = excerpt or bookmark.excerpt

    new_tags: list[Tag] = []
    for tag in bookmark.tags:
        new_tags.append(replace(tag, deleted=True) if tag.name in deleted else replace(tag))
        pending.pop(tag.name, None)
    new_tags.extend(Tag(name=name) for name in pending)

    return replace(
        bookmark,
        url=new_url,
        title=new_title,
        excerpt=new_excerpt,
        tags=new_tags,
    )


def update_bookmarks(
    bookmarks: Iterable[Bookmark],
    title: str = "",
    excerpt: str = "",
    url: str = "",
    tags: Iterable[str] = (),
) -> list[Bookmark]:
    """Apply user-submitted values to every bookmark and return the results.

    A new ``url`` is cleaned of tracking parameters and may only be given for
    a single bookmark; otherwise :class:`ValueError` is raised. An invalid URL
    raises :class:`~shiori.urls.InvalidURLError`.
    """
    books = list(bookmarks)
    title = validate_title(title, "")
    excerpt = normalize_space(excerpt)

    if url:
        url = remove_utm_params(url)
        if len(books) != 1:
            raise ValueError("Update only accepts one index while using --url flag")

    added, deleted = split_tag_flags(tags)
    return [
        apply_updates(book, title, excerpt, url, added, deleted) for book in books
    ]