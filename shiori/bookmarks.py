"""Bookmark and tag records with their JSON representation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass
class Tag:
    """A tag attached to bookmarks.

    ``deleted`` marks a tag for removal from a bookmark and is never serialised.
    """

    name: str = ""
    id: int = 0
    n_bookmarks: int = 0
    deleted: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of this tag."""
        return {"id": self.id, "name": self.name, "nBookmarks": self.n_bookmarks}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Tag":
        """Build a tag from a JSON mapping; missing keys take defaults."""
        return cls(
            name=str(data.get("name", "") or ""),
            id=int(data.get("id", 0) or 0),
            n_bookmarks=int(data.get("nBookmarks", 0) or 0),
        )


_BOOL_KEYS = {
    "has_content": "hasContent",
    "has_archive": "hasArchive",
    "has_ebook": "hasEbook",
    "create_archive": "create_archive",
    "create_ebook": "create_ebook",
}

_STR_KEYS = {
    "url": "url",
    "title": "title",
    "excerpt": "excerpt",
    "author": "author",
    "created_at": "createdAt",
    "modified_at": "modifiedAt",
    "html": "html",
    "image_url": "imageURL",
}


@dataclass
class Bookmark:
    """A saved bookmark.

    ``content`` holds the extracted plain text and is kept out of the JSON form.
    """

    id: int = 0
    url: str = ""
    title: str = ""
    excerpt: str = ""
    author: str = ""
    public: int = 0
    created_at: str = ""
    modified_at: str = ""
    content: str = ""
    html: str = ""
    image_url: str = ""
    has_content: bool = False
    has_archive: bool = False
    has_ebook: bool = False
    tags: list[Tag] = field(default_factory=list)
    create_archive: bool = False
    create_ebook: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of this bookmark."""
        data: dict[str, Any] = {"id": self.id, "public": self.public}
        for attr, key in _STR_KEYS.items():
            data[key] = getattr(self, attr)
        for attr, key in _BOOL_KEYS.items():
            data[key] = getattr(self, attr)
        data["tags"] = [tag.to_dict() for tag in self.tags]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Bookmark":
        """Build a bookmark from a JSON mapping; missing keys take defaults."""
        kwargs: dict[str, Any] = {
            "id": int(data.get("id", 0) or 0),
            "public": int(data.get("public", 0) or 0),
            "tags": [Tag.from_dict(item) for item in data.get("tags") or []],
        }
        for attr, key in _STR_KEYS.items():
            kwargs[attr] = str(data.get(key, "") or "")
        for attr, key in _BOOL_KEYS.items():
            kwargs[attr] = bool(data.get(key, False))
        return cls(**kwargs)