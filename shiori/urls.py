"""URL clean-up helpers."""

from __future__ import annotations

import re
from typing import Iterable, Mapping, Optional, Union
from urllib.parse import quote, quote_plus, unquote_to_bytes, urlsplit

USER_AGENT = "Shiori/2.0.0"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_UNRESERVED = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
)
_HOST_CHARS = _UNRESERVED | frozenset("!$&'()*+,;=:[]<>\"%")
_USERINFO_CHARS = _UNRESERVED | frozenset("!$&'()*+,;=:%@")
_PATH_KEPT = _UNRESERVED | frozenset("!$&'()*+,;=:@[]%/")
_FRAGMENT_KEPT = _PATH_KEPT | frozenset("?")

_Text = Union[str, bytes]


class InvalidURLError(ValueError):
    """Raised when a string is not an absolute URL with a host."""

    def __init__(self, url: str) -> None:
        super().__init__("URL is not valid")
        self.url = url


def _to_bytes(value: _Text) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def _ascii_in(text: str, allowed: frozenset) -> bool:
    return all(ch in allowed or ord(ch) >= 0x80 for ch in text)


def _reescape(text: str, kept: frozenset, safe: str) -> str:
    """Keep text that is already validly escaped, otherwise escape it afresh."""
    if all(ch in kept for ch in text):
        return text
    return quote(unquote_to_bytes(text), safe=safe)


def _unescape_query(text: str) -> bytes:
    if _BAD_ESCAPE.search(text):
        raise ValueError(text)
    return unquote_to_bytes(text.replace("+", " "))


def _parse_query(raw: str) -> dict[bytes, list[bytes]]:
    values: dict[bytes, list[bytes]] = {}
    for part in raw.split("&"):
        if not part or ";" in part:
            continue
        key, _, value = part.partition("=")
        try:
            decoded_key = _unescape_query(key)
            decoded_value = _unescape_query(value)
        except ValueError:
            continue
        values.setdefault(decoded_key, []).append(decoded_value)
    return values


def query_encode_without_empty_values(
    values: Optional[Mapping[_Text, Iterable[_Text]]],
) -> str:
    """Encode query values sorted by key, writing no ``=`` for empty values."""
    if values is None:
        return ""
    pairs = sorted((_to_bytes(key), list(vals)) for key, vals in values.items())
    parts = []
    for key, vals in pairs:
        escaped_key = quote_plus(key, safe="")
        for value in vals:
            value_bytes = _to_bytes(value)
            if value_bytes:
                parts.append(f"{escaped_key}={quote_plus(value_bytes, safe='')}")
            else:
                parts.append(escaped_key)
    return "&".join(parts)


def _split(url: str):
    if not url or url[0].isspace():
        raise InvalidURLError(url)
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in url):
        raise InvalidURLError(url)
    try:
        parts = urlsplit(url)
        port_ok = parts.port is None or parts.port >= 0
    except ValueError as exc:
        raise InvalidURLError(url) from exc
    if not port_ok or not parts.scheme or not parts.hostname:
        raise InvalidURLError(url)

    userinfo, at, host = parts.netloc.rpartition("@")
    if at and not _ascii_in(userinfo, _USERINFO_CHARS):
        raise InvalidURLError(url)
    if not _ascii_in(host, _HOST_CHARS):
        raise InvalidURLError(url)
    for piece in (host, parts.path, parts.fragment):
        if _BAD_ESCAPE.search(piece):
            raise InvalidURLError(url)
    return parts


def remove_utm_params(url: str) -> str:
    """Return ``url`` without ``utm_*`` query parameters.

    Remaining parameters are re-encoded sorted by name. Raises
    :class:`InvalidURLError` when the URL lacks a scheme or host.
    """
    parts = _split(url)
    force_query = parts.query == "" and "?" in url.partition("#")[0]

    values = {
        key: vals
        for key, vals in _parse_query(parts.query).items()
        if not key.startswith(b"utm_")
    }
    query = query_encode_without_empty_values(values)

    path = _reescape(parts.path, _PATH_KEPT, "$&+,/:;=@")
    result = f"{parts.scheme}://{parts.netloc}{path}"
    if query or force_query:
        result += f"?{query}"
    if parts.fragment:
        result += "#" + _reescape(parts.fragment, _FRAGMENT_KEPT, "$&+,/:;=?@!()*")
    return result