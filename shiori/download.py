"""Fetching bookmarked pages."""

from __future__ import annotations

from typing import BinaryIO
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from shiori.urls import USER_AGENT

DEFAULT_TIMEOUT = 60.0


def download_bookmark(url: str, timeout: float = DEFAULT_TIMEOUT) -> tuple[BinaryIO, str]:
    """Fetch ``url`` and return the open response body and its content type.

    Error statuses are returned like any other response; the caller must
    close the body. Network failures raise :class:`OSError`, malformed URLs
    :class:`ValueError`.
    """
    request = Request(url, headers={"User-Agent": USER_AGENT}, method="GET")
    try:
        response = urlopen(request, timeout=timeout)
    except HTTPError as err:
        return err, err.headers.get("Content-Type", "") if err.headers else ""
    return response, response.headers.get("Content-Type", "")