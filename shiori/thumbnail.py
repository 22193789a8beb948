"""Downloading article images and turning them into thumbnails."""

from __future__ import annotations

import io
import os
from urllib.error import HTTPError
from urllib.request import urlopen

from PIL import Image, ImageFilter, ImageOps

DEFAULT_TIMEOUT = 60.0
THUMB_WIDTH = 600
THUMB_HEIGHT = 400

_SUPPORTED_TYPES = (
    "image/jpeg",
    "image/pjpeg",
    "image/jpg",
    "image/webp",
    "image/png",
)
_BRIGHTNESS_SHIFT = 255 * 30 / 100
_BRIGHTNESS_LUT = [min(255, int(v + _BRIGHTNESS_SHIFT + 0.5)) for v in range(256)] * 3


class UnsupportedImageTypeError(ValueError):
    """Raised when a downloaded resource is not a supported image type."""

    def __init__(self) -> None:
        super().__init__("unsupported image type")


def is_supported_image_type(content_type: str) -> bool:
    """Tell whether a Content-Type names a JPEG, PNG or WebP image."""
    return any(kind in content_type for kind in _SUPPORTED_TYPES)


def _encode_jpeg(img: Image.Image) -> bytes:
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=75)
    return out.getvalue()


def make_thumbnail(image_bytes: bytes) -> bytes:
    """Return JPEG bytes of a thumbnail made from an image.

    Images at least 600x400 with a ratio above 1.3 are kept as they are.
    Others are centred, unscaled or shrunk to fit, on a blurred and
    brightened 600x400 copy of themselves. Undecodable data raises
    :class:`ValueError`.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as opened:
            opened.load()
            img = opened.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ValueError(f"failed to parse image: {exc}") from exc

    width, height = img.size
    if width >= THUMB_WIDTH and height >= THUMB_HEIGHT and width / height > 1.3:
        flat = Image.new("RGBA", img.size, (0, 0, 0, 255))
        flat.alpha_composite(img)
        return _encode_jpeg(flat.convert("RGB"))

    bg = Image.new("RGBA", img.size, (255, 255, 255, 255))
    bg.alpha_composite(img)
    bg = ImageOps.fit(
        bg.convert("RGB"),
        (THUMB_WIDTH, THUMB_HEIGHT),
        Image.Resampling.LANCZOS,
        centering=(0.5, 0.5),
    )
    bg = bg.filter(ImageFilter.GaussianBlur(150))
    bg = bg.point(_BRIGHTNESS_LUT)

    fg = img.copy()
    fg.thumbnail((THUMB_WIDTH, THUMB_HEIGHT), Image.Resampling.LANCZOS)
    offset = (
        (THUMB_WIDTH - fg.width + 1) // 2,
        (THUMB_HEIGHT - fg.height + 1) // 2,
    )
    bg.paste(fg, offset, fg)
    return _encode_jpeg(bg)


def download_book_image(url: str, dst_path: str, timeout: float = DEFAULT_TIMEOUT) -> None:
    """Download the image at ``url`` and store its thumbnail at ``dst_path``.

    Raises :class:`UnsupportedImageTypeError` for other content types,
    :class:`ValueError` for undecodable images and :class:`OSError` for
    network or file failures.
    """
    try:
        response = urlopen(url, timeout=timeout)
    except HTTPError as err:
        response = err

    with response:
        headers = response.headers
        content_type = headers.get("Content-Type", "") if headers else ""
        if not is_supported_image_type(content_type):
            raise UnsupportedImageTypeError()
        data = response.read()

    try:
        thumb = make_thumbnail(data)
    except ValueError as exc:
        raise ValueError(f"failed to parse image {url}: {exc}") from exc

    directory = os.path.dirname(dst_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(dst_path, "wb") as handle:
        handle.write(thumb)