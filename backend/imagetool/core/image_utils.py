"""Image file naming helpers."""

from __future__ import annotations

import re
import uuid
from urllib.parse import unquote, urlsplit

IMAGE_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|bmp|tiff|svg|webp)$", re.IGNORECASE)


def get_image_basename(url_or_path: str | None) -> str:
    """Extract the image file name from a URL or path.

    Query strings and fragments are ignored and the name never contains a
    path separator. Returns an empty string when the last path segment does
    not look like an image file.

    Example:
        >>> get_image_basename("https://x.blob.core.windows.net/img-abc.png?st=1")
        'img-abc.png'
    """
    if not url_or_path:
        return ""

    # Encoded separators (%2F, %5C) split like literal ones
    path = unquote(urlsplit(url_or_path).path)
    basename = re.split(r"[/\\]", path)[-1]
    if IMAGE_EXTENSION_RE.search(basename):
        return basename
    return ""


def new_image_name(extension: str = "png") -> str:
    """Random file name used when the source URL carries none."""
    return f"image_{uuid.uuid4()}.{extension}"
