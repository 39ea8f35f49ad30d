"""Chapter image helpers: data URIs, MIME guessing, file round-trips."""

from __future__ import annotations

import base64
import binascii
import logging
import os
import re

from chapter_manager.models import ImageType

logger = logging.getLogger(__name__)

DEFAULT_MIME = "image/jpeg"

_DATA_URI_HEADER_RE = re.compile(r"^data:([^;,]+)")
_IMAGE_PREFIX_RE = re.compile(r"^data:image/[a-z]+;base64,")

_MIME_BY_EXTENSION = {
    ".png": "image/png",
    ".gif": "image/gif",
}


def mime_for_path(path: str) -> str:
    """Guess an image MIME type from its extension (JPEG unless PNG/GIF)."""
    ext = os.path.splitext(path)[1].lower()
    return _MIME_BY_EXTENSION.get(ext, DEFAULT_MIME)


def to_data_uri(data: bytes, mime: str | None = None) -> str:
    encoded = base64.b64encode(bytes(data)).decode("ascii")
    return "data:{};base64,{}".format(mime or DEFAULT_MIME, encoded)


def decode_base64(payload: str) -> bytes:
    """Decode base64 leniently: whitespace and missing padding are tolerated."""
    payload = re.sub(r"\s+", "", payload)
    payload += "=" * (-len(payload) % 4)
    try:
        return base64.b64decode(payload)
    except binascii.Error:
        logger.warning("Ignoring undecodable base64 image payload")
        return b""


def split_data_uri(value: str) -> tuple[str, bytes]:
    """Return (mime, bytes) for a data URI or a bare base64 payload."""
    mime = DEFAULT_MIME
    payload = value
    if value.startswith("data:"):
        header, _, payload = value.partition(",")
        match = _DATA_URI_HEADER_RE.match(header)
        if match:
            mime = match.group(1)
    return mime, decode_base64(payload)


def load_chapter_image(
    image: str, image_type: ImageType | str | None
) -> tuple[str, bytes] | None:
    """Resolve a chapter's image reference to (mime, bytes).

    Returns None when the reference points at a file that does not exist,
    or when the image type gives no way to load it.
    """
    if image_type == ImageType.BASE64 or image.startswith("data:"):
        return split_data_uri(image)
    if image_type == ImageType.FILE:
        if not os.path.isfile(image):
            logger.warning("Chapter image not found, skipping: %s", image)
            return None
        with open(image, "rb") as f:
            return mime_for_path(image), f.read()
    logger.debug("Chapter image of type %s is not embeddable", image_type)
    return None


def image_to_data_uri(image_path: str) -> str:
    """Read an image file and return it as a data URI."""
    with open(image_path, "rb") as f:
        data = f.read()
    return to_data_uri(data, mime_for_path(image_path))


def save_data_uri(data_uri: str, output_path: str) -> str:
    """Write the bytes of an image data URI (or bare base64) to a file."""
    payload = _IMAGE_PREFIX_RE.sub("", data_uri)
    with open(output_path, "wb") as f:
        f.write(decode_base64(payload))
    return output_path
