from __future__ import annotations

import base64
import binascii
import io
import re
from dataclasses import dataclass
from typing import Union

from PIL import Image, UnidentifiedImageError

from allergen_scanner.errors import ValidationError

SUPPORTED_IMAGE_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}

_DATA_URI_RE = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)


@dataclass(frozen=True)
class ImagePayload:
    """Validated image, ready to be forwarded to the vision model as base64."""
    b64: str
    mime_type: str
    width: int
    height: int
    size_bytes: int


def _mb_to_bytes(mb: int) -> int:
    return mb * 1024 * 1024


def _decode_b64(text: str) -> bytes:
    body = _DATA_URI_RE.sub("", text.strip(), count=1)
    body = "".join(body.split())
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Image data is not valid base64") from e


def decode_image_payload(image: Union[bytes, str, None], *, max_mb: int = 10) -> ImagePayload:
    """
    Validate an inbound image given as raw bytes or a base64 string
    (a data: URI prefix is accepted).

    - rejects missing/blank data
    - enforces the size limit on the decoded bytes
    - checks that Pillow can identify a supported image format

    The image itself is passed through untouched.
    """
    if image is None:
        raise ValidationError("Missing or invalid image data")

    if isinstance(image, str):
        if not image.strip():
            raise ValidationError("Missing or invalid image data")
        data = _decode_b64(image)
    else:
        data = bytes(image)

    if not data:
        raise ValidationError("Missing or invalid image data")

    if len(data) > _mb_to_bytes(max_mb):
        raise ValidationError(f"Image exceeds max size of {max_mb}MB")

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = (img.format or "").upper()
            width, height = img.size
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ValidationError("Invalid or corrupted image") from e

    mime_type = SUPPORTED_IMAGE_FORMATS.get(fmt)
    if mime_type is None:
        raise ValidationError(f"Unsupported image format: {fmt or 'unknown'}")

    return ImagePayload(
        b64=base64.b64encode(data).decode("ascii"),
        mime_type=mime_type,
        width=width,
        height=height,
        size_bytes=len(data),
    )
