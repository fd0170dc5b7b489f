"""
Image uploads: format sniffing and conversion of formats the platform
does not accept.
"""

from __future__ import annotations

import io
import logging
from typing import Callable, Iterable, Optional

from PIL import Image, UnidentifiedImageError

from .transport import UploadFile

logger = logging.getLogger(__name__)

ImageConverter = Callable[[bytes], bytes]

# First byte of each accepted format.
_SIGNATURES = {
    0x89: "png",
    0xFF: "jpeg",
    0x47: "gif",
    0x49: "tiff",
    0x4D: "tiff",
}

_MIME_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "tiff": "image/tiff",
}

_EXTENSIONS = {"png": "png", "jpeg": "jpg", "gif": "gif", "tiff": "tiff"}


def detect_image_format(data: bytes) -> Optional[str]:
    if not data:
        return None
    return _SIGNATURES.get(data[0])


def unsupported_to_jpeg(data: bytes) -> bytes:
    """Re-encode unrecognized formats as JPEG; keep the input if that fails."""
    if detect_image_format(data) is not None:
        return data
    try:
        with Image.open(io.BytesIO(data)) as image:
            out = io.BytesIO()
            image.convert("RGB").save(out, format="JPEG", quality=100)
    except (UnidentifiedImageError, OSError) as exc:
        logger.warning("could not convert image to JPEG: %s", exc)
        return data
    return out.getvalue()


def apply_converters(data: bytes, converters: Iterable[ImageConverter]) -> bytes:
    for convert in converters:
        data = convert(data)
    return data


def image_upload(
    data: bytes,
    converters: Iterable[ImageConverter] = (unsupported_to_jpeg,),
    field: str = "image",
) -> UploadFile:
    data = apply_converters(data, converters)
    fmt = detect_image_format(data) or "jpeg"
    return UploadFile(
        field=field,
        filename=f"image.{_EXTENSIONS[fmt]}",
        content_type=_MIME_TYPES[fmt],
        data=data,
    )
