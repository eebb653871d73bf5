"""Image pass-through.

Images are never OCR'd here; they are handed to the downstream consumer as
data URLs.
"""

import logging

from docintake.services.payload import to_data_url
from docintake.services.signature import image_mime_type

logger = logging.getLogger(__name__)


def is_image_data_url(content: str) -> bool:
    return content.startswith("data:image/") and ";base64," in content


def image_url_for(content: str, raw_bytes: bytes | None = None) -> str | None:
    """Return a usable image data URL, or None when the upload isn't one.

    If `content` is already an image data URL it is used as-is. Otherwise, when
    the raw bytes carry a known image signature, a data URL is built from them.
    """
    if is_image_data_url(content):
        return content
    if raw_bytes is not None:
        mime = image_mime_type(raw_bytes)
        if mime:
            return to_data_url(raw_bytes, mime)
    logger.warning("Image upload is not a base64 image data URL")
    return None
