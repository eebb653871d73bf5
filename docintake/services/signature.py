"""File-type detection from magic bytes.

Declared MIME types and filename extensions are supplied by the client and
are frequently wrong or generic. The leading bytes of the payload tell us the
real container format for the handful of formats we care about.
"""

from enum import Enum


class DetectedFormat(str, Enum):
    PDF = "pdf"
    ZIP_OFFICE = "zip-office"
    TEXT = "text"
    CODE = "code"
    IMAGE = "image"
    UNKNOWN_BINARY = "unknown-binary"


# (prefix, format, mime) checked in order; JPEG and bare "PK" need only 2 bytes
_SIGNATURES: list[tuple[bytes, DetectedFormat, str]] = [
    (b"%PDF", DetectedFormat.PDF, "application/pdf"),
    (b"PK\x03\x04", DetectedFormat.ZIP_OFFICE, "application/zip"),
    (b"PK", DetectedFormat.ZIP_OFFICE, "application/zip"),
    (b"\x89PNG", DetectedFormat.IMAGE, "image/png"),
    (b"\xff\xd8", DetectedFormat.IMAGE, "image/jpeg"),
    (b"GIF8", DetectedFormat.IMAGE, "image/gif"),
]


def _match(raw_bytes) -> tuple[DetectedFormat, str] | None:
    if not isinstance(raw_bytes, (bytes, bytearray, memoryview)):
        return None
    head = bytes(raw_bytes[:4])
    for prefix, fmt, mime in _SIGNATURES:
        if head.startswith(prefix):
            return fmt, mime
    return None


def detect(raw_bytes: bytes) -> DetectedFormat | None:
    """Classify the container format from the first 4 bytes.

    Returns None when the signature is not recognised (or the buffer is too
    short); callers then fall back to declared type or extension.
    """
    match = _match(raw_bytes)
    return match[0] if match else None


def image_mime_type(raw_bytes: bytes) -> str | None:
    """MIME type for a recognised image signature, else None."""
    match = _match(raw_bytes)
    if match and match[0] is DetectedFormat.IMAGE:
        return match[1]
    return None
