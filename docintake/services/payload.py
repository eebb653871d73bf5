"""Decoding of upload payloads."""

import base64
import binascii

from docintake.exceptions import IngestError


def decode_payload(content: str) -> bytes:
    """Decode a ``data:<mime>;base64,<payload>`` URL or a bare base64 string.

    Raises:
        IngestError: the payload is not valid base64.
    """
    content = content or ""
    encoded = content.split(",", 1)[1] if "," in content else content
    try:
        return base64.b64decode(encoded.strip())
    except (binascii.Error, ValueError) as e:
        raise IngestError("Invalid base64 payload", {"reason": str(e)}) from e


def to_data_url(raw_bytes: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(raw_bytes).decode('ascii')}"
