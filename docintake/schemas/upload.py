"""Schemas for files handed to the orchestrator."""

from pydantic import BaseModel, Field


class InputFile(BaseModel):
    """A single user upload.

    `content` is a base64 data URL (``data:<mime>;base64,<payload>``) or a
    bare base64 string. The orchestrator never mutates it.
    """

    id: str
    name: str
    declared_type: str = Field("", alias="type")  # MIME type as sent by the client
    size: int = 0  # bytes
    content: str = ""

    model_config = {"populate_by_name": True, "frozen": True}


class ImageUrl(BaseModel):
    """Image forwarded to a vision-capable consumer."""

    url: str
    name: str
