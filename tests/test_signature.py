"""Tests for magic-byte detection."""
from docintake.services.signature import DetectedFormat, detect, image_mime_type


class TestDetect:
    def test_pdf(self):
        assert detect(b"%PDF-1.7\n...") is DetectedFormat.PDF

    def test_zip_local_header(self):
        assert detect(b"PK\x03\x04rest") is DetectedFormat.ZIP_OFFICE

    def test_bare_pk_prefix(self):
        assert detect(b"PK") is DetectedFormat.ZIP_OFFICE

    def test_images(self):
        assert detect(b"\x89PNG\r\n\x1a\n") is DetectedFormat.IMAGE
        assert detect(b"\xff\xd8\xff\xe0") is DetectedFormat.IMAGE
        assert detect(b"GIF89a") is DetectedFormat.IMAGE

    def test_unknown_is_none(self):
        assert detect(b"hello world") is None

    def test_short_or_empty_input(self):
        assert detect(b"") is None
        assert detect(b"%P") is None

    def test_never_raises_on_wrong_type(self):
        assert detect(None) is None
        assert detect("%PDF") is None

    def test_value_strings(self):
        assert DetectedFormat.ZIP_OFFICE.value == "zip-office"
        assert DetectedFormat.UNKNOWN_BINARY == "unknown-binary"


class TestImageMimeType:
    def test_png(self):
        assert image_mime_type(b"\x89PNG\r\n") == "image/png"

    def test_jpeg(self):
        assert image_mime_type(b"\xff\xd8\xff") == "image/jpeg"

    def test_gif(self):
        assert image_mime_type(b"GIF87a") == "image/gif"

    def test_not_an_image(self):
        assert image_mime_type(b"%PDF-1.4") is None
        assert image_mime_type(b"") is None
