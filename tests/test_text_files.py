"""Tests for plain-text and source-code handling."""
from docintake.services.text_files import (
    code_language,
    decode_text,
    extension_key,
    extract_code_file,
    extract_text_file,
    is_code,
    is_plain_text,
)


class TestExtensionKey:
    def test_simple(self):
        assert extension_key("report.PDF") == "pdf"

    def test_last_suffix_wins(self):
        assert extension_key("archive.tar.gz") == "gz"

    def test_dotfile(self):
        assert extension_key(".gitignore") == "gitignore"
        assert extension_key("config/.env") == "env"

    def test_bare_names(self):
        assert extension_key("Dockerfile") == "dockerfile"
        assert extension_key("Makefile") == "makefile"

    def test_no_extension(self):
        assert extension_key("README") == ""
        assert extension_key("") == ""


class TestClassification:
    def test_plain_text_by_type(self):
        assert is_plain_text("application/json", "")
        assert is_plain_text("text/csv", "")

    def test_plain_text_by_extension(self):
        assert is_plain_text("", "log")
        assert not is_plain_text("", "py")

    def test_code_by_extension(self):
        assert is_code("", "py")
        assert is_code("application/octet-stream", "gitignore")

    def test_code_by_type(self):
        assert is_code("text/x-unknown", "")
        assert is_code("application/javascript", "")
        assert not is_code("application/pdf", "pdf")

    def test_language_labels(self):
        assert code_language("py") == ("Python", "python")
        assert code_language("dockerfile") == ("Dockerfile", "dockerfile")
        assert code_language("zzz") == ("Unknown", "")


class TestDecodeText:
    def test_utf8(self):
        assert decode_text("naïve ☃".encode("utf-8")) == "naïve ☃"

    def test_cp1252_fallback(self):
        assert decode_text(b"caf\xe9 \x93quoted\x94") == "café “quoted”"

    def test_latin1_last_resort(self):
        # 0x81 is undefined in cp1252
        assert decode_text(b"a\x81b") == "a\x81b"


class TestExtract:
    def test_text_file(self):
        result = extract_text_file(b"line one\nline two")
        assert result.text == "line one\nline two"
        assert result.method == "text_decode"
        assert result.succeeded

    def test_code_file(self):
        result = extract_code_file(b"print('hi')\n", "py")
        assert result.text == "print('hi')\n"
        assert result.metadata == {"language": "Python", "fence_tag": "python"}
        assert result.method == "code_decode"
