"""Tests for section rendering."""
from docintake.services.formatter import (
    format_code_section,
    format_notice,
    format_section,
    format_size,
)
from docintake.services.results import ExtractionResult


class TestFormatSize:
    def test_kib_one_decimal(self):
        assert format_size(12595) == "12.3 KB"
        assert format_size(1024) == "1.0 KB"

    def test_zero(self):
        assert format_size(0) == "0.0 KB"


class TestFormatSection:
    def test_text_only(self):
        result = ExtractionResult(text="hello")
        assert format_section("File", "a.txt", 2048, result) == "--- File: a.txt (2.0 KB) ---\nhello\n\n\n"

    def test_with_structure_and_metadata(self):
        result = ExtractionResult(
            text="body",
            structure="--- Document Outline ---\n• Intro\n",
            metadata={"title": "Report", "page_count": "2"},
        )
        section = format_section("PDF Document", "r.pdf", 0, result)
        assert section.startswith("--- PDF Document: r.pdf (0.0 KB) ---\nbody")
        assert "\n\n--- Document Structure ---\n--- Document Outline ---\n• Intro\n" in section
        assert "--- Metadata ---\ntitle: Report\npage_count: 2" in section
        assert section.endswith("\n\n\n")


class TestFormatCodeSection:
    def test_fenced_with_tag(self):
        section = format_code_section("main.py", 1024, "Python", "python", "print(1)")
        assert section == "Code file: main.py (Python, 1.0 KB)\n```python\nprint(1)\n```\n\n\n"

    def test_fence_lengthened_when_code_contains_fence(self):
        code = "doc = '''\n```\nexample\n```\n'''\n"
        section = format_code_section("gen.py", 10, "Python", "python", code)
        assert "\n````python\n" in section
        assert section.rstrip("\n").endswith("````")

    def test_unknown_language(self):
        section = format_code_section("x.weird", 10, "Unknown", "", "stuff")
        assert section.startswith("Code file: x.weird (Unknown, 0.0 KB)\n```\nstuff\n```")


class TestFormatNotice:
    def test_same_shape(self):
        notice = format_notice("Binary File", "blob.bin", 512, "[Binary file: blob.bin]")
        assert notice == "--- Binary File: blob.bin (0.5 KB) ---\n[Binary file: blob.bin]\n\n\n"
