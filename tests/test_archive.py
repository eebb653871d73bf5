"""Tests for the ZIP text scanner."""
import pytest

from docintake.exceptions import ArchiveError
from docintake.services.archive import read_entry, scan_archive, strip_markup
from tests.conftest import damage_entry, make_zip

DOCUMENT_XML = (
    '<?xml version="1.0"?><w:document><w:body>'
    "<w:p><w:t>The committee approved the new budget</w:t></w:p>"
    "<w:p><w:t>Tom &amp; Jerry signed off</w:t></w:p>"
    "</w:body></w:document>"
)


class TestScanArchive:
    def test_extracts_text_bearing_entries(self):
        raw = make_zip({"word/document.xml": DOCUMENT_XML})
        text = scan_archive(raw)
        assert text.startswith("--- From word/document.xml ---\n")
        assert "The committee approved the new budget" in text
        assert "Tom & Jerry signed off" in text
        assert "<w:t>" not in text

    def test_whitespace_collapsed(self):
        raw = make_zip({"notes.txt": "alpha    beta\n\n\ngamma   delta epsilon"})
        assert scan_archive(raw) == "--- From notes.txt ---\nalpha beta gamma delta epsilon"

    def test_skips_hidden_and_underscore_entries(self):
        raw = make_zip({
            "_rels/.rels": "<Relationships>relationship target listing here</Relationships>",
            "word/.hidden.xml": "<x>this text should never be emitted at all</x>",
            "word/document.xml": DOCUMENT_XML,
        })
        text = scan_archive(raw)
        assert "_rels" not in text
        assert "never be emitted" not in text
        assert "committee" in text

    def test_skips_non_text_entries(self):
        raw = make_zip({
            "media/image1.png": b"\x89PNG long enough binary payload here",
            "ppt/slides/slide1.xml": "<a:t>Welcome to the quarterly planning session</a:t>",
        })
        text = scan_archive(raw)
        assert "media/image1.png" not in text
        assert "--- From ppt/slides/slide1.xml ---" in text

    def test_short_fragments_dropped(self):
        raw = make_zip({"short.xml": "<a>tiny</a>", "word/document.xml": DOCUMENT_XML})
        text = scan_archive(raw)
        assert "short.xml" not in text

    def test_entries_in_archive_order(self):
        raw = make_zip({
            "b.txt": "second entry in the archive listing",
            "a.txt": "first entry in sorted order but not archive order",
        })
        text = scan_archive(raw)
        assert text.index("b.txt") < text.index("a.txt")

    def test_valid_archive_without_matches_returns_empty(self):
        raw = make_zip({"media/image1.png": b"\x89PNG\x00\x00", "bin/data.bin": b"\x00" * 40})
        assert scan_archive(raw) == ""

    def test_oversized_entry_skipped(self):
        raw = make_zip({"word/document.xml": DOCUMENT_XML})
        assert scan_archive(raw, max_entry_bytes=10) == ""

    def test_min_fragment_override(self):
        raw = make_zip({"a.txt": "exactly some words"})
        assert scan_archive(raw) == ""
        assert "exactly some words" in scan_archive(raw, min_fragment_chars=5)

    def test_invalid_bytes_replaced(self):
        raw = make_zip({"notes.txt": b"caf\xff broken bytes in a long sentence"})
        text = scan_archive(raw)
        assert "�" in text

    def test_not_a_zip_raises(self):
        with pytest.raises(ArchiveError):
            scan_archive(b"this is not a zip archive")

    def test_pk_header_without_archive_raises(self):
        with pytest.raises(ArchiveError):
            scan_archive(b"PK\x03\x04" + b"\x00\x01\x02\xff" * 100)

    def test_damaged_entry_skipped(self):
        raw = make_zip({
            "word/document.xml": DOCUMENT_XML,
            "docProps/app.xml": "<Properties><Company>Acme Research Laboratories</Company></Properties>",
        })
        text = scan_archive(damage_entry(raw, "word/document.xml"))
        assert text == "--- From docProps/app.xml ---\nAcme Research Laboratories"


class TestHelpers:
    def test_strip_markup(self):
        assert strip_markup("<p>a &lt;b&gt;</p>\n  <p>c</p>") == "a <b> c"

    def test_read_entry(self):
        raw = make_zip({"docProps/app.xml": "<Pages>3</Pages>"})
        assert read_entry(raw, "docProps/app.xml") == "<Pages>3</Pages>"
        assert read_entry(raw, "missing.xml") is None

    def test_read_entry_not_zip(self):
        with pytest.raises(ArchiveError):
            read_entry(b"nope", "x.xml")
