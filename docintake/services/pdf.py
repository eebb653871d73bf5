"""PDF extraction.

Three independent passes, each allowed to fail on its own:

1. Metadata via pypdf (page count, document info dictionary)
2. Page text via PyMuPDF, first PDF_MAX_TEXT_PAGES pages
3. Structure: the outline if there is one, otherwise a per-page summary

A PDF whose text layer is empty (scanned pages, vector-only drawings) still
produces a header built from its metadata so the consumer knows what it is.
"""

import base64
import io
import logging

import fitz  # PyMuPDF
from pypdf import PdfReader

from docintake.config import settings
from docintake.services.results import ExtractionResult

logger = logging.getLogger(__name__)

TOTAL_FAILURE_TEXT = (
    "Error: Unable to extract text from this PDF file. "
    "The AI will analyze it visually instead."
)
STRUCTURE_FAILURE_TEXT = "Could not analyze document structure"
METADATA_FAILURE = {"error": "Failed to extract metadata"}

_HEADER_FIELDS = (
    ("title", "Title"),
    ("author", "Author"),
    ("subject", "Subject"),
    ("keywords", "Keywords"),
    ("created", "Created"),
    ("modified", "Modified"),
)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

def _info_date(info, attr: str) -> str:
    try:
        value = getattr(info, attr)
    except Exception:
        # pypdf raises on malformed date strings
        return ""
    return value.isoformat() if value else ""


def extract_pdf_metadata(raw_bytes: bytes) -> dict[str, str]:
    """Read page count and the document info dictionary.

    Absent properties are omitted. On any failure returns
    ``{"error": "Failed to extract metadata"}``.
    """
    try:
        reader = PdfReader(io.BytesIO(raw_bytes))
        metadata = {"page_count": str(len(reader.pages))}
        info = reader.metadata
        if info:
            values = {
                "title": info.title,
                "author": info.author,
                "subject": info.subject,
                "keywords": info.get("/Keywords"),
                "created": _info_date(info, "creation_date"),
                "modified": _info_date(info, "modification_date"),
            }
            for key, value in values.items():
                if value:
                    metadata[key] = str(value).strip()
        return metadata
    except Exception as e:
        logger.warning(f"PDF metadata extraction failed: {e}")
        return dict(METADATA_FAILURE)


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def _page_words(page) -> str:
    words = page.get_text("words")
    return " ".join(w[4] for w in words)


def _header(page_count: int, metadata: dict[str, str]) -> str:
    lines = [f"PDF Document with {page_count} pages.\n\n"]
    for key, label in _HEADER_FIELDS:
        if metadata.get(key):
            lines.append(f"{label}: {metadata[key]}\n")
    lines.append("\n")
    return "".join(lines)


def _degraded_text(page_count: int, metadata: dict[str, str]) -> str:
    parts = [
        "Content:\n",
        f"This PDF has {page_count} pages. The text content could not be fully extracted, ",
        "but the AI will analyze the document visually.\n\n",
    ]
    if metadata.get("title"):
        parts.append(f'This document is titled "{metadata["title"]}". ')
    if metadata.get("author"):
        parts.append(f"It was authored by {metadata['author']}. ")
    if metadata.get("subject"):
        parts.append(f"The subject is: {metadata['subject']}. ")
    if metadata.get("keywords"):
        parts.append(f"Keywords: {metadata['keywords']}. ")
    return "".join(parts)


def _page_text(doc, max_pages: int) -> tuple[str, bool]:
    """Render the Content block. Returns (text, any page had words)."""
    parts = ["Content:\n"]
    found_text = False
    pages_shown = min(max_pages, doc.page_count)
    for i in range(pages_shown):
        words = _page_words(doc[i])
        if words.strip():
            found_text = True
        parts.append(f"\n--- Page {i + 1} ---\n{words}\n")
    if doc.page_count > pages_shown:
        parts.append(f"\n[{doc.page_count - pages_shown} more pages not shown]\n")
    return "".join(parts), found_text


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------

def _outline(toc: list) -> str:
    lines = ["--- Document Outline ---"]
    for level, title, _page in toc:
        if level == 1:
            lines.append(f"• {title}")
        elif level == 2:
            lines.append(f"  - {title}")
    return "\n".join(lines) + "\n"


def _leading_lines(page, limit: int = 3) -> list[str]:
    items = []
    for block in page.get_text("blocks"):
        if block[6] != 0:  # image block
            continue
        for line in block[4].splitlines():
            if line.strip():
                items.append(line.strip())
            if len(items) >= limit:
                return items
    return items


def _structure_summary(doc, max_pages: int) -> str:
    lines = ["--- Document Structure Summary ---"]
    pages_shown = min(max_pages, doc.page_count)
    for i in range(pages_shown):
        page = doc[i]
        rect = page.rect
        items = _leading_lines(page)
        summary = " | ".join(items) if items else "No text content"
        lines.append(f"Page {i + 1} ({rect.width:.0f}x{rect.height:.0f}): {summary}")
    if doc.page_count > pages_shown:
        lines.append(f"... and {doc.page_count - pages_shown} more pages")
    return "\n".join(lines) + "\n"


def extract_pdf_structure(doc, max_pages: int | None = None) -> str:
    if max_pages is None:
        max_pages = settings.PDF_MAX_STRUCTURE_PAGES
    try:
        toc = doc.get_toc()
        if toc:
            return _outline(toc)
        return _structure_summary(doc, max_pages)
    except Exception as e:
        logger.warning(f"PDF structure analysis failed: {e}")
        return STRUCTURE_FAILURE_TEXT


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def extract_pdf(
    raw_bytes: bytes,
    max_text_pages: int | None = None,
    max_structure_pages: int | None = None,
) -> ExtractionResult:
    """Extract text, structure and metadata from a PDF.

    `succeeded` is True only when at least one page yielded text. Otherwise
    the returned text is the degraded, metadata-only rendition.
    """
    if max_text_pages is None:
        max_text_pages = settings.PDF_MAX_TEXT_PAGES

    metadata = extract_pdf_metadata(raw_bytes)
    meta_ok = "error" not in metadata

    try:
        doc = fitz.open(stream=raw_bytes, filetype="pdf")
    except Exception as e:
        logger.warning(f"PyMuPDF could not open PDF: {e}")
        if not meta_ok:
            return ExtractionResult(
                text=TOTAL_FAILURE_TEXT,
                structure=STRUCTURE_FAILURE_TEXT,
                metadata=metadata,
                method="pdf_failed",
                error=str(e),
            )
        page_count = int(metadata["page_count"])
        return ExtractionResult(
            text=_header(page_count, metadata) + _degraded_text(page_count, metadata),
            structure=STRUCTURE_FAILURE_TEXT,
            metadata=metadata,
            method="pdf_metadata_only",
            error=str(e),
        )

    with doc:
        if not meta_ok and doc.page_count == 0:
            # MuPDF "repaired" something that was never a PDF
            return ExtractionResult(
                text=TOTAL_FAILURE_TEXT,
                structure=STRUCTURE_FAILURE_TEXT,
                metadata=metadata,
                method="pdf_failed",
                error="No pages found",
            )
        page_count = int(metadata["page_count"]) if meta_ok else doc.page_count
        header = _header(page_count, metadata)
        structure = extract_pdf_structure(doc, max_structure_pages)
        try:
            body, found_text = _page_text(doc, max_text_pages)
        except Exception as e:
            logger.warning(f"PDF page text extraction failed: {e}")
            return ExtractionResult(
                text=header + _degraded_text(page_count, metadata),
                structure=structure,
                metadata=metadata,
                method="pdf_metadata_only",
                error=str(e),
            )

    if not found_text:
        logger.info(f"PDF has no text layer ({page_count} pages)")
        return ExtractionResult(
            text=header + body,
            structure=structure,
            metadata=metadata,
            method="pymupdf_text",
            error="No extractable text in PDF pages",
        )

    return ExtractionResult(
        text=header + body,
        structure=structure,
        metadata=metadata,
        method="pymupdf_text",
        succeeded=True,
    )


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------

def _png_data_url(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


def _placeholder_png(filename: str) -> bytes:
    doc = fitz.open()
    try:
        page = doc.new_page(width=800, height=1000)
        page.draw_rect(page.rect, color=None, fill=(0.94, 0.97, 1.0))
        page.insert_text((80, 420), "PDF DOCUMENT", fontsize=36)
        page.insert_text((80, 480), filename, fontsize=18)
        page.insert_text((80, 530), "This PDF will be analyzed visually", fontsize=16)
        return page.get_pixmap().tobytes("png")
    finally:
        doc.close()


def render_pdf_preview(raw_bytes: bytes, filename: str, dpi: int | None = None) -> str | None:
    """Render page 1 to a PNG data URL.

    Falls back to a synthesized placeholder page when the PDF can't be
    rendered; returns None only if that fails too.
    """
    if dpi is None:
        dpi = settings.PDF_PREVIEW_DPI
    try:
        with fitz.open(stream=raw_bytes, filetype="pdf") as doc:
            if doc.page_count > 0:
                return _png_data_url(doc[0].get_pixmap(dpi=dpi).tobytes("png"))
    except Exception as e:
        logger.warning(f"PDF preview render failed for {filename}: {e}")

    try:
        return _png_data_url(_placeholder_png(filename))
    except Exception as e:
        logger.error(f"PDF placeholder render failed for {filename}: {e}")
        return None
