"""Office document extraction (Word, Excel, PowerPoint, OpenDocument, legacy).

Open XML formats get a real parser first (python-docx, openpyxl) and fall
back to the archive scanner. PowerPoint and everything else goes straight to
the scanner.
"""

import csv
import io
import logging
import re

import openpyxl
from bs4 import BeautifulSoup
from docx import Document

from docintake.exceptions import (
    ArchiveError,
    ExtractionEmpty,
    LibraryFailure,
    UnsupportedFormatError,
)
from docintake.services.archive import read_entry, scan_archive
from docintake.services.results import ExtractionResult

logger = logging.getLogger(__name__)

WORD = "word"
EXCEL = "excel"
POWERPOINT = "powerpoint"
OTHER = "other"

WORD_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
EXCEL_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
POWERPOINT_MIME = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

OFFICE_TYPES = {
    WORD_MIME,
    EXCEL_MIME,
    POWERPOINT_MIME,
    "application/msword",
    "application/vnd.ms-excel",
    "application/vnd.ms-powerpoint",
    "application/vnd.oasis.opendocument.text",
    "application/vnd.oasis.opendocument.spreadsheet",
    "application/vnd.oasis.opendocument.presentation",
}
OFFICE_EXTENSIONS = {"docx", "doc", "xlsx", "xls", "pptx", "ppt", "odt", "ods", "odp"}

_DOCUMENT_TYPES = {
    WORD: "Word Document",
    EXCEL: "Excel Spreadsheet",
    POWERPOINT: "PowerPoint Presentation",
}

# (tag, metadata key)
_CORE_TAGS = (
    ("dc:title", "title"),
    ("dc:creator", "author"),
    ("dcterms:created", "created"),
    ("dcterms:modified", "modified"),
)
_APP_TAGS = {
    WORD: (("Pages", "page_count"), ("Words", "word_count")),
    EXCEL: (("Sheets", "sheet_count"),),
    POWERPOINT: (("Slides", "slide_count"),),
}

_WS_RE = re.compile(r"\s+")


def is_office(declared_type: str, ext: str) -> bool:
    return declared_type in OFFICE_TYPES or ext in OFFICE_EXTENSIONS


def office_kind(declared_type: str, filename: str) -> str:
    """Pick the Open XML flavour from MIME type or filename suffix."""
    declared_type = (declared_type or "").lower()
    name = (filename or "").lower()
    if "wordprocessingml" in declared_type or name.endswith(".docx"):
        return WORD
    if "spreadsheetml" in declared_type or name.endswith(".xlsx"):
        return EXCEL
    if "presentationml" in declared_type or name.endswith(".pptx"):
        return POWERPOINT
    return OTHER


# ---------------------------------------------------------------------------
# Word
# ---------------------------------------------------------------------------

def _docx_raw_text(doc) -> str:
    parts = [p.text for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append("\t".join(cells))
    return "\n".join(parts)


def _docx_markup_text(doc) -> str:
    soup = BeautifulSoup(doc.element.xml, "lxml-xml")
    return _WS_RE.sub(" ", soup.get_text(" ")).strip()


def _extract_word(raw_bytes: bytes) -> ExtractionResult:
    try:
        doc = Document(io.BytesIO(raw_bytes))
        text = _docx_raw_text(doc)
        if text.strip():
            return ExtractionResult(text=text, method="docx_raw_text", succeeded=True)

        text = _docx_markup_text(doc)
        if text:
            return ExtractionResult(text=text, method="docx_markup", succeeded=True)

        raise ExtractionEmpty("No content extracted from Word document")
    except Exception as e:
        primary_error = e
        logger.warning(f"python-docx extraction failed, trying archive scan: {e}")

    try:
        text = scan_archive(raw_bytes)
    except ArchiveError as zip_error:
        logger.error(f"Archive fallback failed for Word document: {zip_error}")
        raise LibraryFailure("python-docx", primary_error) from primary_error
    if not text:
        raise LibraryFailure("python-docx", primary_error) from primary_error

    return ExtractionResult(
        text=text,
        method="archive_scan",
        succeeded=True,
        error=str(primary_error),
        attempted=["docx_raw_text"],
    )


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------

def _sheet_to_csv(ws) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    for row in ws.iter_rows(values_only=True):
        writer.writerow(["" if cell is None else cell for cell in row])
    return buf.getvalue()


def _extract_excel(raw_bytes: bytes) -> ExtractionResult:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(raw_bytes), read_only=True, data_only=True)
        try:
            parts = [f"Excel Workbook with {len(wb.sheetnames)} sheets:\n\n"]
            for sheet_name in wb.sheetnames:
                parts.append(f"--- Sheet: {sheet_name} ---\n")
                parts.append(_sheet_to_csv(wb[sheet_name]) + "\n")
        finally:
            wb.close()
        return ExtractionResult(text="".join(parts), method="xlsx_sheets", succeeded=True)
    except Exception as e:
        primary_error = e
        logger.warning(f"openpyxl extraction failed, trying archive scan: {e}")

    try:
        text = scan_archive(raw_bytes)
    except ArchiveError as zip_error:
        logger.error(f"Archive fallback failed for Excel workbook: {zip_error}")
        raise LibraryFailure("openpyxl", primary_error) from primary_error
    if not text:
        raise ExtractionEmpty("No content extracted from Excel workbook")

    return ExtractionResult(
        text=text,
        method="archive_scan",
        succeeded=True,
        error=str(primary_error),
        attempted=["xlsx_sheets"],
    )


# ---------------------------------------------------------------------------
# PowerPoint and everything else
# ---------------------------------------------------------------------------

def _extract_powerpoint(raw_bytes: bytes) -> ExtractionResult:
    text = scan_archive(raw_bytes)
    if not text.strip():
        raise ExtractionEmpty("No content extracted from PowerPoint file")
    return ExtractionResult(
        text=f"PowerPoint Presentation Content:\n\n{text}",
        method="archive_scan",
        succeeded=True,
    )


def _extract_generic(raw_bytes: bytes, declared_type: str, filename: str) -> ExtractionResult:
    try:
        text = scan_archive(raw_bytes)
    except ArchiveError as e:
        raise UnsupportedFormatError(filename, declared_type) from e
    if not text:
        raise ExtractionEmpty("No content extracted from office document", {"filename": filename})
    return ExtractionResult(text=text, method="archive_scan", succeeded=True)


def extract_office(raw_bytes: bytes, declared_type: str, filename: str) -> ExtractionResult:
    """Extract text from an Office or OpenDocument file.

    Raises:
        LibraryFailure: Word/Excel parser and archive fallback both failed.
        ExtractionEmpty: the document parsed but held no text.
        ArchiveError: a .pptx that is not a ZIP archive.
        UnsupportedFormatError: no strategy applies to the file.
    """
    kind = office_kind(declared_type, filename)
    logger.debug(f"Extracting {filename} as {kind}")
    if kind == WORD:
        return _extract_word(raw_bytes)
    if kind == EXCEL:
        return _extract_excel(raw_bytes)
    if kind == POWERPOINT:
        return _extract_powerpoint(raw_bytes)
    return _extract_generic(raw_bytes, declared_type, filename)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

def _tag_value(xml: str, tag: str) -> str | None:
    match = re.search(rf"<{tag}[^>]*>(.*?)</{tag}>", xml, re.DOTALL)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


def extract_office_metadata(raw_bytes: bytes, declared_type: str, filename: str) -> dict[str, str]:
    """Read docProps/core.xml and docProps/app.xml.

    Absent properties are omitted, and so is ``file_type`` when no type was
    declared. On failure returns the file name and type plus an ``error``
    entry.
    """
    try:
        core_xml = read_entry(raw_bytes, "docProps/core.xml") or ""
        app_xml = read_entry(raw_bytes, "docProps/app.xml") or ""
    except Exception as e:
        logger.warning(f"Office metadata extraction failed for {filename}: {e}")
        failure = {"file_name": filename}
        if declared_type:
            failure["file_type"] = declared_type
        failure["error"] = "Failed to extract metadata"
        return failure

    metadata = {"file_name": filename}
    if declared_type:
        metadata["file_type"] = declared_type
    metadata["extraction_method"] = "zip"
    for tag, key in _CORE_TAGS:
        value = _tag_value(core_xml, tag)
        if value:
            metadata[key] = value

    kind = office_kind(declared_type, filename)
    if kind in _DOCUMENT_TYPES:
        metadata["document_type"] = _DOCUMENT_TYPES[kind]
        for tag, key in _APP_TAGS[kind]:
            value = _tag_value(app_xml, tag)
            if value:
                metadata[key] = value

    return metadata
