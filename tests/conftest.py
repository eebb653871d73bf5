"""Builders for real document buffers used across the test suite."""

import base64
import io
import logging
import struct
import zipfile

import fitz
import openpyxl
import pytest
from docx import Document

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def data_url(raw: bytes, mime_type: str = "application/octet-stream") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(raw).decode('ascii')}"


def make_pdf(pages=("Hello world", ""), title="Report", author="", toc=None) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    metadata = {"title": title}
    if author:
        metadata["author"] = author
    doc.set_metadata(metadata)
    if toc:
        doc.set_toc(toc)
    data = doc.tobytes()
    doc.close()
    return data


def make_docx(paragraphs=("Quarterly revenue grew strongly",), table=None) -> bytes:
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table:
        t = doc.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                t.cell(r, c).text = value
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def make_xlsx(sheets: dict) -> bytes:
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def make_zip(entries: dict) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            zf.writestr(name, content)
    return buf.getvalue()


def damage_entry(raw: bytes, name: str) -> bytes:
    """Overwrite the compressed bytes of one ZIP member with 0xFF."""
    with zipfile.ZipFile(io.BytesIO(raw)) as zf:
        info = zf.getinfo(name)
    offset = info.header_offset
    name_len, extra_len = struct.unpack("<HH", raw[offset + 26:offset + 30])
    start = offset + 30 + name_len + extra_len
    end = start + info.compress_size
    return raw[:start] + b"\xff" * info.compress_size + raw[end:]


@pytest.fixture
def report_pdf() -> bytes:
    return make_pdf()


@pytest.fixture
def corrupted_docx() -> bytes:
    """A valid ZIP whose word/document.xml is truncated mid-element."""
    return make_zip({
        "[Content_Types].xml": "<Types></Types>",
        "word/document.xml": (
            "<w:document><w:body><w:p><w:r><w:t>"
            "Annual safety inspection findings summary"
        ),
        "docProps/app.xml": (
            "<Properties><Application>Microsoft Office Word</Application>"
            "<Company>Acme Research Laboratories</Company></Properties>"
        ),
    })


@pytest.fixture
def restore_logging():
    """Undo configure_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    pypdf_level = logging.getLogger("pypdf").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("pypdf").setLevel(pypdf_level)
