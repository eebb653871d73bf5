"""Batch orchestration: classify each upload, run its extractor, collect sections.

Files are handled one at a time in input order. The blocking extraction for
each file runs on a worker thread with a per-file time budget, and any error
raised for a file is turned into a notice section for that file alone.
"""

import asyncio
import contextvars
import functools
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from docintake.config import Settings, settings as default_settings
from docintake.core.context import batch_id_var, new_batch_id
from docintake.core.metrics import (
    batch_files_total,
    batches_processed_total,
    extraction_attempts_total,
    extraction_duration_seconds,
)
from docintake.exceptions import ArchiveError
from docintake.schemas.batch import BatchResult, BatchStats
from docintake.schemas.upload import ImageUrl, InputFile
from docintake.services import formatter
from docintake.services.archive import scan_archive
from docintake.services.heuristic import extract_heuristic
from docintake.services.images import image_url_for
from docintake.services.office import (
    EXCEL,
    POWERPOINT,
    WORD,
    extract_office,
    extract_office_metadata,
    is_office,
    office_kind,
)
from docintake.services.payload import decode_payload
from docintake.services.pdf import extract_pdf, render_pdf_preview
from docintake.services.results import ExtractionResult
from docintake.services.signature import DetectedFormat, detect
from docintake.services.text_files import (
    extension_key,
    extract_code_file,
    extract_text_file,
    is_code,
    is_plain_text,
)

logger = logging.getLogger(__name__)

# Thread pool for blocking format parsers, swapped out after a timeout
_EXTRACTION_WORKERS = 4
_extraction_executor = ThreadPoolExecutor(max_workers=_EXTRACTION_WORKERS)

GENERIC_TYPES = {
    "",
    "application/octet-stream",
    "binary/octet-stream",
    "application/x-binary",
    "application/unknown",
}

_KIND_LABELS = {
    DetectedFormat.TEXT: "File",
    DetectedFormat.CODE: "Code File",
    DetectedFormat.IMAGE: "Image",
    DetectedFormat.PDF: "PDF Document",
    DetectedFormat.ZIP_OFFICE: "Office Document",
    DetectedFormat.UNKNOWN_BINARY: "Binary File",
}
_OFFICE_LABELS = {
    WORD: "Word Document",
    EXCEL: "Excel Document",
    POWERPOINT: "PowerPoint Document",
}


@dataclass
class FileOutcome:
    """Everything one file contributes to the batch result."""
    section: str
    family: DetectedFormat
    succeeded: bool
    unprocessable: bool = False
    attempts: list[tuple[str, bool]] = field(default_factory=list)  # (method, ok)
    error: str | None = None
    image_url: ImageUrl | None = None


def _declared(declared_type: str) -> str:
    return (declared_type or "").split(";", 1)[0].strip().lower()


def resolve_family(file: InputFile, raw_bytes: bytes = b"") -> DetectedFormat:
    """Pick the format family for a file.

    Declared type wins, then the filename extension. Magic bytes are only
    consulted when the declared type is generic or missing.
    """
    declared = _declared(file.declared_type)
    ext = extension_key(file.name)

    if is_plain_text(declared, ext):
        return DetectedFormat.TEXT
    if is_code(declared, ext):
        return DetectedFormat.CODE
    if declared.startswith("image/"):
        return DetectedFormat.IMAGE
    if declared == "application/pdf" or ext == "pdf":
        return DetectedFormat.PDF
    if is_office(declared, ext):
        return DetectedFormat.ZIP_OFFICE

    if declared in GENERIC_TYPES:
        magic = detect(raw_bytes)
        if magic is DetectedFormat.PDF:
            return DetectedFormat.PDF
        if magic is DetectedFormat.IMAGE:
            return DetectedFormat.IMAGE
    return DetectedFormat.UNKNOWN_BINARY


def _size_of(file: InputFile, raw_bytes: bytes | None = None) -> int:
    if file.size:
        return file.size
    return len(raw_bytes) if raw_bytes is not None else 0


def _label_for(file: InputFile, family: DetectedFormat) -> str:
    if family is DetectedFormat.ZIP_OFFICE:
        kind = office_kind(file.declared_type, file.name)
        return _OFFICE_LABELS.get(kind, _KIND_LABELS[family])
    return _KIND_LABELS[family]


def _error_outcome(file: InputFile, family: DetectedFormat, error: str) -> FileOutcome:
    message = f"[Error processing file: {file.name} - {error}]"
    return FileOutcome(
        section=formatter.format_notice(_label_for(file, family), file.name, _size_of(file), message),
        family=family,
        succeeded=False,
        unprocessable=True,
        error=f"{file.name}: {error}",
    )


# ---------------------------------------------------------------------------
# Per-family handlers (run on the worker thread)
# ---------------------------------------------------------------------------

def _handle_text(file: InputFile, raw_bytes: bytes) -> FileOutcome:
    result = extract_text_file(raw_bytes)
    return FileOutcome(
        section=formatter.format_section("File", file.name, _size_of(file, raw_bytes), result),
        family=DetectedFormat.TEXT,
        succeeded=True,
        attempts=[(result.method, True)],
    )


def _handle_code(file: InputFile, raw_bytes: bytes) -> FileOutcome:
    result = extract_code_file(raw_bytes, extension_key(file.name))
    section = formatter.format_code_section(
        file.name,
        _size_of(file, raw_bytes),
        result.metadata["language"],
        result.metadata["fence_tag"],
        result.text,
    )
    return FileOutcome(
        section=section,
        family=DetectedFormat.CODE,
        succeeded=True,
        attempts=[(result.method, True)],
    )


def _handle_image(file: InputFile, raw_bytes: bytes | None) -> FileOutcome:
    url = image_url_for(file.content, raw_bytes)
    size = _size_of(file, raw_bytes)
    if url is None:
        message = f"[Invalid image data: {file.name} - expected a base64 image data URL]"
        return FileOutcome(
            section=formatter.format_notice("Image", file.name, size, message),
            family=DetectedFormat.IMAGE,
            succeeded=False,
            unprocessable=True,
            attempts=[("image_passthrough", False)],
            error=f"{file.name}: not a base64 image data URL",
        )
    return FileOutcome(
        section=formatter.format_notice("Image", file.name, size, f"[Image: {file.name}]"),
        family=DetectedFormat.IMAGE,
        succeeded=True,
        attempts=[("image_passthrough", True)],
        image_url=ImageUrl(url=url, name=file.name),
    )


def _handle_pdf(file: InputFile, raw_bytes: bytes, cfg: Settings) -> FileOutcome:
    result = extract_pdf(
        raw_bytes,
        max_text_pages=cfg.PDF_MAX_TEXT_PAGES,
        max_structure_pages=cfg.PDF_MAX_STRUCTURE_PAGES,
    )
    preview = render_pdf_preview(raw_bytes, file.name, dpi=cfg.PDF_PREVIEW_DPI)
    return FileOutcome(
        section=formatter.format_section("PDF Document", file.name, _size_of(file, raw_bytes), result),
        family=DetectedFormat.PDF,
        succeeded=result.succeeded,
        attempts=[(result.method, result.succeeded)],
        error=f"{file.name}: {result.error}" if result.error else None,
        image_url=ImageUrl(url=preview, name=f"PDF document: {file.name}") if preview else None,
    )


def _handle_office(file: InputFile, raw_bytes: bytes) -> FileOutcome:
    label = _label_for(file, DetectedFormat.ZIP_OFFICE)
    result = extract_office(raw_bytes, file.declared_type, file.name)
    result.metadata = extract_office_metadata(raw_bytes, file.declared_type, file.name)
    attempts = [(method, False) for method in result.attempted]
    attempts.append((result.method, True))
    return FileOutcome(
        section=formatter.format_section(label, file.name, _size_of(file, raw_bytes), result),
        family=DetectedFormat.ZIP_OFFICE,
        succeeded=True,
        attempts=attempts,
    )


def _handle_binary(file: InputFile, raw_bytes: bytes, cfg: Settings) -> FileOutcome:
    min_chars = cfg.BINARY_MIN_CONTENT_CHARS
    attempts = []
    structured = ""
    if detect(raw_bytes) is DetectedFormat.ZIP_OFFICE:
        try:
            structured = scan_archive(
                raw_bytes,
                min_fragment_chars=cfg.ARCHIVE_MIN_FRAGMENT_CHARS,
                max_entry_bytes=cfg.ARCHIVE_MAX_ENTRY_BYTES,
            )
            attempts.append(("archive_scan", len(structured) > min_chars))
        except ArchiveError as e:
            logger.warning(f"Archive scan failed for {file.name}: {e}")
            attempts.append(("archive_scan", False))

    heuristic = extract_heuristic(
        raw_bytes,
        max_bytes=cfg.HEURISTIC_MAX_BYTES,
        min_match_chars=cfg.HEURISTIC_MIN_MATCH_CHARS,
    )
    attempts.append(("heuristic", len(heuristic) > min_chars))

    size = _size_of(file, raw_bytes)
    if len(structured) > min_chars:
        result = ExtractionResult(text=structured, method="archive_scan", succeeded=True)
    elif len(heuristic) > min_chars:
        result = ExtractionResult(text=heuristic, method="heuristic", succeeded=True)
    else:
        declared = file.declared_type or "unknown type"
        message = (
            f"[Binary file: {file.name} ({declared}) - This binary file cannot be processed. "
            "Try converting it to PDF or plain text.]"
        )
        return FileOutcome(
            section=formatter.format_notice("Binary File", file.name, size, message),
            family=DetectedFormat.UNKNOWN_BINARY,
            succeeded=False,
            unprocessable=True,
            attempts=attempts,
            error=f"{file.name}: no readable content in binary file",
        )

    return FileOutcome(
        section=formatter.format_section("Binary File", file.name, size, result),
        family=DetectedFormat.UNKNOWN_BINARY,
        succeeded=True,
        attempts=attempts,
    )


def process_file(file: InputFile, cfg: Settings) -> FileOutcome:
    """Extract a single file. Blocking; never raises."""
    family = resolve_family(file)
    try:
        if not file.content:
            return _error_outcome(file, family, "file has no content")

        # Data-URL images need no decoding
        if family is DetectedFormat.IMAGE:
            return _handle_image(file, None)

        raw_bytes = decode_payload(file.content)
        family = resolve_family(file, raw_bytes)

        if family is DetectedFormat.TEXT:
            return _handle_text(file, raw_bytes)
        if family is DetectedFormat.CODE:
            return _handle_code(file, raw_bytes)
        if family is DetectedFormat.IMAGE:
            return _handle_image(file, raw_bytes)
        if family is DetectedFormat.PDF:
            return _handle_pdf(file, raw_bytes, cfg)
        if family is DetectedFormat.ZIP_OFFICE:
            return _handle_office(file, raw_bytes)
        return _handle_binary(file, raw_bytes, cfg)
    except Exception as e:
        logger.error(f"Error processing file {file.name}: {e}")
        return _error_outcome(file, family, str(e) or type(e).__name__)


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------

def _coerce(item: Any) -> InputFile:
    if isinstance(item, InputFile):
        return item
    return InputFile.model_validate(item)


def _invalid_outcome(item: Any, error: ValidationError) -> FileOutcome:
    name = item.get("name", "unknown") if isinstance(item, dict) else "unknown"
    message = f"[Error processing file: {name} - invalid file descriptor]"
    return FileOutcome(
        section=formatter.format_notice("File", name, 0, message),
        family=DetectedFormat.UNKNOWN_BINARY,
        succeeded=False,
        unprocessable=True,
        error=f"{name}: invalid file descriptor ({error.error_count()} errors)",
    )


def _skipped_section(item: Any, limit: int) -> str:
    if isinstance(item, InputFile):
        name, size = item.name, item.size
    elif isinstance(item, dict):
        name, size = item.get("name", "unknown"), item.get("size", 0) or 0
    else:
        name, size = "unknown", 0
    message = f"[File skipped: {name} - only the first {limit} files of a batch are processed]"
    return formatter.format_notice("File", name, size, message)


def _record(outcome: FileOutcome, stats: BatchStats) -> None:
    family = outcome.family.value
    for method, ok in outcome.attempts:
        stats.record_attempt(method)
        extraction_attempts_total.labels(
            family=family, method=method, status="success" if ok else "failure"
        ).inc()
    stats.record_outcome(family, outcome.succeeded, outcome.error)

    if outcome.unprocessable:
        batch_files_total.labels(outcome="unprocessable").inc()
    elif outcome.succeeded:
        batch_files_total.labels(outcome="extracted").inc()
    else:
        batch_files_total.labels(outcome="degraded").inc()


def _replace_executor() -> None:
    """Give later files fresh workers; stuck threads finish in the background."""
    global _extraction_executor
    stale = _extraction_executor
    _extraction_executor = ThreadPoolExecutor(max_workers=_EXTRACTION_WORKERS)
    stale.shutdown(wait=False)


def _started_job(loop, started: asyncio.Event, job):
    loop.call_soon_threadsafe(started.set)
    return job()


async def _run_file(file: InputFile, cfg: Settings) -> FileOutcome:
    loop = asyncio.get_running_loop()
    ctx = contextvars.copy_context()
    started = asyncio.Event()
    future = loop.run_in_executor(
        _extraction_executor,
        functools.partial(
            _started_job, loop, started, functools.partial(ctx.run, process_file, file, cfg)
        ),
    )
    # The time budget runs from the moment a worker picks the file up
    await started.wait()
    start = time.perf_counter()
    try:
        return await asyncio.wait_for(future, timeout=cfg.FILE_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning(f"Extraction of {file.name} timed out after {cfg.FILE_TIMEOUT_SECONDS}s")
        _replace_executor()
        return _error_outcome(
            file,
            resolve_family(file),
            f"processing timed out after {cfg.FILE_TIMEOUT_SECONDS:g}s",
        )
    finally:
        extraction_duration_seconds.labels(
            family=resolve_family(file).value
        ).observe(time.perf_counter() - start)


async def process_batch(files: list, *, settings: Settings | None = None) -> BatchResult:
    """Extract every file of a batch into one combined text.

    Each input yields exactly one section, in input order, whatever happens
    to it. Errors never propagate; they show up as notice sections, in
    `has_unprocessable_files` and in `stats.errors`.

    Args:
        files: InputFile instances or dicts with id, name, type, size, content
        settings: Overrides the module-level settings
    """
    cfg = settings or default_settings
    token = batch_id_var.set(new_batch_id())
    try:
        files = list(files or [])
        result = BatchResult(stats=BatchStats(max_errors=cfg.MAX_STATS_ERRORS))
        stats = result.stats
        sections = []

        logger.info(f"Processing batch of {len(files)} files")
        for index, item in enumerate(files):
            if index >= cfg.MAX_FILES_PER_BATCH:
                sections.append(_skipped_section(item, cfg.MAX_FILES_PER_BATCH))
                result.has_unprocessable_files = True
                batch_files_total.labels(outcome="skipped").inc()
                continue

            try:
                file = _coerce(item)
            except ValidationError as e:
                logger.warning(f"Invalid file descriptor at position {index}: {e}")
                outcome = _invalid_outcome(item, e)
            else:
                outcome = await _run_file(file, cfg)

            sections.append(outcome.section)
            _record(outcome, stats)
            if outcome.unprocessable:
                result.has_unprocessable_files = True
            if outcome.image_url:
                result.image_urls.append(outcome.image_url)
                result.has_image_files = True

        if len(files) > cfg.MAX_FILES_PER_BATCH:
            logger.info(
                f"Limited processing to {cfg.MAX_FILES_PER_BATCH} of {len(files)} files"
            )

        result.combined_text = "".join(sections)
        batches_processed_total.inc()
        logger.info(
            f"Batch done: {len(files)} files, "
            f"unprocessable={result.has_unprocessable_files}, images={len(result.image_urls)}"
        )
        return result
    finally:
        batch_id_var.reset(token)
