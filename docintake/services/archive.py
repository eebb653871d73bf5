"""ZIP-aware text scanner.

Open XML (docx/xlsx/pptx), OpenDocument and plenty of vendor formats are ZIP
archives full of XML parts. When a proper parser fails or doesn't exist we
can still recover most of the prose by stripping tags from the text-bearing
entries.
"""

import html
import io
import logging
import re
import zipfile
import zlib

from docintake.config import settings
from docintake.exceptions import ArchiveError

logger = logging.getLogger(__name__)

# Parts known to carry document text, matched as substrings of the entry path
_TEXT_PARTS = (
    "word/document.xml",
    "ppt/slides/",
    "xl/worksheets/",
    "xl/sharedStrings.xml",
    "content.xml",
    "docProps/",
)

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


def _is_candidate(name: str) -> bool:
    if name.endswith("/"):
        return False
    if name.startswith("_") or "/." in name or name.startswith("."):
        return False
    if name.endswith(".xml") or name.endswith(".txt"):
        return True
    return any(part in name for part in _TEXT_PARTS)


def strip_markup(raw: str) -> str:
    """Replace tags with spaces, unescape entities, collapse whitespace."""
    text = _TAG_RE.sub(" ", raw)
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def scan_archive(
    raw_bytes: bytes,
    min_fragment_chars: int | None = None,
    max_entry_bytes: int | None = None,
) -> str:
    """Pull readable text out of the text-bearing entries of a ZIP archive.

    Entries are visited in archive order. Each surviving entry becomes a
    ``--- From <path> ---`` block. A valid archive without any matching
    entries yields an empty string.

    Raises:
        ArchiveError: the buffer is not a readable ZIP archive.
    """
    if min_fragment_chars is None:
        min_fragment_chars = settings.ARCHIVE_MIN_FRAGMENT_CHARS
    if max_entry_bytes is None:
        max_entry_bytes = settings.ARCHIVE_MAX_ENTRY_BYTES

    try:
        zf = zipfile.ZipFile(io.BytesIO(raw_bytes))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, TypeError) as e:
        raise ArchiveError("Not a readable ZIP archive", {"reason": str(e)}) from e

    blocks = []
    with zf:
        for info in zf.infolist():
            name = info.filename
            if info.is_dir() or not _is_candidate(name):
                continue
            if info.file_size > max_entry_bytes:
                logger.warning(
                    f"Skipping oversized archive entry {name} ({info.file_size} bytes)"
                )
                continue
            try:
                data = zf.read(info)
            except (
                zipfile.BadZipFile,
                zlib.error,
                EOFError,
                NotImplementedError,
                RuntimeError,
                OSError,
            ) as e:
                # damaged member
                logger.warning(f"Could not read archive entry {name}: {e}")
                continue

            text = strip_markup(data.decode("utf-8", errors="replace"))
            if len(text) > min_fragment_chars:
                blocks.append(f"--- From {name} ---\n{text}\n\n")

    return "".join(blocks).strip()


def read_entry(raw_bytes: bytes, name: str) -> str | None:
    """Return one archive member decoded as UTF-8, or None if absent."""
    try:
        with zipfile.ZipFile(io.BytesIO(raw_bytes)) as zf:
            try:
                data = zf.read(name)
            except KeyError:
                return None
    except zipfile.BadZipFile as e:
        raise ArchiveError("Not a readable ZIP archive", {"reason": str(e)}) from e
    return data.decode("utf-8", errors="replace")
