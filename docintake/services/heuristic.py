"""Last-resort text recovery for unknown binaries.

Looks for runs of word-like tokens in the raw bytes, the way `strings` would,
then throws away anything that looks like embedded code or version noise.
"""

import logging
import re

from docintake.config import settings

logger = logging.getLogger(__name__)

_PHRASE_RE = re.compile(r"[A-Za-z0-9][\w.']+(?:\s+[\w.']+){2,}", re.ASCII)
_VERSION_RE = re.compile(r"\d+\.\d+\.\d+")
_CODE_MARKERS = ("function", "class", "const", "import", "var ")


def _is_noise(phrase: str) -> bool:
    if any(marker in phrase for marker in _CODE_MARKERS):
        return True
    return bool(_VERSION_RE.search(phrase))


def extract_heuristic(
    raw_bytes: bytes,
    max_bytes: int | None = None,
    min_match_chars: int | None = None,
) -> str:
    """Return newline-joined phrases found in the buffer, or "" if none."""
    if max_bytes is None:
        max_bytes = settings.HEURISTIC_MAX_BYTES
    if min_match_chars is None:
        min_match_chars = settings.HEURISTIC_MIN_MATCH_CHARS

    try:
        decoded = bytes(raw_bytes[:max_bytes]).decode("utf-8", errors="replace")
    except TypeError:
        return ""

    seen = set()
    phrases = []
    for match in _PHRASE_RE.finditer(decoded):
        phrase = match.group(0).strip()
        if len(phrase) <= min_match_chars or _is_noise(phrase):
            continue
        if phrase in seen:
            continue
        seen.add(phrase)
        phrases.append(phrase)

    logger.debug(f"Heuristic scan kept {len(phrases)} phrases")
    return "\n".join(phrases)
