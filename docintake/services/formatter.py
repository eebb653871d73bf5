"""Rendering of per-file sections for the combined batch text."""

from docintake.services.results import ExtractionResult

SECTION_END = "\n\n\n"


def format_size(size_bytes: int) -> str:
    """Size in KiB with one decimal, e.g. ``12.3 KB``."""
    return f"{(size_bytes or 0) / 1024:.1f} KB"


def _header(kind: str, name: str, size_bytes: int) -> str:
    return f"--- {kind}: {name} ({format_size(size_bytes)}) ---\n"


def format_section(kind: str, name: str, size_bytes: int, result: ExtractionResult) -> str:
    parts = [_header(kind, name, size_bytes), result.text]
    if result.structure:
        parts.append(f"\n\n--- Document Structure ---\n{result.structure}")
    if result.metadata:
        lines = "\n".join(f"{key}: {value}" for key, value in result.metadata.items())
        parts.append(f"\n\n--- Metadata ---\n{lines}")
    parts.append(SECTION_END)
    return "".join(parts)


def _fence_for(code: str) -> str:
    fence = "```"
    while fence in code:
        fence += "`"
    return fence


def format_code_section(
    name: str,
    size_bytes: int,
    language: str,
    fence_tag: str,
    code: str,
) -> str:
    """Source file rendered as a fenced block.

    The fence is made longer than any backtick run inside the code so the
    block can't be closed early.
    """
    fence = _fence_for(code)
    body = code if code.endswith("\n") else code + "\n"
    return (
        f"Code file: {name} ({language}, {format_size(size_bytes)})\n"
        f"{fence}{fence_tag}\n{body}{fence}"
        f"{SECTION_END}"
    )


def format_notice(kind: str, name: str, size_bytes: int, message: str) -> str:
    return f"{_header(kind, name, size_bytes)}{message}{SECTION_END}"
