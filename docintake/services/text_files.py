"""Plain-text and source-code files."""

import logging
import os

from docintake.services.results import ExtractionResult

logger = logging.getLogger(__name__)

PLAIN_TEXT_TYPES = {
    "text/plain",
    "application/json",
    "text/csv",
    "text/tab-separated-values",
}
PLAIN_TEXT_EXTENSIONS = {"txt", "json", "csv", "tsv", "log"}

CODE_TYPES = {
    "application/javascript",
    "application/x-javascript",
    "application/typescript",
    "application/x-python",
    "application/x-python-code",
    "application/x-sh",
    "application/x-httpd-php",
    "application/sql",
    "application/xml",
    "application/x-yaml",
    "application/yaml",
    "application/toml",
}

# extension -> (display name, fence tag)
LANGUAGES: dict[str, tuple[str, str]] = {
    # Web
    "html": ("HTML", "html"),
    "htm": ("HTML", "html"),
    "css": ("CSS", "css"),
    "scss": ("SCSS", "scss"),
    "js": ("JavaScript", "javascript"),
    "mjs": ("JavaScript", "javascript"),
    "jsx": ("JavaScript (React)", "jsx"),
    "ts": ("TypeScript", "typescript"),
    "tsx": ("TypeScript (React)", "tsx"),
    "vue": ("Vue.js", "vue"),
    "svelte": ("Svelte", "svelte"),
    # Backend
    "py": ("Python", "python"),
    "pyw": ("Python", "python"),
    "java": ("Java", "java"),
    "c": ("C", "c"),
    "cpp": ("C++", "cpp"),
    "cc": ("C++", "cpp"),
    "h": ("C/C++ Header", "c"),
    "hpp": ("C++ Header", "cpp"),
    "cs": ("C#", "csharp"),
    "go": ("Go", "go"),
    "rs": ("Rust", "rust"),
    "rb": ("Ruby", "ruby"),
    "php": ("PHP", "php"),
    "swift": ("Swift", "swift"),
    "scala": ("Scala", "scala"),
    "kt": ("Kotlin", "kotlin"),
    "dart": ("Dart", "dart"),
    "lua": ("Lua", "lua"),
    "r": ("R", "r"),
    "pl": ("Perl", "perl"),
    "pm": ("Perl Module", "perl"),
    "ex": ("Elixir", "elixir"),
    "hs": ("Haskell", "haskell"),
    # Shell
    "sh": ("Shell Script", "sh"),
    "bash": ("Bash Script", "bash"),
    "zsh": ("Zsh Script", "zsh"),
    "ps1": ("PowerShell", "powershell"),
    "psm1": ("PowerShell Module", "powershell"),
    "bat": ("Batch File", "bat"),
    # Data and config
    "sql": ("SQL", "sql"),
    "yaml": ("YAML", "yaml"),
    "yml": ("YAML", "yaml"),
    "toml": ("TOML", "toml"),
    "ini": ("INI", "ini"),
    "cfg": ("Configuration File", "ini"),
    "xml": ("XML", "xml"),
    "xsl": ("XSL", "xml"),
    "md": ("Markdown", "markdown"),
    "markdown": ("Markdown", "markdown"),
    "gitignore": ("Git Configuration", "gitignore"),
    "env": ("Environment Variables", "bash"),
    "config": ("Configuration File", ""),
    "conf": ("Configuration File", ""),
    "dockerfile": ("Dockerfile", "dockerfile"),
    "makefile": ("Makefile", "makefile"),
    "tf": ("Terraform", "hcl"),
    "hcl": ("HCL", "hcl"),
}

UNKNOWN_LANGUAGE = ("Unknown", "")

# Names that carry no dot but are still recognisable
_BARE_NAMES = {"dockerfile", "makefile"}


def extension_key(filename: str) -> str:
    """Lower-cased extension without the dot.

    Dotfiles map to their name (``.gitignore`` -> ``gitignore``) and a few
    well-known bare names map to themselves (``Dockerfile`` -> ``dockerfile``).
    """
    base = os.path.basename(filename or "").lower()
    if base.startswith(".") and base.count(".") == 1:
        return base[1:]
    if base in _BARE_NAMES:
        return base
    _, ext = os.path.splitext(base)
    return ext[1:]


def is_plain_text(declared_type: str, ext: str) -> bool:
    return declared_type in PLAIN_TEXT_TYPES or ext in PLAIN_TEXT_EXTENSIONS


def is_code(declared_type: str, ext: str) -> bool:
    if ext in LANGUAGES:
        return True
    return declared_type.startswith("text/") or declared_type in CODE_TYPES


def code_language(ext: str) -> tuple[str, str]:
    """(display name, fence tag) for an extension, ``("Unknown", "")`` if unmapped."""
    return LANGUAGES.get(ext, UNKNOWN_LANGUAGE)


def decode_text(raw_bytes: bytes) -> str:
    """Decode as UTF-8, falling back to cp1252 and finally latin-1."""
    for encoding in ("utf-8", "cp1252"):
        try:
            return raw_bytes.decode(encoding)
        except UnicodeDecodeError:
            continue
    # latin-1 maps every byte
    return raw_bytes.decode("latin-1")


def extract_text_file(raw_bytes: bytes) -> ExtractionResult:
    text = decode_text(raw_bytes)
    return ExtractionResult(text=text, method="text_decode", succeeded=True)


def extract_code_file(raw_bytes: bytes, ext: str) -> ExtractionResult:
    language, fence_tag = code_language(ext)
    text = decode_text(raw_bytes)
    logger.debug(f"Decoded {language} source ({len(text)} chars)")
    return ExtractionResult(
        text=text,
        metadata={"language": language, "fence_tag": fence_tag},
        method="code_decode",
        succeeded=True,
    )
