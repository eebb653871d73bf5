"""Result type shared by all extraction strategies."""

from dataclasses import dataclass, field


@dataclass
class ExtractionResult:
    """Outcome of one extraction attempt."""
    text: str = ""
    structure: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    method: str = ""
    succeeded: bool = False
    error: str | None = None
    attempted: list[str] = field(default_factory=list)  # methods that failed before `method`

    def has_content(self, min_chars: int = 0) -> bool:
        """True if the trimmed text is longer than min_chars."""
        return len(self.text.strip()) > min_chars
