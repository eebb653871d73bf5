"""Schemas for the orchestrator's output."""

from pydantic import BaseModel, Field

from docintake.schemas.upload import ImageUrl

PDF_FAMILY = "pdf"


class FamilyStats(BaseModel):
    """Per-family file counts."""

    total_count: int = 0
    success_count: int = 0
    failure_count: int = 0


class BatchStats(BaseModel):
    """Aggregate for one batch call.

    The top-level counts cover the PDF family only; `families` holds the same
    counts for every family. `methods_used` and `errors` collect from all
    families. `errors` is capped at `max_errors` entries.
    """

    total_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    methods_used: set[str] = Field(default_factory=set)
    errors: list[str] = Field(default_factory=list)
    families: dict[str, FamilyStats] = Field(default_factory=dict)
    max_errors: int = Field(50, exclude=True)

    def record_attempt(self, method: str) -> None:
        if method:
            self.methods_used.add(method)

    def record_outcome(self, family: str, succeeded: bool, error: str | None = None) -> None:
        fam = self.families.setdefault(family, FamilyStats())
        fam.total_count += 1
        if succeeded:
            fam.success_count += 1
        else:
            fam.failure_count += 1

        if family == PDF_FAMILY:
            self.total_count += 1
            if succeeded:
                self.success_count += 1
            else:
                self.failure_count += 1

        if error and len(self.errors) < self.max_errors:
            self.errors.append(error)


class BatchResult(BaseModel):
    """Combined text plus side-channel flags for one batch."""

    combined_text: str = ""
    has_unprocessable_files: bool = False
    has_image_files: bool = False
    image_urls: list[ImageUrl] = Field(default_factory=list)
    stats: BatchStats = Field(default_factory=BatchStats)
