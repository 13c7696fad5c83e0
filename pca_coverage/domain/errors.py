"""Error types raised by the coverage pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence


class PipelineError(Exception):
    """Base class for every failure the pipeline reports to the user."""


class SourceFileError(PipelineError, FileNotFoundError):
    """Input file is missing or cannot be read."""


class OutputWriteError(PipelineError, OSError):
    """Output destination cannot be written."""


class HeaderFormatError(PipelineError, ValueError):
    """Table header does not have the expected shape."""


class CampaignCategoryError(HeaderFormatError):
    """Campaign label outside the known category set."""


@dataclass(frozen=True)
class ParseFailure:
    """One unparseable cell; ``observation`` is its 1-based position in the long table."""

    observation: int
    region: str | None
    campaign: str | None
    value: Any

    def describe(self) -> str:
        return f"observation {self.observation} ({self.region} / {self.campaign}): {self.value!r}"


class CoverageParseError(PipelineError, ValueError):
    """Composite coverage value does not match ``<pct>%(<num>/<den>)``."""

    def __init__(self, failures: Sequence[ParseFailure], total_rows: int, limit: int = 5) -> None:
        self.failures = list(failures)
        self.total_rows = total_rows
        shown = "; ".join(failure.describe() for failure in self.failures[:limit])
        more = len(self.failures) - limit
        suffix = f"; ... {more} more" if more > 0 else ""
        super().__init__(
            f"Unparseable PCA coverage value in {len(self.failures)}/{total_rows} observations: {shown}{suffix}"
        )

    @property
    def first(self) -> ParseFailure:
        return self.failures[0]
