"""Domain entities for URL candidates found in source text."""

from __future__ import annotations

from dataclasses import dataclass

from linkprobe.domain.entities.validation import ValidationOutcome


@dataclass(frozen=True)
class DetectedUrl:
    """A candidate URL and its position in the scanned text.

    ``start``/``end`` are character offsets; ``line``/``column`` are 1-based.
    """

    url: str
    start: int
    end: int
    line: int
    column: int


@dataclass(frozen=True)
class SourceDocument:
    """Text to scan, identified by an opaque name (usually a file path)."""

    name: str
    text: str


@dataclass(frozen=True)
class LinkDiagnostic:
    """Validation outcome anchored to one occurrence of its URL."""

    document: str
    location: DetectedUrl
    outcome: ValidationOutcome

    @property
    def is_broken(self) -> bool:
        return not self.outcome.is_valid
