"""Scan documents for asset URLs and report the broken ones."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog

from linkprobe.domain.entities import DetectedUrl, LinkDiagnostic, SourceDocument
from linkprobe.domain.ports import LinkValidatorPort

log = structlog.get_logger(__name__)

UrlScanner = Callable[[str], list[DetectedUrl]]


class CheckLinksUseCase:
    """Validates every candidate URL of a set of documents in one batch.

    Outcomes are paired back to each occurrence by URL, so a link used
    five times yields five diagnostics but only one probe sequence.
    """

    def __init__(
        self,
        *,
        validator: LinkValidatorPort,
        scanner: UrlScanner,
        include_valid: bool = False,
    ) -> None:
        self._validator = validator
        self._scanner = scanner
        self._include_valid = include_valid

    async def execute(self, documents: Iterable[SourceDocument]) -> list[LinkDiagnostic]:
        detected: list[tuple[str, DetectedUrl]] = []
        for doc in documents:
            found = self._scanner(doc.text)
            log.debug("document_scanned", document=doc.name, urls=len(found))
            detected.extend((doc.name, d) for d in found)

        if not detected:
            return []

        outcomes = await self._validator.validate_batch([d.url for _, d in detected])
        by_url = {o.url: o for o in outcomes}

        diagnostics: list[LinkDiagnostic] = []
        for name, location in detected:
            outcome = by_url.get(location.url)
            # Missing only when the batch was cancelled before reaching it.
            if outcome is None:
                continue
            if outcome.is_valid and not self._include_valid:
                continue
            diagnostics.append(
                LinkDiagnostic(document=name, location=location, outcome=outcome)
            )
        return diagnostics
