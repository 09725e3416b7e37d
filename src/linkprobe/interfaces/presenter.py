"""Plain-text rendering of link diagnostics."""

from __future__ import annotations

from linkprobe.domain.entities import LinkDiagnostic, ValidationOutcome

_MAX_URL_LENGTH = 60


def truncate_url(url: str, max_length: int = _MAX_URL_LENGTH) -> str:
    """Shorten long URLs for display, keeping the start."""
    if len(url) <= max_length:
        return url
    return url[: max_length - 3] + "..."


def format_message(outcome: ValidationOutcome) -> str:
    url = truncate_url(outcome.url)
    if not outcome.is_valid:
        if outcome.status_code:
            return f"Broken link ({outcome.status_code} {outcome.status_text or 'Error'}): {url}"
        if outcome.error:
            return f"Broken link ({outcome.error}): {url}"
        return f"Broken link: {url}"

    if outcome.status_code:
        detail = f"{outcome.status_code} {outcome.status_text or 'OK'}".rstrip()
    else:
        detail = outcome.error or "OK"
    return f"Valid link ({detail}): {url}"


def diagnostic_code(outcome: ValidationOutcome) -> int | str:
    return outcome.status_code or "ERROR"


def render_diagnostic(diagnostic: LinkDiagnostic) -> str:
    """Render as ``path:line:col: severity: message [code]``."""
    loc = diagnostic.location
    severity = "warning" if diagnostic.is_broken else "info"
    code = diagnostic_code(diagnostic.outcome) if diagnostic.is_broken else "OK"
    return (
        f"{diagnostic.document}:{loc.line}:{loc.column}: {severity}: "
        f"{format_message(diagnostic.outcome)} [{code}]"
    )
