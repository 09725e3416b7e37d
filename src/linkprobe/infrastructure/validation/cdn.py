"""Heuristics for CDN error pages disguised as 403 responses.

CloudFront/S3 answer requests for missing objects with 403 and an XML
``AccessDenied``/``NoSuchKey`` body instead of 404. Hotlink-protected
but existing assets also return 403, usually with an empty or binary
body. Only the former is reported as missing; everything ambiguous is
treated as "exists but protected".
"""

from __future__ import annotations

from linkprobe.domain.entities.validation import ProbeResponse

# Content types that can carry a synthesized error page.
_ERROR_PAGE_CONTENT_TYPES: tuple[str, ...] = ("xml", "text/html")

# Lower-case body markers of a CDN "missing object" response.
_MISSING_MARKERS: tuple[str, ...] = (
    "accessdenied",
    "nosuchkey",
    "not found",
    "does not exist",
    "<error>",
    "the specified key does not exist",
)


def looks_like_missing_resource(response: ProbeResponse) -> bool:
    """True if *response* is a CDN error page for a missing resource."""
    content_type = response.content_type.lower()
    if not any(ct in content_type for ct in _ERROR_PAGE_CONTENT_TYPES):
        return False
    if not response.body:
        return False

    body = response.body.lower()
    return any(marker in body for marker in _MISSING_MARKERS)
