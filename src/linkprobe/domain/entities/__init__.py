from .scanning import DetectedUrl, LinkDiagnostic, SourceDocument
from .validation import (
    ERROR_CANCELLED,
    ERROR_DNS,
    ERROR_REFUSED,
    ERROR_TIMEOUT,
    ERROR_UNKNOWN,
    STATUS_TEXT_CDN_MISSING,
    STATUS_TEXT_PROTECTED,
    CacheEntry,
    ProbeMethod,
    ProbeResponse,
    ValidationOutcome,
)

__all__ = [
    "ERROR_CANCELLED",
    "ERROR_DNS",
    "ERROR_REFUSED",
    "ERROR_TIMEOUT",
    "ERROR_UNKNOWN",
    "STATUS_TEXT_CDN_MISSING",
    "STATUS_TEXT_PROTECTED",
    "CacheEntry",
    "DetectedUrl",
    "LinkDiagnostic",
    "ProbeMethod",
    "ProbeResponse",
    "SourceDocument",
    "ValidationOutcome",
]
