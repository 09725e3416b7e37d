"""Extract candidate asset/CDN URLs from arbitrary source text."""

from __future__ import annotations

import re

from linkprobe.domain.entities.scanning import DetectedUrl

# Hosts that serve static assets; any URL on them is worth checking.
_CDN_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"cloudfront\.net",
        r"cdn\.",
        r"cloudflare",
        r"akamai",
        r"fastly",
        r"jsdelivr",
        r"unpkg",
        r"cdnjs",
    )
)

ASSET_EXTENSIONS: tuple[str, ...] = (
    # Images
    "jpg", "jpeg", "png", "gif", "svg", "webp", "ico", "bmp", "tiff", "avif",
    # Video
    "mp4", "webm", "avi", "mov", "mkv",
    # Audio
    "mp3", "wav", "ogg", "flac", "aac",
    # Fonts
    "woff", "woff2", "ttf", "eot", "otf",
    # Documents
    "pdf",
    # Animation
    "riv", "lottie",
    # Data
    "json",
)  # fmt: skip

_ASSET_EXTENSION_RE = re.compile(
    r"\.(" + "|".join(ASSET_EXTENSIONS) + r")(\?[^\s\"'`>\]]*)?$",
    re.IGNORECASE,
)

# Parentheses are allowed so names like "image%20(1).png" survive.
_URL_RE = re.compile(r"https?://[^\s\"'`<>\[\]{}\\]+", re.IGNORECASE)

_TRAILING_PUNCTUATION_RE = re.compile(r"[,;:!?.]+$")
_TRAILING_CLOSERS_RE = re.compile(r"[\"'`\]}>]+$")

# url(https://cdn.example.com/image.png) -> drop the CSS closing paren.
_EXTENSION_THEN_PAREN_RE = re.compile(
    r"\.(jpg|jpeg|png|gif|svg|webp|ico|mp4|webm|mp3|wav|pdf|riv|json|woff|woff2|ttf)\)$",
    re.IGNORECASE,
)

# File suffixes the CLI scans when walking directories.
SUPPORTED_SUFFIXES: frozenset[str] = frozenset(
    {
        ".js", ".mjs", ".cjs", ".ts", ".jsx", ".tsx",
        ".html", ".htm", ".css", ".scss", ".less",
        ".json", ".jsonc", ".yaml", ".yml", ".md", ".markdown",
        ".vue", ".svelte", ".php", ".py", ".rb", ".go", ".rs",
        ".java", ".kt", ".swift", ".txt",
    }
)  # fmt: skip


def should_check_url(url: str) -> bool:
    """True for URLs on a CDN host or pointing at an asset file."""
    if any(p.search(url) for p in _CDN_PATTERNS):
        return True
    return _ASSET_EXTENSION_RE.search(url) is not None


def clean_url(url: str) -> str:
    """Strip characters that were captured after the real end of a URL."""
    cleaned = _TRAILING_PUNCTUATION_RE.sub("", url)
    cleaned = _TRAILING_CLOSERS_RE.sub("", cleaned)

    # Only strip ")" that has no matching "(" inside the URL.
    open_count = cleaned.count("(")
    close_count = cleaned.count(")")
    while close_count > open_count and cleaned.endswith(")"):
        cleaned = cleaned[:-1]
        close_count -= 1

    if _EXTENSION_THEN_PAREN_RE.search(cleaned):
        cleaned = cleaned[:-1]

    return cleaned


def scan_text(text: str) -> list[DetectedUrl]:
    """Find checkable URLs in *text*, in order of appearance."""
    # Offsets of line starts, for offset -> (line, column) mapping.
    line_starts = [0] + [m.end() for m in re.finditer(r"\n", text)]

    detected: list[DetectedUrl] = []
    line_idx = 0
    for match in _URL_RE.finditer(text):
        url = clean_url(match.group(0))
        if not should_check_url(url):
            continue

        start = match.start()
        while line_idx + 1 < len(line_starts) and line_starts[line_idx + 1] <= start:
            line_idx += 1

        detected.append(
            DetectedUrl(
                url=url,
                start=start,
                end=start + len(url),
                line=line_idx + 1,
                column=start - line_starts[line_idx] + 1,
            )
        )
    return detected
