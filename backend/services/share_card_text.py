"""Text preparation shared by both share card compositors."""
import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlsplit

ELLIPSIS = "…"
DEFAULT_TITLE_LINES = 3
DEFAULT_TITLE_FONT_SIZE = 66
DEFAULT_TITLE_CHARS = 21

# (minimum title length, font size, max characters per line), longest first.
TITLE_THRESHOLDS = (
    (125, 36, 33),
    (97, 40, 30),
    (75, 46, 27),
    (53, 52, 25),
    (35, 58, 23),
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
_HTTPS_RE = re.compile(r"^https://", re.IGNORECASE)


@dataclass(frozen=True)
class TitleSpec:
    lines: List[str]
    font_size: int


def truncate_text(value: str, max_chars: int) -> str:
    return f"{value[:max_chars - 1]}..." if len(value) > max_chars else value


def sanitize_text(value: Optional[str], max_chars: int) -> Optional[str]:
    """Trimmed value capped at `max_chars`; None for missing or blank input."""
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    return truncate_text(trimmed, max_chars)


def sanitize_map_url(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed or not _HTTPS_RE.match(trimmed):
        return None
    return trimmed


def parse_boolean_override(value: Optional[str]) -> Optional[bool]:
    normalized = (value or "").strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return None


def normalize_display_path(value: Optional[str]) -> str:
    """Path (and query) shown in the card footer; absolute URLs are reduced to their path."""
    trimmed = (value or "").strip()
    if not trimmed:
        return "/"
    if trimmed.startswith(("http://", "https://")):
        try:
            parts = urlsplit(trimmed)
        except ValueError:
            return "/"
        path = parts.path or "/"
        return f"{path}?{parts.query}" if parts.query else path
    return trimmed if trimmed.startswith("/") else f"/{trimmed}"


def display_url(host: str, path: str, max_chars: int) -> str:
    return truncate_text(f"{host}{path}", max_chars)


def split_word(word: str, max_chars: int) -> List[str]:
    """Break a word longer than a line into hyphenated chunks."""
    if len(word) <= max_chars:
        return [word]
    chunks = []
    cursor = 0
    while cursor < len(word):
        remaining = len(word) - cursor
        size = min(remaining, max_chars - 1 if remaining > max_chars else max_chars)
        size = max(1, size)
        chunk = word[cursor:cursor + size]
        cursor += size
        chunks.append(f"{chunk}-" if cursor < len(word) else chunk)
    return chunks


def wrap_title(value: str, max_chars: int, max_lines: int = DEFAULT_TITLE_LINES) -> List[str]:
    """
    Greedy word packing into at most `max_lines` lines.

    When words remain after the last line, that line is clipped and ends in
    an ellipsis.
    """
    words = [piece for word in value.split() for piece in split_word(word, max_chars)]
    if not words:
        return [value]

    lines: List[str] = []
    current = ""
    index = 0
    while index < len(words):
        token = words[index]
        candidate = f"{current} {token}" if current else token
        if len(candidate) <= max_chars:
            current = candidate
            index += 1
            continue
        if current:
            lines.append(current)
            current = ""
            if len(lines) >= max_lines:
                break
            continue
        lines.append(token)
        index += 1
        if len(lines) >= max_lines:
            break

    if current and len(lines) < max_lines:
        lines.append(current)

    if index < len(words) and lines:
        raw = lines[-1].rstrip(ELLIPSIS)
        clipped = raw[:max(1, max_chars - 1)] if len(raw) >= max_chars else raw
        lines[-1] = f"{clipped}{ELLIPSIS}"
    return lines


def title_spec(title: str, fallback: str = "Shared Trip") -> TitleSpec:
    normalized = title.strip() or fallback
    font_size, max_chars = DEFAULT_TITLE_FONT_SIZE, DEFAULT_TITLE_CHARS
    for min_length, size, chars in TITLE_THRESHOLDS:
        if len(normalized) >= min_length:
            font_size, max_chars = size, chars
            break
    return TitleSpec(lines=wrap_title(normalized, max_chars), font_size=font_size)
