from __future__ import annotations

import re
import unicodedata
from typing import List, Optional

CANONICAL_PREFIX = "///"
SEGMENT_SEPARATOR = "."
SEGMENT_COUNT = 3
MIN_SEGMENT_LENGTH = 2

# Unicode letters only: covers Latin and Cyrillic labels alike.
LETTER = r"[^\W\d_]"
WORD = LETTER + r"{2,}"

# Characters OCR tends to produce in place of the dot separator.
LOOSE_SEPARATOR_PATTERN = re.compile(r"\s*[.,·•∙]\s*|\s+")
LEADING_SLASHES_PATTERN = re.compile(r"^/+\s*")
SEGMENT_PATTERN = re.compile(LETTER + "+")


def strip_prefix(value: str) -> str:
    return LEADING_SLASHES_PATTERN.sub("", value.strip())


def canonicalize_separators(value: str) -> str:
    """Rewrite comma, middle-dot and whitespace separators to a single dot."""
    body = strip_prefix(value)
    return SEGMENT_SEPARATOR.join(part for part in LOOSE_SEPARATOR_PATTERN.split(body) if part)


def fold_case(value: str) -> str:
    """Lower-case, then drop combining marks left without a precomposed form
    (e.g. the dot that "İ".lower() leaves behind).
    """
    lowered = unicodedata.normalize("NFC", value.lower())
    return "".join(ch for ch in lowered if not unicodedata.combining(ch))


def normalize_candidate(value: Optional[str]) -> str:
    if not value:
        return ""
    body = fold_case(canonicalize_separators(value))
    if not body:
        return ""
    return f"{CANONICAL_PREFIX}{body}"


def split_segments(candidate: str) -> List[str]:
    return strip_prefix(candidate).split(SEGMENT_SEPARATOR)


def is_valid_candidate(candidate: str, min_segment_length: int = MIN_SEGMENT_LENGTH) -> bool:
    if not candidate.startswith(CANONICAL_PREFIX):
        return False
    segments = split_segments(candidate)
    if len(segments) != SEGMENT_COUNT:
        return False
    return all(
        len(segment) >= min_segment_length and SEGMENT_PATTERN.fullmatch(segment)
        for segment in segments
    )
