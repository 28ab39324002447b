"""
place_metrics.py - Regex-based counters over rendered listing text.

Usage:
    counts = find_review_counts(page_text)
"""

from __future__ import annotations

import math
import re
from typing import Any

MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}

_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?|\.\d+)([kmb]?)")

# Count token as rendered on listing pages: digits, separators, k/m suffix.
COUNT_TOKEN = r"([0-9][0-9.,]*(?:[kmbKMB](?![A-Za-z]))?)"

PATTERNS = {
    "receipt_review": re.compile(r"방문\s*자?\s*리뷰\s*" + COUNT_TOKEN),
    "blog_review": re.compile(r"블로그\s*리뷰\s*" + COUNT_TOKEN),
    "photo": re.compile(r"(?:사진|이미지)\s*" + COUNT_TOKEN),
}
PHOTO_MENTION_RE = re.compile(r"사진|이미지")

# Default when the page mentions photos without a count next to it.
PHOTO_MENTION_COUNT = 10


def parse_abbreviated_number(value: Any) -> int:
    """
    "1,234" -> 1234, "1.5k" -> 1500, "2M" -> 2000000.
    Anything unparsable is 0.
    """
    if value is None:
        return 0
    clean = re.sub(r"[,\s]", "", str(value)).lower()
    m = _NUMBER_RE.match(clean)
    if not m:
        return 0
    try:
        number = float(m.group(1))
    except ValueError:
        return 0
    multiplier = MULTIPLIERS.get(m.group(2), 1)
    return int(math.floor(number * multiplier))


def _first_count(pattern: re.Pattern, text: str) -> int:
    m = pattern.search(text or "")
    return parse_abbreviated_number(m.group(1)) if m else 0


def find_review_counts(text: str) -> dict[str, int]:
    return {
        "receipt_review_count": _first_count(PATTERNS["receipt_review"], text),
        "blog_review_count": _first_count(PATTERNS["blog_review"], text),
    }


def find_photo_count(text: str) -> int:
    count = _first_count(PATTERNS["photo"], text)
    if count:
        return count
    return PHOTO_MENTION_COUNT if PHOTO_MENTION_RE.search(text or "") else 0
