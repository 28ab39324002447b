from __future__ import annotations

import re
from collections import Counter
from typing import Iterable, Optional

import config
from diagnosis_models import KeywordSet

MAIN_KEYWORDS = 5
SUB_KEYWORDS = 7

# Korean particles and filler words that dominate raw frequency counts.
STOPWORDS = frozenset(
    [
        "있는",
        "없는",
        "하는",
        "및",
        "등",
        "를",
        "을",
        "가",
        "이",
        "은",
        "는",
        "에",
        "의",
        "도",
        "다",
        *config.EXTRA_STOPWORDS,
    ]
)

_NON_WORD_RE = re.compile(r"[^\w\s가-힣]")


def tokenize(text: str) -> list[str]:
    return _NON_WORD_RE.sub(" ", text or "").split()


def extract_keywords(text: Optional[str], stopwords: Iterable[str] = STOPWORDS) -> KeywordSet:
    """Top tokens by frequency; ties keep first-occurrence order."""
    if not text:
        return KeywordSet()
    stop = set(stopwords)
    freq = Counter(t for t in tokenize(text) if len(t) > 1 and t not in stop)
    # Counter keeps insertion order and sorted() is stable.
    ranked = [token for token, _ in sorted(freq.items(), key=lambda kv: kv[1], reverse=True)]
    return KeywordSet(
        main=tuple(ranked[:MAIN_KEYWORDS]),
        sub=tuple(ranked[MAIN_KEYWORDS:MAIN_KEYWORDS + SUB_KEYWORDS]),
    )
