"""Snapshot extractors: rendered listing page -> ScrapedSnapshot.

Every extractor honours the same contract, so the scraper, the scoring
engine and the cache never care which one produced a snapshot.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from bs4 import BeautifulSoup

from diagnosis_models import PageCapture, ScrapedSnapshot
from place_metrics import find_photo_count, find_review_counts

logger = logging.getLogger(__name__)

MAX_FULL_TEXT = 15000
MAX_STORE_INFO = 9000
MAX_DIRECTIONS = 3000

DIRECTIONS_LABEL_RE = re.compile(r"(?:찾아가는\s*길|오시는\s*길)")
STORE_INFO_LABEL_RE = re.compile(r"(?:^|\n)\s*(?:소개|정보)\s*(?:\n|$)")

# Tab / section headers of the mobile listing page; a section ends at the next one.
SECTION_LABELS = {
    "홈", "메뉴", "리뷰", "사진", "정보", "소개", "주변", "소식",
    "예약", "편의", "찾아가는길", "오시는길", "길찾기",
}

MENU_HINTS = ("menu",)
NAVIGATION_HINTS = ("tab", "nav", "gnb")
DESCRIPTION_HINTS = ("desc", "detail", "info")
DIRECTIONS_HINTS = ("direction", "way", "route")
STORE_INFO_HINTS = ("intro", "introduce", "description")
PHOTO_HINTS = ("photo", "gallery")


class SnapshotExtractor(ABC):
    """Contract every extraction strategy satisfies."""

    @abstractmethod
    def extract(self, capture: PageCapture) -> ScrapedSnapshot:
        """Build a snapshot from ``capture``. Missing signals are zero/empty, never errors."""


def _section_after(text: str, label_re: re.Pattern, max_chars: int) -> str:
    m = label_re.search(text or "")
    if not m:
        return ""
    lines: list[str] = []
    for raw in text[m.end():].splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.replace(" ", "") in SECTION_LABELS:
            if lines:
                break
            continue
        lines.append(line)
        if sum(len(x) for x in lines) >= max_chars:
            break
    return "\n".join(lines)[:max_chars]


class TextPatternExtractor(SnapshotExtractor):
    """Regexes over visible text only. Works on any markup, knows nothing about menus."""

    def extract(self, capture: PageCapture) -> ScrapedSnapshot:
        text = capture.text or ""
        counts = find_review_counts(text)
        store_info = _section_after(text, STORE_INFO_LABEL_RE, MAX_STORE_INFO) or text[:MAX_STORE_INFO]
        return ScrapedSnapshot(
            place_name=capture.title or "Unknown",
            directions_text=_section_after(text, DIRECTIONS_LABEL_RE, MAX_DIRECTIONS),
            store_info_text=store_info,
            photo_count=find_photo_count(text),
            blog_review_count=counts["blog_review_count"],
            receipt_review_count=counts["receipt_review_count"],
            menu_count=0,
            menu_with_description_count=0,
            full_text=text[:MAX_FULL_TEXT],
        )


def _hint_text(tag: Any) -> str:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    return " ".join([str(tag.get("id") or ""), *map(str, classes)]).lower()


def _has_hint(tag: Any, hints: tuple[str, ...]) -> bool:
    if not getattr(tag, "attrs", None):
        return False
    value = _hint_text(tag)
    return any(h in value for h in hints)


def _outermost(tags: list[Any]) -> list[Any]:
    """Drop matches nested inside another match so items are not counted twice."""
    chosen = set(map(id, tags))
    return [t for t in tags if not any(id(p) in chosen for p in t.parents)]


class DomSelectorExtractor(SnapshotExtractor):
    """
    Targeted queries against the captured HTML.
    Any field the markup does not expose keeps the text extractor's value.
    """

    def __init__(self, fallback: SnapshotExtractor | None = None):
        self.fallback = fallback or TextPatternExtractor()

    def extract(self, capture: PageCapture) -> ScrapedSnapshot:
        base = self.fallback.extract(capture)
        if not capture.html:
            return base

        soup = BeautifulSoup(capture.html, "html.parser")
        for tag in soup.find_all(["script", "style", "noscript"]):
            tag.decompose()

        overrides: dict[str, Any] = {}

        menu_items = self._menu_items(soup)
        if menu_items:
            overrides["menu_count"] = len(menu_items)
            overrides["menu_with_description_count"] = sum(
                1 for li in menu_items if self._has_description(li)
            )

        directions = self._block_text(soup, DIRECTIONS_HINTS, MAX_DIRECTIONS)
        if directions:
            overrides["directions_text"] = directions

        store_info = self._block_text(soup, STORE_INFO_HINTS, MAX_STORE_INFO)
        if store_info:
            overrides["store_info_text"] = store_info

        photos = [
            img
            for block in _outermost(soup.find_all(lambda t: _has_hint(t, PHOTO_HINTS)))
            for img in block.find_all("img")
        ]
        if photos:
            overrides["photo_count"] = max(len(photos), base.photo_count)

        if overrides:
            logger.debug(f"DOM extraction for {capture.url} set {sorted(overrides)}")
        return dataclasses.replace(base, **overrides)

    @staticmethod
    def _menu_items(soup: BeautifulSoup) -> list[Any]:
        containers = _outermost(
            soup.find_all(lambda t: _has_hint(t, MENU_HINTS) and not _has_hint(t, NAVIGATION_HINTS))
        )
        items: list[Any] = []
        for container in containers:
            items.extend(container.find_all("li"))
        return items

    @staticmethod
    def _has_description(item: Any) -> bool:
        for child in item.find_all(lambda t: _has_hint(t, DESCRIPTION_HINTS)):
            if child.get_text(" ", strip=True):
                return True
        return False

    @staticmethod
    def _block_text(soup: BeautifulSoup, hints: tuple[str, ...], max_chars: int) -> str:
        parts = []
        for block in _outermost(soup.find_all(lambda t: _has_hint(t, hints))):
            text = block.get_text(" ", strip=True)
            if text:
                parts.append(text)
        return re.sub(r"\s+", " ", " ".join(parts)).strip()[:max_chars]
