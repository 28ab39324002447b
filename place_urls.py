# place_urls.py
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

PLATFORM = "naver_place"
PLATFORM_HOSTS = ("naver.me", "naver.com", "naver.net")

CANONICAL_URL_TEMPLATE = "https://map.naver.com/p/entry/place/{place_id}"
MOBILE_URL_TEMPLATE = "https://m.place.naver.com/{place_type}/{place_id}"
GENERIC_TYPE = "place"
DEFAULT_TYPE = "restaurant"

PLACE_TYPES = (
    "restaurant",
    "hospital",
    "pharmacy",
    "clinic",
    "beauty",
    "accommodation",
    "place",
    "hairshop",
    "cafe",
)

# Ordered: the first pattern that matches decides the id (and type, if any).
MOBILE_LISTING_RE = re.compile(r"m\.place\.naver\.com/([A-Za-z]+)/(\d+)", re.IGNORECASE)
TYPED_PATH_RE = re.compile(r"/(%s)/(\d+)" % "|".join(PLACE_TYPES), re.IGNORECASE)
GENERIC_PATH_RE = re.compile(r"/place/(\d+)")
QUERY_ID_RE = re.compile(r"[?&]placeId=(\d+)", re.IGNORECASE)


def normalize_url(raw: Optional[str]) -> str:
    value = str(raw or "").strip()
    if not value:
        return ""
    if value.startswith("http://") or value.startswith("https://"):
        return value
    return f"https://{value}"


def is_place_platform_url(url: str) -> bool:
    host = (urlparse(url).hostname or "").lower().rstrip(".")
    if not host:
        return False
    return any(host == h or host.endswith("." + h) for h in PLATFORM_HOSTS)


def _type_hint(place_type: str) -> Optional[str]:
    hint = place_type.lower()
    # "place" is the generic shape, not a hint.
    return None if hint == GENERIC_TYPE else hint


def extract_place_ref(url_like: str) -> tuple[Optional[str], Optional[str]]:
    """
    Pull (place_id, type_hint) out of a URL-ish string.
    Returns (None, None) when no known shape matches.
    """
    s = str(url_like or "")

    m = MOBILE_LISTING_RE.search(s)
    if m:
        return m.group(2), _type_hint(m.group(1))

    m = TYPED_PATH_RE.search(s)
    if m:
        return m.group(2), _type_hint(m.group(1))

    m = GENERIC_PATH_RE.search(s)
    if m:
        return m.group(1), None

    m = QUERY_ID_RE.search(s)
    if m:
        return m.group(1), None

    return None, None


def canonical_place_url(place_id: str) -> str:
    return CANONICAL_URL_TEMPLATE.format(place_id=place_id)


def build_scrape_candidates(place_id: Optional[str], type_hint: Optional[str] = None) -> list[str]:
    """
    Mobile listing URLs to try, most specific first.
    No id means nothing to scrape: the caller reports PLACE_ID_NOT_FOUND.
    """
    pid = str(place_id or "").strip()
    if not pid:
        return []

    ordered: list[str] = []
    if type_hint:
        ordered.append(MOBILE_URL_TEMPLATE.format(place_type=type_hint.lower(), place_id=pid))
    ordered.append(MOBILE_URL_TEMPLATE.format(place_type=GENERIC_TYPE, place_id=pid))
    ordered.append(MOBILE_URL_TEMPLATE.format(place_type=DEFAULT_TYPE, place_id=pid))

    # Deduplicate while preserving order
    return list(dict.fromkeys(ordered))
