# social_profile.py
from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

import config
from diagnosis_errors import (
    InvalidHandleError,
    ParseFailedError,
    ProfileNotFoundError,
    UpstreamUnavailableError,
)
from diagnosis_models import SocialProfile
from net_guardrails import BROWSER_HEADERS, MAX_HTML_BYTES, read_limited_text
from place_metrics import parse_abbreviated_number

logger = logging.getLogger(__name__)

PLATFORM = "instagram"
PROFILE_URL_TEMPLATE = "https://www.instagram.com/{handle}/"
PROFILE_HOSTS = ("instagram.com", "www.instagram.com", "m.instagram.com")

HANDLE_RE = re.compile(r"^[a-z0-9._]{1,30}$")
# og:description reads "1,234 Followers, 56 Following, 78 Posts - ..."
COUNTS_RE = re.compile(
    r"([0-9.,km]+)\s*Followers?,\s*([0-9.,km]+)\s*Following,\s*([0-9.,km]+)\s*Posts?",
    re.IGNORECASE,
)


def normalize_handle(raw: Optional[str]) -> str:
    """Accept "name", "@name" or a profile URL; return the lowercase handle."""
    value = str(raw or "").strip()
    if "instagram.com" in value.lower():
        parsed = urlparse(value if "://" in value else f"https://{value}")
        if (parsed.hostname or "").lower() in PROFILE_HOSTS:
            value = (parsed.path or "").strip("/").split("/", 1)[0]
    handle = value.lstrip("@").strip().lower()
    if not HANDLE_RE.match(handle):
        raise InvalidHandleError(debug={"handle": str(raw or "")})
    return handle


def parse_profile_counts(html: str, handle: str) -> SocialProfile:
    soup = BeautifulSoup(html or "", "html.parser")
    meta = soup.find("meta", attrs={"property": "og:description"})
    content = meta.get("content") if meta else None
    m = COUNTS_RE.search(content or "") if isinstance(content, str) else None
    if not m:
        raise ParseFailedError(debug={"handle": handle})
    return SocialProfile(
        handle=handle,
        followers=parse_abbreviated_number(m.group(1)),
        following=parse_abbreviated_number(m.group(2)),
        posts=parse_abbreviated_number(m.group(3)),
    )


def fetch_instagram_profile(
    handle: str,
    session: Optional[requests.Session] = None,
    timeout: float = config.RESOLVE_TIMEOUT_SECONDS,
) -> SocialProfile:
    if session is None:
        with requests.Session() as owned:
            return fetch_instagram_profile(handle, session=owned, timeout=timeout)

    url = PROFILE_URL_TEMPLATE.format(handle=handle)
    try:
        resp = session.get(url, headers=BROWSER_HEADERS, timeout=timeout, stream=True)
    except requests.exceptions.RequestException as exc:
        logger.warning(f"Profile fetch failed for {handle}: {exc.__class__.__name__}")
        raise UpstreamUnavailableError(debug={"handle": handle, "message": str(exc)})

    try:
        if resp.status_code == 404:
            raise ProfileNotFoundError(debug={"handle": handle})
        if resp.status_code >= 400:
            raise UpstreamUnavailableError(debug={"handle": handle, "status": resp.status_code})

        try:
            html, too_large = read_limited_text(resp, MAX_HTML_BYTES)
        except requests.exceptions.RequestException as exc:
            logger.warning(f"Profile body read failed for {handle}: {exc.__class__.__name__}")
            raise UpstreamUnavailableError(debug={"handle": handle, "message": str(exc)})
    finally:
        resp.close()

    if too_large:
        raise ParseFailedError(debug={"handle": handle, "message": "profile page too large"})
    return parse_profile_counts(html, handle)
