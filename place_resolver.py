"""
place_resolver.py - Turn a user-supplied place link into a listing id.

Usage:
    target = resolve_place_url("https://naver.me/xYz")
    target.place_id, target.type_hint, target.canonical_url

Never raises: a link that cannot be resolved comes back with place_id=None.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional
from urllib.parse import urljoin

import requests

import config
from diagnosis_models import ResolvedTarget
from net_guardrails import (
    BROWSER_HEADERS,
    MAX_HTML_BYTES,
    MAX_REDIRECTS,
    REDIRECT_STATUSES,
    is_textual,
    read_limited_text,
    redact_headers,
    validate_url,
)
from place_urls import (
    GENERIC_PATH_RE,
    MOBILE_LISTING_RE,
    TYPED_PATH_RE,
    canonical_place_url,
    extract_place_ref,
    normalize_url,
)

logger = logging.getLogger(__name__)

# Landing pages embed the id in inline JSON or in links; checked in this order.
BODY_ID_PATTERNS = [
    re.compile(r'"placeId"\s*:\s*"(\d+)"'),
    re.compile(r'"placeId"\s*:\s*(\d+)'),
    MOBILE_LISTING_RE,
    TYPED_PATH_RE,
    GENERIC_PATH_RE,
]


class ResolveFetchError(Exception):
    def __init__(self, reason: str, url: str):
        super().__init__(f"{reason} ({url})")
        self.reason = reason
        self.url = url


def scan_body_for_place_ref(body: str) -> tuple[Optional[str], Optional[str]]:
    for pattern in BODY_ID_PATTERNS:
        m = pattern.search(body or "")
        if not m:
            continue
        if m.lastindex == 1:
            return m.group(1), None
        place_id, hint = extract_place_ref(m.group(0))
        if place_id:
            return place_id, hint
    return None, None


def follow_redirects(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = config.RESOLVE_TIMEOUT_SECONDS,
) -> tuple[str, str, dict[str, Any]]:
    """
    GET ``url`` hop by hop, validating each target.
    Stops early when a hop already points at a recognizable listing URL.
    Returns (final_url, body, headers); raises ResolveFetchError.
    """
    if session is None:
        with requests.Session() as owned:
            return follow_redirects(url, session=owned, timeout=timeout)

    session.max_redirects = MAX_REDIRECTS
    session.trust_env = False

    current_url = url
    redirects = 0
    while True:
        try:
            validate_url(current_url)
        except ValueError as exc:
            raise ResolveFetchError(f"invalid_url: {exc}", current_url)
        try:
            resp = session.get(
                current_url,
                headers=BROWSER_HEADERS,
                timeout=timeout,
                stream=True,
                allow_redirects=False,
            )
        except requests.TooManyRedirects:
            raise ResolveFetchError("too_many_redirects", current_url)
        except requests.exceptions.RequestException as exc:
            raise ResolveFetchError(f"fetch_error: {exc.__class__.__name__}", current_url)

        try:
            headers = redact_headers(resp.headers or {})
            if resp.status_code in REDIRECT_STATUSES:
                location = (resp.headers or {}).get("Location")
                if not location:
                    raise ResolveFetchError("redirect_without_location", current_url)
                redirects += 1
                if redirects > MAX_REDIRECTS:
                    raise ResolveFetchError("too_many_redirects", current_url)
                current_url = urljoin(current_url, location)
                logger.debug(f"Redirect {redirects} -> {current_url}")
                if extract_place_ref(current_url)[0]:
                    return current_url, "", headers
                continue

            if resp.status_code >= 400:
                raise ResolveFetchError(f"http_{resp.status_code}", current_url)

            if not is_textual(resp.headers):
                return current_url, "", headers
            try:
                body, too_large = read_limited_text(resp, MAX_HTML_BYTES)
            except requests.exceptions.RequestException as exc:
                # Connection can still drop mid-body.
                raise ResolveFetchError(f"fetch_error: {exc.__class__.__name__}", current_url)
            if too_large:
                body = ""
            return current_url, body, headers
        finally:
            resp.close()


def resolve_place_url(
    input_url: str,
    session: Optional[requests.Session] = None,
    timeout: float = config.RESOLVE_TIMEOUT_SECONDS,
) -> ResolvedTarget:
    normalized = normalize_url(input_url)

    place_id, type_hint = extract_place_ref(normalized)
    if place_id:
        return ResolvedTarget(
            input_url=input_url,
            normalized_url=normalized,
            final_url=normalized,
            place_id=place_id,
            type_hint=type_hint,
            canonical_url=canonical_place_url(place_id),
            resolved_via="direct",
        )

    try:
        final_url, body, _ = follow_redirects(normalized, session=session, timeout=timeout)
    except ResolveFetchError as exc:
        logger.warning(f"Place link resolution failed for {normalized}: {exc.reason}")
        return ResolvedTarget(
            input_url=input_url,
            normalized_url=normalized,
            final_url=normalized,
            place_id=None,
            type_hint=None,
            canonical_url=normalized,
        )

    resolved_via = "unresolved"
    place_id, type_hint = extract_place_ref(final_url)
    if place_id:
        resolved_via = "redirect"
    elif body:
        place_id, type_hint = scan_body_for_place_ref(body)
        if place_id:
            resolved_via = "body"

    return ResolvedTarget(
        input_url=input_url,
        normalized_url=normalized,
        final_url=final_url,
        place_id=place_id,
        type_hint=type_hint,
        canonical_url=canonical_place_url(place_id) if place_id else final_url,
        resolved_via=resolved_via,
    )
