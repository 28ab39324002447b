"""Render a mobile place listing with Playwright and extract a snapshot."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from enum import Enum
from typing import Callable, ContextManager, Iterator, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, Route
from playwright.sync_api import TimeoutError as PlaywrightTimeout
from playwright.sync_api import sync_playwright

import config
from diagnosis_errors import ScrapeError, ScrapeTimeout
from diagnosis_models import PageCapture, ScrapedSnapshot
from place_extractors import DomSelectorExtractor, SnapshotExtractor
from scrape_orchestrator import Deadline

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

# The m.place.naver.com variant is what the candidates point at.
MOBILE_CONTEXT = {
    "locale": "ko-KR",
    "timezone_id": "Asia/Seoul",
    "user_agent": (
        "Mozilla/5.0 (Linux; Android 12; SM-G991N) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
    ),
    "viewport": {"width": 412, "height": 915},
    "is_mobile": True,
    "has_touch": True,
}

BLOCKED_RESOURCE_TYPES = {"image", "font", "media"}

MAX_TEXT_CHARS = 60000
MAX_HTML_CHARS = 400000
CONTENT_POLL_MS = 250
DEFAULT_STEP_TIMEOUT_MS = 30000
LAUNCH_TIMEOUT_MS = 30000

CONTENT_READY_JS = "(minLength) => ((document.body && document.body.innerText) || '').length > minLength"

CAPTURE_JS = r"""
(maxChars) => {
    const text = (document.body && document.body.innerText) || "";
    const pick = (selector) => {
        const el = document.querySelector(selector);
        return el && el.innerText ? el.innerText.trim() : "";
    };
    const title = pick("h1") || pick("[role='heading']") || (document.title || "").trim() || "Unknown";
    return { text: text.slice(0, maxChars), title: title };
}
"""


class ScrapeStage(str, Enum):
    INIT = "init"
    SESSION_OPEN = "session_open"
    NAVIGATED = "navigated"
    CONTENT_STABLE = "content_stable"
    EXTRACTED = "extracted"
    CLOSED = "closed"
    FAILED = "failed"


def _block_heavy_resources(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        route.abort()
    else:
        route.continue_()


@contextmanager
def browser_session(deadline: Deadline, headless: bool = config.HEADLESS) -> Iterator[Page]:
    """One isolated Chromium per attempt. The browser is closed on every exit path."""
    with sync_playwright() as pw:
        browser = pw.chromium.launch(
            headless=headless,
            args=LAUNCH_ARGS,
            timeout=max(1, deadline.cap_ms(LAUNCH_TIMEOUT_MS)),
        )
        try:
            context = browser.new_context(**MOBILE_CONTEXT)
            page = context.new_page()
            page.route("**/*", _block_heavy_resources)
            yield page
        finally:
            browser.close()


class PlaceScraper:
    def __init__(
        self,
        extractor: Optional[SnapshotExtractor] = None,
        session_factory: Optional[Callable[[Deadline], ContextManager[Page]]] = None,
        navigation_timeout_ms: int = config.NAVIGATION_TIMEOUT_MS,
        content_wait_ms: int = config.CONTENT_WAIT_MS,
        content_min_text: int = config.CONTENT_MIN_TEXT,
        headless: bool = config.HEADLESS,
    ):
        self.extractor = extractor or DomSelectorExtractor()
        self._open_session = session_factory or (lambda deadline: browser_session(deadline, headless=headless))
        self.navigation_timeout_ms = navigation_timeout_ms
        self.content_wait_ms = content_wait_ms
        self.content_min_text = content_min_text

    def scrape(self, url: str, deadline: Optional[Deadline] = None) -> ScrapedSnapshot:
        """
        Render ``url`` and extract a snapshot.
        Raises ScrapeTimeout when the shared deadline runs out, ScrapeError otherwise.
        """
        deadline = deadline or Deadline()
        stage = ScrapeStage.INIT
        started = time.monotonic()
        try:
            if deadline.expired():
                raise ScrapeTimeout("session_open", "no time left before browser launch")
            with self._open_session(deadline) as page:
                stage = ScrapeStage.SESSION_OPEN
                page.set_default_timeout(max(1, deadline.cap_ms(DEFAULT_STEP_TIMEOUT_MS)))

                self._navigate(page, url, deadline)
                stage = ScrapeStage.NAVIGATED

                self._wait_for_content(page, url, deadline)
                stage = ScrapeStage.CONTENT_STABLE

                capture = self._capture(page, url)
                snapshot = self.extractor.extract(capture)
                stage = ScrapeStage.EXTRACTED
            return snapshot
        except ScrapeError:
            logger.debug(f"Scrape of {url} {ScrapeStage.FAILED.value} after {stage.value}")
            raise
        except PlaywrightError as exc:
            logger.debug(f"Scrape of {url} {ScrapeStage.FAILED.value} after {stage.value}")
            failed_in = _next_stage(stage)
            if deadline.expired():
                raise ScrapeTimeout(failed_in, str(exc)) from exc
            raise ScrapeError(failed_in, str(exc)) from exc
        except Exception as exc:
            # Extractor or capture bugs fail this candidate only.
            logger.debug(f"Scrape of {url} {ScrapeStage.FAILED.value} after {stage.value}")
            raise ScrapeError(_next_stage(stage), f"{exc.__class__.__name__}: {exc}") from exc
        finally:
            logger.debug(f"Scrape of {url} {ScrapeStage.CLOSED.value} in {time.monotonic() - started:.1f}s")

    def _navigate(self, page: Page, url: str, deadline: Deadline) -> None:
        timeout = deadline.cap_ms(self.navigation_timeout_ms)
        if timeout <= 0:
            raise ScrapeTimeout("navigate", "no time left before navigation")
        response = page.goto(url, wait_until="domcontentloaded", timeout=timeout)
        if response is not None and response.status >= 400:
            raise ScrapeError("navigate", f"HTTP {response.status} for {url}")

    def _wait_for_content(self, page: Page, url: str, deadline: Deadline) -> None:
        """Poll until enough visible text has painted, or the wait runs out."""
        timeout = deadline.cap_ms(self.content_wait_ms)
        if timeout <= 0:
            raise ScrapeTimeout("content_stable", "no time left before content wait")
        try:
            page.wait_for_function(
                CONTENT_READY_JS,
                arg=self.content_min_text,
                polling=CONTENT_POLL_MS,
                timeout=timeout,
            )
        except PlaywrightTimeout as exc:
            if deadline.expired():
                raise ScrapeTimeout("content_stable", str(exc)) from exc
            logger.warning(f"Content of {url} stayed under {self.content_min_text} chars, using partial render.")

    def _capture(self, page: Page, url: str) -> PageCapture:
        dom = page.evaluate(CAPTURE_JS, MAX_TEXT_CHARS) or {}
        text = str(dom.get("text") or "")
        if not text.strip():
            raise ScrapeError("content_stable", "page rendered no visible text")
        return PageCapture(
            url=url,
            title=str(dom.get("title") or "Unknown"),
            text=text,
            html=(page.content() or "")[:MAX_HTML_CHARS],
        )


def _next_stage(completed: ScrapeStage) -> str:
    return {
        ScrapeStage.INIT: "session_open",
        ScrapeStage.SESSION_OPEN: "navigate",
        ScrapeStage.NAVIGATED: "content_stable",
        ScrapeStage.CONTENT_STABLE: "extract",
        ScrapeStage.EXTRACTED: "close",
    }.get(completed, completed.value)
