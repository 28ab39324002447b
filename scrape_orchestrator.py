"""
scrape_orchestrator.py - Sequential candidate attempts under one shared deadline.

Usage:
    deadline = Deadline(55)
    outcome = run_candidates(candidates, scraper.scrape, deadline)
    outcome.snapshot, outcome.url

Candidates are tried one at a time, never concurrently: at most one browser
is alive per request and "first success" is reproducible.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

import config
from diagnosis_errors import DeadlineExceededError, ExhaustedError, ScrapeError, ScrapeTimeout
from diagnosis_models import ScrapedSnapshot

logger = logging.getLogger(__name__)


class Deadline:
    """Wall-clock budget shared by every attempt of one request. Never reset."""

    def __init__(self, seconds: float = config.SCRAPE_DEADLINE_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.seconds = seconds
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def cap_ms(self, step_ms: float) -> int:
        """Timeout for one blocking step: its own limit or what is left, whichever is smaller."""
        return int(min(step_ms, self.remaining() * 1000))


ScrapeFn = Callable[[str, Deadline], ScrapedSnapshot]


@dataclass(frozen=True)
class AttemptOutcome:
    url: str
    snapshot: Optional[ScrapedSnapshot] = None
    error: Optional[ScrapeError] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.snapshot is not None


def iter_attempts(candidates: Iterable[str], scrape: ScrapeFn, deadline: Deadline) -> Iterator[AttemptOutcome]:
    """
    Yield one outcome per attempted candidate, strictly in order.
    No candidate is started once the deadline has passed.
    """
    for url in candidates:
        if deadline.expired():
            return
        started = time.monotonic()
        try:
            snapshot = scrape(url, deadline)
        except ScrapeError as exc:
            yield AttemptOutcome(url=url, error=exc, elapsed=time.monotonic() - started)
            continue
        except Exception as exc:
            # Any failure of one candidate moves on to the next.
            error = ScrapeError("scrape", f"{exc.__class__.__name__}: {exc}")
            yield AttemptOutcome(url=url, error=error, elapsed=time.monotonic() - started)
            continue
        yield AttemptOutcome(url=url, snapshot=snapshot, elapsed=time.monotonic() - started)


def run_candidates(candidates: Iterable[str], scrape: ScrapeFn, deadline: Deadline) -> AttemptOutcome:
    """
    First successful attempt wins.

    Raises DeadlineExceededError if the deadline passes before a success
    (a result that arrives late lost the race), ExhaustedError with the
    last attempt's error once every candidate has failed.
    """
    attempted: list[str] = []
    last_error: Optional[ScrapeError] = None

    for outcome in iter_attempts(candidates, scrape, deadline):
        attempted.append(outcome.url)
        if deadline.expired() or isinstance(outcome.error, ScrapeTimeout):
            logger.warning(f"Scrape deadline of {deadline.seconds}s elapsed during {outcome.url}")
            raise DeadlineExceededError(debug={"attempted": attempted, "message": str(outcome.error or "")})
        if outcome.ok:
            logger.info(f"Scraped {outcome.url} in {outcome.elapsed:.1f}s (attempt {len(attempted)})")
            return outcome
        logger.warning(f"Scrape attempt failed for {outcome.url}: {outcome.error}")
        last_error = outcome.error

    if deadline.expired():
        raise DeadlineExceededError(debug={"attempted": attempted})
    raise ExhaustedError(last_cause=last_error, attempted=attempted)
