import pytest

from diagnosis_errors import DeadlineExceededError, ExhaustedError, ScrapeError, ScrapeTimeout
from diagnosis_models import ScrapedSnapshot
from scrape_orchestrator import Deadline, iter_attempts, run_candidates

CANDIDATES = [
    "https://m.place.naver.com/restaurant/12345",
    "https://m.place.naver.com/place/12345",
    "https://m.place.naver.com/hairshop/12345",
]


class _Clock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class _ScriptedScrape:
    """Plays back one result per call: a snapshot, an exception, or (seconds, result)."""

    def __init__(self, clock, script):
        self.clock = clock
        self.script = list(script)
        self.calls = []

    def __call__(self, url, deadline):
        self.calls.append(url)
        step = self.script.pop(0)
        if isinstance(step, tuple):
            cost, step = step
            self.clock.now += cost
        if isinstance(step, Exception):
            raise step
        return step


def _snapshot(name="ok"):
    return ScrapedSnapshot(place_name=name)


def test_deadline_budget():
    clock = _Clock()
    deadline = Deadline(55, clock=clock)
    assert deadline.remaining() == 55
    assert deadline.cap_ms(20000) == 20000
    clock.now = 50
    assert deadline.cap_ms(20000) == 5000
    assert not deadline.expired()
    clock.now = 55
    assert deadline.expired()
    assert deadline.remaining() == 0
    assert deadline.cap_ms(20000) == 0


def test_first_success_short_circuits():
    clock = _Clock()
    scrape = _ScriptedScrape(clock, [ScrapeError("navigate", "404"), _snapshot("second"), _snapshot("third")])
    outcome = run_candidates(CANDIDATES, scrape, Deadline(55, clock=clock))
    assert outcome.ok
    assert outcome.url == CANDIDATES[1]
    assert outcome.snapshot.place_name == "second"
    assert scrape.calls == CANDIDATES[:2]


def test_all_failures_carry_last_error():
    clock = _Clock()
    errors = [ScrapeError("navigate", "first"), ScrapeError("content_stable", "second"), ScrapeError("extract", "last")]
    scrape = _ScriptedScrape(clock, errors)
    with pytest.raises(ExhaustedError) as exc_info:
        run_candidates(CANDIDATES, scrape, Deadline(55, clock=clock))
    err = exc_info.value
    assert err.code == "SCRAPE_FAILED"
    assert err.status_code == 500
    assert err.last_cause is errors[-1]
    assert "last" in err.debug["message"]
    assert err.attempted == CANDIDATES


def test_deadline_mid_second_candidate_is_timeout():
    clock = _Clock()
    scrape = _ScriptedScrape(
        clock,
        [(20, ScrapeError("navigate", "boom")), (40, ScrapeError("content_stable", "slow"))],
    )
    with pytest.raises(DeadlineExceededError) as exc_info:
        run_candidates(CANDIDATES, scrape, Deadline(55, clock=clock))
    assert exc_info.value.code == "TIMEOUT"
    assert exc_info.value.status_code == 504
    # Third candidate never started
    assert scrape.calls == CANDIDATES[:2]


def test_scrape_timeout_is_timeout_even_with_candidates_left():
    clock = _Clock()
    scrape = _ScriptedScrape(clock, [ScrapeTimeout("navigate", "deadline")])
    with pytest.raises(DeadlineExceededError):
        run_candidates(CANDIDATES, scrape, Deadline(55, clock=clock))
    assert scrape.calls == CANDIDATES[:1]


def test_success_after_deadline_lost_the_race():
    clock = _Clock()
    scrape = _ScriptedScrape(clock, [(60, _snapshot())])
    with pytest.raises(DeadlineExceededError):
        run_candidates(CANDIDATES, scrape, Deadline(55, clock=clock))


def test_deadline_is_shared_not_reset_per_candidate():
    clock = _Clock()
    seen = []

    def scrape(url, deadline):
        seen.append(deadline.remaining())
        clock.now += 10
        raise ScrapeError("navigate", "nope")

    with pytest.raises(ExhaustedError):
        run_candidates(CANDIDATES, scrape, Deadline(55, clock=clock))
    assert seen == [55, 45, 35]


def test_iter_attempts_is_sequential_and_lazy():
    clock = _Clock()
    scrape = _ScriptedScrape(clock, [ScrapeError("navigate", "x"), _snapshot()])
    attempts = iter_attempts(CANDIDATES, scrape, Deadline(55, clock=clock))
    first = next(attempts)
    assert not first.ok and scrape.calls == CANDIDATES[:1]
    second = next(attempts)
    assert second.ok and scrape.calls == CANDIDATES[:2]


def test_no_candidates_is_exhausted():
    with pytest.raises(ExhaustedError) as exc_info:
        run_candidates([], lambda url, deadline: _snapshot(), Deadline(55))
    assert exc_info.value.last_cause is None


def test_unexpected_error_moves_on_to_next_candidate():
    clock = _Clock()
    scrape = _ScriptedScrape(clock, [RuntimeError("extractor blew up"), _snapshot("second")])
    outcome = run_candidates(CANDIDATES, scrape, Deadline(55, clock=clock))
    assert outcome.ok
    assert outcome.url == CANDIDATES[1]
    assert scrape.calls == CANDIDATES[:2]


def test_unexpected_errors_everywhere_exhaust_with_last_cause():
    clock = _Clock()
    scrape = _ScriptedScrape(clock, [RuntimeError("a"), ValueError("b"), KeyError("c")])
    with pytest.raises(ExhaustedError) as exc_info:
        run_candidates(CANDIDATES, scrape, Deadline(55, clock=clock))
    assert isinstance(exc_info.value.last_cause, ScrapeError)
    assert "KeyError" in exc_info.value.debug["message"]
    assert exc_info.value.attempted == CANDIDATES
