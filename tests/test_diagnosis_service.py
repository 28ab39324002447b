from functools import partial

import pytest

import place_resolver
from diagnosis_errors import (
    DeadlineExceededError,
    ExhaustedError,
    InvalidUrlError,
    PlaceIdNotFoundError,
    ScrapeError,
)
from diagnosis_models import ResolvedTarget, ScrapedSnapshot, SocialProfile
from diagnosis_service import PlaceDiagnosisService, SocialDiagnosisService
from result_cache import ResultCache

SNAPSHOT = ScrapedSnapshot(
    place_name="연남 파스타 하우스",
    store_info_text="가" * 600,
    receipt_review_count=80,
    blog_review_count=20,
    photo_count=10,
    full_text="파스타 파스타 파스타 와인 와인 연남동 연남동 생면 생면 " * 3,
)


class _Clock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class _Scrape:
    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    def __call__(self, url, deadline):
        self.calls.append(url)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _resolved(url, place_id="12345", type_hint="restaurant"):
    return ResolvedTarget(
        input_url=url,
        normalized_url=url,
        final_url=url,
        place_id=place_id,
        type_hint=type_hint,
        canonical_url=f"https://map.naver.com/p/entry/place/{place_id}" if place_id else url,
        resolved_via="direct" if place_id else "unresolved",
    )


def _service(scrape, resolver=_resolved, cache=None, **kwargs):
    return PlaceDiagnosisService(cache or ResultCache(), resolver=resolver, scrape=scrape, **kwargs)


def test_live_diagnosis_then_cache_hit():
    scrape = _Scrape([SNAPSHOT])
    service = _service(scrape)

    diagnosis, source = service.diagnose("https://m.place.naver.com/restaurant/12345")
    assert source == "live"
    assert diagnosis.report.score == 60
    assert diagnosis.scrape_url == "https://m.place.naver.com/restaurant/12345"
    assert diagnosis.keywords.main[0] == "파스타"

    again, source = service.diagnose("https://m.place.naver.com/restaurant/12345")
    assert source == "cache"
    assert again is diagnosis
    assert len(scrape.calls) == 1


def test_cache_is_keyed_by_place_id_not_url():
    scrape = _Scrape([SNAPSHOT])
    service = _service(scrape)
    service.diagnose("https://m.place.naver.com/restaurant/12345")
    _, source = service.diagnose("https://map.naver.com/p/entry/place/12345")
    assert source == "cache"


def test_failures_are_not_cached():
    scrape = _Scrape([ScrapeError("navigate", "a")] * 3 + [SNAPSHOT])
    cache = ResultCache()
    service = _service(scrape, cache=cache)

    with pytest.raises(ExhaustedError) as exc_info:
        service.diagnose("https://m.place.naver.com/restaurant/12345")
    assert exc_info.value.debug["resolved"]["placeId"] == "12345"
    assert len(cache) == 0

    _, source = service.diagnose("https://m.place.naver.com/restaurant/12345")
    assert source == "live"


def test_deadline_is_reported_as_timeout():
    clock = _Clock()

    def slow(url, deadline):
        clock.now += 60
        raise ScrapeError("content_stable", "still loading")

    service = _service(slow, clock=clock, deadline_seconds=55)
    with pytest.raises(DeadlineExceededError):
        service.diagnose("https://m.place.naver.com/restaurant/12345")


@pytest.mark.parametrize("raw", [None, "", "   ", "https://example.com/place/12345", "https://notnaver.com/x"])
def test_non_place_links_are_invalid(raw):
    service = _service(_Scrape([]))
    with pytest.raises(InvalidUrlError):
        service.diagnose(raw)


def test_missing_place_id_stops_before_scraping():
    scrape = _Scrape([])
    service = _service(scrape, resolver=lambda url: _resolved(url, place_id=None, type_hint=None))
    with pytest.raises(PlaceIdNotFoundError) as exc_info:
        service.diagnose("https://naver.me/broken")
    assert exc_info.value.status_code == 422
    assert exc_info.value.debug["resolved"]["finalUrl"] == "https://naver.me/broken"
    assert scrape.calls == []


class _Resp:
    def __init__(self, status_code, url, headers=None, body=b""):
        self.status_code = status_code
        self.url = url
        self.headers = headers or {}
        self._body = body
        self.encoding = "utf-8"

    def iter_content(self, chunk_size=16384):
        yield self._body

    def close(self):
        self.closed = True


class _Session:
    def __init__(self, responses):
        self._responses = list(responses)

    def get(self, url, headers=None, timeout=None, stream=None, allow_redirects=None):
        return self._responses.pop(0)


def test_short_link_resolves_then_falls_back_to_generic_candidate(monkeypatch):
    monkeypatch.setattr(place_resolver, "validate_url", lambda _u: None)
    session = _Session([
        _Resp(302, "https://naver.me/xYz", {"Location": "https://m.place.naver.com/hairshop/12345/home"}),
    ])
    resolver = partial(place_resolver.resolve_place_url, session=session)
    scrape = _Scrape([ScrapeError("navigate", "status 404"), SNAPSHOT])
    service = _service(scrape, resolver=resolver)

    diagnosis, source = service.diagnose("naver.me/xYz")
    assert source == "live"
    assert diagnosis.target.place_id == "12345"
    assert diagnosis.target.type_hint == "hairshop"
    assert scrape.calls == [
        "https://m.place.naver.com/hairshop/12345",
        "https://m.place.naver.com/place/12345",
    ]
    body = diagnosis.to_dict()
    assert body["canonicalUrl"] == "https://map.naver.com/p/entry/place/12345"
    assert body["scrapeUrl"] == "https://m.place.naver.com/place/12345"
    assert body["scrapeCandidates"][-1] == "https://m.place.naver.com/restaurant/12345"


def test_social_diagnosis_is_cached_per_handle():
    calls = []

    def fetcher(handle):
        calls.append(handle)
        return SocialProfile(handle=handle, followers=5000, following=500, posts=150)

    service = SocialDiagnosisService(ResultCache(), fetcher=fetcher)
    diagnosis, source = service.diagnose("@Cafe.Yeonnam")
    assert source == "live"
    assert diagnosis.to_dict()["username"] == "cafe.yeonnam"
    assert diagnosis.report.score == 60

    _, source = service.diagnose("cafe.yeonnam")
    assert source == "cache"
    assert calls == ["cafe.yeonnam"]
