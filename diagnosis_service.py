"""
diagnosis_service.py - End-to-end place and social diagnoses.

Usage:
    cache = ResultCache()
    places = PlaceDiagnosisService(cache)
    diagnosis, source = places.diagnose("https://naver.me/xYz")
    diagnosis.to_dict()

Collaborators (cache, resolver, scraper, clock) are injected so the pipeline
can be exercised without network or browser.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import config
from diagnosis_errors import DiagnosisError, InvalidUrlError, PlaceIdNotFoundError
from diagnosis_models import PlaceDiagnosis, ResolvedTarget, SocialDiagnosis, SocialProfile
from diagnosis_scoring import score_place, score_social
from keyword_extractor import extract_keywords
from place_resolver import resolve_place_url
from place_scraper import PlaceScraper
from place_urls import PLATFORM as PLACE_PLATFORM
from place_urls import build_scrape_candidates, is_place_platform_url, normalize_url
from result_cache import ResultCache, cache_key
from scrape_orchestrator import Deadline, ScrapeFn, run_candidates
from social_profile import PLATFORM as SOCIAL_PLATFORM
from social_profile import fetch_instagram_profile, normalize_handle

logger = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_LIVE = "live"


class PlaceDiagnosisService:
    def __init__(
        self,
        cache: ResultCache,
        resolver: Callable[[str], ResolvedTarget] = resolve_place_url,
        scrape: Optional[ScrapeFn] = None,
        deadline_seconds: float = config.SCRAPE_DEADLINE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cache = cache
        self.resolver = resolver
        self.scrape = scrape or PlaceScraper().scrape
        self.deadline_seconds = deadline_seconds
        self.clock = clock

    def diagnose(self, raw_url: Optional[str]) -> tuple[PlaceDiagnosis, str]:
        """
        Resolve, scrape and score one place link.
        Returns (diagnosis, source) with source "cache" or "live".
        """
        normalized = normalize_url(raw_url)
        if not normalized or not is_place_platform_url(normalized):
            raise InvalidUrlError(debug={"input": str(raw_url or "")})

        target = self.resolver(normalized)
        logger.info(f"Resolved {normalized} -> id={target.place_id} type={target.type_hint} via {target.resolved_via}")
        if not target.place_id:
            raise PlaceIdNotFoundError(debug={"resolved": target.to_dict()})

        key = cache_key(PLACE_PLATFORM, target.place_id)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Serving place {target.place_id} from cache")
            return cached, SOURCE_CACHE

        candidates = build_scrape_candidates(target.place_id, target.type_hint)
        deadline = Deadline(self.deadline_seconds, clock=self.clock)
        try:
            outcome = run_candidates(candidates, self.scrape, deadline)
        except DiagnosisError as exc:
            # Failures carry the resolution context and are never cached.
            exc.debug["resolved"] = target.to_dict()
            raise

        snapshot = outcome.snapshot
        keywords = extract_keywords(snapshot.full_text)
        diagnosis = PlaceDiagnosis(
            target=target,
            snapshot=snapshot,
            keywords=keywords,
            report=score_place(snapshot, keywords),
            scrape_url=outcome.url,
            scrape_candidates=tuple(candidates),
        )
        self.cache.set(key, diagnosis)
        logger.info(f"Place {target.place_id} scored {diagnosis.report.score} ({diagnosis.report.grade})")
        return diagnosis, SOURCE_LIVE


class SocialDiagnosisService:
    def __init__(
        self,
        cache: ResultCache,
        fetcher: Callable[[str], SocialProfile] = fetch_instagram_profile,
    ):
        self.cache = cache
        self.fetcher = fetcher

    def diagnose(self, raw_handle: Optional[str]) -> tuple[SocialDiagnosis, str]:
        handle = normalize_handle(raw_handle)
        key = cache_key(SOCIAL_PLATFORM, handle)
        cached = self.cache.get(key)
        if cached is not None:
            return cached, SOURCE_CACHE

        profile = self.fetcher(handle)
        diagnosis = SocialDiagnosis(platform=SOCIAL_PLATFORM, profile=profile, report=score_social(profile))
        self.cache.set(key, diagnosis)
        logger.info(f"Profile {handle} scored {diagnosis.report.score} ({diagnosis.report.grade})")
        return diagnosis, SOURCE_LIVE
