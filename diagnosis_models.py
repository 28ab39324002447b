"""Value types passed between pipeline stages.

All of them are frozen: a stage produces a new value instead of mutating the
one it received, which is what lets finished diagnoses sit in the cache.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class ResolvedTarget:
    input_url: str
    normalized_url: str
    final_url: str
    place_id: Optional[str]
    type_hint: Optional[str]
    canonical_url: str
    resolved_via: str = "unresolved"  # direct | redirect | body | unresolved

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputUrl": self.input_url,
            "normalizedUrl": self.normalized_url,
            "finalUrl": self.final_url,
            "placeId": self.place_id,
            "typeHint": self.type_hint,
            "canonicalUrl": self.canonical_url,
            "resolvedVia": self.resolved_via,
        }


@dataclass(frozen=True)
class PageCapture:
    """Bounded raw capture of one rendered page."""

    url: str
    title: str
    text: str
    html: str = ""


@dataclass(frozen=True)
class ScrapedSnapshot:
    place_name: str
    directions_text: str = ""
    store_info_text: str = ""
    photo_count: int = 0
    blog_review_count: int = 0
    receipt_review_count: int = 0
    menu_count: int = 0
    menu_with_description_count: int = 0
    full_text: str = ""

    def metrics(self) -> dict[str, Any]:
        # Lengths, not the texts themselves: responses stay small.
        return {
            "directionsTextLength": len(self.directions_text),
            "storeInfoTextLength": len(self.store_info_text),
            "photoCount": self.photo_count,
            "blogReviewCount": self.blog_review_count,
            "receiptReviewCount": self.receipt_review_count,
            "menuCount": self.menu_count,
            "menuWithDescriptionCount": self.menu_with_description_count,
        }


@dataclass(frozen=True)
class KeywordSet:
    main: Tuple[str, ...] = ()
    sub: Tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        return {"main": list(self.main), "sub": list(self.sub)}


@dataclass(frozen=True)
class ScoreBreakdownItem:
    name: str
    score: int
    max: int
    notes: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "score": self.score, "max": self.max, "notes": self.notes}


@dataclass(frozen=True)
class ScoreReport:
    score: int
    grade: str
    breakdown: Tuple[ScoreBreakdownItem, ...] = ()
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PlaceDiagnosis:
    target: ResolvedTarget
    snapshot: ScrapedSnapshot
    keywords: KeywordSet
    report: ScoreReport
    scrape_url: str
    scrape_candidates: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputUrl": self.target.input_url,
            "finalUrl": self.target.final_url,
            "canonicalUrl": self.target.canonical_url,
            "placeId": self.target.place_id,
            "typeHint": self.target.type_hint,
            "scrapeUrl": self.scrape_url,
            "scrapeCandidates": list(self.scrape_candidates),
            "placeName": self.snapshot.place_name,
            "metrics": self.snapshot.metrics(),
            "keywords": self.keywords.to_dict(),
            "score": self.report.score,
            "grade": self.report.grade,
            "scoreBreakdown": [item.to_dict() for item in self.report.breakdown],
            "recommendations": list(self.report.recommendations),
        }


@dataclass(frozen=True)
class SocialProfile:
    handle: str
    followers: int
    following: int
    posts: int


@dataclass(frozen=True)
class SocialDiagnosis:
    platform: str
    profile: SocialProfile
    report: ScoreReport

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "username": self.profile.handle,
            "followers": self.profile.followers,
            "following": self.profile.following,
            "posts": self.profile.posts,
            "score": self.report.score,
            "grade": self.report.grade,
            "scoreBreakdown": [item.to_dict() for item in self.report.breakdown],
            "tips": list(self.report.recommendations),
        }
