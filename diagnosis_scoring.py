# diagnosis_scoring.py
from __future__ import annotations

import math

from diagnosis_models import KeywordSet, ScoreBreakdownItem, ScoreReport, ScrapedSnapshot, SocialProfile

# Deterministic: same snapshot, same score. Every point awarded or withheld
# is explained in a breakdown note; recommendations never change the score.

MAX_SCORE = 100

GRADE_BANDS = [(90, "S"), (70, "A"), (50, "B"), (30, "C")]

DIRECTIONS_MAX = 15
DIRECTIONS_TARGET_CHARS = 200
STORE_INFO_MAX = 25
STORE_INFO_TARGET_CHARS = 300
VISIT_REVIEW_MAX = 15
VISIT_REVIEW_TARGET = 50
BLOG_REVIEW_MAX = 15
BLOG_REVIEW_TARGET = 30
MENU_PRESENT_POINTS = 10
MENU_DESCRIBED_POINTS = 10
MENU_DESCRIBED_SHARE = 0.5
PHOTO_POINTS = 5
KEYWORD_POINTS = 5
KEYWORD_TARGET = 3
LOW_SCORE_FLOOR = 50

FOLLOWERS_MAX = 50
FOLLOWERS_TARGET = 10000
POSTS_MAX = 30
POSTS_TARGET = 300
AUDIENCE_MAX = 20
AUDIENCE_RATIO_TARGET = 2.0


def grade_for_score(score: int) -> str:
    for floor, grade in GRADE_BANDS:
        if score >= floor:
            return grade
    return "D"


def scaled(value: float, target: float, max_points: int) -> int:
    """Linear points for value in [0, target], capped at max_points."""
    if target <= 0 or value <= 0:
        return 0
    return int(math.floor(max_points * min(value, target) / target))


def _directions(snapshot: ScrapedSnapshot) -> ScoreBreakdownItem:
    length = len(snapshot.directions_text or "")
    points = scaled(length, DIRECTIONS_TARGET_CHARS, DIRECTIONS_MAX)
    if length == 0:
        notes = "찾아가는 길 안내가 없습니다."
    elif points < DIRECTIONS_MAX:
        notes = f"찾아가는 길 안내 {length}자 ({DIRECTIONS_TARGET_CHARS}자 이상이면 만점)"
    else:
        notes = f"찾아가는 길 안내가 충분합니다 ({length}자)."
    return ScoreBreakdownItem("길찾기 안내", points, DIRECTIONS_MAX, notes)


def _store_info(snapshot: ScrapedSnapshot) -> ScoreBreakdownItem:
    length = len(snapshot.store_info_text or "")
    points = scaled(length, STORE_INFO_TARGET_CHARS, STORE_INFO_MAX)
    if length == 0:
        notes = "매장 소개 정보가 없습니다."
    elif points < STORE_INFO_MAX:
        notes = f"매장 정보 {length}자 ({STORE_INFO_TARGET_CHARS}자 이상이면 만점)"
    else:
        notes = f"매장 정보가 충분합니다 ({length}자)."
    return ScoreBreakdownItem("매장 정보", points, STORE_INFO_MAX, notes)


def _reviews(snapshot: ScrapedSnapshot) -> ScoreBreakdownItem:
    visit = max(0, snapshot.receipt_review_count)
    blog = max(0, snapshot.blog_review_count)
    visit_points = scaled(visit, VISIT_REVIEW_TARGET, VISIT_REVIEW_MAX)
    blog_points = scaled(blog, BLOG_REVIEW_TARGET, BLOG_REVIEW_MAX)
    notes = (
        f"방문자 리뷰 {visit}개 ({visit_points}/{VISIT_REVIEW_MAX}), "
        f"블로그 리뷰 {blog}개 ({blog_points}/{BLOG_REVIEW_MAX})"
    )
    return ScoreBreakdownItem("리뷰 활동", visit_points + blog_points, VISIT_REVIEW_MAX + BLOG_REVIEW_MAX, notes)


def _described_share(snapshot: ScrapedSnapshot) -> float:
    if snapshot.menu_count <= 0:
        return 0.0
    described = min(max(0, snapshot.menu_with_description_count), snapshot.menu_count)
    return described / snapshot.menu_count


def _menu(snapshot: ScrapedSnapshot) -> ScoreBreakdownItem:
    cap = MENU_PRESENT_POINTS + MENU_DESCRIBED_POINTS
    if snapshot.menu_count <= 0:
        return ScoreBreakdownItem("메뉴 완성도", 0, cap, "등록된 메뉴를 찾지 못했습니다.")
    share = _described_share(snapshot)
    points = MENU_PRESENT_POINTS
    if share > MENU_DESCRIBED_SHARE:
        points += MENU_DESCRIBED_POINTS
    notes = f"메뉴 {snapshot.menu_count}개 중 설명이 있는 메뉴 {share:.0%}"
    return ScoreBreakdownItem("메뉴 완성도", points, cap, notes)


def _photos_keywords(snapshot: ScrapedSnapshot, keywords: KeywordSet) -> ScoreBreakdownItem:
    points = 0
    notes = []
    if snapshot.photo_count > 0:
        points += PHOTO_POINTS
        notes.append("사진 있음")
    else:
        notes.append("사진 없음")
    if len(keywords.main) >= KEYWORD_TARGET:
        points += KEYWORD_POINTS
        notes.append(f"대표 키워드 {len(keywords.main)}개")
    else:
        notes.append(f"대표 키워드 {len(keywords.main)}개 ({KEYWORD_TARGET}개 이상 필요)")
    return ScoreBreakdownItem("사진·키워드", points, PHOTO_POINTS + KEYWORD_POINTS, ", ".join(notes))


def _place_recommendations(snapshot: ScrapedSnapshot, keywords: KeywordSet, total: int) -> list[str]:
    recs: list[str] = []
    if len(snapshot.directions_text or "") < DIRECTIONS_TARGET_CHARS:
        recs.append("찾아가는 길에 주차, 대중교통, 주변 랜드마크 정보를 자세히 적어주세요.")
    if len(snapshot.store_info_text or "") < STORE_INFO_TARGET_CHARS:
        recs.append(f"매장 소개를 {STORE_INFO_TARGET_CHARS}자 이상으로 보강해 주요 키워드를 자연스럽게 담아주세요.")
    if snapshot.receipt_review_count < VISIT_REVIEW_TARGET:
        recs.append(f"영수증 리뷰 이벤트 등으로 방문자 리뷰를 {VISIT_REVIEW_TARGET}개 이상 확보해보세요.")
    if snapshot.blog_review_count < BLOG_REVIEW_TARGET:
        recs.append(f"체험단이나 블로그 협업으로 블로그 리뷰를 {BLOG_REVIEW_TARGET}개 이상 늘려보세요.")
    if snapshot.menu_count <= 0:
        recs.append("대표 메뉴와 가격을 등록하고 메뉴마다 설명을 붙여주세요.")
    elif snapshot.menu_with_description_count <= 0:
        recs.append("등록된 메뉴에 설명이 하나도 없습니다. 메뉴별 특징과 재료를 적어주세요.")
    elif _described_share(snapshot) <= MENU_DESCRIBED_SHARE:
        recs.append("메뉴 절반 이상에 설명을 추가해보세요.")
    if snapshot.photo_count <= 0:
        recs.append("매장 내부, 외관, 대표 메뉴 사진을 등록해주세요.")
    if len(keywords.main) < KEYWORD_TARGET:
        recs.append("소개글과 메뉴 설명에 고객이 검색할 키워드를 반복적으로 사용해주세요.")
    if total < LOW_SCORE_FLOOR:
        recs.append("기본 정보부터 채워 플레이스 노출 경쟁력을 높이는 것이 우선입니다.")
    return recs


def score_place(snapshot: ScrapedSnapshot, keywords: KeywordSet) -> ScoreReport:
    breakdown = (
        _directions(snapshot),
        _store_info(snapshot),
        _reviews(snapshot),
        _menu(snapshot),
        _photos_keywords(snapshot, keywords),
    )
    total = min(MAX_SCORE, sum(item.score for item in breakdown))
    return ScoreReport(
        score=total,
        grade=grade_for_score(total),
        breakdown=breakdown,
        recommendations=tuple(_place_recommendations(snapshot, keywords, total)),
    )


def score_social(profile: SocialProfile) -> ScoreReport:
    """Simplified variant for social profiles: three categories, same grade bands."""
    ratio = profile.followers / max(profile.following, 1)
    breakdown = (
        ScoreBreakdownItem(
            "팔로워",
            scaled(profile.followers, FOLLOWERS_TARGET, FOLLOWERS_MAX),
            FOLLOWERS_MAX,
            f"팔로워 {profile.followers:,}명 ({FOLLOWERS_TARGET:,}명 이상이면 만점)",
        ),
        ScoreBreakdownItem(
            "게시물",
            scaled(profile.posts, POSTS_TARGET, POSTS_MAX),
            POSTS_MAX,
            f"게시물 {profile.posts:,}개 ({POSTS_TARGET}개 이상이면 만점)",
        ),
        ScoreBreakdownItem(
            "팔로워 비율",
            scaled(ratio, AUDIENCE_RATIO_TARGET, AUDIENCE_MAX),
            AUDIENCE_MAX,
            f"팔로워/팔로잉 비율 {ratio:.1f}",
        ),
    )
    total = min(MAX_SCORE, sum(item.score for item in breakdown))

    tips: list[str] = []
    if profile.followers < FOLLOWERS_TARGET:
        tips.append("릴스와 해시태그를 활용해 신규 팔로워 유입을 늘려보세요.")
    if profile.posts < POSTS_TARGET:
        tips.append("주 3회 이상 꾸준히 게시물을 올려 계정 활동성을 높여보세요.")
    if ratio < AUDIENCE_RATIO_TARGET:
        tips.append("무분별한 맞팔로우를 줄이고 타깃 고객 위주로 관계를 관리해보세요.")
    if total < LOW_SCORE_FLOOR:
        tips.append("프로필 소개와 하이라이트를 정비해 첫인상을 개선해보세요.")

    return ScoreReport(score=total, grade=grade_for_score(total), breakdown=breakdown, recommendations=tuple(tips))
