import dataclasses

import pytest

from diagnosis_models import KeywordSet, ScrapedSnapshot, SocialProfile
from diagnosis_scoring import grade_for_score, score_place, score_social

FOUR_KEYWORDS = KeywordSet(main=("파스타", "와인", "연남동", "생면"))


def _by_name(report):
    return {item.name: item for item in report.breakdown}


def test_reference_listing_scores_b():
    snapshot = ScrapedSnapshot(
        place_name="연남 파스타 하우스",
        directions_text="",
        store_info_text="가" * 600,
        photo_count=10,
        blog_review_count=20,
        receipt_review_count=80,
        menu_count=0,
        menu_with_description_count=0,
    )
    report = score_place(snapshot, FOUR_KEYWORDS)
    items = _by_name(report)

    assert items["매장 정보"].score == 25
    assert items["리뷰 활동"].score == 25
    assert items["메뉴 완성도"].score == 0
    assert items["사진·키워드"].score == 10
    assert items["길찾기 안내"].score == 0
    assert report.score == 60
    assert report.grade == "B"
    assert any("메뉴" in rec for rec in report.recommendations)


def test_full_listing_caps_at_100():
    snapshot = ScrapedSnapshot(
        place_name="x",
        directions_text="길" * 500,
        store_info_text="정" * 5000,
        photo_count=300,
        blog_review_count=10_000,
        receipt_review_count=10_000,
        menu_count=10,
        menu_with_description_count=10,
    )
    report = score_place(snapshot, FOUR_KEYWORDS)
    assert report.score == 100
    assert report.grade == "S"
    assert report.recommendations == ()
    for item in report.breakdown:
        assert item.score == item.max


def test_empty_listing_scores_zero():
    report = score_place(ScrapedSnapshot(place_name="x"), KeywordSet())
    assert report.score == 0
    assert report.grade == "D"
    assert [item.max for item in report.breakdown] == [15, 25, 30, 20, 10]
    assert len(report.recommendations) >= 5


def test_menu_needs_majority_descriptions():
    base = ScrapedSnapshot(place_name="x", menu_count=10)
    half = score_place(dataclasses.replace(base, menu_with_description_count=5), KeywordSet())
    most = score_place(dataclasses.replace(base, menu_with_description_count=6), KeywordSet())
    none = score_place(base, KeywordSet())
    assert _by_name(none)["메뉴 완성도"].score == 10
    assert _by_name(half)["메뉴 완성도"].score == 10
    assert _by_name(most)["메뉴 완성도"].score == 20
    assert any("설명이 하나도" in rec for rec in none.recommendations)


def test_review_points_scale_independently():
    report = score_place(ScrapedSnapshot(place_name="x", receipt_review_count=25, blog_review_count=15), KeywordSet())
    assert _by_name(report)["리뷰 활동"].score == 7 + 7


@pytest.mark.parametrize(
    "field,values",
    [
        ("directions_text", ["", "a" * 50, "a" * 199, "a" * 200, "a" * 1000]),
        ("store_info_text", ["", "a" * 100, "a" * 299, "a" * 300]),
        ("receipt_review_count", [0, 1, 49, 50, 51, 5000]),
        ("blog_review_count", [0, 10, 29, 30, 31]),
        ("photo_count", [0, 1, 100]),
        ("menu_with_description_count", [0, 1, 2, 3, 4]),
    ],
)
def test_score_is_monotonic_per_metric(field, values):
    base = ScrapedSnapshot(place_name="x", menu_count=4, receipt_review_count=10, store_info_text="a" * 120)
    scores = [score_place(dataclasses.replace(base, **{field: v}), KeywordSet()).score for v in values]
    assert scores == sorted(scores)
    assert all(0 <= s <= 100 for s in scores)


def test_breakdown_items_within_bounds():
    snapshot = ScrapedSnapshot(place_name="x", menu_count=3, menu_with_description_count=99, receipt_review_count=-5)
    for item in score_place(snapshot, KeywordSet()).breakdown:
        assert 0 <= item.score <= item.max


@pytest.mark.parametrize(
    "score,grade",
    [(100, "S"), (90, "S"), (89, "A"), (70, "A"), (69, "B"), (50, "B"), (49, "C"), (30, "C"), (29, "D"), (0, "D")],
)
def test_grade_bands(score, grade):
    assert grade_for_score(score) == grade


def test_social_score():
    report = score_social(SocialProfile(handle="cafe", followers=5000, following=500, posts=150))
    items = _by_name(report)
    assert items["팔로워"].score == 25
    assert items["게시물"].score == 15
    assert items["팔로워 비율"].score == 20
    assert report.score == 60
    assert report.grade == "B"
    assert len(report.recommendations) == 2


def test_social_score_with_no_following():
    report = score_social(SocialProfile(handle="new", followers=0, following=0, posts=0))
    assert report.score == 0
    assert report.grade == "D"
