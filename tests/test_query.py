import random

import pytest

from inuki_search.config import (
    FLOOR_PARAMS,
    PRICE_OPTIONS,
    AREA_OPTIONS,
    SORT_OPTIONS,
    WALKING_TIME_OPTIONS,
)
from inuki_search.models import FilterState, FloorSelection
from inuki_search.query import (
    InitialFilters,
    filters_to_query_params,
    parse_page,
    parse_query_string,
    parse_sort,
    query_params_to_filters,
    to_query_string,
)

REGION_NAMES = ["渋谷区", "新宿区", "港区", "大阪市北区"]
CUISINE_NAMES = ["カフェ", "ラーメン", "焼肉", "バー"]
RESTAURANT_NAMES = ["重飲食可", "軽飲食のみ"]
KEYWORDS = ["", "駅前", "渋谷 カフェ", "A&B=C", "100%"]


def random_filters(rng: random.Random) -> FilterState:
    return FilterState(
        min_rent=rng.choice(["下限なし", *PRICE_OPTIONS]),
        max_rent=rng.choice(["上限なし", *PRICE_OPTIONS]),
        min_area=rng.choice(["下限なし", *AREA_OPTIONS]),
        max_area=rng.choice(["上限なし", *AREA_OPTIONS]),
        is_skeleton=rng.random() < 0.5,
        is_interior_included=rng.random() < 0.5,
        is_new=rng.random() < 0.5,
        floors=FloorSelection(
            **{attr: rng.random() < 0.3 for attr in FLOOR_PARAMS.values()}
        ),
        regions=rng.sample(REGION_NAMES, rng.randint(0, 3)),
        cuisine_types=rng.sample(CUISINE_NAMES, rng.randint(0, 2)),
        allowed_restaurant_types=rng.sample(RESTAURANT_NAMES, rng.randint(0, 2)),
        keyword=rng.choice(KEYWORDS),
        walking_time=rng.choice(WALKING_TIME_OPTIONS),
    )


def test_default_state_produces_no_params():
    assert filters_to_query_params(FilterState()) == {}
    assert to_query_string(FilterState()) == ""


def test_random_round_trips():
    rng = random.Random(20240501)
    for _ in range(50):
        filters = random_filters(rng)
        page = rng.randint(1, 5)
        sort = rng.choice(list(SORT_OPTIONS))

        restored, restored_page, restored_sort = parse_query_string(
            to_query_string(filters, page, sort)
        )

        assert restored == filters
        assert restored_page == page
        assert restored_sort == sort


def test_params_for_selected_values():
    filters = FilterState(
        min_rent="20",
        is_skeleton=True,
        floors=FloorSelection(third_and_above=True),
        regions=["渋谷区", "新宿区"],
        walking_time="5分以内",
    )
    params = filters_to_query_params(filters, page=2, sort="rentAscending")
    assert params == {
        "minRent": "20",
        "isSkeleton": "true",
        "thirdAndAbove": "true",
        "regions": "渋谷区,新宿区",
        "walkingTime": "5分以内",
        "page": "2",
        "sort": "rentAscending",
    }


class TestInitialFilters:
    def test_used_when_param_absent(self):
        filters = query_params_to_filters(
            {}, InitialFilters(region="渋谷区", keyword="駅前")
        )
        assert filters.regions == ["渋谷区"]
        assert filters.keyword == "駅前"

    def test_explicit_empty_param_wins(self):
        filters, _, _ = parse_query_string(
            "regions=&keyword=", InitialFilters(region="渋谷区", keyword="駅前")
        )
        assert filters.regions == []
        assert filters.keyword == ""

    def test_explicit_value_wins(self):
        filters = query_params_to_filters(
            {"regions": "港区"}, InitialFilters(region="渋谷区")
        )
        assert filters.regions == ["港区"]


def test_invalid_walking_time_falls_back():
    filters = query_params_to_filters({"walkingTime": "7分以内"})
    assert filters.walking_time == "指定なし"


def test_non_true_flags_are_false():
    filters = query_params_to_filters({"isSkeleton": "1", "first": "TRUE"})
    assert filters.is_skeleton is False
    assert filters.floors.first is False


@pytest.mark.parametrize(
    "value, expected",
    [(None, 1), ("", 1), ("abc", 1), ("0", 1), ("-3", 1), ("1", 1), (" 4 ", 4)],
)
def test_parse_page(value, expected):
    assert parse_page(value) == expected


def test_parse_sort():
    assert parse_sort("areaDescending") == "areaDescending"
    assert parse_sort("cheapest") == "newest"
    assert parse_sort(None) == "newest"


def test_leading_question_mark_is_ignored():
    filters, page, sort = parse_query_string("?isNew=true&page=3")
    assert filters.is_new is True
    assert page == 3
    assert sort == "newest"
