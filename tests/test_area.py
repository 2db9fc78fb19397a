from datetime import timedelta

import pytest

from inuki_search.area import load_area_overview
from inuki_search.search import AreaNotFoundError

from conftest import AREA, CUISINE_TYPES, NOW, FakeContentful, build_fake, link, make_entry


def test_overview_collects_sections():
    entries = [
        make_entry("pick", pickupOrder=1, regions=[link("r-shibuya", "渋谷区")]),
        make_entry("fresh", created_at=NOW - timedelta(hours=1)),
        make_entry("old", created_at=NOW - timedelta(days=40)),
    ]
    overview = load_area_overview(build_fake(entries), "kanto", now=NOW)

    assert overview.area.slug == "kanto"
    assert [p.id for p in overview.featured_properties] == ["pick"]
    assert len(overview.latest_properties) == 3
    assert [r.name for r in overview.search_regions] == ["新宿区", "渋谷区"]
    assert [c.name for c in overview.cuisine_types] == ["カフェ", "ラーメン"]
    assert overview.total_count == 3
    assert overview.new_count == 1


def test_area_without_regions_returns_empty_overview():
    fake = FakeContentful({"area": [AREA], "cuisineType": CUISINE_TYPES})
    overview = load_area_overview(fake, "kanto", now=NOW)
    assert overview.featured_properties == []
    assert overview.total_count == 0
    assert len(overview.cuisine_types) == 2
    assert fake.property_queries() == []


def test_unknown_area():
    with pytest.raises(AreaNotFoundError):
        load_area_overview(build_fake([]), "tohoku", now=NOW)


def test_regions_with_zero_order_get_no_search_button():
    regions = [
        {"sys": {"id": "r-zero"}, "fields": {"name": "千代田区", "order": 0}},
        {"sys": {"id": "r-one"}, "fields": {"name": "中央区", "order": 1}},
    ]
    fake = FakeContentful(
        {"area": [AREA], "region": regions, "cuisineType": CUISINE_TYPES}
    )
    overview = load_area_overview(fake, "kanto", now=NOW)
    assert [r.name for r in overview.search_regions] == ["中央区"]
