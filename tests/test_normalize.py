from datetime import timedelta

from inuki_search.models import EPOCH
from inuki_search.normalize import (
    format_floors,
    format_number,
    is_new_property,
    normalize_property,
    parse_datetime,
    resolve_registration_date,
)

from conftest import NOW, broken_link, iso, link, make_entry


class TestIsNewProperty:
    def test_exactly_two_days_old_is_new(self):
        entry = make_entry("p1", registrationDate=iso(NOW - timedelta(days=2)))
        assert is_new_property(entry, now=NOW) is True

    def test_just_over_two_days_is_not_new(self):
        entry = make_entry(
            "p1",
            registrationDate=iso(NOW - timedelta(days=2, milliseconds=1)),
        )
        assert is_new_property(entry, now=NOW) is False

    def test_flag_wins_regardless_of_age(self):
        entry = make_entry(
            "p1", registrationDate=iso(NOW - timedelta(days=400)), isNew=True
        )
        assert is_new_property(entry, now=NOW) is True

    def test_falls_back_to_created_at(self):
        entry = make_entry("p1", created_at=NOW - timedelta(hours=5))
        del entry["fields"]["registrationDate"]
        assert is_new_property(entry, now=NOW) is True

    def test_no_flag_and_no_dates(self):
        entry = {"sys": {"id": "p1"}, "fields": {"title": "日付なし"}}
        assert is_new_property(entry, now=NOW) is False

    def test_window_moves_with_now(self):
        entry = make_entry("p1", registrationDate=iso(NOW - timedelta(days=1)))
        assert is_new_property(entry, now=NOW) is True
        assert is_new_property(entry, now=NOW + timedelta(days=2)) is False


class TestNormalizeProperty:
    def test_missing_fields_become_zero_values(self):
        prop = normalize_property({"sys": {"id": "p1"}, "fields": {}}, now=NOW)
        assert prop.id == "p1"
        assert prop.title == ""
        assert prop.rent == 0
        assert prop.floor_area_tsubo == 0.0
        assert prop.walking_time_to_station == 0
        assert prop.floors == ()
        assert prop.regions == ()
        assert prop.is_skeleton is False
        assert prop.created_at == EPOCH
        assert prop.registration_date == EPOCH

    def test_broken_links_are_dropped(self):
        entry = make_entry(
            "p1",
            regions=[link("r1", "渋谷区"), broken_link("r-missing")],
            cuisineType=[broken_link("c1")],
        )
        prop = normalize_property(entry, now=NOW)
        assert prop.regions == ("渋谷区",)
        assert prop.cuisine_types == ()

    def test_numeric_strings_are_parsed(self):
        entry = make_entry("p1", rent="35", floorAreaTsubo="12.5", walkingTimeToStation="4")
        prop = normalize_property(entry, now=NOW)
        assert prop.rent == 35
        assert prop.floor_area_tsubo == 12.5
        assert prop.walking_time_to_station == 4

    def test_detail_rows_include_former_business(self):
        entry = make_entry("p1", interiorTransferFee="300万円（カフェ）")
        prop = normalize_property(entry, now=NOW)
        labels = [d.label for d in prop.details]
        assert "希望譲渡額\n/前業態" in labels
        assert prop.details[-1].value == "300万円（カフェ）"

    def test_registration_date_resolution(self):
        created = NOW - timedelta(days=10)
        entry = make_entry("p1", created_at=created)
        entry["fields"]["registrationDate"] = "壊れた日付"
        assert resolve_registration_date(entry) == created


def test_parse_datetime_variants():
    assert parse_datetime("2024-05-01T00:00:00Z").tzinfo is not None
    assert parse_datetime("2024-05-01").year == 2024
    assert parse_datetime("") is None
    assert parse_datetime(None) is None
    assert parse_datetime("not a date") is None


def test_format_helpers():
    assert format_floors(("B1", "1")) == "地下1階、1階"
    assert format_floors(()) == "-"
    assert format_number(1234567) == "1,234,567"
    assert format_number(None) == "0"
