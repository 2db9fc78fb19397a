from datetime import timedelta

import pytest

from inuki_search.detail import PropertyNotFoundError, build_detail_rows, load_property_detail
from inuki_search.unlock import UnlockCookieSerializer, create_property_unlock_cookie

from conftest import NOW, build_fake, iso, link, make_entry

SERIALIZER = UnlockCookieSerializer("secret")


def detail_entry(**fields):
    fields.setdefault("address", "東京都渋谷区道玄坂1-1")
    fields.setdefault("stationName1", "渋谷")
    fields.setdefault("walkingTimeToStation", 3)
    fields.setdefault("rent", 35)
    fields.setdefault("nonRefundableDeposit", "2ヶ月")
    fields.setdefault("floors", ["1"])
    fields.setdefault("cuisineType", [link("c-cafe", "カフェ")])
    return make_entry("entry-1", **fields)


def test_locked_rows_hidden_until_unlocked():
    fake = build_fake([detail_entry()])

    locked = load_property_detail(fake, "entry-1", None, SERIALIZER, now=NOW)
    labels = [row.label for row in locked.visible_details()]
    assert labels == ["所在地", "最寄り駅", "賃料/坪単価", "面積㎡/坪"]
    assert locked.has_locked_section

    set_cookie = create_property_unlock_cookie(None, "entry-1", SERIALIZER)
    unlocked = load_property_detail(
        fake, "entry-1", set_cookie.split(";", 1)[0], SERIALIZER, now=NOW
    )
    assert unlocked.is_detail_unlocked
    assert len(unlocked.visible_details()) == 11
    assert not unlocked.has_locked_section


def test_unlock_of_other_property_does_not_apply():
    fake = build_fake([detail_entry()])
    header = create_property_unlock_cookie(None, "entry-2", SERIALIZER).split(";", 1)[0]
    detail = load_property_detail(fake, "entry-1", header, SERIALIZER, now=NOW)
    assert not detail.is_detail_unlocked


def test_missing_property():
    with pytest.raises(PropertyNotFoundError):
        load_property_detail(build_fake([]), "nope", None, SERIALIZER, now=NOW)


def test_expired_property():
    entry = detail_entry(registrationDate=iso(NOW - timedelta(days=3651)))
    with pytest.raises(PropertyNotFoundError):
        load_property_detail(build_fake([entry]), "entry-1", None, SERIALIZER, now=NOW)


def test_images_fall_back_to_default_and_append_floor_plan():
    entry = detail_entry(floorPlan={"fields": {"file": {"url": "//img/plan.png"}}})
    detail = load_property_detail(build_fake([entry]), "entry-1", None, SERIALIZER, now=NOW)
    assert detail.images == ["/propertyImage.png", "//img/plan.png"]


def test_detail_rows_format():
    rows = {row.label: row.value for row in build_detail_rows(detail_entry()["fields"])}
    assert rows["最寄り駅"] == "渋谷 徒歩3分"
    assert rows["所在階"] == "1階"
    assert rows["おすすめ業態"] == "カフェ"
    assert rows["備考"] == "-"
