"""物件詳細ページのデータ取得"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from .config import DEFAULT_PROPERTY_IMAGE
from .models import DetailItem, PropertyDetail
from .normalize import (
    asset_url,
    format_floors,
    format_number,
    format_station,
    link_names,
    normalize_property,
    parse_datetime,
)
from .search import expiry_cutoff
from .unlock import UnlockCookieSerializer, is_property_unlocked


class PropertyNotFoundError(Exception):
    """物件が存在しない、または掲載期限切れ"""


def load_property_detail(
    client,
    entry_id: str,
    cookie_header: Optional[str],
    serializer: UnlockCookieSerializer,
    now: Optional[datetime] = None,
) -> PropertyDetail:
    """物件詳細を取得する。

    Raises:
        PropertyNotFoundError: 存在しない・掲載期限（10 年）切れ
        ContentfulError: 通信エラー
    """
    entry = client.get_entry(entry_id, include=2)
    if not entry:
        raise PropertyNotFoundError(f"物件が見つかりません: {entry_id}")

    if now is None:
        now = datetime.now(timezone.utc)
    fields = entry.get("fields") or {}
    registration_date = parse_datetime(fields.get("registrationDate"))
    if registration_date and registration_date < expiry_cutoff(now):
        raise PropertyNotFoundError(f"掲載期限切れの物件です: {entry_id}")

    prop = normalize_property(entry, now=now)
    prop = replace(prop, details=tuple(build_detail_rows(fields)))

    images = [
        url for url in (asset_url(a) for a in fields.get("exteriorImages") or []) if url
    ] or [DEFAULT_PROPERTY_IMAGE]
    floor_plan = asset_url(fields.get("floorPlan"))
    if floor_plan:
        images.append(floor_plan)

    return PropertyDetail(
        prop=prop,
        assigned_agent=str(fields.get("assignedAgent") or ""),
        interior_transfer_fee=str(fields.get("interiorTransferFee") or "-"),
        notes=str(fields.get("notes") or "-"),
        price_per_tsubo=fields.get("pricePerTsubo") or 0,
        images=images,
        is_detail_unlocked=is_property_unlocked(cookie_header, entry_id, serializer),
    )


def build_detail_rows(fields: dict) -> list[DetailItem]:
    """詳細テーブルの行。「礼金/権利金」以降が閲覧申請の対象。"""
    walking_time = fields.get("walkingTimeToStation") or 0
    restaurant_types = link_names(fields.get("allowedRestaurantTypes"))
    cuisine_types = link_names(fields.get("cuisineType"))
    floors = fields.get("floors") if isinstance(fields.get("floors"), list) else []

    return [
        DetailItem("所在地", fields.get("address") or "-"),
        DetailItem(
            "最寄り駅",
            format_station(str(fields.get("stationName1") or ""), walking_time),
        ),
        DetailItem(
            "賃料/坪単価",
            f"{format_number(fields.get('rent'))}万円 / "
            f"{format_number(fields.get('pricePerTsubo'))}万円",
        ),
        DetailItem(
            "面積㎡/坪",
            f"{format_number(fields.get('floorArea'))}㎡ / "
            f"{format_number(fields.get('floorAreaTsubo'))}坪",
        ),
        DetailItem("礼金/権利金", str(fields.get("nonRefundableDeposit") or "-")),
        DetailItem("保証金/敷金", str(fields.get("securityDeposit") or "-")),
        DetailItem("所在階", format_floors([str(f) for f in floors])),
        DetailItem(
            "造作譲渡料/前テナント", str(fields.get("interiorTransferFee") or "-")
        ),
        DetailItem(
            "出店可能な飲食店の種類",
            "・".join(restaurant_types) if restaurant_types else "-",
        ),
        DetailItem("おすすめ業態", "・".join(cuisine_types) if cuisine_types else "-"),
        DetailItem("備考", str(fields.get("notes") or "-")),
    ]
