"""Contentful エントリ → Property への変換と新着判定"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from .config import DEFAULT_PROPERTY_IMAGE, NEW_PROPERTY_THRESHOLD_MS
from .models import DetailItem, Property, EPOCH

NEW_PROPERTY_THRESHOLD = timedelta(milliseconds=NEW_PROPERTY_THRESHOLD_MS)


def parse_datetime(value) -> Optional[datetime]:
    """ISO 8601 文字列を aware datetime に変換する。失敗時は None。

    "2024-05-01" のような日付のみの値は UTC の 0 時とみなす。
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def resolve_registration_date(entry: dict) -> Optional[datetime]:
    """登録日を返す。fields.registrationDate がなければ sys.createdAt。"""
    fields = entry.get("fields") or {}
    sys = entry.get("sys") or {}
    return parse_datetime(fields.get("registrationDate")) or parse_datetime(
        sys.get("createdAt")
    )


def is_new_property(entry: dict, now: Optional[datetime] = None) -> bool:
    """新着物件かどうかを判定する。

    - fields.isNew が true なら常に新着
    - それ以外は登録日（なければ作成日時）から 2 日以内なら新着
    - フラグも日付もなければ新着ではない

    新着は固定の属性ではなく、評価時点の現在時刻に対する移動窓で決まる。
    """
    fields = entry.get("fields") or {}
    if fields.get("isNew"):
        return True

    registration_date = resolve_registration_date(entry)
    if registration_date is None:
        return False

    if now is None:
        now = datetime.now(timezone.utc)
    return now - registration_date <= NEW_PROPERTY_THRESHOLD


def normalize_property(entry: dict, now: Optional[datetime] = None) -> Property:
    """Contentful の property エントリを Property に変換する。

    欠損値は型ごとのゼロ値に、解決できないリンクは配列から除外する。
    汚れたデータでも例外は送出しない。
    """
    fields = entry.get("fields") or {}
    sys = entry.get("sys") or {}

    rent = _to_int(fields.get("rent"))
    floor_area = _to_float(fields.get("floorArea"))
    floor_area_tsubo = _to_float(fields.get("floorAreaTsubo"))
    walking_time = _to_int(fields.get("walkingTimeToStation"))
    station_name1 = _to_str(fields.get("stationName1"))
    address = _to_str(fields.get("address"))

    created_at = parse_datetime(sys.get("createdAt")) or EPOCH
    registration_date = resolve_registration_date(entry) or created_at

    details = (
        DetailItem("最寄り駅", format_station(station_name1, walking_time)),
        DetailItem(
            "賃料/坪単価",
            f"{format_number(fields.get('rent'))}万円 / "
            f"{format_number(fields.get('pricePerTsubo'))}万円",
        ),
        DetailItem(
            "面積",
            f"{format_number(fields.get('floorArea'))}㎡ / "
            f"{format_number(fields.get('floorAreaTsubo'))}坪",
        ),
        DetailItem("所在地", address or "-"),
        DetailItem(
            "希望譲渡額\n/前業態", _to_str(fields.get("interiorTransferFee")) or "-"
        ),
    )

    return Property(
        id=_to_str(sys.get("id")),
        title=_to_str(fields.get("title")),
        address=address,
        station_name1=station_name1,
        rent=rent,
        floor_area=floor_area,
        floor_area_tsubo=floor_area_tsubo,
        walking_time_to_station=walking_time,
        is_new=is_new_property(entry, now=now),
        is_skeleton=bool(fields.get("isSkeleton")),
        is_interior_included=bool(fields.get("isInteriorIncluded")),
        is_watermark_enabled=bool(fields.get("isWatermarkEnabled")),
        floors=tuple(
            str(f).strip() for f in _to_list(fields.get("floors")) if str(f).strip()
        ),
        regions=link_names(fields.get("regions")),
        cuisine_types=link_names(fields.get("cuisineType")),
        allowed_restaurant_types=link_names(fields.get("allowedRestaurantTypes")),
        registration_date=registration_date,
        created_at=created_at,
        details=details,
        property_id=_to_str(fields.get("propertyId")),
        security_deposit=_to_str(fields.get("securityDeposit")) or "-",
        image_url=first_asset_url(fields.get("exteriorImages"))
        or DEFAULT_PROPERTY_IMAGE,
        pickup_order=_to_optional_int(fields.get("pickupOrder")),
    )


# ─── 表示用フォーマット ───────────────────────────────


def format_station(station_name: str, walking_time: int) -> str:
    """最寄り駅表示（例: "渋谷 徒歩5分"）"""
    if walking_time:
        return f"{station_name} 徒歩{walking_time}分"
    return station_name


def format_registration_date(dt: datetime) -> str:
    """日本語ロケール風の日付表示（例: "2024/5/1"）"""
    return f"{dt.year}/{dt.month}/{dt.day}"


def format_floors(floors: tuple[str, ...] | list[str]) -> str:
    """所在階の表示（例: ("B1", "1") → "地下1階、1階"）"""
    if not floors:
        return "-"
    labels = []
    for floor in floors:
        if floor.startswith("B"):
            labels.append(f"地下{floor[1:]}階")
        else:
            labels.append(f"{floor}階")
    return "、".join(labels)


# ─── ヘルパー ──────────────────────────────────────────


def link_names(value) -> tuple[str, ...]:
    """リンク先エントリの配列を表示名のタプルに平坦化する。

    解決できなかったリンク（fields を持たない Link）や名前のないものは除外する。
    """
    names: list[str] = []
    for item in _to_list(value):
        if not isinstance(item, dict):
            continue
        name = (item.get("fields") or {}).get("name")
        if isinstance(name, str) and name:
            names.append(name)
    return tuple(names)


def first_asset_url(value) -> str:
    """アセット配列の先頭の URL を返す。"""
    for asset in _to_list(value):
        url = asset_url(asset)
        if url:
            return url
    return ""


def asset_url(asset) -> str:
    if not isinstance(asset, dict):
        return ""
    file = (asset.get("fields") or {}).get("file") or {}
    url = file.get("url") if isinstance(file, dict) else None
    return url if isinstance(url, str) else ""


def _to_list(value) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _to_str(value) -> str:
    if value is None:
        return ""
    return str(value)


def _to_int(value) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.replace(",", "")))
        except ValueError:
            return 0
    return 0


def _to_optional_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    return _to_int(value)


def _to_float(value) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace(",", ""))
        except ValueError:
            return 0.0
    return 0.0


def format_number(value) -> str:
    """3 桁区切りの数値表示。未設定は 0。"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "0"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,}"
