"""絞り込み条件の判定と並び替え"""

import re
from functools import cmp_to_key
from typing import Optional

from .config import (
    FORMER_BUSINESS_LABEL,
    ITEMS_PER_PAGE,
    NO_LOWER_BOUND,
    NO_UPPER_BOUND,
    SORT_AREA_DESCENDING,
    SORT_NEWEST,
    SORT_RENT_ASCENDING,
    WALKING_TIME_LIMITS,
    WALKING_TIME_UNSPECIFIED,
)
from .models import FilterState, FloorSelection, Property

# 半角・全角スペースの連続で区切る
_KEYWORD_SEPARATOR = re.compile(r"[ 　]+")


def filter_property(prop: Property, filters: FilterState) -> bool:
    """物件が絞り込み条件をすべて満たすかを判定する。

    条件グループ間は AND、グループ内の複数選択は OR。
    評価順は短絡評価のためだけのもので、結果には影響しない。
    """
    # 賃料（万円）
    if not _in_range(prop.rent, filters.min_rent, filters.max_rent):
        return False

    # 面積（坪）
    if not _in_range(prop.floor_area_tsubo, filters.min_area, filters.max_area):
        return False

    # 新着・スケルトン・居抜き（いずれか）
    if filters.is_new or filters.is_skeleton or filters.is_interior_included:
        matches_any_status = (
            (filters.is_new and prop.is_new)
            or (filters.is_skeleton and prop.is_skeleton)
            or (filters.is_interior_included and prop.is_interior_included)
        )
        if not matches_any_status:
            return False

    # 地域
    if filters.regions and not _overlaps(prop.regions, filters.regions):
        return False

    # おすすめ業態（料理ジャンル）
    if filters.cuisine_types and not _overlaps(
        prop.cuisine_types, filters.cuisine_types
    ):
        return False

    # 出店可能な飲食店の種類
    if filters.allowed_restaurant_types and not _overlaps(
        prop.allowed_restaurant_types, filters.allowed_restaurant_types
    ):
        return False

    # 所在階
    if filters.floors.any_selected() and not matches_floors(
        prop.floors, filters.floors
    ):
        return False

    # キーワード（全トークンを含むこと）
    tokens = split_keyword(filters.keyword)
    if tokens and not all(_matches_token(prop, token) for token in tokens):
        return False

    # 駅徒歩
    if filters.walking_time != WALKING_TIME_UNSPECIFIED:
        limit = WALKING_TIME_LIMITS.get(filters.walking_time)
        if limit is not None:
            if not prop.walking_time_to_station:
                return False
            if prop.walking_time_to_station > limit:
                return False

    return True


def matches_floors(floors: tuple[str, ...], selection: FloorSelection) -> bool:
    """選択された所在階のいずれかに該当するか。"""
    has_first = "1" in floors
    is_multi_floor = len(floors) > 1
    return bool(
        (selection.basement and any(f.startswith("B") for f in floors))
        or (selection.first and has_first)
        or (selection.second and "2" in floors)
        or (
            selection.third_and_above
            and any(n is not None and n >= 3 for n in map(_floor_number, floors))
        )
        or (selection.multi_floor_with_first and has_first and is_multi_floor)
        or (selection.multi_floor_without_first and not has_first and is_multi_floor)
    )


def split_keyword(keyword: str) -> list[str]:
    """キーワードを半角・全角スペースで分割する。空トークンは捨てる。"""
    if not keyword:
        return []
    return [token for token in _KEYWORD_SEPARATOR.split(keyword) if token]


def parse_bound(value: str, sentinel: str) -> Optional[float]:
    """賃料・面積の上下限を数値に変換する。

    「下限なし」「上限なし」や数値として解釈できない値は制約なし（None）。
    """
    if not value or value == sentinel:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# ─── 並び替え ──────────────────────────────────────────


def compare_properties(a: Property, b: Property, sort: str = SORT_NEWEST) -> int:
    """2 物件を比較する（-1 / 0 / 1）。

    - rentAscending: 賃料の安い順
    - areaDescending: 面積（坪）の広い順
    - newest: 登録日（なければ作成日時）の新しい順
    いずれも同値の場合は作成日時の新しい順。
    """
    if sort == SORT_RENT_ASCENDING:
        primary = _cmp(a.rent, b.rent)
    elif sort == SORT_AREA_DESCENDING:
        primary = _cmp(b.floor_area_tsubo, a.floor_area_tsubo)
    else:
        primary = _cmp(b.registration_date, a.registration_date)

    if primary:
        return primary
    return _cmp(b.created_at, a.created_at)


def sort_properties(properties: list[Property], sort: str = SORT_NEWEST) -> list[Property]:
    """安定ソートで並び替えた新しいリストを返す。"""
    return sorted(
        properties, key=cmp_to_key(lambda a, b: compare_properties(a, b, sort))
    )


def paginate(items: list, page: int, per_page: int = ITEMS_PER_PAGE) -> list:
    """1 始まりのページ番号で切り出す。範囲外は空リスト。"""
    start = (page - 1) * per_page
    return items[start : start + per_page]


# ─── ヘルパー ──────────────────────────────────────────


def _in_range(value: float, min_value: str, max_value: str) -> bool:
    lower = parse_bound(min_value, NO_LOWER_BOUND)
    if lower is not None and value < lower:
        return False
    upper = parse_bound(max_value, NO_UPPER_BOUND)
    if upper is not None and value > upper:
        return False
    return True


def _overlaps(values: tuple[str, ...], selected: list[str]) -> bool:
    return any(value in selected for value in values)


def _matches_token(prop: Property, token: str) -> bool:
    """トークンがタイトル・住所・業態・地域・前業態のいずれかに含まれるか。"""
    needle = token.lower()
    haystacks = [
        prop.title,
        prop.address,
        " ".join(prop.cuisine_types),
        " ".join(prop.regions),
    ]
    former_business = next(
        (d.value for d in prop.details if FORMER_BUSINESS_LABEL in d.label), None
    )
    if former_business is not None:
        haystacks.append(former_business)
    return any(needle in text.lower() for text in haystacks)


def _floor_number(floor: str) -> Optional[int]:
    """先頭の数字部分を整数として返す（"3" → 3, "10F" → 10, "B1" → None）。"""
    match = re.match(r"\s*(\d+)", floor)
    if match:
        return int(match.group(1))
    return None


def _cmp(a, b) -> int:
    return (a > b) - (a < b)
