"""絞り込み条件 ⇄ URL クエリパラメータの変換

URL が検索状態の唯一の保存先になる。既定値と同じ値はパラメータから省き、
URL を最小かつ一意に保つ。
"""

from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import parse_qs, urlencode

from .config import (
    DEFAULT_SORT,
    FLOOR_PARAMS,
    NO_LOWER_BOUND,
    NO_UPPER_BOUND,
    SORT_OPTIONS,
    WALKING_TIME_OPTIONS,
    WALKING_TIME_UNSPECIFIED,
)
from .models import FilterState, FloorSelection

LIST_SEPARATOR = ","


@dataclass(frozen=True)
class InitialFilters:
    """ディープリンク（「この地域で探す」ボタン等）由来の初期値"""

    region: Optional[str] = None
    keyword: Optional[str] = None


def filters_to_query_params(
    filters: FilterState, page: int = 1, sort: str = DEFAULT_SORT
) -> dict[str, str]:
    """FilterState → クエリパラメータ辞書。既定値のキーは含めない。"""
    params: dict[str, str] = {}

    if filters.min_rent != NO_LOWER_BOUND:
        params["minRent"] = filters.min_rent
    if filters.max_rent != NO_UPPER_BOUND:
        params["maxRent"] = filters.max_rent
    if filters.min_area != NO_LOWER_BOUND:
        params["minArea"] = filters.min_area
    if filters.max_area != NO_UPPER_BOUND:
        params["maxArea"] = filters.max_area

    if filters.is_skeleton:
        params["isSkeleton"] = "true"
    if filters.is_interior_included:
        params["isInteriorIncluded"] = "true"
    if filters.is_new:
        params["isNew"] = "true"

    for param, attr in FLOOR_PARAMS.items():
        if getattr(filters.floors, attr):
            params[param] = "true"

    if filters.regions:
        params["regions"] = LIST_SEPARATOR.join(filters.regions)
    if filters.cuisine_types:
        params["cuisineTypes"] = LIST_SEPARATOR.join(filters.cuisine_types)
    if filters.allowed_restaurant_types:
        params["restaurantTypes"] = LIST_SEPARATOR.join(
            filters.allowed_restaurant_types
        )

    if filters.keyword:
        params["keyword"] = filters.keyword
    if filters.walking_time != WALKING_TIME_UNSPECIFIED:
        params["walkingTime"] = filters.walking_time

    if page > 1:
        params["page"] = str(page)
    if sort != DEFAULT_SORT:
        params["sort"] = sort

    return params


def query_params_to_filters(
    params: Mapping[str, str], initial: Optional[InitialFilters] = None
) -> FilterState:
    """クエリパラメータ → FilterState。

    パラメータがない項目は既定値になる。initial の地域・キーワードは
    該当パラメータ自体が存在しない場合にだけ使う（空文字でも明示指定を優先）。
    """
    initial = initial or InitialFilters()

    regions = _split_list(params.get("regions"))
    if regions is None:
        regions = [initial.region] if initial.region else []

    keyword = params.get("keyword")
    if keyword is None:
        keyword = initial.keyword or ""

    walking_time = params.get("walkingTime") or WALKING_TIME_UNSPECIFIED
    if walking_time not in WALKING_TIME_OPTIONS:
        walking_time = WALKING_TIME_UNSPECIFIED

    floors = FloorSelection(
        **{attr: _is_true(params.get(param)) for param, attr in FLOOR_PARAMS.items()}
    )

    return FilterState(
        min_rent=params.get("minRent") or NO_LOWER_BOUND,
        max_rent=params.get("maxRent") or NO_UPPER_BOUND,
        min_area=params.get("minArea") or NO_LOWER_BOUND,
        max_area=params.get("maxArea") or NO_UPPER_BOUND,
        is_skeleton=_is_true(params.get("isSkeleton")),
        is_interior_included=_is_true(params.get("isInteriorIncluded")),
        is_new=_is_true(params.get("isNew")),
        floors=floors,
        regions=regions,
        cuisine_types=_split_list(params.get("cuisineTypes")) or [],
        allowed_restaurant_types=_split_list(params.get("restaurantTypes")) or [],
        keyword=keyword,
        walking_time=walking_time,
    )


def parse_page(value) -> int:
    """ページ番号。未指定・数値以外・1 未満は 1。"""
    if value is None:
        return 1
    try:
        page = int(str(value).strip())
    except ValueError:
        return 1
    return page if page >= 1 else 1


def parse_sort(value) -> str:
    """並び順。未知の値は既定（新着順）。"""
    if value in SORT_OPTIONS:
        return value
    return DEFAULT_SORT


def parse_query_string(
    query_string: str, initial: Optional[InitialFilters] = None
) -> tuple[FilterState, int, str]:
    """URL のクエリ文字列から (FilterState, page, sort) を復元する。"""
    raw = parse_qs(query_string.lstrip("?"), keep_blank_values=True)
    params = {key: values[0] for key, values in raw.items() if values}
    return (
        query_params_to_filters(params, initial),
        parse_page(params.get("page")),
        parse_sort(params.get("sort")),
    )


def to_query_string(
    filters: FilterState, page: int = 1, sort: str = DEFAULT_SORT
) -> str:
    """(FilterState, page, sort) → URL のクエリ文字列（先頭の ? なし）。"""
    return urlencode(filters_to_query_params(filters, page, sort))


# ─── ヘルパー ──────────────────────────────────────────


def _is_true(value: Optional[str]) -> bool:
    return value == "true"


def _split_list(value: Optional[str]) -> Optional[list[str]]:
    """カンマ区切りをリストに分割する。パラメータ自体がなければ None。"""
    if value is None:
        return None
    return [item for item in value.split(LIST_SEPARATOR) if item]
