"""物件検索のオーケストレーター

絞り込み条件のうち Contentful のクエリで表現できるものだけなら 1 ページ分だけ
取得して Contentful の件数を信頼する。表現できない条件（新着フラグ、所在階、
キーワードなど）が含まれる場合は対象物件を全件取得し、メモリ上で
絞り込み・並び替え・ページ切り出しを行う。
"""

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Optional

from .config import (
    CT_AREA,
    CT_CUISINE_TYPE,
    CT_PROPERTY,
    CT_REGION,
    CT_RESTAURANT_TYPE,
    DEFAULT_SORT,
    EXPIRED_DAYS,
    FETCH_ALL_LIMIT,
    ITEMS_PER_PAGE,
    NO_LOWER_BOUND,
    NO_UPPER_BOUND,
    SORT_ORDERS,
    WALKING_TIME_LIMITS,
)
from .filters import filter_property, paginate, parse_bound, sort_properties, split_keyword
from .models import (
    Area,
    FilterState,
    SearchContext,
    SearchResult,
    TaxonomyEntry,
    TaxonomyLookup,
)
from .normalize import is_new_property, normalize_property


class AreaNotFoundError(Exception):
    """指定されたエリアが存在しない"""


# ─── スコープ・マスターデータ ──────────────────────────


def expiry_cutoff(now: Optional[datetime] = None) -> datetime:
    """掲載期限（10 年）の基準日時。UTC の 0 時に切り捨てる。

    同じ日のうちは同じ値を返す。
    """
    if now is None:
        now = datetime.now(timezone.utc)
    threshold = now.astimezone(timezone.utc) - timedelta(days=EXPIRED_DAYS)
    return threshold.replace(hour=0, minute=0, second=0, microsecond=0)


def expiry_threshold(now: Optional[datetime] = None) -> str:
    """掲載期限の基準日時を ISO 8601 で返す。"""
    cutoff = expiry_cutoff(now)
    return cutoff.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def load_area(client, area_slug: str) -> Area:
    """slug からエリアを取得する。見つからなければ AreaNotFoundError。"""
    result = client.get_entries(
        {"content_type": CT_AREA, "fields.slug": area_slug, "limit": 1}
    )
    items = result["items"]
    if not items:
        raise AreaNotFoundError(f"エリアが見つかりません: {area_slug}")

    entry = items[0]
    fields = entry.get("fields") or {}
    return Area(
        id=entry["sys"]["id"],
        name=str(fields.get("name") or ""),
        slug=area_slug,
        placeholder=str(fields.get("placeholder") or ""),
    )


def load_search_context(client, area_slug: str) -> SearchContext:
    """エリアと、地域・業態・飲食店種別のマスターデータをまとめて取得する。

    3 種のマスターデータは互いに依存しないため並行に取得する。
    """
    area = load_area(client, area_slug)

    queries = {
        "regions": {
            "content_type": CT_REGION,
            "fields.area.sys.id": area.id,
            "order": ["fields.areaSearchOrder"],
        },
        "cuisine_types": {"content_type": CT_CUISINE_TYPE, "order": ["fields.order"]},
        "restaurant_types": {
            "content_type": CT_RESTAURANT_TYPE,
            "order": ["fields.order"],
        },
    }
    with ThreadPoolExecutor(max_workers=len(queries)) as pool:
        futures = {
            name: pool.submit(client.get_entries, query)
            for name, query in queries.items()
        }
        lookups = {
            name: TaxonomyLookup(taxonomy_entries(future.result()["items"]))
            for name, future in futures.items()
        }

    return SearchContext(area=area, **lookups)


def taxonomy_entries(items: list[dict]) -> list[TaxonomyEntry]:
    """マスターデータのエントリを TaxonomyEntry に変換する。名前のないものは除外。"""
    entries: list[TaxonomyEntry] = []
    for item in items:
        entry_id = (item.get("sys") or {}).get("id")
        fields = item.get("fields") or {}
        name = fields.get("name")
        if not entry_id or not name:
            continue
        order = fields.get("order")
        entries.append(
            TaxonomyEntry(
                id=entry_id,
                name=str(name),
                order=order if isinstance(order, int) else None,
            )
        )
    return entries


def scope_query(context: SearchContext, now: Optional[datetime] = None) -> dict:
    """エリア内・掲載期限内の物件を対象とする基本クエリ"""
    return {
        "content_type": CT_PROPERTY,
        "fields.regions.sys.id[in]": context.region_ids,
        "fields.registrationDate[gte]": expiry_threshold(now),
    }


# ─── クエリ構築 ────────────────────────────────────────


def requires_full_scan(filters: FilterState) -> bool:
    """Contentful のクエリで表現できない条件が含まれているか。

    - 新着: isNew フラグ OR 登録日 2 日以内 のため 1 クエリで書けない
    - スケルトンと居抜きの両方: OR 条件のため書けない
    - 所在階・キーワード: 配列要素の判定・部分一致の AND が書けない
    - 賃料・面積の上限: 未設定（0 扱い）の物件を Contentful 側では除外してしまう
    """
    return bool(
        filters.is_new
        or (filters.is_skeleton and filters.is_interior_included)
        or filters.floors.any_selected()
        or split_keyword(filters.keyword)
        or parse_bound(filters.max_rent, NO_UPPER_BOUND) is not None
        or parse_bound(filters.max_area, NO_UPPER_BOUND) is not None
    )


def build_property_query(
    context: SearchContext, filters: FilterState, now: Optional[datetime] = None
) -> Optional[dict]:
    """絞り込み条件のうち Contentful 側で処理できるものをクエリにする。

    選択された地域・業態・飲食店種別がマスターデータに 1 件も見つからない
    場合は None（該当なし）を返す。空の条件で問い合わせると全件に
    一致してしまうため。
    """
    if not context.region_ids:
        return None

    query = scope_query(context, now)

    taxonomy_filters = [
        ("fields.regions.sys.id[in]", context.regions, filters.regions),
        ("fields.cuisineType.sys.id[in]", context.cuisine_types, filters.cuisine_types),
        (
            "fields.allowedRestaurantTypes.sys.id[in]",
            context.restaurant_types,
            filters.allowed_restaurant_types,
        ),
    ]
    for key, lookup, names in taxonomy_filters:
        if not names:
            continue
        ids = lookup.ids_for(names)
        if not ids:
            print(f"[WARN] マスターデータに存在しない条件: {key} = {names}")
            return None
        query[key] = ids

    # スケルトン・居抜きはどちらか一方だけならクエリにできる
    if not filters.is_new:
        if filters.is_skeleton and not filters.is_interior_included:
            query["fields.isSkeleton"] = True
        elif filters.is_interior_included and not filters.is_skeleton:
            query["fields.isInteriorIncluded"] = True

    # 下限は未設定（0）の物件も除外されるのでメモリ上の判定と一致する
    min_rent = parse_bound(filters.min_rent, NO_LOWER_BOUND)
    if min_rent is not None and min_rent > 0:
        query["fields.rent[gte]"] = _format_bound(min_rent)
    min_area = parse_bound(filters.min_area, NO_LOWER_BOUND)
    if min_area is not None and min_area > 0:
        query["fields.floorAreaTsubo[gte]"] = _format_bound(min_area)

    walking_limit = WALKING_TIME_LIMITS.get(filters.walking_time)
    if walking_limit is not None:
        query["fields.walkingTimeToStation[gte]"] = 1
        query["fields.walkingTimeToStation[lte]"] = walking_limit

    return query


# ─── 取得 ──────────────────────────────────────────────


def fetch_all_entries(client, query: dict, limit: int = FETCH_ALL_LIMIT) -> list[dict]:
    """ページネーションしながら条件に合う全エントリを取得する。

    各ページの継続判定は前ページの total に依存するため逐次実行する。
    """
    all_items: list[dict] = []
    skip = 0

    while True:
        result = client.get_entries({**query, "limit": limit, "skip": skip})
        items = result["items"]
        all_items.extend(items)
        skip += limit

        if not items or len(all_items) >= result["total"]:
            break

    return all_items


def search_properties(
    client,
    context: SearchContext,
    filters: FilterState,
    page: int = 1,
    sort: str = DEFAULT_SORT,
    now: Optional[datetime] = None,
) -> SearchResult:
    """絞り込み条件・ページ・並び順から検索結果 1 ページ分を返す。"""
    if page < 1:
        page = 1

    query = build_property_query(context, filters, now=now)
    if query is None:
        return SearchResult(properties=[], total_count=0, current_page=page)

    query["include"] = 2

    if not requires_full_scan(filters):
        query["order"] = SORT_ORDERS.get(sort, SORT_ORDERS[DEFAULT_SORT])
        query["limit"] = ITEMS_PER_PAGE
        query["skip"] = (page - 1) * ITEMS_PER_PAGE
        print(
            f"[DEBUG] 検索条件: "
            f"{json.dumps(query, ensure_ascii=False, default=str)[:200]}"
        )
        result = client.get_entries(query)
        properties = [normalize_property(item, now=now) for item in result["items"]]
        return SearchResult(
            properties=properties,
            total_count=result["total"],
            current_page=page,
        )

    query["order"] = ["-sys.createdAt"]
    print(
        f"[DEBUG] 全件取得で検索: "
        f"{json.dumps(query, ensure_ascii=False, default=str)[:200]}"
    )
    entries = fetch_all_entries(client, query)
    candidates = [normalize_property(item, now=now) for item in entries]
    matched = [prop for prop in candidates if filter_property(prop, filters)]
    ordered = sort_properties(matched, sort)

    return SearchResult(
        properties=paginate(ordered, page),
        total_count=len(ordered),
        current_page=page,
    )


# ─── 件数集計 ──────────────────────────────────────────


def count_total_properties(
    client, context: SearchContext, now: Optional[datetime] = None
) -> int:
    """エリア内・掲載期限内の物件総数（絞り込み条件には依存しない）"""
    if not context.region_ids:
        return 0
    result = client.get_entries(
        {**scope_query(context, now), "select": ["sys.id"], "limit": 1}
    )
    return result["total"]


def count_new_properties(
    client, context: SearchContext, now: Optional[datetime] = None
) -> int:
    """エリア内の新着物件数。

    新着は「isNew フラグ OR 登録日 2 日以内」のため 1 クエリで数えられず、
    常に全件を取得して判定する。
    """
    if not context.region_ids:
        return 0
    query = {
        **scope_query(context, now),
        "select": ["sys.id", "sys.createdAt", "fields.isNew", "fields.registrationDate"],
    }
    entries = fetch_all_entries(client, query)
    return sum(1 for entry in entries if is_new_property(entry, now=now))


def _format_bound(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return str(value)
