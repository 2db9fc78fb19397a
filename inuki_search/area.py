"""エリアトップページのデータ取得"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Optional

from .config import (
    CT_CUISINE_TYPE,
    CT_REGION,
    LATEST_PROPERTIES_LIMIT,
    SEARCH_REGIONS_LIMIT,
)
from .models import AreaOverview, SearchContext, TaxonomyLookup
from .normalize import normalize_property
from .search import (
    count_new_properties,
    count_total_properties,
    load_area,
    scope_query,
    taxonomy_entries,
)


def load_area_overview(
    client, area_slug: str, now: Optional[datetime] = None
) -> AreaOverview:
    """エリアトップに表示するピックアップ物件・新着物件・件数などを取得する。

    エリアと地域は後続クエリの前提になるため先に取得し、
    残りの 5 つの取得は並行に行う。
    """
    area = load_area(client, area_slug)
    region_result = client.get_entries(
        {
            "content_type": CT_REGION,
            "fields.area.sys.id": area.id,
            "order": ["fields.order"],
        }
    )
    regions = taxonomy_entries(region_result["items"])

    # 検索用の地域ボタンは表示順が設定されているものの上位だけ
    search_regions = sorted(
        (r for r in regions if r.order), key=lambda r: r.order
    )[:SEARCH_REGIONS_LIMIT]

    context = SearchContext(
        area=area,
        regions=TaxonomyLookup(regions),
        cuisine_types=TaxonomyLookup([]),
        restaurant_types=TaxonomyLookup([]),
    )

    if not context.region_ids:
        print(f"[WARN] エリアに地域が登録されていません: {area_slug}")
        cuisine_result = client.get_entries(
            {"content_type": CT_CUISINE_TYPE, "order": ["fields.order"]}
        )
        return AreaOverview(
            area=area,
            featured_properties=[],
            latest_properties=[],
            search_regions=search_regions,
            cuisine_types=taxonomy_entries(cuisine_result["items"]),
            total_count=0,
            new_count=0,
        )

    base = scope_query(context, now)
    featured_query = {
        **base,
        "fields.pickupOrder[exists]": True,
        "order": ["fields.pickupOrder"],
        "include": 2,
    }
    latest_query = {
        **base,
        "order": ["-sys.createdAt"],
        "limit": LATEST_PROPERTIES_LIMIT,
        "include": 2,
    }

    with ThreadPoolExecutor(max_workers=5) as pool:
        featured = pool.submit(client.get_entries, featured_query)
        latest = pool.submit(client.get_entries, latest_query)
        cuisine = pool.submit(
            client.get_entries,
            {"content_type": CT_CUISINE_TYPE, "order": ["fields.order"]},
        )
        total_count = pool.submit(count_total_properties, client, context, now)
        new_count = pool.submit(count_new_properties, client, context, now)

        return AreaOverview(
            area=area,
            featured_properties=[
                normalize_property(item, now=now) for item in featured.result()["items"]
            ],
            latest_properties=[
                normalize_property(item, now=now) for item in latest.result()["items"]
            ],
            search_regions=search_regions,
            cuisine_types=taxonomy_entries(cuisine.result()["items"]),
            total_count=total_count.result(),
            new_count=new_count.result(),
        )
