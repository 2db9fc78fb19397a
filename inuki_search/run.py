"""コマンドラインからの物件検索

使い方:
    python -m inuki_search.run kanto "regions=渋谷区&isSkeleton=true&sort=rentAscending"

検索ページの URL と同じクエリ文字列を受け取り、結果 1 ページ分を表示する。
"""

import argparse
import sys
from datetime import datetime
from zoneinfo import ZoneInfo

from .cache import CachedContentfulClient
from .config import (
    CONTENTFUL_ACCESS_TOKEN,
    CONTENTFUL_SPACE_ID,
    ITEMS_PER_PAGE,
    SORT_OPTIONS,
)
from .contentful import ContentfulClient, ContentfulError
from .models import Property, SearchResult
from .normalize import format_registration_date
from .query import InitialFilters, parse_query_string, to_query_string
from .search import (
    AreaNotFoundError,
    count_new_properties,
    count_total_properties,
    load_search_context,
    search_properties,
)


def now_jst() -> str:
    """現在の JST タイムスタンプを返す。"""
    return datetime.now(ZoneInfo("Asia/Tokyo")).strftime("%Y-%m-%d %H:%M:%S")


def format_property_line(prop: Property, index: int) -> str:
    """Property → 1 行の表示文字列"""
    badges = []
    if prop.is_new:
        badges.append("NEW")
    if prop.is_skeleton:
        badges.append("スケルトン")
    if prop.is_interior_included:
        badges.append("居抜き")
    badge_str = f" [{'・'.join(badges)}]" if badges else ""

    rent_str = f"{prop.rent}万円" if prop.rent else "-"
    area_str = f"{prop.floor_area_tsubo:g}坪" if prop.floor_area_tsubo else "-"
    walk_str = (
        f"徒歩{prop.walking_time_to_station}分"
        if prop.walking_time_to_station
        else ""
    )
    return (
        f"{index}. {prop.title}{badge_str}\n"
        f"   💰 {rent_str} ｜ 📐 {area_str} ｜ 🚉 {prop.station_name1} {walk_str}\n"
        f"   📍 {prop.address} ｜ 登録日 {format_registration_date(prop.registration_date)}"
    )


def print_result(result: SearchResult) -> None:
    print(
        f"[INFO] {result.total_count} 件ヒット "
        f"({result.current_page}/{max(result.total_pages, 1)} ページ)"
    )
    offset = (result.current_page - 1) * ITEMS_PER_PAGE
    for idx, prop in enumerate(result.properties):
        print(format_property_line(prop, offset + idx + 1))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="居抜き物件を検索する")
    parser.add_argument("area", help="エリアの slug（例: kanto）")
    parser.add_argument(
        "query", nargs="?", default="", help="検索ページと同じクエリ文字列"
    )
    parser.add_argument("--region", help="地域名の初期値（regions 未指定時のみ）")
    parser.add_argument("--keyword", help="キーワードの初期値（keyword 未指定時のみ）")
    parser.add_argument(
        "--counts", action="store_true", help="総件数・新着件数も表示する"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    print(f"[{now_jst()}] 物件検索を開始します...")

    if not CONTENTFUL_SPACE_ID or not CONTENTFUL_ACCESS_TOKEN:
        print("[FATAL] CONTENTFUL_SPACE_ID / CONTENTFUL_ACCESS_TOKEN が未設定です")
        sys.exit(1)

    filters, page, sort = parse_query_string(
        args.query, InitialFilters(region=args.region, keyword=args.keyword)
    )
    print(f"[INFO] 検索条件: {to_query_string(filters, page, sort) or '(指定なし)'}")
    print(f"[INFO] 並び順: {SORT_OPTIONS[sort]}")

    base_client = ContentfulClient()
    client = CachedContentfulClient(base_client)
    try:
        context = load_search_context(client, args.area)
        print(
            f"[INFO] エリア: {context.area.name} "
            f"(地域 {len(context.regions)} 件)"
        )

        if args.counts:
            total = count_total_properties(client, context)
            new = count_new_properties(client, context)
            print(f"[INFO] 掲載物件 {total} 件 / 新着 {new} 件")

        result = search_properties(client, context, filters, page=page, sort=sort)
    except AreaNotFoundError as exc:
        print(f"[FATAL] {exc}")
        sys.exit(1)
    except ContentfulError as exc:
        print(f"[FATAL] Contentful からの取得に失敗: {exc}")
        sys.exit(1)
    finally:
        base_client.close()

    print_result(result)
    print(f"[{now_jst()}] 完了")


if __name__ == "__main__":
    main()
