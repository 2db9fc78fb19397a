"""テスト用の Contentful 代替クライアントとエントリ生成ヘルパー"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def link(entry_id: str, name: str) -> dict:
    """解決済みリンク（includes から埋め込まれたエントリ）"""
    return {"sys": {"id": entry_id, "type": "Entry"}, "fields": {"name": name}}


def broken_link(entry_id: str) -> dict:
    """解決できなかったリンク"""
    return {"sys": {"type": "Link", "linkType": "Entry", "id": entry_id}}


def make_entry(entry_id: str, created_at: datetime = NOW - timedelta(days=30), **fields) -> dict:
    fields.setdefault("title", f"物件 {entry_id}")
    fields.setdefault("registrationDate", iso(created_at))
    return {
        "sys": {"id": entry_id, "createdAt": iso(created_at), "type": "Entry"},
        "fields": fields,
    }


class FakeContentful:
    """content_type ごとに固定のエントリを返す Contentful の代替"""

    def __init__(self, entries_by_type: dict[str, list[dict]] | None = None) -> None:
        self.entries_by_type = entries_by_type or {}
        self.queries: list[dict] = []
        self._lock = threading.Lock()

    def get_entries(self, query: dict) -> dict:
        with self._lock:
            self.queries.append(dict(query))

        if "sys.id" in query:
            items = [
                e
                for entries in self.entries_by_type.values()
                for e in entries
                if e["sys"]["id"] == query["sys.id"]
            ]
        else:
            items = list(self.entries_by_type.get(query.get("content_type"), []))

        if "fields.slug" in query:
            items = [e for e in items if e["fields"].get("slug") == query["fields.slug"]]
        if query.get("fields.pickupOrder[exists]"):
            items = [e for e in items if e["fields"].get("pickupOrder") is not None]

        total = len(items)
        skip = query.get("skip", 0)
        limit = query.get("limit", 100)
        return {
            "items": items[skip : skip + limit],
            "total": total,
            "skip": skip,
            "limit": limit,
        }

    def get_entry(self, entry_id: str, include: int = 2) -> dict | None:
        items = self.get_entries({"sys.id": entry_id, "include": include})["items"]
        return items[0] if items else None

    def property_queries(self) -> list[dict]:
        return [q for q in self.queries if q.get("content_type") == "property"]


AREA = {"sys": {"id": "area-kanto"}, "fields": {"name": "関東", "slug": "kanto"}}

REGIONS = [
    {"sys": {"id": "r-shibuya"}, "fields": {"name": "渋谷区", "order": 2}},
    {"sys": {"id": "r-shinjuku"}, "fields": {"name": "新宿区", "order": 1}},
    {"sys": {"id": "r-minato"}, "fields": {"name": "港区"}},
]

CUISINE_TYPES = [
    {"sys": {"id": "c-cafe"}, "fields": {"name": "カフェ", "order": 1}},
    {"sys": {"id": "c-ramen"}, "fields": {"name": "ラーメン", "order": 2}},
]

RESTAURANT_TYPES = [
    {"sys": {"id": "t-heavy"}, "fields": {"name": "重飲食可", "order": 1}},
    {"sys": {"id": "t-light"}, "fields": {"name": "軽飲食のみ", "order": 2}},
]


def build_fake(properties: list[dict]) -> FakeContentful:
    return FakeContentful(
        {
            "area": [AREA],
            "region": REGIONS,
            "cuisineType": CUISINE_TYPES,
            "restaurantType": RESTAURANT_TYPES,
            "property": properties,
        }
    )


@pytest.fixture
def now() -> datetime:
    return NOW
