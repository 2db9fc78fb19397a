"""Contentful Delivery API クライアント

物件・エリア・地域・業態などのデータはすべて Contentful から取得する。
`getEntries` 相当の `get_entries(query)` と `get_entry(id)` のみを提供し、
`includes` で返されたリンク先エントリは呼び出し側で扱いやすいよう
`fields` に埋め込んで返す。
"""

import requests

from .config import (
    CONTENTFUL_ACCESS_TOKEN,
    CONTENTFUL_CDN_URL,
    CONTENTFUL_ENVIRONMENT,
    CONTENTFUL_SPACE_ID,
    CONTENTFUL_TIMEOUT,
)

# リンク解決の最大深さ（循環参照対策）
MAX_LINK_DEPTH = 10


class ContentfulError(Exception):
    """Contentful API エラー"""


class ContentfulClient:
    """Contentful Delivery API のセッションを管理する。"""

    def __init__(
        self,
        space_id: str = CONTENTFUL_SPACE_ID,
        access_token: str = CONTENTFUL_ACCESS_TOKEN,
        environment: str = CONTENTFUL_ENVIRONMENT,
        base_url: str = CONTENTFUL_CDN_URL,
        timeout: float = CONTENTFUL_TIMEOUT,
    ) -> None:
        self.space_id = space_id
        self.environment = environment
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            }
        )

    # ─── public ────────────────────────────────────────

    def get_entries(self, query: dict) -> dict:
        """条件に合うエントリ一覧を取得する。

        Args:
            query: Contentful のクエリ（content_type, fields.xxx[in], order,
                   limit, skip, include, select など）。リスト値はカンマで連結する。

        Returns:
            {"items": [...], "total": int, "skip": int, "limit": int}
            items 内のリンクは includes のエントリ・アセットに置き換え済み。
        """
        data = self._get("/entries", encode_query(query))
        return {
            "items": resolve_links(data),
            "total": int(data.get("total", 0) or 0),
            "skip": int(data.get("skip", 0) or 0),
            "limit": int(data.get("limit", 0) or 0),
        }

    def get_entry(self, entry_id: str, include: int = 2) -> dict | None:
        """ID でエントリを 1 件取得する。存在しなければ None。

        /entries/{id} はリンクを解決しないため sys.id で一覧 API を引く。
        """
        if not entry_id:
            return None
        result = self.get_entries({"sys.id": entry_id, "include": include})
        items = result["items"]
        return items[0] if items else None

    def close(self) -> None:
        self.session.close()

    # ─── private ───────────────────────────────────────

    def _url(self, path: str) -> str:
        return (
            f"{self.base_url}/spaces/{self.space_id}"
            f"/environments/{self.environment}{path}"
        )

    def _get(self, path: str, params: dict) -> dict:
        try:
            resp = self.session.get(
                self._url(path), params=params, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise ContentfulError(f"Contentful 通信エラー: {exc}") from exc

        status = resp.status_code
        if status == 401:
            raise ContentfulError("Contentful のアクセストークンが無効です")
        if status == 404:
            raise ContentfulError(
                f"Contentful のスペースまたは環境が見つかりません: {self._url(path)}"
            )
        if status == 429:
            raise ContentfulError("Contentful にレート制限されました")
        if status != 200:
            raise ContentfulError(
                f"Contentful API エラー (status={status}): {resp.text[:200]}"
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise ContentfulError(
                f"Contentful のレスポンスが JSON ではありません: {resp.text[:200]}"
            ) from exc


def encode_query(query: dict) -> dict[str, str]:
    """クエリ辞書を HTTP パラメータに変換する。"""
    params: dict[str, str] = {}
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            params[key] = ",".join(str(v) for v in value)
        else:
            params[key] = str(value)
    return params


def resolve_links(data: dict) -> list[dict]:
    """レスポンスの items 内のリンクを includes のエントリ・アセットで置き換える。

    解決できないリンクは Link のまま残す（正規化時に除外される）。
    """
    items = data.get("items") or []
    includes = data.get("includes") or {}

    entries: dict[str, dict] = {}
    for entry in [*items, *(includes.get("Entry") or [])]:
        entry_id = (entry.get("sys") or {}).get("id")
        if entry_id:
            entries[entry_id] = entry
    assets: dict[str, dict] = {}
    for asset in includes.get("Asset") or []:
        asset_id = (asset.get("sys") or {}).get("id")
        if asset_id:
            assets[asset_id] = asset

    def resolve(value, depth: int):
        if isinstance(value, list):
            return [resolve(v, depth) for v in value]
        if not isinstance(value, dict):
            return value

        sys = value.get("sys")
        if isinstance(sys, dict) and sys.get("type") == "Link":
            if depth >= MAX_LINK_DEPTH:
                return value
            pool = assets if sys.get("linkType") == "Asset" else entries
            target = pool.get(sys.get("id"))
            if target is None:
                return value
            return resolve(target, depth + 1)

        return {key: resolve(v, depth) for key, v in value.items()}

    return [resolve(item, 0) for item in items]
