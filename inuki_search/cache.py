"""Contentful 取得結果のキャッシュ

マスターデータ（エリア・地域・駅・業態）は長め、物件データは短めの TTL で
保持する。同じクエリが同時に発行された場合は最初の 1 本の結果を共有する。
モジュール単位のシングルトンにはせず、呼び出し側で生成して渡す。
"""

import json
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

from .config import (
    CT_PROPERTY,
    MASTER_CACHE_MAX,
    MASTER_CACHE_TTL,
    MASTER_CONTENT_TYPES,
    PROPERTY_CACHE_MAX,
    PROPERTY_CACHE_TTL,
)


class TTLStore:
    """TTL 付き・件数上限付きの辞書（古いものから追い出す）"""

    def __init__(
        self, ttl: float, max_size: int, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.ttl = ttl
        self.max_size = max_size
        self.clock = clock
        self._items: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        item = self._items.get(key)
        if item is None:
            return None
        expires_at, value = item
        if self.clock() >= expires_at:
            del self._items[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._items.pop(key, None)
        self._items[key] = (self.clock() + self.ttl, value)
        while len(self._items) > self.max_size:
            self._items.popitem(last=False)

    def __len__(self) -> int:
        return len(self._items)


class _InFlight:
    """実行中リクエスト 1 本分の結果受け渡し"""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: Any = None
        self.error: Optional[BaseException] = None


class EntryCache:
    """content_type ごとに TTL を切り替える読み取りキャッシュ"""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        master_ttl: float = MASTER_CACHE_TTL,
        property_ttl: float = PROPERTY_CACHE_TTL,
    ) -> None:
        self.master = TTLStore(master_ttl, MASTER_CACHE_MAX, clock)
        self.property = TTLStore(property_ttl, PROPERTY_CACHE_MAX, clock)
        self._lock = threading.Lock()
        self._in_flight: dict[str, _InFlight] = {}

    def store_for(self, content_type: Optional[str]) -> Optional[TTLStore]:
        if content_type in MASTER_CONTENT_TYPES:
            return self.master
        if content_type == CT_PROPERTY:
            return self.property
        return None

    def fetch(self, query: dict, loader: Callable[[dict], Any]) -> Any:
        """キャッシュにあれば返し、なければ loader で取得して保存する。"""
        store = self.store_for(query.get("content_type"))
        if store is None:
            return loader(query)

        key = cache_key(query)
        with self._lock:
            cached = store.get(key)
            if cached is not None:
                return cached
            pending = self._in_flight.get(key)
            is_owner = pending is None
            if is_owner:
                pending = _InFlight()
                self._in_flight[key] = pending

        if not is_owner:
            pending.done.wait()
            if pending.error is not None:
                raise pending.error
            return pending.result

        try:
            result = loader(query)
        except BaseException as exc:
            pending.error = exc
            raise
        else:
            pending.result = result
            with self._lock:
                store.set(key, result)
            return result
        finally:
            with self._lock:
                self._in_flight.pop(key, None)
            pending.done.set()


class CachedContentfulClient:
    """ContentfulClient と同じインターフェースでキャッシュを挟む。"""

    def __init__(self, client, cache: Optional[EntryCache] = None) -> None:
        self.client = client
        self.cache = cache or EntryCache()

    def get_entries(self, query: dict) -> dict:
        return self.cache.fetch(query, self.client.get_entries)

    def get_entry(self, entry_id: str, include: int = 2) -> dict | None:
        return self.client.get_entry(entry_id, include=include)


def cache_key(query: dict) -> str:
    """クエリを正規化したキャッシュキー（キー順に依存しない）"""
    return "entries:" + json.dumps(
        query, sort_keys=True, ensure_ascii=False, default=str
    )
