"""データクラス定義"""

import math
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Optional

from .config import (
    ITEMS_PER_PAGE,
    LOCK_START_LABEL,
    NO_LOWER_BOUND,
    NO_UPPER_BOUND,
    WALKING_TIME_UNSPECIFIED,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class DetailItem:
    """詳細テーブルの 1 行"""

    label: str
    value: str


@dataclass(frozen=True)
class Property:
    """物件 1 件分の正規化済みデータ"""

    id: str
    title: str = ""
    address: str = ""
    station_name1: str = ""
    rent: int = 0  # 万円単位、0 は未設定
    floor_area: float = 0.0  # ㎡
    floor_area_tsubo: float = 0.0  # 坪
    walking_time_to_station: int = 0  # 分、0 は不明
    is_new: bool = False
    is_skeleton: bool = False
    is_interior_included: bool = False
    is_watermark_enabled: bool = False
    floors: tuple[str, ...] = ()
    regions: tuple[str, ...] = ()
    cuisine_types: tuple[str, ...] = ()
    allowed_restaurant_types: tuple[str, ...] = ()
    registration_date: datetime = EPOCH
    created_at: datetime = EPOCH
    details: tuple[DetailItem, ...] = ()
    property_id: str = ""
    security_deposit: str = "-"
    image_url: str = ""
    pickup_order: Optional[int] = None


@dataclass
class FloorSelection:
    """所在階の絞り込み（いずれかに該当すれば OK）"""

    basement: bool = False
    first: bool = False
    second: bool = False
    third_and_above: bool = False
    multi_floor_with_first: bool = False
    multi_floor_without_first: bool = False

    def any_selected(self) -> bool:
        return any(getattr(self, f.name) for f in fields(self))


@dataclass
class FilterState:
    """検索画面の絞り込み条件"""

    min_rent: str = NO_LOWER_BOUND
    max_rent: str = NO_UPPER_BOUND
    min_area: str = NO_LOWER_BOUND  # 坪
    max_area: str = NO_UPPER_BOUND  # 坪
    is_skeleton: bool = False
    is_interior_included: bool = False
    is_new: bool = False
    floors: FloorSelection = field(default_factory=FloorSelection)
    regions: list[str] = field(default_factory=list)
    cuisine_types: list[str] = field(default_factory=list)
    allowed_restaurant_types: list[str] = field(default_factory=list)
    keyword: str = ""
    walking_time: str = WALKING_TIME_UNSPECIFIED


@dataclass(frozen=True)
class TaxonomyEntry:
    """エリア・地域・料理ジャンル等のマスターデータ 1 件"""

    id: str
    name: str
    order: Optional[int] = None


class TaxonomyLookup:
    """マスターデータの 名前 ⇄ ID 対応表（リクエストごとに構築）"""

    def __init__(self, entries: list[TaxonomyEntry]) -> None:
        self.entries = list(entries)
        self._ids_by_name: dict[str, list[str]] = {}
        self._names_by_id: dict[str, str] = {}
        for entry in self.entries:
            # 同名エントリが複数あれば全 ID を対象にする
            self._ids_by_name.setdefault(entry.name, []).append(entry.id)
            self._names_by_id[entry.id] = entry.name

    def __len__(self) -> int:
        return len(self.entries)

    def ids_for(self, names: list[str]) -> list[str]:
        """名前リストを ID リストに変換する。未知の名前は無視する。"""
        ids: list[str] = []
        for name in names:
            for entry_id in self._ids_by_name.get(name, []):
                if entry_id not in ids:
                    ids.append(entry_id)
        return ids

    def name_for(self, entry_id: str) -> Optional[str]:
        return self._names_by_id.get(entry_id)

    def names(self) -> list[str]:
        return [entry.name for entry in self.entries]


@dataclass(frozen=True)
class Area:
    """エリア（首都圏・関西など）"""

    id: str
    name: str
    slug: str
    placeholder: str = ""


@dataclass
class SearchContext:
    """1 リクエスト分の検索スコープとマスターデータ"""

    area: Area
    regions: TaxonomyLookup
    cuisine_types: TaxonomyLookup
    restaurant_types: TaxonomyLookup

    @property
    def region_ids(self) -> list[str]:
        return [entry.id for entry in self.regions.entries]


@dataclass
class SearchResult:
    """検索結果 1 ページ分"""

    properties: list[Property]
    total_count: int
    current_page: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / ITEMS_PER_PAGE)


@dataclass
class AreaOverview:
    """エリアトップページ用のデータ"""

    area: Area
    featured_properties: list[Property]
    latest_properties: list[Property]
    search_regions: list[TaxonomyEntry]
    cuisine_types: list[TaxonomyEntry]
    total_count: int
    new_count: int


@dataclass
class PropertyDetail:
    """物件詳細ページ用のデータ"""

    prop: Property
    assigned_agent: str = ""
    interior_transfer_fee: str = "-"
    notes: str = "-"
    price_per_tsubo: float = 0
    images: list[str] = field(default_factory=list)
    is_detail_unlocked: bool = False

    def visible_details(self) -> list[DetailItem]:
        """閲覧申請前は「礼金/権利金」以降の項目を隠す。"""
        details = list(self.prop.details)
        if self.is_detail_unlocked:
            return details
        for index, item in enumerate(details):
            if item.label == LOCK_START_LABEL:
                return details[:index]
        return details

    @property
    def has_locked_section(self) -> bool:
        return len(self.visible_details()) < len(self.prop.details)


@dataclass
class ContactForm:
    """お問い合わせフォームの入力内容"""

    name: str
    email: str
    inquiry_type: str = ""
    inquiry_content: str = ""
    phone: str = ""
    message: str = ""
    desired_opening_period: str = ""
    property_title: str = ""
    property_id: str = ""
    assigned_agent: str = ""
    form_kind: str = "propertyInquiry"  # propertyInquiry / unlockDetails / contact
