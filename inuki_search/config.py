"""定数、環境変数、マッピング辞書"""

import os

# ── 環境変数 ────────────────────────────────────────────
CONTENTFUL_SPACE_ID = os.environ.get("CONTENTFUL_SPACE_ID", "")
CONTENTFUL_ACCESS_TOKEN = os.environ.get("CONTENTFUL_ACCESS_TOKEN", "")
CONTENTFUL_ENVIRONMENT = os.environ.get("CONTENTFUL_ENVIRONMENT", "master")

SMTP_HOST = os.environ.get("SMTP_HOST", "")
SMTP_PORT = int(os.environ.get("SMTP_PORT", "465") or 465)
SMTP_USER = os.environ.get("SMTP_USER", "")
SMTP_PASS = os.environ.get("SMTP_PASS", "")
MAIL_FROM = os.environ.get("MAIL_FROM", "")
ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "")

PROPERTY_UNLOCK_COOKIE_SECRET = os.environ.get(
    "PROPERTY_UNLOCK_COOKIE_SECRET", "property-unlock-secret"
)
APP_ENV = os.environ.get("APP_ENV", "development")

# ── Contentful ─────────────────────────────────────────
CONTENTFUL_CDN_URL = "https://cdn.contentful.com"
CONTENTFUL_TIMEOUT = 30

# content_type 名
CT_AREA = "area"
CT_REGION = "region"
CT_STATION = "station"
CT_CUISINE_TYPE = "cuisineType"
CT_RESTAURANT_TYPE = "restaurantType"
CT_PROPERTY = "property"

# マスターデータ（変更頻度が低い）
MASTER_CONTENT_TYPES = (
    CT_AREA,
    CT_REGION,
    CT_STATION,
    CT_CUISINE_TYPE,
    CT_RESTAURANT_TYPE,
)

# ── キャッシュ ─────────────────────────────────────────
MASTER_CACHE_TTL = 60 * 10  # 秒
MASTER_CACHE_MAX = 500
PROPERTY_CACHE_TTL = 60 * 1  # 秒
PROPERTY_CACHE_MAX = 200

# ── 検索 ───────────────────────────────────────────────
ITEMS_PER_PAGE = 10
FETCH_ALL_LIMIT = 1000  # 全件取得時の 1 リクエストあたり件数
LATEST_PROPERTIES_LIMIT = 12
SEARCH_REGIONS_LIMIT = 5

# 新着判定: 登録から 2 日以内
NEW_PROPERTY_THRESHOLD_MS = 2 * 24 * 60 * 60 * 1000
# 掲載期限: 登録から 10 年
EXPIRED_DAYS = 3650

# ── 絞り込み条件の既定値 ────────────────────────────────
NO_LOWER_BOUND = "下限なし"
NO_UPPER_BOUND = "上限なし"
WALKING_TIME_UNSPECIFIED = "指定なし"

# 徒歩分数 → 上限（分）
WALKING_TIME_LIMITS: dict[str, int] = {
    "1分": 1,
    "3分以内": 3,
    "5分以内": 5,
    "10分以内": 10,
    "15分以内": 15,
}

WALKING_TIME_OPTIONS: list[str] = [WALKING_TIME_UNSPECIFIED, *WALKING_TIME_LIMITS]

# 賃料（万円）
PRICE_OPTIONS: dict[str, str] = {
    "10": "10万円",
    "20": "20万円",
    "30": "30万円",
    "40": "40万円",
    "50": "50万円",
    "60": "60万円",
    "70": "70万円",
    "80": "80万円",
    "90": "90万円",
    "100": "100万円",
    "150": "150万円",
    "200": "200万円",
    "300": "300万円",
    "400": "400万円",
    "500": "500万円",
}

# 面積（坪）
AREA_OPTIONS: dict[str, str] = {
    "10": "10坪",
    "15": "15坪",
    "20": "20坪",
    "25": "25坪",
    "30": "30坪",
    "35": "35坪",
    "40": "40坪",
    "45": "45坪",
    "50": "50坪",
    "60": "60坪",
    "70": "70坪",
    "80": "80坪",
    "90": "90坪",
    "100": "100坪",
}

# ── 所在階 ─────────────────────────────────────────────
# クエリパラメータ名 → FloorSelection の属性名
FLOOR_PARAMS: dict[str, str] = {
    "basement": "basement",
    "first": "first",
    "second": "second",
    "thirdAndAbove": "third_and_above",
    "multiFloorWithFirst": "multi_floor_with_first",
    "multiFloorWithoutFirst": "multi_floor_without_first",
}

FLOOR_LABELS: dict[str, str] = {
    "basement": "地下",
    "first": "1階",
    "second": "2階",
    "third_and_above": "3階以上",
    "multi_floor_with_first": "複数階一括(1階を含む)",
    "multi_floor_without_first": "複数階一括(1階を含まない)",
}

# ── 並び順 ─────────────────────────────────────────────
SORT_NEWEST = "newest"
SORT_RENT_ASCENDING = "rentAscending"
SORT_AREA_DESCENDING = "areaDescending"
SORT_OPTIONS: dict[str, str] = {
    SORT_NEWEST: "新着順",
    SORT_RENT_ASCENDING: "賃料が安い順",
    SORT_AREA_DESCENDING: "面積が広い順",
}
DEFAULT_SORT = SORT_NEWEST

# 並び順 → Contentful の order 指定
SORT_ORDERS: dict[str, list[str]] = {
    SORT_NEWEST: ["-fields.registrationDate", "-sys.createdAt"],
    SORT_RENT_ASCENDING: ["fields.rent", "-sys.createdAt"],
    SORT_AREA_DESCENDING: ["-fields.floorAreaTsubo", "-sys.createdAt"],
}

# ── 物件詳細 ───────────────────────────────────────────
# キーワード検索で参照する詳細項目のラベル
FORMER_BUSINESS_LABEL = "前業態"
# この項目以降は閲覧申請後にのみ表示する
LOCK_START_LABEL = "礼金/権利金"
DEFAULT_PROPERTY_IMAGE = "/propertyImage.png"

# ── 閲覧申請 Cookie ────────────────────────────────────
PROPERTY_UNLOCK_COOKIE_NAME = "property_unlocks"
PROPERTY_UNLOCK_MAX_AGE = 60 * 60 * 24 * 365  # 365日

# ── お問い合わせ ───────────────────────────────────────
SITE_NAME = "居抜きビュッフェ"
UNLOCK_INQUIRY_TYPE = "物件詳細情報の閲覧申請"

DESIRED_OPENING_PERIODS: dict[str, str] = {
    "A": "1ヶ月以内（移転などの急ぎ）",
    "B": "3ヶ月以内（資金OK！物件があればすぐ）",
    "C": "6ヶ月以内（事業計画中）",
    "D": "その他（情報収集中）",
}
