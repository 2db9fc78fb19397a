"""物件詳細の閲覧申請状態（Cookie）

閲覧申請済みの物件 ID の集合を署名付き Cookie に保存する。
署名の作成・検証は UnlockCookieSerializer に閉じ込め、呼び出し側からは
ID 集合の読み書きだけが見えるようにする。
"""

import base64
import binascii
import hashlib
import hmac
import json
from http.cookies import CookieError, SimpleCookie
from typing import Optional

from .config import (
    APP_ENV,
    PROPERTY_UNLOCK_COOKIE_NAME,
    PROPERTY_UNLOCK_COOKIE_SECRET,
    PROPERTY_UNLOCK_MAX_AGE,
)


class UnlockCookieSerializer:
    """物件 ID リスト ⇄ 署名付き Cookie 値"""

    def __init__(self, secret: str = PROPERTY_UNLOCK_COOKIE_SECRET) -> None:
        self.secret = secret.encode("utf-8")

    def dumps(self, ids: list[str]) -> str:
        payload = json.dumps(ids, ensure_ascii=True, separators=(",", ":"))
        encoded = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")
        encoded = encoded.rstrip("=")
        return f"{encoded}.{self._sign(encoded)}"

    def loads(self, value: str) -> Optional[list]:
        """署名が正しければデコード結果を返す。不正なら None。"""
        encoded, sep, signature = value.rpartition(".")
        if not sep or not hmac.compare_digest(signature, self._sign(encoded)):
            return None
        padding = "=" * (-len(encoded) % 4)
        try:
            payload = base64.urlsafe_b64decode(encoded + padding)
            return json.loads(payload.decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return None

    def _sign(self, encoded: str) -> str:
        return hmac.new(self.secret, encoded.encode("ascii"), hashlib.sha256).hexdigest()


def normalize_ids(value) -> list[str]:
    """空でない文字列だけを重複なく順序を保って返す。"""
    if not isinstance(value, list):
        return []
    ids: list[str] = []
    for item in value:
        if isinstance(item, str) and item and item not in ids:
            ids.append(item)
    return ids


def get_unlocked_property_ids(
    cookie_header: Optional[str], serializer: UnlockCookieSerializer
) -> list[str]:
    """Cookie ヘッダーから閲覧申請済みの物件 ID を取り出す。壊れていれば空。"""
    if not cookie_header:
        return []
    cookie = SimpleCookie()
    try:
        cookie.load(cookie_header)
    except CookieError:
        return []
    morsel = cookie.get(PROPERTY_UNLOCK_COOKIE_NAME)
    if morsel is None:
        return []
    return normalize_ids(serializer.loads(morsel.value))


def is_property_unlocked(
    cookie_header: Optional[str],
    property_id: str,
    serializer: UnlockCookieSerializer,
) -> bool:
    return property_id in get_unlocked_property_ids(cookie_header, serializer)


def create_property_unlock_cookie(
    cookie_header: Optional[str],
    property_id: str,
    serializer: UnlockCookieSerializer,
    secure: Optional[bool] = None,
) -> str:
    """既存の申請済み ID に property_id を加えた Set-Cookie ヘッダー値を返す。"""
    ids = get_unlocked_property_ids(cookie_header, serializer)
    if property_id and property_id not in ids:
        ids.append(property_id)

    if secure is None:
        secure = APP_ENV == "production"

    parts = [
        f"{PROPERTY_UNLOCK_COOKIE_NAME}={serializer.dumps(ids)}",
        f"Max-Age={PROPERTY_UNLOCK_MAX_AGE}",
        "Path=/",
        "HttpOnly",
        "SameSite=Lax",
    ]
    if secure:
        parts.append("Secure")
    return "; ".join(parts)
