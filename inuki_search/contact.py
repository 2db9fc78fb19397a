"""お問い合わせ・閲覧申請フォームの検証とメール通知"""

import re
from typing import Callable, Optional

from .config import (
    ADMIN_EMAIL,
    DESIRED_OPENING_PERIODS,
    SITE_NAME,
    UNLOCK_INQUIRY_TYPE,
)
from .mailer import send_email as smtp_send_email
from .models import ContactForm
from .unlock import UnlockCookieSerializer, create_property_unlock_cookie

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
STRICT_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
MOBILE_PHONE_PATTERN = re.compile(r"^0\d{9,10}$")

FORM_KIND_INQUIRY = "propertyInquiry"
FORM_KIND_UNLOCK = "unlockDetails"
FORM_KIND_CONTACT = "contact"

REQUIRED = "この項目は必須です"
SYSTEM_ERROR = "エラーが発生しました。時間をおいて再度お試しください。"

SendEmail = Callable[[str, str, str], None]


class EmailError(Exception):
    """管理者向け・お客様向けのどちらの送信に失敗したかを保持する"""

    def __init__(
        self,
        message: str,
        code: str,
        target: str,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.target = target  # "admin" / "user"
        self.original_error = original_error


class ContactError(Exception):
    """お客様に表示するエラーメッセージ付きの受付失敗"""


# ─── 検証 ──────────────────────────────────────────────


def is_mobile_phone(value: str) -> bool:
    digits = re.sub(r"[^\d]", "", value)
    return bool(MOBILE_PHONE_PATTERN.match(digits))


def validate_property_inquiry(form: ContactForm) -> dict[str, str]:
    """物件へのお問い合わせフォームを検証する。エラーがなければ空の辞書。"""
    errors: dict[str, str] = {}

    if not form.inquiry_type:
        errors["inquiry_type"] = "お問い合わせ内容を選択してください"
    if form.inquiry_type == "その他" and not form.inquiry_content:
        errors["inquiry_content"] = "その他の内容を入力してください"
    if not form.name:
        errors["name"] = "お名前を入力してください"
    if not form.email:
        errors["email"] = "メールアドレスを入力してください"
    elif not EMAIL_PATTERN.match(form.email):
        errors["email"] = "正しいメールアドレスを入力してください"
    if not form.message:
        errors["message"] = "ご要望や確認事項を入力してください"

    return errors


def validate_unlock_details(form: ContactForm) -> dict[str, str]:
    """物件詳細の閲覧申請フォームを検証する。"""
    errors: dict[str, str] = {}

    if not form.name:
        errors["name"] = "氏名を入力してください"
    if not form.phone:
        errors["phone"] = "携帯番号を入力してください"
    elif not is_mobile_phone(form.phone):
        errors["phone"] = "正しい携帯番号を入力してください"
    if not form.email:
        errors["email"] = "メールアドレスを入力してください"
    elif not EMAIL_PATTERN.match(form.email):
        errors["email"] = "正しいメールアドレスを入力してください"
    if form.desired_opening_period not in DESIRED_OPENING_PERIODS:
        errors["desired_opening_period"] = "出店希望時期を選択してください"

    return errors


def validate_contact(form: ContactForm) -> dict[str, str]:
    """お問い合わせページ（物件指定なし）のフォームを検証する。電話番号必須。"""
    errors: dict[str, str] = {}

    if not form.inquiry_type.strip():
        errors["inquiry_type"] = REQUIRED
    if form.inquiry_type == "other" and not form.inquiry_content.strip():
        errors["inquiry_content"] = "その他を選択した場合は、具体的な内容の入力が必須です"
    if not form.name.strip():
        errors["name"] = REQUIRED
    if not form.phone.strip():
        errors["phone"] = REQUIRED
    if not form.email.strip():
        errors["email"] = REQUIRED
    elif not STRICT_EMAIL_PATTERN.match(form.email):
        errors["email"] = "正しいメールアドレス形式で入力してください"
    if not form.message.strip():
        errors["message"] = REQUIRED

    return errors


def validate_form(form: ContactForm) -> dict[str, str]:
    if form.form_kind == FORM_KIND_UNLOCK:
        return validate_unlock_details(form)
    if form.form_kind == FORM_KIND_CONTACT:
        return validate_contact(form)
    return validate_property_inquiry(form)


# ─── メール本文 ────────────────────────────────────────


def _or_dash(value: str) -> str:
    return value or "-"


def build_admin_mail(form: ContactForm) -> tuple[str, str]:
    """管理者向けメールの (件名, 本文)"""
    title = form.property_title or "物件指定なし"
    subject_target = f"{form.property_title}に" if form.property_title else ""
    subject = f"【{SITE_NAME}】{subject_target}お問い合わせがありました"

    if form.form_kind == FORM_KIND_UNLOCK:
        lines = [
            f"担当者: {_or_dash(form.assigned_agent)}",
            f"物件タイトル： {title}",
            f"お名前: {form.name}",
            f"メールアドレス: {form.email}",
            f"電話番号: {_or_dash(form.phone)}",
            f"出店希望時期: {_or_dash(form.message)}",
        ]
    else:
        lines = [
            f"物件ID: {form.property_id or 'お問い合わせ'}",
            f"担当者: {form.assigned_agent}",
            f"物件タイトル： {title}",
            f"お名前: {form.name}",
            f"メールアドレス: {form.email}",
            f"電話番号: {_or_dash(form.phone)}",
            f"お問い合わせ内容: {form.inquiry_type}",
            f"その他詳細: {_or_dash(form.inquiry_content)}",
            f"ご要望/確認事項: {form.message}",
        ]

    rule = "────────────────────"
    body = "\n".join(["新規のお問い合わせがありました。", "", rule, *lines, rule])
    return subject, body


def build_user_mail(form: ContactForm) -> tuple[str, str]:
    """お客様向け自動返信メールの (件名, 本文)"""
    subject = f"【{SITE_NAME}】お問い合わせありがとうございます"
    rule = "────────────────────"
    lines = [
        f"{form.name} 様",
        "",
        "お問い合わせいただき、ありがとうございます。",
        "以下の内容で承りました。",
        "担当者より順次ご連絡させていただきます。",
        "",
        rule,
        f"お問い合わせ内容: {form.inquiry_type}",
        f"その他詳細: {_or_dash(form.inquiry_content)}",
        f"お名前: {form.name}",
        f"メールアドレス: {form.email}",
        f"電話番号: {_or_dash(form.phone)}",
        f"ご要望/確認事項: {form.message}",
        rule,
        "",
        "※このメールは自動送信されています。",
        "※返信はお受けできませんので、ご了承ください。",
    ]
    return subject, "\n".join(lines) + "\n"


# ─── 送信 ──────────────────────────────────────────────


def save_contact_form(
    form: ContactForm,
    send_email: SendEmail = smtp_send_email,
    admin_email: str = ADMIN_EMAIL,
) -> None:
    """管理者に通知し、通常のお問い合わせならお客様にも自動返信する。

    Raises:
        ContactError: 送信に失敗した場合（お客様向けメッセージ付き）
    """
    try:
        subject, body = build_admin_mail(form)
        try:
            send_email(admin_email, subject, body)
        except Exception as exc:
            raise EmailError(
                "管理者向けメールの送信に失敗しました",
                "ADMIN_EMAIL_FAILED",
                "admin",
                exc,
            ) from exc

        # 閲覧申請ではお客様への自動返信は送らない
        if form.form_kind != FORM_KIND_UNLOCK:
            subject, body = build_user_mail(form)
            try:
                send_email(form.email, subject, body)
            except Exception as exc:
                raise EmailError(
                    "お客様向け自動返信メールの送信に失敗しました",
                    "USER_EMAIL_FAILED",
                    "user",
                    exc,
                ) from exc
    except EmailError as exc:
        print(f"[ERROR] お問い合わせ送信失敗 ({exc.code}): {exc.original_error}")
        if exc.target == "admin":
            raise ContactError(
                "お問い合わせの受付処理に失敗しました。お手数ですが、"
                "時間をおいて再度お試しいただくか、お電話にてお問い合わせください。"
            ) from exc
        raise ContactError(
            "確認メールの送信に失敗しました。お問い合わせは受け付けていますので、"
            "担当者から別途ご連絡させていただきます。"
        ) from exc


def submit_unlock_request(
    form: ContactForm,
    property_id: str,
    cookie_header: Optional[str],
    serializer: UnlockCookieSerializer,
    send_email: SendEmail = smtp_send_email,
    admin_email: str = ADMIN_EMAIL,
) -> str:
    """閲覧申請を受け付けて、物件を閲覧可能にする Set-Cookie 値を返す。

    出店希望時期はコード（A〜D）から表示文言に変換してメールに載せる。
    検証は呼び出し側で validate_unlock_details を済ませておくこと。
    """
    period = DESIRED_OPENING_PERIODS.get(form.desired_opening_period, "-")
    unlock_form = ContactForm(
        name=form.name,
        email=form.email,
        phone=form.phone,
        inquiry_type=UNLOCK_INQUIRY_TYPE,
        inquiry_content="",
        message=period,
        desired_opening_period=form.desired_opening_period,
        property_title=form.property_title,
        property_id=property_id,
        assigned_agent=form.assigned_agent,
        form_kind=FORM_KIND_UNLOCK,
    )
    save_contact_form(unlock_form, send_email=send_email, admin_email=admin_email)
    return create_property_unlock_cookie(cookie_header, property_id, serializer)
