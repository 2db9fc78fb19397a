"""SMTP メール送信"""

import smtplib
from email.mime.text import MIMEText

from .config import MAIL_FROM, SMTP_HOST, SMTP_PASS, SMTP_PORT, SMTP_USER


class MailError(Exception):
    """メール送信エラー"""


def send_email(to: str, subject: str, text: str) -> None:
    """テキストメールを 1 通送信する。

    Raises:
        MailError: SMTP サーバーへの接続・認証・送信に失敗した場合
    """
    if not to:
        raise MailError("宛先メールアドレスが設定されていません")

    msg = MIMEText(text, "plain", "utf-8")
    msg["Subject"] = subject
    msg["From"] = MAIL_FROM
    msg["To"] = to

    try:
        with smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, timeout=30) as server:
            server.login(SMTP_USER, SMTP_PASS)
            server.sendmail(MAIL_FROM, [to], msg.as_string())
    except (smtplib.SMTPException, OSError) as exc:
        print(f"[ERROR] メール送信失敗 ({to}): {exc}")
        raise MailError(f"メール送信に失敗しました: {exc}") from exc

    print(f"[INFO] メール送信成功: {subject}")
