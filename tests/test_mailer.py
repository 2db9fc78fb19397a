import smtplib

import pytest

from inuki_search import mailer
from inuki_search.mailer import MailError, send_email


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def login(self, user, password):
        pass

    def sendmail(self, from_addr, to_addrs, message):
        FakeSMTP.sent.append((to_addrs, message))


def test_send_email(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(mailer.smtplib, "SMTP_SSL", FakeSMTP)
    send_email("taro@example.com", "件名", "本文")
    assert FakeSMTP.sent[0][0] == ["taro@example.com"]


def test_missing_recipient():
    with pytest.raises(MailError):
        send_email("", "件名", "本文")


def test_smtp_failure_is_wrapped(monkeypatch):
    def refuse(host, port, timeout=None):
        raise smtplib.SMTPConnectError(421, "busy")

    monkeypatch.setattr(mailer.smtplib, "SMTP_SSL", refuse)
    with pytest.raises(MailError) as excinfo:
        send_email("taro@example.com", "件名", "本文")
    assert isinstance(excinfo.value.__cause__, smtplib.SMTPException)
