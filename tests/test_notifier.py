import smtplib

import pytest

import config
from core import dependencies
from core.exceptions import ConfigurationError, DeliveryError
from schemas.session import VerificationPurpose
from utils.notifier import LogNotifier, SmtpNotifier, create_notifier, render_body


def test_log_channel_in_development(monkeypatch):
    monkeypatch.setattr(config, "EMAIL_DELIVERY", "log")
    monkeypatch.setattr(config, "ENVIRONMENT", "development")
    assert isinstance(create_notifier(), LogNotifier)


def test_log_channel_is_refused_in_production(monkeypatch):
    monkeypatch.setattr(config, "EMAIL_DELIVERY", "log")
    monkeypatch.setattr(config, "ENVIRONMENT", "production")
    with pytest.raises(ConfigurationError):
        create_notifier()


def test_unknown_channel_is_refused(monkeypatch):
    monkeypatch.setattr(config, "EMAIL_DELIVERY", "carrier-pigeon")
    with pytest.raises(ConfigurationError):
        create_notifier()


def test_smtp_channel(monkeypatch):
    monkeypatch.setattr(config, "EMAIL_DELIVERY", "smtp")
    assert isinstance(create_notifier(), SmtpNotifier)


def test_log_notifier_writes_the_code(caplog):
    with caplog.at_level("WARNING"):
        LogNotifier().send_code("a@plv.edu.ph", "123456", VerificationPurpose.SIGNUP)
    assert "123456" in caplog.text


def test_body_mentions_code_and_expiry():
    body = render_body("654321", VerificationPurpose.PASSWORD_RESET)
    assert "654321" in body
    assert "reset" in body
    assert f"{config.VERIFICATION_CODE_TTL_MINUTES} minutes" in body


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def sendmail(self, sender, recipients, message):
        FakeSMTP.sent.append((sender, recipients, message))


def test_smtp_notifier_sends_mail(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)

    SmtpNotifier(host="mail.test", port=25, sender="cira@plv.edu.ph").send_code(
        "a@plv.edu.ph", "123456", VerificationPurpose.SIGNUP
    )

    sender, recipients, message = FakeSMTP.sent[0]
    assert sender == "cira@plv.edu.ph"
    assert recipients == ["a@plv.edu.ph"]
    assert "123456" in message


def test_smtp_failure_raises_delivery_error(monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("no server")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    with pytest.raises(DeliveryError):
        SmtpNotifier(host="mail.test", port=25).send_code(
            "a@plv.edu.ph", "123456", VerificationPurpose.SIGNUP
        )


def test_unknown_store_backend_is_refused(monkeypatch):
    monkeypatch.setattr(config, "STORE_BACKEND", "mongo")
    with pytest.raises(ConfigurationError):
        dependencies.check_store_backend()
