from datetime import datetime, timedelta, timezone

import pytest
from python_http_client.exceptions import HTTPError

from secretlink.config import Settings
from secretlink.domain.token import Token, TokenKind
from secretlink.infrastructure.email.mock import MockNotifier
from secretlink.infrastructure.email.sendgrid import SendGridNotifier, describe_lifetime
from secretlink.wiring import _default_notifier

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_token(kind, ttl=timedelta(minutes=10)):
    return Token(
        id="tok123456",
        subject="alice@example.com",
        kind=kind,
        created_at=T0,
        expires_at=T0 + ttl,
    )


def make_notifier():
    return SendGridNotifier(
        api_key="SG.test",
        from_email="no-reply@example.com",
        frontend_url="https://links.example.com/",
    )


def test_render_code_email():
    subject, html = make_notifier().render(make_token(TokenKind.CODE))
    assert subject == "Email verification code"
    assert "tok123456" in html
    assert "10 minutes" in html


def test_code_email_states_the_token_lifetime():
    _, html = make_notifier().render(make_token(TokenKind.CODE, ttl=timedelta(seconds=90)))
    assert "1 minute 30 seconds" in html
    assert "10 minutes" not in html


@pytest.mark.parametrize(
    "lifetime,expected",
    [
        (timedelta(minutes=10), "10 minutes"),
        (timedelta(seconds=61), "1 minute 1 second"),
        (timedelta(seconds=45), "45 seconds"),
    ],
)
def test_describe_lifetime(lifetime, expected):
    assert describe_lifetime(lifetime) == expected


def test_render_link_email_points_at_frontend():
    subject, html = make_notifier().render(make_token(TokenKind.LINK))
    assert subject == "Your secret link"
    assert "https://links.example.com/secret/tok123456" in html


@pytest.mark.asyncio
async def test_send_failure_reports_false(monkeypatch):
    notifier = make_notifier()
    sent = []

    async def fake_send(to_email, subject, html):
        sent.append(to_email)
        raise HTTPError(503, "unavailable", "down", {})

    monkeypatch.setattr(notifier, "_send", fake_send)
    assert await notifier.notify("alice@example.com", make_token(TokenKind.CODE)) is False
    assert sent == ["alice@example.com"]


@pytest.mark.asyncio
async def test_send_success_reports_true(monkeypatch):
    notifier = make_notifier()

    async def fake_send(to_email, subject, html):
        return None

    monkeypatch.setattr(notifier, "_send", fake_send)
    assert await notifier.notify("alice@example.com", make_token(TokenKind.LINK)) is True


def test_default_notifier_follows_api_key():
    assert isinstance(_default_notifier(Settings(_env_file=None)), MockNotifier)
    configured = _default_notifier(Settings(_env_file=None, sendgrid_api_key="SG.x"))
    assert isinstance(configured, SendGridNotifier)
    assert configured.api_key == "SG.x"
