import base64
from datetime import datetime
from email import message_from_bytes

import httpx
import pytest

from app.core.config import settings
from app.services import gmail
from app.services.invitation_email import send_invitation_email


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def json(self):
        return self._payload


@pytest.fixture
def gmail_token(monkeypatch):
    monkeypatch.setattr(settings, "GMAIL_ACCESS_TOKEN", "ya29.test-token")
    monkeypatch.setattr(settings, "GMAIL_SENDER", "ops@acme.test")


def test_send_skipped_without_token(monkeypatch):
    monkeypatch.setattr(settings, "GMAIL_ACCESS_TOKEN", None)

    def fail(*args, **kwargs):
        raise AssertionError("should not call Gmail")

    monkeypatch.setattr(httpx, "post", fail)
    assert gmail.send_email("a@b.test", "Hi", "<p>Hi</p>") is False


def test_send_posts_raw_message(gmail_token, monkeypatch):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append((url, headers, json))
        return FakeResponse(200, {"id": "msg-1"})

    monkeypatch.setattr(httpx, "post", fake_post)
    assert gmail.send_email(" Someone@Example.test ", "Welcome", "<p>Hello</p>") is True

    url, headers, payload = calls[0]
    assert url == "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"
    assert headers["authorization"] == "Bearer ya29.test-token"
    message = message_from_bytes(base64.urlsafe_b64decode(payload["raw"]))
    assert message["To"] == "someone@example.test"
    assert message["From"] == "ops@acme.test"
    assert message["Subject"] == "Welcome"


def test_send_reports_failure(gmail_token, monkeypatch):
    monkeypatch.setattr(httpx, "post", lambda *args, **kwargs: FakeResponse(403))
    assert gmail.send_email("a@b.test", "Hi", "<p>Hi</p>") is False

    def boom(*args, **kwargs):
        raise httpx.ConnectError("no route")

    monkeypatch.setattr(httpx, "post", boom)
    assert gmail.send_email("a@b.test", "Hi", "<p>Hi</p>") is False


def test_invitation_email_contains_link(gmail_token, monkeypatch):
    captured = {}

    def fake_post(url, headers=None, json=None, timeout=None):
        captured["raw"] = json["raw"]
        return FakeResponse(200)

    monkeypatch.setattr(httpx, "post", fake_post)
    link = "http://localhost:5000/auth/accept-invite?token=abc123"
    sent = send_invitation_email(
        to_email="new@acme.test",
        invite_link=link,
        role="client_admin",
        space="client",
        expires_at=datetime(2026, 5, 1, 9, 30),
        organization_name="Acme Ops",
    )
    assert sent is True
    message = message_from_bytes(base64.urlsafe_b64decode(captured["raw"]))
    body = message.get_payload(decode=True).decode("utf-8")
    assert "Client Admin" in body
    assert "accept-invite?token=abc123" in body
    assert "2026-05-01 09:30" in body
    assert message["Subject"] == "You've been invited to join Acme Ops"


def test_connection_status(gmail_token, monkeypatch):
    monkeypatch.setattr(httpx, "get", lambda *args, **kwargs: FakeResponse(200, {"emailAddress": "ops@acme.test"}))
    assert gmail.get_connection_status() == {"connected": True, "email": "ops@acme.test", "error": None}

    monkeypatch.setattr(httpx, "get", lambda *args, **kwargs: FakeResponse(401))
    status = gmail.get_connection_status()
    assert status["connected"] is False
    assert "401" in status["error"]


def test_connection_status_with_unreadable_body(gmail_token, monkeypatch):
    class HtmlResponse(FakeResponse):
        def json(self):
            raise ValueError("Expecting value: line 1 column 1")

    monkeypatch.setattr(httpx, "get", lambda *args, **kwargs: HtmlResponse(200))
    status = gmail.get_connection_status()
    assert status["connected"] is False
    assert status["email"] is None


def test_status_endpoint_is_internal_only(client, admin_headers, client_user, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "GMAIL_ACCESS_TOKEN", None)
    response = client.get("/api/gmail/status", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"connected": False, "email": None, "error": "Gmail is not configured"}

    assert client.get("/api/gmail/status", headers=auth_headers(client_user)).status_code == 403
