from datetime import datetime, timedelta
from urllib.parse import urlparse, parse_qs

import pytest

from app.api import invitations as invitations_api
from app.models import AuditLog, Invitation


def _token_from(link):
    return parse_qs(urlparse(link).query)["token"][0]


def _create(client, headers, **overrides):
    body = {"email": "new.hire@acme.test", "role": "delivery", "space": "internal"}
    body.update(overrides)
    return client.post("/api/invitations", json=body, headers=headers)


def test_admin_issues_invitation_with_one_time_link(client, admin_headers):
    response = _create(client, admin_headers, expires_in_minutes=120)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["display_status"] == "pending"
    assert data["email_sent"] is False
    assert data["can_revoke"] is True and data["can_resend"] is True
    assert "/auth/accept-invite?token=" in data["invite_link"]
    assert len(_token_from(data["invite_link"])) == 64

    # The link is never exposed again
    detail = client.get(f"/api/invitations/{data['id']}", headers=admin_headers)
    assert detail.status_code == 200
    assert "invite_link" not in detail.json()


def test_issue_writes_audit_entry(client, db, admin_headers):
    response = _create(client, admin_headers)
    entries = db.query(AuditLog).filter(AuditLog.event_type == "invitation_created").all()
    assert len(entries) == 1
    assert entries[0].resource_id == response.json()["id"]


def test_issue_sends_email_when_asked(client, admin_headers, monkeypatch):
    sent = []

    def fake_send(**kwargs):
        sent.append(kwargs)
        return True

    monkeypatch.setattr(invitations_api, "send_invitation_email", fake_send)
    response = _create(client, admin_headers, send_email=True)
    assert response.status_code == 201
    assert response.json()["email_sent"] is True
    assert sent[0]["to_email"] == "new.hire@acme.test"
    assert sent[0]["invite_link"] == response.json()["invite_link"]
    assert sent[0]["organization_name"] == "Acme Ops"


def test_email_failure_does_not_fail_issue(client, admin_headers, monkeypatch):
    def broken_send(**kwargs):
        raise RuntimeError("smtp down")

    monkeypatch.setattr(invitations_api, "send_invitation_email", broken_send)
    response = _create(client, admin_headers, send_email=True)
    assert response.status_code == 201
    assert response.json()["email_sent"] is False


@pytest.mark.parametrize("body", [
    {"role": "admin", "space": "client"},
    {"role": "vendor", "space": "internal"},
    {"role": "client_admin", "space": "client"},  # no account_id
    {"role": "sales", "space": "internal", "expires_in_minutes": 1},
    {"role": "sales", "space": "internal", "email": "not-an-email"},
])
def test_invalid_invitations_are_rejected(client, admin_headers, body):
    response = _create(client, admin_headers, **body)
    assert response.status_code == 422


def test_duplicate_pending_invitation_conflicts(client, admin_headers):
    assert _create(client, admin_headers).status_code == 201
    assert _create(client, admin_headers).status_code == 409


def test_non_admin_cannot_issue(client, make_member, org, auth_headers, db):
    sales = make_member(org, "sales", "internal", "sales@acme.test")
    response = _create(client, auth_headers(sales))
    assert response.status_code == 403
    assert db.query(AuditLog).filter(AuditLog.event_type == "unauthorized_access").count() == 1

    # Sales may still look at invitations
    assert client.get("/api/invitations", headers=auth_headers(sales)).status_code == 200


def test_client_cannot_list_invitations(client, client_user, auth_headers):
    assert client.get("/api/invitations", headers=auth_headers(client_user)).status_code == 403


def test_roles_endpoint_lists_fixed_mapping(client, admin_headers):
    response = client.get("/api/invitations/roles", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["roles_by_space"] == {
        "internal": ["admin", "sales", "delivery", "finance"],
        "client": ["client_admin", "client_member"],
        "vendor": ["vendor"],
    }


def test_list_shows_expired_as_derived_status(client, db, admin_headers):
    created = _create(client, admin_headers).json()
    invitation = db.query(Invitation).filter(Invitation.id.isnot(None)).one()
    invitation.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db.commit()

    listed = client.get("/api/invitations", headers=admin_headers).json()
    assert listed[0]["id"] == created["id"]
    assert listed[0]["status"] == "pending"
    assert listed[0]["display_status"] == "expired"

    only_expired = client.get("/api/invitations?status=expired", headers=admin_headers).json()
    assert [i["id"] for i in only_expired] == [created["id"]]
    assert client.get("/api/invitations?status=pending", headers=admin_headers).json() == []


def test_validate_and_accept_flow(client, admin_headers):
    link = _create(client, admin_headers, name="Nia Hire").json()["invite_link"]
    token = _token_from(link)

    validated = client.post("/api/invitations/validate", json={"token": token})
    assert validated.status_code == 200
    assert validated.json()["valid"] is True
    assert validated.json()["email"] == "new.hire@acme.test"
    assert validated.json()["role"] == "delivery"

    accepted = client.post("/api/invitations/accept", json={"token": token, "password": "strong-pass-1"})
    assert accepted.status_code == 200
    data = accepted.json()
    assert data["role"] == "delivery"
    assert data["space"] == "internal"
    assert data["redirect_url"] == "/internal"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Nia Hire"

    # Single use
    again = client.post("/api/invitations/accept", json={"token": token, "password": "strong-pass-1"})
    assert again.status_code == 400
    assert client.post("/api/invitations/validate", json={"token": token}).status_code == 400

    login = client.post("/api/auth/login", json={"email": "new.hire@acme.test", "password": "strong-pass-1"})
    assert login.status_code == 200


def test_validate_unknown_token(client, db):
    assert client.post("/api/invitations/validate", json={"token": "0" * 64}).status_code == 404


def test_client_invitation_redirects_to_client_space(client, admin_headers, account):
    created = _create(
        client, admin_headers,
        email="cfo@globex.test", role="client_admin", space="client", account_id=str(account.id),
    )
    assert created.status_code == 201
    token = _token_from(created.json()["invite_link"])
    data = client.post("/api/invitations/accept", json={"token": token, "password": "strong-pass-1"}).json()
    assert data["redirect_url"] == "/client"
    assert data["account_id"] == str(account.id)


def test_revoke_then_accept_fails(client, admin_headers):
    created = _create(client, admin_headers).json()
    token = _token_from(created["invite_link"])

    revoked = client.post(f"/api/invitations/{created['id']}/revoke", headers=admin_headers)
    assert revoked.status_code == 200
    assert revoked.json()["status"] == "revoked"
    assert revoked.json()["can_revoke"] is False

    # Idempotent
    assert client.post(f"/api/invitations/{created['id']}/revoke", headers=admin_headers).status_code == 200
    assert client.post("/api/invitations/accept", json={"token": token, "password": "strong-pass-1"}).status_code == 400
    assert client.post(f"/api/invitations/{created['id']}/resend", headers=admin_headers).status_code == 409


def test_revoke_accepted_invitation_conflicts(client, admin_headers):
    created = _create(client, admin_headers).json()
    token = _token_from(created["invite_link"])
    client.post("/api/invitations/accept", json={"token": token, "password": "strong-pass-1"})
    response = client.post(f"/api/invitations/{created['id']}/revoke", headers=admin_headers)
    assert response.status_code == 409


def test_resend_invalidates_previous_link(client, admin_headers, monkeypatch):
    monkeypatch.setattr(invitations_api, "send_invitation_email", lambda **kwargs: True)
    created = _create(client, admin_headers).json()
    old_token = _token_from(created["invite_link"])

    resent = client.post(
        f"/api/invitations/{created['id']}/resend",
        json={"expires_in_minutes": 60},
        headers=admin_headers,
    )
    assert resent.status_code == 200
    data = resent.json()
    assert data["status"] == "pending"
    assert data["email_sent"] is True
    new_token = _token_from(data["invite_link"])
    assert new_token != old_token

    assert client.post("/api/invitations/validate", json={"token": old_token}).status_code == 404
    assert client.post("/api/invitations/validate", json={"token": new_token}).status_code == 200


def test_resend_without_body(client, admin_headers, monkeypatch):
    monkeypatch.setattr(invitations_api, "send_invitation_email", lambda **kwargs: False)
    created = _create(client, admin_headers).json()
    response = client.post(f"/api/invitations/{created['id']}/resend", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["email_sent"] is False


def test_delete_invitation(client, admin_headers):
    created = _create(client, admin_headers).json()
    assert client.delete(f"/api/invitations/{created['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/invitations/{created['id']}", headers=admin_headers).status_code == 404


def test_invitations_of_other_org_are_invisible(client, make_member, other_org, admin_headers, auth_headers):
    created = _create(client, admin_headers).json()
    outsider = make_member(other_org, "admin", "internal", "boss@other.test")
    headers = auth_headers(outsider)

    assert client.get(f"/api/invitations/{created['id']}", headers=headers).status_code == 404
    assert client.post(f"/api/invitations/{created['id']}/revoke", headers=headers).status_code == 404
    assert client.get("/api/invitations", headers=headers).json() == []


def test_accept_is_rate_limited(client, db):
    for _ in range(10):
        client.post("/api/invitations/accept", json={"token": "0" * 64, "password": "strong-pass-1"})
    response = client.post("/api/invitations/accept", json={"token": "0" * 64, "password": "strong-pass-1"})
    assert response.status_code == 429


def test_accept_cannot_take_over_existing_account(client, make_member, other_org, admin_headers):
    make_member(other_org, "admin", "internal", "owner@other.test", password="original-pass-1")
    token = _token_from(_create(client, admin_headers, email="owner@other.test").json()["invite_link"])

    hijack = client.post("/api/invitations/accept", json={"token": token, "password": "chosen-by-admin-1"})
    assert hijack.status_code == 401

    login = client.post(
        "/api/auth/login",
        json={"email": "owner@other.test", "password": "chosen-by-admin-1", "org_id": str(other_org.id)},
    )
    assert login.status_code == 401
    login = client.post(
        "/api/auth/login",
        json={"email": "owner@other.test", "password": "original-pass-1", "org_id": str(other_org.id)},
    )
    assert login.status_code == 200

    # The real owner can still join with their own password
    accepted = client.post("/api/invitations/accept", json={"token": token, "password": "original-pass-1"})
    assert accepted.status_code == 200
    assert accepted.json()["role"] == "delivery"
