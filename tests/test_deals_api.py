from datetime import datetime, timedelta

from app.models import Deal


def _create(client, headers, **overrides):
    body = {"name": "Globex audit", "amount": 12000, "probability": 20}
    body.update(overrides)
    return client.post("/api/deals", json=body, headers=headers)


def test_admin_creates_deal_in_prospect_stage(client, admin, admin_headers, account):
    response = _create(client, admin_headers, account_id=str(account.id))
    assert response.status_code == 201
    data = response.json()
    assert data["stage"] == "prospect"
    assert data["amount"] == 12000
    assert data["owner_id"] == str(admin.id)
    assert data["days_in_stage"] == 0


def test_stage_filter(client, admin_headers):
    _create(client, admin_headers, name="Early")
    _create(client, admin_headers, name="Closing", stage="negotiation")

    negotiating = client.get("/api/deals?stage=negotiation", headers=admin_headers).json()
    assert [d["name"] for d in negotiating] == ["Closing"]
    assert len(client.get("/api/deals", headers=admin_headers).json()) == 2
    assert client.get("/api/deals?stage=signed", headers=admin_headers).status_code == 422


def test_move_stage_resets_days_in_stage(client, db, admin_headers):
    deal_id = _create(client, admin_headers).json()["id"]
    deal = db.query(Deal).one()
    deal.stage_changed_at = datetime.utcnow() - timedelta(days=9)
    db.commit()
    assert client.get(f"/api/deals/{deal_id}", headers=admin_headers).json()["days_in_stage"] == 9

    # Reordering inside the same stage keeps the counter
    same = client.patch(f"/api/deals/{deal_id}/stage", json={"stage": "prospect", "position": 3}, headers=admin_headers)
    assert same.json()["position"] == 3
    assert same.json()["days_in_stage"] == 9

    moved = client.patch(f"/api/deals/{deal_id}/stage", json={"stage": "proposal"}, headers=admin_headers)
    assert moved.status_code == 200
    assert moved.json()["stage"] == "proposal"
    assert moved.json()["days_in_stage"] == 0


def test_update_and_delete(client, admin_headers):
    deal_id = _create(client, admin_headers).json()["id"]
    updated = client.patch(f"/api/deals/{deal_id}", json={"probability": 60, "next_action": "Send quote"}, headers=admin_headers)
    assert updated.json()["probability"] == 60
    assert updated.json()["next_action"] == "Send quote"
    assert client.patch(f"/api/deals/{deal_id}", json={"probability": 120}, headers=admin_headers).status_code == 422

    assert client.delete(f"/api/deals/{deal_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/deals/{deal_id}", headers=admin_headers).status_code == 404


def test_links_must_belong_to_org(client, admin_headers, make_member, other_org):
    outsider = make_member(other_org, "admin", "internal", "rep@other.test")
    assert _create(client, admin_headers, owner_id=str(outsider.id)).status_code == 404


def test_pipeline_is_hidden_from_clients_and_vendors(client, admin_headers, client_user, vendor_user, auth_headers):
    _create(client, admin_headers)
    for user in (client_user, vendor_user):
        assert client.get("/api/deals", headers=auth_headers(user)).status_code == 403


def test_finance_reads_but_cannot_move_deals(client, org, admin_headers, make_member, auth_headers):
    deal_id = _create(client, admin_headers).json()["id"]
    headers = auth_headers(make_member(org, "finance", "internal", "books@acme.test"))
    assert client.get("/api/deals", headers=headers).status_code == 200
    response = client.patch(f"/api/deals/{deal_id}/stage", json={"stage": "won"}, headers=headers)
    assert response.status_code == 403


def test_deals_of_other_org_are_not_found(client, admin_headers, make_member, other_org, auth_headers):
    deal_id = _create(client, admin_headers).json()["id"]
    headers = auth_headers(make_member(other_org, "admin", "internal", "root@other.test"))
    assert client.get(f"/api/deals/{deal_id}", headers=headers).status_code == 404
    assert client.get("/api/deals", headers=headers).json() == []
