import json

from app.core.audit import audit_request, log_security_event
from app.models import AuditLog
from app.models.audit_log import AuditEventType


def test_entry_is_persisted_with_json_details(db, org, admin):
    entry = log_security_event(
        db,
        AuditEventType.INVITATION_CREATED,
        org_id=org.id,
        user_id=admin.id,
        resource_type="invitation",
        resource_id=admin.id,
        details={"when": admin.created_at, "email_sent": False},
    )
    assert entry is not None
    stored = db.query(AuditLog).one()
    assert stored.resource_id == str(admin.id)
    assert json.loads(stored.details)["email_sent"] is False


def test_audit_request_without_request_object(db, org, admin):
    admin.selected_org_id = org.id
    entry = audit_request(db, None, admin, AuditEventType.DELIVERABLE_APPROVED, "deliverable", "abc")
    assert entry.ip_address is None
    assert entry.org_id == org.id


def test_write_failure_does_not_raise(db, org, monkeypatch):
    def broken_commit():
        raise RuntimeError("database is gone")

    monkeypatch.setattr(db, "commit", broken_commit)
    assert log_security_event(db, AuditEventType.RATE_LIMIT_EXCEEDED, org_id=org.id) is None
