"""Shared fixtures: in-memory database, test client and org members."""
import os

# Must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("GMAIL_ACCESS_TOKEN", None)

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.db.session import Base, engine, SessionLocal
from app.core.rate_limit import reset_rate_limits
from app.core.security import get_password_hash
from app.api.auth import create_membership_token
from app.models import Organization, User, Membership, Account, Vendor, Contact, Project

TEST_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def org(db):
    org = Organization(name="Acme Ops")
    db.add(org)
    db.commit()
    db.refresh(org)
    return org


@pytest.fixture
def other_org(db):
    org = Organization(name="Other Tenant")
    db.add(org)
    db.commit()
    db.refresh(org)
    return org


@pytest.fixture
def account(db, org):
    account = Account(org_id=org.id, name="Globex")
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@pytest.fixture
def vendor(db, org):
    vendor = Vendor(org_id=org.id, name="Pixel Studio", email="studio@pixel.test", skills=["design"])
    db.add(vendor)
    db.commit()
    db.refresh(vendor)
    return vendor


@pytest.fixture
def make_member(db):
    """Create a user with a membership; returns the user with `.membership` set."""
    def _make(org, role, space, email, account_id=None, vendor_contact_id=None, password=TEST_PASSWORD):
        user = User(email=email, name=email.split("@")[0], hashed_password=get_password_hash(password))
        db.add(user)
        db.flush()
        membership = Membership(
            org_id=org.id,
            user_id=user.id,
            role=role,
            space=space,
            account_id=account_id,
            vendor_contact_id=vendor_contact_id,
        )
        db.add(membership)
        db.commit()
        db.refresh(user)
        db.refresh(membership)
        user.membership = membership
        return user
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_membership_token(user, user.membership)}"}
    return _headers


@pytest.fixture
def admin(make_member, org):
    return make_member(org, "admin", "internal", "admin@acme.test")


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(admin)


@pytest.fixture
def client_user(make_member, org, account):
    return make_member(org, "client_admin", "client", "buyer@globex.test", account_id=account.id)


@pytest.fixture
def vendor_user(db, make_member, org, vendor):
    contact = Contact(
        org_id=org.id,
        vendor_id=vendor.id,
        name="Val Vendor",
        email="val@pixel.test",
        contact_type="vendor",
    )
    db.add(contact)
    db.commit()
    return make_member(org, "vendor", "vendor", "val@pixel.test", vendor_contact_id=contact.id)


@pytest.fixture
def project(db, org, account, vendor):
    project = Project(org_id=org.id, name="Website relaunch", account_id=account.id, vendor_id=vendor.id)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project
