#!/usr/bin/env python3
"""Seed script to create the first organization and its admin user"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from sqlalchemy import func
from sqlalchemy.orm import Session
from app.db.session import SessionLocal
from app.models.organization import Organization
from app.models.user import User
from app.models.membership import Membership, UserRole, Space
from app.core.security import get_password_hash
from app.core.config import settings


def seed_admin():
    db: Session = SessionLocal()
    try:
        email = settings.SUDO_ADMIN_EMAIL.strip().lower()
        # Check if admin already exists
        admin = db.query(User).filter(func.lower(User.email) == email).first()
        if admin:
            print(f"Admin user {email} already exists")
            return

        org = db.query(Organization).filter(Organization.name == settings.ORGANIZATION_NAME).first()
        if org is None:
            org = Organization(name=settings.ORGANIZATION_NAME)
            db.add(org)
            db.flush()

        admin = User(
            email=email,
            name="Admin",
            hashed_password=get_password_hash(settings.SUDO_ADMIN_PASSWORD),
        )
        db.add(admin)
        db.flush()
        db.add(Membership(
            org_id=org.id,
            user_id=admin.id,
            role=UserRole.ADMIN.value,
            space=Space.INTERNAL.value,
        ))
        db.commit()
        print(f"Admin user created: {email} (org: {org.name})")
        print(f"Password: (use SUDO_ADMIN_PASSWORD from env)")
    except Exception as e:
        db.rollback()
        print(f"Error creating admin user: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_admin()
