"""
Invitation emails carrying the magic link, sent through Gmail.
"""
from datetime import datetime
from html import escape

from app.services.gmail import send_email

ROLE_LABELS = {
    "admin": "Admin",
    "sales": "Sales",
    "delivery": "Delivery",
    "finance": "Finance",
    "client_admin": "Client Admin",
    "client_member": "Client Member",
    "vendor": "Vendor",
}

SPACE_LABELS = {
    "internal": "Internal",
    "client": "Client Portal",
    "vendor": "Vendor Portal",
}


def send_invitation_email(
    to_email: str,
    invite_link: str,
    role: str,
    space: str,
    expires_at: datetime,
    organization_name: str,
) -> bool:
    """Send the magic link. Returns False when the email could not be sent."""
    org = escape(organization_name)
    subject = f"You've been invited to join {organization_name}"
    html = f"""
    <p>You've been invited to join <strong>{org}</strong>
    as <strong>{ROLE_LABELS.get(role, role)}</strong> in the {SPACE_LABELS.get(space, space)}.</p>
    <p>Click the link below to set your password and sign in.
    This link can only be used once and expires on {expires_at.strftime("%Y-%m-%d %H:%M")} UTC.</p>
    <p><a href="{escape(invite_link)}">{escape(invite_link)}</a></p>
    <p>If you didn't expect this email, you can ignore it.</p>
    """
    return send_email(to_email, subject, html)
