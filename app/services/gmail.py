"""
Gmail REST API client used for transactional email (invitation links).
Authenticates with the OAuth access token in GMAIL_ACCESS_TOKEN.
"""
from email.mime.text import MIMEText
from typing import Optional
import base64
import logging

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

GMAIL_TIMEOUT_SECONDS = 15.0


def _access_token() -> Optional[str]:
    token = getattr(settings, "GMAIL_ACCESS_TOKEN", None)
    if not token or not str(token).strip():
        return None
    return str(token).strip()


def _auth_headers(token: str) -> dict:
    return {
        "accept": "application/json",
        "authorization": f"Bearer {token}",
    }


def build_raw_message(to_email: str, subject: str, html_content: str, sender: Optional[str] = None) -> str:
    """RFC 2822 message, base64url encoded as the Gmail API expects."""
    message = MIMEText(html_content, "html", "utf-8")
    message["To"] = to_email
    message["Subject"] = subject
    if sender:
        message["From"] = sender
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")


def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Send a single email through the connected Gmail account.
    Returns True if sent successfully, False otherwise (e.g. Gmail not configured).
    """
    token = _access_token()
    if token is None:
        logger.info("[GMAIL] GMAIL_ACCESS_TOKEN not set, skipping email")
        return False

    payload = {
        "raw": build_raw_message(
            to_email.strip().lower(),
            subject,
            html_content,
            sender=getattr(settings, "GMAIL_SENDER", None),
        )
    }
    try:
        resp = httpx.post(
            f"{settings.GMAIL_API_BASE.rstrip('/')}/users/me/messages/send",
            headers=_auth_headers(token),
            json=payload,
            timeout=GMAIL_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as e:
        logger.error(f"[GMAIL] Send failed: {str(e)}")
        return False
    if resp.status_code not in (200, 201):
        logger.error(f"[GMAIL] Send rejected with status {resp.status_code}")
        return False
    return True


def get_connection_status() -> dict:
    """Ask the Gmail profile endpoint whether sending would work."""
    token = _access_token()
    if token is None:
        return {"connected": False, "email": None, "error": "Gmail is not configured"}
    try:
        resp = httpx.get(
            f"{settings.GMAIL_API_BASE.rstrip('/')}/users/me/profile",
            headers=_auth_headers(token),
            timeout=GMAIL_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as e:
        logger.error(f"[GMAIL] Status check failed: {str(e)}")
        return {"connected": False, "email": None, "error": "Gmail is unreachable"}
    if resp.status_code != 200:
        return {"connected": False, "email": None, "error": f"Gmail returned status {resp.status_code}"}
    try:
        profile = resp.json()
    except ValueError:
        logger.error("[GMAIL] Status check returned a non-JSON body")
        return {"connected": False, "email": None, "error": "Gmail returned an unreadable profile"}
    return {"connected": True, "email": profile.get("emailAddress"), "error": None}
