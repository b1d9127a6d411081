from pydantic_settings import BaseSettings
from typing import Optional, List


def _parse_allowed_origins(v: str) -> List[str]:
    """Parse comma-separated origins string; strip whitespace; keep non-empty."""
    if not v or not v.strip():
        return []
    return [o.strip() for o in v.split(",") if o.strip()]


_DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5000",
    "http://127.0.0.1:5173",
]


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "postgresql://postgres:postgres@db:5432/opsportal"

    # CORS: comma-separated extra origins for production (e.g. https://portal.example.com)
    # Default localhost origins are always included.
    ALLOWED_ORIGINS_EXTRA: str = ""

    def get_allowed_origins(self) -> List[str]:
        """Return CORS allowed origins: default localhost + ALLOWED_ORIGINS_EXTRA."""
        return _DEFAULT_CORS_ORIGINS + _parse_allowed_origins(self.ALLOWED_ORIGINS_EXTRA)

    # Auth
    SECRET_KEY: str = "supersecret_jwt_key_change_in_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Invitations
    INVITATION_DEFAULT_EXPIRES_MINUTES: int = 30
    ORGANIZATION_NAME: str = "Ops Portal"

    # Frontend (magic links point here)
    FRONTEND_URL: str = "http://localhost:5000"

    # Gmail (invitation emails); access token comes from the Google OAuth connection
    GMAIL_ACCESS_TOKEN: Optional[str] = None
    GMAIL_SENDER: Optional[str] = None
    GMAIL_API_BASE: str = "https://gmail.googleapis.com/gmail/v1"

    # Admin
    SUDO_ADMIN_EMAIL: str = "admin@opsportal.local"
    SUDO_ADMIN_PASSWORD: str = "changeme"

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        # Environment variables win over .env values


settings = Settings()
