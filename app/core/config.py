from pydantic_settings import BaseSettings
from typing import Optional, List


def _parse_allowed_origins(v: str) -> List[str]:
    """Parse comma-separated origins string; strip whitespace; keep non-empty."""
    if not v or not v.strip():
        return []
    return [o.strip() for o in v.split(",") if o.strip()]


_DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:8081",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
    "http://127.0.0.1:8081",
]


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "postgresql://postgres:postgres@db:5432/tikiti"

    # CORS: comma-separated extra origins for production (e.g. https://gettikiti.com)
    # Default localhost origins are always included.
    ALLOWED_ORIGINS_EXTRA: str = ""

    def get_allowed_origins(self) -> List[str]:
        """Return CORS allowed origins: default localhost + ALLOWED_ORIGINS_EXTRA."""
        return _DEFAULT_CORS_ORIGINS + _parse_allowed_origins(self.ALLOWED_ORIGINS_EXTRA)

    # Auth
    SECRET_KEY: str = "supersecret_jwt_key_change_in_production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Links
    APP_URL: str = "http://localhost:3000"  # Organizer dashboard (login, invites, billing callback, ticket PDF)
    WEB_URL: str = "https://gettikiti.com"  # Public event pages

    # Paystack
    PAYSTACK_SECRET_KEY: Optional[str] = None  # Also the webhook signing secret
    PAYSTACK_BASE_URL: str = "https://api.paystack.co"
    PAYSTACK_PRO_PLAN_CODE: Optional[str] = None

    # Brevo (transactional email)
    BREVO_API_KEY: Optional[str] = None
    BREVO_SENDER_EMAIL: str = "noreply@tikiti.com"
    BREVO_SENDER_NAME: str = "Tikiti"

    # Arkesel (SMS)
    ARKESEL_API_KEY: Optional[str] = None
    ARKESEL_SENDER_ID: str = "Tikiti"

    # Anthropic (AI descriptions and reports)
    ANTHROPIC_API_KEY: Optional[str] = None
    ANTHROPIC_MODEL: str = "claude-3-haiku-20240307"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
