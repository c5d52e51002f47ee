from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

BASE_DIR = Path(__file__).resolve().parent.parent
ENV_FILE = BASE_DIR / ".env"

# Origins that are always accepted so the web client works against a local API.
DEFAULT_DEV_ORIGINS = (
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
)


class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "Trackly Home"
    VERSION: str = "1.0.0"
    API_PREFIX: str = ""
    DEBUG: bool = False

    # Database
    # Default to a local sqlite file for development; override via .env in production.
    DATABASE_URL: str = "sqlite:///./trackly.db"

    # Public site that serves the web client (used for invite links and CORS)
    SITE_URL: str = ""
    # Optional comma separated allow-list of extra origins
    CORS_ORIGINS: str = ""

    # Identity provider (bearer tokens are HS256 JWTs signed with this secret)
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # Email (Resend compatible HTTP API)
    RESEND_API_KEY: str = ""
    RESEND_FROM: str = ""
    RESEND_API_URL: str = "https://api.resend.com/emails"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), case_sensitive=True, extra="ignore"
    )

    @property
    def allowed_origins(self) -> List[str]:
        """SITE_URL, the explicit CSV allow-list and the development origins."""
        origins: List[str] = []
        if self.SITE_URL:
            origins.append(self.SITE_URL.rstrip("/"))
        origins.extend(o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip())
        origins.extend(DEFAULT_DEV_ORIGINS)
        return list(dict.fromkeys(origins))


settings = Settings()
