"""
Arena Teams – Application configuration.
Reads environment variables from a .env file via pydantic-settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ──
    APP_NAME: str = "Arena Teams"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./arena.db"

    # ── JWT ──
    SECRET_KEY: str = "change-me-to-a-random-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ── Matching ──
    CANDIDATE_LIMIT: int = 15
    SUGGESTED_TEAMS_LIMIT: int = 20
    # Link a team to its competition as soon as someone asks to join it
    REGISTER_ON_JOIN_REQUEST: bool = True

    # ── Realtime ──
    # Seconds a push to one subscriber may take before it is dropped
    REALTIME_SEND_TIMEOUT: float = 2.0

    # ── Notifications (SMTP) ──
    SMTP_SERVER: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    PUBLIC_BASE_URL: str = "http://127.0.0.1:8000"


settings = Settings()
