# backend/config.py
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker


class Settings(BaseSettings):
    # --- Database ---
    database_url: str = "sqlite:///backend/renttrackr_dev.db"

    # --- Session tokens (issued by the identity provider) ---
    # Production: JWT_ALGORITHM=RS256 and JWT_KEY set to the provider's PEM public key.
    jwt_key: str = "dev-secret-please-change"
    jwt_algorithm: str = "HS256"

    # --- CORS ---
    cors_origins: List[str] = ["http://localhost:3000"]

    # --- Logging ---
    log_level: str = "INFO"
    log_format: str = "text"

    # --- Admin endpoints ---
    admin_token: Optional[str] = None

    # --- Identity webhook ---
    clerk_webhook_secret: Optional[str] = None
    webhook_tolerance_seconds: int = 5 * 60

    # --- Messaging ---
    messaging_backend: str = "local"
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_whatsapp_from: str = "whatsapp:+14155238886"  # Twilio sandbox number
    twilio_api_base_url: str = "https://api.twilio.com/2010-04-01"
    messages_output_dir: str = "uploads/messages"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def twilio_is_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

# Ensure path directory exists (for SQLite)
if settings.database_url.startswith("sqlite:///"):
    db_path = Path(settings.database_url.replace("sqlite:///", ""))
    db_path.parent.mkdir(parents=True, exist_ok=True)

# --- SQLAlchemy setup ---
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False}
    if settings.database_url.startswith("sqlite")
    else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
