"""
Phone Orders — Configuration
"""
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "phone-orders"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    RESTAURANT_NAME: str = "Far East Chinese Restaurant"

    # ── Database ──────────────────────────────────────────────
    # DATABASE_URL wins; otherwise PostgreSQL when POSTGRES_HOST is set,
    # otherwise a local SQLite file.
    DATABASE_URL: str = ""
    SQLITE_PATH: str = "fareast.db"
    POSTGRES_HOST: str = ""
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "orders_db"
    POSTGRES_USER: str = "orders_user"
    POSTGRES_PASSWORD: str = "orders_pass"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.POSTGRES_HOST:
            return (
                f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )
        return f"sqlite+aiosqlite:///{self.SQLITE_PATH}"

    # ── Menu ──────────────────────────────────────────────────
    MENU_SEED_FILE: Path = PACKAGE_DIR / "data" / "menu.json"
    SEED_MENU_ON_STARTUP: bool = True

    # ── Ordering ──────────────────────────────────────────────
    ORDER_DAY_TIMEZONE: str = "UTC"
    SERIALIZE_ORDER_NUMBERING: bool = False
    STATUS_TRANSITION_POLICY: str = "any"  # "any" | "forward"
    BROADCAST_SEND_TIMEOUT_SECONDS: float = 2.0

    # ── Telephony (Twilio) ────────────────────────────────────
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    MEDIA_STREAM_URL: str = ""  # derived from the webhook Host header when empty
    HANGUP_GRACE_SECONDS: float = 5.0

    # ── Dialogue model (OpenAI Realtime) ──────────────────────
    OPENAI_API_KEY: str = ""
    OPENAI_REALTIME_URL: str = "wss://api.openai.com/v1/realtime"
    OPENAI_REALTIME_MODEL: str = "gpt-4o-realtime-preview"
    OPENAI_REALTIME_VOICE: str = "alloy"
    OPENAI_TEMPERATURE: float = 0.8

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
