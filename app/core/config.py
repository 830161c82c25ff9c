from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"

_DEFAULT_TIME_SLOTS = (
    "09:00 AM,09:30 AM,10:00 AM,10:30 AM,11:00 AM,11:30 AM,"
    "02:00 PM,02:30 PM,03:00 PM,03:30 PM,04:00 PM,04:30 PM"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = True

    # JWT
    secret_key: str
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Scheduling: the shop-wide set of bookable time-of-day labels, in display order
    time_slots: str = _DEFAULT_TIME_SLOTS

    # A signup with this email is created as ADMIN (first-run bootstrap)
    admin_email: str = ""

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def time_slots_list(self) -> list[str]:
        return [s.strip() for s in self.time_slots.split(",") if s.strip()]


settings = Settings()
