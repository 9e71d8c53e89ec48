"""Application configuration."""

from os import getenv

from pydantic import BaseModel


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "Inventory API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_url: str = getenv("DATABASE_URL", "sqlite:///./inventory.db")
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    admin_user: str = getenv("ADMIN_USER", "")
    admin_pass: str = getenv("ADMIN_PASS", "")
    activity_log_default_limit: int = int(getenv("ACTIVITY_LOG_DEFAULT_LIMIT", "500"))
    activity_log_max_limit: int = int(getenv("ACTIVITY_LOG_MAX_LIMIT", "5000"))
    activity_extra_actions: tuple[str, ...] = _split_csv(getenv("ACTIVITY_EXTRA_ACTIONS", ""))
    forwarded_allow_ips: tuple[str, ...] = _split_csv(getenv("FORWARDED_ALLOW_IPS", ""))


settings: Settings = Settings()
