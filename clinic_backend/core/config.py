import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:4200"])

# Reject appointment times that are not on the 15-minute slot grid.
STRICT_SLOT_ALIGNMENT = _get_bool(os.getenv("STRICT_SLOT_ALIGNMENT"), default=False)
STRICT_STATUS_TRANSITIONS = _get_bool(os.getenv("STRICT_STATUS_TRANSITIONS"), default=True)

DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at a server database in production.")
    if DEFAULT_PAGE_LIMIT < 1 or DEFAULT_PAGE_LIMIT > MAX_PAGE_LIMIT:
        raise RuntimeError("DEFAULT_PAGE_LIMIT must be between 1 and MAX_PAGE_LIMIT.")
