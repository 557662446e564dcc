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

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./agenda.db")

# Whole hours, local calendar day. Slots run over [open, close).
BUSINESS_OPEN_HOUR = int(os.getenv("BUSINESS_OPEN_HOUR", "7"))
BUSINESS_CLOSE_HOUR = int(os.getenv("BUSINESS_CLOSE_HOUR", "19"))

# 0 = Sunday ... 6 = Saturday
CLOSED_WEEKDAY = int(os.getenv("CLOSED_WEEKDAY", "0"))

ENFORCE_FUTURE_DATES = _get_bool(os.getenv("ENFORCE_FUTURE_DATES"), default=True)

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), default=["http://localhost:4200"])


def validate_runtime_config() -> None:
    if not 0 <= BUSINESS_OPEN_HOUR <= 24 or not 0 <= BUSINESS_CLOSE_HOUR <= 24:
        raise RuntimeError("BUSINESS_OPEN_HOUR and BUSINESS_CLOSE_HOUR must be between 0 and 24.")
    if BUSINESS_OPEN_HOUR >= BUSINESS_CLOSE_HOUR:
        raise RuntimeError("BUSINESS_OPEN_HOUR must be earlier than BUSINESS_CLOSE_HOUR.")
    if not 0 <= CLOSED_WEEKDAY <= 6:
        raise RuntimeError("CLOSED_WEEKDAY must be between 0 (Sunday) and 6 (Saturday).")
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite:///./"):
        raise RuntimeError("DATABASE_URL must point at a persistent database in production.")
