# Fichier: fightmeta/backend/app/core/config.py
from pydantic_settings import BaseSettings
from typing import Optional, List
from pydantic import AnyHttpUrl, ValidationError, field_validator
import sys

class Settings(BaseSettings):
    DATABASE_URL: str
    ENVIRONMENT: str = "development"

    # Signs the admin session cookie and the development tokens.
    SECRET_KEY: str

    # --- Identity provider (JWT issued by the hosted auth service) ---
    IDENTITY_JWT_KEY: Optional[str] = None
    IDENTITY_JWT_ALGORITHMS: List[str] = ["RS256", "HS256"]
    IDENTITY_JWT_ISSUER: Optional[str] = None
    IDENTITY_JWT_AUDIENCE: Optional[str] = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # --- Stripe ---
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_PUBLISHABLE_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    PLATFORM_FEE_PERCENT: float = 10.0
    CHECKOUT_CURRENCY: str = "usd"
    CHECKOUT_PAYMENT_METHOD_TYPES: List[str] = ["card", "paynow"]

    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    FRONTEND_BASE_URL: AnyHttpUrl = "http://localhost:3000"

    # --- Back-office ---
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD_HASH: Optional[str] = None

    # Catalog
    LATEST_ITEMS_LIMIT: int = 8

    # Performance instrumentation
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300

    class Config:
        env_file = ".env"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Ensure Postgres URLs always use the asyncpg driver.

        Managed Postgres providers still hand out ``postgres://`` URLs, an alias
        SQLAlchemy no longer ships. Those URLs (and ``postgresql://`` or
        psycopg variants) are upgraded to ``postgresql+asyncpg://`` so the async
        engine used by the back-office boots. SQLite and other backends are left
        untouched; the synchronous engine is derived from this URL later on.
        """

        if not isinstance(value, str):
            return value

        if "+asyncpg" in value:
            return value

        replacements = {
            "postgres://": "postgresql+asyncpg://",
            "postgresql://": "postgresql+asyncpg://",
            "postgresql+psycopg2://": "postgresql+asyncpg://",
            "postgresql+psycopg://": "postgresql+asyncpg://",
        }

        for prefix, target in replacements.items():
            if value.startswith(prefix):
                return target + value[len(prefix) :]

        return value

    @field_validator("PLATFORM_FEE_PERCENT")
    @classmethod
    def _check_fee_percent(cls, value: float) -> float:
        if value < 0 or value > 100:
            raise ValueError("PLATFORM_FEE_PERCENT must be between 0 and 100")
        return value


def _log_settings_validation_error(exc: ValidationError) -> None:
    """Pretty-print missing or invalid environment variables.

    The exception bubbles up during module import, which makes it hard to spot
    which variable is responsible. The structured error payload is printed so
    it shows up in server logs before the exception is re-raised.
    """

    header = "Configuration error while loading environment variables:"
    print(header, file=sys.stderr)

    try:
        details = exc.errors()
    except Exception:  # pragma: no cover
        details = None

    if details:
        for error in details:
            location = ".".join(str(part) for part in error.get("loc", ()))
            message = error.get("msg", "Unknown validation error")
            type_name = error.get("type")
            hint_parts = [message]
            if type_name:
                hint_parts.append(f"(type={type_name})")
            hint = " ".join(hint_parts)
            print(f"  - {location}: {hint}", file=sys.stderr)
    else:
        print(exc, file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _log_settings_validation_error(exc)
    raise
