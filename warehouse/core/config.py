import logging
import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv
from fastapi import Request

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "change-me-in-prod"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Application settings, built once at start-up and handed to create_app()."""

    database_url: str = "sqlite+aiosqlite:///./warehouse.db"
    database_echo: bool = False

    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_lifetime_seconds: int = 24 * 60 * 60

    # Deadline for one store operation (a whole service transaction)
    db_operation_timeout: float = 5.0

    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)

    # Order creation reserves stock without a sufficiency check when enabled
    allow_over_reservation: bool = False
    # "loose" | "strict"
    order_status_transitions: str = "loose"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        jwt_secret = os.getenv("JWT_SECRET", "")
        if not jwt_secret:
            logger.warning("JWT_SECRET is not set, using insecure default value for development")
            jwt_secret = DEFAULT_JWT_SECRET

        origins = tuple(
            o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
        )

        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=_env_bool("DATABASE_ECHO", False),
            jwt_secret=jwt_secret,
            jwt_lifetime_seconds=int(os.getenv("JWT_LIFETIME_SECONDS", str(cls.jwt_lifetime_seconds))),
            db_operation_timeout=float(os.getenv("DB_OPERATION_TIMEOUT", str(cls.db_operation_timeout))),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            cors_origins=origins or ("*",),
            allow_over_reservation=_env_bool("ALLOW_OVER_RESERVATION", False),
            order_status_transitions=os.getenv("ORDER_STATUS_TRANSITIONS", "loose").strip().lower(),
        )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
