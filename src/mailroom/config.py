"""Service settings read from the environment.

Protean's own configuration (databases, brokers, event store) lives in
``domain.toml``; everything here is specific to delivering mail.
"""

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


def _default_dispatch_mode() -> str:
    # Attempts run inline under test, mirroring protean's synchronous processing
    return "inline" if os.getenv("PROTEAN_ENV") == "test" else "pool"


@dataclass(frozen=True)
class Settings:
    environment: str = "development"

    # Delivery provider
    email_provider: str = "smtp"
    from_email: str = "noreply@ecommerce.com"

    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_timeout: float = 10.0

    aws_region: str = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    ses_timeout: float = 10.0

    # User profile service
    user_service_url: str = "http://localhost:8081"
    user_service_timeout: float = 5.0

    # Content
    frontend_url: str = "http://localhost:3000"
    company_name: str = "Ecommerce Platform"

    # Dispatch pool
    dispatch_mode: str = "pool"
    dispatch_workers: int = 8
    dispatch_queue_capacity: int = 100
    dispatch_admission_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            environment=(os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower(),
            email_provider=os.getenv("MAILROOM_EMAIL_PROVIDER", "smtp").lower(),
            from_email=os.getenv("MAILROOM_FROM_EMAIL", "noreply@ecommerce.com"),
            smtp_host=os.getenv("SMTP_HOST", "localhost"),
            smtp_port=_env_int("SMTP_PORT", 587),
            smtp_username=os.getenv("SMTP_USERNAME") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            smtp_use_tls=_env_bool("SMTP_USE_TLS", True),
            smtp_timeout=_env_float("SMTP_TIMEOUT", 10.0),
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID") or None,
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY") or None,
            ses_timeout=_env_float("SES_TIMEOUT", 10.0),
            user_service_url=os.getenv("USER_SERVICE_URL", "http://localhost:8081"),
            user_service_timeout=_env_float("USER_SERVICE_TIMEOUT", 5.0),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/"),
            company_name=os.getenv("COMPANY_NAME", "Ecommerce Platform"),
            dispatch_mode=os.getenv("DISPATCH_MODE", _default_dispatch_mode()).lower(),
            dispatch_workers=_env_int("DISPATCH_WORKERS", 8),
            dispatch_queue_capacity=_env_int("DISPATCH_QUEUE_CAPACITY", 100),
            dispatch_admission_timeout=_env_float("DISPATCH_ADMISSION_TIMEOUT", 5.0),
        )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings.from_env()
