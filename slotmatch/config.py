"""
Centralized configuration with environment variable overrides.

Deployment-specific values (public URL, expiry window, email provider) are
read here once; services receive them explicitly.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from slotmatch.logging_context import RequestIdFilter

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid integer for {env_var}: {raw!r}") from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid float for {env_var}: {raw!r}") from None


def _safe_bool(env_var: str, default: str) -> bool:
    return os.getenv(env_var, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ServiceConfig:
    """Request issuing and lifecycle settings."""

    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    request_expiry_hours: int = _safe_int("REQUEST_EXPIRY_HOURS", "0")
    seed_demo_data: bool = _safe_bool("SEED_DEMO_DATA", "false")


@dataclass(frozen=True)
class NotifyConfig:
    """Email delivery and background dispatch settings."""

    resend_api_key: str | None = os.getenv("RESEND_API_KEY") or None
    resend_url: str = os.getenv("RESEND_URL", "https://api.resend.com/emails")
    from_email: str = os.getenv("FROM_EMAIL", "onboarding@resend.dev")
    timeout_sec: float = _safe_float("NOTIFY_TIMEOUT", "10.0")
    workers: int = _safe_int("NOTIFY_WORKERS", "4")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    service: ServiceConfig = field(default_factory=ServiceConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "slotmatch")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.service.request_expiry_hours < 0:
        raise ValueError(
            "REQUEST_EXPIRY_HOURS must be >= 0, "
            f"got {config.service.request_expiry_hours}"
        )
    if not config.service.public_base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"PUBLIC_BASE_URL must be an http(s) URL, got {config.service.public_base_url!r}"
        )
    if config.notify.workers < 1:
        raise ValueError(f"NOTIFY_WORKERS must be >= 1, got {config.notify.workers}")
    if config.notify.timeout_sec <= 0:
        raise ValueError(f"NOTIFY_TIMEOUT must be > 0, got {config.notify.timeout_sec}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
