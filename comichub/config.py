"""ComicHub application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


PAYMENT_PROVIDERS = {"mock", "stripe"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _flag(value: str) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def normalize_base_url(value: str) -> str:
    url = (value or "").strip().rstrip("/")
    if not url:
        url = "http://localhost:9002"
    return url if url.startswith("http") else f"https://{url}"


def validate_provider(value: str) -> str:
    provider = (value or "mock").strip().lower()
    if provider not in PAYMENT_PROVIDERS:
        raise ValueError(f"PAYMENT_PROVIDER must be one of {sorted(PAYMENT_PROVIDERS)}, got {value!r}")
    return provider


def validate_log_level(value: str) -> str:
    level = (value or "INFO").strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"LOG_LEVEL must be one of {sorted(LOG_LEVELS)}, got {value!r}")
    return level


@dataclass
class ComicHubConfig:
    """Settings for one application instance."""

    database_url: str = "sqlite:///data/comichub.db"
    secret_key: str = "comichub-dev-secret"
    log_level: str = "INFO"
    payment_provider: str = "mock"
    stripe_secret_key: str = ""
    webhook_secret: str = ""
    app_base_url: str = "http://localhost:9002"
    currency: str = "usd"
    admin_username: str = "admin"
    admin_password: str = "comichub"
    seed_demo_data: bool = False

    def __post_init__(self) -> None:
        self.payment_provider = validate_provider(self.payment_provider)
        self.log_level = validate_log_level(self.log_level)
        self.app_base_url = normalize_base_url(self.app_base_url)
        self.currency = (self.currency or "usd").strip().lower()
        if len(self.currency) != 3:
            raise ValueError("Invalid currency code: expected ISO4217 length 3")

    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> "ComicHubConfig":
        """Build settings from the environment, after loading ``.env`` if present."""
        load_dotenv(env_file or Path.cwd() / ".env", override=False)
        env = os.environ
        return cls(
            database_url=env.get("DATABASE_URL", "sqlite:///data/comichub.db"),
            secret_key=env.get("SECRET_KEY", "comichub-dev-secret"),
            log_level=env.get("LOG_LEVEL", "INFO"),
            payment_provider=env.get("PAYMENT_PROVIDER", "mock"),
            stripe_secret_key=env.get("STRIPE_SECRET_KEY", ""),
            webhook_secret=env.get("PAYMENT_WEBHOOK_SECRET") or env.get("STRIPE_WEBHOOK_SECRET", ""),
            app_base_url=env.get("APP_BASE_URL", "http://localhost:9002"),
            currency=env.get("CURRENCY", "usd"),
            admin_username=env.get("ADMIN_USERNAME", "admin"),
            admin_password=env.get("ADMIN_PASSWORD", "comichub"),
            seed_demo_data=_flag(env.get("SEED_DEMO_DATA", "0")),
        )
