"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

_STRIPE_KEY_PREFIXES = ("sk_test_", "sk_live_")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    stripe_secret_key: str | None = None
    stripe_api_base: str = "https://api.stripe.com/v1"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3001
    base_url: str | None = None
    session_idle_timeout_seconds: float | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def use_mock(self) -> bool:
        """Return True when no payment provider credentials are present."""
        return not self.stripe_secret_key

    def resolved_base_url(self) -> str:
        """Return the public base URL used for redirects and widget assets."""
        if self.base_url:
            return self.base_url.rstrip("/")
        return f"http://localhost:{self.port}"


def is_valid_stripe_key(raw: str | None) -> bool:
    """Check whether a Stripe secret key looks usable."""
    if not raw:
        return False
    return raw.startswith(_STRIPE_KEY_PREFIXES)
