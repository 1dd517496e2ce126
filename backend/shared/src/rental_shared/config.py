"""Application settings.

All external service configuration lives here and is read once at process
startup. Services receive the resulting ``Settings`` object through their
constructors; nothing below the API layer reads environment variables.

Environment variables use the ``RENTAL_`` prefix, e.g. ``RENTAL_ENVIRONMENT``,
``RENTAL_DYNAMODB_TABLE_PREFIX``, ``RENTAL_STRIPE_SECRET_KEY``.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the rental backend."""

    model_config = SettingsConfigDict(
        env_prefix="RENTAL_",
        env_file=".env",
        extra="ignore",
    )

    environment: str = Field(default="dev", description="Deployment environment name")
    aws_region: str = Field(default="eu-central-1")
    dynamodb_table_prefix: str | None = Field(
        default=None,
        description="Table name prefix; defaults to rental-{environment}",
    )

    # Availability
    default_buffer_days: int = Field(default=1, ge=0)
    reservation_max_attempts: int = Field(default=3, ge=1)

    # Checkout
    currency: str = Field(default="pln", min_length=3, max_length=3)
    site_url: str = Field(default="http://localhost:3000")
    checkout_session_ttl_seconds: int = Field(default=1800, ge=1800, le=86400)

    # Stripe credentials. When unset they are read from SSM Parameter Store.
    stripe_secret_key: SecretStr | None = None
    stripe_webhook_secret: SecretStr | None = None

    # Office (back-office) access
    office_api_token: SecretStr | None = None

    cors_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000")
    log_level: str = Field(default="INFO")

    @field_validator("currency")
    @classmethod
    def lower_currency(cls, v: str) -> str:
        return v.lower()

    @property
    def table_prefix(self) -> str:
        return self.dynamodb_table_prefix or f"rental-{self.environment}"

    @property
    def ssm_prefix(self) -> str:
        """Parameter Store path prefix for this environment's secrets."""
        return f"/rental/{self.environment}"

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [o.strip().rstrip("/") for o in self.cors_origins.split(",")]
        return [o for o in dict.fromkeys(origins) if o]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
