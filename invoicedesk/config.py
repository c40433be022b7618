from functools import lru_cache
from typing import List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="InvoiceDesk")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
        ]
    )
    use_mock_data: bool = Field(
        default=True
    )

    backend_base_url: AnyHttpUrl | None = Field(
        default=None
    )
    backend_timeout: float = Field(
        default=10.0
    )
    backend_token: str | None = Field(
        default=None
    )

    resend_api_key: str | None = Field(
        default=None
    )
    resend_base_url: AnyHttpUrl = Field(
        default="https://api.resend.com"
    )
    resend_timeout: float = Field(
        default=10.0
    )
    resend_min_request_interval: float = Field(
        default=0.5
    )
    resend_max_retries: int = Field(
        default=3
    )
    platform_sender: str = Field(
        default="Invoice Creator <onboarding@resend.dev>"
    )
    default_from_name: str = Field(
        default="Invoice Service"
    )
    domain_status_timeout: float = Field(
        default=5.0
    )

    stripe_secret_key: str | None = Field(
        default=None
    )
    stripe_base_url: AnyHttpUrl = Field(
        default="https://api.stripe.com"
    )
    stripe_timeout: float = Field(
        default=10.0
    )
    stripe_currency: str = Field(
        default="usd"
    )

    model_config = SettingsConfigDict(env_prefix="INVOICEDESK_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
