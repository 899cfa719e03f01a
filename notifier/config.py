"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key used to verify the bearer JWT of every request",
        min_length=1,
    )
    jwt_algorithm: str = Field(
        default="HS256", description="Algorithm used to sign and verify access tokens"
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens minted by the CLI expire",
        gt=0,
    )
    app_timezone: str | None = Field(
        default=None,
        description="IANA timezone name (or UTC offset) used for stored timestamps",
    )
    firebase_credentials_file: str | None = Field(
        default=None,
        description="Path to the Firebase service account JSON file",
    )
    firebase_credentials_json: str | None = Field(
        default=None,
        description="Inline Firebase service account JSON document",
    )
    push_prune_unregistered_tokens: bool = Field(
        default=True,
        description="Deactivate device tokens the push provider reports as unregistered",
    )
    token_retention_days: int = Field(
        default=30,
        description="Days an inactive device token is kept before the retention sweep deletes it",
        gt=0,
    )
    disclose_notification_ownership: bool = Field(
        default=False,
        description=(
            "Answer 403 instead of 404 when a caller requests a notification owned by "
            "another user"
        ),
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @model_validator(mode="after")
    def _validate_firebase_credentials(self) -> "Settings":
        if self.firebase_credentials_file and self.firebase_credentials_json:
            raise ValueError(
                "FIREBASE_CREDENTIALS_FILE and FIREBASE_CREDENTIALS_JSON are mutually exclusive"
            )
        return self

    @property
    def push_enabled(self) -> bool:
        """Return ``True`` when Firebase credentials are configured."""

        return bool(self.firebase_credentials_file or self.firebase_credentials_json)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
