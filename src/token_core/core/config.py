# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Configuration management using Pydantic Settings."""

from beartype import beartype
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with immutable configuration."""

    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        frozen=True,  # Immutable settings
        validate_default=True,
        extra="forbid",
    )

    # Database
    database_url: str = Field(
        default="postgresql://localhost:5432/token_core",
        description="PostgreSQL connection URL",
        min_length=1,
    )
    database_pool_min: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Minimum database pool size",
    )
    database_pool_max: int = Field(
        default=20,
        ge=5,
        le=100,
        description="Maximum database pool size",
    )
    database_pool_timeout: float = Field(
        default=10.0,
        ge=1.0,
        le=60.0,
        description="Connection acquisition timeout in seconds",
    )
    database_command_timeout: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Query execution timeout in seconds",
    )

    # API Configuration
    app_name: str = Field(
        default="TokenCore",
        description="Application name",
        min_length=1,
    )
    api_env: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="API environment",
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Root log level",
    )

    # Token issuance policy
    access_token_ttl_seconds: int = Field(
        default=3600,
        ge=60,
        le=86400,
        description="Access token lifetime in seconds",
    )
    refresh_token_ttl_seconds: int | None = Field(
        default=86400 * 30,
        ge=60,
        description="Refresh token lifetime in seconds (None = no expiry)",
    )
    token_type: str = Field(
        default="bearer",
        min_length=1,
        description="token_type reported in token responses",
    )
    rotate_refresh_tokens: bool = Field(
        default=False,
        description="Revoke and reissue the refresh token on every refresh grant",
    )
    issue_refresh_token_on_authorization_code: bool = Field(
        default=True,
        description="Issue a refresh token when an authorization code is redeemed",
    )

    @field_validator("database_pool_max")
    @classmethod
    def validate_pool_sizes(cls: type["Settings"], v: int, info: ValidationInfo) -> int:
        """Ensure pool max is greater than pool min."""
        if "database_pool_min" in info.data:
            min_size = info.data["database_pool_min"]
            if v < min_size:
                raise ValueError(
                    f"database_pool_max ({v}) must be >= database_pool_min ({min_size})"
                )
        return v

    @field_validator("refresh_token_ttl_seconds")
    @classmethod
    def validate_refresh_ttl(
        cls: type["Settings"], v: int | None, info: ValidationInfo
    ) -> int | None:
        """Refresh tokens must not expire before the access tokens they renew."""
        if v is not None and "access_token_ttl_seconds" in info.data:
            access_ttl = info.data["access_token_ttl_seconds"]
            if v < access_ttl:
                raise ValueError(
                    f"refresh_token_ttl_seconds ({v}) must be >= "
                    f"access_token_ttl_seconds ({access_ttl})"
                )
        return v

    @property
    @beartype
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.api_env == "production"


_settings: Settings | None = None


@beartype
def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


@beartype
def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    global _settings
    _settings = None
