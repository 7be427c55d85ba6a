"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
Production constants here are the defaults; operators can override them
at runtime through the config service (see services/config_service.py).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # STORE
    # ===================
    store_backend: str = Field(
        default="memory",
        pattern="^(memory|supabase)$",
        description="Record store backend"
    )
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL (required for the supabase backend)"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key"
    )

    # ===================
    # SCRAP DEFAULTS
    # ===================
    fixed_startup_meters: float = Field(
        default=500,
        ge=0,
        le=10000,
        description="Press make-ready scrap (m)"
    )
    reprint_meters: float = Field(
        default=300,
        ge=0,
        le=10000,
        description="Extra scrap for DT (reprint) print layers (m)"
    )
    lamination1_meters: float = Field(
        default=300,
        ge=0,
        le=10000,
        description="Threading scrap for the first lamination (m)"
    )
    lamination2_meters: float = Field(
        default=300,
        ge=0,
        le=10000,
        description="Threading scrap for the second lamination (m)"
    )
    variable_scrap_percent: float = Field(
        default=0.05,
        ge=0,
        le=1,
        description="Variable scrap as a ratio of net meters (0.05 = 5%)"
    )
    default_tolerance_percent: float = Field(
        default=10,
        ge=0,
        le=100,
        description="Order tolerance (%) used when a request does not give one"
    )

    # ===================
    # ORDERS
    # ===================
    order_code_prefix: str = Field(
        default="OP-",
        min_length=1,
        max_length=10,
        description="Prefix for human-readable order codes"
    )
    order_code_start: int = Field(
        default=1000,
        ge=0,
        description="Order code offset; first order is start + 1"
    )
    stock_shortfall_policy: str = Field(
        default="OVERDRAW",
        pattern="^(OVERDRAW|REJECT)$",
        description="What to do when the primary roll is short and no substitute is chosen"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
