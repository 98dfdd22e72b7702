"""
Settings Management with Pydantic

Provides type-safe configuration management with:
- Environment variable and .env support
- Validation
- Backend, hierarchy and metrics configurations
"""

from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.roles import UNLIMITED
from ..metrics.trends import TimePeriod


class BackendType(str, Enum):
    """Supported data backends."""
    SUPABASE = "supabase"
    IN_MEMORY = "in_memory"


class BackendConfig(BaseSettings):
    """Hosted backend configuration."""
    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        extra="ignore"
    )

    backend: BackendType = BackendType.IN_MEMORY
    url: Optional[str] = None
    key: Optional[SecretStr] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)


class HierarchyConfig(BaseSettings):
    """Team hierarchy construction."""
    model_config = SettingsConfigDict(
        env_prefix="HIERARCHY_",
        extra="ignore"
    )

    max_depth: int = Field(default=UNLIMITED, ge=1)
    fallback_to_flat: bool = True
    use_manager_linkage: bool = True


class MetricsConfig(BaseSettings):
    """Metric entry and display."""
    model_config = SettingsConfigDict(
        env_prefix="METRICS_",
        extra="ignore"
    )

    ap_step_cents: int = Field(default=100, ge=1)  # $1 per increment
    default_period: TimePeriod = TimePeriod.DAY


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Application
    app_name: str = "Agency CRM"
    debug: bool = False
    log_level: str = "INFO"

    # Sub-configurations
    backend: BackendConfig = Field(default_factory=BackendConfig)
    hierarchy: HierarchyConfig = Field(default_factory=HierarchyConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        return cls(
            backend=BackendConfig(),
            hierarchy=HierarchyConfig(),
            metrics=MetricsConfig()
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
