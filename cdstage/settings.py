"""
Configuration settings for cdstage.

This module provides a settings class for cdstage, with support for loading
configuration from TOML files and environment variables. The platform part of
the configuration is exposed as an immutable ``PlatformConfig`` value that is
passed explicitly into the provisioning and deletion entry points.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)


class Platform(str, Enum):
    """Supported target platform families."""

    KUBERNETES = "kubernetes"
    OPENSHIFT = "openshift"


class PlatformConfig(BaseModel):
    """Platform decisions evaluated once per invocation.

    Args:
        platform: Target platform family.
        manage_namespace: Whether the operator creates target namespaces.
            When disabled only their existence is verified.
        space_mode_enabled: Whether multi-tenant spaces are used instead of
            plain namespaces on kubernetes.
    """

    model_config = ConfigDict(frozen=True)

    platform: Platform = Platform.OPENSHIFT
    manage_namespace: bool = True
    space_mode_enabled: bool = False

    @property
    def is_kubernetes(self) -> bool:
        return self.platform == Platform.KUBERNETES

    @property
    def is_openshift(self) -> bool:
        return self.platform == Platform.OPENSHIFT


class Settings(BaseSettings):
    """Main settings class for cdstage.

    Values are loaded from environment variables prefixed with ``CDSTAGE_``
    and then from TOML configuration files.
    """

    model_config = SettingsConfigDict(
        toml_file=["settings.toml", "settings.custom.toml"], env_prefix="CDSTAGE_", extra="ignore"
    )

    # Platform settings
    platform_type: Platform = Platform.OPENSHIFT
    manage_namespace: bool = True
    kiosk_enabled: bool = False

    # Deletion settings
    deletion_backoff_seconds: float = 3.0

    # Logging settings
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: str | None = None  # If None, will use ~/cdstage/logs
    log_rotation: str = "20 MB"
    log_retention: str = "1 week"
    log_format: str | None = None  # Use default if None
    log_serialize: bool = False  # JSON lines in the log file

    @classmethod
    def settings_customize_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the sources for settings.

        Priority order: init arguments, environment variables, then TOML config files
        """
        return init_settings, env_settings, TomlConfigSettingsSource(settings_cls)

    @property
    def platform_config(self) -> PlatformConfig:
        """Get the immutable platform configuration."""
        return PlatformConfig(
            platform=self.platform_type,
            manage_namespace=self.manage_namespace,
            space_mode_enabled=self.kiosk_enabled,
        )

    def get_log_dir(self) -> Path:
        """Get the log directory path.

        Returns:
            Path to the log directory. Uses log_dir if specified,
            otherwise ``~/cdstage/logs``.
        """
        if self.log_dir:
            return Path(self.log_dir)
        return Path.home() / "cdstage" / "logs"


@lru_cache
def get_settings() -> Settings:
    """Get the settings instance, with caching.

    Returns:
        Cached Settings instance
    """
    return Settings()


# Create a global settings instance for easy imports
settings = get_settings()
