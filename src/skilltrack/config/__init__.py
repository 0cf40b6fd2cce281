"""Configuration package for SkillTrack."""

from skilltrack.config.app_config import (
    AppConfig,
    AssignmentsConfig,
    AuthConfig,
    DatabaseConfig,
    MailConfig,
    RetryConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "AssignmentsConfig",
    "AuthConfig",
    "DatabaseConfig",
    "MailConfig",
    "RetryConfig",
    "clear_config_cache",
    "load_app_config",
]
