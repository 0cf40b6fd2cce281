"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file is missing.

Usage:
    from skilltrack.config.app_config import load_app_config

    config = load_app_config()
    config.auth.min_password_length
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

# Environment overrides
CONFIG_ENV = "SKILLTRACK_CONFIG"
DB_ENV = "SKILLTRACK_DB"


@dataclass
class DatabaseConfig:
    """Relational store location."""

    path: str = "db/skilltrack.db"


@dataclass
class AuthConfig:
    """Session and password policy."""

    min_password_length: int = 6
    session_ttl_hours: int = 24
    reset_ttl_minutes: int = 60
    instructor_code_length: int = 8


@dataclass
class RetryConfig:
    """Backoff settings for outbound network calls (seconds)."""

    max_retries: int = 5
    initial_delay: float = 1.0
    max_delay: float = 10.0
    jitter: float = 0.1


@dataclass
class MailConfig:
    """Outbound mail settings.

    When ``enabled`` is False messages are logged instead of sent.
    """

    enabled: bool = False
    host: str = "localhost"
    port: int = 25
    username: str | None = None
    password_env: str | None = None
    use_tls: bool = False
    sender: str = "SkillTrack <noreply@skilltrack.local>"
    base_url: str = "http://localhost:8000"

    def get_password(self) -> str | None:
        """Get SMTP password from environment variable."""
        if self.password_env:
            return os.environ.get(self.password_env)
        return None


@dataclass
class AssignmentsConfig:
    """Defaults for class and assignment management."""

    page_size: int = 50
    default_class_days: int = 180


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    mail: MailConfig = field(default_factory=MailConfig)
    assignments: AssignmentsConfig = field(default_factory=AssignmentsConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "db/skilltrack.db"},
        "auth": {
            "min_password_length": 6,
            "session_ttl_hours": 24,
            "reset_ttl_minutes": 60,
            "instructor_code_length": 8,
        },
        "retry": {
            "max_retries": 5,
            "initial_delay": 1.0,
            "max_delay": 10.0,
            "jitter": 0.1,
        },
        "mail": {
            "enabled": False,
            "host": "localhost",
            "port": 25,
        },
        "assignments": {
            "page_size": 50,
            "default_class_days": 180,
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    db_data = data.get("database") or {}
    auth_data = data.get("auth") or {}
    retry_data = data.get("retry") or {}
    mail_data = data.get("mail") or {}
    assignments_data = data.get("assignments") or {}

    database = DatabaseConfig(path=db_data.get("path", "db/skilltrack.db"))

    auth = AuthConfig(
        min_password_length=auth_data.get("min_password_length", 6),
        session_ttl_hours=auth_data.get("session_ttl_hours", 24),
        reset_ttl_minutes=auth_data.get("reset_ttl_minutes", 60),
        instructor_code_length=auth_data.get("instructor_code_length", 8),
    )

    retry = RetryConfig(
        max_retries=retry_data.get("max_retries", 5),
        initial_delay=float(retry_data.get("initial_delay", 1.0)),
        max_delay=float(retry_data.get("max_delay", 10.0)),
        jitter=float(retry_data.get("jitter", 0.1)),
    )

    mail = MailConfig(
        enabled=mail_data.get("enabled", False),
        host=mail_data.get("host", "localhost"),
        port=mail_data.get("port", 25),
        username=mail_data.get("username"),
        password_env=mail_data.get("password_env"),
        use_tls=mail_data.get("use_tls", False),
        sender=mail_data.get("sender", MailConfig.sender),
        base_url=mail_data.get("base_url", MailConfig.base_url),
    )

    assignments = AssignmentsConfig(
        page_size=assignments_data.get("page_size", 50),
        default_class_days=assignments_data.get("default_class_days", 180),
    )

    return AppConfig(
        database=database,
        auth=auth,
        retry=retry,
        mail=mail,
        assignments=assignments,
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    config_path = Path(os.environ.get(CONFIG_ENV, CONFIG_FILE))

    data: dict[str, Any]
    if config_path.exists():
        logger.debug("loading_app_config", source=str(config_path))
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    config = _parse_config(data)

    if db_override := os.environ.get(DB_ENV):
        config.database.path = db_override

    _cached_config = config
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
