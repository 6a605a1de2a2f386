"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env in development (no-op when the file does not exist)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: int
        Value returned when the variable is unset or blank.

    Returns
    -------
    int
        Parsed value.

    Raises
    ------
    ValueError
        If the variable is set to something that is not an integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val.strip())


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    SECRET_KEY: str
        Flask secret. Defaults to a development placeholder.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    SQLALCHEMY_TRACK_MODIFICATIONS: bool
        Disabled to avoid extra overhead from the event system.
    SQLALCHEMY_ECHO: bool
        When ``True`` SQLAlchemy logs SQL statements for debugging.
    REDIS_URL: str | None
        Cache backing the revocation store. ``None`` leaves Redis unconfigured.
    CACHE_NAMESPACE: str
        Prefix prepended to every revocation key (shared Redis instances).
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    PASSWORD_HASH_METHOD: str
        Werkzeug hashing method (``scrypt`` by default).
    JWT_*_SECRET: str
        One signing secret per token type.
    JWT_*_TOKEN_TTL: int
        One lifetime (seconds) per token type.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Cache
    REDIS_URL = os.getenv("REDIS_URL")
    CACHE_NAMESPACE = os.getenv("CACHE_NAMESPACE", "")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Passwords
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

    # Tokens: one secret + one TTL per token type
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "CHANGE_ME_ACCESS")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "CHANGE_ME_REFRESH")
    JWT_EMAIL_CONFIRMATION_SECRET = os.getenv(
        "JWT_EMAIL_CONFIRMATION_SECRET", "CHANGE_ME_EMAIL_CONFIRMATION"
    )
    JWT_PASSWORD_RECOVERY_SECRET = os.getenv(
        "JWT_PASSWORD_RECOVERY_SECRET", "CHANGE_ME_PASSWORD_RECOVERY"
    )
    JWT_ACCESS_TOKEN_TTL = env_int("JWT_ACCESS_TOKEN_TTL", 15 * 60)
    JWT_REFRESH_TOKEN_TTL = env_int("JWT_REFRESH_TOKEN_TTL", 7 * 24 * 3600)
    JWT_EMAIL_CONFIRMATION_TOKEN_TTL = env_int("JWT_EMAIL_CONFIRMATION_TOKEN_TTL", 24 * 3600)
    JWT_PASSWORD_RECOVERY_TOKEN_TTL = env_int("JWT_PASSWORD_RECOVERY_TOKEN_TTL", 24 * 3600)

    # Built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Uses the fast ``pbkdf2`` hasher so fixtures stay quick.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled while relying on WSGI-level log
    configuration for noise control.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def token_settings_from_config(config: Mapping[str, Any]):
    """Build the per-type token settings from a Flask config mapping.

    Parameters
    ----------
    config: Mapping[str, Any]
        Typically ``app.config``.

    Returns
    -------
    tokenauth.services.tokens.dto.TokenSettings
        Closed, per-type secret/TTL table.

    Raises
    ------
    ConfigurationError
        If a secret is missing or a TTL is not a positive integer.
    """
    from tokenauth.services.tokens.dto import TokenSettings, TokenTypeSettings

    def _entry(prefix: str) -> TokenTypeSettings:
        return TokenTypeSettings(
            secret=config.get(f"JWT_{prefix}_SECRET") or "",
            ttl=int(config.get(f"JWT_{prefix}_TOKEN_TTL") or 0),
        )

    return TokenSettings(
        access=_entry("ACCESS"),
        refresh=_entry("REFRESH"),
        email_confirmation=_entry("EMAIL_CONFIRMATION"),
        password_recovery=_entry("PASSWORD_RECOVERY"),
    )
