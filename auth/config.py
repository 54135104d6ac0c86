"""Application configuration.

Values come from the environment (optionally seeded from a .env file).
Loading fails fast: the application cannot run with missing settings.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """
    Application configuration.

    Durations are in their natural units (minutes for the login window,
    hours for sessions, seconds for the sweep) to keep settings readable.
    """

    # HTTP
    max_content_len: int = Field(
        default=1024 * 1024,
        description="Largest request body accepted, in bytes",
        ge=0,
    )
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)

    # Database
    database_url: str = Field(..., min_length=1)

    # Identity provider
    oidc_issuer_url: str = Field(..., min_length=1)
    oidc_client_id: str = Field(..., min_length=1)
    oidc_client_secret: str = Field(..., min_length=1)
    oidc_redirect_uri: str = Field(..., min_length=1)
    oidc_scopes: list[str] = Field(
        default_factory=lambda: ["openid", "email"],
        description="Scopes requested at login. Must include an email scope",
    )
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    # Sessions and logins
    session_lifetime_hours: int = Field(
        default=24 * 7,
        description="How long an issued session stays valid",
        ge=1,
        le=2160,
    )
    login_process_ttl_minutes: int = Field(
        default=5,
        description="Age after which pending logins are swept",
        ge=1,
        le=60,
    )
    sweep_interval_seconds: int = Field(
        default=3 * 3600,
        description="Interval between expired row sweeps",
        ge=1,
    )

    log_level: str = Field(default="INFO")


_REQUIRED = {
    "database_url": "DATABASE_URL",
    "oidc_issuer_url": "OIDC_ISSUER_URL",
    "oidc_client_id": "OIDC_CLIENT_ID",
    "oidc_client_secret": "OIDC_CLIENT_SECRET",
    "oidc_redirect_uri": "OIDC_REDIRECT_URI",
}

_OPTIONAL = {
    "max_content_len": "MAX_CONTENT_LEN",
    "host": "HOST",
    "port": "PORT",
    "http_timeout_seconds": "HTTP_TIMEOUT_SECONDS",
    "session_lifetime_hours": "SESSION_LIFETIME_HOURS",
    "login_process_ttl_minutes": "LOGIN_PROCESS_TTL_MINUTES",
    "sweep_interval_seconds": "SWEEP_INTERVAL_SECONDS",
    "log_level": "LOG_LEVEL",
}


def load_config(env_file: Path | None = None) -> AppConfig:
    """Build AppConfig from the environment.

    Raises:
        ValueError: If a required variable is missing.
        pydantic.ValidationError: If a value is out of bounds.
    """
    if env_file is not None and env_file.exists():
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)

    values: dict[str, object] = {}
    for field, var in _REQUIRED.items():
        value = os.getenv(var)
        if not value:
            raise ValueError(f"{var} environment variable is required")
        values[field] = value

    for field, var in _OPTIONAL.items():
        value = os.getenv(var)
        if value:
            values[field] = value

    scopes = os.getenv("OIDC_SCOPES")
    if scopes:
        values["oidc_scopes"] = [s.strip() for s in scopes.split(",") if s.strip()]

    return AppConfig(**values)


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
