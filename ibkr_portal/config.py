"""
Configuration module using Pydantic Settings.

Provides validated, type-safe configuration from environment variables
and a `.env` file. Credentials for the gateway live separately in
ibkr_portal/ibkr_config.py.

Logging is configured here (before Settings) so that validation errors
are captured by structlog like everything else.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ibkr_portal import __version__

# --- Logging Setup (must happen before Settings to capture validation errors) ---
logging.basicConfig(
    format="%(asctime)s [%(levelname)-8s] %(message)s",
    stream=sys.stderr,
    level=logging.INFO,
    force=True,
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.KeyValueRenderer(
            key_order=["timestamp", "level", "event"]
        ),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


class Settings(BaseSettings):
    """Runtime settings for the dispatcher, poll tracker and CLI."""

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root log level (DEBUG, INFO, WARNING, ERROR)",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="IBKR_REQUEST_TIMEOUT_SECONDS",
        description="Timeout handed to the HTTP transport for each call",
    )
    request_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        validation_alias="IBKR_REQUEST_RETRY_ATTEMPTS",
        description=(
            "Attempts for GET requests that fail before any response arrives. "
            "1 disables retrying. Mutating requests are never retried."
        ),
    )
    request_retry_base_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        validation_alias="IBKR_REQUEST_RETRY_BASE_DELAY_SECONDS",
        description="First backoff delay; doubles on each further attempt",
    )
    snapshot_dir: Path = Field(
        default=Path(".ibkr_portal/state"),
        validation_alias="IBKR_SNAPSHOT_DIR",
        description="Directory for JSON poll snapshots used by the CLI",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    def apply_log_level(self) -> None:
        """Push the configured level onto the root logger and known loggers."""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        logging.getLogger().setLevel(level)
        for name in logging.root.manager.loggerDict:
            logging.getLogger(name).setLevel(level)


_STARTUP_NOTICE = (
    "ibkr-portal talks to a locally running Interactive Brokers Client Portal "
    "Gateway. Orders placed through it are live unless the credentials point "
    "at a paper account."
)


class RuntimeState:
    """
    Process-scoped initialization state.

    `initialize()` runs once per process (later calls are no-ops) and logs
    the startup notice. There is no teardown.
    """

    def __init__(self, notice: str = _STARTUP_NOTICE):
        self._notice = notice
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        """Return True if this call performed the initialization."""
        if self._initialized:
            return False
        self._initialized = True
        logger.warning("ibkr_portal_notice", version=__version__, notice=self._notice)
        return True


config = Settings()
runtime = RuntimeState()
