"""
Centralized configuration with environment variable overrides.

Restaurant identity, model settings, ledger location, session limits and
the notification poll interval are all configurable here. Nothing is
hardcoded in conversation or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from order_agent.logging_context import LOG_DATE_FORMAT, LOG_FORMAT, install_customer_filter

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class RestaurantConfig:
    """Restaurant profile used when the data files do not override it."""

    name: str = os.getenv("RESTAURANT_NAME", "MEU RESTAURANTE")
    city: str = os.getenv("RESTAURANT_CITY", "Curitiba")
    pix_key: str = os.getenv("PIX_KEY", "")
    pix_receiver: str = os.getenv("PIX_RECEIVER", "")
    data_dir: str = os.getenv("RESTAURANT_DATA_DIR", "restaurants/default")
    timezone: str = os.getenv("RESTAURANT_TIMEZONE", "America/Sao_Paulo")


@dataclass(frozen=True)
class ModelConfig:
    """Chat completion settings for the attendant agent."""

    llm_model: str = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.4")


@dataclass(frozen=True)
class LedgerConfig:
    """Location of the order spreadsheet and how to reach it."""

    spreadsheet_id: str = os.getenv("SPREADSHEET_ID", "")
    sheet_name: str = os.getenv("LEDGER_SHEET_NAME", "STATUS DO PEDIDO")
    credentials_file: str = os.getenv("GOOGLE_CREDENTIALS_FILE", "google-credentials.json")
    max_rows: int = _safe_int("LEDGER_MAX_ROWS", "10000")
    request_timeout_sec: float = _safe_float("LEDGER_TIMEOUT", "30.0")


@dataclass(frozen=True)
class SessionConfig:
    """Bounds for the in-memory conversation sessions."""

    history_window: int = _safe_int("HISTORY_WINDOW", "10")
    ttl_seconds: int = _safe_int("SESSION_TTL_SECONDS", "21600")
    max_sessions: int = _safe_int("MAX_SESSIONS", "5000")


@dataclass(frozen=True)
class WatcherConfig:
    """Order status notification polling."""

    poll_interval_sec: float = _safe_float("NOTIFY_POLL_INTERVAL", "20.0")


@dataclass(frozen=True)
class IdentityConfig:
    """Phone and transport address conventions."""

    country_code: str = os.getenv("COUNTRY_CODE", "55")
    transport_domain: str = os.getenv("TRANSPORT_DOMAIN", "s.whatsapp.net")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    restaurant: RestaurantConfig = field(default_factory=RestaurantConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    agent_name: str = os.getenv("AGENT_NAME", "restaurant-attendant")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )
    if config.sessions.history_window < 1:
        raise ValueError(
            f"HISTORY_WINDOW must be >= 1, got {config.sessions.history_window}"
        )
    if config.sessions.ttl_seconds < 1:
        raise ValueError(
            f"SESSION_TTL_SECONDS must be >= 1, got {config.sessions.ttl_seconds}"
        )
    if config.sessions.max_sessions < 1:
        raise ValueError(
            f"MAX_SESSIONS must be >= 1, got {config.sessions.max_sessions}"
        )
    if config.watcher.poll_interval_sec <= 0:
        raise ValueError(
            f"NOTIFY_POLL_INTERVAL must be > 0, got {config.watcher.poll_interval_sec}"
        )
    if config.ledger.max_rows < 2:
        raise ValueError(
            f"LEDGER_MAX_ROWS must be >= 2, got {config.ledger.max_rows}"
        )
    if config.ledger.request_timeout_sec <= 0:
        raise ValueError(
            f"LEDGER_TIMEOUT must be > 0, got {config.ledger.request_timeout_sec}"
        )
    if not config.identity.country_code.isdigit():
        raise ValueError(
            f"COUNTRY_CODE must contain only digits, got {config.identity.country_code!r}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    install_customer_filter()
    logger.info("Configuration loaded for '%s'", config.restaurant.name)
    return config


# Singleton instance
settings = load_config()
