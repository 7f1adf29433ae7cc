"""
Centralized configuration with environment variable overrides.

Business wording, session lifetimes, catalog backend and delivery channel
are all configurable here. Nothing is hardcoded in engine or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

CATALOG_BACKENDS = ("memory", "firestore", "sheets")
DELIVERY_MODES = ("twiml", "twilio", "meta")


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
class BusinessConfig:
    """Shop-facing wording loaded from environment or defaults."""

    name: str = os.getenv("BUSINESS_NAME", "RailToner")
    currency_code: str = os.getenv("CURRENCY_CODE", "BWP")
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "P")
    payment_methods: str = os.getenv("PAYMENT_METHODS", "Orange Money or Masisi")
    payment_number: str = os.getenv("PAYMENT_NUMBER", "+267 XXX-XXXX")
    delivery_note: str = os.getenv(
        "DELIVERY_NOTE", "We will deliver to your office at the railway."
    )


@dataclass(frozen=True)
class SessionConfig:
    """Per-sender session lifetime settings."""

    idle_threshold_sec: int = _safe_int("SESSION_IDLE_SECONDS", "7200")
    sweep_interval_sec: int = _safe_int("SESSION_SWEEP_SECONDS", "1800")


@dataclass(frozen=True)
class CatalogConfig:
    """Which product store backs the catalog, and how to reach it."""

    backend: str = os.getenv("CATALOG_BACKEND", "memory")
    firebase_credentials_path: str = os.getenv("FIREBASE_CREDENTIALS_PATH", "")
    firestore_collection: str = os.getenv("FIRESTORE_COLLECTION", "products")
    google_credentials_path: str = os.getenv(
        "GOOGLE_CREDENTIALS_PATH", "google-credentials.json"
    )
    sheet_id: str = os.getenv("SHEET_ID", "")
    sheet_worksheet: str = os.getenv("SHEET_WORKSHEET", "Sheet1")


@dataclass(frozen=True)
class DeliveryConfig:
    """Outbound channel settings for replies and quote documents."""

    mode: str = os.getenv("DELIVERY_MODE", "twiml")
    twilio_account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_from_number: str = os.getenv("TWILIO_FROM_NUMBER", "")
    meta_access_token: str = os.getenv("META_ACCESS_TOKEN", "")
    meta_phone_number_id: str = os.getenv("META_PHONE_NUMBER_ID", "")
    meta_graph_version: str = os.getenv("META_GRAPH_VERSION", "v19.0")
    meta_verify_token: str = os.getenv("META_VERIFY_TOKEN", "")
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000")
    timeout_sec: float = _safe_float("TRANSPORT_TIMEOUT", "15.0")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "railtoner-bot")
    port: int = _safe_int("PORT", "3000")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.sessions.idle_threshold_sec < 1:
        raise ValueError(
            f"SESSION_IDLE_SECONDS must be >= 1, got {config.sessions.idle_threshold_sec}"
        )
    if config.sessions.sweep_interval_sec < 1:
        raise ValueError(
            f"SESSION_SWEEP_SECONDS must be >= 1, got {config.sessions.sweep_interval_sec}"
        )
    if config.catalog.backend not in CATALOG_BACKENDS:
        raise ValueError(
            f"CATALOG_BACKEND must be one of {CATALOG_BACKENDS}, got {config.catalog.backend!r}"
        )
    if config.delivery.mode not in DELIVERY_MODES:
        raise ValueError(
            f"DELIVERY_MODE must be one of {DELIVERY_MODES}, got {config.delivery.mode!r}"
        )
    if config.delivery.timeout_sec <= 0:
        raise ValueError(
            f"TRANSPORT_TIMEOUT must be > 0, got {config.delivery.timeout_sec}"
        )
    if not 0 < config.port < 65536:
        raise ValueError(f"PORT must be between 1 and 65535, got {config.port}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(
        "Configuration loaded for '%s' (catalog=%s, delivery=%s)",
        config.business.name, config.catalog.backend, config.delivery.mode,
    )
    return config


# Singleton instance
settings = load_config()
