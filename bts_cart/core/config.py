"""Environment-driven configuration for the cart store."""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from bts_cart.core.constants import (
    CART_STORAGE_KEY,
    DEFAULT_CURRENCY_DECIMALS,
    DEFAULT_ORIGIN,
    DEFAULT_STORAGE_DIR,
    MAX_CURRENCY_DECIMALS,
    STORAGE_BACKEND_AUTO,
    STORAGE_BACKENDS,
)
from bts_cart.core.exceptions import ConfigurationException


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationException(f"{name} must be an integer, got {raw!r}")


@dataclass(slots=True)
class Settings:
    storage_backend: str = STORAGE_BACKEND_AUTO
    storage_key: str = CART_STORAGE_KEY
    origin: str = DEFAULT_ORIGIN
    storage_dir: str = DEFAULT_STORAGE_DIR
    redis_url: str | None = None
    currency_decimals: int = DEFAULT_CURRENCY_DECIMALS
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    backend = os.getenv("BTS_CART_STORAGE_BACKEND", STORAGE_BACKEND_AUTO).strip().lower()
    if backend not in STORAGE_BACKENDS:
        raise ConfigurationException(
            f"Unknown BTS_CART_STORAGE_BACKEND {backend!r}; "
            f"expected one of {sorted(STORAGE_BACKENDS)}"
        )

    decimals = _int_env("BTS_CART_CURRENCY_DECIMALS", DEFAULT_CURRENCY_DECIMALS)
    if not 0 <= decimals <= MAX_CURRENCY_DECIMALS:
        raise ConfigurationException(
            f"BTS_CART_CURRENCY_DECIMALS must be between 0 and {MAX_CURRENCY_DECIMALS}"
        )

    return Settings(
        storage_backend=backend,
        storage_key=os.getenv("BTS_CART_STORAGE_KEY") or CART_STORAGE_KEY,
        origin=os.getenv("BTS_CART_ORIGIN") or DEFAULT_ORIGIN,
        storage_dir=os.getenv("BTS_CART_STORAGE_DIR") or DEFAULT_STORAGE_DIR,
        redis_url=os.getenv("REDIS_URL") or None,
        currency_decimals=decimals,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
