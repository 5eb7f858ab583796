"""Application bootstrap wiring settings, durable storage and the cart store."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from bts_cart.core.config import Settings, load_settings
from bts_cart.core.constants import (
    STORAGE_BACKEND_AUTO,
    STORAGE_BACKEND_FILE,
    STORAGE_BACKEND_MEMORY,
    STORAGE_BACKEND_REDIS,
)
from bts_cart.core.exceptions import ConfigurationException, StorageException
from bts_cart.core.logging_config import logger, setup_logging
from bts_cart.integrations.durable_storage import DurableStorage, FileStorage, MemoryStorage
from bts_cart.integrations.redis_storage import RedisStorage
from bts_cart.services.cart_store import CartStore


def build_storage(settings: Settings) -> DurableStorage:
    """Create the durable storage backend named by ``settings``."""
    backend = settings.storage_backend
    if backend == STORAGE_BACKEND_AUTO:
        backend = STORAGE_BACKEND_REDIS if settings.redis_url else STORAGE_BACKEND_FILE

    # Priority 1: Redis (shared between app instances)
    if backend == STORAGE_BACKEND_REDIS:
        try:
            return RedisStorage(redis_url=settings.redis_url, origin=settings.origin)
        except StorageException as e:
            logger.warning("Failed to initialize Redis cart storage, using MemoryStorage: %s", e)
            return MemoryStorage(origin=settings.origin)

    # Priority 2: local file (survives restarts on one machine)
    if backend == STORAGE_BACKEND_FILE:
        logger.info("Using file cart storage in %s", settings.storage_dir)
        return FileStorage(settings.storage_dir, origin=settings.origin)

    # Priority 3: memory (tests, storage disabled)
    if backend == STORAGE_BACKEND_MEMORY:
        logger.info("Using MemoryStorage; cart will be LOST on restart")
        return MemoryStorage(origin=settings.origin)

    raise ConfigurationException(f"Unknown storage backend {backend!r}")


def create_cart_store(
    settings: Settings | None = None, storage: DurableStorage | None = None
) -> CartStore:
    """Create the application's cart store. Call once at startup."""
    settings = settings or load_settings()
    setup_logging(settings.log_level)
    return CartStore(
        storage if storage is not None else build_storage(settings),
        storage_key=settings.storage_key,
        currency_decimals=settings.currency_decimals,
    )


@contextmanager
def cart_store_session(
    settings: Settings | None = None, storage: DurableStorage | None = None
) -> Iterator[CartStore]:
    """Cart store bound to the application's lifetime; closed on exit."""
    store = create_cart_store(settings, storage)
    try:
        yield store
    finally:
        store.close()
