"""Durable key-value storage backends."""

from .durable_storage import DurableStorage, FileStorage, MemoryStorage
from .redis_storage import RedisStorage

__all__ = ["DurableStorage", "FileStorage", "MemoryStorage", "RedisStorage"]
