"""
Key-value storage backends for the room design service.
"""

from .base_store import KeyValueStore
from .memory_store import InMemoryKeyValueStore

__all__ = ["KeyValueStore", "InMemoryKeyValueStore", "create_store"]


def create_store(backend: str) -> KeyValueStore:
    """Build the store named by ``settings.STORE_BACKEND``."""
    if backend == "memory":
        return InMemoryKeyValueStore()
    if backend == "database":
        from .sqlalchemy_store import SQLAlchemyKeyValueStore
        return SQLAlchemyKeyValueStore()
    raise ValueError(f"Unknown store backend: {backend}")
