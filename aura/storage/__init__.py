"""
Aura — Storage

The CRUD contract the pipeline consumes, and its implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aura.storage.base import Storage
from aura.storage.memory import InMemoryStorage
from aura.storage.sqlite import SQLiteStorage

if TYPE_CHECKING:
    from aura.config import StorageConfig


def create_storage(config: StorageConfig) -> Storage:
    """Factory to create the configured storage backend."""
    if config.backend == "memory":
        return InMemoryStorage()
    elif config.backend == "sqlite":
        return SQLiteStorage(config.path)
    raise ValueError(f"Unknown storage backend: {config.backend}")


__all__ = ["Storage", "InMemoryStorage", "SQLiteStorage", "create_storage"]
