from core.config import StorageConfig
from memory.storage import InMemoryStore, KeyValueStore, SQLiteStore


def create_store(config: StorageConfig) -> KeyValueStore:
    """Create the key-value backend named in config."""
    if config.backend == "memory":
        return InMemoryStore()
    if config.backend == "sqlite":
        return SQLiteStore(config.db_path)
    raise ValueError(f"Unknown storage backend: {config.backend}")
