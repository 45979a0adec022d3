"""
Store Registry — builds the configured ledger store.

Supports the built-in store types and plugin stores given as a fully
qualified class path.
"""

from __future__ import annotations

import importlib
import logging

from booksync.config import BookSyncConfig, StoreConfig
from booksync.errors import BookSyncError
from booksync.stores.base import BaseLedgerStore

logger = logging.getLogger("booksync.stores.registry")

# Built-in store type mapping
_BUILTIN_STORES: dict[str, str] = {
    "memory": "booksync.stores.memory.MemoryLedgerStore",
    "sql": "booksync.stores.sql.SQLLedgerStore",
}


def available_stores() -> dict[str, str]:
    return dict(_BUILTIN_STORES)


def create_store(config: BookSyncConfig | StoreConfig | None = None) -> BaseLedgerStore:
    """Instantiate a ledger store from config."""
    if config is None:
        store_config = StoreConfig()
    elif isinstance(config, BookSyncConfig):
        store_config = config.store
    else:
        store_config = config

    # Unknown names are tried as a fully qualified class path (plugin support)
    store_path = _BUILTIN_STORES.get(store_config.type, store_config.type)
    if "." not in store_path:
        raise BookSyncError(f"Unknown store type '{store_config.type}'")

    try:
        module_path, class_name = store_path.rsplit(".", 1)
        module = importlib.import_module(module_path)
        store_cls = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        logger.error("Cannot load store '%s': %s", store_config.type, e)
        raise BookSyncError(f"Cannot load store '{store_config.type}': {e}") from e

    if not (isinstance(store_cls, type) and issubclass(store_cls, BaseLedgerStore)):
        raise BookSyncError(f"'{store_path}' is not a ledger store")

    store = store_cls(**store_config.options)
    logger.info("Created %s ledger store", store.name)
    return store
