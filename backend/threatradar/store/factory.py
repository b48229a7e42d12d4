"""
ThreatRadar - Row Store Factory
STORE_BACKEND=sql       → SQLRowStore (default)
STORE_BACKEND=supabase  → SupabaseRowStore
"""

import logging
from typing import Optional

from threatradar.config import get_settings
from threatradar.store.base import RowStore

logger = logging.getLogger(__name__)

_store_cache: dict[str, RowStore] = {}


def _create_store(name: str) -> RowStore:
    if name == "sql":
        from threatradar.store.sql_store import SQLRowStore
        return SQLRowStore()
    elif name == "supabase":
        from threatradar.store.supabase_store import SupabaseRowStore
        return SupabaseRowStore()
    raise ValueError(f"Unknown store backend: '{name}'. Use 'sql' or 'supabase'.")


def get_row_store(name: Optional[str] = None) -> RowStore:
    """Return the configured row store, created once per backend name."""
    name = (name or get_settings().store_backend).lower().strip()
    if name not in _store_cache:
        _store_cache[name] = _create_store(name)
        logger.info(f"Created row store: {name}")
    return _store_cache[name]
