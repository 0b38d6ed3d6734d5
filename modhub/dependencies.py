"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from modhub.accessor import KvAccessor
from modhub.config import get_settings
from modhub.kv import InMemoryKvStore, KvStore, RedisKvStore, SqlKvStore
from modhub.operations import Stores

_kv_stores: dict[str, KvStore] = {}


def get_kv_store(namespace: str) -> KvStore:
    """
    Return a singleton store per namespace so data persists across requests.
    """
    store = _kv_stores.get(namespace)
    if store is not None:
        return store

    settings = get_settings()
    if settings.use_in_memory_backends:
        store = InMemoryKvStore()
    elif settings.redis_url:
        store = RedisKvStore(url=settings.redis_url, namespace=namespace)
    elif settings.database_url:
        store = SqlKvStore(settings.database_url, namespace=namespace)
    else:
        store = InMemoryKvStore()
    _kv_stores[namespace] = store
    return store


def get_stores() -> Stores:
    settings = get_settings()
    return Stores(
        mods=KvAccessor(get_kv_store(settings.mods_namespace)),
        images=KvAccessor(get_kv_store(settings.images_namespace)),
        activity_log_limit=settings.activity_log_limit,
        activity_display_limit=settings.activity_display_limit,
        image_base_url=settings.image_base_url,
    )


def reset_stores() -> None:
    """Forget cached stores (useful in tests)."""
    _kv_stores.clear()
