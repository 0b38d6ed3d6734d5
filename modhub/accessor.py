"""
JSON accessor over a raw key-value store.

Reads return a ``KvResult`` so callers can tell a missing key apart from a
store or parse failure; writes report success as a bool. Neither raises.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from modhub.errors import StoreError
from modhub.kv import KvStore

logger = logging.getLogger(__name__)


class KvStatus(Enum):
    FOUND = "found"
    MISSING = "missing"
    ERROR = "error"


@dataclass(frozen=True)
class KvResult:
    key: str
    status: KvStatus
    value: Any = None
    error: Exception | None = None

    @property
    def found(self) -> bool:
        return self.status is KvStatus.FOUND

    @property
    def missing(self) -> bool:
        return self.status is KvStatus.MISSING

    def unwrap(self, default: Any = None) -> Any:
        """Return the value, ``default`` when missing, or raise StoreError."""
        if self.status is KvStatus.ERROR:
            raise StoreError() from self.error
        if self.status is KvStatus.MISSING:
            return default
        return self.value


class KvAccessor:
    """Reads and writes JSON values against named keys in one store."""

    def __init__(self, store: KvStore):
        self.store = store

    def get(self, key: str) -> KvResult:
        try:
            raw = self.store.get(key)
            # Empty strings count as absent.
            if not raw:
                return KvResult(key=key, status=KvStatus.MISSING)
            return KvResult(key=key, status=KvStatus.FOUND, value=json.loads(raw))
        except Exception as e:
            logger.exception("Failed to read key %s from KV store", key)
            return KvResult(key=key, status=KvStatus.ERROR, error=e)

    def put(self, key: str, value: Any) -> bool:
        try:
            self.store.put(key, json.dumps(value, ensure_ascii=False))
            return True
        except Exception:
            logger.exception("Failed to write key %s to KV store", key)
            return False

    def save(self, key: str, value: Any) -> None:
        """Like ``put`` but raises StoreError when the write is dropped."""
        if not self.put(key, value):
            raise StoreError()
