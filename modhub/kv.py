"""
Key-value store abstraction with in-memory, Redis and SQL implementations.

Stores deal in raw strings only; JSON handling lives in ``modhub.accessor``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import redis
from sqlalchemy import Column, String, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class KvStore(Protocol):
    """Minimal get/put interface the API needs from a key-value store."""

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str) -> None:
        ...


@dataclass
class InMemoryKvStore:
    """Dict-backed store for tests/dev."""

    items: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def put(self, key: str, value: str) -> None:
        self.items[key] = value

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.items.clear()


@dataclass
class RedisKvStore:
    """Redis-backed store. Keys are prefixed with the namespace."""

    url: str
    namespace: str = "mods"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[str]:
        value = self.client.get(self._key(key))
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def put(self, key: str, value: str) -> None:
        self.client.set(self._key(key), value)


class SqlKvStore:
    """
    SQLAlchemy-backed store. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str, namespace: str = "mods"):
        if not database_url:
            raise ValueError("database_url is required for SqlKvStore")
        self.namespace = namespace
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def get(self, key: str) -> Optional[str]:
        with self.Session() as session:
            row = session.get(KvRow, (self.namespace, key))
            return row.value if row else None

    def put(self, key: str, value: str) -> None:
        with self.Session() as session:
            row = session.get(KvRow, (self.namespace, key))
            if row:
                row.value = value
            else:
                session.add(KvRow(namespace=self.namespace, key=key, value=value))
            session.commit()


Base = declarative_base()


class KvRow(Base):
    __tablename__ = "kv_entries"

    namespace = Column(String, primary_key=True)
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
