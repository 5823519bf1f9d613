"""Key-value store interfaces and concrete adapters."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol


class KeyValueStore(Protocol):
    """Minimal async key-value contract used by the feedback store."""

    async def get(self, key: str) -> str | None:
        """Return the stored value or None when missing or expired."""

    async def put(self, key: str, value: str, *, expiration_ttl: int | None = None) -> None:
        """Write a value, optionally expiring after `expiration_ttl` seconds."""

    async def delete(self, key: str) -> None:
        """Remove a key; missing keys are not an error."""

    async def list_keys(self, prefix: str) -> list[str]:
        """List live keys starting with `prefix`."""


@dataclass(slots=True)
class _StoredValue:
    value: str
    expires_at: float | None


class InMemoryKeyValueStore:
    """Process-local store used for tests and local runs."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._store: dict[str, _StoredValue] = {}

    async def get(self, key: str) -> str | None:
        record = self._live(key)
        return record.value if record else None

    async def put(self, key: str, value: str, *, expiration_ttl: int | None = None) -> None:
        expires_at = self._clock() + expiration_ttl if expiration_ttl else None
        self._store[key] = _StoredValue(value=value, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def list_keys(self, prefix: str) -> list[str]:
        return sorted(
            key for key in list(self._store) if key.startswith(prefix) and self._live(key)
        )

    def _live(self, key: str) -> _StoredValue | None:
        record = self._store.get(key)
        if record is None:
            return None
        if record.expires_at is not None and record.expires_at <= self._clock():
            del self._store[key]
            return None
        return record


class RedisKeyValueStore:
    """Redis adapter via `redis.asyncio`.

    Keeps the same contract as `InMemoryKeyValueStore`; expiry is delegated to
    Redis with `SET ... EX`.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        import redis.asyncio as aioredis

        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def put(self, key: str, value: str, *, expiration_ttl: int | None = None) -> None:
        await self._client.set(key, value, ex=expiration_ttl)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def list_keys(self, prefix: str) -> list[str]:
        keys = [key async for key in self._client.scan_iter(match=f"{prefix}*")]
        return sorted(keys)
