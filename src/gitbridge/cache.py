"""Repository state cache.

Memoizes the results of read operations per tenant and repository path.
Every entry carries the :class:`StateTag` of the state it reflects; a write
evicts the entries of its own ``(tenant_id, repo_path)`` whose tag it may
have changed. Invalidation is coarse on purpose: a write declares every tag
it could plausibly affect, and over-invalidation only costs a re-read.

Entries expire after a TTL and the least recently used entry is dropped
when the cache is full (``cachetools.TTLCache``).
"""

from __future__ import annotations

import hashlib
import json
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cachetools import TTLCache

from gitbridge.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from pydantic import BaseModel

    from gitbridge.config import CacheConfig

__all__ = [
    "StateTag",
    "ALL_TAGS",
    "CacheKey",
    "CacheEntry",
    "CacheStats",
    "RepositoryStateCache",
    "digest_options",
]

logger = get_logger(__name__)


class StateTag(str, Enum):
    """Coarse groups of repository state, used only for invalidation."""

    BRANCH = "branch"
    TAG = "tag"
    COMMIT = "commit"
    STASH = "stash"
    REMOTE = "remote"
    STATUS = "status"
    WORKING_TREE = "working_tree"


ALL_TAGS: frozenset[StateTag] = frozenset(StateTag)


def digest_options(options: BaseModel) -> str:
    """Stable digest of an options model (sorted keys, JSON types)."""
    normalized = json.dumps(
        options.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
    )
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class CacheKey:
    """``(tenant_id, repo_path, command, options_digest)``.

    ``repo_path`` is always absolute, so two spellings of the same directory
    share entries; ``tenant_id`` is always part of the key, so two tenants
    never do.
    """

    tenant_id: str
    repo_path: str
    command: str
    options_digest: str

    @classmethod
    def build(
        cls,
        tenant_id: str,
        repo_path: Path | str,
        command: str,
        options: BaseModel,
    ) -> CacheKey:
        return cls(
            tenant_id=tenant_id,
            repo_path=str(Path(repo_path).resolve()),
            command=command,
            options_digest=digest_options(options),
        )


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: CacheKey
    value: Any
    state_tag: StateTag
    created_at: float


@dataclass(frozen=True, slots=True)
class CacheStats:
    hits: int
    misses: int
    evictions: int
    size: int
    max_entries: int


class RepositoryStateCache:
    """Tenant-partitioned TTL/LRU cache of parsed read results.

    Thread-safe; one instance is owned by a :class:`~gitbridge.service.GitService`.

    Args:
        ttl_seconds: Lifetime of an entry.
        max_entries: Capacity before least recently used entries are dropped.
        enabled: When False, :meth:`get` always misses and :meth:`put` is a no-op.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 30.0,
        max_entries: int = 500,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._enabled = enabled
        self._max_entries = max_entries
        self._entries: TTLCache[CacheKey, CacheEntry] = TTLCache(
            maxsize=max_entries, ttl=ttl_seconds, timer=clock
        )
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> RepositoryStateCache:
        return cls(
            ttl_seconds=config.ttl_seconds,
            max_entries=config.max_entries,
            enabled=config.enabled,
            clock=clock,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def get(self, key: CacheKey) -> Any | None:
        """Return the cached value for *key*, or None on a miss."""
        if not self._enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("cache_miss", command=key.command, repo_path=key.repo_path)
                return None
            self._hits += 1
        logger.debug("cache_hit", command=key.command, repo_path=key.repo_path)
        return entry.value

    def put(self, key: CacheKey, value: Any, state_tag: StateTag) -> None:
        """Store a read result under *key*, tagged with the state it reflects."""
        if not self._enabled:
            return
        with self._lock:
            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                state_tag=state_tag,
                created_at=self._clock(),
            )

    def invalidate(
        self,
        tenant_id: str,
        repo_path: Path | str,
        tags: Iterable[StateTag],
    ) -> int:
        """Evict the entries of one tenant/path whose tag is in *tags*.

        Returns:
            Number of entries evicted.
        """
        wanted = frozenset(tags)
        if not wanted:
            return 0
        path = str(Path(repo_path).resolve())
        with self._lock:
            doomed = [
                key
                for key, entry in list(self._entries.items())
                if key.tenant_id == tenant_id
                and key.repo_path == path
                and entry.state_tag in wanted
            ]
            for key in doomed:
                self._entries.pop(key, None)
            self._evictions += len(doomed)

        if doomed:
            logger.debug(
                "cache_invalidated",
                tenant_id=tenant_id,
                repo_path=path,
                tags=sorted(tag.value for tag in wanted),
                evicted=len(doomed),
            )
        return len(doomed)

    def clear(self, tenant_id: str | None = None) -> None:
        """Drop every entry, or only those of *tenant_id*."""
        with self._lock:
            if tenant_id is None:
                self._entries.clear()
                return
            for key in [k for k in list(self._entries.keys()) if k.tenant_id == tenant_id]:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)

    def stats(self) -> CacheStats:
        with self._lock:
            self._entries.expire()
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                size=len(self._entries),
                max_entries=self._max_entries,
            )
