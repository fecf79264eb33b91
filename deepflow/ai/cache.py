"""Caching helpers for AI provider answers."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
import hashlib
import json
import time
from typing import Any, Optional

__all__ = [
    "CacheConfig",
    "CachedResult",
    "ResponseCache",
    "build_cache_key",
    "config_from_ai",
]


@dataclass(frozen=True)
class CacheConfig:
    """Runtime configuration determining cache behaviour."""

    enabled: bool
    max_entries: int
    ttl_seconds: float


@dataclass(frozen=True)
class CachedResult:
    """Encapsulates a cached answer and its creation time."""

    key: str
    text: str
    created_at: float


class ResponseCache:
    """Simple LRU cache with TTL semantics for provider answers."""

    def __init__(self, config: CacheConfig) -> None:
        self._config = config
        self._entries: "OrderedDict[str, CachedResult]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @property
    def config(self) -> CacheConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._entries)

    def fetch(self, key: str) -> Optional[CachedResult]:
        now = time.monotonic()
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if self._config.ttl_seconds > 0 and now - entry.created_at >= self._config.ttl_seconds:
            self._entries.pop(key, None)
            self.misses += 1
            return None
        # Re-queue entry for LRU
        self._entries.move_to_end(key)
        self.hits += 1
        return entry

    def store(self, key: str, text: str) -> CachedResult:
        entry = CachedResult(key=key, text=text, created_at=time.monotonic())
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self._config.max_entries:
            self._entries.popitem(last=False)
        return entry

    def clear(self) -> None:
        self._entries.clear()


def build_cache_key(
    *,
    provider: str,
    base_url: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    json_mode: bool,
) -> str:
    """Create a stable cache key for a provider query."""

    payload: dict[str, Any] = {
        "provider": provider,
        "base_url": base_url,
        "model": model,
        "system": system_prompt,
        "user": user_prompt,
        "json": bool(json_mode),
    }
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(blob).hexdigest()


def config_from_ai(ai_config: Any) -> CacheConfig:
    """Translate ``AIConfig`` values into a cache configuration."""

    enabled = bool(getattr(ai_config, "cache_enabled", True))
    max_entries = int(getattr(ai_config, "cache_max_entries", 64) or 0)
    ttl_seconds = float(getattr(ai_config, "cache_ttl_seconds", 120.0) or 0.0)
    if max_entries < 1:
        enabled = False
        max_entries = 0
    if ttl_seconds < 0:
        ttl_seconds = 0.0
    return CacheConfig(enabled=enabled, max_entries=max_entries, ttl_seconds=ttl_seconds)
