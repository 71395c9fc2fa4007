"""In-process report cache.

Entries live under a namespace prefix so that bulk invalidation never touches
data cached by other parts of the process. Expiry is checked lazily on read.
"""
import copy
import hashlib
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from ...core.config import REPORT_CACHE_PREFIX, REPORT_CACHE_TTL_SECONDS


def build_cache_key(endpoint: str, params: Mapping[str, Any], prefix: str = REPORT_CACHE_PREFIX) -> str:
    """Derive a deterministic cache key from an endpoint name and its parameters.

    Parameters are serialized as canonical JSON (sorted keys, fixed separators),
    so two mappings with equal contents always produce the same key.
    """
    canonical = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{prefix}{endpoint}_{digest}"


@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float


class ReportCache:
    def __init__(
        self,
        prefix: str = REPORT_CACHE_PREFIX,
        default_ttl: int = REPORT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.prefix = prefix
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return a copy of the live entry for key, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(key=key, value=copy.deepcopy(value), expires_at=self._clock() + ttl)

    def invalidate_all(self) -> int:
        """Remove every entry in this cache's namespace and return how many were removed."""
        keys = [key for key in self._entries if key.startswith(self.prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
