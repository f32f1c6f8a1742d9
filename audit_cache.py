# Filename: audit_cache.py

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from models import AuditResult

logger = logging.getLogger("AuditCache")

DEFAULT_TTL_SECONDS = 300      # 5 min
DEFAULT_MAX_ENTRIES = 10_000


@dataclass(frozen=True)
class AuditCacheEntry:
    result: AuditResult
    created_at: float


class AuditCache:
    """
    Memoizes audit results per token for a fixed TTL.

    - a valid entry (age < ttl) is returned as-is, without re-auditing
    - concurrent requests for a token being audited share the running audit
    - past max_entries, expired entries go first, then the oldest ones
    """

    def __init__(self, auditor, ttl: float = DEFAULT_TTL_SECONDS, max_entries: int = DEFAULT_MAX_ENTRIES,
                 clock: Callable[[], float] = time.monotonic):
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.auditor = auditor
        self.ttl = ttl
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, AuditCacheEntry]" = OrderedDict()
        self._in_flight: Dict[str, asyncio.Future] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, token: str) -> Optional[AuditResult]:
        entry = self._entries.get(token)
        if entry is None or not self._is_valid(entry):
            return None
        return entry.result

    async def get_or_compute(self, token: str, token_data: Optional[Dict[str, Any]] = None) -> AuditResult:
        cached = self.get(token)
        if cached is not None:
            self.hits += 1
            logger.debug(f"[CACHE] Hit for {token}")
            return cached

        pending = self._in_flight.get(token)
        if pending is not None:
            logger.debug(f"[CACHE] Audit of {token} already running, waiting for it")
            return await asyncio.shield(pending)

        self.misses += 1
        future = asyncio.get_running_loop().create_future()
        self._in_flight[token] = future
        try:
            result = await self.auditor.audit(token, token_data)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # mark retrieved: there may be no other waiter
            future.exception()
            raise
        else:
            self._store(token, result)
            future.set_result(result)
            return result
        finally:
            self._in_flight.pop(token, None)

    def _store(self, token: str, result: AuditResult):
        self._entries.pop(token, None)
        if len(self._entries) >= self.max_entries:
            self.purge_expired()
        while len(self._entries) >= self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"[CACHE] Evicted {evicted} (capacity {self.max_entries})")
        self._entries[token] = AuditCacheEntry(result=result, created_at=self.clock())

    def _is_valid(self, entry: AuditCacheEntry) -> bool:
        return self.clock() - entry.created_at < self.ttl

    def purge_expired(self) -> int:
        expired = [token for token, entry in self._entries.items() if not self._is_valid(entry)]
        for token in expired:
            del self._entries[token]
        if expired:
            logger.debug(f"[CACHE] Removed {len(expired)} expired audits")
        return len(expired)

    def get_cache_statistics(self) -> Dict[str, int]:
        return {
            "entries": len(self._entries),
            "in_flight": len(self._in_flight),
            "hits": self.hits,
            "misses": self.misses,
        }
