# Filename: dispatcher.py

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set, Union

from config import AuditSettings
from models import EventKind, NormalizedEvent
from normalizers import MalformedFrame, MessageNormalizer, audit_input

logger = logging.getLogger("Dispatcher")


@dataclass
class SourceStats:
    label: str
    total: int = 0
    kinds: Counter = field(default_factory=Counter)
    sides: Counter = field(default_factory=Counter)
    audited: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "total": self.total,
            "kinds": dict(self.kinds),
            "sides": dict(self.sides),
            "audited": self.audited,
        }


class StatsAggregator:
    """Per-source counters for the lifetime of the process. Counters only ever grow."""

    def __init__(self, labels: Optional[Dict[str, str]] = None, clock=time.time):
        self.clock = clock
        self.start_time = clock()
        self.sources: Dict[str, SourceStats] = {}
        for name, label in (labels or {}).items():
            self.sources[name] = SourceStats(label=label)

    def _source(self, name: str) -> SourceStats:
        if name not in self.sources:
            self.sources[name] = SourceStats(label=name)
        return self.sources[name]

    def record_frame(self, source: str):
        self._source(source).total += 1

    def record(self, event: NormalizedEvent):
        stats = self._source(event.source)
        stats.kinds[event.kind.value] += 1
        side = event.fields.get("side")
        if event.kind is EventKind.TRADE and side:
            stats.sides[side] += 1

    def record_audit(self, source: str):
        self._source(source).audited += 1

    def snapshot(self) -> Dict[str, Any]:
        return {
            "elapsed_seconds": int(self.clock() - self.start_time),
            "sources": {name: stats.to_dict() for name, stats in self.sources.items()},
        }


class EventDispatcher:
    """
    Routes raw frames through the source normalizer, keeps the stats and
    starts an audit for every newly created token.
    """

    def __init__(self, normalizers: Dict[str, MessageNormalizer], stats: StatsAggregator,
                 audit_cache=None, settings: Optional[AuditSettings] = None, reporter=None):
        self.normalizers = normalizers
        self.stats = stats
        self.audit_cache = audit_cache
        self.settings = settings or AuditSettings()
        self.reporter = reporter
        self._audit_tasks: Set[asyncio.Task] = set()

    @property
    def auto_audit(self) -> bool:
        return self.audit_cache is not None and self.settings.enabled and self.settings.auto_audit

    async def handle_frame(self, source: str, raw: Union[str, bytes]) -> Optional[NormalizedEvent]:
        normalizer = self.normalizers.get(source)
        if normalizer is None:
            logger.warning(f"[DISPATCH] No normalizer for source {source}, frame dropped")
            return None

        try:
            message = normalizer.decode(raw)
            if normalizer.counts(message):
                self.stats.record_frame(source)
            event = normalizer.normalize(message)
        except MalformedFrame as e:
            logger.warning(f"[DISPATCH] Failed to parse {source} message: {e}")
            return None

        if event is not None:
            self.dispatch(event)
        return event

    def dispatch(self, event: NormalizedEvent):
        self.stats.record(event)
        if self.reporter:
            self.reporter.report_event(event)

        if event.kind is EventKind.TOKEN_CREATED and event.token and self.auto_audit:
            self.stats.record_audit(event.source)
            task = asyncio.create_task(self._audit(event), name=f"audit-{event.token}")
            self._audit_tasks.add(task)
            task.add_done_callback(self._audit_tasks.discard)

    async def _audit(self, event: NormalizedEvent):
        try:
            result = await self.audit_cache.get_or_compute(event.token, audit_input(event))
            if self.reporter:
                await self.reporter.report_audit(result)
        except Exception as e:
            logger.error(f"[DISPATCH] Audit of {event.token} failed: {e}")

    async def drain(self):
        """Wait for the audits already started."""
        if self._audit_tasks:
            await asyncio.gather(*list(self._audit_tasks), return_exceptions=True)

    async def emit_stats(self):
        snapshot = self.stats.snapshot()
        if self.reporter:
            await self.reporter.report_stats(snapshot)
        else:
            logger.info(f"[STATS] {snapshot}")
        return snapshot

    async def run_stats_loop(self, interval: float, shutdown: asyncio.Event):
        while not shutdown.is_set():
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
            else:
                break
            try:
                await self.emit_stats()
                if self.audit_cache is not None:
                    self.audit_cache.purge_expired()
            except Exception as e:
                logger.error(f"[Stats Summary Error] {e}")
