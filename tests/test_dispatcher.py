import asyncio
import json

from config import AuditSettings
from dispatcher import EventDispatcher, StatsAggregator
from models import AuditResult, RiskLevel, utc_timestamp
from normalizers import RAYDIUM_LOG_KEYWORDS, LogSubscriptionNormalizer, PumpPortalNormalizer

NORMALIZERS = {
    "pumpfun": PumpPortalNormalizer("pumpfun"),
    "raydium": LogSubscriptionNormalizer("raydium", RAYDIUM_LOG_KEYWORDS),
}


class _StubCache:
    def __init__(self):
        self.requests = []

    async def get_or_compute(self, token, token_data=None):
        self.requests.append((token, token_data))
        return AuditResult(token=token, timestamp=utc_timestamp(), score=100, risk_level=RiskLevel.LOW)

    def purge_expired(self):
        return 0


class _StubReporter:
    def __init__(self):
        self.events = []
        self.audits = []
        self.snapshots = []

    def report_event(self, event):
        self.events.append(event)

    async def report_audit(self, result):
        self.audits.append(result)

    async def report_stats(self, snapshot):
        self.snapshots.append(snapshot)


def _frames():
    raydium_swap = {
        "method": "logsNotification",
        "params": {"result": {"value": {"signature": "sig", "logs": ["Program log: swap"]}}},
    }
    return [
        ("pumpfun", json.dumps({"txType": "create", "mint": "MintA", "name": "A", "symbol": "A"})),
        ("pumpfun", json.dumps({"txType": "buy", "mint": "MintA"})),
        ("pumpfun", json.dumps({"txType": "buy", "mint": "MintA"})),
        ("pumpfun", json.dumps({"txType": "sell", "mint": "MintA"})),
        ("pumpfun", "{broken"),
        ("raydium", json.dumps(raydium_swap)),
        ("unknown", "{}"),
    ]


def _run(dispatcher):
    async def scenario():
        for source, raw in _frames():
            await dispatcher.handle_frame(source, raw)
        await dispatcher.drain()

    asyncio.run(scenario())


def test_counts_events_per_source_and_kind() -> None:
    stats = StatsAggregator(labels={"pumpfun": "Pump.fun", "raydium": "Raydium"})
    dispatcher = EventDispatcher(NORMALIZERS, stats, audit_cache=_StubCache())

    _run(dispatcher)

    snapshot = stats.snapshot()["sources"]
    assert snapshot["pumpfun"]["total"] == 4
    assert snapshot["pumpfun"]["kinds"] == {"create": 1, "trade": 3}
    assert snapshot["pumpfun"]["sides"] == {"buy": 2, "sell": 1}
    assert snapshot["pumpfun"]["audited"] == 1
    assert snapshot["raydium"]["total"] == 1
    assert snapshot["raydium"]["kinds"] == {"swap": 1}
    assert "unknown" not in snapshot


def test_new_tokens_are_audited_and_reported() -> None:
    cache = _StubCache()
    reporter = _StubReporter()
    dispatcher = EventDispatcher(NORMALIZERS, StatsAggregator(), audit_cache=cache, reporter=reporter)

    _run(dispatcher)

    assert [token for token, _ in cache.requests] == ["MintA"]
    assert cache.requests[0][1]["name"] == "A"
    assert [r.token for r in reporter.audits] == ["MintA"]
    assert len(reporter.events) == 5


def test_auto_audit_disabled_skips_audits() -> None:
    cache = _StubCache()
    stats = StatsAggregator()
    dispatcher = EventDispatcher(NORMALIZERS, stats, audit_cache=cache, settings=AuditSettings(auto_audit=False))

    _run(dispatcher)

    assert cache.requests == []
    assert stats.snapshot()["sources"]["pumpfun"]["audited"] == 0


def test_snapshot_reports_elapsed_runtime() -> None:
    now = [100.0]
    stats = StatsAggregator(clock=lambda: now[0])
    now[0] = 225.5

    assert stats.snapshot() == {"elapsed_seconds": 125, "sources": {}}


def test_stats_loop_emits_until_shutdown() -> None:
    reporter = _StubReporter()
    dispatcher = EventDispatcher(NORMALIZERS, StatsAggregator(), audit_cache=_StubCache(), reporter=reporter)

    async def scenario():
        shutdown = asyncio.Event()
        loop_task = asyncio.create_task(dispatcher.run_stats_loop(0.01, shutdown))
        await asyncio.sleep(0.06)
        shutdown.set()
        await asyncio.wait_for(loop_task, 1)

    asyncio.run(scenario())

    assert len(reporter.snapshots) >= 2
    assert "elapsed_seconds" in reporter.snapshots[0]


def test_total_counts_every_well_formed_frame() -> None:
    stats = StatsAggregator(labels={"pumpfun": "Pump.fun", "raydium": "Raydium"})
    dispatcher = EventDispatcher(NORMALIZERS, stats)
    unclassified = {
        "method": "logsNotification",
        "params": {"result": {"value": {"signature": "sig", "logs": ["Program log: ray_log"]}}},
    }
    subscribe_ack = {"jsonrpc": "2.0", "result": 7, "id": 1}

    async def scenario():
        assert await dispatcher.handle_frame("raydium", json.dumps(unclassified)) is None
        assert await dispatcher.handle_frame("raydium", json.dumps(subscribe_ack)) is None
        assert await dispatcher.handle_frame("pumpfun", json.dumps({"message": "Successfully subscribed"})) is None

    asyncio.run(scenario())

    snapshot = stats.snapshot()["sources"]
    assert snapshot["raydium"]["total"] == 1
    assert snapshot["raydium"]["kinds"] == {}
    assert snapshot["pumpfun"]["total"] == 1
    assert snapshot["pumpfun"]["kinds"] == {}
