# Filename: main.py

import asyncio
import logging
import signal

from audit_cache import AuditCache
from config import AuditSettings, load_config
from connection_manager import ConnectionManager
from dispatcher import EventDispatcher, StatsAggregator
from providers import RugCheckHoneypotProvider, SolanaRpcHolderProvider
from risk_auditor import RiskAuditor
from sources import build_sources
from telegram_alert import AlertReporter, TelegramNotifier

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("Main")


async def run(config: dict):
    settings = AuditSettings.from_config(config)
    connections, normalizers = build_sources(config)

    telegram_notifier = None
    if config.get("ENABLE_TELEGRAM") and config.get("TELEGRAM_BOT_TOKEN") and config.get("TELEGRAM_CHAT_ID"):
        telegram_notifier = TelegramNotifier(config["TELEGRAM_BOT_TOKEN"], config["TELEGRAM_CHAT_ID"])
    reporter = AlertReporter(notifier=telegram_notifier, report_events=config.get("REPORT_EVENTS", True))

    holder_provider = SolanaRpcHolderProvider(config["RPC_HTTP_ENDPOINT"], commitment=config.get("COMMITMENT", "confirmed"))
    honeypot_provider = RugCheckHoneypotProvider(config["RUGCHECK_BASE_URL"], timeout=config.get("PROVIDER_TIMEOUT_SECONDS", 10))
    auditor = RiskAuditor(settings, holder_provider, honeypot_provider)
    audit_cache = AuditCache(auditor, ttl=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries)

    stats = StatsAggregator(labels={c.name: c.label for c in connections})
    dispatcher = EventDispatcher(normalizers, stats, audit_cache=audit_cache, settings=settings, reporter=reporter)

    proxy_url = config.get("PROXY_URL") if config.get("USE_PROXY") else None
    manager = ConnectionManager(dispatcher.handle_frame, proxy_url=proxy_url)

    if settings.enabled:
        logger.info("✅ Token audit enabled")
        if settings.auto_audit:
            logger.info("✅ New tokens are audited automatically")

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except NotImplementedError:
            # Windows: KeyboardInterrupt ends asyncio.run instead
            pass

    for source in connections:
        manager.connect(source)
    stats_task = asyncio.create_task(
        dispatcher.run_stats_loop(config.get("STATS_INTERVAL_SECONDS", 60), shutdown)
    )

    try:
        await shutdown.wait()
    finally:
        logger.info("🛑 Shutting down...")
        shutdown.set()
        await manager.close_all()
        await stats_task
        await dispatcher.drain()
        await dispatcher.emit_stats()
        await holder_provider.close()
        await honeypot_provider.close()


def main():
    logger.info("🚀 Starting multi-DEX listener + token auditor...")
    config = load_config()
    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("❌ Stopped by user.")


if __name__ == "__main__":
    main()
