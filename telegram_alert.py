# Filename: telegram_alert.py

import asyncio
import logging
from typing import Any, Dict, Optional

import requests

from models import AuditResult, EventKind, NormalizedEvent, RiskLevel

logger = logging.getLogger("TelegramNotifier")

RISK_EMOJI = {
    RiskLevel.LOW: "🟢",
    RiskLevel.MEDIUM: "🟡",
    RiskLevel.HIGH: "🟠",
    RiskLevel.CRITICAL: "🔴",
}

ADVICE = {
    RiskLevel.LOW: "Passed most safety checks, low risk.",
    RiskLevel.MEDIUM: "Some risk factors present, invest with care.",
    RiskLevel.HIGH: "High risk, avoid large positions.",
    RiskLevel.CRITICAL: "Extreme risk, strongly advise staying away!",
}

EVENT_LABELS = {
    EventKind.TOKEN_CREATED: "🆕 New token",
    EventKind.TRADE: "💱 Trade",
    EventKind.SWAP: "🔄 Swap",
    EventKind.LIQUIDITY_ADDED: "➕ Liquidity added",
    EventKind.LIQUIDITY_REMOVED: "➖ Liquidity removed",
}


class TelegramNotifier:
    def __init__(self, bot_token: str, chat_id: str):
        self.bot_token = bot_token
        self.chat_id = chat_id

        if not self.bot_token or not self.chat_id:
            logger.error("[Telegram] Missing bot token or chat ID!")

    def send_markdown(self, text: str) -> bool:
        """
        Sends a raw Markdown message.
        """
        if not self.bot_token or not self.chat_id:
            return False

        url = f"https://api.telegram.org/bot{self.bot_token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "Markdown",
            "disable_web_page_preview": True
        }

        try:
            response = requests.post(url, data=payload, timeout=10)
        except requests.RequestException as e:
            logger.error(f"[Telegram] Request exception: {e}")
            return False

        if response.status_code != 200:
            logger.error(f"[Telegram] Failed: {response.status_code} - {response.text}")
            return False
        logger.info("[Telegram] ✅ Message sent successfully.")
        return True


def format_audit_report(result: AuditResult) -> str:
    level = result.risk_level
    lines = [
        "📋 *Token Audit Report*",
        f"*Token:* `{result.token}`",
        f"*Audited at:* {result.timestamp}",
        f"*Risk level:* {RISK_EMOJI[level]} {level.value}",
        f"*Safety score:* {result.score} / 100",
    ]

    if result.passed:
        lines.append("\n✅ *Passed:*")
        lines.extend(f"  ✓ {item}" for item in result.passed)

    if result.warnings:
        lines.append("\n⚠️ *Warnings:*")
        lines.extend(f"  [{w.severity.value}] {w.message}" for w in result.warnings)

    if result.risks:
        lines.append("\n🚨 *Risks:*")
        lines.extend(f"  [{r.severity.value}] {r.message}" for r in result.risks)

    if result.details:
        lines.append("\n📌 *Details:*")
        lines.extend(f"  {key}: {value}" for key, value in result.details.items())

    if result.error:
        lines.append(f"\n❌ *Audit error:* {result.error}")

    lines.append(f"\n💡 {ADVICE[level]}")
    lines.append(f"[🔎 View on Solscan](https://solscan.io/token/{result.token})")
    return "\n".join(lines)


def format_stats_report(snapshot: Dict[str, Any]) -> str:
    minutes, seconds = divmod(int(snapshot["elapsed_seconds"]), 60)
    lines = [
        "📊 *Multi-DEX Statistics*",
        f"*Runtime:* {minutes}m {seconds}s",
    ]
    for name, stats in snapshot["sources"].items():
        counters = [f"total: {stats['total']}"]
        counters.extend(f"{kind}: {count}" for kind, count in stats["kinds"].items())
        counters.extend(f"{side}: {count}" for side, count in stats["sides"].items())
        counters.append(f"audited: {stats['audited']}")
        lines.append(f"*{stats.get('label', name)}:* " + " | ".join(counters))
    return "\n".join(lines)


def format_event(event: NormalizedEvent) -> str:
    fields = event.fields
    label = EVENT_LABELS.get(event.kind, event.kind.value)
    if event.kind is EventKind.TOKEN_CREATED:
        return (f"[{event.source}] {label}: {fields.get('name', 'N/A')} ({fields.get('symbol', 'N/A')}) "
                f"mint={event.token} creator={fields.get('traderPublicKey') or fields.get('creator') or 'N/A'}")
    if event.kind is EventKind.TRADE:
        return (f"[{event.source}] {label} {fields.get('side')}: {fields.get('symbol') or event.token} "
                f"sol={float(fields.get('solAmount') or 0):.4f} tokens={float(fields.get('tokenAmount') or 0):,.0f} "
                f"trader={fields.get('traderPublicKey')}")
    return f"[{event.source}] {label}: https://solscan.io/tx/{fields.get('signature')}"


class AlertReporter:
    """
    Outbound reporting for events, audits and stats.
    Everything is logged; audits and stats also go to Telegram when a notifier is set.
    """

    def __init__(self, notifier: Optional[TelegramNotifier] = None, report_events: bool = True):
        self.notifier = notifier
        self.report_events = report_events

    def report_event(self, event: NormalizedEvent):
        if self.report_events:
            logger.info(format_event(event))

    async def report_audit(self, result: AuditResult):
        await self._publish(format_audit_report(result))

    async def report_stats(self, snapshot: Dict[str, Any]):
        await self._publish(format_stats_report(snapshot))

    async def _publish(self, message: str):
        logger.info("\n" + message)
        if self.notifier:
            await asyncio.to_thread(self.notifier.send_markdown, message)
