import asyncio
from types import SimpleNamespace

import telegram_alert
from models import AuditFinding, AuditResult, EventKind, NormalizedEvent, RiskLevel, Severity
from telegram_alert import AlertReporter, TelegramNotifier, format_audit_report, format_event, format_stats_report


def _result() -> AuditResult:
    return AuditResult(
        token="MintA",
        timestamp="2026-01-01T00:00:00+00:00",
        score=55,
        risk_level=RiskLevel.HIGH,
        risks=(AuditFinding(Severity.HIGH, "Mint authority active, supply can be inflated"),),
        warnings=(AuditFinding(Severity.MEDIUM, "Liquidity too low: 3.00 SOL"),),
        passed=("Holder count: 40",),
        details={"liquidity": 3.0},
    )


def test_audit_report_lists_every_section() -> None:
    text = format_audit_report(_result())

    assert "55 / 100" in text
    assert "HIGH" in text
    assert "[MEDIUM] Liquidity too low: 3.00 SOL" in text
    assert "✓ Holder count: 40" in text
    assert "liquidity: 3.0" in text


def test_stats_report_shows_runtime_and_counters() -> None:
    snapshot = {
        "elapsed_seconds": 125,
        "sources": {"pumpfun": {"label": "Pump.fun", "total": 4, "kinds": {"create": 1}, "sides": {"buy": 3}, "audited": 1}},
    }

    text = format_stats_report(snapshot)

    assert "2m 5s" in text
    assert "*Pump.fun:* total: 4 | create: 1 | buy: 3 | audited: 1" in text


def test_event_line_for_log_notifications() -> None:
    event = NormalizedEvent(source="orca", kind=EventKind.SWAP, token=None, fields={"signature": "sig1"})

    assert "solscan.io/tx/sig1" in format_event(event)


def test_notifier_without_credentials_sends_nothing(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(telegram_alert.requests, "post", lambda *a, **kw: calls.append(a))

    assert TelegramNotifier("", "").send_markdown("hello") is False
    assert calls == []


def test_reporter_forwards_audits_to_telegram(monkeypatch) -> None:
    posted = []

    def fake_post(url, data=None, timeout=None):
        posted.append((url, data))
        return SimpleNamespace(status_code=200, text="ok")

    monkeypatch.setattr(telegram_alert.requests, "post", fake_post)
    reporter = AlertReporter(notifier=TelegramNotifier("token123", "chat42"))

    asyncio.run(reporter.report_audit(_result()))

    assert len(posted) == 1
    assert posted[0][0] == "https://api.telegram.org/bottoken123/sendMessage"
    assert posted[0][1]["chat_id"] == "chat42"
    assert "Token Audit Report" in posted[0][1]["text"]
