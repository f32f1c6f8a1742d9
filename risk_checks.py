# Filename: risk_checks.py
"""
The five token risk checks.

Every check is independent: it reads the token data (and, for the async ones,
a provider) and returns a CheckOutcome. The auditor adds the outcomes up in a
fixed order; no check sees another check's findings.
"""

import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

from config import AuditSettings
from models import AuditFinding, Severity

YOUNG_TOKEN_MINUTES = 10
MAX_TAX_PERCENT = 10

RUG_CREATOR_PENALTY = 30
RUG_NO_LOCK_PENALTY = 20
RUG_MINTABLE_PENALTY = 25
LOW_LIQUIDITY_PENALTY = 15
REMOVABLE_LIQUIDITY_PENALTY = 20
FEW_HOLDERS_PENALTY = 10
TOP_HOLDER_PENALTY = 15
HONEYPOT_PENALTY = 50
HIGH_TAX_PENALTY = 15
NO_SOCIALS_PENALTY = 10
INCOMPLETE_METADATA_PENALTY = 5

SOCIAL_FIELDS = ("twitter", "telegram", "website")


@dataclass
class CheckOutcome:
    deduction: int = 0
    risks: List[AuditFinding] = field(default_factory=list)
    warnings: List[AuditFinding] = field(default_factory=list)
    passed: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    def risk(self, severity: Severity, message: str, penalty: int = 0):
        self.deduction += penalty
        self.risks.append(AuditFinding(severity, message))

    def warn(self, severity: Severity, message: str, penalty: int = 0):
        self.deduction += penalty
        self.warnings.append(AuditFinding(severity, message))

    def ok(self, message: str):
        self.passed.append(message)


@dataclass(frozen=True)
class HolderData:
    count: int
    top_holder_percent: float


@dataclass(frozen=True)
class HoneypotReport:
    is_honeypot: bool
    buy_tax: float = 0.0
    sell_tax: float = 0.0


def check_rug_risk(token_data: Dict[str, Any], settings: AuditSettings) -> CheckOutcome:
    outcome = CheckOutcome()

    creator_percent = creator_supply_percent(token_data)
    if creator_percent is not None:
        if creator_percent > settings.max_creator_percent:
            outcome.risk(Severity.HIGH,
                         f"Creator holds {creator_percent:.2f}% of supply, high dump risk",
                         RUG_CREATOR_PENALTY)
        else:
            outcome.ok("Creator holding within limits")

    has_lock = token_data.get("hasLock")
    if has_lock is False:
        outcome.warn(Severity.MEDIUM, "No liquidity lock detected", RUG_NO_LOCK_PENALTY)
    elif has_lock is True:
        outcome.ok("Liquidity locked")

    mintable = token_data.get("mintable")
    if mintable is True:
        outcome.risk(Severity.HIGH, "Mint authority active, supply can be inflated", RUG_MINTABLE_PENALTY)
    elif mintable is False:
        outcome.ok("Mint authority revoked")

    return outcome


def creator_supply_percent(token_data: Dict[str, Any]) -> Optional[float]:
    if not token_data.get("creator") or not token_data.get("creatorBalance"):
        return None
    total_supply = float(token_data.get("totalSupply") or 0)
    if total_supply <= 0:
        return None
    return float(token_data["creatorBalance"]) / total_supply * 100


def check_liquidity(token_data: Dict[str, Any], settings: AuditSettings) -> CheckOutcome:
    outcome = CheckOutcome()

    liquidity = float(token_data.get("vSolInBondingCurve") or token_data.get("liquidity") or 0)
    outcome.details["liquidity"] = liquidity

    if liquidity < settings.min_liquidity:
        outcome.warn(Severity.MEDIUM, f"Liquidity too low: {liquidity:.2f} SOL", LOW_LIQUIDITY_PENALTY)
    else:
        outcome.ok(f"Liquidity sufficient: {liquidity:.2f} SOL")

    if token_data.get("removableLiquidity") is True:
        outcome.warn(Severity.MEDIUM, "Liquidity can be removed", REMOVABLE_LIQUIDITY_PENALTY)

    return outcome


async def check_holder_distribution(token: str, provider, settings: AuditSettings) -> CheckOutcome:
    """Provider errors propagate; the auditor decides what a failed lookup means."""
    holders: HolderData = await provider.fetch_holder_data(token)
    outcome = CheckOutcome()
    outcome.details["holderCount"] = holders.count
    outcome.details["topHolderPercent"] = holders.top_holder_percent

    if holders.count < settings.min_holder_count:
        outcome.warn(Severity.LOW, f"Few holders: {holders.count}", FEW_HOLDERS_PENALTY)
    else:
        outcome.ok(f"Holder count: {holders.count}")

    if holders.top_holder_percent > settings.max_top_holder_percent:
        outcome.warn(Severity.MEDIUM,
                     f"Largest holder owns {holders.top_holder_percent:.2f}%",
                     TOP_HOLDER_PENALTY)
    else:
        outcome.ok("Holder distribution looks healthy")

    return outcome


async def check_honeypot(token: str, provider) -> CheckOutcome:
    report: HoneypotReport = await provider.detect_honeypot(token)
    outcome = CheckOutcome()

    if report.is_honeypot:
        outcome.risk(Severity.CRITICAL, "Honeypot pattern detected, selling may be blocked", HONEYPOT_PENALTY)
    else:
        outcome.ok("No honeypot pattern detected")

    if report.buy_tax > MAX_TAX_PERCENT or report.sell_tax > MAX_TAX_PERCENT:
        outcome.warn(Severity.MEDIUM,
                     f"Trading tax too high: buy {report.buy_tax:g}% / sell {report.sell_tax:g}%",
                     HIGH_TAX_PENALTY)

    return outcome


def check_contract(token_data: Dict[str, Any], now: Optional[float] = None) -> CheckOutcome:
    outcome = CheckOutcome()

    if any(token_data.get(name) for name in SOCIAL_FIELDS):
        outcome.ok("Social links present")
    else:
        outcome.warn(Severity.LOW, "No social media links", NO_SOCIALS_PENALTY)

    if not token_data.get("name") or not token_data.get("symbol"):
        outcome.warn(Severity.LOW, "Token metadata incomplete", INCOMPLETE_METADATA_PENALTY)

    created_at = token_data.get("createdAt")
    if created_at:
        try:
            created = parse_epoch_seconds(created_at)
        except (TypeError, ValueError, OverflowError):
            # unreadable creation time: no age finding
            return outcome
        if not math.isfinite(created):
            return outcome
        now = time.time() if now is None else now
        age_minutes = (now - created) / 60
        outcome.details["ageMinutes"] = round(age_minutes)
        if age_minutes < YOUNG_TOKEN_MINUTES:
            outcome.warn(Severity.LOW, f"Token created {age_minutes:.0f} minutes ago, watch before buying")

    return outcome


def parse_epoch_seconds(value: Any) -> float:
    """Accepts epoch seconds or milliseconds, datetimes, ISO-8601 and RFC 2822 strings."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, (int, float)):
        numeric = float(value)
        return numeric / 1000 if numeric > 10_000_000_000 else numeric
    if isinstance(value, str):
        clean = value.strip()
        if clean.isdigit():
            return parse_epoch_seconds(int(clean))
        try:
            parsed = datetime.fromisoformat(clean.replace("Z", "+00:00"))
        except ValueError:
            parsed = parsedate_to_datetime(clean)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp()
    raise ValueError(f"Unsupported timestamp format: {value!r}")
