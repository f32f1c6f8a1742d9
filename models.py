# Filename: models.py

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class ConnectionState(Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    RECONNECTING = "reconnecting"


class EventKind(Enum):
    TOKEN_CREATED = "create"
    TRADE = "trade"
    SWAP = "swap"
    LIQUIDITY_ADDED = "addLiquidity"
    LIQUIDITY_REMOVED = "removeLiquidity"


class Severity(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class RiskLevel(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_score(cls, score: float) -> "RiskLevel":
        if score >= 80:
            return cls.LOW
        if score >= 60:
            return cls.MEDIUM
        if score >= 40:
            return cls.HIGH
        return cls.CRITICAL


@dataclass
class SourceConnection:
    """
    Runtime state of one market-data source.
    Owned by the ConnectionManager; the state field follows socket events.
    """
    name: str                                   # Source key (e.g. 'pumpfun', 'raydium')
    label: str                                  # Display name
    url: str                                    # Websocket endpoint
    subscribe_requests: List[Dict[str, Any]] = field(default_factory=list)
    state: ConnectionState = ConnectionState.CLOSED
    heartbeat_interval: float = 30.0
    reconnect_delay: float = 5.0
    attempts: int = 0


@dataclass(frozen=True)
class NormalizedEvent:
    """
    Common shape for every inbound market event, whatever the source protocol.
    """
    source: str
    kind: EventKind
    token: Optional[str]
    fields: Mapping[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


@dataclass(frozen=True)
class AuditFinding:
    severity: Severity
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.severity.value, "message": self.message}


@dataclass(frozen=True)
class AuditResult:
    """
    Outcome of one token audit. Built once all checks have run and never mutated afterwards.
    """
    token: str
    timestamp: str
    score: int
    risk_level: RiskLevel
    risks: Tuple[AuditFinding, ...] = ()
    warnings: Tuple[AuditFinding, ...] = ()
    passed: Tuple[str, ...] = ()
    details: Mapping[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokenAddress": self.token,
            "timestamp": self.timestamp,
            "score": self.score,
            "riskLevel": self.risk_level.value,
            "risks": [finding.to_dict() for finding in self.risks],
            "warnings": [finding.to_dict() for finding in self.warnings],
            "passed": list(self.passed),
            "details": dict(self.details),
            "error": self.error,
        }


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
