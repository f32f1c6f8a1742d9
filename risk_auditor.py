# Filename: risk_auditor.py

from typing import Any, Dict, List, Optional

from loguru import logger

from config import AuditSettings
from models import AuditFinding, AuditResult, RiskLevel, utc_timestamp
from risk_checks import (
    CheckOutcome,
    check_contract,
    check_holder_distribution,
    check_honeypot,
    check_liquidity,
    check_rug_risk,
)

INITIAL_SCORE = 100


class AuditAccumulator:
    """Running totals of one audit; turned into an immutable AuditResult by finalize()."""

    def __init__(self, token: str):
        self.token = token
        self.timestamp = utc_timestamp()
        self.score = INITIAL_SCORE
        self.risks: List[AuditFinding] = []
        self.warnings: List[AuditFinding] = []
        self.passed: List[str] = []
        self.details: Dict[str, Any] = {}
        self.error: Optional[str] = None

    def add(self, outcome: CheckOutcome):
        self.score -= outcome.deduction
        self.risks.extend(outcome.risks)
        self.warnings.extend(outcome.warnings)
        self.passed.extend(outcome.passed)
        self.details.update(outcome.details)

    def finalize(self) -> AuditResult:
        # The score is not clamped: anything below 40 is CRITICAL.
        return AuditResult(
            token=self.token,
            timestamp=self.timestamp,
            score=self.score,
            risk_level=RiskLevel.from_score(self.score),
            risks=tuple(self.risks),
            warnings=tuple(self.warnings),
            passed=tuple(self.passed),
            details=self.details,
            error=self.error,
        )


class RiskAuditor:
    """
    Runs the enabled checks against a token, always in the same order:
    rug risk, liquidity, holder distribution, honeypot, contract metadata.
    No check short-circuits the others.
    """

    def __init__(self, settings: AuditSettings, holder_provider, honeypot_provider):
        self.settings = settings
        self.holder_provider = holder_provider
        self.honeypot_provider = honeypot_provider

    async def audit(self, token: str, token_data: Optional[Dict[str, Any]] = None) -> AuditResult:
        token_data = token_data or {}
        acc = AuditAccumulator(token)
        logger.info(f"🔍 [AUDIT] Starting audit of {token}")

        try:
            if self.settings.rug_check:
                acc.add(check_rug_risk(token_data, self.settings))

            if self.settings.liquidity_check:
                acc.add(check_liquidity(token_data, self.settings))

            if self.settings.holder_check:
                try:
                    acc.add(await check_holder_distribution(token, self.holder_provider, self.settings))
                except Exception as e:
                    logger.warning(f"[AUDIT] Holder data unavailable for {token}: {e}")

            if self.settings.honeypot_check:
                try:
                    acc.add(await check_honeypot(token, self.honeypot_provider))
                except Exception as e:
                    logger.warning(f"[AUDIT] Honeypot detection unavailable for {token}: {e}")

            if self.settings.contract_check:
                acc.add(check_contract(token_data))

        except Exception as e:
            logger.error(f"❌ [AUDIT] Audit of {token} failed: {e}")
            acc.error = str(e)

        result = acc.finalize()
        logger.info(f"[AUDIT] {token}: score={result.score} level={result.risk_level.value} "
                    f"risks={len(result.risks)} warnings={len(result.warnings)} passed={len(result.passed)}")
        return result
