# Filename: sources.py

import logging
from typing import Any, Dict, List, Tuple

from models import SourceConnection
from normalizers import (
    ORCA_LOG_KEYWORDS,
    RAYDIUM_LOG_KEYWORDS,
    LogSubscriptionNormalizer,
    MessageNormalizer,
    PumpPortalNormalizer,
    logs_subscription,
    pumpportal_subscriptions,
)

logger = logging.getLogger("Sources")


def build_sources(config: Dict[str, Any]) -> Tuple[List[SourceConnection], Dict[str, MessageNormalizer]]:
    """
    Build the enabled sources and the normalizer for each one.

    Returns:
        (connections, normalizers keyed by source name)
    """
    heartbeat = float(config.get("HEARTBEAT_INTERVAL_SECONDS", 30))
    reconnect = float(config.get("RECONNECT_DELAY_SECONDS", 5))
    commitment = config.get("LOGS_COMMITMENT", "confirmed")

    connections: List[SourceConnection] = []
    normalizers: Dict[str, MessageNormalizer] = {}

    if config.get("ENABLE_PUMPFUN"):
        subscriptions = pumpportal_subscriptions(
            new_tokens=config.get("PUMPFUN_SUBSCRIBE_NEW_TOKEN", True),
            token_keys=config.get("PUMPFUN_TOKEN_KEYS", []) if config.get("PUMPFUN_SUBSCRIBE_TOKEN_TRADE") else [],
            account_keys=config.get("PUMPFUN_ACCOUNT_KEYS", []) if config.get("PUMPFUN_SUBSCRIBE_ACCOUNT_TRADE") else [],
        )
        connections.append(SourceConnection(
            name="pumpfun",
            label="Pump.fun",
            url=config["PUMPFUN_WS_URL"],
            subscribe_requests=subscriptions,
            heartbeat_interval=heartbeat,
            reconnect_delay=reconnect,
        ))
        normalizers["pumpfun"] = PumpPortalNormalizer("pumpfun")

    if config.get("ENABLE_RAYDIUM"):
        connections.append(SourceConnection(
            name="raydium",
            label="Raydium",
            url=config["RAYDIUM_WS_URL"],
            subscribe_requests=[logs_subscription(config["RAYDIUM_PROGRAM_ID"], commitment)],
            heartbeat_interval=heartbeat,
            reconnect_delay=reconnect,
        ))
        normalizers["raydium"] = LogSubscriptionNormalizer("raydium", RAYDIUM_LOG_KEYWORDS)

    if config.get("ENABLE_ORCA"):
        connections.append(SourceConnection(
            name="orca",
            label="Orca",
            url=config["ORCA_WS_URL"],
            subscribe_requests=[logs_subscription(config["ORCA_PROGRAM_ID"], commitment)],
            heartbeat_interval=heartbeat,
            reconnect_delay=reconnect,
        ))
        normalizers["orca"] = LogSubscriptionNormalizer("orca", ORCA_LOG_KEYWORDS)

    logger.info(f"Configured {len(connections)} sources: {', '.join(c.label for c in connections) or 'none'}")
    return connections, normalizers
