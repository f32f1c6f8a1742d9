"""
Configuration of the DEX listener and token auditor
"""

import os
import json
import logging
from dataclasses import dataclass
from typing import Dict, Any

logger = logging.getLogger("config")

CONFIG_FILE = "config.json"

# Default configuration
DEFAULT_CONFIG = {
    # Pump.fun (PumpPortal trade stream)
    "ENABLE_PUMPFUN": True,
    "PUMPFUN_WS_URL": "wss://pumpportal.fun/api/data",
    "PUMPFUN_SUBSCRIBE_NEW_TOKEN": True,
    "PUMPFUN_SUBSCRIBE_TOKEN_TRADE": False,
    "PUMPFUN_SUBSCRIBE_ACCOUNT_TRADE": False,
    "PUMPFUN_TOKEN_KEYS": [],
    "PUMPFUN_ACCOUNT_KEYS": [],

    # Program log streams
    "ENABLE_RAYDIUM": True,
    "RAYDIUM_WS_URL": "wss://api.mainnet-beta.solana.com",
    "RAYDIUM_PROGRAM_ID": "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
    "ENABLE_ORCA": True,
    "ORCA_WS_URL": "wss://api.mainnet-beta.solana.com",
    "ORCA_PROGRAM_ID": "9W959DqEETiGZocYWCQPaJ6sBmUzgfxXfqGeTEdp3aQP",
    "LOGS_COMMITMENT": "confirmed",

    # Transport
    "USE_PROXY": False,
    "PROXY_URL": "http://127.0.0.1:7890",
    "HEARTBEAT_INTERVAL_SECONDS": 30,
    "RECONNECT_DELAY_SECONDS": 5,
    "STATS_INTERVAL_SECONDS": 60,

    # Audit
    "AUDIT_ENABLED": True,
    "AUTO_AUDIT": True,
    "AUDIT_RUG_CHECK": True,
    "AUDIT_LIQUIDITY_CHECK": True,
    "AUDIT_HOLDER_CHECK": True,
    "AUDIT_HONEYPOT_CHECK": True,
    "AUDIT_CONTRACT_CHECK": True,
    "MIN_LIQUIDITY_SOL": 5.0,
    "MAX_TOP_HOLDER_PERCENT": 20.0,
    "MIN_HOLDER_COUNT": 10,
    "MAX_CREATOR_PERCENT": 10.0,
    "AUDIT_CACHE_TTL_SECONDS": 300,
    "AUDIT_CACHE_MAX_ENTRIES": 10_000,

    # Providers
    "RPC_HTTP_ENDPOINT": "https://api.mainnet-beta.solana.com",
    "COMMITMENT": "confirmed",
    "RUGCHECK_BASE_URL": "https://api.rugcheck.xyz/v1/tokens",
    "PROVIDER_TIMEOUT_SECONDS": 10,

    # Notifier
    "ENABLE_TELEGRAM": False,
    "TELEGRAM_BOT_TOKEN": "",
    "TELEGRAM_CHAT_ID": "",
    "REPORT_EVENTS": True,
}


@dataclass(frozen=True)
class AuditSettings:
    """Check toggles and thresholds consumed by the auditor and its cache."""
    enabled: bool = True
    auto_audit: bool = True
    rug_check: bool = True
    liquidity_check: bool = True
    holder_check: bool = True
    honeypot_check: bool = True
    contract_check: bool = True
    min_liquidity: float = 5.0
    max_top_holder_percent: float = 20.0
    min_holder_count: int = 10
    max_creator_percent: float = 10.0
    cache_ttl_seconds: float = 300.0
    cache_max_entries: int = 10_000

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "AuditSettings":
        return cls(
            enabled=bool(config.get("AUDIT_ENABLED", True)),
            auto_audit=bool(config.get("AUTO_AUDIT", True)),
            rug_check=bool(config.get("AUDIT_RUG_CHECK", True)),
            liquidity_check=bool(config.get("AUDIT_LIQUIDITY_CHECK", True)),
            holder_check=bool(config.get("AUDIT_HOLDER_CHECK", True)),
            honeypot_check=bool(config.get("AUDIT_HONEYPOT_CHECK", True)),
            contract_check=bool(config.get("AUDIT_CONTRACT_CHECK", True)),
            min_liquidity=float(config.get("MIN_LIQUIDITY_SOL", 5.0)),
            max_top_holder_percent=float(config.get("MAX_TOP_HOLDER_PERCENT", 20.0)),
            min_holder_count=int(config.get("MIN_HOLDER_COUNT", 10)),
            max_creator_percent=float(config.get("MAX_CREATOR_PERCENT", 10.0)),
            cache_ttl_seconds=float(config.get("AUDIT_CACHE_TTL_SECONDS", 300)),
            cache_max_entries=int(config.get("AUDIT_CACHE_MAX_ENTRIES", 10_000)),
        )


def load_config(config_file: str = CONFIG_FILE) -> Dict[str, Any]:
    """
    Load the configuration from config.json.
    If the file does not exist, it is created with the default configuration.

    Returns:
        Configuration dictionary
    """
    if os.environ.get("USE_ENV_CONFIG", "").lower() == "true":
        logger.info("Loading configuration from environment variables")
        config = load_config_from_env()
    else:
        if not os.path.exists(config_file):
            with open(config_file, "w") as f:
                json.dump(DEFAULT_CONFIG, f, indent=2)
            logger.info(f"Configuration file created: {config_file}")
            return dict(DEFAULT_CONFIG)

        try:
            with open(config_file, "r") as f:
                config = json.load(f)
            logger.info(f"Configuration loaded from: {config_file}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load configuration: {e}")
            logger.info("Using default configuration")
            return dict(DEFAULT_CONFIG)

    # Merge missing keys
    for key, value in DEFAULT_CONFIG.items():
        if key not in config:
            config[key] = value

    return config


def load_config_from_env() -> Dict[str, Any]:
    """
    Load the configuration from environment variables.
    Lists are read as comma-separated values.

    Returns:
        Configuration dictionary
    """
    config = {}

    for key, default_value in DEFAULT_CONFIG.items():
        env_value = os.environ.get(key)

        if env_value is not None:
            try:
                if isinstance(default_value, bool):
                    config[key] = env_value.lower() == "true"
                elif isinstance(default_value, int):
                    config[key] = int(env_value)
                elif isinstance(default_value, float):
                    config[key] = float(env_value)
                elif isinstance(default_value, list):
                    config[key] = [item.strip() for item in env_value.split(",") if item.strip()]
                else:
                    config[key] = env_value
            except ValueError as parse_err:
                logger.warning(f"Cannot parse env variable {key}: {parse_err}. Using default value.")
                config[key] = default_value
        else:
            config[key] = default_value

    return config
