# Filename: normalizers.py

import json
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from models import EventKind, NormalizedEvent

PUMPFUN_TOTAL_SUPPLY = 1_000_000_000

# Ordered keyword tables: the first kind with a matching keyword wins.
RAYDIUM_LOG_KEYWORDS: Tuple[Tuple[EventKind, Tuple[str, ...]], ...] = (
    (EventKind.SWAP, ("swap",)),
    (EventKind.LIQUIDITY_ADDED, ("initialize", "deposit")),
    (EventKind.LIQUIDITY_REMOVED, ("withdraw",)),
)

ORCA_LOG_KEYWORDS: Tuple[Tuple[EventKind, Tuple[str, ...]], ...] = (
    (EventKind.SWAP, ("Swap",)),
    (EventKind.LIQUIDITY_ADDED, ("IncreaseLiquidity", "OpenPosition")),
    (EventKind.LIQUIDITY_REMOVED, ("DecreaseLiquidity", "ClosePosition")),
)

LOG_PREVIEW_LINES = 3


class MalformedFrame(ValueError):
    """Raised when an inbound frame cannot be decoded into a known message shape."""


class MessageNormalizer:
    """
    Maps one source's raw frames to NormalizedEvents.
    normalize() returns None for frames that carry no market event; counts()
    tells whether a decoded frame belongs in the source's message total.
    """

    def __init__(self, source: str):
        self.source = source

    def parse(self, raw: Union[str, bytes]) -> Optional[NormalizedEvent]:
        return self.normalize(self.decode(raw))

    def counts(self, message: Dict[str, Any]) -> bool:
        return True

    def normalize(self, message: Dict[str, Any]) -> Optional[NormalizedEvent]:
        raise NotImplementedError

    def decode(self, raw: Union[str, bytes]) -> Dict[str, Any]:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise MalformedFrame(f"invalid JSON from {self.source}: {e}") from e
        if not isinstance(message, dict):
            raise MalformedFrame(f"unexpected frame type from {self.source}: {type(message).__name__}")
        return message


class PumpPortalNormalizer(MessageNormalizer):
    TRADE_SIDES = ("buy", "sell")

    def normalize(self, message: Dict[str, Any]) -> Optional[NormalizedEvent]:
        tx_type = message.get("txType")

        if tx_type == "create":
            kind = EventKind.TOKEN_CREATED
            fields = dict(message)
        elif tx_type in self.TRADE_SIDES:
            kind = EventKind.TRADE
            fields = dict(message, side=tx_type)
        else:
            return None

        return NormalizedEvent(
            source=self.source,
            kind=kind,
            token=message.get("mint") or message.get("tokenAddress"),
            fields=fields,
            timestamp=time.time(),
        )


class LogSubscriptionNormalizer(MessageNormalizer):
    """
    Classifies program-log notifications (JSON-RPC logsSubscribe) by keyword.
    Matching is case-sensitive and follows the declaration order of the table.
    """

    def __init__(self, source: str, keywords: Sequence[Tuple[EventKind, Tuple[str, ...]]]):
        super().__init__(source)
        self.keywords = tuple(keywords)

    def classify(self, logs: List[str]) -> Optional[EventKind]:
        log_str = " ".join(logs)
        for kind, words in self.keywords:
            if any(word in log_str for word in words):
                return kind
        return None

    def counts(self, message: Dict[str, Any]) -> bool:
        return message.get("method") == "logsNotification"

    def normalize(self, message: Dict[str, Any]) -> Optional[NormalizedEvent]:
        if not self.counts(message):
            return None

        try:
            value = message["params"]["result"]["value"]
            logs = [str(line) for line in value["logs"]]
        except (KeyError, TypeError) as e:
            raise MalformedFrame(f"logsNotification without logs from {self.source}: {e!r}") from e

        kind = self.classify(logs)
        if kind is None:
            return None

        return NormalizedEvent(
            source=self.source,
            kind=kind,
            token=None,
            fields={
                "signature": value.get("signature"),
                "logs": tuple(logs[:LOG_PREVIEW_LINES]),
                "err": value.get("err"),
            },
            timestamp=time.time(),
        )


def pumpportal_subscriptions(new_tokens: bool = True,
                             token_keys: Sequence[str] = (),
                             account_keys: Sequence[str] = ()) -> List[Dict[str, Any]]:
    subscriptions = []
    if new_tokens:
        subscriptions.append({"method": "subscribeNewToken"})
    if token_keys:
        subscriptions.append({"method": "subscribeTokenTrade", "keys": list(token_keys)})
    if account_keys:
        subscriptions.append({"method": "subscribeAccountTrade", "keys": list(account_keys)})
    return subscriptions


def logs_subscription(program_id: str, commitment: str = "confirmed") -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "logsSubscribe",
        "params": [
            {"mentions": [program_id]},
            {"commitment": commitment},
        ],
    }


def audit_input(event: NormalizedEvent) -> Dict[str, Any]:
    """
    Token data handed to the auditor for a creation event.
    Pump.fun creations expose the creator's initial buy, from which the
    creator's share of the fixed supply is derived.
    """
    token_data = dict(event.fields)
    creator = token_data.get("traderPublicKey")
    initial_buy = token_data.get("initialBuy")
    if creator and initial_buy and "creatorBalance" not in token_data:
        token_data.setdefault("creator", creator)
        token_data["creatorBalance"] = initial_buy
        token_data.setdefault("totalSupply", PUMPFUN_TOTAL_SUPPLY)
    return token_data
