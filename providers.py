# Filename: providers.py
"""
External data providers used by the holder and honeypot checks.

The auditor only relies on the two capability methods below, so tests and
alternative backends can pass any object exposing them.
"""

from typing import Any, Dict, List, Optional

import aiohttp
from loguru import logger
from solana.rpc.async_api import AsyncClient
from solders.pubkey import Pubkey

from risk_checks import HolderData, HoneypotReport


class ProviderError(Exception):
    """A provider could not produce data for a token."""


class HolderDataProvider:
    async def fetch_holder_data(self, token: str) -> HolderData:
        raise NotImplementedError

    async def close(self):
        pass


class HoneypotProvider:
    async def detect_honeypot(self, token: str) -> HoneypotReport:
        raise NotImplementedError

    async def close(self):
        pass


class SolanaRpcHolderProvider(HolderDataProvider):
    """
    Holder distribution from getTokenSupply + getTokenLargestAccounts.
    The RPC only returns the largest accounts (at most 20), so the count saturates there.
    """

    def __init__(self, rpc_url: str, commitment: str = "confirmed", client: Optional[AsyncClient] = None):
        self.client = client or AsyncClient(rpc_url, commitment=commitment)

    async def fetch_holder_data(self, token: str) -> HolderData:
        try:
            pubkey = Pubkey.from_string(token)
        except Exception as e:
            raise ProviderError(f"invalid mint address {token}: {e}") from e

        supply_resp = await self.client.get_token_supply(pubkey)
        if not hasattr(supply_resp, "value"):
            raise ProviderError(f"supply response invalid for {token}: {supply_resp}")
        total_amount = int(supply_resp.value.amount)

        holders_resp = await self.client.get_token_largest_accounts(pubkey)
        if not hasattr(holders_resp, "value"):
            raise ProviderError(f"holder response invalid for {token}: {holders_resp}")

        amounts = [int(holder.amount.amount) for holder in holders_resp.value or []]
        logger.debug(f"[HOLDERS] {token}: supply={total_amount}, {len(amounts)} largest accounts")
        return holder_data_from_balances(total_amount, amounts)

    async def close(self):
        await self.client.close()


def holder_data_from_balances(total_supply: int, balances: List[int]) -> HolderData:
    if total_supply <= 0:
        raise ProviderError("token has zero supply")
    holding = [amount for amount in balances if amount > 0]
    top = max(holding, default=0)
    return HolderData(count=len(holding), top_holder_percent=top * 100 / total_supply)


class RugCheckHoneypotProvider(HoneypotProvider):
    """
    Honeypot verdict from the RugCheck token report.
    On Solana a live freeze authority lets the issuer block sells, so it counts as a honeypot.
    """

    def __init__(self, base_url: str = "https://api.rugcheck.xyz/v1/tokens", timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def detect_honeypot(self, token: str) -> HoneypotReport:
        url = f"{self.base_url}/{token}/report"
        session = await self._get_session()
        async with session.get(url) as response:
            if response.status == 404:
                raise ProviderError(f"RugCheck: token not found: {token}")
            if response.status != 200:
                raise ProviderError(f"RugCheck: HTTP {response.status} for {token}")
            data = await response.json()
        return honeypot_report_from_rugcheck(data)

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()


def honeypot_report_from_rugcheck(data: Dict[str, Any]) -> HoneypotReport:
    freeze_authority = data.get("freezeAuthority")
    is_honeypot = data.get("rugged") is True or freeze_authority not in (None, "", "null")

    transfer_fee = data.get("transferFee") or {}
    fee_pct = float(transfer_fee.get("pct") or 0)

    return HoneypotReport(is_honeypot=is_honeypot, buy_tax=fee_pct, sell_tax=fee_pct)
