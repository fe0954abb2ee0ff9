"""
Fallback vault sources.

A vault exposes one NAV-like rate, ``getRate()``, at its own native scale
(18 decimals). Every read may fail; failures surface as SourceUnavailable.
"""

import requests

from navoracle.errors import SourceUnavailable
from navoracle.hashing import keccak256

VAULT_DECIMALS = 18
TIMEOUT = 5
GET_RATE_SELECTOR = "0x" + keccak256(b"getRate()")[:4].hex()


class FallbackVault:
    """
    Trusted rate source interface.

    get_rate() -> int at ``decimals`` scale, or raise SourceUnavailable.
    """

    decimals = VAULT_DECIMALS

    def get_rate(self) -> int:
        raise NotImplementedError


class StaticVault(FallbackVault):
    """In-memory vault for tests and testnets. ``fail`` makes reads raise."""

    def __init__(self, rate: int, decimals: int = VAULT_DECIMALS):
        self.rate = rate
        self.decimals = decimals
        self.fail = False

    def set_rate(self, rate: int):
        self.rate = rate

    def get_rate(self) -> int:
        if self.fail:
            raise SourceUnavailable("vault read failed")
        return self.rate


class RpcVault(FallbackVault):
    """Reads getRate() from a deployed vault with a JSON-RPC eth_call."""

    def __init__(self, rpc_url: str, address: str, decimals: int = VAULT_DECIMALS, timeout: float = TIMEOUT):
        self.rpc_url = rpc_url
        self.address = address
        self.decimals = decimals
        self.timeout = timeout

    def get_rate(self) -> int:
        body = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_call",
            "params": [{"to": self.address, "data": GET_RATE_SELECTOR}, "latest"],
        }
        try:
            r = requests.post(self.rpc_url, json=body, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise SourceUnavailable(f"vault rpc failed: {e}") from e

        if "error" in data:
            raise SourceUnavailable(f"vault call reverted: {data['error']}")
        result = data.get("result")
        if not isinstance(result, str) or not result.startswith("0x") or len(result) < 66:
            raise SourceUnavailable(f"malformed vault result: {result!r}")
        try:
            return int(result[2:66], 16)
        except ValueError as e:
            raise SourceUnavailable(f"malformed vault result: {result!r}") from e
