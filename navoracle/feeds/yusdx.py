# feeds/yusdx.py
"""
yUSDX/USD NAV Feed
Clearpool X-Pool share price, 6 decimals.

Sources:
  1. HT Markets API        api.htmarkets.com            (production)
  2. GitHub Pages mirror   amadiaflare.github.io        (testnet, static)
Fallback: X-Pool vault getRate() at 18 decimals.

API response: {"success": true, "data": {"navScaled": 1004187, ...}}
The attested payload is the ABI encoding of (uint256 navScaled).
"""

import requests

from navoracle.feed import DEFAULT_MAX_AGE, NavFeed
from navoracle.hashing import feed_id
from navoracle.payload import NavBounds, encode_nav
from navoracle.provenance import SourcePolicy

SYMBOL = "yUSDX"
DECIMALS = 6
PAR = 10 ** DECIMALS
MAX_DEVIATION_BPS = 2000
TIMEOUT = 5

PRODUCTION_API_URL = "https://api.htmarkets.com/api/v1/xpool/nav"
TESTNET_API_URL = "https://amadiaflare.github.io/hex-custom-feeds/api/v1/xpool/nav.json"

PATH_PREFIX_BY_HOST = {
    "api.htmarkets.com": "/api/v1/xpool/nav",
    "amadiaflare.github.io": "/hex-custom-feeds/api/v1/xpool/nav",
}

FEED_ID = feed_id(SYMBOL)
POLICY = SourcePolicy(PATH_PREFIX_BY_HOST)


def api_url(network: str) -> str:
    return PRODUCTION_API_URL if network == "mainnet" else TESTNET_API_URL


def get_yusdx_nav(url: str = TESTNET_API_URL):
    """Fetch the X-Pool NAV from the off-chain API.

    Returns dict with: nav_scaled, url, raw
    Raises RuntimeError if the API reports failure or omits navScaled.
    """
    r = requests.get(url, timeout=TIMEOUT)
    r.raise_for_status()
    body = r.json()
    if not body.get("success", False):
        raise RuntimeError(f"yUSDX: NAV API reported failure: {body}")
    nav = (body.get("data") or {}).get("navScaled")
    if isinstance(nav, bool) or not isinstance(nav, int) or nav < 0:
        raise RuntimeError(f"yUSDX: invalid navScaled {nav!r}")
    return {
        "nav_scaled": nav,
        "url": url,
        "raw": encode_nav(nav),
    }


def build_feed(verifier, vault, max_deviation_bps: int = MAX_DEVIATION_BPS, **kwargs) -> NavFeed:
    kwargs.setdefault("max_age", DEFAULT_MAX_AGE)
    return NavFeed(
        identifier=FEED_ID,
        policy=POLICY,
        bounds=NavBounds.from_bps(PAR, max_deviation_bps),
        verifier=verifier,
        vault=vault,
        decimals=DECIMALS,
        name=f"{SYMBOL}/USD",
        **kwargs,
    )


if __name__ == "__main__":
    result = get_yusdx_nav()
    print(f"  NAV:     {result['nav_scaled'] / PAR:.6f} USD")
    print(f"  Source:  {result['url']}")
    print(f"  Payload: 0x{result['raw'].hex()}")
    print(f"  Feed ID: 0x{FEED_ID.hex()}")
