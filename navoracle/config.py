"""
Runtime configuration, read once from the environment.
"""

import os
from pathlib import Path

NETWORK = os.environ.get("NAVORACLE_NETWORK", "testnet")
PORT = int(os.environ.get("NAVORACLE_PORT", "9120"))
SERVER_URL = os.environ.get("NAVORACLE_SERVER_URL", f"http://127.0.0.1:{PORT}")

RPC_URL = os.environ.get("NAVORACLE_RPC_URL", "https://flare-api.flare.network/ext/C/rpc")
VAULT_ADDRESS = os.environ.get(
    "NAVORACLE_VAULT_ADDRESS", "0xd006185B765cA59F29FDd0c57526309726b69d99"  # Clearpool X-Pool, Flare mainnet
)

# Comma-separated compressed secp256k1 keys. Empty = pin the local attester key.
ATTESTER_PUBKEYS = [
    k.strip() for k in os.environ.get("NAVORACLE_ATTESTER_PUBKEYS", "").split(",") if k.strip()
]

MAX_AGE = int(os.environ.get("NAVORACLE_MAX_AGE", "86400"))
MAX_DEVIATION_BPS = int(os.environ.get("NAVORACLE_MAX_DEVIATION_BPS", "2000"))  # 20%
REFRESH_INTERVAL = int(os.environ.get("NAVORACLE_REFRESH_INTERVAL", "3600"))

KEYS_DIR = Path(os.environ.get("NAVORACLE_KEYS_DIR", str(Path(__file__).parent / "keys")))
