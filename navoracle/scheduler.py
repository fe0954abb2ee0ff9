# navoracle/scheduler.py
"""
NAV Refresh Scheduler

Every NAVORACLE_REFRESH_INTERVAL seconds:
  1. Fetches the yUSDX NAV from the off-chain API
  2. Signs an attestation proof with the local attester key
  3. Submits it as a verified update
  4. Falls back to a vault refresh if any of the above fails

Usage:
  python3 -m navoracle.scheduler          # run forever
  python3 -m navoracle.scheduler --once   # refresh once, then exit
"""

import sys
import time
import logging

import requests

from navoracle import config
from navoracle.attestation import sign_proof
from navoracle.feeds import yusdx
from navoracle.keys import load_or_create_key, public_key_hex

log = logging.getLogger("navoracle.scheduler")

FEED = "yusdx"
TIMEOUT = 10


def submit_verified(server_url, sk, api_url):
    nav = yusdx.get_yusdx_nav(api_url)
    proof = sign_proof(sk, nav["url"], nav["raw"], int(time.time()))
    r = requests.post(f"{server_url}/feeds/{FEED}/verified", json=proof.to_dict(), timeout=TIMEOUT)
    if r.status_code != 200:
        raise RuntimeError(f"verified update rejected ({r.status_code}): {r.text}")
    return r.json()


def submit_fallback(server_url):
    r = requests.post(f"{server_url}/feeds/{FEED}/fallback", timeout=TIMEOUT)
    if r.status_code != 200:
        raise RuntimeError(f"vault update rejected ({r.status_code}): {r.text}")
    return r.json()


def refresh_once(server_url, sk, api_url=None):
    """Attested refresh, or vault refresh if that fails. Returns the update or None."""
    api_url = api_url or yusdx.api_url(config.NETWORK)
    try:
        update = submit_verified(server_url, sk, api_url)
        log.info(f"Verified: NAV {update['value']} @ {update['timestamp']} (proof {update['proof_hash'][:16]})")
        return update
    except Exception as e:
        log.warning(f"Verified refresh failed: {e}")

    try:
        update = submit_fallback(server_url)
        log.info(f"Vault fallback: NAV {update['value']} @ {update['timestamp']}")
        return update
    except Exception as e:
        log.error(f"Vault fallback failed: {e}")
        return None


def run_loop(server_url, sk, interval):
    log.info("=== NAV Scheduler: starting loop ===")
    while True:
        refresh_once(server_url, sk)
        log.info(f"Sleeping {interval}s...")
        time.sleep(interval)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    sk = load_or_create_key(config.KEYS_DIR)
    log.info(f"Attester pubkey: {public_key_hex(sk)}")
    if "--once" in sys.argv:
        refresh_once(config.SERVER_URL, sk)
    else:
        run_loop(config.SERVER_URL, sk, config.REFRESH_INTERVAL)
