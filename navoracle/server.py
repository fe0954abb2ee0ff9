"""
NAV Oracle — HTTP Server
Read and refresh surface for attested NAV feeds in a single FastAPI application.

Endpoints:
  GET  /health
  GET  /feeds/{name}              — cached value, decimals, timestamp
  GET  /feeds/{name}/live         — vault rate at feed scale (diagnostic)
  GET  /feeds/{name}/stale        — staleness against max_age
  GET  /feeds/{name}/deviation    — attested vs vault, in basis points
  POST /feeds/{name}/verified     — refresh from an attestation proof
  POST /feeds/{name}/fallback     — refresh from the vault

Refreshes are permissionless: safety comes from validation, not callers.
"""
import logging
import sys
from typing import Dict

from fastapi import Body, FastAPI, HTTPException
from fastapi.responses import JSONResponse
import uvicorn

from navoracle import __version__, config
from navoracle.attestation import Proof, Secp256k1AttestationVerifier
from navoracle.errors import FeedError, SourceUnavailable
from navoracle.feed import FeedUpdate, NavFeed
from navoracle.feeds import yusdx
from navoracle.keys import load_or_create_key, public_key_hex
from navoracle.vault import RpcVault

log = logging.getLogger("navoracle.server")


def _rejection(e: FeedError) -> JSONResponse:
    status = 503 if isinstance(e, SourceUnavailable) else 422
    return JSONResponse({"error": e.reason, "detail": str(e)}, status_code=status)


def _update_body(event: FeedUpdate) -> dict:
    return {
        "feed_id": event.feed_id,
        "value": event.value,
        "timestamp": event.timestamp,
        "proof_hash": event.proof_hash,
        "source": event.source,
    }


def create_app(feeds: Dict[str, NavFeed]) -> FastAPI:
    app = FastAPI(
        title="NAV Oracle",
        description="Attested NAV feeds for yield-bearing synthetic dollars",
        version=__version__,
    )

    def get_feed(name: str) -> NavFeed:
        feed = feeds.get(name)
        if feed is None:
            raise HTTPException(status_code=404, detail=f"unknown feed: {name}")
        return feed

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__, "feeds": sorted(feeds)}

    @app.get("/feeds/{name}")
    def read_cached(name: str):
        feed = get_feed(name)
        value, decimals, timestamp = feed.read_cached()
        return {
            "feed_id": "0x" + feed.feed_identifier().hex(),
            "value": value,
            "decimals": decimals,
            "timestamp": timestamp,
            "update_count": feed.update_count,
            "fallback_update_count": feed.fallback_update_count,
        }

    @app.get("/feeds/{name}/live")
    def read_live(name: str):
        feed = get_feed(name)
        try:
            value = feed.read_live()
        except FeedError as e:
            return _rejection(e)
        return {"value": value, "decimals": feed.decimal_scale()}

    @app.get("/feeds/{name}/stale")
    def is_stale(name: str, max_age: int = None):
        feed = get_feed(name)
        if max_age is None:
            max_age = feed.max_age
        return {"stale": feed.is_stale(max_age), "max_age": max_age}

    @app.get("/feeds/{name}/deviation")
    def deviation(name: str):
        report = get_feed(name).deviation_from_fallback()
        return {
            "attested_value": report.attested_value,
            "fallback_value": report.fallback_value,
            "deviation_bps": report.deviation_bps,
            "decimals": report.decimals,
        }

    @app.post("/feeds/{name}/verified")
    def commit_verified(name: str, body: dict = Body(...)):
        feed = get_feed(name)
        try:
            event = feed.commit_verified(Proof.from_dict(body))
        except FeedError as e:
            return _rejection(e)
        return _update_body(event)

    @app.post("/feeds/{name}/fallback")
    def commit_from_fallback(name: str):
        feed = get_feed(name)
        try:
            event = feed.commit_from_fallback()
        except FeedError as e:
            return _rejection(e)
        return _update_body(event)

    return app


def build_default_feeds() -> Dict[str, NavFeed]:
    pubkeys = config.ATTESTER_PUBKEYS
    if not pubkeys:
        sk = load_or_create_key(config.KEYS_DIR)
        pubkeys = [public_key_hex(sk)]
        log.info(f"Pinned local attester: {pubkeys[0]}")

    verifier = Secp256k1AttestationVerifier(pubkeys)
    vault = RpcVault(config.RPC_URL, config.VAULT_ADDRESS)
    return {"yusdx": yusdx.build_feed(verifier, vault, config.MAX_DEVIATION_BPS, max_age=config.MAX_AGE)}


def build_app() -> FastAPI:
    return create_app(build_default_feeds())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    port = int(sys.argv[1]) if len(sys.argv) > 1 else config.PORT
    app = build_app()
    print(f"NAV Oracle v{__version__} starting on :{port} ({config.NETWORK})")
    print(f"  Vault:   {config.VAULT_ADDRESS} via {config.RPC_URL}")
    print(f"  Feed ID: 0x{yusdx.FEED_ID.hex()} — yUSDX/USD")
    uvicorn.run(app, host="0.0.0.0", port=port)
