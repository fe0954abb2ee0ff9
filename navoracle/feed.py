"""
NAV feed state machine.

State is one cached value at a fixed decimal scale, its timestamp and an
update counter. Two transitions mutate it:

  commit_verified(proof)   URL provenance -> attestation -> decode/bounds
  commit_from_fallback()   vault rate -> rescale -> bounds

Validation runs as a pure pipeline (verify_update) that either raises or
returns a fully checked VerifiedUpdate; only then is state written, so a
rejected refresh never leaves a partial write behind.
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from navoracle import report
from navoracle.attestation import AttestationVerifier, Proof, proof_hash
from navoracle.errors import FeedError, ProofInvalid, StaleUpdate
from navoracle.payload import NavBounds, decode_and_check, rescale
from navoracle.provenance import SourcePolicy, validate_url
from navoracle.vault import FallbackVault

log = logging.getLogger(__name__)

DEFAULT_DECIMALS = 6
DEFAULT_MAX_AGE = 86400


@dataclass
class FeedState:
    identifier: bytes
    decimals: int
    value: int
    last_update_time: int
    update_count: int = 0
    fallback_update_count: int = 0


@dataclass(frozen=True)
class VerifiedUpdate:
    value: int
    timestamp: int
    proof_hash: str


@dataclass(frozen=True)
class FeedUpdate:
    feed_id: str
    value: int
    timestamp: int
    proof_hash: Optional[str]
    source: str  # "attestation" or "vault"


class NavFeed:
    def __init__(
        self,
        identifier: bytes,
        policy: SourcePolicy,
        bounds: NavBounds,
        verifier: AttestationVerifier,
        vault: FallbackVault,
        decimals: int = DEFAULT_DECIMALS,
        clock: Callable[[], float] = time.time,
        max_age: int = DEFAULT_MAX_AGE,
        require_url_validation: bool = True,
        name: str = None,
    ):
        identifier = bytes(identifier)
        if not any(identifier):
            raise ValueError("feed identifier must be non-zero")

        self.policy = policy
        self.bounds = bounds
        self.verifier = verifier
        self.vault = vault
        self.clock = clock
        self.max_age = max_age
        self.require_url_validation = require_url_validation
        self.name = name or "0x" + identifier.hex()
        self._listeners: List[Callable[[FeedUpdate], None]] = []

        # Seeded at par with timestamp 0 so any first verified update is accepted.
        self.state = FeedState(identifier, decimals, bounds.reference, 0)

        if not require_url_validation:
            log.warning(f"{self.name}: URL provenance validation is DISABLED")

    def _now(self) -> int:
        return int(self.clock())

    # === Read surface ===

    def feed_identifier(self) -> bytes:
        return self.state.identifier

    def decimal_scale(self) -> int:
        return self.state.decimals

    @property
    def update_count(self) -> int:
        return self.state.update_count

    @property
    def fallback_update_count(self) -> int:
        return self.state.fallback_update_count

    def read(self) -> int:
        return self.state.value

    def read_cached(self) -> Tuple[int, int, int]:
        return self.state.value, self.state.decimals, self.state.last_update_time

    def read_live(self) -> int:
        """Vault rate at feed scale. Diagnostic only: no bounds check, no state change."""
        return rescale(self.vault.get_rate(), self.vault.decimals, self.state.decimals)

    def snapshot(self) -> FeedState:
        return replace(self.state)

    def is_stale(self, max_age: int = None) -> bool:
        if max_age is None:
            max_age = self.max_age
        return report.is_stale(self.state.last_update_time, max_age, self._now())

    def deviation_from_fallback(self) -> report.DeviationReport:
        return report.deviation_from_fallback(self.state.value, self.state.decimals, self.vault)

    def subscribe(self, listener: Callable[[FeedUpdate], None]):
        self._listeners.append(listener)

    # === Write surface ===

    def verify_update(self, proof: Proof) -> VerifiedUpdate:
        """Run the full validation pipeline without touching state."""
        payload = proof.payload
        if self.require_url_validation:
            validate_url(payload.claimed_url, self.policy)
        if not self.verifier.verify(proof):
            raise ProofInvalid(f"attestation rejected for {payload.claimed_url}")
        value = decode_and_check(payload.raw_response_bytes, self.bounds)

        timestamp = payload.asserted_timestamp or self._now()
        if timestamp < self.state.last_update_time:
            raise StaleUpdate(
                f"timestamp {timestamp} older than last update {self.state.last_update_time}"
            )
        return VerifiedUpdate(value, timestamp, proof_hash(proof))

    def commit_verified(self, proof: Proof) -> FeedUpdate:
        try:
            update = self.verify_update(proof)
        except FeedError as e:
            log.warning(f"{self.name}: verified update rejected ({e.reason}): {e}")
            raise

        self.state.value = update.value
        self.state.last_update_time = update.timestamp
        self.state.update_count += 1
        log.info(
            f"{self.name}: NAV {update.value} @ {update.timestamp} "
            f"(update #{self.state.update_count}, proof {update.proof_hash[:16]})"
        )
        return self._emit(update.value, update.timestamp, update.proof_hash, "attestation")

    def commit_from_fallback(self) -> FeedUpdate:
        try:
            rate = self.vault.get_rate()
            value = self.bounds.check(rescale(rate, self.vault.decimals, self.state.decimals))
        except FeedError as e:
            log.warning(f"{self.name}: vault update rejected ({e.reason}): {e}")
            raise

        # A verified commit may carry an asserted timestamp ahead of our clock.
        timestamp = max(self._now(), self.state.last_update_time)
        self.state.value = value
        self.state.last_update_time = timestamp
        self.state.fallback_update_count += 1
        log.info(f"{self.name}: NAV {value} @ {timestamp} from vault")
        return self._emit(value, timestamp, None, "vault")

    def _emit(self, value, timestamp, digest, source) -> FeedUpdate:
        event = FeedUpdate("0x" + self.state.identifier.hex(), value, timestamp, digest, source)
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                log.exception(f"{self.name}: update listener failed")
        return event
