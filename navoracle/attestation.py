"""
Attestation proofs and the verifiers that judge them.

A proof bundles an attested payload (claimed URL, raw response bytes,
optional timestamp) with an opaque binding. A verifier answers one question:
does the binding prove this payload came from the claimed URL? The feed
never re-derives that trust itself; it only decides whether the claimed URL
is acceptable and whether the payload is sane.

Canonical message (what attesters sign or commit to):
    v1|<url>|0x<response hex>|<timestamp>
"""

import base64
import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from ecdsa import SECP256k1, SigningKey, VerifyingKey
from nacl.signing import VerifyKey

from navoracle.errors import DecodeError
from navoracle.hashing import keccak256

log = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Proof model
# ------------------------------------------------------------------------------

@dataclass(frozen=True)
class AttestedPayload:
    claimed_url: str
    raw_response_bytes: bytes
    asserted_timestamp: int = 0  # 0 = no timestamp asserted

    def canonical(self) -> str:
        return (
            f"v1|{self.claimed_url}|0x{self.raw_response_bytes.hex()}|"
            f"{self.asserted_timestamp}"
        )

    def digest(self) -> bytes:
        return hashlib.sha256(self.canonical().encode("utf-8")).digest()


@dataclass(frozen=True)
class Proof:
    payload: AttestedPayload
    binding: Mapping = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "url": self.payload.claimed_url,
            "response_hex": "0x" + self.payload.raw_response_bytes.hex(),
            "timestamp": self.payload.asserted_timestamp,
            "binding": dict(self.binding),
        }

    @classmethod
    def from_dict(cls, data) -> "Proof":
        if not isinstance(data, dict):
            raise DecodeError("proof must be a JSON object")
        url = data.get("url")
        response_hex = data.get("response_hex")
        timestamp = data.get("timestamp", 0)
        binding = data.get("binding", {})

        if not isinstance(url, str):
            raise DecodeError("proof url must be a string")
        if not isinstance(response_hex, str):
            raise DecodeError("proof response_hex must be a string")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int) or timestamp < 0:
            raise DecodeError(f"proof timestamp must be a non-negative integer: {timestamp!r}")
        if not isinstance(binding, dict):
            raise DecodeError("proof binding must be an object")

        try:
            url.encode("utf-8")
        except UnicodeEncodeError as e:
            raise DecodeError(f"proof url is not valid UTF-8: {e}") from e

        if response_hex[:2] in ("0x", "0X"):
            response_hex = response_hex[2:]
        try:
            raw = bytes.fromhex(response_hex)
        except ValueError as e:
            raise DecodeError(f"invalid response hex: {e}") from e

        return cls(AttestedPayload(url, raw, timestamp), binding)


def proof_hash(proof: Proof) -> str:
    """sha256 of the canonical JSON form; the audit link carried in update events."""
    encoded = json.dumps(proof.to_dict(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


# ------------------------------------------------------------------------------
# Verifier interface
# ------------------------------------------------------------------------------

class AttestationVerifier:
    """
    External attestation interface.

    verify(proof) -> bool, never raises. True means the binding proves the
    payload was served by the claimed URL.
    """

    def verify(self, proof: Proof) -> bool:
        raise NotImplementedError


class SimulatedVerifier(AttestationVerifier):
    """Offline verifier with a fixed answer. Records every proof it sees."""

    def __init__(self, valid: bool = True):
        self.valid = valid
        self.calls = []

    def verify(self, proof: Proof) -> bool:
        self.calls.append(proof)
        return self.valid


class Secp256k1AttestationVerifier(AttestationVerifier):
    """ECDSA/secp256k1 signature over the canonical message from a pinned attester."""

    def __init__(self, pinned_pubkeys: Iterable[str]):
        self.pinned = {pk.strip().lower() for pk in pinned_pubkeys if pk.strip()}

    def verify(self, proof: Proof) -> bool:
        pubkey_hex = str(proof.binding.get("pubkey", "")).lower()
        if pubkey_hex not in self.pinned:
            log.warning(f"Attester not pinned: {pubkey_hex[:16]}...")
            return False
        try:
            vk = VerifyingKey.from_string(bytes.fromhex(pubkey_hex), curve=SECP256k1)
            signature = base64.b64decode(proof.binding["signature"])
            return vk.verify_digest(signature, proof.payload.digest())
        except Exception as e:
            log.warning(f"secp256k1 verification failed: {e}")
            return False


class Ed25519AttestationVerifier(AttestationVerifier):
    """Ed25519 signature over the canonical message from a pinned attester."""

    def __init__(self, pinned_pubkeys: Iterable[str]):
        self.pinned = {pk.strip().lower() for pk in pinned_pubkeys if pk.strip()}

    def verify(self, proof: Proof) -> bool:
        pubkey_hex = str(proof.binding.get("pubkey", "")).lower()
        if pubkey_hex not in self.pinned:
            log.warning(f"Attester not pinned: {pubkey_hex[:16]}...")
            return False
        try:
            vk = VerifyKey(bytes.fromhex(pubkey_hex))
            signature = base64.b64decode(proof.binding["signature"])
            vk.verify(proof.payload.digest(), signature)
            return True
        except Exception as e:
            log.warning(f"Ed25519 verification failed: {e}")
            return False


def merkle_leaf(payload: AttestedPayload) -> bytes:
    return keccak256(payload.canonical().encode("utf-8"))


def merkle_parent(a: bytes, b: bytes) -> bytes:
    # Sorted pairs: proofs need no left/right flags.
    return keccak256(a + b) if a <= b else keccak256(b + a)


class MerkleRootVerifier(AttestationVerifier):
    """
    Inclusion proof against a per-round Merkle root published by the
    attestation network.

    binding: {"voting_round": int, "merkle_proof": ["0x<32 bytes>", ...]}
    """

    def __init__(self, roots: Mapping[int, bytes] = None):
        self.roots = dict(roots or {})

    def add_root(self, voting_round: int, root: bytes):
        self.roots[voting_round] = bytes(root)

    def verify(self, proof: Proof) -> bool:
        try:
            root = self.roots.get(int(proof.binding["voting_round"]))
            if root is None:
                return False
            node = merkle_leaf(proof.payload)
            for sibling_hex in proof.binding.get("merkle_proof", []):
                sibling = bytes.fromhex(sibling_hex[2:] if sibling_hex.startswith("0x") else sibling_hex)
                if len(sibling) != 32:
                    return False
                node = merkle_parent(node, sibling)
            return node == root
        except Exception as e:
            log.warning(f"Merkle verification failed: {e}")
            return False


# ------------------------------------------------------------------------------
# Local attester (offline and testnet deployments)
# ------------------------------------------------------------------------------

def sign_proof(signing_key: SigningKey, url: str, raw: bytes, timestamp: int = 0) -> Proof:
    payload = AttestedPayload(url, bytes(raw), timestamp)
    signature = signing_key.sign_digest(payload.digest())
    return Proof(payload, {
        "scheme": "secp256k1",
        "signature": base64.b64encode(signature).decode(),
        "pubkey": signing_key.get_verifying_key().to_string("compressed").hex(),
    })
