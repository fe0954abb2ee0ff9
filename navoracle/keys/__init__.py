# navoracle/keys/__init__.py
"""
Persistent secp256k1 key for the local attester.

Used on testnets and offline deployments where proofs are signed locally
instead of by the attestation network. Verifiers pin the matching public key.
"""

import os
from pathlib import Path

from ecdsa import SigningKey, SECP256k1

KEY_FILENAME = "attester_secp256k1.key"


def load_or_create_key(keys_dir) -> SigningKey:
    """Load existing secp256k1 key or generate a new persistent one."""
    keys_dir = Path(keys_dir)
    key_path = keys_dir / KEY_FILENAME
    if key_path.exists():
        sk_hex = key_path.read_text().strip()
        return SigningKey.from_string(bytes.fromhex(sk_hex), curve=SECP256k1)

    keys_dir.mkdir(parents=True, exist_ok=True)
    sk = SigningKey.generate(curve=SECP256k1)
    key_path.write_text(sk.to_string().hex())
    os.chmod(str(key_path), 0o600)
    return sk


def public_key_hex(sk: SigningKey) -> str:
    return sk.get_verifying_key().to_string("compressed").hex()
