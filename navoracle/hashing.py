"""
Hash helpers: keccak-256 (via pycryptodome) and feed identifiers.
"""

from Crypto.Hash import keccak

CUSTOM_FEED_CATEGORY = 0x21
FEED_ID_LENGTH = 21


def keccak256(data: bytes) -> bytes:
    h = keccak.new(digest_bits=256)
    h.update(bytes(data))
    return h.digest()


def feed_id(symbol: str, quote: str = "USD") -> bytes:
    """21-byte feed id: category byte 0x21 followed by keccak256("SYMBOL/QUOTE")[:20]."""
    name_hash = keccak256(f"{symbol}/{quote}".encode("utf-8"))
    return bytes([CUSTOM_FEED_CATEGORY]) + name_hash[:20]
