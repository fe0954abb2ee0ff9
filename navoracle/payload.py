"""
Payload decoding, bounds checking and decimal rescaling.

The producer/consumer contract is the ABI encoding of ``(uint256 navScaled)``:
one 32-byte big-endian word. Bounds are the last line of defence against a
compromised or buggy producer; the band is deliberately wide (default
+/-20% around par) because yield-bearing tokens do drift from par.
"""

from dataclasses import dataclass

from navoracle.errors import DecodeError, OutOfBounds

WORD_SIZE = 32
UINT256_MAX = (1 << 256) - 1
BPS = 10_000


@dataclass(frozen=True)
class NavBounds:
    reference: int
    max_deviation: int

    def __post_init__(self):
        if self.reference <= 0:
            raise ValueError(f"reference must be positive, got {self.reference}")
        if not 0 <= self.max_deviation <= self.reference:
            raise ValueError(f"max_deviation out of range: {self.max_deviation}")

    @classmethod
    def from_bps(cls, reference: int, max_deviation_bps: int) -> "NavBounds":
        return cls(reference, reference * max_deviation_bps // BPS)

    @property
    def min_allowed(self) -> int:
        return self.reference - self.max_deviation

    @property
    def max_allowed(self) -> int:
        return self.reference + self.max_deviation

    def check(self, value: int) -> int:
        if value < self.min_allowed or value > self.max_allowed:
            raise OutOfBounds(
                f"value {value} outside [{self.min_allowed}, {self.max_allowed}]"
            )
        return value


def encode_nav(value: int) -> bytes:
    if not 0 <= value <= UINT256_MAX:
        raise ValueError(f"value does not fit in uint256: {value}")
    return value.to_bytes(WORD_SIZE, "big")


def decode_nav(raw) -> int:
    if not isinstance(raw, (bytes, bytearray, memoryview)):
        raise DecodeError(f"expected bytes, got {type(raw).__name__}")
    raw = bytes(raw)
    if len(raw) != WORD_SIZE:
        raise DecodeError(f"expected {WORD_SIZE} bytes, got {len(raw)}")
    return int.from_bytes(raw, "big")


def decode_and_check(raw, bounds: NavBounds) -> int:
    return bounds.check(decode_nav(raw))


def rescale(value: int, source_scale: int, target_scale: int) -> int:
    """Move a fixed-point integer between decimal scales.

    Scaling down truncates (floor for non-negative values).
    """
    if target_scale >= source_scale:
        return value * 10 ** (target_scale - source_scale)
    return value // 10 ** (source_scale - target_scale)
