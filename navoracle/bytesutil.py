"""
Byte-level helpers used by URL provenance checks.

Everything here works on raw bytes. ``str`` arguments are encoded as UTF-8
first, so a URL is compared exactly as it was attested.
"""

from navoracle.errors import RangeError


def _raw(data) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def starts_with(data, prefix) -> bool:
    data, prefix = _raw(data), _raw(prefix)
    if len(data) < len(prefix):
        return False
    return data[:len(prefix)] == prefix


def slice_bytes(data, start: int, end: int) -> bytes:
    """Bytes in [start, end). Raises RangeError instead of clamping."""
    data = _raw(data)
    if start < 0 or end < start or end > len(data):
        raise RangeError(f"invalid slice [{start}, {end}) of {len(data)} bytes")
    return data[start:end]


def to_lower_ascii(data) -> bytes:
    # Only A-Z is folded; non-ASCII bytes pass through untouched.
    return bytes(b + 32 if 0x41 <= b <= 0x5A else b for b in _raw(data))


def bytes_equal(a, b) -> bool:
    return _raw(a) == _raw(b)
