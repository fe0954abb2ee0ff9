"""
Feed rejection taxonomy.

Every rejection carries a stable ``reason`` string so callers (and the HTTP
surface) can tell a bad URL policy from a bad proof from a value
manipulation attempt.
"""


class FeedError(Exception):
    reason = "feed_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.reason)


# === Provenance ===

class UrlRejected(FeedError):
    reason = "url_rejected"


class InvalidProtocol(UrlRejected):
    reason = "invalid_protocol"


class InvalidHost(UrlRejected):
    reason = "invalid_host"


class InvalidPath(UrlRejected):
    reason = "invalid_path"


# === Proof ===

class ProofInvalid(FeedError):
    reason = "proof_invalid"


class StaleUpdate(FeedError):
    reason = "stale_update"


# === Payload ===

class PayloadError(FeedError):
    reason = "payload_error"


class DecodeError(PayloadError):
    reason = "decode_error"


class OutOfBounds(PayloadError):
    reason = "out_of_bounds"


# === Sources ===

class SourceUnavailable(FeedError):
    """Fallback vault read failed. Safe to retry later."""
    reason = "source_unavailable"


class RangeError(FeedError, IndexError):
    reason = "range_error"
