"""
URL provenance validation.

An attestation proves that some bytes were served by some URL. Whether that
URL is one we are willing to trust is decided here, against a static
allow-list: https only, exact host match (ASCII case-insensitive), and a
per-host path prefix matched byte for byte (case-sensitive).

Prefix, not substring, matching is what stops
``https://api.example.com/evil/v1/nav`` from passing a ``/v1/nav`` rule.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, NamedTuple

from navoracle.bytesutil import bytes_equal, slice_bytes, starts_with, to_lower_ascii
from navoracle.errors import InvalidHost, InvalidPath, InvalidProtocol

HTTPS_SCHEME = b"https://"


class ParsedUrl(NamedTuple):
    protocol: bytes
    host: bytes
    path: bytes


@dataclass(frozen=True)
class SourcePolicy:
    path_prefix_by_host: Mapping[str, str]
    require_https: bool = True
    allowed_hosts: frozenset = field(init=False)

    def __post_init__(self):
        if not self.require_https:
            raise ValueError("plaintext sources are never accepted")
        prefixes = {}
        for host, prefix in dict(self.path_prefix_by_host).items():
            host = to_lower_ascii(host).decode("utf-8")
            if not host:
                raise ValueError("empty host in source policy")
            prefixes[host] = prefix
        object.__setattr__(self, "path_prefix_by_host", MappingProxyType(prefixes))
        object.__setattr__(self, "allowed_hosts", frozenset(prefixes))

    def prefix_for(self, host: bytes) -> bytes:
        for allowed, prefix in self.path_prefix_by_host.items():
            if bytes_equal(allowed, host):
                return prefix.encode("utf-8")
        raise InvalidHost(f"host not allowed: {host.decode('utf-8', 'replace')}")


def split_url(url) -> ParsedUrl:
    """Split an https URL into scheme, host and path (path keeps the query)."""
    try:
        raw = url.encode("utf-8") if isinstance(url, str) else bytes(url)
    except UnicodeEncodeError as e:
        raise InvalidProtocol(f"url is not valid UTF-8: {e}") from e
    if not starts_with(raw, HTTPS_SCHEME):
        raise InvalidProtocol(f"only https sources are accepted: {raw[:16]!r}")

    host_start = len(HTTPS_SCHEME)
    slash = raw.find(b"/", host_start)
    host_end = len(raw) if slash == -1 else slash

    host = slice_bytes(raw, host_start, host_end)
    path = b"" if slash == -1 else slice_bytes(raw, slash, len(raw))
    return ParsedUrl(HTTPS_SCHEME, host, path)


def validate_url(url, policy: SourcePolicy) -> ParsedUrl:
    """Raise InvalidProtocol / InvalidHost / InvalidPath, or return the parts."""
    parsed = split_url(url)
    host = to_lower_ascii(parsed.host)
    prefix = policy.prefix_for(host)
    if not starts_with(parsed.path, prefix):
        raise InvalidPath(
            f"path {parsed.path.decode('utf-8', 'replace')!r} does not start with "
            f"{prefix.decode('utf-8')!r} for host {host.decode('utf-8', 'replace')}"
        )
    return ParsedUrl(parsed.protocol, host, parsed.path)
