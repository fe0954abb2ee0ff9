"""
navoracle — attested NAV feeds for yield-bearing synthetic-dollar tokens.

Each feed caches a single value at a fixed decimal scale. It is refreshed
either from an attestation proof over off-chain NAV data or from a
trusted on-chain vault rate.
"""

__version__ = "0.1.0"
