import pytest
from ecdsa import SECP256k1, SigningKey

from navoracle.attestation import Secp256k1AttestationVerifier, SimulatedVerifier
from navoracle.feed import NavFeed
from navoracle.payload import NavBounds
from navoracle.provenance import SourcePolicy
from navoracle.vault import StaticVault

FEED_ID = bytes([0x21]) + b"\x11" * 20
START = 1_700_000_000


class Clock:
    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def policy():
    return SourcePolicy({
        "api.example.com": "/v1/nav",
        "mirror.example.org": "/static/nav",
    })


@pytest.fixture
def bounds():
    return NavBounds(1_000_000, 200_000)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def vault():
    return StaticVault(1_050_000_000_000_000_000)


@pytest.fixture
def verifier():
    return SimulatedVerifier(valid=True)


@pytest.fixture
def signing_key():
    return SigningKey.generate(curve=SECP256k1)


@pytest.fixture
def feed(policy, bounds, verifier, vault, clock):
    return NavFeed(FEED_ID, policy, bounds, verifier, vault, decimals=6, clock=clock, max_age=3600)


@pytest.fixture
def signed_feed(policy, bounds, vault, clock, signing_key):
    pubkey = signing_key.get_verifying_key().to_string("compressed").hex()
    verifier = Secp256k1AttestationVerifier([pubkey])
    return NavFeed(FEED_ID, policy, bounds, verifier, vault, decimals=6, clock=clock)
