import pytest

from navoracle.attestation import AttestedPayload, Proof, sign_proof
from navoracle.errors import (
    DecodeError,
    InvalidHost,
    InvalidPath,
    InvalidProtocol,
    OutOfBounds,
    ProofInvalid,
    SourceUnavailable,
    StaleUpdate,
)
from navoracle.feed import NavFeed
from navoracle.payload import encode_nav

from conftest import FEED_ID, START

URL = "https://api.example.com/v1/nav?x=1"


def make_proof(url=URL, value=1_050_000, timestamp=START + 100, raw=None):
    return Proof(AttestedPayload(url, encode_nav(value) if raw is None else raw, timestamp))


def test_seeded_at_par(feed):
    assert feed.read_cached() == (1_000_000, 6, 0)
    assert feed.update_count == 0
    assert feed.feed_identifier() == FEED_ID
    assert feed.decimal_scale() == 6


def test_rejects_zero_identifier(policy, bounds, verifier, vault):
    with pytest.raises(ValueError):
        NavFeed(bytes(21), policy, bounds, verifier, vault)


def test_verified_commit(feed):
    ts = START + 100
    event = feed.commit_verified(make_proof(timestamp=ts))
    assert feed.read_cached() == (1_050_000, 6, ts)
    assert feed.read() == 1_050_000
    assert feed.update_count == 1
    assert event.value == 1_050_000
    assert event.timestamp == ts
    assert event.source == "attestation"
    assert event.feed_id == "0x" + FEED_ID.hex()
    assert len(event.proof_hash) == 64


def test_verified_commit_with_real_signature(signed_feed, signing_key):
    proof = sign_proof(signing_key, URL, encode_nav(1_100_000), START + 5)
    signed_feed.commit_verified(proof)
    assert signed_feed.read_cached() == (1_100_000, 6, START + 5)


def test_evil_host_rejected_before_verifier(feed, verifier):
    before = feed.snapshot()
    with pytest.raises(InvalidHost):
        feed.commit_verified(make_proof(url="https://evil.example.com/v1/nav"))
    assert verifier.calls == []
    assert feed.snapshot() == before


@pytest.mark.parametrize("proof,error", [
    (make_proof(url="http://api.example.com/v1/nav"), InvalidProtocol),
    (make_proof(url="https://api.example.com/evil/v1/nav"), InvalidPath),
    (make_proof(value=799_999), OutOfBounds),
    (make_proof(value=1_200_001), OutOfBounds),
    (make_proof(raw=b"\x01" * 31), DecodeError),
])
def test_rejections_leave_state_unchanged(feed, proof, error):
    before = feed.snapshot()
    with pytest.raises(error):
        feed.commit_verified(proof)
    assert feed.snapshot() == before


def test_invalid_proof_leaves_state_unchanged(feed, verifier):
    verifier.valid = False
    before = feed.snapshot()
    with pytest.raises(ProofInvalid):
        feed.commit_verified(make_proof())
    assert feed.snapshot() == before


def test_timestamps_never_go_backwards(feed):
    feed.commit_verified(make_proof(value=1_010_000, timestamp=START + 10))
    feed.commit_verified(make_proof(value=1_020_000, timestamp=START + 20))
    assert feed.read_cached() == (1_020_000, 6, START + 20)
    assert feed.update_count == 2

    before = feed.snapshot()
    with pytest.raises(StaleUpdate):
        feed.commit_verified(make_proof(value=1_030_000, timestamp=START + 15))
    assert feed.snapshot() == before


def test_zero_timestamp_uses_clock(feed, clock):
    clock.now = START + 500
    feed.commit_verified(make_proof(timestamp=0))
    assert feed.read_cached()[2] == START + 500


def test_fallback_commit(feed, vault, clock):
    clock.now = START + 60
    event = feed.commit_from_fallback()
    assert feed.read_cached() == (1_050_000, 6, START + 60)
    assert feed.update_count == 0
    assert feed.fallback_update_count == 1
    assert event.source == "vault"
    assert event.proof_hash is None


def test_fallback_counts_separately(feed):
    feed.commit_verified(make_proof())
    feed.commit_from_fallback()
    assert feed.update_count == 1
    assert feed.fallback_update_count == 1


def test_fallback_unavailable(feed, vault):
    vault.fail = True
    before = feed.snapshot()
    with pytest.raises(SourceUnavailable):
        feed.commit_from_fallback()
    assert feed.snapshot() == before


def test_fallback_bounds_checked(feed, vault):
    vault.set_rate(1_300_000_000_000_000_000)
    before = feed.snapshot()
    with pytest.raises(OutOfBounds):
        feed.commit_from_fallback()
    assert feed.snapshot() == before


def test_fallback_truncates_rescaled_rate(feed, vault):
    vault.set_rate(1_049_999_999_999_999_999)
    feed.commit_from_fallback()
    assert feed.read() == 1_049_999


def test_fallback_keeps_timestamp_monotonic(feed, clock):
    feed.commit_verified(make_proof(timestamp=START + 10_000))
    clock.now = START + 1
    event = feed.commit_from_fallback()
    assert event.timestamp == START + 10_000


def test_read_live_bypasses_cache_and_bounds(feed, vault):
    vault.set_rate(1_300_000_000_000_000_000)
    before = feed.snapshot()
    assert feed.read_live() == 1_300_000
    assert feed.snapshot() == before


def test_read_live_propagates_vault_failure(feed, vault):
    vault.fail = True
    with pytest.raises(SourceUnavailable):
        feed.read_live()


def test_listeners_receive_updates(feed):
    events = []
    feed.subscribe(events.append)
    feed.commit_verified(make_proof())
    feed.commit_from_fallback()
    assert [e.source for e in events] == ["attestation", "vault"]


def test_failing_listener_does_not_undo_commit(feed):
    def boom(event):
        raise RuntimeError("listener down")

    feed.subscribe(boom)
    feed.commit_verified(make_proof())
    assert feed.update_count == 1


def test_url_validation_can_be_disabled(policy, bounds, verifier, vault, clock):
    feed = NavFeed(FEED_ID, policy, bounds, verifier, vault, clock=clock, require_url_validation=False)
    feed.commit_verified(make_proof(url="https://anywhere.example.net/x"))
    assert feed.read() == 1_050_000


def test_first_commit_may_predate_feed(feed):
    feed.commit_verified(make_proof(timestamp=START - 60))
    assert feed.read_cached() == (1_050_000, 6, START - 60)
    assert feed.update_count == 1


def test_is_stale(feed, clock):
    assert feed.is_stale()
    feed.commit_verified(make_proof(timestamp=START))
    assert not feed.is_stale()
    clock.now = START + 3600
    assert not feed.is_stale()
    clock.now = START + 3601
    assert feed.is_stale()
    assert not feed.is_stale(max_age=7200)
    feed.commit_verified(make_proof(timestamp=START + 3601))
    assert not feed.is_stale()
