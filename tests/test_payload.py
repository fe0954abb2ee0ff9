import pytest

from navoracle.errors import DecodeError, OutOfBounds
from navoracle.payload import NavBounds, decode_and_check, decode_nav, encode_nav, rescale


@pytest.mark.parametrize("value", [800_000, 1_000_000, 1_200_000])
def test_accepts_values_inside_band(bounds, value):
    assert decode_and_check(encode_nav(value), bounds) == value


@pytest.mark.parametrize("value", [0, 799_999, 1_200_001, 10 ** 30])
def test_rejects_values_outside_band(bounds, value):
    with pytest.raises(OutOfBounds):
        decode_and_check(encode_nav(value), bounds)


def test_band_edges(bounds):
    assert bounds.min_allowed == 800_000
    assert bounds.max_allowed == 1_200_000


def test_bounds_from_bps():
    assert NavBounds.from_bps(1_000_000, 2000) == NavBounds(1_000_000, 200_000)


@pytest.mark.parametrize("reference,deviation", [(0, 0), (-1, 0), (100, 101), (100, -1)])
def test_bounds_reject_bad_config(reference, deviation):
    with pytest.raises(ValueError):
        NavBounds(reference, deviation)


def test_decode_nav_is_one_big_endian_word():
    raw = bytes(31) + b"\x0f"
    assert decode_nav(raw) == 15
    assert decode_nav(bytearray(raw)) == 15


@pytest.mark.parametrize("raw", [b"", bytes(31), bytes(33), bytes(64), "00" * 32, None])
def test_decode_nav_rejects_malformed(raw):
    with pytest.raises(DecodeError):
        decode_nav(raw)


def test_encode_nav_rejects_out_of_range():
    with pytest.raises(ValueError):
        encode_nav(-1)
    with pytest.raises(ValueError):
        encode_nav(1 << 256)


def test_rescale_up_and_down():
    assert rescale(1_050_000, 6, 18) == 1_050_000 * 10 ** 12
    assert rescale(1_050_000_000_000_000_000, 18, 6) == 1_050_000
    assert rescale(42, 6, 6) == 42
    assert rescale(999_999_999_999, 18, 6) == 0


def test_rescale_round_trip_loses_only_low_digits():
    value = 1_234_567_890_123_456_789
    back = rescale(rescale(value, 18, 6), 6, 18)
    assert back == 1_234_567_000_000_000_000
    assert value - back == value % 10 ** 12
