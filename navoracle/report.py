"""
Read-only feed diagnostics: staleness and deviation from the fallback vault.

These are best-effort views, not safety gates. A failing vault degrades the
deviation report to absent values instead of failing the caller.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from navoracle.errors import SourceUnavailable
from navoracle.payload import BPS, rescale
from navoracle.vault import FallbackVault

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviationReport:
    attested_value: int
    fallback_value: Optional[int]
    deviation_bps: Optional[int]
    decimals: int


def is_stale(last_update_time: int, max_age: int, now: int) -> bool:
    return now - last_update_time > max_age


def deviation_bps(a: int, b: int) -> Optional[int]:
    """|a - b| in basis points of the smaller value. None when the smaller is zero."""
    smaller = min(a, b)
    if smaller <= 0:
        return None
    return abs(a - b) * BPS // smaller


def deviation_from_fallback(attested_value: int, decimals: int, vault: FallbackVault) -> DeviationReport:
    try:
        rate = vault.get_rate()
    except SourceUnavailable as e:
        log.warning(f"Deviation check skipped, vault unavailable: {e}")
        return DeviationReport(attested_value, None, None, decimals)
    except Exception:
        log.exception("Deviation check skipped, vault read raised")
        return DeviationReport(attested_value, None, None, decimals)

    # Compare at the finer of the two scales so the ratio loses nothing.
    common = max(decimals, vault.decimals)
    bps = deviation_bps(
        rescale(attested_value, decimals, common),
        rescale(rate, vault.decimals, common),
    )
    return DeviationReport(attested_value, rescale(rate, vault.decimals, decimals), bps, decimals)
