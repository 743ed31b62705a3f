"""Trim accuracy validation (±50 ms)."""

import logging
from typing import List, Optional

TOLERANCE_SECONDS = 0.05

# (name, start, end, expected duration)
ACCURACY_CASES = [
    ("Basic 10-second trim", 5.0, 15.0, 10.0),
    ("Precise fractional timing", 5.5, 15.7, 10.2),
    ("Short segment", 30.25, 35.33, 5.08),
]


def validate(expected_duration: float, actual_duration: float, tolerance: float = TOLERANCE_SECONDS) -> bool:
    """True when the produced duration is within ``tolerance`` of the requested one."""
    # Compare at microsecond resolution so an exact 50ms error is not lost to float noise
    return round(abs(actual_duration - expected_duration), 6) <= tolerance


def check_trim_accuracy(result, logger: Optional[logging.Logger] = None) -> bool:
    """Post-trim guard: warn, never raise, when the measured output drifts.

    Uses ``result.measured_duration`` when present, else ``actual_duration``.
    """
    logger = logger or logging.getLogger(__name__)
    expected = result.end_time - result.start_time
    actual = result.measured_duration if result.measured_duration is not None else result.actual_duration
    ok = validate(expected, actual)
    if not ok:
        logger.warning(
            "Trim %s is off by %.1fms (expected %.3fs, got %.3fs); keeping it",
            result.filename, abs(actual - expected) * 1000, expected, actual,
        )
    return ok


def run_accuracy_report(tolerance: float = TOLERANCE_SECONDS) -> List[dict]:
    """Evaluate the planned duration of each reference case against tolerance."""
    rows = []
    for name, start, end, expected in ACCURACY_CASES:
        actual = end - start
        rows.append({
            "name": name,
            "expected": expected,
            "actual": round(actual, 6),
            "difference_ms": round(abs(actual - expected) * 1000, 1),
            "pass": validate(expected, actual, tolerance),
        })
    return rows
