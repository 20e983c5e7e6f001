"""Quick statistics for captured keystroke entropy.

A typist produces one bit per key press, so a capture is usually a few
hundred bytes.  That is too little for byte-histogram tests, so the
report leans on the bit stream itself: balance of ones and zeros, the
runs test, and correlation between neighbouring bits.
"""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np

# Five expected samples per byte value before the histogram test means anything.
MIN_UNIFORMITY_BYTES = 5 * 256
# Chi-squared critical value for 255 degrees of freedom at p = 0.05.
CHI2_CRITICAL_255 = 293.25


def load_capture(path: str | Path) -> np.ndarray:
    """Read a captured byte file as a uint8 array."""
    return np.frombuffer(Path(path).read_bytes(), dtype=np.uint8)


def capture_bits(data: np.ndarray) -> np.ndarray:
    """The capture as a bit array, in the order the bits were typed."""
    return np.unpackbits(np.asarray(data, dtype=np.uint8).ravel())


def byte_entropy(data: np.ndarray) -> float:
    """Shannon entropy of the byte values, in bits per byte."""
    counts = np.bincount(np.asarray(data, dtype=np.uint8).ravel(), minlength=256)
    total = counts.sum()
    if total == 0:
        return 0.0
    p = counts[counts > 0] / total
    return float(-(p * np.log2(p)).sum())


def bit_bias(data: np.ndarray) -> float:
    """Fraction of one bits.  An unbiased source sits near 0.5."""
    bits = capture_bits(data)
    if len(bits) == 0:
        return 0.0
    return float(bits.mean())


def bit_runs(data: np.ndarray) -> int:
    """Number of runs of identical consecutive bits."""
    bits = capture_bits(data)
    if len(bits) == 0:
        return 0
    return int(np.count_nonzero(bits[1:] != bits[:-1])) + 1


def runs_z_score(data: np.ndarray) -> float:
    """Wald-Wolfowitz runs test on the bit stream.

    Large positive values mean the bits flip too often (alternating
    stamps), large negative values mean they stick.  0.0 when the test is
    undefined, e.g. all bits equal.
    """
    bits = capture_bits(data)
    n = len(bits)
    ones = int(bits.sum())
    zeros = n - ones
    if ones == 0 or zeros == 0:
        return 0.0
    expected = 2.0 * ones * zeros / n + 1.0
    variance = (expected - 1.0) * (expected - 2.0) / (n - 1)
    if variance <= 0:
        return 0.0
    return (bit_runs(data) - expected) / math.sqrt(variance)


def bit_serial_correlation(data: np.ndarray, lag: int = 1) -> float:
    """Correlation between each bit and the bit *lag* key presses later."""
    bits = capture_bits(data).astype(np.float64)
    if len(bits) <= lag + 1:
        return 0.0
    centred = bits - bits.mean()
    denom = float(np.dot(centred, centred))
    if denom == 0.0:
        return 0.0
    return float(np.dot(centred[:-lag], centred[lag:]) / denom)


def byte_uniformity(data: np.ndarray) -> dict | None:
    """Chi-squared test of the byte histogram, or None for short captures."""
    data = np.asarray(data, dtype=np.uint8).ravel()
    if len(data) < MIN_UNIFORMITY_BYTES:
        return None
    observed = np.bincount(data, minlength=256)
    expected = len(data) / 256
    chi2 = float(((observed - expected) ** 2).sum() / expected)
    return {"chi2": round(chi2, 2), "uniform": chi2 < CHI2_CRITICAL_255}


def quality_grade(score: float) -> str:
    return (
        "A" if score >= 80 else
        "B" if score >= 60 else
        "C" if score >= 40 else
        "D" if score >= 20 else "F"
    )


def full_report(data: np.ndarray, label: str = "") -> dict:
    """Run every check and return a structured report.

    The score only uses the bit checks; byte entropy and uniformity are
    reported for information since they need far more data to be fair.
    """
    data = np.asarray(data, dtype=np.uint8).ravel()
    if len(data) == 0:
        return {"label": label, "bytes": 0, "grade": "F", "error": "no data"}

    bias = bit_bias(data)
    z = runs_z_score(data)
    corr = bit_serial_correlation(data)

    balance = 1.0 - 2.0 * abs(bias - 0.5)
    score = (
        balance * 40
        + max(0.0, 1.0 - abs(z) / 4.0) * 30
        + max(0.0, 1.0 - abs(corr) * 10.0) * 30
    )

    return {
        "label": label,
        "bytes": len(data),
        "bits": len(data) * 8,
        "bit_bias": round(bias, 4),
        "bit_runs": bit_runs(data),
        "runs_z": round(z, 3),
        "bit_serial_correlation": round(corr, 4),
        "byte_entropy": round(byte_entropy(data), 4),
        "byte_uniformity": byte_uniformity(data),
        "quality_score": round(score, 1),
        "grade": quality_grade(score),
    }
