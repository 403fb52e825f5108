"""
MACD (Moving Average Convergence Divergence) indicator module.

Usage:
    from cryptohub.indicators.macd import compute_macd

    result = compute_macd(closes)
    result.macd, result.signal, result.histogram
"""

from __future__ import annotations

from typing import Sequence

from cryptohub.indicators.moving_average import compute_ema
from cryptohub.types import MACDResult


def compute_macd(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """
    Calculate MACD, signal and histogram series.

    Formula:
        MACD[i] = EMA(fast)[i + (slow - fast)] - EMA(slow)[i]
        Signal = EMA(MACD, signal_period)
        Histogram[j] = MACD[j + signal_period - 1] - Signal[j]

    The fast EMA starts (slow - fast) samples earlier than the slow EMA, so
    the offset aligns both on the same closing price.

    Args:
        values: Chronological closing prices
        fast_period: Fast EMA period (default: 12)
        slow_period: Slow EMA period (default: 26)
        signal_period: Signal line EMA period (default: 9)

    Returns:
        MACDResult. All series are empty with fewer than slow_period samples;
        signal and histogram are empty until the MACD series reaches
        signal_period values.

    Raises:
        ValueError: If any period < 1 or fast_period >= slow_period
    """
    if fast_period < 1 or slow_period < 1 or signal_period < 1:
        raise ValueError("All periods must be >= 1")

    if fast_period >= slow_period:
        raise ValueError(f"fast_period ({fast_period}) must be < slow_period ({slow_period})")

    if len(values) < slow_period:
        return MACDResult(macd=[], signal=[], histogram=[])

    fast_ema = compute_ema(values, fast_period)
    slow_ema = compute_ema(values, slow_period)
    offset = slow_period - fast_period

    macd = [fast_ema[i + offset] - slow_ema[i] for i in range(len(slow_ema))]
    signal = compute_ema(macd, signal_period)
    histogram = [macd[j + signal_period - 1] - signal[j] for j in range(len(signal))]

    return MACDResult(macd=macd, signal=signal, histogram=histogram)
