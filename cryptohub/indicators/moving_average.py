"""
Moving average indicator module (SMA, EMA).

The other indicators in this package are built on these two series.

Usage:
    from cryptohub.indicators.moving_average import compute_ema, compute_sma

    sma = compute_sma([1, 2, 3, 4, 5], period=3)  # [2.0, 3.0, 4.0]
    ema = compute_ema(closes, period=12)
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view


def _validate_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


def compute_sma(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate the Simple Moving Average series.

    Formula:
        SMA[i] = mean(values[i : i + period])

    Args:
        values: Chronological samples
        period: Window size

    Returns:
        List of length len(values) - period + 1, or [] if there are fewer
        than period samples

    Raises:
        ValueError: If period < 1
    """
    _validate_period(period)

    if len(values) < period:
        return []

    windows = sliding_window_view(np.asarray(values, dtype=float), period)
    return windows.mean(axis=1).tolist()


def compute_ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate the Exponential Moving Average series.

    Formula:
        k = 2 / (period + 1)
        EMA[0] = SMA of the first `period` samples
        EMA[i] = (x - EMA[i-1]) * k + EMA[i-1]

    Args:
        values: Chronological samples
        period: Smoothing period

    Returns:
        List of length len(values) - period + 1, or [] if there are fewer
        than period samples

    Raises:
        ValueError: If period < 1
    """
    _validate_period(period)

    if len(values) < period:
        return []

    multiplier = 2.0 / (period + 1)
    ema = [sum(float(v) for v in values[:period]) / period]

    for value in values[period:]:
        ema.append((float(value) - ema[-1]) * multiplier + ema[-1])

    return ema
