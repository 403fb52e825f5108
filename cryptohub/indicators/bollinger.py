"""
Bollinger Bands indicator module.

Usage:
    from cryptohub.indicators.bollinger import compute_bollinger_bands

    bands = compute_bollinger_bands(closes, period=20, std_dev=2)
    bands.upper[-1], bands.middle[-1], bands.lower[-1]
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from cryptohub.types import BollingerBands


def compute_bollinger_bands(
    values: Sequence[float],
    period: int = 20,
    std_dev: float = 2.0,
) -> BollingerBands:
    """
    Calculate Bollinger Bands series.

    Formula:
        Middle Band = SMA(close, period)
        Upper Band = Middle Band + (std_dev * population standard deviation)
        Lower Band = Middle Band - (std_dev * population standard deviation)

    Args:
        values: Chronological closing prices
        period: SMA period (default: 20)
        std_dev: Number of standard deviations (default: 2.0)

    Returns:
        BollingerBands with len(values) - period + 1 points per band, or empty
        bands if there are fewer than period samples

    Raises:
        ValueError: If period < 1 or std_dev <= 0
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")

    if std_dev <= 0:
        raise ValueError(f"std_dev must be > 0, got {std_dev}")

    if len(values) < period:
        return BollingerBands(upper=[], middle=[], lower=[])

    windows = sliding_window_view(np.asarray(values, dtype=float), period)
    middle = windows.mean(axis=1)
    half_width = std_dev * windows.std(axis=1)  # ddof=0: population

    return BollingerBands(
        upper=(middle + half_width).tolist(),
        middle=middle.tolist(),
        lower=(middle - half_width).tolist(),
    )
