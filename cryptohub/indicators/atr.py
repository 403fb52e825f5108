"""
ATR (Average True Range) indicator module.

Usage:
    from cryptohub.indicators.atr import compute_atr

    atr_series = compute_atr(candles, period=14)
"""

from __future__ import annotations

from typing import Sequence

from cryptohub.indicators.moving_average import compute_ema
from cryptohub.types import Candle


def compute_true_range(candles: Sequence[Candle]) -> list[float]:
    """
    True Range for every candle after the first.

    True Range = max(High - Low, |High - Previous Close|, |Low - Previous Close|)
    """
    true_ranges = []

    for i in range(1, len(candles)):
        current = candles[i]
        prev_close = float(candles[i - 1].close)
        high = float(current.high)
        low = float(current.low)

        true_ranges.append(
            max(
                high - low,
                abs(high - prev_close),
                abs(low - prev_close),
            )
        )

    return true_ranges


def compute_atr(candles: Sequence[Candle], period: int = 14) -> list[float]:
    """
    Calculate the ATR series.

    ATR is a volatility indicator: the exponential moving average of the
    True Range series.

    Args:
        candles: Sequence of OHLC candles (needs at least period+1)
        period: EMA period (default: 14)

    Returns:
        List of len(candles) - period ATR values, or [] if insufficient data

    Raises:
        ValueError: If period < 1
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")

    if len(candles) < period + 1:
        return []

    return compute_ema(compute_true_range(candles), period)
