"""
RSI (Relative Strength Index) indicator module.

Usage:
    from cryptohub.indicators.rsi import compute_rsi

    rsi_series = compute_rsi(closes, period=14)
    latest = rsi_series[-1] if rsi_series else None
"""

from __future__ import annotations

from typing import Sequence


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def compute_rsi(values: Sequence[float], period: int = 14) -> list[float]:
    """
    Calculate the RSI series from closing prices.

    RSI is a momentum oscillator that measures the speed and magnitude of
    price changes. It ranges from 0 to 100.

    Formula:
        RSI = 100 - (100 / (1 + RS))
        where RS = Average Gain / Average Loss (Wilder smoothing)
        RSI = 100 when Average Loss is 0

    Args:
        values: Chronological closing prices (needs at least period+1)
        period: Lookback period (default: 14)

    Returns:
        List of len(values) - period RSI values, or [] if insufficient data

    Raises:
        ValueError: If period < 1
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")

    if len(values) < period + 1:
        return []

    gains = []
    losses = []

    for i in range(1, len(values)):
        change = float(values[i]) - float(values[i - 1])
        if change > 0:
            gains.append(change)
            losses.append(0.0)
        else:
            gains.append(0.0)
            losses.append(-change)

    # Seed with simple averages over the first period
    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    rsi = [_rsi_from_averages(avg_gain, avg_loss)]

    # Wilder's smoothing for the rest
    for i in range(period, len(gains)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        rsi.append(_rsi_from_averages(avg_gain, avg_loss))

    return rsi
