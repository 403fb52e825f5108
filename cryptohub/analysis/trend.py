"""
Trend classification from moving averages and RSI.

Usage:
    from cryptohub.analysis.trend import analyze_trend

    analysis = analyze_trend(closes)
    if analysis.trend == "bullish" and analysis.strength > 70:
        ...
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from cryptohub.indicators.moving_average import compute_sma
from cryptohub.indicators.rsi import compute_rsi
from cryptohub.types import TrendAnalysis

logger = logging.getLogger(__name__)

MIN_PRICES = 20
SHORT_PERIOD = 20
LONG_PERIOD = 50


def analyze_trend(prices: Sequence[float]) -> TrendAnalysis:
    """
    Classify the trend of a price series.

    Classification:
        bullish: price > SMA20 > SMA50
        bearish: price < SMA20 < SMA50
        neutral: anything else (strength 50)

    Strength for a directional trend is 50 plus the price's percentage
    deviation from SMA20 plus the RSI's deviation from 50 in the same
    direction, rounded and clamped to [0, 100]. SMA50 falls back to
    SMA(len(prices)) when fewer than 50 prices are given.

    Args:
        prices: Chronological closing prices

    Returns:
        TrendAnalysis; trend "unknown" with strength 0 if fewer than 20 prices
    """
    if len(prices) < MIN_PRICES:
        return TrendAnalysis(trend="unknown", strength=0)

    current = float(prices[-1])
    sma20 = compute_sma(prices, SHORT_PERIOD)[-1]
    sma50 = compute_sma(prices, min(LONG_PERIOD, len(prices)))[-1]
    rsi = compute_rsi(prices)[-1]  # 20 prices always cover the default period

    if current > sma20 > sma50:
        trend = "bullish"
        raw_strength = 50 + (current / sma20 - 1) * 100 + (rsi - 50)
    elif current < sma20 < sma50:
        trend = "bearish"
        raw_strength = 50 + (1 - current / sma20) * 100 + (50 - rsi)
    else:
        trend = "neutral"
        raw_strength = 50.0

    strength = int(math.floor(min(100.0, max(0.0, raw_strength)) + 0.5))

    logger.debug(f"Trend {trend} (strength {strength}) over {len(prices)} prices")

    return TrendAnalysis(
        trend=trend,
        strength=strength,
        sma20=sma20,
        sma50=sma50,
        rsi=rsi,
        price_above_sma20=current > sma20,
        price_above_sma50=current > sma50,
        golden_cross=sma20 > sma50,
        death_cross=sma20 < sma50,
    )
