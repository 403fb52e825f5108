"""
Fear & Greed composite index.

Usage:
    from cryptohub.analysis.sentiment import calculate_fear_greed_index

    result = calculate_fear_greed_index(price_change_24h=4.2, volume_change=12.0)
    print(f"{result.index} ({result.sentiment})")
"""

from __future__ import annotations

import math

from cryptohub.types import FearGreedResult

# (upper bound inclusive, label)
SENTIMENT_BANDS = (
    (20, "Extreme Fear"),
    (40, "Fear"),
    (60, "Neutral"),
    (80, "Greed"),
    (100, "Extreme Greed"),
)

WEIGHTS = {
    "price": 0.25,
    "volume": 0.20,
    "market_cap": 0.20,
    "volatility": 0.15,
    "social": 0.20,
}


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return min(high, max(low, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def sentiment_label(index: float) -> str:
    """Band label for a 0-100 index value."""
    for upper, label in SENTIMENT_BANDS:
        if index <= upper:
            return label
    return SENTIMENT_BANDS[-1][1]


def calculate_fear_greed_index(
    price_change_24h: float = 0.0,
    volume_change: float = 0.0,
    market_cap_change: float = 0.0,
    volatility: float = 0.0,
    social_sentiment: float = 50.0,
) -> FearGreedResult:
    """
    Weighted composite of five market sub-scores.

    Formula:
        price      = clamp(50 + price_change_24h * 2)    weight 0.25
        volume     = clamp(50 + volume_change * 1.5)     weight 0.20
        market_cap = clamp(50 + market_cap_change * 2)   weight 0.20
        volatility = clamp(100 - volatility * 10)        weight 0.15
        social     = clamp(social_sentiment)             weight 0.20

    Every sub-score is clamped to [0, 100]; the index is the weighted sum
    rounded half-up.

    Args:
        price_change_24h: 24h price change in percent
        volume_change: 24h volume change in percent
        market_cap_change: 24h market cap change in percent
        volatility: Volatility in percent (higher means more fear)
        social_sentiment: External sentiment score, 0-100 (default: 50)

    Returns:
        FearGreedResult with the index, its band label and the sub-scores
    """
    components = {
        "price": _clamp(50 + price_change_24h * 2),
        "volume": _clamp(50 + volume_change * 1.5),
        "market_cap": _clamp(50 + market_cap_change * 2),
        "volatility": _clamp(100 - volatility * 10),
        "social": _clamp(social_sentiment),
    }

    index = _round_half_up(sum(components[name] * weight for name, weight in WEIGHTS.items()))

    return FearGreedResult(index=index, sentiment=sentiment_label(index), components=components)
