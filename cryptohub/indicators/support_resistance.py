"""
Support and resistance level detection.

A sample is a support (resistance) candidate when no sample within `lookback`
points on either side is lower (higher). Candidates are then clustered by
relative price proximity into levels whose strength is the number of
candidates they absorbed.

Usage:
    from cryptohub.indicators.support_resistance import find_support_resistance

    levels = find_support_resistance(closes, lookback=20)
    for level in levels.support:
        print(level.price, level.strength)
"""

from __future__ import annotations

from typing import Sequence

from cryptohub.types import PriceLevel, SupportResistance


def cluster_levels(prices: Sequence[float], threshold: float = 0.02) -> list[PriceLevel]:
    """
    Group candidate prices into levels.

    Prices are sorted ascending; a price joins the current cluster while its
    distance from the cluster's first (lowest) price, relative to that price,
    is below `threshold`. Each cluster becomes a level at its mean price.
    """
    if not prices:
        return []

    ordered = sorted(float(p) for p in prices)
    levels = []
    cluster = [ordered[0]]

    for price in ordered[1:]:
        anchor = cluster[0]
        # A zero anchor would divide by zero; only identical prices join it
        distance = (price - anchor) / anchor if anchor else (0.0 if price == anchor else float("inf"))

        if distance < threshold:
            cluster.append(price)
        else:
            levels.append(PriceLevel(price=sum(cluster) / len(cluster), strength=len(cluster)))
            cluster = [price]

    levels.append(PriceLevel(price=sum(cluster) / len(cluster), strength=len(cluster)))
    return levels


def find_support_resistance(
    values: Sequence[float],
    lookback: int = 20,
    threshold: float = 0.02,
) -> SupportResistance:
    """
    Identify clustered support and resistance levels.

    Args:
        values: Chronological prices (needs at least 2 * lookback samples)
        lookback: Points compared on each side of a candidate (default: 20)
        threshold: Relative distance for clustering (default: 0.02 = 2%)

    Returns:
        SupportResistance with levels sorted ascending by price; both lists
        are empty if there is insufficient data

    Raises:
        ValueError: If lookback < 1 or threshold < 0
    """
    if lookback < 1:
        raise ValueError(f"lookback must be >= 1, got {lookback}")

    if threshold < 0:
        raise ValueError(f"threshold must be >= 0, got {threshold}")

    if len(values) < lookback * 2:
        return SupportResistance(support=[], resistance=[])

    prices = [float(v) for v in values]
    support = []
    resistance = []

    for i in range(lookback, len(prices) - lookback):
        current = prices[i]
        left = prices[i - lookback : i]
        right = prices[i + 1 : i + lookback + 1]

        if min(left) >= current and min(right) >= current:
            support.append(current)

        if max(left) <= current and max(right) <= current:
            resistance.append(current)

    return SupportResistance(
        support=cluster_levels(support, threshold),
        resistance=cluster_levels(resistance, threshold),
    )
