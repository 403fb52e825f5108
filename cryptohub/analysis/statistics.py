"""
Descriptive statistics over price series.

Usage:
    from cryptohub.analysis.statistics import calculate_percentage_change, calculate_statistics

    change = calculate_percentage_change(100.0, 110.0)  # 10.0
    stats = calculate_statistics(closes)
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from cryptohub.types import PriceStatistics


def calculate_percentage_change(old_value: Optional[float], new_value: float) -> float:
    """
    Percentage change from old_value to new_value.

    Returns 0.0 when old_value is missing or zero; callers that must tell
    "no change" from "no reference" check the reference themselves.
    """
    if not old_value:
        return 0.0
    return (float(new_value) - float(old_value)) / float(old_value) * 100


def calculate_statistics(values: Sequence[float]) -> PriceStatistics:
    """
    Min, max, mean, median and population standard deviation.

    An empty series yields all zeros.
    """
    if len(values) == 0:
        return PriceStatistics(min=0.0, max=0.0, mean=0.0, median=0.0, std_dev=0.0)

    arr = np.asarray(values, dtype=float)
    return PriceStatistics(
        min=float(arr.min()),
        max=float(arr.max()),
        mean=float(arr.mean()),
        median=float(np.median(arr)),
        std_dev=float(arr.std()),
    )


def normalize_to_percentage(values: Sequence[float]) -> list[float]:
    """
    Rebase a series to percentage change from its first value.

    Series with a missing or zero first value are returned unchanged, so
    several series can be compared on one axis.
    """
    if len(values) == 0 or not values[0]:
        return [float(v) for v in values]

    base = float(values[0])
    return [(float(v) - base) / base * 100 for v in values]
