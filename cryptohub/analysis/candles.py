"""
Candle and time-series transforms.

Usage:
    from datetime import timedelta
    from cryptohub.analysis.candles import aggregate_candles, fill_data_gaps

    hourly = aggregate_candles(minute_candles, target_minutes=60)
    points = fill_data_gaps(points, timedelta(minutes=5))
"""

from __future__ import annotations

import logging
import math
from datetime import timedelta
from typing import Sequence, TypeVar

import pandas as pd

from cryptohub.types import Candle, PricePoint

logger = logging.getLogger(__name__)

T = TypeVar("T")

_OHLCV_AGG = {
    "open": "first",
    "high": "max",
    "low": "min",
    "close": "last",
    "volume": "sum",
}


def aggregate_candles(candles: Sequence[Candle], target_minutes: int) -> list[Candle]:
    """
    Resample candles into a coarser timeframe.

    Buckets are aligned to the Unix epoch (a 60 minute bucket starts on the
    hour), open/close come from the first/last candle in the bucket, high/low
    are the extremes and volume is summed. Buckets with no candles are not
    emitted.

    Args:
        candles: Chronological candles
        target_minutes: Bucket width in minutes

    Returns:
        Aggregated candles, each stamped with its bucket start

    Raises:
        ValueError: If target_minutes < 1
    """
    if target_minutes < 1:
        raise ValueError(f"target_minutes must be >= 1, got {target_minutes}")

    if not candles:
        return []

    df = pd.DataFrame(
        {
            "open": [c.open for c in candles],
            "high": [c.high for c in candles],
            "low": [c.low for c in candles],
            "close": [c.close for c in candles],
            "volume": [c.volume for c in candles],
        },
        index=pd.DatetimeIndex([c.open_time for c in candles]),
    ).sort_index()

    resampled = (
        df.resample(f"{target_minutes}min", origin="epoch", label="left", closed="left")
        .agg(_OHLCV_AGG)
        .dropna(subset=["open"])
    )

    logger.debug(f"Aggregated {len(candles)} candles into {len(resampled)} x {target_minutes}m")

    return [
        Candle(
            open_time=ts.to_pydatetime(),
            open=float(row["open"]),
            high=float(row["high"]),
            low=float(row["low"]),
            close=float(row["close"]),
            volume=float(row["volume"]),
        )
        for ts, row in resampled.iterrows()
    ]


def fill_data_gaps(points: Sequence[PricePoint], interval: timedelta) -> list[PricePoint]:
    """
    Insert linearly interpolated points where samples are missing.

    A gap longer than 1.5 intervals between consecutive points is filled with
    `floor(gap / interval) - 1` points, spaced one interval apart and flagged
    `interpolated=True`.

    Raises:
        ValueError: If interval is not positive
    """
    if interval <= timedelta(0):
        raise ValueError(f"interval must be positive, got {interval}")

    if len(points) < 2:
        return list(points)

    filled: list[PricePoint] = []

    for current, following in zip(points, points[1:]):
        filled.append(current)
        gap = following.timestamp - current.timestamp

        if gap > interval * 1.5:
            missing = gap // interval - 1
            for j in range(1, missing + 1):
                ratio = j / (missing + 1)
                filled.append(
                    PricePoint(
                        timestamp=current.timestamp + interval * j,
                        price=current.price + (following.price - current.price) * ratio,
                        interpolated=True,
                    )
                )

    filled.append(points[-1])
    return filled


def sample_series(items: Sequence[T], max_points: int = 500) -> list[T]:
    """
    Downsample to roughly max_points by taking every n-th item.

    The last item is always kept.
    """
    if max_points < 1:
        raise ValueError(f"max_points must be >= 1, got {max_points}")

    if len(items) <= max_points:
        return list(items)

    step = math.ceil(len(items) / max_points)
    sampled = list(items[::step])

    if (len(items) - 1) % step != 0:
        sampled.append(items[-1])

    return sampled


def close_prices(candles: Sequence[Candle]) -> list[float]:
    """Closing prices of a candle series."""
    return [float(c.close) for c in candles]

