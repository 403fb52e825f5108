"""Tests for the technical indicators."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from cryptohub.indicators import (
    cluster_levels,
    compute_atr,
    compute_bollinger_bands,
    compute_ema,
    compute_macd,
    compute_rsi,
    compute_sma,
    compute_true_range,
    find_support_resistance,
)
from cryptohub.types import Candle, PriceLevel


def _make_candle(close: float, high: float | None = None, low: float | None = None, idx: int = 0) -> Candle:
    """Helper to create an hourly candle with OHLC values."""
    base_time = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
    return Candle(
        open_time=base_time + timedelta(hours=idx),
        open=close,
        high=close if high is None else high,
        low=close if low is None else low,
        close=close,
        volume=1000.0,
    )


# ========== compute_sma / compute_ema tests ==========


def test_sma_values() -> None:
    assert compute_sma([1, 2, 3, 4, 5], period=3) == [2.0, 3.0, 4.0]


def test_sma_insufficient_data() -> None:
    assert compute_sma([1, 2], period=3) == []


@pytest.mark.parametrize("fn", [compute_sma, compute_ema])
def test_moving_average_rejects_invalid_period(fn) -> None:
    with pytest.raises(ValueError, match="period must be >= 1"):
        fn([1, 2, 3], 0)


def test_ema_seeded_with_sma() -> None:
    """EMA starts at the SMA of the first period samples."""
    assert compute_ema([1, 2, 3, 4, 5], period=3) == pytest.approx([2.0, 3.0, 4.0])


def test_ema_weights_recent_values() -> None:
    # k = 0.5; seed 2.0, then (10 - 2) * 0.5 + 2
    assert compute_ema([1, 2, 3, 10], period=3) == pytest.approx([2.0, 6.0])


def test_ema_period_one_is_identity() -> None:
    assert compute_ema([3, 1, 4], period=1) == pytest.approx([3.0, 1.0, 4.0])


# ========== compute_rsi tests ==========


def test_rsi_all_gains_is_100() -> None:
    rsi = compute_rsi([float(i) for i in range(1, 21)], period=14)

    assert len(rsi) == 20 - 14
    assert all(value == 100.0 for value in rsi)


def test_rsi_all_losses_is_0() -> None:
    rsi = compute_rsi([float(i) for i in range(20, 0, -1)], period=14)
    assert all(value == pytest.approx(0.0) for value in rsi)


def test_rsi_flat_series_is_100() -> None:
    """No losses at all means average loss 0, which is reported as 100."""
    assert compute_rsi([5.0] * 16, period=14) == [100.0, 100.0]


def test_rsi_equal_gains_and_losses_is_50() -> None:
    values = [10.0, 11.0, 10.0, 11.0, 10.0]
    assert compute_rsi(values, period=4) == [pytest.approx(50.0)]


def test_rsi_stays_in_range() -> None:
    values = [100 + 10 * math.sin(i / 3) for i in range(60)]
    assert all(0.0 <= value <= 100.0 for value in compute_rsi(values))


def test_rsi_insufficient_data() -> None:
    """RSI with period=14 needs at least 15 closes."""
    assert compute_rsi([1.0] * 14, period=14) == []


def test_rsi_rejects_invalid_period() -> None:
    with pytest.raises(ValueError, match="period must be >= 1"):
        compute_rsi([1.0, 2.0], period=0)


# ========== compute_macd tests ==========


def test_macd_series_lengths() -> None:
    values = [100 + i + (i % 5) for i in range(50)]

    result = compute_macd(values)

    assert len(result.macd) == 50 - 26 + 1
    assert len(result.signal) == len(result.macd) - 9 + 1
    assert len(result.histogram) == len(result.signal)


def test_macd_histogram_is_macd_minus_signal() -> None:
    values = [100 + 3 * math.sin(i / 4) + i * 0.2 for i in range(60)]

    result = compute_macd(values)

    for j, hist in enumerate(result.histogram):
        assert hist == pytest.approx(result.macd[j + 8] - result.signal[j])


def test_macd_aligns_fast_and_slow_ema() -> None:
    values = [float(v) for v in range(1, 41)]

    result = compute_macd(values, fast_period=3, slow_period=5, signal_period=2)

    fast = compute_ema(values, 3)
    slow = compute_ema(values, 5)
    assert result.macd[0] == pytest.approx(fast[2] - slow[0])


def test_macd_constant_series_is_zero() -> None:
    result = compute_macd([50.0] * 40)
    assert result.macd == pytest.approx([0.0] * len(result.macd))
    assert result.histogram == pytest.approx([0.0] * len(result.histogram))


def test_macd_insufficient_data() -> None:
    result = compute_macd([1.0] * 25)
    assert (result.macd, result.signal, result.histogram) == ([], [], [])


def test_macd_rejects_fast_not_below_slow() -> None:
    with pytest.raises(ValueError, match="must be < slow_period"):
        compute_macd([1.0] * 50, fast_period=26, slow_period=26)


def test_macd_rejects_invalid_period() -> None:
    with pytest.raises(ValueError, match="All periods must be >= 1"):
        compute_macd([1.0] * 50, signal_period=0)


# ========== compute_bollinger_bands tests ==========


def test_bollinger_population_std() -> None:
    bands = compute_bollinger_bands([1, 2, 3], period=3, std_dev=2)

    width = 2 * math.sqrt(2 / 3)
    assert bands.middle == pytest.approx([2.0])
    assert bands.upper == pytest.approx([2.0 + width])
    assert bands.lower == pytest.approx([2.0 - width])


def test_bollinger_constant_series_collapses() -> None:
    bands = compute_bollinger_bands([10.0] * 25)

    assert len(bands.middle) == 25 - 20 + 1
    assert bands.upper == bands.middle == bands.lower


def test_bollinger_upper_above_lower() -> None:
    values = [100 + 5 * math.sin(i) for i in range(40)]
    bands = compute_bollinger_bands(values)
    assert all(u >= m >= l for u, m, l in zip(bands.upper, bands.middle, bands.lower))


def test_bollinger_insufficient_data() -> None:
    bands = compute_bollinger_bands([1.0] * 5, period=20)
    assert bands.upper == bands.middle == bands.lower == []


@pytest.mark.parametrize("kwargs,match", [({"period": 0}, "period must be >= 1"), ({"std_dev": 0}, "std_dev must be > 0")])
def test_bollinger_rejects_invalid_args(kwargs, match) -> None:
    with pytest.raises(ValueError, match=match):
        compute_bollinger_bands([1.0] * 30, **kwargs)


# ========== compute_true_range / compute_atr tests ==========


def test_true_range_uses_previous_close() -> None:
    """A gap up makes |High - Previous Close| the true range."""
    candles = [_make_candle(100.0, idx=0), _make_candle(107.0, high=110.0, low=105.0, idx=1)]
    assert compute_true_range(candles) == [10.0]


def test_true_range_plain_range() -> None:
    candles = [_make_candle(100.0, idx=0), _make_candle(100.0, high=102.0, low=98.0, idx=1)]
    assert compute_true_range(candles) == [4.0]


def test_atr_constant_range() -> None:
    candles = [_make_candle(100.0, high=101.0, low=99.0, idx=i) for i in range(20)]

    atr = compute_atr(candles, period=14)

    assert atr == pytest.approx([2.0] * (20 - 14))


def test_atr_requires_period_plus_one_candles() -> None:
    """ATR with period=14 needs at least 15 candles."""
    candles = [_make_candle(100.0, idx=i) for i in range(14)]
    assert compute_atr(candles, period=14) == []
    assert len(compute_atr(candles + [_make_candle(100.0, idx=14)], period=14)) == 1


def test_atr_rejects_invalid_period() -> None:
    candles = [_make_candle(100.0, idx=i) for i in range(20)]
    with pytest.raises(ValueError, match="period must be >= 1"):
        compute_atr(candles, period=0)


# ========== support / resistance tests ==========


def test_cluster_levels() -> None:
    levels = cluster_levels([105, 100, 101, 99], threshold=0.02)

    assert levels == [
        PriceLevel(price=99.5, strength=2),
        PriceLevel(price=101.0, strength=1),
        PriceLevel(price=105.0, strength=1),
    ]


def test_cluster_levels_zero_price() -> None:
    assert cluster_levels([0.0, 1.0, 0.0]) == [PriceLevel(price=0.0, strength=2), PriceLevel(price=1.0, strength=1)]


def test_cluster_levels_empty() -> None:
    assert cluster_levels([]) == []


def test_support_from_valley() -> None:
    levels = find_support_resistance([9, 8, 7, 6, 5, 5, 6, 7, 8, 9], lookback=3)

    assert levels.support == [PriceLevel(price=5.0, strength=2)]
    assert levels.resistance == []


def test_resistance_from_peak() -> None:
    levels = find_support_resistance([1, 2, 3, 4, 10, 4, 3, 2, 1], lookback=3)

    assert levels.support == []
    assert levels.resistance == [PriceLevel(price=10.0, strength=1)]


def test_support_resistance_insufficient_data() -> None:
    levels = find_support_resistance([1.0] * 39, lookback=20)
    assert levels.support == [] and levels.resistance == []


@pytest.mark.parametrize("kwargs,match", [({"lookback": 0}, "lookback must be >= 1"), ({"threshold": -0.1}, "threshold must be >= 0")])
def test_support_resistance_rejects_invalid_args(kwargs, match) -> None:
    with pytest.raises(ValueError, match=match):
        find_support_resistance([1.0] * 50, **kwargs)
