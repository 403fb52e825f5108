from __future__ import annotations

from .candles import aggregate_candles, close_prices, fill_data_gaps, sample_series
from .sentiment import calculate_fear_greed_index, sentiment_label
from .statistics import calculate_percentage_change, calculate_statistics, normalize_to_percentage
from .trend import analyze_trend

__all__ = [
    "aggregate_candles",
    "analyze_trend",
    "calculate_fear_greed_index",
    "calculate_percentage_change",
    "calculate_statistics",
    "close_prices",
    "fill_data_gaps",
    "normalize_to_percentage",
    "sample_series",
    "sentiment_label",
]
