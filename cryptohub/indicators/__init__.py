from __future__ import annotations

from .atr import compute_atr, compute_true_range
from .bollinger import compute_bollinger_bands
from .macd import compute_macd
from .moving_average import compute_ema, compute_sma
from .rsi import compute_rsi
from .support_resistance import cluster_levels, find_support_resistance

__all__ = [
    "cluster_levels",
    "compute_atr",
    "compute_bollinger_bands",
    "compute_ema",
    "compute_macd",
    "compute_rsi",
    "compute_sma",
    "compute_true_range",
    "find_support_resistance",
]
