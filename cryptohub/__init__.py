"""cryptohub core.

Analytics and state persistence for a cryptocurrency tracking application:

- storage: versioned, TTL-aware key/value store, backends and fetch cache
- userdata: watchlist, preferences and recent searches
- alerts: alert persistence and evaluation
- portfolio: transaction ledger, holdings projection and analytics
- indicators: SMA, EMA, RSI, MACD, Bollinger Bands, ATR, support/resistance
- analysis: fear & greed, trend classification, statistics, candle transforms
"""

__version__ = "0.1.0"
