from __future__ import annotations

from .analytics import (
    calculate_allocation,
    calculate_average_price,
    calculate_break_even,
    calculate_diversification_score,
    calculate_liquidation_price,
    calculate_position_size,
    calculate_profit_loss,
    suggest_rebalancing,
)
from .ledger import PortfolioLedger, apply_transaction, replay_transactions

__all__ = [
    "PortfolioLedger",
    "apply_transaction",
    "calculate_allocation",
    "calculate_average_price",
    "calculate_break_even",
    "calculate_diversification_score",
    "calculate_liquidation_price",
    "calculate_position_size",
    "calculate_profit_loss",
    "replay_transactions",
    "suggest_rebalancing",
]
