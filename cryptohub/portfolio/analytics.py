"""
Portfolio analytics.

Stateless helpers over holdings and portfolio summaries.

Usage:
    summary = ledger.get_summary(prices)
    score = calculate_diversification_score([h.allocation for h in summary.holdings])
    moves = suggest_rebalancing(summary, {"btc": 50.0, "eth": 30.0, "sol": 20.0})
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence

import numpy as np

from cryptohub.analysis.statistics import calculate_percentage_change
from cryptohub.types import (
    DiversificationScore,
    PortfolioSummary,
    PositionSize,
    ProfitLoss,
    RebalanceSuggestion,
)

# (minimum score inclusive, rating, recommendation)
DIVERSIFICATION_BANDS = (
    (80, "Excellent", "Well diversified portfolio"),
    (60, "Good", "Consider adding a few more assets"),
    (40, "Moderate", "Consider rebalancing to reduce concentration"),
    (20, "Poor", "Portfolio is too concentrated"),
    (0, "Very Poor", "Significant concentration risk"),
)

REBALANCE_THRESHOLD_PERCENT = 1.0
DEFAULT_MAINTENANCE_MARGIN_PERCENT = 0.5


def calculate_allocation(values: Mapping[str, float]) -> dict[str, float]:
    """Percentage of the total for each value; all 0 when the total is 0."""
    total = sum(float(v) for v in values.values())
    return {key: (float(v) / total * 100 if total > 0 else 0.0) for key, v in values.items()}


def calculate_profit_loss(buy_price: float, current_price: float, amount: float) -> ProfitLoss:
    invested = buy_price * amount
    current_value = current_price * amount
    return ProfitLoss(
        invested=invested,
        current_value=current_value,
        profit_loss=current_value - invested,
        percentage_change=calculate_percentage_change(invested, current_value),
    )


def calculate_average_price(purchases: Sequence[tuple[float, float]]) -> float:
    """Quantity-weighted average of (price, amount) purchases; 0 if none."""
    total_amount = sum(amount for _, amount in purchases)
    if total_amount <= 0:
        return 0.0
    return sum(price * amount for price, amount in purchases) / total_amount


def calculate_break_even(average_price: float, fees: float, amount: float) -> float:
    """Price at which selling `amount` recovers cost plus fees."""
    if not amount:
        return average_price
    return average_price + fees / amount


def calculate_position_size(
    account_balance: float,
    risk_percentage: float,
    entry_price: float,
    stop_loss: float,
) -> PositionSize:
    """
    Size a position so that hitting the stop loses `risk_percentage` of the account.

    Args:
        account_balance: Total account balance
        risk_percentage: Share of the balance to risk (e.g., 2 for 2%)
        entry_price: Planned entry price
        stop_loss: Stop-loss price, above entry for a short

    Raises:
        ValueError: If stop_loss equals entry_price
    """
    price_risk = abs(entry_price - stop_loss)
    if price_risk == 0:
        raise ValueError(f"stop_loss must differ from entry_price, got {stop_loss}")

    risk_amount = account_balance * risk_percentage / 100
    position_size = risk_amount / price_risk
    return PositionSize(
        risk_amount=risk_amount,
        position_size=position_size,
        position_value=position_size * entry_price,
        max_loss=risk_amount,
        risk_reward_ratio=entry_price / price_risk,
    )


def calculate_liquidation_price(
    entry_price: float,
    leverage: float,
    *,
    is_long: bool = True,
    maintenance_margin: float = DEFAULT_MAINTENANCE_MARGIN_PERCENT,
) -> float:
    """Price at which a leveraged position is liquidated.

    The usable margin is `100 / leverage - maintenance_margin` percent of the
    entry price, below entry for a long and above it for a short.
    """
    if leverage <= 0:
        raise ValueError(f"leverage must be > 0, got {leverage}")

    margin_fraction = (100 / leverage - maintenance_margin) / 100
    if is_long:
        return entry_price * (1 - margin_fraction)
    return entry_price * (1 + margin_fraction)


def calculate_diversification_score(allocations: Sequence[float]) -> DiversificationScore:
    """
    Diversification score from the Herfindahl-Hirschman Index.

    Formula:
        HHI = sum((allocation / 100) ** 2)
        score = (1 - (HHI - 1/n) / (1 - 1/n)) * 100

    An equal split scores 100 and full concentration scores 0. A single
    asset scores 0.

    Args:
        allocations: Allocation percentages (0-100), one per holding

    Returns:
        DiversificationScore; rating "None" when there are no holdings
    """
    n = len(allocations)
    if n == 0:
        return DiversificationScore(
            score=0,
            rating="None",
            recommendation="Add some holdings",
            hhi=0.0,
            number_of_assets=0,
        )

    fractions = np.asarray(allocations, dtype=float) / 100
    hhi = float(np.sum(fractions**2))

    if n == 1:
        score = 0
    else:
        min_hhi = 1 / n
        raw = (1 - (hhi - min_hhi) / (1 - min_hhi)) * 100
        score = int(math.floor(min(100.0, max(0.0, raw)) + 0.5))

    for minimum, rating, recommendation in DIVERSIFICATION_BANDS:
        if score >= minimum:
            break

    return DiversificationScore(
        score=score,
        rating=rating,
        recommendation=recommendation,
        hhi=hhi,
        number_of_assets=n,
    )


def suggest_rebalancing(
    summary: PortfolioSummary,
    target_allocations: Mapping[str, float],
    *,
    threshold: float = REBALANCE_THRESHOLD_PERCENT,
) -> list[RebalanceSuggestion]:
    """
    Trades that move each holding toward its target allocation.

    Holdings are matched to targets by symbol (case-insensitive); a holding
    with no target has a target of 0. Only differences larger than
    `threshold` percentage points are reported, largest first.
    """
    targets = {symbol.lower(): float(target) for symbol, target in target_allocations.items()}
    total_value = float(summary.total_value)
    suggestions = []

    for row in summary.holdings:
        symbol = row.holding.symbol
        target = targets.get(symbol.lower(), 0.0)
        difference = target - row.allocation

        if abs(difference) <= threshold:
            continue

        value_change = abs(total_value * difference / 100)
        price = float(row.current_price)

        suggestions.append(
            RebalanceSuggestion(
                symbol=symbol,
                action="BUY" if difference > 0 else "SELL",
                current_allocation=row.allocation,
                target_allocation=target,
                difference=difference,
                value_change=value_change,
                amount_change=value_change / price if price else 0.0,
            )
        )

    return sorted(suggestions, key=lambda s: abs(s.difference), reverse=True)
