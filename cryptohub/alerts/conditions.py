"""
Alert condition evaluation.

Each AlertCondition has one handler in CONDITION_HANDLERS. A handler takes the
alert and the coin's MarketSnapshot and returns (triggered, message). Inputs a
handler needs but the snapshot lacks (no RSI, no reference price) evaluate to
not-triggered with a message naming what is missing.

Usage:
    result = check_alert_condition(alert, MarketSnapshot(price=50_001.0), now=clock())
    if result.triggered:
        print(result.message)
"""

from __future__ import annotations

from typing import Callable, Mapping

from cryptohub.analysis.statistics import calculate_percentage_change
from cryptohub.types import Alert, AlertCheckResult, AlertCondition, MarketSnapshot

DEFAULT_RSI_OVERSOLD = 30.0
DEFAULT_RSI_OVERBOUGHT = 70.0
DEFAULT_VOLUME_SPIKE_PERCENT = 100.0

ConditionHandler = Callable[[Alert, MarketSnapshot], "tuple[bool, str]"]


def _label(alert: Alert) -> str:
    return alert.symbol.upper() if alert.symbol else alert.coin_id


def _format_price(value: float) -> str:
    if value < 1:
        return f"${value:,.8f}".rstrip("0").rstrip(".")
    return f"${value:,.2f}"


def _format_percentage(value: float) -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}%"


# ========== Handlers ==========


def _price_above(alert: Alert, snapshot: MarketSnapshot) -> tuple[bool, str]:
    if snapshot.price is None:
        return False, f"{_label(alert)} has no current price"
    if alert.target_value is None:
        return False, f"{_label(alert)} alert has no target price"
    target = alert.target_value
    return snapshot.price >= target, f"{_label(alert)} price is now above {_format_price(target)}"


def _price_below(alert: Alert, snapshot: MarketSnapshot) -> tuple[bool, str]:
    if snapshot.price is None:
        return False, f"{_label(alert)} has no current price"
    if alert.target_value is None:
        return False, f"{_label(alert)} alert has no target price"
    target = alert.target_value
    return snapshot.price <= target, f"{_label(alert)} price is now below {_format_price(target)}"


def _percentage_change(alert: Alert, snapshot: MarketSnapshot) -> tuple[bool, str]:
    if snapshot.price is None:
        return False, f"{_label(alert)} has no current price"
    if not snapshot.price_24h_ago:
        return False, f"{_label(alert)} has no reference price for percentage change"
    if alert.target_value is None:
        return False, f"{_label(alert)} alert has no target percentage"

    change = calculate_percentage_change(snapshot.price_24h_ago, snapshot.price)
    return abs(change) >= alert.target_value, f"{_label(alert)} changed {_format_percentage(change)} in 24h"


def _rsi_oversold(alert: Alert, snapshot: MarketSnapshot) -> tuple[bool, str]:
    if snapshot.rsi is None:
        return False, f"{_label(alert)} has no RSI value"
    threshold = alert.target_value or DEFAULT_RSI_OVERSOLD
    return snapshot.rsi <= threshold, f"{_label(alert)} RSI is oversold at {snapshot.rsi:.2f}"


def _rsi_overbought(alert: Alert, snapshot: MarketSnapshot) -> tuple[bool, str]:
    if snapshot.rsi is None:
        return False, f"{_label(alert)} has no RSI value"
    threshold = alert.target_value or DEFAULT_RSI_OVERBOUGHT
    return snapshot.rsi >= threshold, f"{_label(alert)} RSI is overbought at {snapshot.rsi:.2f}"


def _volume_spike(alert: Alert, snapshot: MarketSnapshot) -> tuple[bool, str]:
    if snapshot.volume is None:
        return False, f"{_label(alert)} has no current volume"
    if not snapshot.volume_24h_ago:
        return False, f"{_label(alert)} has no reference volume for volume spike"

    change = calculate_percentage_change(snapshot.volume_24h_ago, snapshot.volume)
    threshold = alert.target_value or DEFAULT_VOLUME_SPIKE_PERCENT
    return change >= threshold, f"{_label(alert)} volume spiked {_format_percentage(change)}"


CONDITION_HANDLERS: Mapping[AlertCondition, ConditionHandler] = {
    AlertCondition.PRICE_ABOVE: _price_above,
    AlertCondition.PRICE_BELOW: _price_below,
    AlertCondition.PERCENTAGE_CHANGE: _percentage_change,
    AlertCondition.RSI_OVERSOLD: _rsi_oversold,
    AlertCondition.RSI_OVERBOUGHT: _rsi_overbought,
    AlertCondition.VOLUME_SPIKE: _volume_spike,
}


def check_alert_condition(alert: Alert, snapshot: MarketSnapshot, now: int) -> AlertCheckResult:
    """
    Evaluate one alert against a market snapshot.

    Unknown condition kinds never raise; they produce a not-triggered result
    with an explanatory message.
    """
    handler = CONDITION_HANDLERS.get(alert.condition) if isinstance(alert.condition, AlertCondition) else None

    if handler is None:
        triggered, message = False, f"Unknown alert condition: {alert.condition!r}"
    else:
        triggered, message = handler(alert, snapshot)

    return AlertCheckResult(
        alert=alert,
        triggered=triggered,
        message=message,
        timestamp=now,
        data={"price": snapshot.price, "rsi": snapshot.rsi, "volume": snapshot.volume},
    )
