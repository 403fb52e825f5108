from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Mapping, Optional, Union

TrendLabel = Literal["bullish", "bearish", "neutral", "unknown"]


class StorageKey(str, Enum):
    """Reserved logical key names."""

    # User preferences
    THEME = "theme"
    CURRENCY = "currency"
    LANGUAGE = "language"
    TIMEZONE = "timezone"

    # App state
    FAVORITES = "favorites"
    WATCHLIST = "watchlist"
    ALERTS = "alerts"
    PORTFOLIO = "portfolio"
    TRANSACTIONS = "transactions"

    # Cache
    PRICE_CACHE = "price_cache"
    MARKET_DATA_CACHE = "market_data_cache"
    COIN_LIST_CACHE = "coin_list_cache"

    # User data
    USER_SETTINGS = "user_settings"
    RECENT_SEARCHES = "recent_searches"
    CHART_PREFERENCES = "chart_preferences"
    NOTIFICATION_SETTINGS = "notification_settings"

    # Session
    LAST_VISITED = "last_visited"
    SESSION_DATA = "session_data"


class TransactionType(str, Enum):
    """Ledger fill direction."""

    BUY = "buy"
    SELL = "sell"


class AlertCondition(str, Enum):
    """Supported alert condition kinds."""

    PRICE_ABOVE = "price_above"
    PRICE_BELOW = "price_below"
    PERCENTAGE_CHANGE = "percentage_change"
    RSI_OVERSOLD = "rsi_oversold"
    RSI_OVERBOUGHT = "rsi_overbought"
    VOLUME_SPIKE = "volume_spike"


@dataclass(frozen=True)
class Candle:
    open_time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class PricePoint:
    timestamp: datetime
    price: float
    interpolated: bool = False


# ========== Portfolio ==========


@dataclass(frozen=True)
class Transaction:
    """A recorded buy/sell fill. Never mutated once written."""

    id: str
    coin_id: str
    symbol: str
    type: TransactionType
    price: Decimal
    amount: Decimal
    created_at: int  # epoch ms
    name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "coinId": self.coin_id,
            "symbol": self.symbol,
            "name": self.name,
            "type": self.type.value,
            "price": str(self.price),
            "amount": str(self.amount),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Transaction":
        return cls(
            id=str(data["id"]),
            coin_id=str(data["coinId"]),
            symbol=str(data.get("symbol", "")),
            name=str(data.get("name", "")),
            type=TransactionType(data["type"]),
            price=Decimal(str(data["price"])),
            amount=Decimal(str(data["amount"])),
            created_at=int(data["createdAt"]),
        )


@dataclass(frozen=True)
class Holding:
    """Derived position for one coin."""

    coin_id: str
    symbol: str
    amount: Decimal
    average_price: Decimal
    created_at: int
    updated_at: int
    name: str = ""

    @property
    def cost(self) -> Decimal:
        """Cost basis of the remaining amount."""
        return self.amount * self.average_price

    def to_dict(self) -> dict[str, Any]:
        return {
            "coinId": self.coin_id,
            "symbol": self.symbol,
            "name": self.name,
            "amount": str(self.amount),
            "averagePrice": str(self.average_price),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Holding":
        return cls(
            coin_id=str(data["coinId"]),
            symbol=str(data.get("symbol", "")),
            name=str(data.get("name", "")),
            amount=Decimal(str(data["amount"])),
            average_price=Decimal(str(data["averagePrice"])),
            created_at=int(data.get("createdAt", 0)),
            updated_at=int(data.get("updatedAt", 0)),
        )


@dataclass(frozen=True)
class HoldingSummary:
    holding: Holding
    current_price: Decimal
    value: Decimal
    cost: Decimal
    profit_loss: Decimal
    profit_loss_percent: Decimal
    allocation: float = 0.0


@dataclass(frozen=True)
class PortfolioSummary:
    holdings: tuple[HoldingSummary, ...]
    total_value: Decimal
    total_cost: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percent: Decimal


@dataclass(frozen=True)
class ProfitLoss:
    invested: float
    current_value: float
    profit_loss: float
    percentage_change: float

    @property
    def is_profit(self) -> bool:
        return self.profit_loss >= 0


@dataclass(frozen=True)
class PositionSize:
    risk_amount: float
    position_size: float
    position_value: float
    max_loss: float
    risk_reward_ratio: float  # entry price over per-unit risk


@dataclass(frozen=True)
class DiversificationScore:
    score: int  # 0-100
    rating: str
    recommendation: str
    hhi: float
    number_of_assets: int


@dataclass(frozen=True)
class RebalanceSuggestion:
    symbol: str
    action: Literal["BUY", "SELL"]
    current_allocation: float
    target_allocation: float
    difference: float
    value_change: float
    amount_change: float


# ========== Alerts ==========


@dataclass(frozen=True)
class Alert:
    """User-defined alert with one-shot active/triggered flags."""

    id: str
    coin_id: str
    condition: Union[AlertCondition, str]  # raw str when the kind is unknown
    target_value: Optional[float]
    created_at: int
    symbol: str = ""
    note: str = ""
    active: bool = True
    triggered: bool = False
    updated_at: Optional[int] = None
    triggered_at: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        condition = self.condition.value if isinstance(self.condition, AlertCondition) else self.condition
        return {
            "id": self.id,
            "coinId": self.coin_id,
            "symbol": self.symbol,
            "condition": condition,
            "targetValue": self.target_value,
            "note": self.note,
            "active": self.active,
            "triggered": self.triggered,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "triggeredAt": self.triggered_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Alert":
        raw_condition = str(data.get("condition", ""))
        try:
            condition: Union[AlertCondition, str] = AlertCondition(raw_condition)
        except ValueError:
            condition = raw_condition
        target = data.get("targetValue")
        return cls(
            id=str(data["id"]),
            coin_id=str(data["coinId"]),
            symbol=str(data.get("symbol", "")),
            condition=condition,
            target_value=None if target is None else float(target),
            note=str(data.get("note", "")),
            active=bool(data.get("active", True)),
            triggered=bool(data.get("triggered", False)),
            created_at=int(data.get("createdAt", 0)),
            updated_at=data.get("updatedAt"),
            triggered_at=data.get("triggeredAt"),
        )


@dataclass(frozen=True)
class MarketSnapshot:
    """Live market data for one coin, as fed to the alert engine."""

    price: Optional[float] = None
    rsi: Optional[float] = None
    volume: Optional[float] = None
    price_24h_ago: Optional[float] = None
    volume_24h_ago: Optional[float] = None


@dataclass(frozen=True)
class AlertCheckResult:
    alert: Alert
    triggered: bool
    message: str
    timestamp: int
    data: Mapping[str, Optional[float]] = field(default_factory=dict)


@dataclass(frozen=True)
class TriggeredAlert:
    alert: Alert  # persisted post-trigger state
    current_price: Optional[float]
    message: str


# ========== User data ==========


@dataclass(frozen=True)
class WatchlistItem:
    id: str
    symbol: str
    name: str
    added_at: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "symbol": self.symbol, "name": self.name, "addedAt": self.added_at}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WatchlistItem":
        return cls(
            id=str(data["id"]),
            symbol=str(data.get("symbol", "")),
            name=str(data.get("name", "")),
            added_at=int(data.get("addedAt", 0)),
        )


@dataclass(frozen=True)
class RecentSearch:
    id: str
    symbol: str
    name: str
    searched_at: int
    image: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "image": self.image,
            "searchedAt": self.searched_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RecentSearch":
        return cls(
            id=str(data["id"]),
            symbol=str(data.get("symbol", "")),
            name=str(data.get("name", "")),
            image=data.get("image"),
            searched_at=int(data.get("searchedAt", 0)),
        )


# ========== Storage ==========


@dataclass(frozen=True)
class StoredItemSize:
    key: str
    size: int


@dataclass(frozen=True)
class StorageUsage:
    total_size: int
    total_size_formatted: str
    item_count: int
    items: tuple[StoredItemSize, ...]


# ========== Indicators / analysis ==========


@dataclass(frozen=True)
class MACDResult:
    macd: list[float]
    signal: list[float]
    histogram: list[float]


@dataclass(frozen=True)
class BollingerBands:
    upper: list[float]
    middle: list[float]
    lower: list[float]


@dataclass(frozen=True)
class PriceLevel:
    price: float
    strength: int  # number of clustered touches


@dataclass(frozen=True)
class SupportResistance:
    support: list[PriceLevel]
    resistance: list[PriceLevel]


@dataclass(frozen=True)
class FearGreedResult:
    index: int  # 0-100
    sentiment: str
    components: Mapping[str, float]


@dataclass(frozen=True)
class TrendAnalysis:
    trend: TrendLabel
    strength: int  # 0-100
    sma20: Optional[float] = None
    sma50: Optional[float] = None
    rsi: Optional[float] = None
    price_above_sma20: bool = False
    price_above_sma50: bool = False
    golden_cross: bool = False
    death_cross: bool = False


@dataclass(frozen=True)
class PriceStatistics:
    min: float
    max: float
    mean: float
    median: float
    std_dev: float
