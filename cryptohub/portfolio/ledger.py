"""Portfolio ledger.

Holdings are a projection of the transaction log. Two paths keep the
projection current and both go through `apply_transaction`:

- incremental: `add_transaction` applies one new fill to the stored holdings
- full rebuild: `rebuild_holdings` replays the whole log from empty state

Removing a historical transaction always rebuilds, since a weighted average
cannot be unwound one fill at a time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from functools import reduce
from typing import Any, Mapping, Optional, Sequence, Union
from uuid import uuid4

from cryptohub.storage.backends import StorageError
from cryptohub.storage.store import Clock, PersistentStore
from cryptohub.types import (
    Holding,
    HoldingSummary,
    PortfolioSummary,
    StorageKey,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _to_decimal(value: Number, name: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{name} must be numeric, got {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"{name} must be finite, got {value!r}")
    return result


def apply_transaction(holdings: Sequence[Holding], tx: Transaction) -> list[Holding]:
    """Return the holdings that result from applying one transaction.

    Buys update the quantity-weighted average price. Sells reduce the amount
    and leave the average price unchanged; a holding whose amount drops to
    zero or below is removed. A sell for a coin with no holding is ignored.
    """
    result = list(holdings)
    index = next((i for i, h in enumerate(result) if h.coin_id == tx.coin_id), None)

    if tx.type == TransactionType.BUY:
        if index is None:
            result.append(
                Holding(
                    coin_id=tx.coin_id,
                    symbol=tx.symbol,
                    name=tx.name,
                    amount=tx.amount,
                    average_price=tx.price,
                    created_at=tx.created_at,
                    updated_at=tx.created_at,
                )
            )
        else:
            existing = result[index]
            total_amount = existing.amount + tx.amount
            total_cost = existing.average_price * existing.amount + tx.price * tx.amount
            result[index] = Holding(
                coin_id=existing.coin_id,
                symbol=existing.symbol,
                name=existing.name,
                amount=total_amount,
                average_price=total_cost / total_amount,
                created_at=existing.created_at,
                updated_at=tx.created_at,
            )
    elif index is not None:
        existing = result[index]
        remaining = existing.amount - tx.amount
        if remaining <= 0:
            del result[index]
        else:
            result[index] = Holding(
                coin_id=existing.coin_id,
                symbol=existing.symbol,
                name=existing.name,
                amount=remaining,
                average_price=existing.average_price,
                created_at=existing.created_at,
                updated_at=tx.created_at,
            )
    else:
        logger.debug(f"Ignoring sell of {tx.coin_id}: no holding")

    return result


def replay_transactions(transactions: Sequence[Transaction]) -> list[Holding]:
    """Derive holdings from a transaction log, starting from empty state."""
    return reduce(apply_transaction, transactions, [])


class PortfolioLedger:
    """Transaction log plus the holdings derived from it.

    The log lives under `transactions` and the holdings projection under
    `portfolio`. They are written one after the other; if the second write
    fails the two disagree and `rebuild_holdings()` restores the projection.
    """

    def __init__(self, store: PersistentStore, *, clock: Optional[Clock] = None) -> None:
        self._store = store
        self._clock = clock or store.now
        self._transactions_key = StorageKey.TRANSACTIONS.value
        self._holdings_key = StorageKey.PORTFOLIO.value

    # ========== Reads ==========

    def get_transactions(self) -> list[Transaction]:
        raw = self._store.get(self._transactions_key, [])
        if not isinstance(raw, list):
            return []
        return [Transaction.from_dict(item) for item in raw]

    def get_holdings(self) -> list[Holding]:
        raw = self._store.get(self._holdings_key, [])
        if not isinstance(raw, list):
            return []
        return [Holding.from_dict(item) for item in raw]

    def get_holding(self, coin_id: str) -> Optional[Holding]:
        for holding in self.get_holdings():
            if holding.coin_id == coin_id:
                return holding
        return None

    # ========== Writes ==========

    def _save_transactions(self, transactions: Sequence[Transaction]) -> bool:
        return self._store.set(self._transactions_key, [tx.to_dict() for tx in transactions])

    def _save_holdings(self, holdings: Sequence[Holding]) -> bool:
        return self._store.set(self._holdings_key, [h.to_dict() for h in holdings])

    def add_transaction(
        self,
        coin_id: str,
        symbol: str,
        type: Union[TransactionType, str],
        price: Number,
        amount: Number,
        *,
        name: str = "",
    ) -> Transaction:
        """Record a fill and update holdings incrementally.

        Args:
            coin_id: Coin identifier (e.g., 'bitcoin')
            symbol: Ticker symbol (e.g., 'btc')
            type: 'buy' or 'sell'
            price: Fill price, >= 0
            amount: Fill amount, > 0
            name: Display name

        Returns:
            The recorded Transaction

        Raises:
            ValueError: If type, price or amount is invalid (nothing is written)
            StorageError: If the transaction could not be appended to the log
        """
        try:
            tx_type = TransactionType(type)
        except ValueError:
            raise ValueError(f"type must be 'buy' or 'sell', got {type!r}") from None

        price_dec = _to_decimal(price, "price")
        amount_dec = _to_decimal(amount, "amount")

        if amount_dec <= 0:
            raise ValueError(f"amount must be > 0, got {amount}")
        if price_dec < 0:
            raise ValueError(f"price must be >= 0, got {price}")

        tx = Transaction(
            id=str(uuid4()),
            coin_id=coin_id,
            symbol=symbol,
            name=name,
            type=tx_type,
            price=price_dec,
            amount=amount_dec,
            created_at=self._clock(),
        )

        if not self._save_transactions([*self.get_transactions(), tx]):
            raise StorageError(f"Failed to append transaction {tx.id} to the log")

        if not self._save_holdings(apply_transaction(self.get_holdings(), tx)):
            logger.error(f"Holdings not updated for transaction {tx.id}; rebuild required")

        logger.info(f"Recorded {tx_type.value} {amount_dec} {symbol or coin_id} @ {price_dec}")
        return tx

    def remove_transaction(self, transaction_id: str) -> bool:
        """Drop a transaction from the log and rebuild holdings.

        Returns:
            False if the transaction does not exist or a write failed
        """
        transactions = self.get_transactions()
        remaining = [tx for tx in transactions if tx.id != transaction_id]

        if len(remaining) == len(transactions):
            return False

        if not self._save_transactions(remaining):
            return False

        return self._save_holdings(replay_transactions(remaining))

    def rebuild_holdings(self) -> list[Holding]:
        """Replay the full log and store the resulting holdings."""
        holdings = replay_transactions(self.get_transactions())
        if not self._save_holdings(holdings):
            logger.error("Failed to store rebuilt holdings")
        return holdings

    def clear(self) -> bool:
        holdings_cleared = self._save_holdings([])
        transactions_cleared = self._save_transactions([])
        return holdings_cleared and transactions_cleared

    # ========== Summary ==========

    def get_summary(self, current_prices: Mapping[str, Number]) -> PortfolioSummary:
        """Value holdings at current prices.

        Args:
            current_prices: Price per coin_id; missing coins are priced at 0

        Returns:
            PortfolioSummary with per-holding P/L and allocation
        """
        rows = []
        total_value = ZERO
        total_cost = ZERO

        for holding in self.get_holdings():
            price = _to_decimal(current_prices.get(holding.coin_id, 0), "current price")
            value = holding.amount * price
            cost = holding.cost
            profit_loss = value - cost

            rows.append((holding, price, value, cost, profit_loss))
            total_value += value
            total_cost += cost

        summaries = tuple(
            HoldingSummary(
                holding=holding,
                current_price=price,
                value=value,
                cost=cost,
                profit_loss=profit_loss,
                profit_loss_percent=profit_loss / cost * HUNDRED if cost > 0 else ZERO,
                allocation=float(value / total_value * HUNDRED) if total_value > 0 else 0.0,
            )
            for holding, price, value, cost, profit_loss in rows
        )

        return PortfolioSummary(
            holdings=summaries,
            total_value=total_value,
            total_cost=total_cost,
            total_profit_loss=total_value - total_cost,
            total_profit_loss_percent=(
                (total_value - total_cost) / total_cost * HUNDRED if total_cost > 0 else ZERO
            ),
        )

    # ========== Export / import ==========

    def export(self) -> dict[str, Any]:
        exported_at = datetime.fromtimestamp(self._clock() / 1000, tz=timezone.utc)
        return {
            "holdings": [h.to_dict() for h in self.get_holdings()],
            "transactions": [tx.to_dict() for tx in self.get_transactions()],
            "exportedAt": exported_at.isoformat(),
        }

    def import_data(self, data: Mapping[str, Any]) -> bool:
        """Replace the ledger with exported data.

        The transaction log is required and replaces the stored one, even
        when empty; holdings are always rebuilt from it. Exported holdings
        are only checked for well-formedness, since a holdings list without
        its log could not be rebuilt later. Malformed data is rejected
        before anything is written.
        """
        if not isinstance(data.get("transactions"), list):
            logger.warning("Rejected portfolio import: no transaction list")
            return False

        try:
            transactions = [Transaction.from_dict(item) for item in data["transactions"]]
            for item in data.get("holdings") or []:
                Holding.from_dict(item)
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            logger.warning(f"Rejected portfolio import: {e}")
            return False

        if not self._save_transactions(transactions):
            return False
        return self._save_holdings(replay_transactions(transactions))
