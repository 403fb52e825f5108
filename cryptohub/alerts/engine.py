"""
Alert evaluation engine.

Usage:
    engine = AlertEngine(AlertStore(store))
    snapshots = {"bitcoin": engine.build_snapshot(btc_closes, reference_lookback=24)}
    for hit in engine.evaluate(snapshots):
        notify(hit.message)
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from cryptohub.alerts.conditions import check_alert_condition
from cryptohub.alerts.store import AlertStore
from cryptohub.indicators.rsi import compute_rsi
from cryptohub.storage.store import Clock
from cryptohub.types import AlertCheckResult, MarketSnapshot, TriggeredAlert

logger = logging.getLogger(__name__)


class AlertEngine:
    """Evaluates active alerts against per-coin market snapshots.

    Alerts are one-shot: a matching alert is persisted as
    active=False, triggered=True before it is reported, and inactive alerts
    are never evaluated again until re-armed through AlertStore.reset().
    """

    def __init__(self, alert_store: AlertStore, *, clock: Optional[Clock] = None) -> None:
        self._alerts = alert_store
        self._clock = clock or alert_store.now

    def check_all(self, snapshots: Mapping[str, MarketSnapshot]) -> list[AlertCheckResult]:
        """Evaluate every active alert without persisting anything.

        Alerts whose coin is absent from `snapshots` are skipped.
        """
        now = self._clock()
        results = []

        for alert in self._alerts.get_active():
            snapshot = snapshots.get(alert.coin_id)
            if snapshot is None:
                logger.debug(f"No snapshot for {alert.coin_id}, skipping alert {alert.id}")
                continue
            results.append(check_alert_condition(alert, snapshot, now))

        return results

    def evaluate(self, snapshots: Mapping[str, MarketSnapshot]) -> list[TriggeredAlert]:
        """Evaluate active alerts and persist the ones that fire.

        Returns:
            Triggered alerts in evaluation order, each carrying the persisted
            post-trigger state. An alert whose state could not be persisted
            is logged and left out.
        """
        triggered = []

        for result in self.check_all(snapshots):
            if not result.triggered:
                continue

            persisted = self._alerts.mark_triggered(result.alert.id)
            if persisted is None:
                logger.error(f"Failed to persist triggered alert {result.alert.id}")
                continue

            logger.info(f"Alert {persisted.id} triggered: {result.message}")
            triggered.append(
                TriggeredAlert(
                    alert=persisted,
                    current_price=result.data.get("price"),
                    message=result.message,
                )
            )

        return triggered

    @staticmethod
    def build_snapshot(
        prices: Sequence[float],
        *,
        volumes: Optional[Sequence[float]] = None,
        reference_lookback: Optional[int] = None,
        rsi_period: int = 14,
    ) -> MarketSnapshot:
        """
        Build a MarketSnapshot from chronological price (and volume) history.

        Args:
            prices: Chronological prices; the last one is the current price
            volumes: Optional chronological volumes aligned with prices
            reference_lookback: Samples back to take the reference price and
                volume from (e.g. 24 for hourly data); None leaves them unset
            rsi_period: RSI period (default: 14)

        Returns:
            MarketSnapshot; fields without enough history are None
        """
        if not prices:
            return MarketSnapshot()

        rsi_series = compute_rsi(prices, rsi_period)

        def reference(series: Sequence[float]) -> Optional[float]:
            if reference_lookback is None or len(series) <= reference_lookback:
                return None
            return float(series[-1 - reference_lookback])

        return MarketSnapshot(
            price=float(prices[-1]),
            rsi=rsi_series[-1] if rsi_series else None,
            volume=float(volumes[-1]) if volumes else None,
            price_24h_ago=reference(prices),
            volume_24h_ago=reference(volumes) if volumes else None,
        )
