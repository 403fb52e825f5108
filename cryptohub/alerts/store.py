"""
Alert persistence.

Alerts are stored as a list under the `alerts` key. Each alert carries two
one-shot flags:

    created             active=True,  triggered=False
    condition matched   active=False, triggered=True   (mark_triggered)
    re-armed            active=True,  triggered=False  (reset)

Every mutation reads the list, builds a new list with `dataclasses.replace`
and writes it back.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Any, Optional, Union

from cryptohub.storage.store import Clock, PersistentStore
from cryptohub.types import Alert, AlertCondition, StorageKey

logger = logging.getLogger(__name__)

# Conditions that have no sensible default threshold
_TARGET_REQUIRED = frozenset(
    {
        AlertCondition.PRICE_ABOVE,
        AlertCondition.PRICE_BELOW,
        AlertCondition.PERCENTAGE_CHANGE,
    }
)

_UPDATABLE_FIELDS = frozenset({"symbol", "condition", "target_value", "note", "active", "triggered"})


def _parse_condition(condition: Union[AlertCondition, str]) -> AlertCondition:
    try:
        return AlertCondition(condition)
    except ValueError:
        raise ValueError(f"Unknown alert condition: {condition!r}") from None


class AlertStore:
    """CRUD and state transitions for user alerts."""

    def __init__(self, store: PersistentStore, *, clock: Optional[Clock] = None) -> None:
        self._store = store
        self._key = StorageKey.ALERTS.value
        self._clock = clock or store.now

    def now(self) -> int:
        return self._clock()

    # ========== Reads ==========

    def get_all(self) -> list[Alert]:
        raw = self._store.get(self._key, [])
        if not isinstance(raw, list):
            return []
        return [Alert.from_dict(item) for item in raw]

    def get_active(self) -> list[Alert]:
        return [alert for alert in self.get_all() if alert.active]

    def get(self, alert_id: str) -> Optional[Alert]:
        for alert in self.get_all():
            if alert.id == alert_id:
                return alert
        return None

    # ========== Writes ==========

    def _save(self, alerts: list[Alert]) -> bool:
        return self._store.set(self._key, [alert.to_dict() for alert in alerts])

    def _replace(self, alert_id: str, **changes: Any) -> Optional[Alert]:
        """Persist `changes` on one alert. Returns the new alert, or None."""
        alerts = self.get_all()
        for index, alert in enumerate(alerts):
            if alert.id == alert_id:
                updated = replace(alert, updated_at=self._clock(), **changes)
                if not self._save([*alerts[:index], updated, *alerts[index + 1 :]]):
                    return None
                return updated
        return None

    def add(
        self,
        coin_id: str,
        condition: Union[AlertCondition, str],
        target_value: Optional[float] = None,
        *,
        symbol: str = "",
        note: str = "",
    ) -> Alert:
        """
        Create and persist an armed alert.

        Raises:
            ValueError: If the condition is unknown or needs a target value
        """
        parsed = _parse_condition(condition)

        if target_value is None and parsed in _TARGET_REQUIRED:
            raise ValueError(f"{parsed.value} alerts require a target_value")

        alert = Alert(
            id=str(uuid.uuid4()),
            coin_id=coin_id,
            symbol=symbol,
            condition=parsed,
            target_value=None if target_value is None else float(target_value),
            note=note,
            created_at=self._clock(),
        )

        if not self._save([*self.get_all(), alert]):
            logger.error(f"Failed to persist alert for {coin_id}")
        return alert

    def update(self, alert_id: str, **changes: Any) -> bool:
        """
        Apply field changes to an alert. Returns False if it does not exist.

        Raises:
            ValueError: If a field is not updatable, the condition is unknown,
                or the resulting condition needs a target value it lacks
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update alert fields: {sorted(unknown)}")

        if "condition" in changes:
            changes["condition"] = _parse_condition(changes["condition"])
        if changes.get("target_value") is not None:
            changes["target_value"] = float(changes["target_value"])

        alert = self.get(alert_id)
        if alert is None:
            return False

        condition = changes.get("condition", alert.condition)
        target_value = changes.get("target_value", alert.target_value)
        if target_value is None and condition in _TARGET_REQUIRED:
            raise ValueError(f"{AlertCondition(condition).value} alerts require a target_value")

        return self._replace(alert_id, **changes) is not None

    def remove(self, alert_id: str) -> bool:
        return self._save([alert for alert in self.get_all() if alert.id != alert_id])

    def toggle(self, alert_id: str) -> bool:
        """Flip the active flag. Returns the new flag (False if the alert is missing)."""
        alert = self.get(alert_id)
        if alert is None:
            return False

        updated = self._replace(alert_id, active=not alert.active)
        return updated.active if updated is not None else alert.active

    def reset(self, alert_id: str) -> bool:
        """Re-arm a triggered alert."""
        return self._replace(alert_id, active=True, triggered=False, triggered_at=None) is not None

    def mark_triggered(self, alert_id: str) -> Optional[Alert]:
        """Move an alert to its terminal state. Returns the persisted alert."""
        now = self._clock()
        return self._replace(alert_id, active=False, triggered=True, triggered_at=now)

    def clear(self) -> bool:
        return self._save([])
