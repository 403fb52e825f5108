from __future__ import annotations

from .conditions import CONDITION_HANDLERS, check_alert_condition
from .engine import AlertEngine
from .store import AlertStore

__all__ = [
    "CONDITION_HANDLERS",
    "AlertEngine",
    "AlertStore",
    "check_alert_condition",
]
