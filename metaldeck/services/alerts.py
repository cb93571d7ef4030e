"""alerts.py

User-created price alerts, kept most-recent-first.

The registry only stores and lists alerts. Nothing here watches the
price feed; an alert stays ``pending`` until some evaluator marks it.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Mapping

from metaldeck.services.conversion import parse_amount
from metaldeck.services.model import Alert, AlertStatus, MetalKind

logger = logging.getLogger(__name__)

# Demo alerts the dashboard starts with, newest first
SEED_ALERTS: list[dict] = [
    {"id": "AL-1001", "metal": MetalKind.GOLD, "target_price": 2420, "status": AlertStatus.PENDING},
    {"id": "AL-1002", "metal": MetalKind.SILVER, "target_price": 28.5, "status": AlertStatus.COMPLETED},
]


class AlertRegistry:
    def __init__(
        self,
        seed: Iterable[Alert | Mapping] = (),
        on_create: Callable[[Alert], None] | None = None,
    ) -> None:
        # *seed* is taken as already ordered newest first
        self._alerts: list[Alert] = [Alert.model_validate(a) for a in seed]
        self._on_create = on_create

    def __len__(self) -> int:
        return len(self._alerts)

    def _fresh_id(self) -> str:
        taken = {alert.id for alert in self._alerts}
        while True:
            candidate = f"AL-{uuid.uuid4().hex[:8].upper()}"
            if candidate not in taken:
                return candidate

    def create(self, metal: MetalKind, target_price) -> Alert | None:
        """Add a pending alert at the front, or do nothing for a bad target.

        *target_price* may be a number or the raw form text; zero,
        negative and non-numeric targets are ignored and ``None`` returned.
        """
        target = parse_amount(target_price)
        if target is None:
            logger.debug("Ignoring alert with target %r", target_price)
            return None

        alert = Alert(id=self._fresh_id(), metal=MetalKind(metal), target_price=target)
        self._alerts.insert(0, alert)
        logger.info("Alert %s created: %s at %.2f", alert.id, alert.metal.value, alert.target_price)
        if self._on_create is not None:
            self._on_create(alert)
        return alert

    def list(self) -> list[Alert]:
        """Current alerts, newest first (a copy)."""
        return list(self._alerts)
