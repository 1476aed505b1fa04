"""Alert monitor - evaluates user threshold alerts against live pool metrics."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Literal

from ..pools import Pool

if TYPE_CHECKING:
    from ..state.history import TriggeredAlertLog

logger = logging.getLogger(__name__)

AlertMetric = Literal["apr", "tvl", "volume", "score", "fees"]
AlertCondition = Literal["above", "below"]

ALERT_METRICS: tuple[str, ...] = ("apr", "tvl", "volume", "score", "fees")
ALERT_CONDITIONS: tuple[str, ...] = ("above", "below")

DEFAULT_COOLDOWN_MS = 600_000  # 10 minutes


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class Alert:
    """A user-defined threshold rule on one pool metric."""

    id: str
    pool_id: str
    pool_name: str
    metric: AlertMetric
    condition: AlertCondition
    value: float
    enabled: bool = True
    created_at: int = field(default_factory=now_ms)

    def __post_init__(self):
        if self.metric not in ALERT_METRICS:
            raise ValueError(f"Unknown alert metric: {self.metric}")
        if self.condition not in ALERT_CONDITIONS:
            raise ValueError(f"Unknown alert condition: {self.condition}")

    @classmethod
    def create(
        cls,
        pool: Pool,
        metric: AlertMetric,
        condition: AlertCondition,
        value: float,
    ) -> Alert:
        """Create a new enabled alert for a pool with a fresh id."""
        return cls(
            id=uuid.uuid4().hex,
            pool_id=pool.id,
            pool_name=pool.name,
            metric=metric,
            condition=condition,
            value=float(value),
        )


@dataclass
class TriggeredAlert:
    """Snapshot of an alert at the moment its condition held."""

    alert: Alert
    triggered_at: int
    current_value: float
    read: bool = False


def metric_value(pool: Pool, metric: AlertMetric) -> float:
    """Read an alert metric off a pool; APR is parsed from its text form."""
    if metric == "apr":
        return pool.apr_value
    if metric == "tvl":
        return pool.tvl
    if metric == "volume":
        return pool.volume
    if metric == "score":
        return float(pool.score)
    if metric == "fees":
        return pool.fees
    raise ValueError(f"Unknown alert metric: {metric}")


def condition_holds(condition: AlertCondition, current_value: float, threshold: float) -> bool:
    if condition == "above":
        return current_value > threshold
    return current_value < threshold


class AlertMonitor:
    """
    Evaluates alert rules once per refresh cycle.

    A rule fires when it is enabled, its pool is in the current snapshot,
    its condition holds, and it has not fired within the cool-down window.
    Fired rules are appended to the triggered-alert log as snapshots. Cool-downs
    are tracked per rule id inside the monitor; clearing or capping the log
    does not reset them.
    """

    def __init__(self, cooldown_ms: int = DEFAULT_COOLDOWN_MS):
        self.cooldown_ms = cooldown_ms
        self._evaluations = 0
        self._triggered = 0
        self._last_fired: dict[str, int] = {}

    def restore(self, entries: Iterable[TriggeredAlert]):
        """Seed cool-downs from previously triggered alerts, e.g. after a restart."""
        for entry in entries:
            alert_id = entry.alert.id
            previous = self._last_fired.get(alert_id)
            if previous is None or entry.triggered_at > previous:
                self._last_fired[alert_id] = entry.triggered_at

    def in_cooldown(self, alert_id: str, now: int) -> bool:
        last = self._last_fired.get(alert_id)
        return last is not None and now - last < self.cooldown_ms

    def evaluate(
        self,
        alerts: list[Alert],
        pools: list[Pool],
        log: TriggeredAlertLog,
        now: int | None = None,
    ) -> list[TriggeredAlert]:
        """
        Run one evaluation cycle.

        Args:
            alerts: All alert rules, enabled or not
            pools: The current pool snapshot
            log: Triggered-alert log to append fired alerts to
            now: Evaluation time in epoch ms (defaults to the wall clock)

        Returns:
            Alerts triggered in this cycle, in rule order
        """
        now = now_ms() if now is None else now
        self._evaluations += 1

        # Forget rules that no longer exist
        live_ids = {alert.id for alert in alerts}
        self._last_fired = {
            alert_id: fired_at
            for alert_id, fired_at in self._last_fired.items()
            if alert_id in live_ids
        }

        pools_by_id = {pool.id: pool for pool in pools}
        triggered: list[TriggeredAlert] = []

        for alert in alerts:
            if not alert.enabled:
                continue
            if self.in_cooldown(alert.id, now):
                continue

            pool = pools_by_id.get(alert.pool_id)
            if pool is None:
                # Pool rotated out of the snapshot; it may come back later
                continue

            try:
                current_value = metric_value(pool, alert.metric)
            except ValueError as e:
                logger.warning(f"Skipping alert {alert.id}: {e}")
                continue

            if not condition_holds(alert.condition, current_value, alert.value):
                continue

            event = TriggeredAlert(
                alert=replace(alert),
                triggered_at=now,
                current_value=current_value,
            )
            log.append(event)
            self._last_fired[alert.id] = now
            triggered.append(event)
            self._triggered += 1

            logger.info(
                f"Alert fired: {alert.pool_name} {alert.metric} {alert.condition} "
                f"{alert.value:g} (current {current_value:g})"
            )

        return triggered

    @property
    def stats(self) -> dict:
        """Get monitor statistics."""
        return {
            "evaluations": self._evaluations,
            "alerts_triggered": self._triggered,
        }
