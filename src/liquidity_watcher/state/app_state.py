"""Application state container shared by the refresh pipeline and user actions."""

import logging
from dataclasses import fields, replace
from typing import Protocol

from ..alerting.monitor import Alert, AlertMonitor, TriggeredAlert, now_ms
from ..detection.opportunities import Opportunity
from ..filters import FilterState, apply_filters, search_pools
from ..pools import Pool, PoolTransaction
from .history import TransactionHistory, TriggeredAlertLog

logger = logging.getLogger(__name__)


class PersistenceSink(Protocol):
    """Receives state edits after they are applied in memory."""

    def alert_saved(self, alert: Alert) -> None: ...

    def alert_deleted(self, alert_id: str) -> None: ...

    def alert_toggled(self, alert_id: str, enabled: bool) -> None: ...

    def triggered_recorded(self, triggered: TriggeredAlert) -> None: ...

    def triggered_marked_read(self) -> None: ...

    def triggered_cleared(self) -> None: ...


class AppState:
    """
    Single owner of everything the views read.

    Mutations go through methods so derived lists (filtered pools, search
    results) stay consistent and the persistence sink sees every alert edit.
    At most one detail view is expanded at a time, either a pool or an
    opportunity; its id is protected from transaction-history eviction.
    """

    def __init__(
        self,
        sink: PersistenceSink | None = None,
        hide_danger: bool = True,
        max_triggered: int = 50,
        max_tracked_pools: int = 8,
        max_transactions_per_pool: int = 15,
    ):
        self.sink = sink
        self.hide_danger = hide_danger

        self.pools: list[Pool] = []
        self.filtered_pools: list[Pool] = []
        self.search_results: list[Pool] = []
        self.opportunities: list[Opportunity] = []
        self.verified_tokens: set[str] = set()
        self.filters = FilterState()
        self.last_refresh: int = 0

        self.alerts: list[Alert] = []
        self.triggered = TriggeredAlertLog(max_entries=max_triggered)
        self.history = TransactionHistory(
            max_pools=max_tracked_pools,
            max_transactions=max_transactions_per_pool,
        )

        self.expanded_pool_id: str | None = None
        self.expanded_opp_id: str | None = None

    # Pool data

    def replace_pools(self, pools: list[Pool], now: int | None = None):
        """Swap in a full snapshot and recompute the derived lists."""
        self.pools = list(pools)
        self.last_refresh = now_ms() if now is None else now
        self._recompute_views()

    def set_verified_tokens(self, tokens):
        self.verified_tokens = set(tokens)

    def set_opportunities(self, opportunities: list[Opportunity]):
        self.opportunities = list(opportunities)

    def set_filters(self, **changes):
        """Update filter fields by name, e.g. ``set_filters(safe_only=True)``."""
        known = {f.name for f in fields(FilterState)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown filter fields: {', '.join(sorted(unknown))}")

        self.filters = replace(self.filters, **changes)
        self._recompute_views()

    def set_hide_danger(self, enabled: bool):
        self.hide_danger = enabled
        self._recompute_views()

    def pool_by_id(self, pool_id: str) -> Pool | None:
        for pool in self.pools:
            if pool.id == pool_id:
                return pool
        return None

    def pool_by_address(self, address: str) -> Pool | None:
        for pool in self.pools:
            if pool.address == address:
                return pool
        return None

    def _recompute_views(self):
        self.filtered_pools = apply_filters(self.pools, self.filters, self.hide_danger)
        self.search_results = search_pools(self.pools, self.filters.search_query)

    # Alerts

    def add_alert(self, alert: Alert):
        self.alerts.append(alert)
        self._notify("alert_saved", alert)

    def remove_alert(self, alert_id: str) -> bool:
        """Delete an alert rule. Returns False when the id is unknown."""
        remaining = [alert for alert in self.alerts if alert.id != alert_id]
        if len(remaining) == len(self.alerts):
            return False
        self.alerts = remaining
        self._notify("alert_deleted", alert_id)
        return True

    def toggle_alert(self, alert_id: str, enabled: bool) -> bool:
        """Enable or disable an alert rule without deleting it."""
        for alert in self.alerts:
            if alert.id == alert_id:
                alert.enabled = enabled
                self._notify("alert_toggled", alert_id, enabled)
                return True
        return False

    def set_alerts(self, alerts: list[Alert]):
        """Replace the rule list wholesale, e.g. after loading from storage."""
        self.alerts = list(alerts)

    def evaluate_alerts(self, monitor: AlertMonitor, now: int | None = None) -> list[TriggeredAlert]:
        """Run one monitor pass over the live pools and persist what fired."""
        triggered = monitor.evaluate(self.alerts, self.pools, self.triggered, now=now)
        for event in triggered:
            self._notify("triggered_recorded", event)
        return triggered

    def load_triggered(self, entries: list[TriggeredAlert]):
        """Restore the triggered log from newest-first entries."""
        self.triggered.clear()
        self.triggered.extend(list(reversed(entries)))

    def mark_triggered_read(self) -> int:
        count = self.triggered.mark_all_read()
        self._notify("triggered_marked_read")
        return count

    def clear_triggered(self):
        self.triggered.clear()
        self._notify("triggered_cleared")

    # Detail views and transaction history

    def active_ids(self) -> set[str]:
        return {pid for pid in (self.expanded_pool_id, self.expanded_opp_id) if pid is not None}

    def toggle_pool(self, pool_id: str):
        """Expand a pool's detail view, or collapse it if already expanded."""
        if self.expanded_pool_id == pool_id:
            self.expanded_pool_id = None
            self.history.evict(pool_id)
            return

        self._evict_previous(pool_id)
        self.expanded_pool_id = pool_id
        self.expanded_opp_id = None

    def toggle_opportunity(self, opp_id: str):
        """Expand an opportunity's detail view, or collapse it if already expanded."""
        if self.expanded_opp_id == opp_id:
            self.expanded_opp_id = None
            self.history.evict(opp_id)
            return

        self._evict_previous(opp_id)
        self.expanded_opp_id = opp_id
        self.expanded_pool_id = None

    def collapse_all(self):
        for pool_id in self.active_ids():
            self.history.evict(pool_id)
        self.expanded_pool_id = None
        self.expanded_opp_id = None

    def add_pool_transaction(self, pool_id: str, tx: PoolTransaction):
        self.history.add(pool_id, tx, active_ids=self.active_ids())

    def set_pool_transactions(self, pool_id: str, txs: list[PoolTransaction]):
        self.history.replace(pool_id, txs, active_ids=self.active_ids())

    def pool_transactions(self, pool_id: str) -> list[PoolTransaction]:
        return self.history.get(pool_id)

    def _evict_previous(self, new_id: str):
        for pool_id in self.active_ids():
            if pool_id != new_id:
                self.history.evict(pool_id)

    # Persistence

    def _notify(self, method: str, *args):
        if self.sink is None:
            return
        try:
            getattr(self.sink, method)(*args)
        except Exception as e:
            logger.warning(f"Persistence sink {method} failed: {e}")
