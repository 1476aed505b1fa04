"""Refresh pipeline - publishes one snapshot through detection and alerting."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING

from ..alerting.monitor import AlertMonitor, TriggeredAlert, now_ms
from ..pools import Pool
from .opportunities import OpportunityDetector

if TYPE_CHECKING:
    from ..state.app_state import AppState

logger = logging.getLogger(__name__)

SnapshotFetch = Callable[[], Awaitable[tuple[list[Pool], Iterable[str]]]]


class RefreshPipeline:
    """
    Runs refresh cycles against the shared application state.

    Each cycle takes a ticket from ``begin()``. When its data arrives,
    ``complete()`` publishes pools, recomputes opportunities and evaluates
    alerts, all synchronously. A completion whose ticket is older than one
    already published is discarded, so a slow fetch never overwrites newer
    data.
    """

    def __init__(
        self,
        state: AppState,
        detector: OpportunityDetector | None = None,
        monitor: AlertMonitor | None = None,
    ):
        self.state = state
        self.detector = detector or OpportunityDetector()
        self.monitor = monitor or AlertMonitor()
        self._next_ticket = 0
        self._latest_completed = 0
        self._cycles = 0
        self._stale = 0
        self._alert_count = 0

    def begin(self) -> int:
        """Start a refresh cycle and return its ticket."""
        self._next_ticket += 1
        return self._next_ticket

    def complete(
        self,
        ticket: int,
        pools: list[Pool],
        verified_tokens: Iterable[str] | None = None,
        now: int | None = None,
    ) -> list[TriggeredAlert] | None:
        """
        Publish a fetched snapshot.

        Args:
            ticket: Ticket returned by ``begin()`` for this cycle
            pools: Full pool snapshot, already classified and scored
            verified_tokens: Verified mints used for this snapshot
            now: Evaluation time in epoch ms (defaults to the wall clock)

        Returns:
            Alerts triggered by this cycle, or None if the result was stale
        """
        if ticket <= self._latest_completed:
            self._stale += 1
            logger.info(
                f"Discarding stale refresh #{ticket} "
                f"(#{self._latest_completed} already published)"
            )
            return None

        self._latest_completed = ticket
        now = now_ms() if now is None else now

        if verified_tokens is not None:
            self.state.set_verified_tokens(verified_tokens)
        self.state.replace_pools(pools, now=now)
        self.state.set_opportunities(self.detector.detect(self.state.pools))
        triggered = self.state.evaluate_alerts(self.monitor, now=now)

        self._cycles += 1
        self._alert_count += len(triggered)

        logger.debug(
            f"Refresh #{ticket}: {len(pools)} pools, "
            f"{len(self.state.opportunities)} opportunities, {len(triggered)} alerts"
        )
        return triggered

    async def refresh(self, fetch: SnapshotFetch, now: int | None = None) -> list[TriggeredAlert] | None:
        """Fetch a snapshot and publish it unless a newer one landed first."""
        ticket = self.begin()
        pools, verified_tokens = await fetch()
        return self.complete(ticket, pools, verified_tokens, now=now)

    @property
    def stats(self) -> dict:
        """Get pipeline statistics."""
        return {
            "cycles_completed": self._cycles,
            "stale_discarded": self._stale,
            "alerts_triggered": self._alert_count,
        }
