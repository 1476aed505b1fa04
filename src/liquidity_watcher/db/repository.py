"""Database repository for alerts, triggered alerts, and pool snapshots."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

import aiosqlite

from ..alerting.monitor import Alert, TriggeredAlert, now_ms
from ..pools import Pool
from .models import SCHEMA

logger = logging.getLogger(__name__)


@dataclass
class PoolSnapshot:
    """Metrics recorded for one pool at one refresh."""

    pool_address: str
    pool_name: str
    protocol: str
    tvl: float
    volume: float
    apr: str
    fees: float
    score: int
    safety: str
    captured_at: int


def _row_to_alert(row: aiosqlite.Row) -> Alert:
    return Alert(
        id=row["id"],
        pool_id=row["pool_id"],
        pool_name=row["pool_name"],
        metric=row["metric"],
        condition=row["condition"],
        value=row["value"],
        enabled=bool(row["enabled"]),
        created_at=row["created_at"],
    )


class Repository:
    """Database repository for all persistence operations."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None

    async def initialize(self):
        """Initialize the database and create tables."""
        # Ensure directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row

        # Create tables
        await self._connection.executescript(SCHEMA)
        await self._connection.commit()

        logger.info(f"Database initialized at {self.db_path}")

    async def close(self):
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    @property
    def conn(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if not self._connection:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._connection

    # Alert Operations

    async def save_alert(self, alert: Alert):
        """Insert an alert, or update it if the id already exists."""
        await self.conn.execute(
            """
            INSERT INTO user_alerts (
                id, pool_id, pool_name, metric, condition, value, enabled, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                pool_id = excluded.pool_id,
                pool_name = excluded.pool_name,
                metric = excluded.metric,
                condition = excluded.condition,
                value = excluded.value,
                enabled = excluded.enabled
            """,
            (
                alert.id,
                alert.pool_id,
                alert.pool_name,
                alert.metric,
                alert.condition,
                alert.value,
                int(alert.enabled),
                alert.created_at,
            ),
        )
        await self.conn.commit()

    async def delete_alert(self, alert_id: str):
        await self.conn.execute("DELETE FROM user_alerts WHERE id = ?", (alert_id,))
        await self.conn.commit()

    async def set_alert_enabled(self, alert_id: str, enabled: bool):
        await self.conn.execute(
            "UPDATE user_alerts SET enabled = ? WHERE id = ?",
            (int(enabled), alert_id),
        )
        await self.conn.commit()

    async def load_alerts(self) -> list[Alert]:
        """Load all alerts, oldest first."""
        async with self.conn.execute(
            "SELECT * FROM user_alerts ORDER BY created_at ASC, id ASC"
        ) as cursor:
            rows = await cursor.fetchall()

        alerts = []
        for row in rows:
            try:
                alerts.append(_row_to_alert(row))
            except ValueError as e:
                logger.warning(f"Skipping invalid stored alert {row['id']}: {e}")
        return alerts

    # Triggered Alert Operations

    async def save_triggered_alert(self, triggered: TriggeredAlert) -> int:
        """Save a triggered alert and return its row ID."""
        alert = triggered.alert
        async with self.conn.execute(
            """
            INSERT INTO triggered_alerts (
                alert_id, pool_id, pool_name, metric, condition, value, enabled,
                alert_created_at, current_value, triggered_at, read
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                alert.id,
                alert.pool_id,
                alert.pool_name,
                alert.metric,
                alert.condition,
                alert.value,
                int(alert.enabled),
                alert.created_at,
                triggered.current_value,
                triggered.triggered_at,
                int(triggered.read),
            ),
        ) as cursor:
            row_id = cursor.lastrowid

        await self.conn.commit()
        return row_id or 0

    async def load_triggered_alerts(self, limit: int = 50) -> list[TriggeredAlert]:
        """Load the most recent triggered alerts, newest first."""
        async with self.conn.execute(
            "SELECT * FROM triggered_alerts ORDER BY triggered_at DESC, id DESC LIMIT ?",
            (limit,),
        ) as cursor:
            rows = await cursor.fetchall()

        return [
            TriggeredAlert(
                alert=Alert(
                    id=row["alert_id"],
                    pool_id=row["pool_id"],
                    pool_name=row["pool_name"],
                    metric=row["metric"],
                    condition=row["condition"],
                    value=row["value"],
                    enabled=bool(row["enabled"]),
                    created_at=row["alert_created_at"],
                ),
                triggered_at=row["triggered_at"],
                current_value=row["current_value"],
                read=bool(row["read"]),
            )
            for row in rows
        ]

    async def mark_triggered_read(self):
        await self.conn.execute("UPDATE triggered_alerts SET read = 1 WHERE read = 0")
        await self.conn.commit()

    async def clear_triggered_alerts(self):
        await self.conn.execute("DELETE FROM triggered_alerts")
        await self.conn.commit()

    async def trim_triggered_alerts(self, keep: int = 50) -> int:
        """Delete all but the newest ``keep`` triggered alerts. Returns rows removed."""
        async with self.conn.execute(
            """
            DELETE FROM triggered_alerts WHERE id NOT IN (
                SELECT id FROM triggered_alerts
                ORDER BY triggered_at DESC, id DESC
                LIMIT ?
            )
            """,
            (keep,),
        ) as cursor:
            removed = cursor.rowcount

        await self.conn.commit()
        return max(removed, 0)

    # Pool Snapshot Operations

    async def save_pool_snapshots(self, pools: list[Pool], captured_at: int | None = None):
        """Record one row per pool for trend analysis."""
        captured_at = now_ms() if captured_at is None else captured_at
        await self.conn.executemany(
            """
            INSERT INTO pool_snapshots (
                pool_address, pool_name, protocol, tvl, volume, apr, fees,
                score, safety, captured_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    pool.address,
                    pool.name,
                    pool.protocol,
                    pool.tvl,
                    pool.volume,
                    pool.apr,
                    pool.fees,
                    pool.score,
                    pool.safety,
                    captured_at,
                )
                for pool in pools
            ],
        )
        await self.conn.commit()

    async def count_pool_snapshots(self, pool_address: str | None = None) -> int:
        if pool_address is None:
            query, params = "SELECT COUNT(*) AS count FROM pool_snapshots", ()
        else:
            query = "SELECT COUNT(*) AS count FROM pool_snapshots WHERE pool_address = ?"
            params = (pool_address,)
        async with self.conn.execute(query, params) as cursor:
            row = await cursor.fetchone()
            return row["count"] if row else 0

    async def pool_snapshot_history(
        self,
        pool_address: str,
        hours: float = 24,
        now: int | None = None,
    ) -> list[PoolSnapshot]:
        """
        Get a pool's recorded metrics over the last ``hours``, oldest first.

        Args:
            pool_address: Pool address the snapshots were saved under
            hours: How far back to look
            now: Reference time in epoch ms (defaults to the wall clock)
        """
        now = now_ms() if now is None else now
        since = now - int(hours * 3_600_000)
        async with self.conn.execute(
            """
            SELECT * FROM pool_snapshots
            WHERE pool_address = ? AND captured_at > ?
            ORDER BY captured_at ASC, id ASC
            """,
            (pool_address, since),
        ) as cursor:
            rows = await cursor.fetchall()

        return [
            PoolSnapshot(
                pool_address=row["pool_address"],
                pool_name=row["pool_name"],
                protocol=row["protocol"],
                tvl=row["tvl"],
                volume=row["volume"],
                apr=row["apr"],
                fees=row["fees"],
                score=row["score"],
                safety=row["safety"],
                captured_at=row["captured_at"],
            )
            for row in rows
        ]

    async def prune_pool_snapshots(self, older_than_ms: int) -> int:
        """Delete snapshots captured before ``older_than_ms``. Returns rows removed."""
        async with self.conn.execute(
            "DELETE FROM pool_snapshots WHERE captured_at < ?", (older_than_ms,)
        ) as cursor:
            removed = cursor.rowcount

        await self.conn.commit()
        return max(removed, 0)


class RepositorySink:
    """
    Persists state edits through a Repository without blocking the caller.

    Each notification schedules a task on the running event loop; failures
    are logged when the task finishes.
    """

    def __init__(self, repository: Repository):
        self.repository = repository
        self._pending: set[asyncio.Task] = set()

    def alert_saved(self, alert: Alert) -> None:
        self._schedule(self.repository.save_alert(alert), "save alert")

    def alert_deleted(self, alert_id: str) -> None:
        self._schedule(self.repository.delete_alert(alert_id), "delete alert")

    def alert_toggled(self, alert_id: str, enabled: bool) -> None:
        self._schedule(self.repository.set_alert_enabled(alert_id, enabled), "toggle alert")

    def triggered_recorded(self, triggered: TriggeredAlert) -> None:
        self._schedule(self.repository.save_triggered_alert(triggered), "save triggered alert")

    def triggered_marked_read(self) -> None:
        self._schedule(self.repository.mark_triggered_read(), "mark triggered read")

    def triggered_cleared(self) -> None:
        self._schedule(self.repository.clear_triggered_alerts(), "clear triggered alerts")

    async def drain(self):
        """Wait for every scheduled write to finish."""
        while self._pending:
            pending = list(self._pending)
            await asyncio.gather(*pending, return_exceptions=True)
            self._pending.difference_update(pending)

    def _schedule(self, coro, action: str):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning(f"No running event loop, could not {action}")
            return

        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._finished(t, action))

    def _finished(self, task: asyncio.Task, action: str):
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Failed to {action}: {error}")
