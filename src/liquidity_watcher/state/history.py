"""Memory-bounded history - recent transactions per pool and triggered alerts."""

import logging
from collections.abc import Collection, Iterator

from ..alerting.monitor import TriggeredAlert
from ..pools import PoolTransaction

logger = logging.getLogger(__name__)


class TransactionHistory:
    """
    Recent transactions for a bounded number of pools.

    Each pool keeps at most ``max_transactions`` entries, newest first. At most
    ``max_pools`` pool ids are tracked; on overflow the oldest-written ids are
    evicted, skipping the id being written and any id in ``active_ids``. When
    only protected ids remain the mapping stays above the cap until the
    active ids change.
    """

    def __init__(self, max_pools: int = 8, max_transactions: int = 15):
        self.max_pools = max_pools
        self.max_transactions = max_transactions
        # Insertion order doubles as write order: writes move a key to the end
        self._by_pool: dict[str, list[PoolTransaction]] = {}

    def add(
        self,
        pool_id: str,
        tx: PoolTransaction,
        active_ids: Collection[str] = (),
    ) -> None:
        """Insert a transaction at the front of a pool's history."""
        existing = self._by_pool.pop(pool_id, [])
        self._by_pool[pool_id] = [tx, *existing][: self.max_transactions]
        self._enforce_pool_cap(pool_id, active_ids)

    def replace(
        self,
        pool_id: str,
        txs: list[PoolTransaction],
        active_ids: Collection[str] = (),
    ) -> None:
        """Replace a pool's history wholesale (newest first)."""
        self._by_pool.pop(pool_id, None)
        self._by_pool[pool_id] = list(txs[: self.max_transactions])
        self._enforce_pool_cap(pool_id, active_ids)

    def evict(self, pool_id: str | None) -> bool:
        """Drop a pool's history immediately. Returns True if anything was removed."""
        if pool_id is None:
            return False
        return self._by_pool.pop(pool_id, None) is not None

    def get(self, pool_id: str) -> list[PoolTransaction]:
        return list(self._by_pool.get(pool_id, []))

    def pool_ids(self) -> list[str]:
        return list(self._by_pool)

    def __contains__(self, pool_id: object) -> bool:
        return pool_id in self._by_pool

    def __len__(self) -> int:
        return len(self._by_pool)

    def _enforce_pool_cap(self, written_id: str, active_ids: Collection[str]) -> None:
        if len(self._by_pool) <= self.max_pools:
            return

        for pool_id in list(self._by_pool):
            if len(self._by_pool) <= self.max_pools:
                break
            if pool_id == written_id or pool_id in active_ids:
                continue
            del self._by_pool[pool_id]
            logger.debug(f"Evicted transaction history for {pool_id}")

        if len(self._by_pool) > self.max_pools:
            logger.debug(
                f"Transaction history holds {len(self._by_pool)} pools; "
                f"remaining ids are active"
            )


class TriggeredAlertLog:
    """Newest-first log of triggered alerts, capped at ``max_entries``."""

    def __init__(self, max_entries: int = 50):
        self.max_entries = max_entries
        self._entries: list[TriggeredAlert] = []

    def append(self, triggered: TriggeredAlert) -> None:
        self._entries.insert(0, triggered)
        del self._entries[self.max_entries :]

    def extend(self, triggered: list[TriggeredAlert]) -> None:
        for item in triggered:
            self.append(item)

    def mark_all_read(self) -> int:
        """Mark every entry read. Returns how many were unread."""
        count = 0
        for entry in self._entries:
            if not entry.read:
                entry.read = True
                count += 1
        return count

    def clear(self) -> None:
        self._entries.clear()

    @property
    def unread_count(self) -> int:
        return sum(1 for entry in self._entries if not entry.read)

    def entries(self) -> list[TriggeredAlert]:
        return list(self._entries)

    def __iter__(self) -> Iterator[TriggeredAlert]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
