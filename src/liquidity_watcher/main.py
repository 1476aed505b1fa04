"""Main entry point for Liquidity Watcher."""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from .alerting import AlertLogger, AlertMonitor, now_ms, setup_app_logging
from .api import PoolApiClient, TransactionStreamClient
from .config import Config, load_config, scoring_config
from .db import Repository, RepositorySink
from .detection import OpportunityDetector, RefreshPipeline
from .pools import PoolTransaction
from .state import AppState

logger = logging.getLogger(__name__)


class LiquidityWatcher:
    """Main application class that orchestrates all components."""

    def __init__(self, config: Config):
        self.config = config
        self._running = False

        # Initialize components
        self.repository = Repository(config.database.path)
        self.sink = RepositorySink(self.repository)
        self.api = PoolApiClient(config.api, scoring=scoring_config(config))
        self.alert_logger = AlertLogger(
            log_file=config.logging.file,
            log_level=config.logging.level,
            max_file_size_mb=config.logging.max_file_size_mb,
            backup_count=config.logging.backup_count,
        )

        self.state = AppState(
            sink=self.sink,
            hide_danger=config.refresh.hide_danger,
            max_triggered=config.alerts.max_triggered,
            max_tracked_pools=config.history.max_tracked_pools,
            max_transactions_per_pool=config.history.max_transactions_per_pool,
        )
        self.pipeline = RefreshPipeline(
            self.state,
            detector=OpportunityDetector(config.detection),
            monitor=AlertMonitor(cooldown_ms=config.alerts.cooldown_ms),
        )

        # Transaction stream for expanded pools
        self.stream = TransactionStreamClient(
            config.api.transaction_ws_url,
            on_transaction=self._on_transaction,
        )
        self._stream_task: asyncio.Task | None = None
        self._last_cleanup = 0

    async def start(self):
        """Start the watcher and run refresh cycles until stopped."""
        logger.info("Starting Liquidity Watcher...")

        # Initialize database and restore persisted alerts
        await self.repository.initialize()
        self.state.set_alerts(await self.repository.load_alerts())
        self.state.load_triggered(
            await self.repository.load_triggered_alerts(self.config.alerts.max_triggered)
        )
        self.pipeline.monitor.restore(self.state.triggered)
        logger.info(
            f"Loaded {len(self.state.alerts)} alerts, "
            f"{len(self.state.triggered)} triggered alerts"
        )

        detection = self.config.detection
        logger.info(
            f"Refresh every {self.config.refresh.interval_seconds}s, "
            f"max_opportunities={detection.max_opportunities}, "
            f"alert cooldown={self.config.alerts.cooldown_ms // 1000}s"
        )

        self._stream_task = asyncio.create_task(self.stream.connect())

        self._running = True
        while self._running:
            await self.refresh_once()
            await asyncio.sleep(self.config.refresh.interval_seconds)

    async def refresh_once(self):
        """Run one refresh cycle and log any alerts it triggers."""
        try:
            triggered = await self.pipeline.refresh(self.api.fetch_snapshot)
        except Exception as e:
            logger.error(f"Refresh failed: {e}", exc_info=True)
            return

        if triggered is None:
            return

        for event in triggered:
            self.alert_logger.log_alert(event)

        try:
            await self.repository.save_pool_snapshots(self.state.pools)
        except Exception as e:
            logger.warning(f"Could not save pool snapshots: {e}")

        await self.cleanup_if_due()

        logger.info(
            f"Refreshed {len(self.state.pools)} pools: "
            f"{len(self.state.opportunities)} opportunities, {len(triggered)} alerts"
        )

    async def cleanup_if_due(self, now: int | None = None):
        """Prune old pool snapshots and trim stored triggered alerts once per interval."""
        now = now_ms() if now is None else now
        database = self.config.database
        if now - self._last_cleanup < database.cleanup_interval_seconds * 1000:
            return
        self._last_cleanup = now

        cutoff = now - int(database.snapshot_retention_hours * 3_600_000)
        try:
            snapshots = await self.repository.prune_pool_snapshots(cutoff)
            triggered = await self.repository.trim_triggered_alerts(self.config.alerts.max_triggered)
        except Exception as e:
            logger.warning(f"Database cleanup failed: {e}")
            return

        logger.info(f"Cleanup removed {snapshots} pool snapshots, {triggered} triggered alerts")

    async def expand_pool(self, pool_id: str):
        """Toggle a pool's detail view and follow its transactions."""
        previous = self.state.active_ids()
        self.state.toggle_pool(pool_id)
        await self._sync_subscriptions(previous)

    async def expand_opportunity(self, opp_id: str):
        """Toggle an opportunity's detail view and follow its transactions."""
        previous = self.state.active_ids()
        self.state.toggle_opportunity(opp_id)
        await self._sync_subscriptions(previous)

    async def _sync_subscriptions(self, previous: set[str]):
        current = self.state.active_ids()
        for pool_id in previous - current:
            pool = self.state.pool_by_id(pool_id)
            if pool:
                await self.stream.unsubscribe(pool.address)
        for pool_id in current - previous:
            pool = self.state.pool_by_id(pool_id)
            if pool:
                await self.stream.subscribe(pool.address)

    async def stop(self):
        """Stop the watcher gracefully."""
        logger.info("Stopping Liquidity Watcher...")
        self._running = False

        await self.stream.disconnect()
        if self._stream_task:
            self._stream_task.cancel()
            try:
                await self._stream_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Transaction stream ended with error: {e}")

        await self.sink.drain()
        await self.api.close()
        await self.repository.close()
        self.alert_logger.close()

        # Log final stats
        stats = self.pipeline.stats
        logger.info(
            f"Final stats: {stats['cycles_completed']} refreshes, "
            f"{stats['stale_discarded']} stale discarded, "
            f"{stats['alerts_triggered']} alerts triggered"
        )

    async def _on_transaction(self, address: str, tx: PoolTransaction):
        """Record a streamed transaction against its pool."""
        pool = self.state.pool_by_address(address)
        if pool is None:
            logger.debug(f"Transaction for unknown pool {address}")
            return
        self.state.add_pool_transaction(pool.id, tx)
        logger.debug(f"{pool.name}: {tx.type} {tx.amount} SOL ({tx.signature[:12]}...)")


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Liquidity Watcher - Score pools, surface opportunities and fire alerts"
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def main_async(args):
    """Async main function."""
    # Load configuration
    config_path = Path(args.config)
    if not config_path.exists():
        logger.error(f"Configuration file not found: {config_path}")
        sys.exit(1)

    config = load_config(config_path)

    # Override log level if debug flag is set
    if args.debug:
        config.logging.level = "DEBUG"

    # Set up logging
    setup_app_logging(config.logging.level)

    # Create and start watcher
    watcher = LiquidityWatcher(config)

    # Handle shutdown signals
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    # Start watcher in background
    watcher_task = asyncio.create_task(watcher.start())

    # Wait for shutdown signal
    await shutdown_event.wait()

    # Stop watcher
    watcher_task.cancel()
    try:
        await watcher_task
    except asyncio.CancelledError:
        pass

    await watcher.stop()


def main():
    """Main entry point."""
    args = parse_args()

    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
