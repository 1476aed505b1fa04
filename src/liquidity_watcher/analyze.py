"""CLI tool to take a one-shot pool snapshot and print opportunities."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .analysis.dashboard import (
    print_banner,
    print_footer,
    print_opportunities,
    print_pool_history,
    print_pool_table,
    print_snapshot_summary,
    print_triggered_alerts,
)
from .api.pool_api import PoolApiClient
from .config import Config, load_config, scoring_config
from .db.repository import Repository
from .detection.opportunities import OpportunityDetector
from .filters import FilterState, apply_filters


async def main_async(args):
    """Async main function."""
    # Set up logging
    log_level = logging.DEBUG if args.debug else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    config_path = Path(args.config)
    config = load_config(config_path) if config_path.exists() else Config()

    client = PoolApiClient(config.api, scoring=scoring_config(config))
    try:
        print("Fetching pools...", flush=True)
        pools, _verified = await client.fetch_snapshot()
    finally:
        await client.close()

    if not pools:
        print("No pools from any source.")
        sys.exit(1)

    opportunities = OpportunityDetector(config.detection).detect(pools)
    filtered = apply_filters(
        pools,
        FilterState(safe_only=args.safe_only),
        hide_danger=config.refresh.hide_danger,
    )

    print_banner("LIQUIDITY POOL SCAN")
    print_snapshot_summary(pools)
    print_opportunities(opportunities)
    print_pool_table(filtered, limit=args.limit)

    if args.alerts or args.history:
        triggered, snapshots = await read_database(config, args)
        if args.alerts:
            print_triggered_alerts(triggered)
        if args.history:
            print_pool_history(args.history, snapshots)
    print_footer()


async def read_database(config: Config, args):
    """Read recent triggered alerts and one pool's history from the watcher database."""
    db_path = Path(config.database.path)
    if not db_path.exists():
        print(f"No database at {db_path}")
        return [], []

    repository = Repository(db_path)
    await repository.initialize()
    try:
        triggered = []
        snapshots = []
        if args.alerts:
            triggered = await repository.load_triggered_alerts(config.alerts.max_triggered)
        if args.history:
            snapshots = await repository.pool_snapshot_history(args.history, hours=args.hours)
        return triggered, snapshots
    finally:
        await repository.close()


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Scan liquidity pools once and print ranked opportunities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan with defaults
  liquidity-scan

  # Show the top 50 safe pools
  liquidity-scan --limit 50 --safe-only

  # Include a pool's last 6 hours of recorded metrics
  liquidity-scan --history <pool address> --hours 6
        """,
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default="config.yaml",
        help="Path to configuration file; defaults are used if missing",
    )

    parser.add_argument(
        "--limit",
        "-l",
        type=int,
        default=20,
        help="Number of pools to list (default: 20)",
    )

    parser.add_argument(
        "--safe-only",
        "-s",
        action="store_true",
        help="Only list pools classified as safe",
    )

    parser.add_argument(
        "--alerts",
        "-a",
        action="store_true",
        help="Also list recent triggered alerts from the watcher database",
    )

    parser.add_argument(
        "--history",
        metavar="ADDRESS",
        help="Also print recorded metrics for one pool address",
    )

    parser.add_argument(
        "--hours",
        type=float,
        default=24,
        help="How many hours of pool history to print (default: 24)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("\nScan interrupted.")
        sys.exit(0)


if __name__ == "__main__":
    main()
