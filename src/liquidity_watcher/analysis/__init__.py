"""Console reporting for pool snapshots."""

from .dashboard import (
    print_banner,
    print_footer,
    print_opportunities,
    print_pool_history,
    print_pool_table,
    print_snapshot_summary,
    print_triggered_alerts,
)

__all__ = [
    "print_banner",
    "print_footer",
    "print_opportunities",
    "print_pool_history",
    "print_pool_table",
    "print_snapshot_summary",
    "print_triggered_alerts",
]
