"""Console dashboard for pool snapshots, opportunities and triggered alerts."""

from collections import Counter
from datetime import datetime

from ..alerting.monitor import TriggeredAlert
from ..db.repository import PoolSnapshot
from ..detection.opportunities import Opportunity
from ..formatting import format_large_number, format_timestamp_ms
from ..pools import Pool

SAFETY_COLORS = {
    "safe": "\033[92m",
    "warning": "\033[93m",
    "danger": "\033[91m",
}
RESET = "\033[0m"

OPP_TYPE_LABELS = {"hot": "HOT", "active": "ACTIVE", "standard": ""}


def create_bar(value: float, max_value: float, width: int = 20) -> str:
    """Create a simple ASCII progress bar."""
    if max_value <= 0:
        return " " * width
    filled = int((value / max_value) * width)
    filled = max(0, min(filled, width))
    return "█" * filled + "░" * (width - filled)


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


def colored_safety(safety: str) -> str:
    return f"{SAFETY_COLORS.get(safety, '')}{safety.upper():<7}{RESET}"


def print_header(title: str, width: int = 80):
    """Print a section header."""
    print()
    print("═" * width)
    print(f"  {title}")
    print("═" * width)


def print_banner(title: str, width: int = 78):
    print()
    print("╔" + "═" * width + "╗")
    print("║" + f" {title} ".center(width) + "║")
    print("╚" + "═" * width + "╝")


def print_snapshot_summary(pools: list[Pool]):
    """Print totals and the safety breakdown of a snapshot."""
    total_tvl = sum(pool.tvl for pool in pools)
    total_volume = sum(pool.volume for pool in pools)
    by_safety = Counter(pool.safety for pool in pools)
    by_protocol = Counter(pool.protocol for pool in pools)

    print(f"""
  ┌────────────────────────┬────────────────────────┬────────────────────────┐
  │   POOLS                │   TOTAL TVL            │   24H VOLUME           │
  │   {len(pools):>18,}   │   {format_large_number(total_tvl):>18}   │   {format_large_number(total_volume):>18}   │
  └────────────────────────┴────────────────────────┴────────────────────────┘
    """)

    print("  Safety:")
    for safety in ("safe", "warning", "danger"):
        count = by_safety.get(safety, 0)
        print(f"    {colored_safety(safety)} {create_bar(count, len(pools), 20)} {count:>6,}")

    print()
    print("  Sources:")
    for protocol, count in by_protocol.most_common():
        print(f"    {protocol:<18} {count:>6,}")


def print_opportunities(opportunities: list[Opportunity]):
    """Print the ranked opportunity list with reasons."""
    print_header(f"OPPORTUNITIES ({len(opportunities)})")

    if not opportunities:
        print()
        print("  No pools qualify right now.")
        return

    for i, opp in enumerate(opportunities, start=1):
        pool = opp.pool
        label = OPP_TYPE_LABELS.get(opp.opp_type, "")
        tag = f" [{label}]" if label else ""
        print()
        print(f"  {i:>2}. {truncate(pool.name, 30)}{tag}  ({pool.protocol})")
        print(
            f"      Score {pool.score:>2}  TVL {format_large_number(pool.tvl):>9}  "
            f"Vol {format_large_number(pool.volume):>9}  APR {pool.apr:>7}%"
        )
        print(f"      {opp.reason}")


def print_pool_table(pools: list[Pool], limit: int = 20):
    """Print the top pools as a table."""
    print_header(f"TOP POOLS (showing {min(limit, len(pools))} of {len(pools)})")
    print()
    print(
        f"    {'Pool':<24} {'Protocol':<16} {'Safety':<7} {'Score':>5} "
        f"{'TVL':>10} {'Volume':>10} {'APR':>8}"
    )
    print("    " + "─" * 86)

    for pool in pools[:limit]:
        print(
            f"    {truncate(pool.name, 24):<24} {pool.protocol:<16} {colored_safety(pool.safety)} "
            f"{pool.score:>5} {format_large_number(pool.tvl):>10} "
            f"{format_large_number(pool.volume):>10} {pool.apr:>7}%"
        )


def print_triggered_alerts(triggered: list[TriggeredAlert]):
    """Print triggered alerts, newest first."""
    if not triggered:
        return

    print_header(f"TRIGGERED ALERTS ({len(triggered)})")
    print()
    for event in triggered:
        alert = event.alert
        marker = " " if event.read else "●"
        print(
            f"  {marker} {format_timestamp_ms(event.triggered_at)}  "
            f"{truncate(alert.pool_name, 24):<24} {alert.metric} {alert.condition} "
            f"{alert.value:,.2f} (now {event.current_value:,.2f})"
        )


def print_pool_history(address: str, snapshots: list[PoolSnapshot]):
    """Print recorded metrics for one pool, oldest first."""
    name = snapshots[-1].pool_name if snapshots else address
    print_header(f"HISTORY: {truncate(name, 40)} ({len(snapshots)} snapshots)")
    print()

    if not snapshots:
        print("  No snapshots recorded for this pool.")
        return

    max_tvl = max(snapshot.tvl for snapshot in snapshots)
    print(
        f"    {'Captured':<19} {'TVL':>10} {'Volume':>10} {'APR':>8} "
        f"{'Score':>5}  TVL trend"
    )
    print("    " + "─" * 80)

    for snapshot in snapshots:
        print(
            f"    {format_timestamp_ms(snapshot.captured_at):<19} "
            f"{format_large_number(snapshot.tvl):>10} {format_large_number(snapshot.volume):>10} "
            f"{snapshot.apr:>7}% {snapshot.score:>5}  {create_bar(snapshot.tvl, max_tvl)}"
        )


def print_footer():
    print()
    print("─" * 80)
    print(f"  Generated at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("─" * 80)
    print()
