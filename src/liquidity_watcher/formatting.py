"""Human-readable number formatting for reasons, alerts and the dashboard."""

from datetime import datetime


def format_large_number(value: float) -> str:
    """Format USD amounts with K/M/B suffixes."""
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.2f}B"
    elif value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    elif value >= 1_000:
        return f"${value / 1_000:.1f}K"
    return f"${value:.2f}"


def format_percent(ratio: float, decimals: int = 2) -> str:
    """Format a ratio (0.0123) as a percentage string (1.23%)."""
    return f"{ratio * 100:.{decimals}f}%"


def format_timestamp_ms(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")
