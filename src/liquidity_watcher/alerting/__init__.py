"""Alert evaluation and output."""

from .logger import AlertFormatter, AlertLogger, setup_app_logging
from .monitor import (
    ALERT_CONDITIONS,
    ALERT_METRICS,
    Alert,
    AlertMonitor,
    TriggeredAlert,
    metric_value,
    now_ms,
)

__all__ = [
    "ALERT_CONDITIONS",
    "ALERT_METRICS",
    "Alert",
    "AlertFormatter",
    "AlertLogger",
    "AlertMonitor",
    "TriggeredAlert",
    "metric_value",
    "now_ms",
    "setup_app_logging",
]
