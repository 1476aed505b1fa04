"""Alert logging - formats and outputs triggered alerts to console and file."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ..formatting import format_timestamp_ms
from .monitor import TriggeredAlert


class AlertFormatter(logging.Formatter):
    """Custom formatter for triggered alert messages."""

    ALERT_FORMAT = """
================================================================================
{timestamp} | ALERT | {metric} {condition}
--------------------------------------------------------------------------------
  Pool:        {pool_name}
  Pool ID:     {pool_id}
  Threshold:   {threshold:,.2f}
  Current:     {current:,.2f}
  Rule:        {alert_id}
================================================================================
"""

    def format(self, record: logging.LogRecord) -> str:
        if hasattr(record, "triggered"):
            return self._format_alert(record.triggered)
        return super().format(record)

    def _format_alert(self, triggered: TriggeredAlert) -> str:
        alert = triggered.alert
        return self.ALERT_FORMAT.format(
            timestamp=format_timestamp_ms(triggered.triggered_at),
            metric=alert.metric.upper(),
            condition=alert.condition.upper(),
            pool_name=alert.pool_name or "Unknown",
            pool_id=alert.pool_id,
            threshold=alert.value,
            current=triggered.current_value,
            alert_id=alert.id,
        )


class AlertLogger:
    """Handles triggered alert output to console and file."""

    def __init__(
        self,
        log_file: str | Path,
        log_level: str = "INFO",
        max_file_size_mb: int = 10,
        backup_count: int = 5,
    ):
        self.log_file = Path(log_file)
        self.log_level = getattr(logging, log_level.upper(), logging.INFO)
        self.max_file_size = max_file_size_mb * 1024 * 1024
        self.backup_count = backup_count

        self._logger = logging.getLogger("liquidity_watcher.alerts")
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging handlers."""
        self._logger.setLevel(self.log_level)
        self._logger.handlers.clear()
        self._logger.propagate = False

        # Ensure log directory exists
        self.log_file.parent.mkdir(parents=True, exist_ok=True)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(AlertFormatter())
        self._logger.addHandler(console_handler)

        # File handler with rotation
        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
        )
        file_handler.setLevel(self.log_level)
        file_handler.setFormatter(AlertFormatter())
        self._logger.addHandler(file_handler)

    def log_alert(self, triggered: TriggeredAlert):
        """Log a triggered alert to console and file."""
        record = self._logger.makeRecord(
            name="liquidity_watcher.alerts",
            level=logging.WARNING,
            fn="",
            lno=0,
            msg="Alert triggered",
            args=(),
            exc_info=None,
        )
        record.triggered = triggered
        self._logger.handle(record)

    def close(self):
        """Flush and detach handlers."""
        for handler in list(self._logger.handlers):
            handler.close()
            self._logger.removeHandler(handler)


def setup_app_logging(level: str = "INFO"):
    """Set up application-wide logging."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Configure root logger
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from libraries
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
