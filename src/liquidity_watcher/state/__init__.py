"""Application state and bounded history."""

from .app_state import AppState, PersistenceSink
from .history import TransactionHistory, TriggeredAlertLog

__all__ = ["AppState", "PersistenceSink", "TransactionHistory", "TriggeredAlertLog"]
