"""Append-only reading history stores."""

from solar_optimizer.history.base import (
    HistoryError,
    HistoryReadError,
    HistorySink,
    HistoryWriteError,
)

__all__ = ["HistoryError", "HistoryReadError", "HistorySink", "HistoryWriteError"]
