"""QThread worker for plant catalog searches."""

from __future__ import annotations

import traceback

from loguru import logger
from PySide6.QtCore import QObject, Signal, Slot

from gardenmap.core.collaborators import PlantLookup


class PlantLookupWorker(QObject):
    """Background worker running one plant search."""

    sigFinished = Signal(str, list)
    sigFailed = Signal(str)
    sigCancelled = Signal()

    def __init__(self, lookup: PlantLookup, query: str) -> None:
        super().__init__()
        self.lookup = lookup
        self.query = query
        self._cancelled = False

    def request_cancel(self) -> None:
        """Request best-effort cancellation."""
        self._cancelled = True

    @Slot()
    def run(self) -> None:
        """Execute the search and emit the query with its results."""
        if self._cancelled:
            self.sigCancelled.emit()
            return
        try:
            references = self.lookup.search(self.query)
        except Exception as exc:
            message = format_worker_exception(exc)
            logger.error(message)
            self.sigFailed.emit(message)
            return
        if self._cancelled:
            self.sigCancelled.emit()
            return
        self.sigFinished.emit(self.query, list(references))


def format_worker_exception(exc: Exception) -> str:
    """Format exception into message with traceback details."""
    trace_text = traceback.format_exc()
    if not trace_text or trace_text == "NoneType: None\n":
        trace_text = "\n".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return f"{type(exc).__name__}: {exc}\n{trace_text.strip()}"
