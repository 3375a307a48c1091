"""
Outcome reporting.

Fans each ProcessingOutcome out to subscribers (statistics, notifications).
A failing subscriber is logged and never disturbs the pipeline or the other
subscribers.
"""

import os
import threading
from typing import Callable, List

from loguru import logger

from app.models.schemas import ProcessingAction, ProcessingOutcome

OutcomeHandler = Callable[[ProcessingOutcome], None]


class OutcomeReporter:
    """Thread-safe publisher of processing outcomes."""

    def __init__(self):
        self._handlers: List[OutcomeHandler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: OutcomeHandler):
        with self._lock:
            self._handlers.append(handler)

    def unsubscribe(self, handler: OutcomeHandler):
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def emit(self, outcome: ProcessingOutcome):
        """Deliver ``outcome`` to every subscriber."""
        with self._lock:
            handlers = list(self._handlers)

        for handler in handlers:
            try:
                handler(outcome)
            except Exception as e:
                logger.error(f"Outcome handler {getattr(handler, '__name__', handler)!r} failed: {e}")


class LogNotifier:
    """User-facing notification per outcome, written to the log."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def __call__(self, outcome: ProcessingOutcome):
        if not self.enabled:
            return

        file_name = os.path.basename(outcome.file_path)
        if not outcome.success:
            logger.warning(f"Failed to process MotW: {file_name}: {outcome.message}")
        elif outcome.action is ProcessingAction.REASSIGNED:
            logger.success(f"Zone Reassigned: {file_name} -> Zone {outcome.zone_id}")
        else:
            logger.success(f"MotW Removed: Successfully unblocked: {file_name}")


class OutcomeCollector:
    """Keeps every outcome in memory; handy for scans and tests."""

    def __init__(self):
        self.outcomes: List[ProcessingOutcome] = []
        self._lock = threading.Lock()

    def __call__(self, outcome: ProcessingOutcome):
        with self._lock:
            self.outcomes.append(outcome)

    def snapshot(self) -> List[ProcessingOutcome]:
        with self._lock:
            return list(self.outcomes)
