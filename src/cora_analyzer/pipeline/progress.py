"""
Progress Module - Progress events for long-running analyses.
============================================================

A run reports four steps (search, scrape, summarize, rate). Sinks are plain
callables; a failing sink is logged and ignored so it cannot break a run.
"""

from typing import Callable, Optional

from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import ProgressEvent

logger = get_logger(__name__)

TOTAL_STEPS = 4

ProgressCallback = Callable[[ProgressEvent], None]


class ProgressReporter:
    """Delivers ProgressEvents to an optional callback."""

    def __init__(self, callback: Optional[ProgressCallback] = None, total_steps: int = TOTAL_STEPS):
        self.callback = callback
        self.total_steps = total_steps

    def report(self, message: str, step: int, completed: bool = False) -> None:
        event = ProgressEvent(
            message=message, step=step, total_steps=self.total_steps, completed=completed
        )
        logger.debug(f"Progress {step}/{self.total_steps}: {message}")
        if self.callback is None:
            return
        try:
            self.callback(event)
        except Exception as e:
            logger.debug(f"Progress callback raised, ignoring: {e}")
