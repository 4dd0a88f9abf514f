"""Periodic re-evaluation of a visible class list."""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from class_sessions.domain.classes import ClassDefinition, Viewer
from class_sessions.domain.eligibility import EligibilityResult
from class_sessions.services.eligibility import JoinEligibilityEngine

_logger = logging.getLogger(__name__)

Evaluations = list[tuple[ClassDefinition, EligibilityResult]]


@dataclass
class EligibilityTicker:
    """Re-evaluates a class list on every tick and on every list refresh.

    Owns a single asyncio task; call `stop()` when the view goes away.
    """

    engine: JoinEligibilityEngine
    viewer: Viewer
    on_update: Callable[[Evaluations], None]
    interval_seconds: float = 60.0
    classes: list[ClassDefinition] = field(default_factory=list)
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def refresh(self, classes: list[ClassDefinition] | None = None) -> Evaluations:
        """Optionally replace the class list, then evaluate and publish."""
        if classes is not None:
            self.classes = list(classes)
        evaluations = self.engine.evaluate_many(self.classes, self.viewer)
        try:
            self.on_update(evaluations)
        except Exception:
            _logger.exception("Eligibility update callback failed")
        return evaluations

    def start(self) -> None:
        """Evaluate now and schedule a re-evaluation every interval."""
        if self.running:
            return
        self.refresh()
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Cancel the timer task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.refresh()
