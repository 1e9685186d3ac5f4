from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Optional, Set
from PySide6.QtCore import QObject, QTimer, Signal

from .notifications import DeliveredReminder
from .service import DailyLog

logger = logging.getLogger(__name__)


class RecheckScheduler(QObject):
    """
    Re-evaluates the fixed skincare slots without waiting for the app to be reopened.

    Runs on a QTimer tick, on application activation, and right after a
    reminder fires so the next day's slot gets armed.
    """

    rechecked = Signal(object)  # List[ReconcileResult]

    def __init__(self, log: DailyLog, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.log = log
        self.timer = QTimer(self)
        self.timer.timeout.connect(self.tick)
        self._tasks: Set[asyncio.Task] = set()

    def start(self) -> None:
        minutes = self.log.repo.get_settings().recheck_interval_minutes
        self.timer.setInterval(max(1, minutes) * 60_000)
        self.timer.start()
        # also check right after launch
        QTimer.singleShot(0, self.activate)

    def stop(self) -> None:
        self.timer.stop()

    def tick(self) -> None:
        self._spawn(self.log.recheck_slots())

    def activate(self) -> None:
        self._spawn(self.log.on_activation())

    def on_delivered(self, ev: DeliveredReminder) -> None:
        self.log.engine.mark_delivered(ev.delivery_id)
        self._spawn(self.log.recheck_slots())

    def _spawn(self, coro: Awaitable) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Reminder re-check failed", exc_info=exc)
            return
        self.rechecked.emit(task.result())
