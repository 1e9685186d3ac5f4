from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from PySide6.QtCore import QObject, QTimer, Signal
from PySide6.QtWidgets import QMessageBox, QSystemTrayIcon

from .delivery import DeliveryAdapter, ReminderPayload
from .errors import AuthorizationDenied, DeliveryAdapterError
from .periods import now_utc
from .repository import Repository

logger = logging.getLogger(__name__)

# QTimer intervals are signed 32-bit milliseconds (~24.8 days)
MAX_TIMER_MS = 2**31 - 1
# Same ceiling the phone notification center enforces
MAX_PENDING = 64


@dataclass(frozen=True)
class DeliveredReminder:
    delivery_id: str
    title: str
    body: str


class TrayDelivery(QObject, DeliveryAdapter):
    """
    Delivery adapter backed by one single-shot QTimer per identifier.

    Must live on the Qt main thread; with QtAsyncio the engine's coroutines
    run there too.
    """

    delivered = Signal(object)  # DeliveredReminder

    def __init__(
        self,
        parent: Optional[QObject] = None,
        clock: Callable[[], datetime] = now_utc,
        max_pending: int = MAX_PENDING,
    ):
        super().__init__(parent)
        self.clock = clock
        self.max_pending = max_pending
        self._timers: Dict[str, QTimer] = {}
        self._due: Dict[str, datetime] = {}
        self._payloads: Dict[str, ReminderPayload] = {}

    async def schedule(self, delivery_id: str, trigger_at: datetime, payload: ReminderPayload) -> None:
        if delivery_id in self._timers:
            raise DeliveryAdapterError(f"{delivery_id} is already pending", delivery_id)
        if len(self._timers) >= self.max_pending:
            raise DeliveryAdapterError(f"too many pending reminders ({self.max_pending})", delivery_id)

        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.timeout.connect(lambda did=delivery_id: self._on_timeout(did))
        self._timers[delivery_id] = timer
        self._due[delivery_id] = trigger_at
        self._payloads[delivery_id] = payload
        self._arm(delivery_id)

    async def cancel(self, delivery_id: str) -> None:
        timer = self._timers.pop(delivery_id, None)
        self._due.pop(delivery_id, None)
        self._payloads.pop(delivery_id, None)
        if timer is not None:
            timer.stop()
            timer.deleteLater()

    async def cancel_all(self) -> None:
        for did in list(self._timers):
            await self.cancel(did)

    def pending_ids(self) -> List[str]:
        return sorted(self._timers)

    def trigger_time(self, delivery_id: str) -> Optional[datetime]:
        return self._due.get(delivery_id)

    def _arm(self, delivery_id: str) -> None:
        remaining_ms = int((self._due[delivery_id] - self.clock()).total_seconds() * 1000)
        self._timers[delivery_id].start(max(0, min(remaining_ms, MAX_TIMER_MS)))

    def _on_timeout(self, delivery_id: str) -> None:
        if delivery_id not in self._timers:
            return

        # Long waits are chained in MAX_TIMER_MS steps
        if self._due[delivery_id] > self.clock():
            self._arm(delivery_id)
            return

        payload = self._payloads[delivery_id]
        timer = self._timers.pop(delivery_id)
        self._due.pop(delivery_id, None)
        self._payloads.pop(delivery_id, None)
        timer.deleteLater()

        logger.info("Delivering reminder %s", delivery_id)
        self.delivered.emit(DeliveredReminder(delivery_id=delivery_id, title=payload.title, body=payload.body))


class TrayPermission:
    """
    Desktop stand-in for the OS permission prompt.

    The user's answer is stored in settings so it survives restarts; turning it
    off in Settings acts like revoking the permission in the OS.
    """

    def __init__(self, repo: Repository, parent=None):
        self.repo = repo
        self.parent = parent

    async def prompt(self) -> bool:
        stored = self.repo.get_settings().notifications_allowed
        if stored is not None:
            if not stored:
                raise AuthorizationDenied("notifications disabled in settings")
            return self._tray_can_notify()

        box = QMessageBox(self.parent)
        box.setWindowTitle("Lifeloop")
        box.setText("Allow Lifeloop to show reminder notifications?")
        box.setStandardButtons(QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No)

        answer: asyncio.Future = asyncio.get_running_loop().create_future()

        def _done(_result: int) -> None:
            if not answer.done():
                clicked = box.standardButton(box.clickedButton())
                answer.set_result(clicked == QMessageBox.StandardButton.Yes)

        box.finished.connect(_done)
        box.open()
        granted = bool(await answer)
        box.deleteLater()

        self.repo.set_notifications_allowed(granted)
        if not granted:
            raise AuthorizationDenied("user declined notifications")
        return self._tray_can_notify()

    async def probe(self) -> bool:
        return bool(self.repo.get_settings().notifications_allowed) and self._tray_can_notify()

    def _tray_can_notify(self) -> bool:
        return QSystemTrayIcon.isSystemTrayAvailable() and QSystemTrayIcon.supportsMessages()


class Notifier:
    def __init__(self, tray: QSystemTrayIcon):
        self.tray = tray

    def remind(self, title: str, message: str) -> None:
        # Cross-platform "native-ish" balloon/toast
        self.tray.showMessage(title, message, QSystemTrayIcon.MessageIcon.Information, 10_000)
