from __future__ import annotations
import asyncio
import logging
import sys
from typing import Awaitable, List, Set

import PySide6.QtAsyncio as QtAsyncio
from PySide6.QtWidgets import QApplication, QSystemTrayIcon, QMenu
from PySide6.QtGui import QAction, QCursor
from PySide6.QtCore import Qt

from .authorization import AuthorizationGate
from .db import connect, migrate
from .engine import ReconcileResult, ReminderEngine
from .notifications import DeliveredReminder, Notifier, TrayDelivery, TrayPermission
from .repository import Repository
from .resources import tray_icon
from .scheduler import RecheckScheduler
from .service import DailyLog
from .ui.panel import TodayPanel
from .ui.settings import SettingsDialog

logger = logging.getLogger(__name__)

_background: Set[asyncio.Task] = set()


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)
    app.setWindowIcon(tray_icon())
    app.setQuitOnLastWindowClosed(False)

    conn = connect()
    migrate(conn)
    repo = Repository(conn)
    settings = repo.get_settings()

    tray = QSystemTrayIcon()
    tray.setIcon(tray_icon())
    tray.setToolTip("Lifeloop")

    permission = TrayPermission(repo)
    gate = AuthorizationGate(prompt=permission.prompt, probe=permission.probe)
    delivery = TrayDelivery()
    engine = ReminderEngine(gate, delivery, skincare_mode=settings.skincare_mode)
    log = DailyLog(repo, engine)

    panel = TodayPanel(log)
    notifier = Notifier(tray)
    rechecker = RecheckScheduler(log)
    rechecker.rechecked.connect(lambda results: _show_failures(results, panel))

    delivery.delivered.connect(lambda ev: _on_delivered(ev, notifier, rechecker, panel))
    tray.messageClicked.connect(lambda: _show_panel(panel))

    menu = QMenu()

    act_open = QAction("Open")
    act_open.triggered.connect(lambda: _show_panel(panel))
    menu.addAction(act_open)

    menu.addSeparator()

    act_settings = QAction("Settings…")
    act_settings.triggered.connect(lambda: _open_settings(log, rechecker, panel))
    menu.addAction(act_settings)

    act_reset = QAction("Clear pending reminders")
    act_reset.triggered.connect(lambda: _spawn(log.reset_reminders()))
    menu.addAction(act_reset)

    menu.addSeparator()

    def quit_cleanly():
        # Ensure tray icon disappears immediately; avoids some Qt shutdown warnings.
        rechecker.stop()
        tray.hide()
        panel.close()
        app.quit()

    act_quit = QAction("Quit")
    act_quit.triggered.connect(quit_cleanly)
    menu.addAction(act_quit)

    tray.setContextMenu(menu)

    if sys.platform.startswith("win"):
        def _show_menu_on_left_click(reason: QSystemTrayIcon.ActivationReason):
            if reason == QSystemTrayIcon.ActivationReason.Trigger:
                cm = tray.contextMenu()
                if cm is not None:
                    cm.popup(QCursor.pos())

        tray.activated.connect(_show_menu_on_left_click)

    app.applicationStateChanged.connect(
        lambda state: rechecker.activate() if state == Qt.ApplicationState.ApplicationActive else None
    )

    tray.show()

    async def startup() -> None:
        rechecker.start()
        await log.reconcile_all()

    # Qt's event loop drives asyncio: one thread for widgets, timers and the engine.
    QtAsyncio.run(startup(), keep_running=True, quit_qapp=True, handle_sigint=True)
    return 0


def _spawn(coro: Awaitable) -> None:
    task = asyncio.ensure_future(coro)
    _background.add(task)
    task.add_done_callback(_background.discard)


def _show_panel(panel: TodayPanel) -> None:
    panel.refresh()
    panel.show()
    panel.raise_()
    panel.activateWindow()


def _on_delivered(ev: DeliveredReminder, notifier: Notifier, rechecker: RecheckScheduler, panel: TodayPanel) -> None:
    notifier.remind(ev.title, ev.body)
    rechecker.on_delivered(ev)
    panel.refresh()


def _show_failures(results: List[ReconcileResult], panel: TodayPanel) -> None:
    failed = [r for r in results if not r.ok]
    if failed:
        panel.show_warning(f"Reminder {failed[0].delivery_id} could not be scheduled: {failed[0].error}")


def _open_settings(log: DailyLog, rechecker: RecheckScheduler, panel: TodayPanel) -> None:
    before = log.repo.get_settings()
    dlg = SettingsDialog(log.repo, parent=panel)

    async def apply() -> None:
        form = dlg.form()
        if form.skincare_mode != before.skincare_mode:
            await log.set_skincare_mode(form.skincare_mode)

        await log.engine.gate.refresh_status()
        if form.notifications_allowed:
            # explicit user action: may prompt again
            await log.enable_notifications()
        else:
            await log.reconcile_all()
        panel.refresh()

    def _accepted() -> None:
        rechecker.start()
        _spawn(apply())

    dlg.accepted.connect(_accepted)
    dlg.open()


if __name__ == "__main__":
    sys.exit(main())
