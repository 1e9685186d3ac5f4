from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Optional, Set, Tuple

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QListWidget, QListWidgetItem,
    QMessageBox, QMenu
)

from ..models import SlotStatus, TimeOfDay
from ..periods import to_local
from ..service import DailyLog, SaveOutcome
from .skincare_editor import SkincareEditor
from .task_editor import TaskEditor

logger = logging.getLogger(__name__)

HINT = "Right-click an item for more options"


class TodayPanel(QDialog):
    def __init__(self, log: DailyLog, parent=None):
        super().__init__(parent)
        self.log = log
        self.repo = log.repo
        self.setWindowTitle("Today")
        self.setWindowFlags(self.windowFlags() | Qt.WindowStaysOnTopHint)
        self.setMinimumWidth(520)
        self.setAttribute(Qt.WA_DeleteOnClose, False)
        self._tasks: Set[asyncio.Task] = set()

        # picks up the day change while the panel stays open
        self._refresh_timer = QTimer(self)
        self._refresh_timer.timeout.connect(self.refresh)
        self._refresh_timer.setInterval(60_000)

        self.layout = QVBoxLayout(self)
        self.header = QLabel("Today")
        self.layout.addWidget(self.header)

        self.list = QListWidget()
        self.layout.addWidget(self.list)

        self.list.setContextMenuPolicy(Qt.CustomContextMenu)
        self.list.customContextMenuRequested.connect(self._show_item_menu_at)

        manage_row = QHBoxLayout()

        self.btn_add_task = QPushButton("Add task…")
        self.btn_add_task.clicked.connect(self.add_task)
        manage_row.addWidget(self.btn_add_task)

        self.btn_add_skincare = QPushButton("Add skincare…")
        self.btn_add_skincare.clicked.connect(self.add_skincare)
        manage_row.addWidget(self.btn_add_skincare)

        self.layout.addLayout(manage_row)

        self.footer = QLabel(HINT)
        self.footer.setStyleSheet("""
            QLabel {
                color: #888;
                font-size: 11px;
                padding-top: 6px;
            }
        """)
        self.footer.setAlignment(Qt.AlignCenter)
        self.layout.addWidget(self.footer)

        self.refresh()

    def selected_item(self) -> Optional[Tuple[str, str]]:
        item = self.list.currentItem()
        if not item:
            return None
        return item.data(Qt.UserRole)

    def refresh(self) -> None:
        selected = self.selected_item()
        today = self.log.today()
        self.header.setText(f"Today, {today.isoformat()}")

        self.list.blockSignals(True)
        try:
            self.list.clear()
            selected_row = None

            rows = []
            for tod in TimeOfDay:
                status = self.repo.get_slot_status(today, tod)
                rows.append((("slot", tod.value), f"Skincare {tod.display_name} — {status.display_name}"))

            for t in self.repo.list_tasks_for_day(today):
                text = f"{'✓' if t.is_completed else '○'} {t.title}"
                if t.remind_at is not None:
                    text += f" [reminder {to_local(t.remind_at):%H:%M}]"
                rows.append((("task", t.id), text))

            for e in self.repo.list_skincare_for_day(today):
                text = f"{e.time_of_day.value} · {e.step_type}: {e.product_name}"
                if e.remind_at is not None:
                    text += f" [reminder {to_local(e.remind_at):%H:%M}]"
                rows.append((("skincare", e.id), text))

            for idx, (key, text) in enumerate(rows):
                it = QListWidgetItem(text)
                it.setData(Qt.UserRole, key)
                self.list.addItem(it)
                if selected is not None and tuple(selected) == key:
                    selected_row = idx

            if selected_row is not None:
                self.list.setCurrentRow(selected_row)
        finally:
            self.list.blockSignals(False)

    def show_warning(self, text: Optional[str]) -> None:
        if text:
            self.footer.setText(text)
            self.footer.setStyleSheet("QLabel { color: #c60; font-size: 11px; padding-top: 6px; }")
        else:
            self.footer.setText(HINT)
            self.footer.setStyleSheet("QLabel { color: #888; font-size: 11px; padding-top: 6px; }")

    # -------- context menu ----------
    def _show_item_menu_at(self, pos) -> None:
        item = self.list.itemAt(pos)
        if item is None:
            return
        self.list.setCurrentItem(item)

        kind, key = item.data(Qt.UserRole)
        menu = QMenu(self)

        if kind == "slot":
            tod = TimeOfDay.parse(key)
            for status in SlotStatus:
                menu.addAction(f"Mark {status.display_name}").triggered.connect(
                    lambda _=False, s=status: self._set_slot(tod, s)
                )
        elif kind == "task":
            t = self.repo.get_task(key)
            label = "Mark not done" if t.is_completed else "Mark done"
            menu.addAction(label).triggered.connect(lambda: self._toggle_task(key))
            menu.addAction("Edit…").triggered.connect(lambda: self.edit_task(key))
            menu.addSeparator()
            menu.addAction("Delete").triggered.connect(lambda: self.delete_task(key))
        else:
            menu.addAction("Edit…").triggered.connect(lambda: self.edit_skincare(key))
            menu.addSeparator()
            menu.addAction("Delete").triggered.connect(lambda: self.delete_skincare(key))

        menu.exec(self.list.mapToGlobal(pos))

    def _set_slot(self, tod: TimeOfDay, status: SlotStatus) -> None:
        self._run(self.log.set_slot_status(self.log.today(), tod, status))

    def _toggle_task(self, task_id: str) -> None:
        t = self.repo.get_task(task_id)
        self._run(self.log.set_task_completed(task_id, not t.is_completed))

    # -------- actions ----------
    def add_task(self) -> None:
        dlg = TaskEditor(task=None, day=self.log.today(), parent=self)

        def _save() -> None:
            f = dlg.form()
            self._run(self.log.add_task(title=f.title, day=f.day, remind_at=f.remind_at, notes=f.notes))

        dlg.accepted.connect(_save)
        dlg.open()

    def edit_task(self, task_id: str) -> None:
        dlg = TaskEditor(task=self.repo.get_task(task_id), parent=self)

        def _save() -> None:
            f = dlg.form()
            self._run(self.log.update_task(
                task_id, title=f.title, day=f.day, remind_at=f.remind_at,
                notes=f.notes, is_completed=f.is_completed,
            ))

        dlg.accepted.connect(_save)
        dlg.open()

    def delete_task(self, task_id: str) -> None:
        confirm = QMessageBox.question(self, "Delete task", "Delete this task and its reminder?")
        if confirm == QMessageBox.StandardButton.Yes:
            self._run(self.log.delete_task(task_id))

    def add_skincare(self) -> None:
        dlg = SkincareEditor(entry=None, day=self.log.today(), parent=self)

        def _save() -> None:
            f = dlg.form()
            self._run(self.log.add_skincare_entry(
                product_name=f.product_name, step_type=f.step_type, time_of_day=f.time_of_day,
                day=f.day, remind_at=f.remind_at, notes=f.notes,
            ))

        dlg.accepted.connect(_save)
        dlg.open()

    def edit_skincare(self, entry_id: str) -> None:
        dlg = SkincareEditor(entry=self.repo.get_skincare_entry(entry_id), parent=self)

        def _save() -> None:
            f = dlg.form()
            self._run(self.log.update_skincare_entry(
                entry_id, product_name=f.product_name, step_type=f.step_type, time_of_day=f.time_of_day,
                day=f.day, remind_at=f.remind_at, notes=f.notes,
            ))

        dlg.accepted.connect(_save)
        dlg.open()

    def delete_skincare(self, entry_id: str) -> None:
        confirm = QMessageBox.question(self, "Delete entry", "Delete this skincare entry and its reminder?")
        if confirm == QMessageBox.StandardButton.Yes:
            self._run(self.log.delete_skincare_entry(entry_id))

    def _run(self, coro: Awaitable[SaveOutcome]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._saved)

    def _saved(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self.refresh()
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Save failed", exc_info=exc)
            self.show_warning(f"Save failed: {exc}")
            return
        self.show_warning(task.result().warning)

    def closeEvent(self, event):
        event.ignore()
        self.hide()

    def showEvent(self, event) -> None:
        super().showEvent(event)
        self._refresh_timer.start()
        self.refresh()  # immediate refresh on open

    def hideEvent(self, event) -> None:
        super().hideEvent(event)
        self._refresh_timer.stop()
