from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from PySide6.QtCore import QDate, QDateTime, QTime
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit, QPushButton,
    QCheckBox, QDateEdit, QDateTimeEdit, QPlainTextEdit
)

from ..models import TaskEntry
from ..periods import to_local


@dataclass(frozen=True)
class TaskForm:
    title: str
    notes: Optional[str]
    day: date
    is_completed: bool
    remind_at: Optional[datetime]


def to_qdatetime(dt: datetime) -> QDateTime:
    dl = to_local(dt)
    return QDateTime(QDate(dl.year, dl.month, dl.day), QTime(dl.hour, dl.minute))


def from_qdatetime(qdt: QDateTime) -> datetime:
    # naive local -> aware local
    return qdt.toPython().replace(second=0, microsecond=0).astimezone()


class TaskEditor(QDialog):
    def __init__(self, task: Optional[TaskEntry] = None, day: Optional[date] = None, parent=None):
        super().__init__(parent)
        self.task = task
        self.setWindowTitle("Edit Task" if task else "New Task")
        self.setMinimumWidth(420)

        layout = QVBoxLayout(self)

        self.title = QLineEdit()
        layout.addWidget(QLabel("Title"))
        layout.addWidget(self.title)

        self.notes = QPlainTextEdit()
        self.notes.setFixedHeight(60)
        layout.addWidget(QLabel("Notes"))
        layout.addWidget(self.notes)

        self.day = QDateEdit()
        self.day.setCalendarPopup(True)
        layout.addWidget(QLabel("Date"))
        layout.addWidget(self.day)

        self.completed = QCheckBox("Completed")
        layout.addWidget(self.completed)

        self.has_reminder = QCheckBox("Reminder")
        self.has_reminder.toggled.connect(self._toggle_fields)
        layout.addWidget(self.has_reminder)

        self.remind_at = QDateTimeEdit()
        self.remind_at.setDisplayFormat("yyyy-MM-dd HH:mm")
        self.remind_at.setCalendarPopup(True)
        layout.addWidget(self.remind_at)

        self.hint = QLabel("You'll receive a notification at the scheduled time")
        self.hint.setStyleSheet("QLabel { color: #888; font-size: 11px; }")
        layout.addWidget(self.hint)

        btns = QHBoxLayout()
        self.btn_cancel = QPushButton("Cancel")
        self.btn_cancel.clicked.connect(self.reject)
        btns.addWidget(self.btn_cancel)

        self.btn_save = QPushButton("Save")
        self.btn_save.clicked.connect(self.save)
        btns.addWidget(self.btn_save)
        layout.addLayout(btns)

        self.title.textChanged.connect(self._toggle_fields)
        self._load(task, day or date.today())
        self._toggle_fields()

    def _toggle_fields(self) -> None:
        on = self.has_reminder.isChecked()
        self.remind_at.setVisible(on)
        self.hint.setVisible(on)
        self.btn_save.setEnabled(bool(self.title.text().strip()))

    def _load(self, task: Optional[TaskEntry], default_day: date) -> None:
        d = task.day if task else default_day
        self.day.setDate(QDate(d.year, d.month, d.day))

        # Default reminder: 09:00 on the task date
        self.remind_at.setDateTime(QDateTime(QDate(d.year, d.month, d.day), QTime(9, 0)))

        if task is None:
            return
        self.title.setText(task.title)
        self.notes.setPlainText(task.notes or "")
        self.completed.setChecked(task.is_completed)
        if task.remind_at is not None:
            self.has_reminder.setChecked(True)
            self.remind_at.setDateTime(to_qdatetime(task.remind_at))

    def form(self) -> TaskForm:
        return TaskForm(
            title=self.title.text().strip(),
            notes=self.notes.toPlainText().strip() or None,
            day=self.day.date().toPython(),
            is_completed=self.completed.isChecked(),
            remind_at=from_qdatetime(self.remind_at.dateTime()) if self.has_reminder.isChecked() else None,
        )

    def save(self) -> None:
        if not self.title.text().strip():
            return
        self.accept()
