from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from PySide6.QtCore import QDate, QDateTime, QTime
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit, QPushButton,
    QCheckBox, QComboBox, QDateEdit, QDateTimeEdit, QPlainTextEdit
)

from ..models import STEP_TYPES, SkincareEntry, TimeOfDay
from .task_editor import from_qdatetime, to_qdatetime


@dataclass(frozen=True)
class SkincareForm:
    product_name: str
    step_type: str
    time_of_day: TimeOfDay
    notes: Optional[str]
    day: date
    remind_at: Optional[datetime]


def _default_hour(tod: TimeOfDay) -> int:
    # a little before the fixed slot reminder
    return 7 if tod is TimeOfDay.AM else 20


class SkincareEditor(QDialog):
    def __init__(self, entry: Optional[SkincareEntry] = None, day: Optional[date] = None, parent=None):
        super().__init__(parent)
        self.entry = entry
        self.setWindowTitle("Edit Skincare" if entry else "New Skincare")
        self.setMinimumWidth(420)

        layout = QVBoxLayout(self)

        self.product_name = QLineEdit()
        layout.addWidget(QLabel("Product"))
        layout.addWidget(self.product_name)

        self.step_type = QComboBox()
        self.step_type.addItems(STEP_TYPES)
        layout.addWidget(QLabel("Step"))
        layout.addWidget(self.step_type)

        self.time_of_day = QComboBox()
        for tod in TimeOfDay:
            self.time_of_day.addItem(tod.display_name, tod.value)
        self.time_of_day.currentIndexChanged.connect(self._time_of_day_changed)
        layout.addWidget(QLabel("Time of day"))
        layout.addWidget(self.time_of_day)

        self.notes = QPlainTextEdit()
        self.notes.setFixedHeight(60)
        layout.addWidget(QLabel("Notes"))
        layout.addWidget(self.notes)

        self.day = QDateEdit()
        self.day.setCalendarPopup(True)
        layout.addWidget(QLabel("Date"))
        layout.addWidget(self.day)

        self.has_reminder = QCheckBox("Reminder")
        self.has_reminder.toggled.connect(self._toggle_fields)
        layout.addWidget(self.has_reminder)

        self.remind_at = QDateTimeEdit()
        self.remind_at.setDisplayFormat("yyyy-MM-dd HH:mm")
        self.remind_at.setCalendarPopup(True)
        layout.addWidget(self.remind_at)

        btns = QHBoxLayout()
        cancel = QPushButton("Cancel")
        cancel.clicked.connect(self.reject)
        btns.addWidget(cancel)

        self.btn_save = QPushButton("Save")
        self.btn_save.clicked.connect(self.save)
        btns.addWidget(self.btn_save)
        layout.addLayout(btns)

        self.product_name.textChanged.connect(self._toggle_fields)
        self._load(entry, day or date.today())
        self._toggle_fields()

    def _current_tod(self) -> TimeOfDay:
        return TimeOfDay.parse(self.time_of_day.currentData())

    def _toggle_fields(self) -> None:
        self.remind_at.setVisible(self.has_reminder.isChecked())
        self.btn_save.setEnabled(bool(self.product_name.text().strip()))

    def _time_of_day_changed(self) -> None:
        # keep the chosen date, move the hour with AM/PM
        qd = self.remind_at.date()
        self.remind_at.setDateTime(QDateTime(qd, QTime(_default_hour(self._current_tod()), 0)))

    def _load(self, entry: Optional[SkincareEntry], default_day: date) -> None:
        d = entry.day if entry else default_day
        self.day.setDate(QDate(d.year, d.month, d.day))
        if entry is not None:
            self.product_name.setText(entry.product_name)
            idx = self.step_type.findText(entry.step_type)
            self.step_type.setCurrentIndex(max(0, idx))
            self.time_of_day.setCurrentIndex(0 if entry.time_of_day is TimeOfDay.AM else 1)
            self.notes.setPlainText(entry.notes or "")

        self.remind_at.setDateTime(QDateTime(QDate(d.year, d.month, d.day), QTime(_default_hour(self._current_tod()), 0)))
        if entry is not None and entry.remind_at is not None:
            self.has_reminder.setChecked(True)
            self.remind_at.setDateTime(to_qdatetime(entry.remind_at))

    def form(self) -> SkincareForm:
        return SkincareForm(
            product_name=self.product_name.text().strip(),
            step_type=self.step_type.currentText(),
            time_of_day=self._current_tod(),
            notes=self.notes.toPlainText().strip() or None,
            day=self.day.date().toPython(),
            remind_at=from_qdatetime(self.remind_at.dateTime()) if self.has_reminder.isChecked() else None,
        )

    def save(self) -> None:
        if not self.product_name.text().strip():
            return
        self.accept()
