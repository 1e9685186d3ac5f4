from __future__ import annotations
from dataclasses import dataclass
from PySide6.QtWidgets import QDialog, QVBoxLayout, QLabel, QCheckBox, QComboBox, QHBoxLayout, QPushButton, QSpinBox
from ..models import SkincareMode
from ..repository import Repository


@dataclass(frozen=True)
class SettingsForm:
    notifications_allowed: bool
    skincare_mode: SkincareMode
    recheck_interval_minutes: int


class SettingsDialog(QDialog):
    def __init__(self, repo: Repository, parent=None):
        super().__init__(parent)
        self.repo = repo
        self.setWindowTitle("Settings")
        self.setMinimumWidth(360)

        settings = self.repo.get_settings()
        layout = QVBoxLayout(self)

        self.allow = QCheckBox("Show reminder notifications")
        self.allow.setChecked(bool(settings.notifications_allowed))
        layout.addWidget(self.allow)

        layout.addWidget(QLabel("Skincare reminders"))
        self.mode = QComboBox()
        self.mode.addItem("Fixed times (08:00 / 21:00)", SkincareMode.SLOT.value)
        self.mode.addItem("Per product entry", SkincareMode.ENTRY.value)
        self.mode.setCurrentIndex(0 if settings.skincare_mode == SkincareMode.SLOT else 1)
        layout.addWidget(self.mode)

        layout.addWidget(QLabel("Re-check interval (minutes)"))
        self.recheck_minutes = QSpinBox()
        self.recheck_minutes.setRange(5, 24 * 60)
        self.recheck_minutes.setValue(settings.recheck_interval_minutes)
        layout.addWidget(self.recheck_minutes)

        btns = QHBoxLayout()
        save = QPushButton("Save")
        save.clicked.connect(self.save)
        btns.addWidget(save)

        cancel = QPushButton("Cancel")
        cancel.clicked.connect(self.reject)
        btns.addWidget(cancel)

        layout.addLayout(btns)

    def form(self) -> SettingsForm:
        return SettingsForm(
            notifications_allowed=self.allow.isChecked(),
            skincare_mode=SkincareMode(self.mode.currentData()),
            recheck_interval_minutes=int(self.recheck_minutes.value()),
        )

    def save(self) -> None:
        # Mode and permission changes need a reminder pass; the caller does that.
        self.repo.set_recheck_interval_minutes(int(self.recheck_minutes.value()))
        self.repo.set_notifications_allowed(self.allow.isChecked())
        self.accept()
