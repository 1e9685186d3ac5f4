from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from datetime import date, datetime


class SlotStatus(str, Enum):
    NOT_LOGGED = "notLogged"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SlotStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.NOT_LOGGED

    @property
    def display_name(self) -> str:
        return {
            SlotStatus.NOT_LOGGED: "Not Logged",
            SlotStatus.COMPLETED: "Completed",
            SlotStatus.SKIPPED: "Skipped",
        }[self]


class TimeOfDay(str, Enum):
    AM = "AM"
    PM = "PM"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TimeOfDay":
        try:
            return cls(value)
        except ValueError:
            return cls.AM

    @property
    def reminder_hour(self) -> int:
        # 08:00 / 21:00
        return 8 if self is TimeOfDay.AM else 21

    @property
    def display_name(self) -> str:
        return "Morning (AM)" if self is TimeOfDay.AM else "Evening (PM)"


class SubjectKind(str, Enum):
    TASK = "task"
    PRODUCT = "skincare"
    SLOT = "skincare-slot"


class SkincareMode(str, Enum):
    SLOT = "slot"    # fixed AM/PM reminders
    ENTRY = "entry"  # one reminder per product entry


STEP_TYPES = ["Cleanser", "Toner", "Serum", "Moisturizer", "Sunscreen", "Treatment", "Other"]


# ---------- Records ----------

@dataclass(frozen=True)
class TaskEntry:
    id: str
    title: str
    day: date
    is_completed: bool
    remind_at: Optional[datetime]  # aware; None = reminder off
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SkincareEntry:
    id: str
    product_name: str
    step_type: str
    time_of_day: TimeOfDay
    day: date
    remind_at: Optional[datetime]
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AppSettings:
    skincare_mode: SkincareMode
    recheck_interval_minutes: int
    notifications_allowed: Optional[bool]  # None until the user has answered


# ---------- Reminder subjects ----------

@dataclass(frozen=True)
class TaskSubject:
    task_id: str
    title: str
    remind_at: Optional[datetime]
    completed: bool = False

    kind = SubjectKind.TASK

    @property
    def key(self) -> str:
        return self.task_id


@dataclass(frozen=True)
class ProductSubject:
    entry_id: str
    product_name: str
    slot: TimeOfDay
    remind_at: Optional[datetime]

    kind = SubjectKind.PRODUCT

    @property
    def key(self) -> str:
        return self.entry_id


@dataclass(frozen=True)
class FixedSlotSubject:
    day: date
    slot: TimeOfDay
    status: SlotStatus = SlotStatus.NOT_LOGGED

    kind = SubjectKind.SLOT

    @property
    def key(self) -> str:
        # one logical reminder per slot; the day only feeds the policy
        return self.slot.value

    @property
    def reminder_hour(self) -> int:
        return self.slot.reminder_hour


ReminderSubject = Union[TaskSubject, ProductSubject, FixedSlotSubject]


def delivery_id(kind: SubjectKind, key: str) -> str:
    """Identifier handed to the delivery adapter, e.g. "task-<id>" or "skincare-slot-AM"."""
    if not key:
        raise ValueError("subject key must not be empty")
    return f"{kind.value}-{key}"


def subject_for_task(task: TaskEntry) -> TaskSubject:
    return TaskSubject(
        task_id=task.id,
        title=task.title,
        remind_at=task.remind_at,
        completed=task.is_completed,
    )


def subject_for_skincare_entry(entry: SkincareEntry) -> ProductSubject:
    return ProductSubject(
        entry_id=entry.id,
        product_name=entry.product_name,
        slot=entry.time_of_day,
        remind_at=entry.remind_at,
    )


def subject_for_slot(day: date, slot: TimeOfDay, status: SlotStatus) -> FixedSlotSubject:
    return FixedSlotSubject(day=day, slot=slot, status=status)
