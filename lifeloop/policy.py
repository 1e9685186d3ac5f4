from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union

from .delivery import ReminderPayload
from .models import (
    FixedSlotSubject,
    ProductSubject,
    ReminderSubject,
    SlotStatus,
    TaskSubject,
    TimeOfDay,
)
from .periods import roll_forward_one_day, slot_time_today


class SuppressReason(str, Enum):
    NO_REMINDER = "no_reminder"
    IN_PAST = "in_past"
    ALREADY_LOGGED = "already_logged"
    DELETED = "deleted"
    NOT_AUTHORIZED = "not_authorized"
    SCHEME_INACTIVE = "scheme_inactive"


@dataclass(frozen=True)
class Suppressed:
    reason: SuppressReason


@dataclass(frozen=True)
class Armed:
    trigger_at: datetime


TriggerDecision = Union[Suppressed, Armed]


def decide(subject: ReminderSubject, now: datetime) -> TriggerDecision:
    """
    Whether a reminder should be pending for subject, and when it fires.

    No I/O: the caller supplies "now" (timezone-aware). A trigger is never
    placed at or before now; fixed slots roll forward to tomorrow instead.
    """
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")

    if isinstance(subject, FixedSlotSubject):
        return _decide_slot(subject, now)

    if isinstance(subject, (TaskSubject, ProductSubject)):
        if subject.remind_at is None:
            return Suppressed(SuppressReason.NO_REMINDER)
        if subject.remind_at <= now:
            return Suppressed(SuppressReason.IN_PAST)
        return Armed(subject.remind_at)

    raise TypeError(f"not a reminder subject: {subject!r}")


def _decide_slot(subject: FixedSlotSubject, now: datetime) -> TriggerDecision:
    # User already acted on the slot; no nagging.
    if subject.status in (SlotStatus.COMPLETED, SlotStatus.SKIPPED):
        return Suppressed(SuppressReason.ALREADY_LOGGED)

    t = slot_time_today(now, subject.reminder_hour)
    if t <= now:
        return Armed(roll_forward_one_day(t))
    return Armed(t)


def payload_for(subject: ReminderSubject) -> ReminderPayload:
    if isinstance(subject, TaskSubject):
        return ReminderPayload(
            title="Task Reminder",
            body=subject.title,
            user_info={"type": "task", "taskId": subject.task_id},
        )

    if isinstance(subject, ProductSubject):
        return ReminderPayload(
            title=f"{subject.slot.value} Skincare Reminder",
            body=f"Time to apply {subject.product_name}",
            user_info={"type": "skincare", "entryId": subject.entry_id},
        )

    body = (
        "Time for your morning skincare routine!"
        if subject.slot is TimeOfDay.AM
        else "Time for your evening skincare routine!"
    )
    return ReminderPayload(
        title=f"{subject.slot.value} Skincare Reminder",
        body=body,
        user_info={"type": "skincareSlot", "timeOfDay": subject.slot.value},
    )
