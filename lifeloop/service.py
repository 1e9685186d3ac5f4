from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional

from .engine import ReconcileResult, ReminderEngine
from .models import (
    FixedSlotSubject, ProductSubject, SkincareMode, SlotStatus, TaskSubject, TimeOfDay,
    subject_for_skincare_entry, subject_for_slot, subject_for_task,
)
from .periods import now_local
from .repository import Repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveOutcome:
    record_id: str
    reminder: Optional[ReconcileResult]

    @property
    def warning(self) -> Optional[str]:
        if self.reminder is None or self.reminder.ok:
            return None
        return f"Saved, but the reminder could not be updated: {self.reminder.error}"


class DailyLog:
    """
    Record mutations with reminder upkeep.

    The record is written first and is the source of truth; the reminder pass
    runs afterwards and can only add a warning to the outcome.
    """

    def __init__(self, repo: Repository, engine: ReminderEngine, clock: Callable[[], datetime] = now_local):
        self.repo = repo
        self.engine = engine
        self.clock = clock

    def today(self) -> date:
        return self.clock().date()

    # ---------- Tasks ----------
    async def add_task(
        self,
        title: str,
        day: date,
        remind_at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> SaveOutcome:
        task_id = self.repo.create_task(title=title, day=day, remind_at=remind_at, notes=notes)
        return await self._sync_task(task_id)

    async def update_task(
        self,
        task_id: str,
        title: str,
        day: date,
        remind_at: Optional[datetime],
        notes: Optional[str] = None,
        is_completed: bool = False,
    ) -> SaveOutcome:
        self.repo.update_task(task_id, title=title, day=day, remind_at=remind_at, notes=notes, is_completed=is_completed)
        return await self._sync_task(task_id)

    async def set_task_completed(self, task_id: str, completed: bool) -> SaveOutcome:
        self.repo.set_task_completed(task_id, completed)
        return await self._sync_task(task_id)

    async def delete_task(self, task_id: str) -> SaveOutcome:
        self.repo.delete_task(task_id)
        subject = TaskSubject(task_id=task_id, title="", remind_at=None)
        result = await self.engine.reconcile(subject, deleted=True)
        return SaveOutcome(task_id, result)

    async def _sync_task(self, task_id: str) -> SaveOutcome:
        task = self.repo.get_task(task_id)
        result = await self.engine.reconcile(subject_for_task(task))
        return SaveOutcome(task_id, result)

    # ---------- Skincare entries ----------
    async def add_skincare_entry(
        self,
        product_name: str,
        step_type: str,
        time_of_day: TimeOfDay,
        day: date,
        remind_at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> SaveOutcome:
        entry_id = self.repo.create_skincare_entry(
            product_name=product_name,
            step_type=step_type,
            time_of_day=time_of_day,
            day=day,
            remind_at=remind_at,
            notes=notes,
        )
        return await self._sync_skincare_entry(entry_id)

    async def update_skincare_entry(
        self,
        entry_id: str,
        product_name: str,
        step_type: str,
        time_of_day: TimeOfDay,
        day: date,
        remind_at: Optional[datetime],
        notes: Optional[str] = None,
    ) -> SaveOutcome:
        self.repo.update_skincare_entry(
            entry_id,
            product_name=product_name,
            step_type=step_type,
            time_of_day=time_of_day,
            day=day,
            remind_at=remind_at,
            notes=notes,
        )
        return await self._sync_skincare_entry(entry_id)

    async def delete_skincare_entry(self, entry_id: str) -> SaveOutcome:
        self.repo.delete_skincare_entry(entry_id)
        subject = ProductSubject(entry_id=entry_id, product_name="", slot=TimeOfDay.AM, remind_at=None)
        result = await self.engine.reconcile(subject, deleted=True)
        return SaveOutcome(entry_id, result)

    async def _sync_skincare_entry(self, entry_id: str) -> SaveOutcome:
        entry = self.repo.get_skincare_entry(entry_id)
        result = await self.engine.reconcile(subject_for_skincare_entry(entry))
        return SaveOutcome(entry_id, result)

    # ---------- Skincare slots ----------
    async def set_slot_status(self, day: date, time_of_day: TimeOfDay, status: SlotStatus) -> SaveOutcome:
        if status == SlotStatus.NOT_LOGGED:
            self.repo.clear_slot(day, time_of_day)
        else:
            self.repo.set_slot_status(day, time_of_day, status)

        # Only today's slot feeds the pending slot reminder.
        if day != self.today():
            return SaveOutcome(time_of_day.value, None)

        result = await self.engine.reconcile(subject_for_slot(day, time_of_day, status))
        return SaveOutcome(time_of_day.value, result)

    def today_slots(self) -> List[FixedSlotSubject]:
        today = self.today()
        return [
            subject_for_slot(today, tod, self.repo.get_slot_status(today, tod))
            for tod in TimeOfDay
        ]

    async def recheck_slots(self) -> List[ReconcileResult]:
        return await self.engine.reconcile_slots(self.today_slots())

    # ---------- Whole-app passes ----------
    async def on_activation(self) -> List[ReconcileResult]:
        await self.engine.gate.refresh_status()
        return await self.recheck_slots()

    async def enable_notifications(self) -> bool:
        granted = await self.engine.request_authorization()
        await self.reconcile_all()
        return granted

    async def reconcile_all(self) -> List[ReconcileResult]:
        subjects = (
            [subject_for_task(t) for t in self.repo.list_tasks_with_reminders()]
            + [subject_for_skincare_entry(e) for e in self.repo.list_skincare_with_reminders()]
            + self.today_slots()
        )
        results = await self.engine.reconcile_many(subjects)
        failed = [r for r in results if not r.ok]
        if failed:
            logger.warning("%d of %d reminders could not be updated", len(failed), len(results))
        return results

    async def set_skincare_mode(self, mode: SkincareMode) -> List[ReconcileResult]:
        """Switch reminder scheme; the inactive scheme's reminders get cancelled."""
        self.repo.set_skincare_mode(mode)
        self.engine.set_skincare_mode(mode)
        subjects = [subject_for_skincare_entry(e) for e in self.repo.list_skincare_with_reminders()]
        return await self.engine.reconcile_many(subjects + self.today_slots())

    async def reset_reminders(self) -> Optional[str]:
        return await self.engine.reset()
