from datetime import date

import pytest

from conftest import dt_local, make_gate
from lifeloop.engine import ReminderEngine
from lifeloop.models import SkincareMode, SlotStatus, TimeOfDay
from lifeloop.policy import Armed, Suppressed, SuppressReason
from lifeloop.service import DailyLog


DAY = date(2026, 1, 17)


@pytest.fixture
def log(repo, engine, clock):
    return DailyLog(repo, engine, clock=clock)


@pytest.mark.asyncio
async def test_add_task_with_reminder_schedules(log, delivery):
    out = await log.add_task("Evening walk", DAY, remind_at=dt_local(2026, 1, 17, 18, 0))

    assert out.warning is None
    assert out.reminder.decision == Armed(dt_local(2026, 1, 17, 18, 0))
    assert f"task-{out.record_id}" in delivery.pending


@pytest.mark.asyncio
async def test_turning_reminder_off_cancels(log, delivery):
    out = await log.add_task("Walk", DAY, remind_at=dt_local(2026, 1, 17, 18, 0))
    await log.update_task(out.record_id, "Walk", DAY, remind_at=None)

    assert delivery.pending == {}


@pytest.mark.asyncio
async def test_delete_task_cancels_and_removes_record(log, repo, delivery):
    out = await log.add_task("Walk", DAY, remind_at=dt_local(2026, 1, 17, 18, 0))
    deleted = await log.delete_task(out.record_id)

    assert deleted.reminder.decision == Suppressed(SuppressReason.DELETED)
    assert delivery.calls[-1] == ("cancel", f"task-{out.record_id}")
    assert delivery.pending == {}
    assert repo.list_tasks_for_day(DAY) == []


@pytest.mark.asyncio
async def test_delivery_failure_keeps_the_record(log, repo, delivery):
    delivery.fail_schedule = True
    out = await log.add_task("Walk", DAY, remind_at=dt_local(2026, 1, 17, 18, 0))

    assert out.warning is not None
    assert "resource exhausted" in out.warning
    assert repo.get_task(out.record_id).title == "Walk"


@pytest.mark.asyncio
async def test_slot_status_today_drives_slot_reminder(log, clock, delivery):
    clock.now = dt_local(2026, 1, 17, 7, 0)
    out = await log.set_slot_status(DAY, TimeOfDay.AM, SlotStatus.NOT_LOGGED)
    assert out.reminder.decision == Armed(dt_local(2026, 1, 17, 8, 0))

    clock.now = dt_local(2026, 1, 17, 8, 5)
    out = await log.set_slot_status(DAY, TimeOfDay.AM, SlotStatus.COMPLETED)
    assert isinstance(out.reminder.decision, Suppressed)
    assert "skincare-slot-AM" not in delivery.pending


@pytest.mark.asyncio
async def test_reopened_slot_rearms_for_tomorrow(log, repo, clock, delivery):
    clock.now = dt_local(2026, 1, 17, 10, 0)
    await log.set_slot_status(DAY, TimeOfDay.AM, SlotStatus.SKIPPED)
    await log.set_slot_status(DAY, TimeOfDay.AM, SlotStatus.NOT_LOGGED)

    assert repo.get_slot_status(DAY, TimeOfDay.AM) is SlotStatus.NOT_LOGGED
    assert delivery.pending["skincare-slot-AM"][0] == dt_local(2026, 1, 18, 8, 0)


@pytest.mark.asyncio
async def test_other_days_slots_are_only_persisted(log, repo, delivery):
    out = await log.set_slot_status(date(2026, 1, 16), TimeOfDay.PM, SlotStatus.COMPLETED)

    assert out.reminder is None
    assert repo.get_slot_status(date(2026, 1, 16), TimeOfDay.PM) is SlotStatus.COMPLETED
    assert delivery.calls == []


@pytest.mark.asyncio
async def test_recheck_reads_todays_slots(log, repo, clock, delivery):
    repo.set_slot_status(DAY, TimeOfDay.AM, SlotStatus.COMPLETED)
    clock.now = dt_local(2026, 1, 17, 12, 0)

    results = await log.recheck_slots()

    assert sorted(r.delivery_id for r in results) == ["skincare-slot-AM", "skincare-slot-PM"]
    assert set(delivery.pending) == {"skincare-slot-PM"}


@pytest.mark.asyncio
async def test_on_activation_refreshes_authorization(repo, delivery, clock):
    gate = make_gate(granted=True)
    engine = ReminderEngine(gate, delivery, clock=clock)
    log = DailyLog(repo, engine, clock=clock)
    await log.recheck_slots()
    assert len(delivery.pending) == 2

    gate.calls["allowed"] = False
    await log.on_activation()
    assert delivery.pending == {}


@pytest.mark.asyncio
async def test_enable_notifications_reconciles_everything(repo, delivery, clock):
    gate = make_gate(granted=True)
    engine = ReminderEngine(gate, delivery, clock=clock)
    log = DailyLog(repo, engine, clock=clock)
    repo.create_task("Walk", DAY, remind_at=dt_local(2026, 1, 17, 18, 0))

    assert await log.enable_notifications() is True
    assert gate.calls["prompts"] == 1
    assert len(delivery.pending) == 3  # task + AM + PM


@pytest.mark.asyncio
async def test_switching_skincare_mode_moves_reminders(log, repo, delivery):
    await log.add_skincare_entry("Serum", "Serum", TimeOfDay.AM, DAY, remind_at=dt_local(2026, 1, 17, 7, 30))
    await log.recheck_slots()
    assert set(delivery.pending) == {"skincare-slot-AM", "skincare-slot-PM"}

    await log.set_skincare_mode(SkincareMode.ENTRY)
    assert repo.get_settings().skincare_mode == SkincareMode.ENTRY
    assert [k for k in delivery.pending if k.startswith("skincare-slot")] == []
    assert len(delivery.pending) == 1

    await log.set_skincare_mode(SkincareMode.SLOT)
    assert set(delivery.pending) == {"skincare-slot-AM", "skincare-slot-PM"}


@pytest.mark.asyncio
async def test_delete_skincare_entry_cancels(log, engine, delivery):
    engine.set_skincare_mode(SkincareMode.ENTRY)
    out = await log.add_skincare_entry("Serum", "Serum", TimeOfDay.AM, DAY, remind_at=dt_local(2026, 1, 17, 7, 30))
    assert f"skincare-{out.record_id}" in delivery.pending

    await log.delete_skincare_entry(out.record_id)
    assert delivery.pending == {}


@pytest.mark.asyncio
async def test_reset_reminders(log, delivery):
    await log.recheck_slots()
    assert await log.reset_reminders() is None
    assert delivery.pending == {}
