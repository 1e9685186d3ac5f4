from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from lifeloop.models import SkincareMode, SlotStatus, TimeOfDay


TZ = ZoneInfo("Europe/Lisbon")
DAY = date(2026, 1, 17)


def test_default_settings(repo):
    s = repo.get_settings()
    assert s.skincare_mode == SkincareMode.SLOT
    assert s.recheck_interval_minutes == 60
    assert s.notifications_allowed is None


def test_settings_round_trip(repo):
    repo.set_skincare_mode(SkincareMode.ENTRY)
    repo.set_recheck_interval_minutes(15)
    repo.set_notifications_allowed(False)

    s = repo.get_settings()
    assert s.skincare_mode == SkincareMode.ENTRY
    assert s.recheck_interval_minutes == 15
    assert s.notifications_allowed is False


def test_task_crud(repo):
    remind = datetime(2026, 1, 17, 9, 0, tzinfo=TZ)
    tid = repo.create_task("  Evening walk ", DAY, remind_at=remind, notes="  ")

    t = repo.get_task(tid)
    assert t.title == "Evening walk"
    assert t.notes is None
    assert t.remind_at == remind
    assert t.remind_at.tzinfo is not None
    assert [x.id for x in repo.list_tasks_for_day(DAY)] == [tid]
    assert [x.id for x in repo.list_tasks_with_reminders()] == [tid]

    repo.update_task(tid, "Evening walk", DAY, remind_at=None, is_completed=True)
    t = repo.get_task(tid)
    assert t.remind_at is None
    assert t.is_completed is True
    assert repo.list_tasks_with_reminders() == []

    repo.delete_task(tid)
    with pytest.raises(KeyError):
        repo.get_task(tid)


def test_task_ids_are_unique_and_stable(repo):
    a = repo.create_task("a", DAY)
    b = repo.create_task("b", DAY)
    assert a != b
    repo.set_task_completed(a, True)
    assert repo.get_task(a).id == a


def test_updating_missing_task_raises(repo):
    with pytest.raises(KeyError):
        repo.update_task("nope", "x", DAY, remind_at=None)
    with pytest.raises(KeyError):
        repo.set_task_completed("nope", True)


def test_tasks_are_listed_per_day(repo):
    repo.create_task("today", DAY)
    repo.create_task("tomorrow", date(2026, 1, 18))
    assert [t.title for t in repo.list_tasks_for_day(DAY)] == ["today"]


def test_skincare_entry_crud(repo):
    remind = datetime(2026, 1, 17, 7, 0, tzinfo=TZ)
    eid = repo.create_skincare_entry("Vitamin C Serum", "Serum", TimeOfDay.AM, DAY, remind_at=remind)

    e = repo.get_skincare_entry(eid)
    assert e.time_of_day is TimeOfDay.AM
    assert e.remind_at == remind

    repo.update_skincare_entry(eid, "Retinol", "Treatment", TimeOfDay.PM, DAY, remind_at=None)
    e = repo.get_skincare_entry(eid)
    assert (e.product_name, e.step_type, e.time_of_day, e.remind_at) == ("Retinol", "Treatment", TimeOfDay.PM, None)

    repo.delete_skincare_entry(eid)
    assert repo.list_skincare_for_day(DAY) == []


def test_slot_status_defaults_to_not_logged(repo):
    assert repo.get_slot_status(DAY, TimeOfDay.AM) is SlotStatus.NOT_LOGGED


def test_slot_status_upsert_and_clear(repo):
    repo.set_slot_status(DAY, TimeOfDay.PM, SlotStatus.SKIPPED)
    repo.set_slot_status(DAY, TimeOfDay.PM, SlotStatus.COMPLETED)
    assert repo.get_slot_status(DAY, TimeOfDay.PM) is SlotStatus.COMPLETED
    assert repo.get_slot_status(DAY, TimeOfDay.AM) is SlotStatus.NOT_LOGGED

    repo.clear_slot(DAY, TimeOfDay.PM)
    assert repo.get_slot_status(DAY, TimeOfDay.PM) is SlotStatus.NOT_LOGGED


def test_instants_are_stored_as_utc(repo):
    remind = datetime(2026, 7, 1, 9, 0, tzinfo=TZ)
    tid = repo.create_task("x", DAY, remind_at=remind)
    raw = repo.conn.execute("SELECT remind_at_utc FROM tasks WHERE id=?", (tid,)).fetchone()[0]
    assert raw == "2026-07-01T08:00:00+00:00"
    assert repo.get_task(tid).remind_at == datetime(2026, 7, 1, 8, 0, tzinfo=timezone.utc)
