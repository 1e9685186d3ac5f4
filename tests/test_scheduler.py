import asyncio

import pytest

pytest.importorskip("PySide6.QtWidgets")

from PySide6.QtCore import QCoreApplication

from conftest import dt_local
from lifeloop.notifications import DeliveredReminder
from lifeloop.scheduler import RecheckScheduler
from lifeloop.service import DailyLog


@pytest.fixture(scope="module")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def rechecker(qapp, repo, engine, clock):
    r = RecheckScheduler(DailyLog(repo, engine, clock=clock))
    yield r
    r.stop()
    r.deleteLater()


async def _drain(rechecker):
    while rechecker._tasks:
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_tick_rechecks_slots_and_reports(rechecker, delivery):
    reports = []
    rechecker.rechecked.connect(reports.append)

    rechecker.tick()
    await _drain(rechecker)

    assert set(delivery.pending) == {"skincare-slot-AM", "skincare-slot-PM"}
    assert len(reports) == 1
    assert all(r.ok for r in reports[0])


@pytest.mark.asyncio
async def test_delivered_slot_is_rearmed_for_tomorrow(rechecker, engine, delivery, clock):
    rechecker.tick()
    await _drain(rechecker)

    # 08:00 fired; the adapter dropped it
    clock.now = dt_local(2026, 1, 17, 8, 0, 5)
    delivery.pending.pop("skincare-slot-AM")
    rechecker.on_delivered(DeliveredReminder("skincare-slot-AM", "AM Skincare Reminder", "..."))
    await _drain(rechecker)

    assert delivery.pending["skincare-slot-AM"][0] == dt_local(2026, 1, 18, 8, 0)
    assert engine.pending()["skincare-slot-AM"] == dt_local(2026, 1, 18, 8, 0)


@pytest.mark.asyncio
async def test_start_uses_configured_interval(rechecker, repo):
    repo.set_recheck_interval_minutes(15)
    rechecker.start()
    assert rechecker.timer.interval() == 15 * 60_000
    assert rechecker.timer.isActive()
