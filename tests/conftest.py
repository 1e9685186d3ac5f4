import os
import time
from datetime import datetime
from typing import Dict, List, Tuple
from zoneinfo import ZoneInfo

import pytest

import lifeloop.periods as periods
from lifeloop.authorization import AuthorizationGate
from lifeloop.db import connect, migrate
from lifeloop.delivery import DeliveryAdapter
from lifeloop.engine import ReminderEngine
from lifeloop.errors import DeliveryAdapterError
from lifeloop.repository import Repository


TZ = ZoneInfo("Europe/Lisbon")


def dt_local(y, m, d, hh=0, mm=0, ss=0):
    return datetime(y, m, d, hh, mm, ss, tzinfo=TZ)


class FakeDelivery(DeliveryAdapter):
    """Records every call; behaves like a one-pending-per-id notification center."""

    def __init__(self):
        self.pending: Dict[str, Tuple[datetime, object]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail_schedule = False
        self.fail_cancel = False

    async def schedule(self, delivery_id, trigger_at, payload):
        self.calls.append(("schedule", delivery_id))
        if self.fail_schedule:
            raise DeliveryAdapterError("resource exhausted", delivery_id)
        if delivery_id in self.pending:
            raise DeliveryAdapterError("duplicate identifier", delivery_id)
        self.pending[delivery_id] = (trigger_at, payload)

    async def cancel(self, delivery_id):
        self.calls.append(("cancel", delivery_id))
        if self.fail_cancel:
            raise DeliveryAdapterError("service unavailable", delivery_id)
        self.pending.pop(delivery_id, None)

    async def cancel_all(self):
        self.calls.append(("cancel_all", "*"))
        self.pending.clear()


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_gate(granted=True, allowed=None):
    """Gate whose prompt answers `granted` and whose probe answers `allowed` (defaults to granted)."""
    state = {"prompts": 0, "allowed": granted if allowed is None else allowed}

    async def prompt():
        state["prompts"] += 1
        return granted

    async def probe():
        return state["allowed"]

    gate = AuthorizationGate(prompt=prompt, probe=probe)
    gate.calls = state
    return gate


@pytest.fixture(autouse=True)
def local_tz(monkeypatch):
    monkeypatch.setattr(periods, "local_tz", lambda: TZ)
    return TZ


@pytest.fixture
def system_tz_lisbon():
    """Process local zone set to Europe/Lisbon, as the OS would report it."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset unavailable")
    old = os.environ.get("TZ")
    os.environ["TZ"] = "Europe/Lisbon"
    time.tzset()
    yield TZ
    if old is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = old
    time.tzset()


@pytest.fixture
def clock():
    return Clock(dt_local(2026, 1, 17, 7, 0))


@pytest.fixture
def delivery():
    return FakeDelivery()


@pytest.fixture
def gate():
    return make_gate(granted=True)


@pytest.fixture
def engine(gate, delivery, clock):
    return ReminderEngine(gate, delivery, clock=clock)


@pytest.fixture
def repo():
    conn = connect(":memory:")
    migrate(conn)
    yield Repository(conn)
    conn.close()
