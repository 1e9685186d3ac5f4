from __future__ import annotations
from datetime import datetime, timedelta, time, date, timezone, tzinfo
from typing import Optional

def local_tz() -> tzinfo:
    return datetime.now().astimezone().tzinfo  # type: ignore

def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    return to_local(now_utc())


def to_utc(dt_local: datetime) -> datetime:
    if dt_local.tzinfo is None:
        raise ValueError("dt_local must be timezone-aware")
    return dt_local.astimezone(timezone.utc)


def to_local(dt_utc: datetime) -> datetime:
    if dt_utc.tzinfo is None:
        dt_utc = dt_utc.replace(tzinfo=timezone.utc)
    return dt_utc.astimezone(local_tz())


def day_key(d: date) -> str:
    return d.isoformat()


def _at_wall_clock(naive: datetime, tz: tzinfo) -> datetime:
    # Fixed offsets (what now_local() yields) carry no DST rules; the system zone resolves those.
    if isinstance(tz, timezone):
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


def slot_time_today(dt_local: datetime, hour: int, minute: int = 0) -> datetime:
    """Today at hour:minute local wall-clock time, with the offset in force at that time."""
    if dt_local.tzinfo is None:
        raise ValueError("dt_local must be timezone-aware")
    tz = dt_local.tzinfo
    if isinstance(tz, timezone):
        dt_local = dt_local.astimezone()
    return _at_wall_clock(datetime.combine(dt_local.date(), time(hour, minute)), tz)


def roll_forward_one_day(dt_local: datetime) -> datetime:
    """Same wall-clock time tomorrow; the UTC offset may differ across a DST change."""
    if dt_local.tzinfo is None:
        raise ValueError("dt_local must be timezone-aware")
    tz = dt_local.tzinfo
    if isinstance(tz, timezone):
        dt_local = dt_local.astimezone()
    return _at_wall_clock(dt_local.replace(tzinfo=None) + timedelta(days=1), tz)


def instant_to_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return to_utc(dt).isoformat()


def instant_from_iso(s: Optional[str]) -> Optional[datetime]:
    if not s:
        return None
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
