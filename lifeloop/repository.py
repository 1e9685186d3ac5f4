from __future__ import annotations
import sqlite3
import uuid
from datetime import date, datetime
from typing import List, Optional
from .models import (
    AppSettings, SkincareEntry, SkincareMode, SlotStatus, TaskEntry, TimeOfDay,
)
from .periods import day_key, instant_from_iso, instant_to_iso, now_utc


def _new_id() -> str:
    return uuid.uuid4().hex


def _blank_to_none(s: Optional[str]) -> Optional[str]:
    if s is None:
        return None
    s = s.strip()
    return s or None


class Repository:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # ---------- Settings ----------
    def get_settings(self) -> AppSettings:
        try:
            mode = SkincareMode(self._get_setting("skincare_mode", "slot"))
        except ValueError:
            mode = SkincareMode.SLOT
        try:
            interval = int(self._get_setting("recheck_interval_minutes", "60"))
        except ValueError:
            interval = 60
        allowed_raw = self._get_setting("notifications_allowed", "")
        allowed = None if allowed_raw == "" else allowed_raw == "1"
        return AppSettings(
            skincare_mode=mode,
            recheck_interval_minutes=max(1, interval),
            notifications_allowed=allowed,
        )

    def set_skincare_mode(self, mode: SkincareMode) -> None:
        self._set_setting("skincare_mode", mode.value)

    def set_recheck_interval_minutes(self, minutes: int) -> None:
        self._set_setting("recheck_interval_minutes", str(minutes))

    def set_notifications_allowed(self, allowed: Optional[bool]) -> None:
        value = "" if allowed is None else ("1" if allowed else "0")
        self._set_setting("notifications_allowed", value)

    def _get_setting(self, key: str, default: str) -> str:
        row = self.conn.execute("SELECT value FROM settings WHERE key=?", (key,)).fetchone()
        return row["value"] if row else default

    def _set_setting(self, key: str, value: str) -> None:
        self.conn.execute(
            "INSERT INTO settings(key,value) VALUES(?,?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, value),
        )
        self.conn.commit()

    # ---------- Tasks ----------
    def _task_from_row(self, r: sqlite3.Row) -> TaskEntry:
        return TaskEntry(
            id=r["id"],
            title=r["title"],
            notes=r["notes"],
            day=date.fromisoformat(r["day"]),
            is_completed=bool(r["is_completed"]),
            remind_at=instant_from_iso(r["remind_at_utc"]),
            created_at=instant_from_iso(r["created_utc"]),
        )

    def list_tasks_for_day(self, day: date) -> List[TaskEntry]:
        rows = self.conn.execute(
            "SELECT * FROM tasks WHERE day=? ORDER BY is_completed ASC, created_utc ASC",
            (day_key(day),),
        ).fetchall()
        return [self._task_from_row(r) for r in rows]

    def list_tasks_with_reminders(self) -> List[TaskEntry]:
        rows = self.conn.execute(
            "SELECT * FROM tasks WHERE remind_at_utc IS NOT NULL ORDER BY remind_at_utc ASC"
        ).fetchall()
        return [self._task_from_row(r) for r in rows]

    def get_task(self, task_id: str) -> TaskEntry:
        r = self.conn.execute("SELECT * FROM tasks WHERE id=?", (task_id,)).fetchone()
        if not r:
            raise KeyError(task_id)
        return self._task_from_row(r)

    def create_task(
        self,
        title: str,
        day: date,
        remind_at: Optional[datetime] = None,
        notes: Optional[str] = None,
        is_completed: bool = False,
    ) -> str:
        task_id = _new_id()
        self.conn.execute(
            """
            INSERT INTO tasks(id, title, notes, day, is_completed, remind_at_utc, created_utc)
            VALUES(?,?,?,?,?,?,?)
            """,
            (
                task_id,
                title.strip(),
                _blank_to_none(notes),
                day_key(day),
                1 if is_completed else 0,
                instant_to_iso(remind_at),
                now_utc().isoformat(),
            ),
        )
        self.conn.commit()
        return task_id

    def update_task(
        self,
        task_id: str,
        title: str,
        day: date,
        remind_at: Optional[datetime],
        notes: Optional[str] = None,
        is_completed: bool = False,
    ) -> None:
        cur = self.conn.execute(
            """
            UPDATE tasks
            SET title=?, notes=?, day=?, is_completed=?, remind_at_utc=?
            WHERE id=?
            """,
            (
                title.strip(),
                _blank_to_none(notes),
                day_key(day),
                1 if is_completed else 0,
                instant_to_iso(remind_at),
                task_id,
            ),
        )
        self.conn.commit()
        if cur.rowcount == 0:
            raise KeyError(task_id)

    def set_task_completed(self, task_id: str, completed: bool) -> None:
        cur = self.conn.execute(
            "UPDATE tasks SET is_completed=? WHERE id=?",
            (1 if completed else 0, task_id),
        )
        self.conn.commit()
        if cur.rowcount == 0:
            raise KeyError(task_id)

    def delete_task(self, task_id: str) -> None:
        self.conn.execute("DELETE FROM tasks WHERE id=?", (task_id,))
        self.conn.commit()

    # ---------- Skincare entries ----------
    def _skincare_from_row(self, r: sqlite3.Row) -> SkincareEntry:
        return SkincareEntry(
            id=r["id"],
            product_name=r["product_name"],
            step_type=r["step_type"],
            time_of_day=TimeOfDay.parse(r["time_of_day"]),
            notes=r["notes"],
            day=date.fromisoformat(r["day"]),
            remind_at=instant_from_iso(r["remind_at_utc"]),
            created_at=instant_from_iso(r["created_utc"]),
        )

    def list_skincare_for_day(self, day: date) -> List[SkincareEntry]:
        rows = self.conn.execute(
            "SELECT * FROM skincare_entries WHERE day=? ORDER BY time_of_day ASC, created_utc ASC",
            (day_key(day),),
        ).fetchall()
        return [self._skincare_from_row(r) for r in rows]

    def list_skincare_with_reminders(self) -> List[SkincareEntry]:
        rows = self.conn.execute(
            "SELECT * FROM skincare_entries WHERE remind_at_utc IS NOT NULL ORDER BY remind_at_utc ASC"
        ).fetchall()
        return [self._skincare_from_row(r) for r in rows]

    def get_skincare_entry(self, entry_id: str) -> SkincareEntry:
        r = self.conn.execute("SELECT * FROM skincare_entries WHERE id=?", (entry_id,)).fetchone()
        if not r:
            raise KeyError(entry_id)
        return self._skincare_from_row(r)

    def create_skincare_entry(
        self,
        product_name: str,
        step_type: str,
        time_of_day: TimeOfDay,
        day: date,
        remind_at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> str:
        entry_id = _new_id()
        self.conn.execute(
            """
            INSERT INTO skincare_entries(id, product_name, step_type, time_of_day, notes, day, remind_at_utc, created_utc)
            VALUES(?,?,?,?,?,?,?,?)
            """,
            (
                entry_id,
                product_name.strip(),
                step_type,
                time_of_day.value,
                _blank_to_none(notes),
                day_key(day),
                instant_to_iso(remind_at),
                now_utc().isoformat(),
            ),
        )
        self.conn.commit()
        return entry_id

    def update_skincare_entry(
        self,
        entry_id: str,
        product_name: str,
        step_type: str,
        time_of_day: TimeOfDay,
        day: date,
        remind_at: Optional[datetime],
        notes: Optional[str] = None,
    ) -> None:
        cur = self.conn.execute(
            """
            UPDATE skincare_entries
            SET product_name=?, step_type=?, time_of_day=?, notes=?, day=?, remind_at_utc=?
            WHERE id=?
            """,
            (
                product_name.strip(),
                step_type,
                time_of_day.value,
                _blank_to_none(notes),
                day_key(day),
                instant_to_iso(remind_at),
                entry_id,
            ),
        )
        self.conn.commit()
        if cur.rowcount == 0:
            raise KeyError(entry_id)

    def delete_skincare_entry(self, entry_id: str) -> None:
        self.conn.execute("DELETE FROM skincare_entries WHERE id=?", (entry_id,))
        self.conn.commit()

    # ---------- Skincare slots ----------
    def get_slot_status(self, day: date, time_of_day: TimeOfDay) -> SlotStatus:
        r = self.conn.execute(
            "SELECT status FROM skincare_slots WHERE day=? AND time_of_day=?",
            (day_key(day), time_of_day.value),
        ).fetchone()
        if not r:
            return SlotStatus.NOT_LOGGED
        return SlotStatus.parse(r["status"])

    def set_slot_status(self, day: date, time_of_day: TimeOfDay, status: SlotStatus) -> None:
        self.conn.execute(
            """
            INSERT INTO skincare_slots(day, time_of_day, status)
            VALUES(?,?,?)
            ON CONFLICT(day, time_of_day) DO UPDATE SET status=excluded.status
            """,
            (day_key(day), time_of_day.value, status.value),
        )
        self.conn.commit()

    def clear_slot(self, day: date, time_of_day: TimeOfDay) -> None:
        # A missing row reads back as notLogged
        self.conn.execute(
            "DELETE FROM skincare_slots WHERE day=? AND time_of_day=?",
            (day_key(day), time_of_day.value),
        )
        self.conn.commit()
