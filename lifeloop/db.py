from __future__ import annotations
import sqlite3
from pathlib import Path
from typing import Union

DB_NAME = "lifeloop.sqlite3"


def data_dir(app_name: str = "Lifeloop") -> Path:
    # Cross-platform local app data dir
    # macOS: ~/Library/Application Support/Lifeloop
    # Windows: %APPDATA%\Lifeloop
    # LIFELOOP_DATA_DIR overrides both
    override = _get_env("LIFELOOP_DATA_DIR", "")
    home = Path.home()
    if override:
        d = Path(override)
    else:
        if _is_macos():
            base = home / "Library" / "Application Support"
        elif _is_windows():
            base = Path(_get_env("APPDATA", str(home)))
        else:
            base = home / ".local" / "share"
        d = base / app_name
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    return data_dir() / DB_NAME


def connect(path: Union[str, Path, None] = None) -> sqlite3.Connection:
    conn = sqlite3.connect(str(path) if path is not None else db_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


def migrate(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY, -- uuid hex
            title TEXT NOT NULL,
            notes TEXT,
            day TEXT NOT NULL, -- YYYY-MM-DD local
            is_completed INTEGER NOT NULL DEFAULT 0,
            remind_at_utc TEXT, -- null if no reminder
            created_utc TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS skincare_entries (
            id TEXT PRIMARY KEY,
            product_name TEXT NOT NULL,
            step_type TEXT NOT NULL,
            time_of_day TEXT NOT NULL, -- AM | PM
            notes TEXT,
            day TEXT NOT NULL,
            remind_at_utc TEXT,
            created_utc TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS skincare_slots (
            day TEXT NOT NULL,
            time_of_day TEXT NOT NULL,
            status TEXT NOT NULL, -- notLogged | completed | skipped
            PRIMARY KEY(day, time_of_day)
        );

        CREATE INDEX IF NOT EXISTS idx_tasks_day ON tasks(day);
        CREATE INDEX IF NOT EXISTS idx_skincare_entries_day ON skincare_entries(day);
        """
    )

    # Defaults if missing
    if conn.execute("SELECT value FROM settings WHERE key='skincare_mode'").fetchone() is None:
        conn.execute("INSERT INTO settings(key,value) VALUES('skincare_mode','slot')")

    if conn.execute("SELECT value FROM settings WHERE key='recheck_interval_minutes'").fetchone() is None:
        conn.execute("INSERT INTO settings(key,value) VALUES('recheck_interval_minutes','60')")

    # Empty until the user answers the permission prompt
    if conn.execute("SELECT value FROM settings WHERE key='notifications_allowed'").fetchone() is None:
        conn.execute("INSERT INTO settings(key,value) VALUES('notifications_allowed','')")

    conn.commit()


def _is_windows() -> bool:
    import sys
    return sys.platform.startswith("win")


def _is_macos() -> bool:
    import sys
    return sys.platform == "darwin"


def _get_env(k: str, default: str) -> str:
    import os
    return os.environ.get(k, default)
