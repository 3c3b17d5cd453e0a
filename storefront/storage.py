import datetime
import os
import sqlite3
from typing import Optional

import pytz

from .logger import get_logger

logger = get_logger(__name__)

DB_PATH = os.getenv("DB_PATH", "/data/storefront_state.sqlite3")

ADMIN_ID_KEY = "admin_id"


def _connect():
    directory = os.path.dirname(DB_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return sqlite3.connect(DB_PATH)


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


def ensure_db():
    with _connect() as con:
        cur = con.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT
            )
        """
        )
        con.commit()


def get_value(key: str) -> Optional[str]:
    """
    Return the stored value for key, or None when it was never set.
    """
    ensure_db()
    with _connect() as con:
        cur = con.cursor()
        cur.execute("SELECT value FROM settings WHERE key=?", (key,))
        row = cur.fetchone()
    return row[0] if row else None


def set_value(key: str, value: str) -> None:
    ensure_db()
    with _connect() as con:
        cur = con.cursor()
        cur.execute(
            """
            INSERT INTO settings (key, value, updated_at)
            VALUES (?,?,?)
            ON CONFLICT(key) DO UPDATE SET
                value=excluded.value,
                updated_at=excluded.updated_at
        """,
            (key, value, now_utc_iso()),
        )
        con.commit()
    logger.debug("Stored %s", key)


def delete_value(key: str) -> None:
    ensure_db()
    with _connect() as con:
        cur = con.cursor()
        cur.execute("DELETE FROM settings WHERE key=?", (key,))
        con.commit()
