from __future__ import annotations

import json
import time
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from ..core.exceptions import BatchTransactionError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def db_transaction(
    conn_factory: DatabaseConnection,
    *,
    max_wait_seconds: int,
    timeout_seconds: int,
):
    """One explicit transaction with a lock-wait budget and an overall deadline.

    The deadline is checked before commit: a transaction that ran past
    ``timeout_seconds`` is rolled back as a whole.
    """

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=True)
        try:
            cur.execute("SET SESSION innodb_lock_wait_timeout = %s", (max(1, int(max_wait_seconds)),))
            conn.start_transaction()
            started = time.monotonic()
            yield conn, cur
            elapsed = time.monotonic() - started
            if elapsed > timeout_seconds:
                raise BatchTransactionError(
                    f"Transaction exceeded {timeout_seconds}s timeout ({elapsed:.1f}s elapsed)"
                )
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, default=str)


def from_json(value: Any, default: Any = None) -> Any:
    """Decode a JSON column; mysql-connector returns str or bytes depending on server version."""
    if value is None:
        return default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value) if value else default
    return value
