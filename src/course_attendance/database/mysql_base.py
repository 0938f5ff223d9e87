from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import mysql.connector

from ..core.exceptions import StorageError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise StorageError(str(e)) from e
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        raise StorageError(str(e)) from e
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


def in_clause(column: str, values: Sequence[Any]) -> Tuple[str, List[Any]]:
    """Build `column IN (%s, ...)` for a non-empty sequence."""
    placeholders = ", ".join(["%s"] * len(values))
    return f"{column} IN ({placeholders})", list(values)


def set_clause(fields: Dict[str, Any], allowed: Iterable[str]) -> Tuple[str, List[Any]]:
    """Build `a=%s, b=%s` for a partial update, restricted to whitelisted columns."""
    allowed = set(allowed)
    parts: list[str] = []
    params: list[Any] = []
    for column, value in fields.items():
        if column not in allowed:
            raise ValueError(f"Column not updatable: {column}")
        parts.append(f"{column}=%s")
        params.append(value)
    return ", ".join(parts), params
