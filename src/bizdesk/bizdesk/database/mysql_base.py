from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[tuple[Any, Any]]:
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


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_json(value: Any) -> Optional[str]:
    """Serialize a nested map (costs, allocations, role assignments) for a JSON column."""
    if value is None:
        return None
    return json.dumps(value, default=_json_default)


def from_json(value: Any, default: Any = None) -> Any:
    """Decode a JSON column.

    mysql-connector may return JSON columns as str, bytes or an already
    decoded object depending on server and connector version.
    """
    if value is None or value == "":
        return default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    raise TypeError(f"Unsupported JSON value type: {type(value)!r}")


def build_update(fields: Dict[str, Any], *, json_fields: frozenset = frozenset()) -> tuple[str, list]:
    """Return (SET clause, params) for a partial UPDATE; keys are trusted column names."""
    parts: list[str] = []
    params: list[Any] = []
    for column, value in fields.items():
        parts.append(f"{column}=%s")
        if column in json_fields:
            params.append(to_json(value))
        elif hasattr(value, "value") and not isinstance(value, (date, datetime)):
            params.append(value.value)
        else:
            params.append(value)
    return ", ".join(parts), params
