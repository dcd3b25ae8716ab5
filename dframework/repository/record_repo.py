from typing import Any, Dict, List, Optional
from sqlite3 import Connection

from ..sql import validate_field_name


def insert(conn: Connection, table_name: str, record: Dict[str, Any]) -> int:
    validate_field_name(table_name)
    cols = [validate_field_name(c) for c in record.keys()]
    sql = "INSERT INTO {}({}) VALUES({})".format(
        table_name, ", ".join(cols), ", ".join(f":{c}" for c in cols)
    )
    cur = conn.execute(sql, record)
    return cur.lastrowid


def update(conn: Connection, table_name: str, record: Dict[str, Any], key_field: str) -> int:
    validate_field_name(table_name)
    validate_field_name(key_field)
    cols = [validate_field_name(c) for c in record.keys() if c != key_field]
    if not cols:
        return 0
    sql = "UPDATE {} SET {} WHERE {} = :{}".format(
        table_name, ", ".join(f"{c} = :{c}" for c in cols), key_field, key_field
    )
    cur = conn.execute(sql, record)
    return cur.rowcount


def get_one(conn: Connection, table_name: str, key_field: str, key: Any) -> Optional[Dict[str, Any]]:
    validate_field_name(table_name)
    validate_field_name(key_field)
    row = conn.execute(f"SELECT * FROM {table_name} WHERE {key_field} = ?", (key,)).fetchone()
    return dict(row) if row else None


def list_where(conn: Connection, table_name: str, where: Optional[Dict[str, Any]] = None,
               order_by: Optional[str] = None) -> List[Dict[str, Any]]:
    validate_field_name(table_name)
    sql = f"SELECT * FROM {table_name}"
    clauses = []
    for k in (where or {}):
        validate_field_name(k)
        clauses.append(f"{k} = :{k}")
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    if order_by:
        sql += " ORDER BY " + validate_field_name(order_by)
    return [dict(r) for r in conn.execute(sql, where or {}).fetchall()]
