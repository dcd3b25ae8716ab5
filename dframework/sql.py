"""
Query execution layer: parameterised requests over SQLite.

A request carries its own named parameters (``:name`` style); ``bind_parameters``
turns a where dict into SQL text + bound values on that request.
"""
from __future__ import annotations

import logging
import re
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .db import get_conn

logger = logging.getLogger(__name__)

_FIELD_NAME_RE = re.compile(r"^[a-zA-Z0-9_.]+$")


def is_valid_field_name(field_name: str) -> bool:
    return isinstance(field_name, str) and bool(_FIELD_NAME_RE.match(field_name))


def validate_field_name(field_name: str) -> str:
    if not is_valid_field_name(field_name):
        raise ValueError(
            f"Invalid field name: {field_name}. Only alphanumeric characters, underscores, and dots are allowed."
        )
    return field_name


@dataclass
class QueryResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def recordset(self) -> List[Dict[str, Any]]:
        return self.rows

    def __len__(self) -> int:
        return len(self.rows)


class SqlRequest:
    """One statement's worth of bound parameters."""

    def __init__(self, executor: "SqlExecutor"):
        self.executor = executor
        self.parameters: Dict[str, Any] = {}

    def input(self, name: str, value: Any):
        self.parameters[name] = value

    def query(self, text: str) -> QueryResult:
        logger.debug("sql query: %s params=%s", text, self.parameters)
        conn = self.executor.conn
        if conn is not None:
            rows = conn.execute(text, self.parameters).fetchall()
        else:
            with get_conn(self.executor.db_path) as c:
                rows = c.execute(text, self.parameters).fetchall()
        return QueryResult(rows=[dict(r) for r in rows])


def in_clause(request: SqlRequest, field_name: str, param_name: str, values: Iterable[Any],
              operator: str = "IN") -> Tuple[str, List[str]]:
    names: List[str] = []
    for idx, v in enumerate(values):
        name = f"{param_name}{idx}"
        request.input(name, v)
        names.append(f":{name}")
    if not names:
        return "", []
    return f"{field_name} {operator.upper()} ({', '.join(names)})", names


def between_clause(request: SqlRequest, field_name: str, param_name: str, values: List[Any],
                   operator: str = "BETWEEN") -> Tuple[str, List[str]]:
    values = list(values)
    if len(values) != 2:
        raise ValueError(f"{operator} on {field_name} needs exactly two values, got {len(values)}")
    lo, hi = f"{param_name}_from", f"{param_name}_to"
    request.input(lo, values[0])
    request.input(hi, values[1])
    return f"{field_name} {operator.upper()} :{lo} AND :{hi}", [f":{lo}", f":{hi}"]


def bind_parameters(request: SqlRequest, query: str, parameters: Optional[Dict[str, Any]],
                    for_where: bool = False) -> str:
    """
    Bind ``parameters`` onto ``request`` and return the final query text.

    Each entry is either a plain value (``field = :field``) or a dict with
    ``value`` / ``operator`` / ``field_name`` / ``ignore_null``, or a raw
    ``statement``. List values (or ``in`` / ``not in``) expand to one bound
    parameter per element; ``:{Field}`` placeholders embedded in the query are
    replaced by that list. With ``for_where`` the statements are appended as a
    ``WHERE`` clause joined by ``AND``.
    """
    if not parameters:
        return query
    where_clauses: List[str] = []
    for param_name, props in parameters.items():
        validate_field_name(param_name)
        operator = "="
        value = props
        ignore_null = True
        field_name = param_name
        if isinstance(props, dict):
            if props.get("statement"):
                where_clauses.append(props["statement"])
                continue
            operator = props.get("operator") or operator
            value = props.get("value")
            ignore_null = props.get("ignore_null", True) is not False
            field_name = validate_field_name(props.get("field_name") or field_name)

        if value is None and ignore_null:
            continue

        if "." in param_name:
            param_name = param_name.split(".")[-1]

        op = operator.lower()
        if op in ("between", "not between"):
            statement, _ = between_clause(request, field_name, param_name, value, operator)
        elif isinstance(value, (list, tuple)) or op in ("in", "not in"):
            values = value if isinstance(value, (list, tuple)) else [value]
            statement, names = in_clause(request, field_name, param_name, values,
                                         operator if op in ("in", "not in") else "IN")
            if not names:
                continue
            query = query.replace(f":{{{field_name}}}", ", ".join(names))
        else:
            statement = f"{field_name} {operator} :{param_name}"
            request.input(param_name, value)

        if for_where:
            where_clauses.append(statement)

    if where_clauses:
        query += " WHERE " + " AND ".join(where_clauses)
    return query


class SqlExecutor:
    """Creates requests against one SQLite database (path or open connection)."""

    def __init__(self, db_path: str | None = None, conn: sqlite3.Connection | None = None):
        self.db_path = db_path
        self.conn = conn
        if conn is not None:
            conn.row_factory = sqlite3.Row

    def create_request(self) -> SqlRequest:
        return SqlRequest(self)

    def bind_parameters(self, request: SqlRequest, query: str, parameters: Optional[Dict[str, Any]],
                        for_where: bool = False) -> str:
        return bind_parameters(request, query, parameters, for_where=for_where)

    @staticmethod
    def get_query(query: str) -> str:
        if query.endswith(".sql"):
            return Path(query).read_text(encoding="utf-8")
        return query

    def query(self, query: str, order_by: str | None = None) -> List[Dict[str, Any]]:
        query = self.get_query(query)
        if order_by:
            query += " ORDER BY " + order_by
        return self.create_request().query(query).rows

    def execute(self, statement: str, params: Dict[str, Any] | None = None) -> sqlite3.Cursor:
        logger.debug("sql execute: %s params=%s", statement, params)
        if self.conn is not None:
            return self.conn.execute(statement, params or {})
        with get_conn(self.db_path) as conn:
            cur = conn.execute(statement, params or {})
            conn.commit()
            return cur
