"""
Concatenated columns: add one column per relationship to a result table, holding the
related child rows folded into a ", " separated string.

    engine = ConcatenatedColumn([ColumnConfig(parent_column="CustomerId", column_name="Tags",
                                              query="SELECT CustomerId, Tag FROM customer_tag",
                                              display_column="Tag")], executor)
    engine.add_columns(table)   # mutates table and returns it

Child rows are fetched with ``join_column IN (...)`` in batches of at most
``max_batch_size`` keys (statements cap the number of bound parameters), one batch
after another, and merged in batch order before being matched back to parents.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from ..domain.data_table import DataTable
from ..sql import QueryResult, SqlExecutor, SqlRequest, validate_field_name

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 1500
SEPARATOR = ", "
SUBQUERY_ALIAS = "ConcatenatedSubQuery"

InfoParser = Callable[[Dict[str, Any]], Optional[Any]]
ListMethod = Callable[[List[Any]], Any]

_CONFIG_KEYS = {
    "ParentColumn": "parent_column",
    "ColumnName": "column_name",
    "Query": "query",
    "JoinColumn": "join_column",
    "DisplayColumn": "display_column",
    "FilterColumn": "filter_column",
    "ListMethod": "list_method",
    "listMethod": "list_method",
    "InfoParser": "info_parser",
    "infoParser": "info_parser",
}


@dataclass
class ColumnConfig:
    """One parent -> children relationship to render as a column."""
    parent_column: Optional[str] = None
    column_name: Optional[str] = None
    query: Optional[str] = None
    join_column: Optional[str] = None
    display_column: Optional[str] = None
    filter_column: Optional[str] = None
    list_method: Optional[ListMethod] = None
    info_parser: Optional[InfoParser] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnConfig":
        kwargs = {}
        for k, v in data.items():
            name = _CONFIG_KEYS.get(k, k)
            if name not in cls.__dataclass_fields__:
                raise ValueError(f"unknown column config key: {k}")
            kwargs[name] = v
        return cls(**kwargs)

    @property
    def join_key(self) -> Optional[str]:
        return self.join_column or self.parent_column

    @property
    def filter_field(self) -> Optional[str]:
        return self.filter_column or self.display_column

    def parse_info(self, row: Dict[str, Any]) -> Optional[Any]:
        if self.info_parser is not None:
            return self.info_parser(row)
        if not self.display_column:
            return None
        return row.get(self.display_column)


def extract_keys(rows: Sequence[Dict[str, Any]], column: str) -> List[Any]:
    """Parent key values in row order; rows without a key are skipped, duplicates kept."""
    return [r[column] for r in rows if r.get(column) is not None]


def chunk_keys(keys: Sequence[Any], size: int = MAX_BATCH_SIZE) -> Iterator[List[Any]]:
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    if len(keys) <= size:
        if keys:
            yield list(keys)
        return
    for start in range(0, len(keys), size):
        yield list(keys[start:start + size])


def list_parser(info_parser: InfoParser, rows: Sequence[Dict[str, Any]]) -> str:
    parts: List[str] = []
    for child in rows:
        info = info_parser(child)
        if info is None:
            continue
        text = info if isinstance(info, str) else str(info)
        if text:
            parts.append(text)
    return SEPARATOR.join(parts)


def _as_rows(result: Any) -> List[Dict[str, Any]]:
    if result is None:
        return []
    if isinstance(result, QueryResult):
        return list(result.rows)
    if isinstance(result, DataTable):
        return list(result.rows)
    return [dict(r) for r in result]


class ConcatenatedColumn:
    def __init__(self, configs: Sequence[ColumnConfig | Dict[str, Any]] | None,
                 executor: SqlExecutor | None = None, max_batch_size: int = MAX_BATCH_SIZE):
        self.configs: List[ColumnConfig] = [
            c if isinstance(c, ColumnConfig) else ColumnConfig.from_dict(c) for c in (configs or [])
        ]
        self.executor = executor
        self.max_batch_size = max_batch_size

    def create_request(self) -> SqlRequest:
        if self.executor is None:
            raise RuntimeError("ConcatenatedColumn has no executor; pass one or use list_method")
        return self.executor.create_request()

    # ---------- fetch ----------
    def fetch_children(self, config: ColumnConfig, keys: List[Any]) -> List[Dict[str, Any]]:
        if config.list_method is not None:
            return _as_rows(config.list_method(keys))

        results: List[Dict[str, Any]] = []
        batches = 0
        for batch in chunk_keys(keys, self.max_batch_size):
            request = self.create_request()
            where = {config.join_key: {"value": batch, "operator": "in"}}
            query = self.executor.bind_parameters(request, config.query, where, for_where=True)
            # one batch at a time, rows appended in batch order
            results.extend(request.query(query).rows)
            batches += 1
        logger.debug("concatenated column %s: %d keys in %d batch(es), %d child rows",
                     config.column_name, len(keys), batches, len(results))
        return results

    # ---------- enrich ----------
    def add_columns(self, table: DataTable | None, log=None) -> DataTable | None:
        """Add/overwrite one column per config on ``table`` (in place) and return it."""
        if table is None or not self.configs:
            return table

        stats: List[Dict[str, Any]] = []
        for config in self.configs:
            if not config.parent_column or not config.column_name:
                logger.warning("skipping concatenated column config without parent_column/column_name: %r", config)
                continue
            if config.list_method is None and not config.query:
                logger.warning("skipping concatenated column %s: no query and no list_method", config.column_name)
                continue

            keys = extract_keys(table.rows, config.parent_column)
            table.add_column(config.column_name)
            if not keys:
                stats.append({"column": config.column_name, "keys": 0, "children": 0})
                continue

            children = self.fetch_children(config, keys)

            join_key = config.join_key
            grouped: Dict[Any, List[Dict[str, Any]]] = {}
            for child in children:
                k = child.get(join_key)
                if k is None:
                    continue
                grouped.setdefault(k, []).append(child)

            for row in table.rows:
                parent_id = row.get(config.parent_column)
                if parent_id is None:
                    continue
                row[config.column_name] = list_parser(config.parse_info, grouped.get(parent_id, []))

            stats.append({"column": config.column_name, "keys": len(keys), "children": len(children)})

        if log is not None:
            log.set_after({"columns": stats})
        return table

    # ---------- filter ----------
    def build_correlated_subquery(self, value: Any, config: ColumnConfig | Dict[str, Any],
                                  request: SqlRequest) -> str:
        """
        Predicate for the parent WHERE clause matching parents that have at least one
        child whose filter field is LIKE ``value``. Binds that single value on
        ``request``; nothing is executed here.

        Returns ``""`` (no predicate, nothing bound) when the configuration has
        neither ``parent_column`` nor ``join_column``.
        """
        if not isinstance(config, ColumnConfig):
            config = ColumnConfig.from_dict(config)
        if not config.join_key:
            logger.warning("skipping correlated filter for %s: no parent_column/join_column", config.column_name)
            return ""
        join_key = validate_field_name(config.join_key)
        child_query = add_like_parameter(config.query or "", request, config.filter_field, "LIKE", value)
        sub_query = f"SELECT {join_key} FROM ({child_query}) {SUBQUERY_ALIAS}"
        return f"{join_key} IN ({sub_query})"

    apply_string_filter = build_correlated_subquery


def add_like_parameter(query: str, request: SqlRequest, field_name: Optional[str],
                       operator: Optional[str], value: Any, for_where: bool = True) -> str:
    if not field_name or not operator:
        return query
    validate_field_name(field_name)
    param_name = field_name.split(".")[-1]
    request.input(param_name, value)
    if for_where:
        query += f" WHERE {field_name} {operator} :{param_name}"
    return query
