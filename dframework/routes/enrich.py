from __future__ import annotations

import re
import sqlite3
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..domain.data_table import DataTable
from ..logs import LogContext
from ..services.concatenated_column_svc import ColumnConfig, ConcatenatedColumn
from ..services.config_svc import Settings, get_settings
from ..sql import SqlExecutor
from .security import require_token

router = APIRouter(dependencies=[Depends(require_token)])

_SELECT_RE = re.compile(r"^\s*select\s", re.IGNORECASE)


class ColumnConfigBody(BaseModel):
    ParentColumn: str = Field(..., pattern=r"^[a-zA-Z0-9_.]+$")
    ColumnName: str = Field(..., min_length=1)
    Query: str
    JoinColumn: str | None = Field(None, pattern=r"^[a-zA-Z0-9_.]+$")
    DisplayColumn: str | None = None
    FilterColumn: str | None = Field(None, pattern=r"^[a-zA-Z0-9_.]+$")

    def to_config(self) -> ColumnConfig:
        if not _SELECT_RE.match(self.Query) or ";" in self.Query:
            raise ValueError("Query must be a single SELECT statement")
        return ColumnConfig.from_dict(self.model_dump(exclude_none=True))


class EnrichBody(BaseModel):
    rows: list[dict[str, Any]]
    columns: list[ColumnConfigBody]


class FilterBody(BaseModel):
    value: str
    column: ColumnConfigBody


@router.post("/api/enrich")
def api_enrich(body: EnrichBody, settings: Settings = Depends(get_settings)):
    try:
        with LogContext("ENRICH", db_path=settings.db_path) as log:
            log.set_payload({"rows": len(body.rows), "columns": [c.ColumnName for c in body.columns]})
            configs = [c.to_config() for c in body.columns]
            engine = ConcatenatedColumn(configs, SqlExecutor(settings.db_path), settings.max_batch_size)
            table = engine.add_columns(DataTable.from_rows(body.rows), log)
    except (ValueError, sqlite3.Error) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"columns": table.columns, "rows": table.rows}


@router.post("/api/enrich/filter")
def api_enrich_filter(body: FilterBody, settings: Settings = Depends(get_settings)):
    try:
        config = body.column.to_config()
        request = SqlExecutor(settings.db_path).create_request()
        predicate = ConcatenatedColumn([config]).build_correlated_subquery(f"%{body.value}%", config, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"predicate": predicate, "parameters": request.parameters}
