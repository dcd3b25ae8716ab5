from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Optional

import pandas as pd


Row = Dict[str, Any]


class DataTable:
    """Ordered rows (mutable dicts) plus the list of known column names.

    Adding a column only registers its name; rows get the key when a value is
    written, so untouched rows keep "no value" rather than ``None``.
    """

    def __init__(self, rows: Optional[List[Row]] = None, columns: Optional[Iterable[str]] = None):
        self.rows: List[Row] = rows if rows is not None else []
        self.columns: List[str] = []
        for c in columns or []:
            self.add_column(c)

    @classmethod
    def from_rows(cls, rows: List[Row]) -> "DataTable":
        cols: List[str] = []
        seen = set()
        for r in rows:
            for k in r.keys():
                if k not in seen:
                    seen.add(k)
                    cols.append(k)
        return cls(rows=rows, columns=cols)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "DataTable":
        clean = df.astype(object).where(pd.notna(df), None)
        return cls(rows=clean.to_dict(orient="records"), columns=list(df.columns))

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.columns)

    def has_column(self, name: str) -> bool:
        return name in self.columns

    def add_column(self, name: str):
        if name not in self.columns:
            self.columns.append(name)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)
