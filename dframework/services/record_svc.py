from __future__ import annotations

from typing import Any, Iterable

from ..db import get_conn
from ..logs import LogContext
from ..repository import record_repo
from .password_svc import PasswordCipher


class RecordService:
    """Save/load records of one table, encrypting password fields on the way in
    and decrypting them on the way out."""

    def __init__(self, table_name: str, key_field: str, password_fields: Iterable[str] = (),
                 cipher: PasswordCipher | None = None, db_path: str | None = None):
        self.table_name = table_name
        self.key_field = key_field
        self.password_fields = list(password_fields)
        self.cipher = cipher
        self.db_path = db_path
        if self.password_fields and cipher is None:
            raise ValueError("password_fields need a cipher")

    @classmethod
    def from_settings(cls, settings, table_name: str, key_field: str,
                      password_fields: Iterable[str] = ()) -> "RecordService":
        cipher = PasswordCipher(settings.secret_key) if settings.secret_key else None
        return cls(table_name, key_field, password_fields, cipher, db_path=settings.db_path)

    def before_save(self, record: dict[str, Any]) -> dict[str, Any]:
        out = dict(record)
        for f in self.password_fields:
            if out.get(f):
                if not isinstance(out[f], str):
                    raise ValueError(f"{f} must be a string, got {type(out[f]).__name__}")
                out[f] = self.cipher.encrypt_password(out[f])
        return out

    def after_load(self, record: dict[str, Any] | None) -> dict[str, Any] | None:
        if record is None:
            return None
        for f in self.password_fields:
            if record.get(f):
                record[f] = self.cipher.decrypt_password(record[f])
        return record

    def save(self, record: dict[str, Any], log: LogContext | None = None) -> Any:
        """Insert when the key is missing or unknown, otherwise update. Returns the key."""
        data = self.before_save(record)
        key = data.get(self.key_field)
        with get_conn(self.db_path) as conn:
            exists = key is not None and record_repo.get_one(conn, self.table_name, self.key_field, key) is not None
            if exists:
                record_repo.update(conn, self.table_name, data, self.key_field)
            else:
                rowid = record_repo.insert(conn, self.table_name, data)
                if key is None:
                    key = rowid
            conn.commit()
        if log is not None:
            log.set_entity(self.table_name, str(key))
            # never log secrets
            log.set_after({k: ("***" if k in self.password_fields else v) for k, v in record.items()})
        return key

    def load(self, key: Any) -> dict[str, Any] | None:
        with get_conn(self.db_path) as conn:
            row = record_repo.get_one(conn, self.table_name, self.key_field, key)
        return self.after_load(row)

    def list(self, where: dict[str, Any] | None = None, order_by: str | None = None) -> list[dict[str, Any]]:
        with get_conn(self.db_path) as conn:
            rows = record_repo.list_where(conn, self.table_name, where, order_by)
        return [self.after_load(r) for r in rows]
