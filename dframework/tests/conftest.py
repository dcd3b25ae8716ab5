import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "dframework_test.db"
    # Point dframework to this temp DB
    os.environ["DFRAMEWORK_DB_PATH"] = str(path)
    schema = Path(_PROJECT_ROOT / "schema.sql").read_text(encoding="utf-8")
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(schema)
        conn.commit()
    finally:
        conn.close()
    return str(path)


@pytest.fixture()
def mem_conn():
    schema = Path(_PROJECT_ROOT / "schema.sql").read_text(encoding="utf-8")
    conn = sqlite3.connect(":memory:")
    conn.executescript(schema)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


API_TOKEN = "test-token"


@pytest.fixture()
def client(tmp_db_path, monkeypatch):
    monkeypatch.setenv("DFRAMEWORK_API_TOKEN", API_TOKEN)
    from dframework.logs import ensure_log_schema
    ensure_log_schema()
    from dframework.api import app
    from fastapi.testclient import TestClient
    return TestClient(app, headers={"Authorization": f"Bearer {API_TOKEN}"})


@pytest.fixture()
def anon_client(tmp_db_path):
    from dframework.logs import ensure_log_schema
    ensure_log_schema()
    from dframework.api import app
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("DFRAMEWORK_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    tables = ["customer", "customer_tag", "orders", "order_item", "app_user", "operation_log"]
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in tables:
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield
