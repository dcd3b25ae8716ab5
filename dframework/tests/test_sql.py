import pytest

from dframework.sql import SqlExecutor, bind_parameters, in_clause, is_valid_field_name


def _req():
    return SqlExecutor(db_path=":memory:").create_request()


def test_scalar_and_null_parameters():
    r = _req()
    q = bind_parameters(r, "SELECT * FROM t", {"a": 1, "b": None, "c": {"value": "x", "operator": "<>"}}, for_where=True)
    assert q == "SELECT * FROM t WHERE a = :a AND c <> :c"
    assert r.parameters == {"a": 1, "c": "x"}


def test_null_kept_when_ignore_null_false():
    r = _req()
    q = bind_parameters(r, "SELECT * FROM t", {"a": {"value": None, "operator": "IS", "ignore_null": False}}, for_where=True)
    assert q == "SELECT * FROM t WHERE a IS :a"
    assert r.parameters == {"a": None}


def test_list_values_expand_to_in():
    r = _req()
    q = bind_parameters(r, "SELECT * FROM t", {"o.OrderId": {"value": [5, 6], "operator": "in"}}, for_where=True)
    assert q == "SELECT * FROM t WHERE o.OrderId IN (:OrderId0, :OrderId1)"
    assert r.parameters == {"OrderId0": 5, "OrderId1": 6}


def test_empty_list_is_skipped():
    r = _req()
    q = bind_parameters(r, "SELECT * FROM t", {"id": []}, for_where=True)
    assert q == "SELECT * FROM t"
    assert r.parameters == {}


def test_embedded_placeholder_is_replaced():
    r = _req()
    q = bind_parameters(r, "SELECT * FROM (SELECT * FROM t WHERE id IN (:{id})) x", {"id": [1, 2]})
    assert q == "SELECT * FROM (SELECT * FROM t WHERE id IN (:id0, :id1)) x"


def test_between_and_raw_statement():
    r = _req()
    q = bind_parameters(
        r,
        "SELECT * FROM t",
        {"d": {"value": ["2024-01-01", "2024-12-31"], "operator": "between"}, "x": {"statement": "x IS NOT NULL"}},
        for_where=True,
    )
    assert q == "SELECT * FROM t WHERE d BETWEEN :d_from AND :d_to AND x IS NOT NULL"
    assert r.parameters == {"d_from": "2024-01-01", "d_to": "2024-12-31"}


def test_not_in_operator():
    r = _req()
    stmt, names = in_clause(r, "id", "id", [1], operator="not in")
    assert stmt == "id NOT IN (:id0)"
    assert names == [":id0"]


def test_invalid_field_names_rejected():
    assert is_valid_field_name("o.OrderId")
    assert not is_valid_field_name("id; DROP TABLE t")
    with pytest.raises(ValueError):
        bind_parameters(_req(), "SELECT 1", {"id) OR (1=1": 1}, for_where=True)


def test_executor_query_against_file_db(tmp_db_path):
    ex = SqlExecutor()
    ex.execute("INSERT INTO customer(CustomerId, Name) VALUES(:id, :name)", {"id": 7, "name": "Ada"})
    rows = ex.query("SELECT CustomerId, Name FROM customer", order_by="CustomerId")
    assert rows == [{"CustomerId": 7, "Name": "Ada"}]


def test_get_query_reads_sql_files(tmp_path):
    f = tmp_path / "q.sql"
    f.write_text("SELECT 1 AS one", encoding="utf-8")
    ex = SqlExecutor(db_path=str(tmp_path / "x.db"))
    assert ex.query(str(f)) == [{"one": 1}]
