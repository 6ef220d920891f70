import pytest
from sqlalchemy.exc import OperationalError

from edp import db
from edp.session import DataSession, DataSessionError, format_product


def _run(engine):
    lines = []
    report = DataSession(engine, out=lines.append).run()
    return report, lines


def test_round_trip_assigns_distinct_identities(sqlite_engine):
    db.reset_schema(sqlite_engine)
    db.insert_products(sqlite_engine, [("apple", 5.99), ("orange", 4.99)])

    rows = db.list_products(sqlite_engine)

    assert sorted((r.name, r.price) for r in rows) == [("apple", 5.99), ("orange", 4.99)]
    ids = [r.id for r in rows]
    assert all(i for i in ids)
    assert len(set(ids)) == 2


def test_session_prints_report_and_applies_update_and_delete(sqlite_engine):
    report, lines = _run(sqlite_engine)

    first, second = report.products
    assert first.name == "banana"
    assert lines == [f"Product {first.id}: apple - $5.99", f"Product {second.id}: orange - $4.99"]
    assert report.updated_id == first.id
    assert report.deleted_id == second.id

    remaining = db.list_products(sqlite_engine)
    assert len(remaining) == 1
    assert remaining[0].id == first.id
    assert remaining[0].name == "banana"
    assert remaining[0].price == first.price
    assert second.id not in {r.id for r in remaining}


def test_rerun_resets_schema(sqlite_engine):
    _run(sqlite_engine)
    report, _ = _run(sqlite_engine)
    assert len(report.products) == 2
    assert len(db.list_products(sqlite_engine)) == 1


def test_format_product():
    assert format_product(db.ProductRow(id=7, name="apple", price=5.999)) == "Product 7: apple - $6.00"


def test_update_touches_only_name(sqlite_engine):
    db.reset_schema(sqlite_engine)
    db.insert_products(sqlite_engine, [("apple", 5.99)])
    (row,) = db.list_products(sqlite_engine)

    assert db.rename_product(sqlite_engine, row.id, "banana") == 1

    (after,) = db.list_products(sqlite_engine)
    assert (after.id, after.name, after.price) == (row.id, "banana", 5.99)


def _boom(*args, **kwargs):
    raise OperationalError("stmt", {}, Exception("db down"))


@pytest.mark.parametrize(
    "fn,step",
    [
        ("ping", "connect"),
        ("reset_schema", "reset schema"),
        ("insert_products", "insert"),
        ("list_products", "read"),
        ("rename_product", "update"),
        ("delete_product", "delete"),
    ],
)
def test_failure_stops_sequence(sqlite_engine, monkeypatch, fn, step):
    order = ["ping", "reset_schema", "insert_products", "list_products", "rename_product", "delete_product"]
    called = []
    for name in order:
        real = getattr(db, name)

        def wrapper(*args, _name=name, _real=real, **kwargs):
            called.append(_name)
            return _real(*args, **kwargs)

        monkeypatch.setattr(db, name, wrapper)

    def failing(*args, **kwargs):
        called.append(fn)
        _boom()

    monkeypatch.setattr(db, fn, failing)

    with pytest.raises(DataSessionError) as exc:
        DataSession(sqlite_engine, out=lambda line: None).run()

    assert exc.value.step == step
    assert called == order[: order.index(fn) + 1]


def test_failed_update_leaves_inserted_rows_committed(sqlite_engine, monkeypatch):
    monkeypatch.setattr(db, "rename_product", _boom)

    with pytest.raises(DataSessionError):
        DataSession(sqlite_engine, out=lambda line: None).run()

    assert sorted(r.name for r in db.list_products(sqlite_engine)) == ["apple", "orange"]
