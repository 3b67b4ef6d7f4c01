from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

from sharegate.core.errors import TransactionConflict
from sharegate.infrastructure.ledger import Add, Delete, LedgerStore, Put, Update

LEDGER = "approval_ledger"
MAPPINGS = "share_mappings"


def _mapping(domain_id: str, resource_mapping_key: str, status: str = "pending") -> dict:
    return {
        "domain_id": domain_id,
        "resource_mapping_key": resource_mapping_key,
        "status": status,
        "updated_at": datetime(2024, 1, 1),
    }


def test_put_then_get_returns_item(store) -> None:
    store.put(Put(MAPPINGS, _mapping("111111111111", "db1.tableA#222222222222")))

    row = store.get(MAPPINGS, {"domain_id": "111111111111", "resource_mapping_key": "db1.tableA#222222222222"})

    assert row is not None
    assert row["status"] == "pending"


def test_plain_put_replaces_existing_item(store) -> None:
    key = {"domain_id": "111111111111", "resource_mapping_key": "db1.tableA#222222222222"}
    store.put(Put(MAPPINGS, _mapping(**key)))
    store.put(Put(MAPPINGS, _mapping(**key, status="shared")))

    assert store.get(MAPPINGS, key)["status"] == "shared"


def test_put_if_absent_conflicts_on_existing_key(store) -> None:
    item = _mapping("111111111111", "db1.tableA#222222222222")
    store.put(Put(MAPPINGS, item, if_absent=True))

    with pytest.raises(TransactionConflict) as exc:
        store.put(Put(MAPPINGS, {**item, "status": "shared"}, if_absent=True))

    assert isinstance(exc.value.op, Put)
    assert store.get(MAPPINGS, {"domain_id": "111111111111", "resource_mapping_key": "db1.tableA#222222222222"})["status"] == "pending"


def test_transact_is_all_or_nothing(store) -> None:
    failing = Update(MAPPINGS, key={"domain_id": "111111111111", "resource_mapping_key": "missing#1"}, values={"status": "shared"})

    with pytest.raises(TransactionConflict) as exc:
        store.transact([
            Put(MAPPINGS, _mapping("111111111111", "db1.tableA#222222222222")),
            Add(LEDGER, key={"owner_domain_id": "111111111111", "request_id": "itemsForApproval"}, attribute="pending_count", amount=1),
            failing,
        ])

    assert exc.value.op is failing
    assert store.get(MAPPINGS, {"domain_id": "111111111111", "resource_mapping_key": "db1.tableA#222222222222"}) is None
    assert store.get(LEDGER, {"owner_domain_id": "111111111111", "request_id": "itemsForApproval"}) is None


def test_update_condition_guards_the_write(store) -> None:
    key = {"domain_id": "111111111111", "resource_mapping_key": "db1.tableA#222222222222"}
    store.put(Put(MAPPINGS, _mapping(**key)))

    with pytest.raises(TransactionConflict):
        store.transact([Update(MAPPINGS, key=key, values={"status": "shared"}, condition={"status": "rejected"})])

    store.transact([Update(MAPPINGS, key=key, values={"status": "shared"}, condition={"status": "pending"})])
    assert store.get(MAPPINGS, key)["status"] == "shared"


def test_delete_of_missing_item_conflicts(store) -> None:
    with pytest.raises(TransactionConflict):
        store.transact([Delete(LEDGER, {"owner_domain_id": "111111111111", "request_id": "PENDING#1"})])

    # Unconditional deletes are no-ops.
    store.transact([Delete(LEDGER, {"owner_domain_id": "111111111111", "request_id": "PENDING#1"}, must_exist=False)])


def test_add_initialises_missing_counter_and_accumulates(store) -> None:
    key = {"owner_domain_id": "111111111111", "request_id": "itemsForApproval"}

    store.transact([Add(LEDGER, key=key, attribute="pending_count", amount=1)])
    store.transact([Add(LEDGER, key=key, attribute="pending_count", amount=2)])
    store.transact([Add(LEDGER, key=key, attribute="pending_count", amount=-1)])

    assert store.get(LEDGER, key)["pending_count"] == 2


def test_add_never_drives_counter_negative(store) -> None:
    key = {"owner_domain_id": "111111111111", "request_id": "itemsForApproval"}
    store.transact([Add(LEDGER, key=key, attribute="pending_count", amount=1)])

    with pytest.raises(TransactionConflict):
        store.transact([Add(LEDGER, key=key, attribute="pending_count", amount=-2)])

    assert store.get(LEDGER, key)["pending_count"] == 1


def test_decrement_of_missing_counter_conflicts(store) -> None:
    with pytest.raises(TransactionConflict):
        store.transact([
            Add(LEDGER, key={"owner_domain_id": "999999999999", "request_id": "itemsForApproval"}, attribute="pending_count", amount=-1)
        ])


def test_query_by_prefix_pages_in_sort_key_order(store) -> None:
    for key in ["b#3", "a#1", "a#2", "a#3", "a_x#1"]:
        store.put(Put(MAPPINGS, _mapping("111111111111", key)))
    store.put(Put(MAPPINGS, _mapping("333333333333", "a#9")))

    first = store.query_by_prefix(
        MAPPINGS,
        partition={"domain_id": "111111111111"},
        sort_column="resource_mapping_key",
        prefix="a#",
        limit=2,
    )
    second = store.query_by_prefix(
        MAPPINGS,
        partition={"domain_id": "111111111111"},
        sort_column="resource_mapping_key",
        prefix="a#",
        limit=2,
        start_after=first.last_evaluated_key,
    )

    assert [r["resource_mapping_key"] for r in first.items] == ["a#1", "a#2"]
    assert first.last_evaluated_key == "a#2"
    assert [r["resource_mapping_key"] for r in second.items] == ["a#3"]
    assert second.last_evaluated_key is None


def test_query_by_prefix_treats_wildcard_characters_literally(store) -> None:
    store.put(Put(MAPPINGS, _mapping("111111111111", "db_1.t#2")))
    store.put(Put(MAPPINGS, _mapping("111111111111", "dbX1.t#2")))

    page = store.query_by_prefix(
        MAPPINGS,
        partition={"domain_id": "111111111111"},
        sort_column="resource_mapping_key",
        prefix="db_1.",
    )

    assert [r["resource_mapping_key"] for r in page.items] == ["db_1.t#2"]


def test_unknown_table_is_rejected(store) -> None:
    with pytest.raises(ValueError):
        store.get("nope", {"id": 1})


def test_store_rejects_dialect_without_upsert() -> None:
    mysql_bind = SimpleNamespace(dialect=SimpleNamespace(name="mysql"))

    with pytest.raises(ValueError, match="mysql"):
        LedgerStore(sessionmaker(bind=mysql_bind))
