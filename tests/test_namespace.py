import pytest

from sharegate.domain.classification import Tag
from sharegate.runtime.namespace import derive_owner_namespace
from sharegate.runtime.workflows import ResourceBasedSelector, TagBasedSelector


def test_bare_database_is_prefixed_with_owner() -> None:
    ns = derive_owner_namespace("111111111111", ResourceBasedSelector(database="db1", table="tableA"))

    assert ns.central_database == "111111111111_db1"
    assert ns.producer_domain_id == "111111111111"
    assert ns.raw_database == "db1"


def test_central_name_is_split_on_first_underscore() -> None:
    ns = derive_owner_namespace("111111111111", ResourceBasedSelector(database="111111111111_sales_eu"))

    assert ns.central_database == "111111111111_sales_eu"
    assert ns.raw_database == "sales_eu"


def test_tag_selector_has_no_database() -> None:
    ns = derive_owner_namespace(
        "111111111111",
        TagBasedSelector(tags=[Tag(key="confidentiality", values=("sensitive",))]),
    )

    assert ns.producer_domain_id == "111111111111"
    assert ns.central_database is None


def test_unknown_selector_is_rejected() -> None:
    with pytest.raises(ValueError):
        derive_owner_namespace("111111111111", object())
