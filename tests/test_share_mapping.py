from sharegate.domain.classification import Tag
from sharegate.domain.share_mapping import (
    ShareMappingIndex,
    ShareStatus,
    resource_mapping_key,
    tag_mapping_key,
    tag_set_fingerprint,
)

OWNER = "111111111111"


def test_resource_mapping_key_format() -> None:
    assert resource_mapping_key("db1.tableA", "222222222222") == "db1.tableA#222222222222"


def test_tag_fingerprint_ignores_order() -> None:
    a = [Tag(key="confidentiality", values=("sensitive", "internal")), Tag(key="region", values=("eu",))]
    b = [Tag(key="region", values=("eu",)), Tag(key="confidentiality", values=("internal", "sensitive"))]

    assert tag_set_fingerprint(a) == tag_set_fingerprint(b)
    assert tag_set_fingerprint(a).startswith("tags-")


def test_tag_fingerprint_distinguishes_values() -> None:
    sensitive = [Tag(key="confidentiality", values=("sensitive",))]
    public = [Tag(key="confidentiality", values=("public",))]

    assert tag_mapping_key(sensitive, "2") != tag_mapping_key(public, "2")


def test_upsert_and_status(store) -> None:
    index = ShareMappingIndex(store)
    key = resource_mapping_key("db1.tableA", "222222222222")

    assert index.status_of(OWNER, key) is None

    index.upsert(OWNER, key, ShareStatus.PENDING)
    index.upsert(OWNER, key, ShareStatus.SHARED)

    mapping = index.get(OWNER, key)
    assert mapping.status == ShareStatus.SHARED
    assert mapping.target_domain_id == "222222222222"


def test_consumers_lists_every_target_of_a_resource(store) -> None:
    index = ShareMappingIndex(store)
    index.upsert(OWNER, "db1.tableA#222222222222", ShareStatus.SHARED)
    index.upsert(OWNER, "db1.tableA#333333333333", ShareStatus.REJECTED)
    index.upsert(OWNER, "db1.tableAB#444444444444", ShareStatus.SHARED)

    consumers = index.consumers(OWNER, "db1.tableA")

    assert [(c.target_domain_id, c.status) for c in consumers] == [
        ("222222222222", ShareStatus.SHARED),
        ("333333333333", ShareStatus.REJECTED),
    ]


def test_statuses_for_reports_unrequested_domains_as_none(store) -> None:
    index = ShareMappingIndex(store)
    index.upsert(OWNER, "db1.tableA#222222222222", ShareStatus.PENDING)

    statuses = index.statuses_for(OWNER, "db1.tableA", ["222222222222", "333333333333"])

    assert [(s.domain_id, s.status) for s in statuses] == [
        ("222222222222", ShareStatus.PENDING),
        ("333333333333", None),
    ]
