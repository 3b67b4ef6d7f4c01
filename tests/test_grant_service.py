from __future__ import annotations

import pytest

from sharegate.domain.classification import Tag
from sharegate.domain.grants import GrantServiceClient, TableGrant, TagGrant
from sharegate.domain.share_mapping import ShareMappingIndex, ShareStatus


class RecordingAuthorizationApi:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    async def grant_access(self, principal, resource, permissions, grantable_permissions):
        self.calls.append(
            {
                "principal": principal,
                "resource": resource,
                "permissions": permissions,
                "grantable": grantable_permissions,
            }
        )
        return {"ok": True}


@pytest.mark.asyncio
async def test_table_grant_gives_read_access_and_marks_mapping_shared(store) -> None:
    api = RecordingAuthorizationApi()
    index = ShareMappingIndex(store)
    client = GrantServiceClient(api, index)

    result = await client.grant(
        "222222222222",
        TableGrant(owner_domain_id="111111111111", database="111111111111_db1", table="tableA", resource="db1.tableA"),
    )

    assert len(result.grants) == 1
    assert api.calls == [
        {
            "principal": "222222222222",
            "resource": {"Table": {"DatabaseName": "111111111111_db1", "Name": "tableA"}},
            "permissions": ["SELECT", "DESCRIBE"],
            "grantable": ["SELECT", "DESCRIBE"],
        }
    ]
    assert index.status_of("111111111111", "db1.tableA#222222222222") == ShareStatus.SHARED


@pytest.mark.asyncio
async def test_wildcard_table_grant_covers_whole_database(store) -> None:
    api = RecordingAuthorizationApi()
    client = GrantServiceClient(api, ShareMappingIndex(store))

    await client.grant(
        "222222222222",
        TableGrant(owner_domain_id="111111111111", database="111111111111_db1", table="*", resource="db1.*"),
    )

    assert api.calls[0]["resource"] == {"Table": {"DatabaseName": "111111111111_db1", "TableWildcard": {}}}


@pytest.mark.asyncio
async def test_tag_grant_associates_tags_before_policy_grants(store) -> None:
    api = RecordingAuthorizationApi()
    index = ShareMappingIndex(store)
    client = GrantServiceClient(api, index)
    tags = [Tag(key="confidentiality", values=("sensitive",)), Tag(key="region", values=("eu",))]

    result = await client.grant("222222222222", TagGrant(tags=tags))

    resources = [c["resource"] for c in api.calls]
    assert resources[0] == {"LFTag": {"TagKey": "confidentiality", "TagValues": ["sensitive"]}}
    assert resources[1] == {"LFTag": {"TagKey": "region", "TagValues": ["eu"]}}
    assert resources[2]["LFTagPolicy"]["ResourceType"] == "DATABASE"
    assert resources[3]["LFTagPolicy"]["ResourceType"] == "TABLE"
    assert api.calls[0]["permissions"] == ["ASSOCIATE", "DESCRIBE"]
    assert api.calls[3]["permissions"] == ["SELECT", "DESCRIBE"]
    assert len(result.grants) == 4
    # Tag grants leave the mapping to the orchestrator.
    assert index.consumers("111111111111", "tags") == []


@pytest.mark.asyncio
async def test_unknown_grant_selector_is_rejected(store) -> None:
    client = GrantServiceClient(RecordingAuthorizationApi(), ShareMappingIndex(store))

    with pytest.raises(ValueError):
        await client.grant("222222222222", "db1.tableA")
