"""Grant Service Client: enables cross-domain read access once sharing is allowed."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from sharegate.domain.classification import Tag
from sharegate.domain.share_mapping import (
    ShareMappingIndex,
    ShareStatus,
    resource_mapping_key,
)

READ_PERMISSIONS = ["SELECT", "DESCRIBE"]
DESCRIBE_PERMISSIONS = ["DESCRIBE"]
TAG_ASSOCIATE_PERMISSIONS = ["ASSOCIATE", "DESCRIBE"]


class AuthorizationApi(Protocol):
    async def grant_access(
        self,
        principal: str,
        resource: dict[str, Any],
        permissions: list[str],
        grantable_permissions: list[str],
    ) -> dict[str, Any]:
        """Grant `permissions` on `resource` to `principal`.

        Raises:
            GrantFailure: If the authorization system refuses or cannot be reached.
        """
        ...


@dataclass(frozen=True)
class TableGrant:
    """A named table, or every table of `database` when `table` is `*`."""
    owner_domain_id: str
    database: str
    table: str
    resource: str

    @property
    def is_wildcard(self) -> bool:
        return self.table == "*"


@dataclass(frozen=True)
class TagGrant:
    tags: list[Tag]


@dataclass
class GrantResult:
    principal: str
    grants: list[dict[str, Any]] = field(default_factory=list)


class GrantServiceClient:
    def __init__(self, api: AuthorizationApi, share_index: ShareMappingIndex) -> None:
        self._api = api
        self._share_index = share_index

    async def grant(self, principal: str, selector: TableGrant | TagGrant) -> GrantResult:
        if isinstance(selector, TableGrant):
            return await self._grant_table(principal, selector)
        if isinstance(selector, TagGrant):
            return await self._grant_tags(principal, selector)
        raise ValueError(f"Unsupported grant selector: {selector!r}")

    async def _grant_table(self, principal: str, selector: TableGrant) -> GrantResult:
        if selector.is_wildcard:
            table = {"DatabaseName": selector.database, "TableWildcard": {}}
        else:
            table = {"DatabaseName": selector.database, "Name": selector.table}

        result = GrantResult(principal=principal)
        result.grants.append(
            await self._grant(principal, {"Table": table}, READ_PERMISSIONS)
        )

        self._share_index.upsert(
            selector.owner_domain_id,
            resource_mapping_key(selector.resource, principal),
            ShareStatus.SHARED,
        )
        return result

    async def _grant_tags(self, principal: str, selector: TagGrant) -> GrantResult:
        expression = [
            {"TagKey": t.key, "TagValues": list(t.values)} for t in selector.tags
        ]
        result = GrantResult(principal=principal)

        # Associate rights on each tag let the target extend the grant further.
        for tag in expression:
            result.grants.append(
                await self._grant(principal, {"LFTag": tag}, TAG_ASSOCIATE_PERMISSIONS)
            )

        result.grants.append(
            await self._grant(
                principal,
                {"LFTagPolicy": {"ResourceType": "DATABASE", "Expression": expression}},
                DESCRIBE_PERMISSIONS,
            )
        )
        result.grants.append(
            await self._grant(
                principal,
                {"LFTagPolicy": {"ResourceType": "TABLE", "Expression": expression}},
                READ_PERMISSIONS,
            )
        )
        return result

    async def _grant(
        self,
        principal: str,
        resource: dict[str, Any],
        permissions: list[str],
    ) -> dict[str, Any]:
        await self._api.grant_access(
            principal=principal,
            resource=resource,
            permissions=permissions,
            grantable_permissions=permissions,
        )
        return {"resource": resource, "permissions": permissions}
