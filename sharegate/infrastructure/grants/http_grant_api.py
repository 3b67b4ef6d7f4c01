"""HTTP adapter for the external authorization-grant service."""

from __future__ import annotations

from typing import Any

import httpx

from sharegate.core.errors import GrantFailure


class HttpAuthorizationApi:
    """POST each grant to `{base_url}/grants`.

    Retrying transient failures is the grant service's concern; any
    transport error or non-2xx response is reported as a `GrantFailure`.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip('/')
        self._client = client
        self._timeout = timeout

    async def grant_access(
        self,
        principal: str,
        resource: dict[str, Any],
        permissions: list[str],
        grantable_permissions: list[str],
    ) -> dict[str, Any]:
        payload = {
            'Principal': {'DataLakePrincipalIdentifier': principal},
            'Resource': resource,
            'Permissions': permissions,
            'PermissionsWithGrantOption': grantable_permissions,
        }
        url = f'{self._base_url}/grants'

        try:
            if self._client is not None:
                resp = await self._client.post(url, json=payload, timeout=self._timeout)
                resp.raise_for_status()
                return resp.json()

            async with httpx.AsyncClient() as client:
                resp = await client.post(url, json=payload, timeout=self._timeout)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPError as exc:
            raise GrantFailure(f'Grant to {principal} failed: {exc}') from exc
