"""HTTP adapter for the external resource catalog."""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from sharegate.core.errors import ClassificationLookupFailure, ResourceNotFoundError
from sharegate.domain.classification import Classification, ResourceKey


class HttpCatalogClient:
    """Fetch classification metadata from the catalog service.

    Table lookups hit `/domains/{domain}/databases/{database}/tables/{table}`;
    a wildcard table falls back to the database entry, whose tags and PII flag
    cover every table in it.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Create a catalog client.

        Args:
            base_url: Base URL of the catalog service (e.g. http://catalog-svc:8101/v1/catalog).
            client: Optional injected httpx client for testing / transport control.
            timeout: Per-request timeout in seconds.
        """
        self._base_url = base_url.rstrip('/')
        self._client = client
        self._timeout = timeout

    async def get_classification(self, owner_domain_id: str, resource: ResourceKey) -> Classification:
        path = f'/domains/{owner_domain_id}/databases/{resource.database}'
        if not resource.is_wildcard:
            path += f'/tables/{resource.table}'
        resource_name = f'{resource.database}.{resource.table}'

        try:
            resp = await self._get(f'{self._base_url}{path}')
        except httpx.HTTPError as exc:
            raise ClassificationLookupFailure(f'Catalog lookup failed for {resource_name}: {exc}') from exc

        if resp.status_code == 404:
            raise ResourceNotFoundError(owner_domain_id, resource_name)
        try:
            resp.raise_for_status()
            classification = Classification.model_validate(resp.json())
        except (httpx.HTTPStatusError, ValueError, ValidationError) as exc:
            raise ClassificationLookupFailure(f'Catalog lookup failed for {resource_name}: {exc}') from exc

        if not classification.owner_domain_id:
            raise ResourceNotFoundError(owner_domain_id, resource_name)
        return classification

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, timeout=self._timeout)

        async with httpx.AsyncClient() as client:
            return await client.get(url, timeout=self._timeout)
