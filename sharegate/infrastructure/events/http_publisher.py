"""Fire-and-forget integration events addressed to a domain's event channel."""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from sharegate.observability.tracing import log_event, traced

SOURCE = "com.central.sharing"


class EventPublisher(Protocol):
    async def publish(
        self,
        *,
        domain_id: str,
        detail_type: str,
        detail: dict[str, Any],
        trace_id: str | None = None,
    ) -> bool:
        """Deliver one event to `domain_id`. Returns False if delivery failed."""
        ...


class HttpEventPublisher:
    """POST events to `{base_url}/domains/{domain_id}/events`.

    Delivery is best-effort: failures are logged and reported through the
    return value, never raised.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip('/')
        self._client = client
        self._timeout = timeout

    async def publish(
        self,
        *,
        domain_id: str,
        detail_type: str,
        detail: dict[str, Any],
        trace_id: str | None = None,
    ) -> bool:
        url = f'{self._base_url}/domains/{domain_id}/events'
        payload = {'Source': SOURCE, 'DetailType': detail_type, 'Detail': detail}

        try:
            with traced('events.publish', trace_id=trace_id, detail_type=detail_type):
                await self._post(url, payload)
        except httpx.HTTPError as exc:
            log_event(
                'events.publish.failed',
                trace_id=trace_id,
                domain_id=domain_id,
                detail_type=detail_type,
                error=str(exc),
            )
            return False
        return True

    async def _post(self, url: str, payload: dict[str, Any]) -> None:
        if self._client is not None:
            resp = await self._client.post(url, json=payload, timeout=self._timeout)
            resp.raise_for_status()
            return

        async with httpx.AsyncClient() as client:
            resp = await client.post(url, json=payload, timeout=self._timeout)
            resp.raise_for_status()
