"""Secondary index of sharing state, one row per resource x target domain.

Rows are never deleted; they double as sharing history and as the advisory
duplicate-request guard checked before a new approval request is raised.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sharegate.infrastructure.ledger import LedgerStore, Put, Update

from .entities import (
    TABLE_NAME,
    ConsumerStatus,
    ShareMapping,
    ShareStatus,
)


class ShareMappingIndex:
    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def get(self, domain_id: str, mapping_key: str) -> ShareMapping | None:
        row = self._store.get(
            TABLE_NAME,
            {"domain_id": domain_id, "resource_mapping_key": mapping_key},
            consistent_read=True,
        )
        return _to_entity(row) if row else None

    def status_of(self, domain_id: str, mapping_key: str) -> ShareStatus | None:
        mapping = self.get(domain_id, mapping_key)
        return mapping.status if mapping else None

    def upsert_op(self, domain_id: str, mapping_key: str, status: ShareStatus) -> Put:
        return Put(
            TABLE_NAME,
            {
                "domain_id": domain_id,
                "resource_mapping_key": mapping_key,
                "status": status.value,
                "updated_at": datetime.now(),
            },
        )

    def set_status_op(self, domain_id: str, mapping_key: str, status: ShareStatus) -> Update:
        """Status transition on an existing row (fails the transaction if the row is missing)."""
        return Update(
            TABLE_NAME,
            key={"domain_id": domain_id, "resource_mapping_key": mapping_key},
            values={"status": status.value, "updated_at": datetime.now()},
        )

    def upsert(self, domain_id: str, mapping_key: str, status: ShareStatus) -> None:
        self._store.put(self.upsert_op(domain_id, mapping_key, status))

    def consumers(self, domain_id: str, resource: str) -> list[ShareMapping]:
        """Every target domain that ever requested `resource`, with its current status."""
        mappings: list[ShareMapping] = []
        start_after: str | None = None
        while True:
            page = self._store.query_by_prefix(
                TABLE_NAME,
                partition={"domain_id": domain_id},
                sort_column="resource_mapping_key",
                prefix=f"{resource}#",
                limit=100,
                start_after=start_after,
                consistent_read=True,
            )
            mappings.extend(_to_entity(row) for row in page.items)
            start_after = page.last_evaluated_key
            if start_after is None:
                return mappings

    def statuses_for(
        self,
        domain_id: str,
        resource: str,
        target_domain_ids: Iterable[str],
    ) -> list[ConsumerStatus]:
        """Share status of `resource` towards each of the given target domains."""
        return [
            ConsumerStatus(
                domain_id=target,
                status=self.status_of(domain_id, f"{resource}#{target}"),
            )
            for target in target_domain_ids
        ]


def _to_entity(row: dict) -> ShareMapping:
    return ShareMapping(
        domain_id=row["domain_id"],
        resource_mapping_key=row["resource_mapping_key"],
        status=ShareStatus(row["status"]),
        updated_at=row.get("updated_at"),
    )
