# ============================================================
# Ledger access layer
# ============================================================
from typing import Protocol

from sharegate.infrastructure.ledger import Add, Delete, LedgerStore, Put

from .entities import (
    COUNTER_SORT_KEY,
    PENDING_PREFIX,
    TABLE_NAME,
    ApprovalMode,
    ApprovalRequestEntity as ApprovalRequest,
    PageResult,
)


class ApprovalLedgerRepositoryProtocol(Protocol):
    def get(self, owner_domain_id: str, request_id: str) -> ApprovalRequest | None:
        """Get a pending approval request"""
        ...

    def list_pending(self, owner_domain_id: str, limit: int, start_after: str | None = None) -> PageResult:
        """Page through a domain's pending approval requests"""
        ...

    def pending_count(self, owner_domain_id: str) -> int:
        """Read the domain's pending counter"""
        ...


class ApprovalLedgerRepository(ApprovalLedgerRepositoryProtocol):
    """Approval requests and the per-domain pending counter.

    Writes are only handed out as ops so that the request row and the counter
    always change inside the same ledger transaction.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    def get(self, owner_domain_id: str, request_id: str) -> ApprovalRequest | None:
        """Get a pending approval request"""
        if not request_id.startswith(PENDING_PREFIX):
            return None
        row = self.store.get(
            TABLE_NAME,
            {"owner_domain_id": owner_domain_id, "request_id": request_id},
            consistent_read=True,
        )
        return _to_entity(row) if row else None

    def list_pending(
            self,
            owner_domain_id: str,
            limit: int,
            start_after: str | None = None,
    ) -> PageResult:
        """
        Page through a domain's `PENDING#*` key range, oldest first.

        `next_start_after` is the cursor for the following page, or None on
        the last page.
        """
        page = self.store.query_by_prefix(
            TABLE_NAME,
            partition={"owner_domain_id": owner_domain_id},
            sort_column="request_id",
            prefix=PENDING_PREFIX,
            limit=limit,
            start_after=start_after,
        )
        return PageResult(
            data=[_to_entity(row) for row in page.items],
            next_start_after=page.last_evaluated_key,
        )

    def pending_count(self, owner_domain_id: str) -> int:
        """Read the domain's pending counter (0 if the domain never had a request)"""
        row = self.store.get(
            TABLE_NAME,
            {"owner_domain_id": owner_domain_id, "request_id": COUNTER_SORT_KEY},
        )
        if row is None or row["pending_count"] is None:
            return 0
        return int(row["pending_count"])

    # -------------------------
    # Transaction ops
    # -------------------------

    def create_op(self, request: ApprovalRequest) -> Put:
        return Put(
            TABLE_NAME,
            {
                "owner_domain_id": request.owner_domain_id,
                "request_id": request.request_id,
                "mode": request.mode.value,
                "continuation_token": request.continuation_token,
                "target_domain_id": request.target_domain_id,
                "source_namespace": request.source_namespace,
                "source_resource_key": request.source_resource_key,
                "instance_id": request.instance_id,
                "created_at": request.created_at,
            },
            if_absent=True,
        )

    def delete_op(self, owner_domain_id: str, request_id: str) -> Delete:
        return Delete(
            TABLE_NAME,
            {"owner_domain_id": owner_domain_id, "request_id": request_id},
        )

    def counter_op(self, owner_domain_id: str, amount: int) -> Add:
        return Add(
            TABLE_NAME,
            key={"owner_domain_id": owner_domain_id, "request_id": COUNTER_SORT_KEY},
            attribute="pending_count",
            amount=amount,
        )


def _to_entity(row: dict) -> ApprovalRequest:
    return ApprovalRequest(
        owner_domain_id=row["owner_domain_id"],
        request_id=row["request_id"],
        mode=ApprovalMode(row["mode"]),
        continuation_token=row["continuation_token"],
        target_domain_id=row["target_domain_id"],
        source_resource_key=row["source_resource_key"] or {},
        source_namespace=row["source_namespace"],
        instance_id=row["instance_id"],
        created_at=row["created_at"],
    )
