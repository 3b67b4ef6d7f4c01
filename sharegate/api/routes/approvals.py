from typing import Optional

from fastapi import APIRouter, Depends, Query

from sharegate.api.core.container import get_container
from sharegate.api.dependencies import get_current_user, get_membership_repo, require_owner
from sharegate.api.schemas import (
    ApprovalRequestOut,
    DecisionIn,
    DecisionOut,
    PaginatedResponse,
    PaginationMeta,
    PendingCountOut,
)
from sharegate.core.errors import ApprovalNotFoundError, AuthorizationError
from sharegate.domain.approval.entities import ApprovalRequestEntity as ApprovalRequest
from sharegate.domain.domains import DomainMembershipRepository

router = APIRouter(prefix="/approvals", tags=["Approvals"])


def to_approval_out(request: ApprovalRequest) -> ApprovalRequestOut:
    return ApprovalRequestOut(
        owner_domain_id=request.owner_domain_id,
        request_id=request.request_id,
        mode=request.mode,
        target_domain_id=request.target_domain_id,
        source_namespace=request.source_namespace,
        source_resource_key=request.source_resource_key,
        created_at=request.created_at,
    )


@router.get(
    "/pending",
    summary="List pending approval requests",
    description="Pending requests of one owned domain, or of every domain the caller owns.",
    response_model=PaginatedResponse[ApprovalRequestOut],
)
async def list_pending(
    domain_id: Optional[str] = Query(default=None, alias="domainId"),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    start_after: Optional[str] = Query(default=None, alias="startAfter"),
    user_id: str = Depends(get_current_user),
    membership: DomainMembershipRepository = Depends(get_membership_repo),
    container=Depends(get_container),
):
    """
    Query Parameters:
    - domainId: Owning domain (default: all domains of the caller)
    - limit: Page size (default: configured page size)
    - startAfter: Cursor from the previous page's `meta.nextStartAfter`
      (single-domain listing only)
    """
    page_size = limit or container.settings.pending_page_size

    if domain_id is not None:
        require_owner(membership, user_id, domain_id)
        page = container.ledger.list_pending(domain_id, page_size, start_after)
        items, cursor = page.data, page.next_start_after
    else:
        items, cursor = [], None
        for owned in membership.domains_for_user(user_id):
            remaining = page_size - len(items)
            if remaining <= 0:
                break
            items.extend(container.ledger.list_pending(owned, remaining).data)

    return PaginatedResponse[ApprovalRequestOut](
        data=[to_approval_out(r) for r in items],
        meta=PaginationMeta(limit=page_size, count=len(items), next_start_after=cursor),
    )


@router.get(
    "/pending-count",
    summary="Count pending approval requests",
    response_model=PendingCountOut,
)
async def pending_count(
    domain_id: Optional[str] = Query(default=None, alias="domainId"),
    user_id: str = Depends(get_current_user),
    membership: DomainMembershipRepository = Depends(get_membership_repo),
    container=Depends(get_container),
):
    """Sum of the pending counters of `domainId`, or of every domain the caller owns."""
    if domain_id is not None:
        require_owner(membership, user_id, domain_id)
        domain_ids = [domain_id]
    else:
        domain_ids = membership.domains_for_user(user_id)

    total = sum(container.ledger.pending_count(d) for d in domain_ids)
    return PendingCountOut(pending_count=total, domain_ids=domain_ids)


@router.post(
    "/decision",
    summary="Approve or reject a pending request",
    response_model=DecisionOut,
)
async def submit_decision(
    body: DecisionIn,
    user_id: str = Depends(get_current_user),
    membership: DomainMembershipRepository = Depends(get_membership_repo),
    container=Depends(get_container),
):
    try:
        require_owner(membership, user_id, body.owner_domain_id)
    except AuthorizationError as exc:
        # Do not reveal whether the domain or the request exists.
        raise ApprovalNotFoundError(body.owner_domain_id, body.request_id) from exc

    result = await container.approvals.process_approval(
        body.owner_domain_id,
        body.request_id,
        body.action_type,
    )
    return DecisionOut(
        owner_domain_id=result.owner_domain_id,
        request_id=result.request_id,
        action_type=result.action_type,
        instance_id=result.instance_id,
        instance_state=result.instance_state,
    )
