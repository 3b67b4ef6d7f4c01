from typing import List

from fastapi import APIRouter, Depends, Query

from sharegate.api.core.container import get_container
from sharegate.api.dependencies import get_current_user, get_membership_repo, require_owner
from sharegate.api.schemas import ShareStatusOut
from sharegate.domain.domains import DomainMembershipRepository

router = APIRouter(prefix="/share-mappings", tags=["Share Mappings"])


@router.get(
    "/status",
    summary="Share status of a resource towards the caller's domains",
    response_model=List[ShareStatusOut],
)
async def share_status(
    domain_id: str = Query(..., alias="domainId", description="Domain owning the resource"),
    resource: str = Query(..., min_length=1, description="Resource name, e.g. `db1.tableA`"),
    user_id: str = Depends(get_current_user),
    membership: DomainMembershipRepository = Depends(get_membership_repo),
    container=Depends(get_container),
):
    """One entry per domain the caller owns; `status` is null if never requested."""
    statuses = container.share_index.statuses_for(
        domain_id,
        resource,
        membership.domains_for_user(user_id),
    )
    return [ShareStatusOut(domain_id=s.domain_id, status=s.status) for s in statuses]


@router.get(
    "/consumers",
    summary="Domains a resource is shared with",
    response_model=List[ShareStatusOut],
)
async def consumers(
    domain_id: str = Query(..., alias="domainId", description="Domain owning the resource"),
    resource: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user),
    membership: DomainMembershipRepository = Depends(get_membership_repo),
    container=Depends(get_container),
):
    require_owner(membership, user_id, domain_id)
    mappings = container.share_index.consumers(domain_id, resource)
    return [ShareStatusOut(domain_id=m.target_domain_id, status=m.status) for m in mappings]
