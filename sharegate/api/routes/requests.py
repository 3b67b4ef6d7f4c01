from fastapi import APIRouter, Depends, status

from sharegate.api.core.container import get_container
from sharegate.api.dependencies import get_current_user, get_membership_repo, require_owner
from sharegate.api.schemas import SharingRequestIn, WorkflowInstanceOut
from sharegate.core.errors import InstanceNotFoundError
from sharegate.domain.domains import DomainMembershipRepository
from sharegate.runtime.workflows import WorkflowInstance

router = APIRouter(prefix="/sharing/requests", tags=["Sharing Requests"])


def to_instance_out(instance: WorkflowInstance) -> WorkflowInstanceOut:
    ctx = instance.context
    return WorkflowInstanceOut(
        instance_id=instance.instance_id,
        mode=instance.mode,
        state=instance.state,
        owner_domain_id=ctx.owner_domain_id,
        target_domain_id=ctx.target_domain_id,
        request_id=ctx.request_id,
        requires_approval=ctx.requires_approval,
        error=instance.error,
        created_at=instance.created_at,
        updated_at=instance.updated_at,
    )


@router.post(
    "",
    summary="Request access to another domain's resource",
    description=(
        "Starts a sharing workflow. Non-sensitive resources are granted right away; "
        "sensitive ones suspend in AWAITING_APPROVAL until the owner decides."
    ),
    status_code=status.HTTP_201_CREATED,
    response_model=WorkflowInstanceOut,
)
async def submit_request(
    body: SharingRequestIn,
    user_id: str = Depends(get_current_user),
    membership: DomainMembershipRepository = Depends(get_membership_repo),
    container=Depends(get_container),
):
    # Only an owner of the consuming domain may ask on its behalf.
    require_owner(membership, user_id, body.target_domain_id)

    instance = await container.orchestrator.start(
        owner_domain_id=body.owner_domain_id,
        target_domain_id=body.target_domain_id,
        selector=body.resource_selector,
        requested_by=user_id,
    )
    return to_instance_out(instance)


@router.get(
    "/{instance_id}",
    summary="Get a sharing request",
    response_model=WorkflowInstanceOut,
)
async def get_request(
    instance_id: str,
    user_id: str = Depends(get_current_user),
    membership: DomainMembershipRepository = Depends(get_membership_repo),
    container=Depends(get_container),
):
    """Visible to owners of either the owning or the requesting domain."""
    instance = container.orchestrator.get(instance_id)
    ctx = instance.context
    if not (
        membership.is_owner(user_id, ctx.owner_domain_id)
        or membership.is_owner(user_id, ctx.target_domain_id)
    ):
        raise InstanceNotFoundError(instance_id)
    return to_instance_out(instance)
