from fastapi import APIRouter, Depends, Path, status

from sharegate.api.dependencies import get_current_user, get_membership_repo, require_owner
from sharegate.api.schemas import DOMAIN_ID_PATTERN, DomainIn, DomainOwnersOut, DomainsOut, OwnerIn
from sharegate.core.errors import AuthorizationError
from sharegate.domain.domains import DomainMembershipRepository

router = APIRouter(prefix="/domains", tags=["Domains"])


@router.post(
    "",
    summary="Claim an unowned domain for the caller",
    status_code=status.HTTP_201_CREATED,
    response_model=DomainsOut,
)
async def register_domain(
    body: DomainIn,
    user_id: str = Depends(get_current_user),
    membership: DomainMembershipRepository = Depends(get_membership_repo),
):
    """
    The first caller to register a domain becomes its owner. Once a domain
    has an owner, further owners are added only by an existing owner through
    `POST /domains/{domainId}/owners`.
    """
    if not membership.claim(user_id, body.domain_id):
        raise AuthorizationError(user_id, body.domain_id)
    return DomainsOut(user_id=user_id, domain_ids=membership.domains_for_user(user_id))


@router.get(
    "",
    summary="Domains owned by the caller",
    response_model=DomainsOut,
)
async def list_domains(
    user_id: str = Depends(get_current_user),
    membership: DomainMembershipRepository = Depends(get_membership_repo),
):
    return DomainsOut(user_id=user_id, domain_ids=membership.domains_for_user(user_id))


@router.post(
    "/{domain_id}/owners",
    summary="Add a co-owner to a domain the caller owns",
    status_code=status.HTTP_201_CREATED,
    response_model=DomainOwnersOut,
)
async def add_domain_owner(
    body: OwnerIn,
    domain_id: str = Path(..., pattern=DOMAIN_ID_PATTERN),
    user_id: str = Depends(get_current_user),
    membership: DomainMembershipRepository = Depends(get_membership_repo),
):
    require_owner(membership, user_id, domain_id)
    membership.add_owner(body.user_id, domain_id)
    return DomainOwnersOut(domain_id=domain_id, owner_ids=membership.owners_of(domain_id))
