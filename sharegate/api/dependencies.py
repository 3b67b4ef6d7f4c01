from fastapi import Depends, Header
from sqlalchemy.orm import Session

from sharegate.core.errors import AuthorizationError
from sharegate.domain.domains import DomainMembershipRepository
from sharegate.infrastructure.db.connection import get_db


def get_current_user(x_user_id: str = Header(..., alias="X-User-Id", min_length=1)) -> str:
    """Caller identity, as asserted by the gateway in front of the service."""
    return x_user_id


def get_membership_repo(db: Session = Depends(get_db)) -> DomainMembershipRepository:
    return DomainMembershipRepository(db)


def require_owner(
    membership: DomainMembershipRepository,
    user_id: str,
    domain_id: str,
) -> None:
    if not membership.is_owner(user_id, domain_id):
        raise AuthorizationError(user_id, domain_id)
