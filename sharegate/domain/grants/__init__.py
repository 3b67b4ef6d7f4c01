"""Cross-domain access grants."""
from .grant_service import (
    AuthorizationApi,
    GrantResult,
    GrantServiceClient,
    TableGrant,
    TagGrant,
)
