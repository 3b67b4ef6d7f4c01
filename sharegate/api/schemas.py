from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from sharegate.domain.approval.entities import ActionType, ApprovalMode
from sharegate.domain.share_mapping import ShareStatus
from sharegate.runtime.workflows import ResourceSelector, WorkflowState

DOMAIN_ID_PATTERN = r"^\d{12}$"


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ------------------------------
# Sharing requests
# ------------------------------

class SharingRequestIn(CamelModel):
    """
    Ask for access to a resource (or a tag expression) owned by another domain.

    `resourceSelector.mode` picks the variant:
    - RESOURCE_BASED: `database` plus optional `table` (`*` for every table)
    - TAG_BASED: `tags`, a list of `{key, values}`
    """

    owner_domain_id: str = Field(alias="ownerDomainId", min_length=1)
    target_domain_id: str = Field(alias="targetDomainId", min_length=1)
    resource_selector: ResourceSelector = Field(alias="resourceSelector")


class WorkflowInstanceOut(CamelModel):
    instance_id: str = Field(alias="instanceId")
    mode: ApprovalMode
    state: WorkflowState
    owner_domain_id: str = Field(alias="ownerDomainId")
    target_domain_id: str = Field(alias="targetDomainId")
    request_id: Optional[str] = Field(default=None, alias="requestId")
    requires_approval: Optional[bool] = Field(default=None, alias="requiresApproval")
    error: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


# ------------------------------
# Approvals
# ------------------------------

class ApprovalRequestOut(CamelModel):
    owner_domain_id: str = Field(alias="ownerDomainId")
    request_id: str = Field(alias="requestId")
    mode: ApprovalMode
    target_domain_id: str = Field(alias="targetDomainId")
    source_namespace: Optional[str] = Field(default=None, alias="sourceNamespace")
    source_resource_key: dict = Field(alias="sourceResourceKey")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class PendingCountOut(CamelModel):
    pending_count: int = Field(alias="pendingCount")
    domain_ids: List[str] = Field(alias="domainIds")


class DecisionIn(CamelModel):
    owner_domain_id: str = Field(alias="ownerDomainId", min_length=1)
    request_id: str = Field(alias="requestId", min_length=1)
    # Validated by the processor so an unknown action maps to `invalid_request`.
    action_type: str = Field(alias="actionType")


class DecisionOut(CamelModel):
    owner_domain_id: str = Field(alias="ownerDomainId")
    request_id: str = Field(alias="requestId")
    action_type: ActionType = Field(alias="actionType")
    instance_id: Optional[str] = Field(default=None, alias="instanceId")
    instance_state: str = Field(alias="instanceState")


# ------------------------------
# Share mappings / domains
# ------------------------------

class ShareStatusOut(CamelModel):
    domain_id: str = Field(alias="domainId")
    status: Optional[ShareStatus] = None


class DomainIn(CamelModel):
    domain_id: str = Field(alias="domainId", pattern=DOMAIN_ID_PATTERN)


class OwnerIn(CamelModel):
    user_id: str = Field(alias="userId", min_length=1)


class DomainsOut(CamelModel):
    user_id: str = Field(alias="userId")
    domain_ids: List[str] = Field(alias="domainIds")


class DomainOwnersOut(CamelModel):
    domain_id: str = Field(alias="domainId")
    owner_ids: List[str] = Field(alias="ownerIds")


# ------------------------------
# Envelopes
# ------------------------------

T = TypeVar("T")


class PaginationMeta(CamelModel):
    limit: int
    count: int
    next_start_after: Optional[str] = Field(default=None, alias="nextStartAfter")


class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    meta: PaginationMeta


class ErrorDetail(BaseModel):
    kind: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail
