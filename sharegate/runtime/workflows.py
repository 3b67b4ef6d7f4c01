"""Workflow models for the resource-sharing approval workflow.

An instance is a persisted record (`instance_id -> state + context`). Every
step loads it, applies one transition and persists the result, so an instance
suspended at `AWAITING_APPROVAL` can be resumed by any process.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from sharegate.domain.approval.entities import ActionType, ApprovalMode
from sharegate.domain.classification import Classification, Tag, TABLE_WILDCARD


class ResourceBasedSelector(BaseModel):
    """A single catalog table, or every table of a database with `table="*"`."""
    mode: Literal['RESOURCE_BASED'] = 'RESOURCE_BASED'
    database: str = Field(min_length=1)
    table: str = Field(default=TABLE_WILDCARD, min_length=1)


class TagBasedSelector(BaseModel):
    """Every resource matching a classification tag expression."""
    mode: Literal['TAG_BASED'] = 'TAG_BASED'
    tags: list[Tag] = Field(min_length=1)


ResourceSelector = Annotated[
    Union[ResourceBasedSelector, TagBasedSelector],
    Field(discriminator='mode'),
]


def mode_of(selector: ResourceBasedSelector | TagBasedSelector) -> ApprovalMode:
    if isinstance(selector, ResourceBasedSelector):
        return ApprovalMode.RESOURCE_BASED
    if isinstance(selector, TagBasedSelector):
        return ApprovalMode.TAG_BASED
    raise ValueError(f'Unsupported resource selector: {selector!r}')


class WorkflowState(str, enum.Enum):
    DERIVE_OWNER_NAMESPACE = 'DERIVE_OWNER_NAMESPACE'
    FETCH_CLASSIFICATION = 'FETCH_CLASSIFICATION'
    CHECK_APPROVAL = 'CHECK_APPROVAL'
    REQUEST_APPROVAL = 'REQUEST_APPROVAL'
    AWAITING_APPROVAL = 'AWAITING_APPROVAL'
    GRANT = 'GRANT'
    MARK_REJECTED = 'MARK_REJECTED'
    NOTIFY_OWNING_DOMAIN = 'NOTIFY_OWNING_DOMAIN'
    GRANTED = 'GRANTED'
    REJECTED = 'REJECTED'
    FAILED = 'FAILED'


TERMINAL_STATES = frozenset({
    WorkflowState.GRANTED,
    WorkflowState.REJECTED,
    WorkflowState.FAILED,
})


class OwnerNamespace(BaseModel):
    """Owning domain's catalog namespace, split from its central name `{domainId}_{database}`."""
    producer_domain_id: str
    raw_database: str | None = None
    central_database: str | None = None


class InstanceContext(BaseModel):
    """Everything an instance accumulates on its way through the states."""
    owner_domain_id: str
    target_domain_id: str
    selector: ResourceSelector
    requested_by: str | None = None

    namespace: OwnerNamespace | None = None
    classification: Classification | None = None
    requires_approval: bool | None = None
    request_id: str | None = None
    decision: ActionType | None = None
    grants: list[dict] = Field(default_factory=list)
    error_kind: str | None = None


class WorkflowInstance(BaseModel):
    instance_id: str
    mode: ApprovalMode
    state: WorkflowState
    context: InstanceContext
    error: str | None = None
    version: int = 0
    created_at: datetime
    updated_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
