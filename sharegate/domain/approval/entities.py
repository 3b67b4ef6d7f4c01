# ============================================================
# Business/domain entities
# ============================================================
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sharegate.domain.classification import Tag
from sharegate.domain.share_mapping import resource_mapping_key, tag_mapping_key

TABLE_NAME = "approval_ledger"
PENDING_PREFIX = "PENDING#"
COUNTER_SORT_KEY = "itemsForApproval"


class ApprovalMode(str, enum.Enum):
    RESOURCE_BASED = "RESOURCE_BASED"
    TAG_BASED = "TAG_BASED"


class ActionType(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


def new_request_id(now: datetime | None = None) -> str:
    """`PENDING#<creation epoch millis>`."""
    moment = now or datetime.now()
    return f"{PENDING_PREFIX}{int(moment.timestamp() * 1000)}"


@dataclass(frozen=True)
class ApprovalRequestEntity:
    owner_domain_id: str
    request_id: str
    mode: ApprovalMode
    continuation_token: str
    target_domain_id: str
    source_resource_key: dict[str, Any]
    source_namespace: str | None = None
    instance_id: str | None = None
    created_at: datetime | None = None

    @property
    def resource(self) -> str | None:
        return self.source_resource_key.get("resource")

    @property
    def tags(self) -> list[Tag]:
        return [Tag.model_validate(t) for t in self.source_resource_key.get("tags", [])]

    def share_mapping_key(self) -> str:
        if self.mode == ApprovalMode.RESOURCE_BASED:
            return resource_mapping_key(self.resource, self.target_domain_id)
        if self.mode == ApprovalMode.TAG_BASED:
            return tag_mapping_key(self.tags, self.target_domain_id)
        raise ValueError(f"Unsupported approval mode: {self.mode}")


@dataclass(frozen=True)
class PendingCounter:
    owner_domain_id: str
    pending_count: int


@dataclass(frozen=True)
class PageResult:
    data: list[ApprovalRequestEntity]
    next_start_after: str | None


@dataclass(frozen=True)
class DecisionResult:
    owner_domain_id: str
    request_id: str
    action_type: ActionType
    instance_id: str
    instance_state: str
