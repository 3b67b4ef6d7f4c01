"""This module holds pending sharing approvals and the per-domain pending counter."""
from .entities import (
    ActionType,
    ApprovalMode,
    ApprovalRequestEntity,
    DecisionResult,
    PageResult,
    PendingCounter,
    new_request_id,
)
from .repository import ApprovalLedgerRepository, ApprovalLedgerRepositoryProtocol
