"""Reviewer decisions on pending approval requests."""

from __future__ import annotations

from sharegate.core.errors import (
    ApprovalNotFoundError,
    InvalidRequestError,
    InvalidTokenError,
    ShareGateError,
    TransactionConflict,
)
from sharegate.domain.approval.entities import ActionType, DecisionResult
from sharegate.domain.approval.repository import ApprovalLedgerRepository
from sharegate.domain.share_mapping import ShareMappingIndex, ShareStatus
from sharegate.observability.tracing import log_event

from .continuations import ContinuationOutcome, ContinuationRegistry
from .instances import WorkflowInstanceRepository


class ApprovalProcessor:
    def __init__(
        self,
        *,
        ledger: ApprovalLedgerRepository,
        share_index: ShareMappingIndex,
        registry: ContinuationRegistry,
        instances: WorkflowInstanceRepository,
    ) -> None:
        self._ledger = ledger
        self._share_index = share_index
        self._registry = registry
        self._instances = instances

    async def process_approval(
        self,
        owner_domain_id: str,
        request_id: str,
        action_type: ActionType | str,
    ) -> DecisionResult:
        """Apply a reviewer's decision and resume the suspended workflow instance.

        The ledger entry is removed and the pending counter decremented in the
        same transaction that redeems the instance's continuation token; a
        rejection also marks the share mapping `rejected` there. Exactly one
        of two racing decisions on the same request wins; the other sees the
        request as gone.

        A failure while resuming (a grant error, say) does not undo the
        decision: the result then reports the state the instance was left in.

        Raises:
            InvalidRequestError: If `action_type` is neither approve nor reject.
            ApprovalNotFoundError: If no pending request matches (including one
                that was already decided).
        """
        action = _parse_action(action_type)

        request = self._ledger.get(owner_domain_id, request_id)
        if request is None:
            raise ApprovalNotFoundError(owner_domain_id, request_id)

        ops = [
            self._ledger.delete_op(owner_domain_id, request_id),
            self._ledger.counter_op(owner_domain_id, -1),
        ]
        if action == ActionType.REJECT:
            ops.append(
                self._share_index.set_status_op(
                    owner_domain_id, request.share_mapping_key(), ShareStatus.REJECTED
                )
            )

        outcome = (
            ContinuationOutcome.SUCCESS
            if action == ActionType.APPROVE
            else ContinuationOutcome.FAILURE
        )

        log_event(
            'approval.decision',
            trace_id=request.instance_id,
            owner_domain_id=owner_domain_id,
            request_id=request_id,
            action_type=action.value,
        )

        try:
            continuation = self._registry.commit(
                request.continuation_token,
                outcome,
                {'actionType': action.value, 'requestId': request_id},
                with_ops=ops,
            )
        except (InvalidTokenError, TransactionConflict) as exc:
            # Lost the race against a concurrent decision on the same request.
            raise ApprovalNotFoundError(owner_domain_id, request_id) from exc

        # The decision is committed; resume failures are recorded on the instance.
        try:
            instance = await self._registry.resume(continuation)
        except ShareGateError as exc:
            log_event(
                'approval.resume.failed',
                trace_id=request.instance_id,
                request_id=request_id,
                kind=exc.kind,
                error=str(exc),
            )
            instance = self._instances.get(request.instance_id)

        return DecisionResult(
            owner_domain_id=owner_domain_id,
            request_id=request_id,
            action_type=action,
            instance_id=request.instance_id,
            instance_state=instance.state.value if instance is not None else 'UNKNOWN',
        )


def _parse_action(action_type: ActionType | str) -> ActionType:
    try:
        return ActionType(action_type)
    except ValueError as exc:
        raise InvalidRequestError(
            f"actionType must be 'approve' or 'reject', got {action_type!r}"
        ) from exc
