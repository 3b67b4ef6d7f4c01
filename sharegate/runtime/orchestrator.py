"""Resource-sharing workflow: derive namespace -> classify -> (approve) -> grant -> notify.

This is the engine's state machine. It is responsible for:
- running a new sharing request until it terminates or suspends for approval
- recording the approval request, the pending counter and the pending share
  mapping in one ledger transaction before suspending
- resuming the exact suspended instance when its continuation is redeemed
- granting access (tag- or resource-based) and notifying the owning domain
- recovering instances whose decision committed but whose resumption never ran

Instances are persisted after every transition; nothing about a suspended
instance lives only in process memory.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sharegate.core.errors import (
    DuplicateRequestError,
    OrchestrationError,
    ResourceNotFoundError,
    ShareGateError,
    TransactionConflict,
)
from sharegate.domain.approval.entities import (
    ActionType,
    ApprovalRequestEntity as ApprovalRequest,
    new_request_id,
)
from sharegate.domain.approval.repository import ApprovalLedgerRepository
from sharegate.domain.classification import (
    CatalogClient,
    Classification,
    ClassificationOracle,
    ResourceKey,
)
from sharegate.domain.grants import GrantServiceClient, TableGrant, TagGrant
from sharegate.domain.share_mapping import (
    ShareMappingIndex,
    ShareStatus,
    resource_mapping_key,
    tag_mapping_key,
    tag_set_fingerprint,
)
from sharegate.infrastructure.events.http_publisher import EventPublisher
from sharegate.infrastructure.ledger import LedgerStore
from sharegate.observability.tracing import log_event, new_trace_id, traced

from .continuations import ContinuationOutcome, ContinuationRegistry
from .instances import WorkflowInstanceRepository
from .namespace import derive_owner_namespace
from .workflows import (
    InstanceContext,
    OwnerNamespace,
    ResourceBasedSelector,
    TagBasedSelector,
    WorkflowInstance,
    WorkflowState,
    mode_of,
)

RESOURCE_LINKS_DETAIL_TYPE = '{target}_createResourceLinks'
APPROVAL_REQUESTED_DETAIL_TYPE = 'approval_requested'


class Orchestrator:
    """Coordinates one sharing request per workflow instance."""

    def __init__(
        self,
        *,
        store: LedgerStore,
        instances: WorkflowInstanceRepository,
        registry: ContinuationRegistry,
        ledger: ApprovalLedgerRepository,
        share_index: ShareMappingIndex,
        catalog: CatalogClient,
        oracle: ClassificationOracle,
        grants: GrantServiceClient,
        events: EventPublisher,
    ) -> None:
        self._store = store
        self._instances = instances
        self._registry = registry
        self._ledger = ledger
        self._share_index = share_index
        self._catalog = catalog
        self._oracle = oracle
        self._grants = grants
        self._events = events

        self._steps = {
            WorkflowState.DERIVE_OWNER_NAMESPACE: self._derive_owner_namespace,
            WorkflowState.FETCH_CLASSIFICATION: self._fetch_classification,
            WorkflowState.CHECK_APPROVAL: self._check_approval,
            WorkflowState.REQUEST_APPROVAL: self._request_approval,
            WorkflowState.GRANT: self._grant,
            WorkflowState.MARK_REJECTED: self._mark_rejected,
            WorkflowState.NOTIFY_OWNING_DOMAIN: self._notify_owning_domain,
        }

        registry.bind(self.resume)

    # -------------------------
    # Entry points
    # -------------------------

    async def start(
        self,
        *,
        owner_domain_id: str,
        target_domain_id: str,
        selector: ResourceBasedSelector | TagBasedSelector,
        requested_by: str | None = None,
    ) -> WorkflowInstance:
        """Start a sharing request and run it until it terminates or suspends.

        Raises:
            DuplicateRequestError: If the resource is already shared with, or awaiting
                approval for, the target domain.
            ShareGateError: Any fatal step failure, after the instance was marked FAILED.
        """
        namespace = derive_owner_namespace(owner_domain_id, selector)
        mapping_key = _share_mapping_key(namespace, selector, target_domain_id)

        # Advisory only: two concurrent submissions can both pass this check.
        current = self._share_index.status_of(owner_domain_id, mapping_key)
        if current == ShareStatus.PENDING:
            raise DuplicateRequestError(
                f"A request for '{mapping_key}' is already pending approval in domain '{owner_domain_id}'"
            )
        if current == ShareStatus.SHARED:
            raise DuplicateRequestError(
                f"'{mapping_key}' is already shared by domain '{owner_domain_id}'"
            )

        now = datetime.now()
        instance = WorkflowInstance(
            instance_id=new_trace_id(),
            mode=mode_of(selector),
            state=WorkflowState.DERIVE_OWNER_NAMESPACE,
            context=InstanceContext(
                owner_domain_id=owner_domain_id,
                target_domain_id=target_domain_id,
                selector=selector,
                requested_by=requested_by,
            ),
            created_at=now,
            updated_at=now,
        )
        self._instances.create(instance)

        log_event(
            'workflow.start',
            trace_id=instance.instance_id,
            mode=instance.mode.value,
            owner_domain_id=owner_domain_id,
            target_domain_id=target_domain_id,
        )
        return await self._run(instance)

    async def resume(
        self,
        instance_id: str,
        outcome: ContinuationOutcome,
        output: dict[str, Any] | None = None,
    ) -> WorkflowInstance:
        """Resume an instance suspended at AWAITING_APPROVAL with the reviewer's outcome."""
        instance = self._instances.get(instance_id)
        if instance.state != WorkflowState.AWAITING_APPROVAL:
            raise OrchestrationError(
                f"Instance '{instance_id}' is in state {instance.state.value}, not awaiting approval"
            )

        if outcome == ContinuationOutcome.SUCCESS:
            next_state, decision = WorkflowState.GRANT, ActionType.APPROVE
        else:
            next_state, decision = WorkflowState.MARK_REJECTED, ActionType.REJECT

        ctx = instance.context.model_copy(update={'decision': decision})
        instance = self._instances.advance(instance, next_state, ctx)

        log_event(
            'workflow.resumed',
            trace_id=instance_id,
            decision=decision.value,
            request_id=ctx.request_id,
        )
        return await self._run(instance)

    async def recover(self) -> list[WorkflowInstance]:
        """Resume instances whose continuation was redeemed but which never advanced."""
        resumed: list[WorkflowInstance] = []
        for instance in self._instances.in_state(WorkflowState.AWAITING_APPROVAL):
            continuation = self._registry.for_instance(instance.instance_id)
            if continuation is None or not continuation.redeemed:
                continue
            try:
                resumed.append(
                    await self.resume(instance.instance_id, continuation.outcome, continuation.output)
                )
            except ShareGateError as exc:
                log_event(
                    'workflow.recover.failed',
                    trace_id=instance.instance_id,
                    kind=exc.kind,
                    error=str(exc),
                )
        return resumed

    def get(self, instance_id: str) -> WorkflowInstance:
        return self._instances.get(instance_id)

    # -------------------------
    # Engine loop
    # -------------------------

    async def _run(self, instance: WorkflowInstance) -> WorkflowInstance:
        while not instance.is_terminal and instance.state != WorkflowState.AWAITING_APPROVAL:
            step = self._steps[instance.state]
            try:
                instance = await step(instance)
            except ShareGateError as exc:
                self._fail(instance, exc)
                raise
        return instance

    def _advance(
        self,
        instance: WorkflowInstance,
        state: WorkflowState,
        ctx: InstanceContext | None = None,
    ) -> WorkflowInstance:
        advanced = self._instances.advance(instance, state, ctx)
        log_event(
            'workflow.transition',
            trace_id=instance.instance_id,
            from_state=instance.state.value,
            to_state=state.value,
        )
        return advanced

    def _fail(self, instance: WorkflowInstance, exc: ShareGateError) -> None:
        ctx = instance.context.model_copy(update={'error_kind': exc.kind})
        try:
            self._instances.advance(instance, WorkflowState.FAILED, ctx, error=str(exc))
        except TransactionConflict:
            # Someone else advanced the instance in the meantime; their state stands.
            log_event('workflow.fail.conflict', trace_id=instance.instance_id, state=instance.state.value)
        log_event(
            'workflow.failed',
            trace_id=instance.instance_id,
            state=instance.state.value,
            kind=exc.kind,
            error=str(exc),
        )

    # -------------------------
    # Steps
    # -------------------------

    async def _derive_owner_namespace(self, instance: WorkflowInstance) -> WorkflowInstance:
        ctx = instance.context
        namespace = derive_owner_namespace(ctx.owner_domain_id, ctx.selector)
        ctx = ctx.model_copy(update={'namespace': namespace})
        return self._advance(instance, WorkflowState.FETCH_CLASSIFICATION, ctx)

    async def _fetch_classification(self, instance: WorkflowInstance) -> WorkflowInstance:
        ctx = instance.context
        selector = ctx.selector

        if isinstance(selector, ResourceBasedSelector):
            resource = ResourceKey(database=ctx.namespace.central_database, table=selector.table)
            with traced('catalog.get_classification', trace_id=instance.instance_id, database=resource.database):
                classification = await self._catalog.get_classification(
                    ctx.namespace.producer_domain_id, resource
                )

            if classification.owner_domain_id != ctx.owner_domain_id:
                raise ResourceNotFoundError(ctx.owner_domain_id, _resource_name(ctx.namespace, selector))
        elif isinstance(selector, TagBasedSelector):
            # The tag expression is the classification.
            classification = Classification(tags=selector.tags, owner_domain_id=ctx.owner_domain_id)
        else:
            raise ValueError(f'Unsupported resource selector: {selector!r}')

        ctx = ctx.model_copy(update={'classification': classification})
        return self._advance(instance, WorkflowState.CHECK_APPROVAL, ctx)

    async def _check_approval(self, instance: WorkflowInstance) -> WorkflowInstance:
        ctx = instance.context
        needs_approval = self._oracle.requires_approval(ctx.classification)
        ctx = ctx.model_copy(update={'requires_approval': needs_approval})

        next_state = WorkflowState.REQUEST_APPROVAL if needs_approval else WorkflowState.GRANT
        return self._advance(instance, next_state, ctx)

    async def _request_approval(self, instance: WorkflowInstance) -> WorkflowInstance:
        """Suspend point. Ledger entry, counter, pending mapping, continuation
        and the instance's own state all commit together."""
        ctx = instance.context
        now = datetime.now()

        continuation = self._registry.issue(instance.instance_id)
        request = ApprovalRequest(
            owner_domain_id=ctx.owner_domain_id,
            request_id=new_request_id(now),
            mode=instance.mode,
            continuation_token=continuation.token,
            target_domain_id=ctx.target_domain_id,
            source_resource_key=_source_resource_key(ctx),
            source_namespace=ctx.namespace.central_database,
            instance_id=instance.instance_id,
            created_at=now,
        )

        ctx = ctx.model_copy(update={'request_id': request.request_id})
        advance_op, suspended = self._instances.advance_op(
            instance, WorkflowState.AWAITING_APPROVAL, ctx
        )

        self._store.transact([
            self._ledger.create_op(request),
            self._ledger.counter_op(ctx.owner_domain_id, 1),
            self._share_index.upsert_op(
                ctx.owner_domain_id, request.share_mapping_key(), ShareStatus.PENDING
            ),
            self._registry.registration_op(continuation),
            advance_op,
        ])

        log_event(
            'workflow.awaiting_approval',
            trace_id=instance.instance_id,
            owner_domain_id=ctx.owner_domain_id,
            request_id=request.request_id,
            mode=instance.mode.value,
        )

        await self._events.publish(
            domain_id=ctx.owner_domain_id,
            detail_type=APPROVAL_REQUESTED_DETAIL_TYPE,
            detail={
                'ownerDomainId': ctx.owner_domain_id,
                'requestId': request.request_id,
                'targetDomainId': ctx.target_domain_id,
                'mode': instance.mode.value,
            },
            trace_id=instance.instance_id,
        )
        return suspended

    async def _grant(self, instance: WorkflowInstance) -> WorkflowInstance:
        ctx = instance.context
        selector = ctx.selector

        if isinstance(selector, ResourceBasedSelector):
            grant_selector = TableGrant(
                owner_domain_id=ctx.owner_domain_id,
                database=ctx.namespace.central_database,
                table=selector.table,
                resource=_resource_name(ctx.namespace, selector),
            )
        elif isinstance(selector, TagBasedSelector):
            grant_selector = TagGrant(tags=selector.tags)
        else:
            raise ValueError(f'Unsupported resource selector: {selector!r}')

        with traced('grants.grant', trace_id=instance.instance_id, mode=instance.mode.value):
            result = await self._grants.grant(ctx.target_domain_id, grant_selector)

        if isinstance(selector, TagBasedSelector):
            # Tag grants cover many resources, so the grant service cannot map them itself.
            self._share_index.upsert(
                ctx.owner_domain_id,
                tag_mapping_key(selector.tags, ctx.target_domain_id),
                ShareStatus.SHARED,
            )

        ctx = ctx.model_copy(update={'grants': result.grants})
        return self._advance(instance, WorkflowState.NOTIFY_OWNING_DOMAIN, ctx)

    async def _notify_owning_domain(self, instance: WorkflowInstance) -> WorkflowInstance:
        ctx = instance.context
        delivered = await self._events.publish(
            domain_id=ctx.owner_domain_id,
            detail_type=RESOURCE_LINKS_DETAIL_TYPE.format(target=ctx.target_domain_id),
            detail={
                'ownerDomainId': ctx.owner_domain_id,
                'resourceKey': _resource_key(ctx),
                'targetDomainId': ctx.target_domain_id,
                'accessMode': 'nrac' if isinstance(ctx.selector, ResourceBasedSelector) else 'tbac',
            },
            trace_id=instance.instance_id,
        )
        if not delivered:
            log_event('workflow.notify.failed', trace_id=instance.instance_id)

        granted = self._advance(instance, WorkflowState.GRANTED)
        log_event(
            'workflow.granted',
            trace_id=instance.instance_id,
            owner_domain_id=ctx.owner_domain_id,
            target_domain_id=ctx.target_domain_id,
        )
        return granted

    async def _mark_rejected(self, instance: WorkflowInstance) -> WorkflowInstance:
        # The `rejected` mapping status was written with the decision itself.
        rejected = self._advance(instance, WorkflowState.REJECTED)
        log_event(
            'workflow.rejected',
            trace_id=instance.instance_id,
            request_id=instance.context.request_id,
        )
        return rejected


# ------------------------------
# Helper functions
# ------------------------------


def _resource_name(namespace: OwnerNamespace, selector: ResourceBasedSelector) -> str:
    return f'{namespace.raw_database}.{selector.table}'


def _share_mapping_key(
    namespace: OwnerNamespace,
    selector: ResourceBasedSelector | TagBasedSelector,
    target_domain_id: str,
) -> str:
    if isinstance(selector, ResourceBasedSelector):
        return resource_mapping_key(_resource_name(namespace, selector), target_domain_id)
    if isinstance(selector, TagBasedSelector):
        return tag_mapping_key(selector.tags, target_domain_id)
    raise ValueError(f'Unsupported resource selector: {selector!r}')


def _source_resource_key(ctx: InstanceContext) -> dict[str, Any]:
    selector = ctx.selector
    if isinstance(selector, ResourceBasedSelector):
        return {'resource': _resource_name(ctx.namespace, selector)}
    if isinstance(selector, TagBasedSelector):
        return {'tags': [t.model_dump(mode='json') for t in selector.tags]}
    raise ValueError(f'Unsupported resource selector: {selector!r}')


def _resource_key(ctx: InstanceContext) -> str:
    selector = ctx.selector
    if isinstance(selector, ResourceBasedSelector):
        return _resource_name(ctx.namespace, selector)
    if isinstance(selector, TagBasedSelector):
        return tag_set_fingerprint(selector.tags)
    raise ValueError(f'Unsupported resource selector: {selector!r}')
