from __future__ import annotations

from datetime import datetime

from sharegate.core.errors import InstanceNotFoundError
from sharegate.domain.approval.entities import ApprovalMode
from sharegate.infrastructure.ledger import LedgerStore, Put, Update

from .workflows import InstanceContext, WorkflowInstance, WorkflowState

TABLE_NAME = "workflow_instances"


class WorkflowInstanceRepository:
    """Persisted workflow instances.

    State changes are compare-and-set on `version`, so two processes resuming
    the same instance cannot both advance it.
    """

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def create(self, instance: WorkflowInstance) -> WorkflowInstance:
        self._store.put(
            Put(
                TABLE_NAME,
                {
                    "instance_id": instance.instance_id,
                    "mode": instance.mode.value,
                    "state": instance.state.value,
                    "context": instance.context.model_dump(mode="json"),
                    "error": instance.error,
                    "version": instance.version,
                    "created_at": instance.created_at,
                    "updated_at": instance.updated_at,
                },
                if_absent=True,
            )
        )
        return instance

    def get(self, instance_id: str) -> WorkflowInstance:
        row = self._store.get(TABLE_NAME, {"instance_id": instance_id}, consistent_read=True)
        if row is None:
            raise InstanceNotFoundError(instance_id)
        return _to_instance(row)

    def in_state(self, state: WorkflowState) -> list[WorkflowInstance]:
        return [_to_instance(row) for row in self._store.scan(TABLE_NAME, {"state": state.value})]

    def advance_op(
        self,
        instance: WorkflowInstance,
        state: WorkflowState,
        context: InstanceContext | None = None,
        error: str | None = None,
    ) -> tuple[Update, WorkflowInstance]:
        """Op moving `instance` to `state`, plus the instance as it will look once committed."""
        advanced = instance.model_copy(
            update={
                "state": state,
                "context": context or instance.context,
                "error": error,
                "version": instance.version + 1,
                "updated_at": datetime.now(),
            }
        )
        op = Update(
            TABLE_NAME,
            key={"instance_id": instance.instance_id},
            values={
                "state": advanced.state.value,
                "context": advanced.context.model_dump(mode="json"),
                "error": advanced.error,
                "version": advanced.version,
                "updated_at": advanced.updated_at,
            },
            condition={"version": instance.version},
        )
        return op, advanced

    def advance(
        self,
        instance: WorkflowInstance,
        state: WorkflowState,
        context: InstanceContext | None = None,
        error: str | None = None,
    ) -> WorkflowInstance:
        op, advanced = self.advance_op(instance, state, context, error)
        self._store.transact([op])
        return advanced


def _to_instance(row: dict) -> WorkflowInstance:
    return WorkflowInstance(
        instance_id=row["instance_id"],
        mode=ApprovalMode(row["mode"]),
        state=WorkflowState(row["state"]),
        context=InstanceContext.model_validate(row["context"]),
        error=row["error"],
        version=row["version"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
