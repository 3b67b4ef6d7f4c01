"""Durable continuation tokens for suspended workflow instances.

A token is minted when an instance suspends and is stored, together with the
instance id, in the `continuations` table. Redeeming it marks the row as
redeemed (conditional on it not having been redeemed yet) in the same ledger
transaction as any bookkeeping the caller passes along, and then hands the
outcome to the resume handler. A token can therefore resume its instance at
most once.
"""

from __future__ import annotations

import enum
import secrets
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Awaitable, Callable, Sequence

from sharegate.core.errors import InvalidTokenError, TransactionConflict
from sharegate.infrastructure.ledger import LedgerStore, Operation, Put, Update

TABLE_NAME = "continuations"

# 32 bytes -> 256 bits of entropy
TOKEN_BYTES = 32


class ContinuationOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class Continuation:
    token: str
    instance_id: str
    created_at: datetime | None = None
    redeemed_at: datetime | None = None
    outcome: ContinuationOutcome | None = None
    output: dict[str, Any] | None = None

    @property
    def redeemed(self) -> bool:
        return self.redeemed_at is not None


ResumeHandler = Callable[[str, ContinuationOutcome, dict[str, Any]], Awaitable[Any]]


class ContinuationRegistry:
    def __init__(self, store: LedgerStore) -> None:
        self._store = store
        self._resume_handler: ResumeHandler | None = None

    def bind(self, resume_handler: ResumeHandler) -> None:
        """Register the callback that resumes an instance once its token is redeemed."""
        self._resume_handler = resume_handler

    def issue(self, instance_id: str) -> Continuation:
        """Mint a fresh token for `instance_id`. Persist it with `registration_op`."""
        return Continuation(
            token=secrets.token_urlsafe(TOKEN_BYTES),
            instance_id=instance_id,
            created_at=datetime.now(),
        )

    def registration_op(self, continuation: Continuation) -> Put:
        return Put(
            TABLE_NAME,
            {
                "token": continuation.token,
                "instance_id": continuation.instance_id,
                "created_at": continuation.created_at or datetime.now(),
            },
            if_absent=True,
        )

    def get(self, token: str) -> Continuation | None:
        row = self._store.get(TABLE_NAME, {"token": token}, consistent_read=True)
        return _to_continuation(row) if row else None

    def for_instance(self, instance_id: str) -> Continuation | None:
        """The continuation an instance is (or was) suspended on."""
        rows = self._store.scan(TABLE_NAME, {"instance_id": instance_id})
        return _to_continuation(rows[0]) if rows else None

    async def redeem(
        self,
        token: str,
        outcome: ContinuationOutcome,
        output: dict[str, Any] | None = None,
        *,
        with_ops: Sequence[Operation] = (),
    ) -> Any:
        """Redeem `token` and resume its instance.

        `with_ops` commit atomically with the redemption. Returns whatever the
        resume handler returns.

        Raises:
            InvalidTokenError: If the token is unknown or was already redeemed.
            TransactionConflict: If one of `with_ops` failed its precondition.
        """
        continuation = self.commit(token, outcome, output, with_ops=with_ops)
        return await self.resume(continuation)

    def commit(
        self,
        token: str,
        outcome: ContinuationOutcome,
        output: dict[str, Any] | None = None,
        *,
        with_ops: Sequence[Operation] = (),
    ) -> Continuation:
        """Mark `token` redeemed together with `with_ops`, without resuming anything.

        Raises the same errors as `redeem`. Once this returns the outcome is
        durable; `resume` (or the start-up recovery sweep) acts on it.
        """
        continuation = self.get(token)
        if continuation is None or continuation.redeemed:
            raise InvalidTokenError("Continuation token is unknown or already redeemed")

        payload = output or {}
        redeemed_at = datetime.now()
        redeem_op = Update(
            TABLE_NAME,
            key={"token": token},
            values={
                "redeemed_at": redeemed_at,
                "outcome": outcome.value,
                "output": payload,
            },
            condition={"redeemed_at": None},
        )

        try:
            self._store.transact([redeem_op, *with_ops])
        except TransactionConflict as exc:
            if exc.op is redeem_op:
                raise InvalidTokenError("Continuation token is unknown or already redeemed") from exc
            raise

        return replace(continuation, redeemed_at=redeemed_at, outcome=outcome, output=payload)

    async def resume(self, continuation: Continuation) -> Any:
        """Hand a redeemed continuation's outcome to the bound resume handler."""
        if self._resume_handler is None:
            return None
        return await self._resume_handler(
            continuation.instance_id, continuation.outcome, continuation.output or {}
        )


def _to_continuation(row: dict) -> Continuation:
    return Continuation(
        token=row["token"],
        instance_id=row["instance_id"],
        created_at=row["created_at"],
        redeemed_at=row["redeemed_at"],
        outcome=ContinuationOutcome(row["outcome"]) if row["outcome"] else None,
        output=row["output"],
    )
