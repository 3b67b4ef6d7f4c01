"""Keyed record storage with all-or-nothing multi-record transactions.

Every write group goes through `transact`: the listed ops are applied inside a
single database transaction and either all commit or none do. A failed
precondition (existing key on a conditional put, missing key on delete, guard
mismatch on update, negative counter) raises `TransactionConflict` carrying
the offending op, so callers can tell which precondition lost a race.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from sqlalchemy import Table, and_, delete, func, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from sharegate.core.errors import TransactionConflict
from sharegate.infrastructure.db.models import Base
from sharegate.observability.tracing import log_event

from .operations import Add, Delete, Operation, Put, Update


@dataclass(frozen=True)
class QueryPage:
    items: list[dict[str, Any]]
    last_evaluated_key: str | None


# Counters are upserted with INSERT ... ON CONFLICT, which only these dialects expose.
UPSERT_DIALECTS = {"sqlite": sqlite, "postgresql": postgresql}


def _check_dialect(dialect: str) -> None:
    if dialect not in UPSERT_DIALECTS:
        raise ValueError(
            f"Unsupported database dialect '{dialect}'; expected one of {sorted(UPSERT_DIALECTS)}"
        )


class LedgerStore:
    """Ledger storage over SQLAlchemy.

    Plain reads open their own short-lived session. `consistent_read` is
    accepted on every read for callers that need read-after-write; the SQL
    backend is always consistent, so the flag only documents intent.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        bind = session_factory.kw.get("bind")
        if bind is not None:
            _check_dialect(bind.dialect.name)
        self._session_factory = session_factory
        self._tables: dict[str, Table] = {t.name: t for t in Base.metadata.sorted_tables}

    # -------------------------
    # Reads
    # -------------------------

    def get(self, table: str, key: dict[str, Any], *, consistent_read: bool = False) -> dict[str, Any] | None:
        t = self._table(table)
        with self._session_factory() as session:
            row = session.execute(select(t).where(_match(t, key))).mappings().first()
        return dict(row) if row is not None else None

    def query_by_prefix(
        self,
        table: str,
        *,
        partition: dict[str, Any],
        sort_column: str,
        prefix: str,
        limit: int | None = None,
        start_after: str | None = None,
        consistent_read: bool = False,
    ) -> QueryPage:
        """Items in one partition whose sort key starts with `prefix`, in sort key order."""
        t = self._table(table)
        sort_col = t.c[sort_column]
        conditions = [_match(t, partition), sort_col.startswith(prefix, autoescape=True)]
        if start_after is not None:
            conditions.append(sort_col > start_after)

        stmt = select(t).where(and_(*conditions)).order_by(sort_col)
        if limit is not None:
            # One extra row tells us whether another page exists.
            stmt = stmt.limit(limit + 1)

        with self._session_factory() as session:
            rows = [dict(r) for r in session.execute(stmt).mappings()]

        last_key = None
        if limit is not None and len(rows) > limit:
            rows = rows[:limit]
            last_key = rows[-1][sort_column]
        return QueryPage(items=rows, last_evaluated_key=last_key)

    def scan(self, table: str, where: dict[str, Any]) -> list[dict[str, Any]]:
        t = self._table(table)
        with self._session_factory() as session:
            return [dict(r) for r in session.execute(select(t).where(_match(t, where))).mappings()]

    # -------------------------
    # Writes
    # -------------------------

    def put(self, op: Put) -> None:
        self.transact([op])

    def transact(self, ops: Sequence[Operation]) -> None:
        """Apply every op or none of them."""
        with self._session_factory() as session:
            try:
                for op in ops:
                    self._apply(session, op)
                session.commit()
            except TransactionConflict as exc:
                session.rollback()
                log_event(
                    "ledger.transaction.conflict",
                    trace_id=None,
                    op=type(exc.op).__name__,
                    table=exc.op.table,
                    reason=exc.reason,
                )
                raise

    def _apply(self, session: Session, op: Operation) -> None:
        if isinstance(op, Put):
            self._apply_put(session, op)
        elif isinstance(op, Update):
            self._apply_update(session, op)
        elif isinstance(op, Delete):
            self._apply_delete(session, op)
        elif isinstance(op, Add):
            self._apply_add(session, op)
        else:
            raise ValueError(f"Unsupported ledger operation: {op!r}")

    def _apply_put(self, session: Session, op: Put) -> None:
        t = self._table(op.table)
        if op.if_absent:
            try:
                session.execute(insert(t).values(**op.item))
            except IntegrityError as exc:
                raise TransactionConflict(op, "item already exists") from exc
            return

        key_names = [c.name for c in t.primary_key.columns]
        stmt = self._upsert(session, t).values(**op.item)
        non_key = {k: v for k, v in op.item.items() if k not in key_names}
        if non_key:
            stmt = stmt.on_conflict_do_update(index_elements=key_names, set_=non_key)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=key_names)
        session.execute(stmt)

    def _apply_update(self, session: Session, op: Update) -> None:
        t = self._table(op.table)
        stmt = (
            update(t)
            .where(_match(t, op.key))
            .where(_match(t, op.condition))
            .values(**op.values)
        )
        if session.execute(stmt).rowcount == 0:
            raise TransactionConflict(op, "item missing or condition failed")

    def _apply_delete(self, session: Session, op: Delete) -> None:
        t = self._table(op.table)
        result = session.execute(delete(t).where(_match(t, op.key)))
        if op.must_exist and result.rowcount == 0:
            raise TransactionConflict(op, "item does not exist")

    def _apply_add(self, session: Session, op: Add) -> None:
        t = self._table(op.table)
        col = t.c[op.attribute]

        if op.amount >= 0:
            key_names = list(op.key)
            stmt = (
                self._upsert(session, t)
                .values(**op.key, **{op.attribute: op.amount})
                .on_conflict_do_update(
                    index_elements=key_names,
                    set_={op.attribute: _coalesce_zero(col) + op.amount},
                )
            )
            session.execute(stmt)
            return

        stmt = (
            update(t)
            .where(_match(t, op.key))
            .where(_coalesce_zero(col) >= -op.amount)
            .values(**{op.attribute: _coalesce_zero(col) + op.amount})
        )
        if session.execute(stmt).rowcount == 0:
            raise TransactionConflict(op, "counter missing or would become negative")

    # -------------------------
    # Helpers
    # -------------------------

    def _table(self, name: str) -> Table:
        try:
            return self._tables[name]
        except KeyError:
            raise ValueError(f"Unknown ledger table: {name}") from None

    @staticmethod
    def _upsert(session: Session, t: Table):
        dialect = session.get_bind().dialect.name
        _check_dialect(dialect)
        return UPSERT_DIALECTS[dialect].insert(t)


def _match(t: Table, values: dict[str, Any]):
    clauses: Iterable = [
        t.c[name].is_(None) if value is None else t.c[name] == value
        for name, value in values.items()
    ]
    return and_(True, *clauses)


def _coalesce_zero(col):
    return func.coalesce(col, 0)
