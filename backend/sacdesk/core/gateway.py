"""
Persistence gateway: the only path by which services read and write tables.

Every call runs in its own session and transaction, on the worker threadpool,
so independent calls can be awaited concurrently. Multi-row commands that must
not be observed half-applied (order swaps, value replacement, numbered
inserts) run inside a single transaction. Writes that take ``with_rows`` add
those rows in the same transaction, so a change and its audit entry are
committed or rolled back together.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, Sequence, Type, TypeVar
from uuid import UUID

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete as sa_delete
from sqlalchemy import func
from sqlalchemy import select as sa_select
from sqlalchemy import update as sa_update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from sacdesk.core.exceptions import NotFound, PersistenceFailure
from sacdesk.models import NumberSequence

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=SQLModel)
T = TypeVar("T")


def _describe(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class PersistenceGateway:
    """Async table operations over a SQLModel engine."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _execute(self, operation: Callable[[Session], T]) -> T:
        with Session(self.engine, expire_on_commit=False) as session:
            try:
                result = operation(session)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error(f"Persistence failure: {_describe(exc)}")
                raise PersistenceFailure(_describe(exc)) from exc
            return result

    async def _run(self, operation: Callable[[Session], T]) -> T:
        return await run_in_threadpool(self._execute, operation)

    async def select(
        self,
        model: Type[M],
        *filters: Any,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
        columns: Optional[Sequence[str]] = None,
    ) -> list[Any]:
        """Rows of ``model`` matching all filters.

        With ``columns`` the result is a list of dicts holding only those
        columns instead of model instances.
        """
        logger.debug(f"select {model.__tablename__} filters={len(filters)} columns={columns}")

        def operation(session: Session) -> list[Any]:
            if columns:
                statement = sa_select(*[getattr(model, name) for name in columns])
            else:
                statement = select(model)
            if filters:
                statement = statement.where(*filters)
            if order_by:
                statement = statement.order_by(*order_by)
            if limit is not None:
                statement = statement.limit(limit)
            if columns:
                return [dict(row._mapping) for row in session.execute(statement)]
            return list(session.exec(statement).all())

        return await self._run(operation)

    async def select_by_ids(self, model: Type[M], ids: Iterable[UUID], columns: Sequence[str]) -> dict[UUID, dict]:
        """``columns`` of the referenced rows keyed by id, in one query.

        No query is made when nothing is referenced. ``columns`` must include ``id``.
        """
        unique = sorted(set(ids), key=str)
        if not unique:
            return {}
        rows = await self.select(model, model.id.in_(unique), columns=columns)
        return {row["id"]: row for row in rows}

    async def get(self, model: Type[M], row_id: UUID) -> Optional[M]:
        return await self._run(lambda session: session.get(model, row_id))

    async def count(self, model: Type[M], *filters: Any) -> int:
        def operation(session: Session) -> int:
            statement = select(func.count()).select_from(model)
            if filters:
                statement = statement.where(*filters)
            return session.exec(statement).one()

        return await self._run(operation)

    async def insert(self, rows: M | Iterable[M]) -> Any:
        """Persist one row or a list of rows and return what was given."""
        single = isinstance(rows, SQLModel)
        batch = [rows] if single else list(rows)
        if not batch:
            return []
        logger.debug(f"insert {batch[0].__tablename__} rows={len(batch)}")

        def operation(session: Session) -> list[M]:
            session.add_all(batch)
            session.flush()
            return batch

        inserted = await self._run(operation)
        return inserted[0] if single else inserted

    async def insert_numbered(
        self,
        row: M,
        *,
        sequence: str,
        column: str = "number",
        parents: Sequence[SQLModel] = (),
        with_rows: Sequence[SQLModel] = (),
    ) -> M:
        """Insert ``row`` with the next value of a named number sequence.

        The counter bump and the insert share one transaction, and the counter
        only ever grows, so numbers are never handed out twice. ``parents`` are
        flushed before ``row`` (rows it references) and ``with_rows`` after it
        (rows referencing it), all in that same transaction.
        """
        extra = list(with_rows)
        leading = list(parents)

        def operation(session: Session) -> M:
            if leading:
                session.add_all(leading)
                session.flush()
            bumped = session.execute(
                sa_update(NumberSequence)
                .where(NumberSequence.name == sequence)
                .values(last_value=NumberSequence.last_value + 1)
            )
            if bumped.rowcount == 0:
                session.add(NumberSequence(name=sequence, last_value=1))
                session.flush()
            value = session.exec(
                select(NumberSequence.last_value).where(NumberSequence.name == sequence)
            ).one()
            setattr(row, column, value)
            session.add(row)
            session.flush()
            if extra:
                session.add_all(extra)
                session.flush()
            return row

        return await self._run(operation)

    async def update(
        self,
        model: Type[M],
        patch: dict[str, Any],
        *filters: Any,
        with_rows: Sequence[SQLModel] = (),
    ) -> list[M]:
        """Apply ``patch`` to every matching row and return the updated rows.

        ``with_rows`` are inserted in the same transaction, and only when at
        least one row matched.
        """
        if not filters:
            raise ValueError("update requires at least one filter")
        extra = list(with_rows)
        logger.debug(f"update {model.__tablename__} columns={sorted(patch)} with_rows={len(extra)}")

        def operation(session: Session) -> list[M]:
            rows = list(session.exec(select(model).where(*filters)).all())
            for row in rows:
                for key, value in patch.items():
                    setattr(row, key, value)
                session.add(row)
            if rows and extra:
                session.add_all(extra)
            session.flush()
            return rows

        return await self._run(operation)

    async def update_rows(self, model: Type[M], patches: Sequence[tuple[UUID, dict[str, Any]]]) -> list[M]:
        """Apply per-row patches in a single transaction; all or nothing."""
        logger.debug(f"update_rows {model.__tablename__} rows={len(patches)}")

        def operation(session: Session) -> list[M]:
            rows = []
            for row_id, patch in patches:
                row = session.get(model, row_id)
                if row is None:
                    raise NotFound(model.__name__, row_id)
                for key, value in patch.items():
                    setattr(row, key, value)
                session.add(row)
                rows.append(row)
            session.flush()
            return rows

        return await self._run(operation)

    async def delete(self, model: Type[M], *filters: Any, with_rows: Sequence[SQLModel] = ()) -> int:
        """Delete matching rows; ``with_rows`` are inserted only if something was deleted."""
        if not filters:
            raise ValueError("delete requires at least one filter")
        extra = list(with_rows)
        logger.debug(f"delete {model.__tablename__}")

        def operation(session: Session) -> int:
            removed = session.execute(sa_delete(model).where(*filters)).rowcount
            if removed and extra:
                session.add_all(extra)
                session.flush()
            return removed

        return await self._run(operation)

    async def replace(self, model: Type[M], filters: Sequence[Any], rows: Iterable[M]) -> list[M]:
        """Delete the rows matching ``filters`` and insert ``rows`` atomically."""
        if not filters:
            raise ValueError("replace requires at least one filter")
        batch = list(rows)
        logger.debug(f"replace {model.__tablename__} rows={len(batch)}")

        def operation(session: Session) -> list[M]:
            session.execute(sa_delete(model).where(*filters))
            session.add_all(batch)
            session.flush()
            return batch

        return await self._run(operation)
