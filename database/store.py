"""
Persistent store: durable local collections over the async SQLAlchemy engine.

Usage:
    async with Store("sqlite+aiosqlite:///./talentflow.db") as store:
        async with store.transaction() as tx:
            job = await tx.jobs.get(job_id)
            await tx.candidates.update(candidate_id, {"stage": "tech"})

A transaction is all-or-nothing. Transactions are serialized, so no reader
ever observes another transaction's partial writes.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, Mapping, Optional, Sequence, TypeVar

from sqlalchemy import ColumnElement, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from core.errors import DuplicateKeyError, NotFoundError, ValidationError
from core.utils.datetime import now
from database.engine import Base, create_store_engine
from database.models.assessments import Assessment
from database.models.candidates import Candidate, CandidateTimelineEvent
from database.models.jobs import Job
from database.models.users import HRManager

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class Collection(Generic[ModelT]):
    """
    One entity collection bound to an open transaction.

    Predicates are SQLAlchemy boolean expressions, so lookups on indexed
    columns (stage, job id, candidate id) are served by the database indexes.
    """

    def __init__(self, session: AsyncSession, model: type[ModelT]):
        self.session = session
        self.model = model
        mapper = inspect(model)
        self._fields = set(mapper.columns.keys()) | set(mapper.relationships.keys())
        self._primary_key = mapper.primary_key[0].key

    @property
    def name(self) -> str:
        return self.model.__tablename__

    async def get(self, entity_id: Any) -> Optional[ModelT]:
        """Get an entity by primary key, or None."""
        return await self.session.get(self.model, entity_id)

    async def require(self, entity_id: Any) -> ModelT:
        """Get an entity by primary key or raise NotFoundError."""
        entity = await self.get(entity_id)
        if entity is None:
            raise NotFoundError(f"{self._label()} {entity_id} not found")
        return entity

    async def list(
        self,
        predicate: Optional[ColumnElement[bool]] = None,
        order_by: Optional[Sequence[Any]] = None,
    ) -> list[ModelT]:
        """List entities, optionally filtered and ordered."""
        query = select(self.model)
        if predicate is not None:
            query = query.where(predicate)
        if order_by:
            query = query.order_by(*order_by)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def first(self, predicate: ColumnElement[bool]) -> Optional[ModelT]:
        """First entity matching the predicate, or None."""
        result = await self.session.execute(
            select(self.model).where(predicate).limit(1)
        )
        return result.scalars().first()

    async def count(self, predicate: Optional[ColumnElement[bool]] = None) -> int:
        """Count entities, optionally filtered."""
        query = select(func.count()).select_from(self.model)
        if predicate is not None:
            query = query.where(predicate)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def add(self, entity: ModelT) -> ModelT:
        """Insert a new entity. Raises DuplicateKeyError if the id is taken."""
        entity_id = getattr(entity, self._primary_key)
        if entity_id is not None and await self.get(entity_id) is not None:
            raise DuplicateKeyError(f"{self._label()} {entity_id} already exists")
        self.session.add(entity)
        await self.session.flush()
        logger.debug(f"{self.name}: added {getattr(entity, self._primary_key)}")
        return entity

    async def update(self, entity_id: Any, fields: Mapping[str, Any]) -> ModelT:
        """
        Shallow-merge `fields` into an existing entity.

        Only the supplied fields change; `updated_at` is refreshed when the
        model has one. An empty mapping leaves the entity untouched.
        """
        entity = await self.require(entity_id)
        if not fields:
            return entity

        unknown = set(fields) - self._fields
        if unknown or self._primary_key in fields:
            bad = sorted(unknown | ({self._primary_key} & set(fields)))
            raise ValidationError(
                f"Cannot update {', '.join(bad)} on {self._label()}"
            )

        for key, value in fields.items():
            setattr(entity, key, value)
        if "updated_at" in self._fields and "updated_at" not in fields:
            entity.updated_at = now()

        await self.session.flush()
        logger.debug(f"{self.name}: updated {entity_id} ({', '.join(fields)})")
        return entity

    async def delete(self, entity_id: Any) -> None:
        """Hard-delete an entity. Raises NotFoundError if absent."""
        entity = await self.require(entity_id)
        await self.session.delete(entity)
        await self.session.flush()
        logger.debug(f"{self.name}: deleted {entity_id}")

    def _label(self) -> str:
        return self.model.__name__


class TimelineCollection(Collection[CandidateTimelineEvent]):
    """Append-only: events are never updated or deleted."""

    async def update(self, entity_id: Any, fields: Mapping[str, Any]):
        raise ValidationError("Timeline events are immutable")

    async def delete(self, entity_id: Any) -> None:
        raise ValidationError("Timeline events cannot be deleted")

    async def for_candidate(self, candidate_id: str) -> list[CandidateTimelineEvent]:
        """Events of one candidate, oldest first."""
        return await self.list(
            CandidateTimelineEvent.candidate_id == candidate_id,
            order_by=[CandidateTimelineEvent.timestamp, CandidateTimelineEvent.id],
        )


class UnitOfWork:
    """Collections sharing one transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.jobs = Collection(session, Job)
        self.candidates = Collection(session, Candidate)
        self.timeline = TimelineCollection(session, CandidateTimelineEvent)
        self.assessments = Collection(session, Assessment)
        self.hr_managers = Collection(session, HRManager)

    async def clear(self) -> None:
        """Delete every row of every collection."""
        for table in reversed(Base.metadata.sorted_tables):
            await self.session.execute(table.delete())


class Store:
    """
    Explicitly constructed persistent store.

    Lifecycle: construct, `await init()` (creates tables), use, then
    `await close()` (disposes the engine). Also usable as an async context
    manager.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
        self._lock = asyncio.Lock()

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Store not initialized. Call init() first.")
        return self._engine

    async def init(self) -> "Store":
        """Create the engine and all tables."""
        if self._engine is None:
            self._engine = create_store_engine(self.url, echo=self.echo)
            self._sessionmaker = async_sessionmaker(
                self._engine, class_=AsyncSession, expire_on_commit=False
            )
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Store initialized")
        return self

    async def close(self) -> None:
        """Dispose the engine and its connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("Store closed")

    async def __aenter__(self) -> "Store":
        return await self.init()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[UnitOfWork]:
        """
        Open an all-or-nothing transaction.

        Commits when the block exits normally; rolls back on any exception,
        cancellation included.
        """
        if self._sessionmaker is None:
            raise RuntimeError("Store not initialized. Call init() first.")
        async with self._lock:
            async with self._sessionmaker() as session:
                async with session.begin():
                    yield UnitOfWork(session)

    async def clear(self) -> None:
        """Delete every row of every collection, in one transaction."""
        async with self.transaction() as tx:
            await tx.clear()
        logger.info("Store cleared")
