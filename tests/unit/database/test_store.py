"""Tests for the persistent store: collections, transactions and indexes."""

import asyncio
import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from core.errors import DuplicateKeyError, NotFoundError, ValidationError
from core.utils.datetime import ensure_utc, now
from database.models.assessments import Assessment
from database.models.candidates import (
    Candidate,
    CandidateApplication,
    CandidateStage,
    CandidateTimelineEvent,
    TimelineActionType,
)
from database.models.jobs import Job, JobStatus
from database.seed import seed_database
from database.store import Store


def make_job(order: int = 1, title: str = "Data Engineer") -> Job:
    timestamp = now()
    return Job(
        id=str(uuid.uuid4()),
        title=title,
        slug="data-engineer",
        order=order,
        created_at=timestamp,
        updated_at=timestamp,
    )


def make_candidate(job_id: str, stage: CandidateStage = CandidateStage.APPLIED) -> Candidate:
    return Candidate(
        id=str(uuid.uuid4()),
        name="Liam Nguyen",
        email="liam@example.com",
        stage=stage,
        applied_jobs=[CandidateApplication(job_id=job_id)],
    )


class TestCollection:
    """CRUD semantics of a single collection."""

    @pytest.mark.asyncio
    async def test_add_and_get(self, store):
        job = make_job()
        async with store.transaction() as tx:
            await tx.jobs.add(job)

        async with store.transaction() as tx:
            loaded = await tx.jobs.get(job.id)

        assert loaded is not None
        assert loaded.title == "Data Engineer"
        assert loaded.status == JobStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_add_duplicate_id_fails(self, store):
        job = make_job()
        async with store.transaction() as tx:
            await tx.jobs.add(job)

        with pytest.raises(DuplicateKeyError):
            async with store.transaction() as tx:
                await tx.jobs.add(Job(id=job.id, title="Other", slug="other", order=2))

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store):
        async with store.transaction() as tx:
            assert await tx.jobs.get("missing") is None

    @pytest.mark.asyncio
    async def test_update_merges_only_given_fields(self, store):
        job = make_job()
        async with store.transaction() as tx:
            await tx.jobs.add(job)
            created_updated_at = job.updated_at

        async with store.transaction() as tx:
            updated = await tx.jobs.update(job.id, {"title": "Staff Data Engineer"})

        assert updated.title == "Staff Data Engineer"
        assert updated.slug == "data-engineer"
        assert updated.order == 1
        assert updated.updated_at >= created_updated_at

    @pytest.mark.asyncio
    async def test_empty_update_is_a_noop(self, store):
        job = make_job()
        async with store.transaction() as tx:
            await tx.jobs.add(job)
            before = job.updated_at

        async with store.transaction() as tx:
            unchanged = await tx.jobs.update(job.id, {})

        assert ensure_utc(unchanged.updated_at) == before

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            async with store.transaction() as tx:
                await tx.jobs.update("missing", {"title": "x"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fields", [{"nonexistent": 1}, {"id": "new-id"}])
    async def test_update_rejects_unknown_fields_and_primary_key(self, store, fields):
        job = make_job()
        async with store.transaction() as tx:
            await tx.jobs.add(job)

        with pytest.raises(ValidationError):
            async with store.transaction() as tx:
                await tx.jobs.update(job.id, fields)

    @pytest.mark.asyncio
    async def test_delete(self, store):
        job = make_job()
        async with store.transaction() as tx:
            await tx.jobs.add(job)
        async with store.transaction() as tx:
            await tx.jobs.delete(job.id)
        async with store.transaction() as tx:
            assert await tx.jobs.count() == 0

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            async with store.transaction() as tx:
                await tx.jobs.delete("missing")


class TestSecondaryIndexes:
    """Predicate lookups over indexed columns."""

    @pytest.mark.asyncio
    async def test_candidates_by_stage_and_job(self, store):
        job_a, job_b = make_job(1), make_job(2)
        async with store.transaction() as tx:
            await tx.jobs.add(job_a)
            await tx.jobs.add(job_b)
            await tx.candidates.add(make_candidate(job_a.id, CandidateStage.TECH))
            await tx.candidates.add(make_candidate(job_a.id, CandidateStage.APPLIED))
            await tx.candidates.add(make_candidate(job_b.id, CandidateStage.TECH))

        async with store.transaction() as tx:
            tech = await tx.candidates.count(Candidate.stage == CandidateStage.TECH)
            for_a = await tx.candidates.count(Candidate.applied_jobs.any(job_id=job_a.id))
            first = await tx.candidates.first(Candidate.stage == CandidateStage.APPLIED)

        assert tech == 2
        assert for_a == 2
        assert first.applied_job_ids == [job_a.id]

    @pytest.mark.asyncio
    async def test_assessment_job_id_is_unique(self, store):
        job = make_job()
        async with store.transaction() as tx:
            await tx.jobs.add(job)
            await tx.assessments.add(
                Assessment(id=str(uuid.uuid4()), job_id=job.id, title="One", sections=[])
            )

        with pytest.raises(IntegrityError):
            async with store.transaction() as tx:
                await tx.assessments.add(
                    Assessment(id=str(uuid.uuid4()), job_id=job.id, title="Two", sections=[])
                )

        async with store.transaction() as tx:
            assert await tx.assessments.count(Assessment.job_id == job.id) == 1


class TestTimeline:
    """The timeline is append-only and ordered."""

    @pytest.mark.asyncio
    async def test_events_are_immutable(self, store):
        job = make_job()
        candidate = make_candidate(job.id)
        async with store.transaction() as tx:
            await tx.jobs.add(job)
            await tx.candidates.add(candidate)
            event = await tx.timeline.add(CandidateTimelineEvent(
                candidate_id=candidate.id,
                job_id=job.id,
                action_type=TimelineActionType.APPLIED,
                details={},
            ))

        with pytest.raises(ValidationError):
            async with store.transaction() as tx:
                await tx.timeline.update(event.id, {"details": {"edited": True}})
        with pytest.raises(ValidationError):
            async with store.transaction() as tx:
                await tx.timeline.delete(event.id)

    @pytest.mark.asyncio
    async def test_for_candidate_orders_by_timestamp(self, store):
        job = make_job()
        candidate = make_candidate(job.id)
        later, earlier = now(), now().replace(year=2020)
        async with store.transaction() as tx:
            await tx.jobs.add(job)
            await tx.candidates.add(candidate)
            for timestamp, note in [(later, "second"), (earlier, "first")]:
                await tx.timeline.add(CandidateTimelineEvent(
                    candidate_id=candidate.id,
                    action_type=TimelineActionType.APPLIED,
                    details={"note": note},
                    timestamp=timestamp,
                ))

        async with store.transaction() as tx:
            events = await tx.timeline.for_candidate(candidate.id)

        assert [e.details["note"] for e in events] == ["first", "second"]


class TestTransactions:
    """All-or-nothing multi-collection writes."""

    @pytest.mark.asyncio
    async def test_failed_transaction_leaves_nothing(self, store):
        job = make_job()
        with pytest.raises(NotFoundError):
            async with store.transaction() as tx:
                await tx.jobs.add(job)
                await tx.candidates.update("missing", {"stage": CandidateStage.TECH})

        async with store.transaction() as tx:
            assert await tx.jobs.get(job.id) is None

    @pytest.mark.asyncio
    async def test_cancelled_transaction_rolls_back(self, store):
        job = make_job()
        started = asyncio.Event()

        async def slow_write():
            async with store.transaction() as tx:
                await tx.jobs.add(job)
                started.set()
                await asyncio.sleep(10)

        task = asyncio.create_task(slow_write())
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        async with store.transaction() as tx:
            assert await tx.jobs.count() == 0

    @pytest.mark.asyncio
    async def test_uninitialized_store_refuses_transactions(self):
        store = Store("sqlite+aiosqlite://")
        with pytest.raises(RuntimeError):
            async with store.transaction():
                pass


class TestSeed:
    """Deterministic demo data."""

    @pytest.mark.asyncio
    async def test_seed_populates_all_collections(self, store):
        counts = await seed_database(store, jobs=5, candidates=20, seed=42)

        assert counts["jobs"] == 5
        assert counts["candidates"] == 20
        async with store.transaction() as tx:
            assert await tx.jobs.count() == 5
            assert await tx.candidates.count() == 20
            assert await tx.timeline.count() == 20
            assert await tx.hr_managers.count() == 2

    @pytest.mark.asyncio
    async def test_seed_replaces_previous_data(self, store):
        await seed_database(store, jobs=3, candidates=5, seed=1)
        await seed_database(store, jobs=2, candidates=4, seed=1)

        async with store.transaction() as tx:
            assert await tx.jobs.count() == 2
            assert await tx.candidates.count() == 4
