"""
End-to-end flows through the client facade: simulated API, store and query
cache wired together the way an application uses them.
"""

import pytest
import pytest_asyncio

from api.queries import TalentFlowClient
from core.cache import query_key
from core.errors import InjectedServerError, NotFoundError


@pytest_asyncio.fixture
async def tf(test_settings, failure_policy):
    async with TalentFlowClient(test_settings, failure_policy=failure_policy, latency=0) as client:
        yield client


@pytest_asyncio.fixture
async def board(tf):
    """An active job with one applied candidate."""
    job = await tf.create_job({"title": "Platform Engineer", "company": {"name": "Acme"}})
    candidate = await tf.create_candidate({
        "name": "Ravi Patel",
        "email": "ravi.patel@example.com",
        "appliedJobIds": [job["id"]],
    })
    return job, candidate


class TestHiringFlow:

    @pytest.mark.asyncio
    async def test_application_and_stage_change(self, tf):
        job = await tf.create_job({"title": "Data Engineer"})
        assert (await tf.job(job["id"]))["candidatesCount"] == 0

        candidate = await tf.create_candidate({
            "name": "Lena Fischer",
            "email": "lena@example.com",
            "appliedJobIds": [job["id"]],
            "stage": "applied",
        })
        assert (await tf.api.get_job(job["id"]))["candidatesCount"] == 1

        moved = await tf.move_candidate(candidate["id"], "tech")
        detail = await tf.api.get_candidate(candidate["id"])

        assert moved["stage"] == "tech"
        stage_changes = [e for e in detail["timeline"] if e["actionType"] == "Stage Change"]
        assert len(stage_changes) == 1
        assert stage_changes[0]["details"] == {"fromStage": "applied", "toStage": "tech"}

    @pytest.mark.asyncio
    async def test_deleting_missing_job_changes_nothing(self, tf, board):
        before = await tf.api.list_jobs()

        with pytest.raises(NotFoundError):
            await tf.delete_job("does-not-exist")

        assert len(await tf.api.list_jobs()) == len(before)

    @pytest.mark.asyncio
    async def test_assessment_is_replaced_not_merged(self, tf, board):
        job, _ = board
        first = {
            "title": "Screening",
            "sections": [{"title": "Basics", "questions": [
                {"title": "Years of Python?", "type": "short-text"},
            ]}],
        }
        second = {
            "title": "Screening v2",
            "sections": [{"title": "Systems", "questions": [
                {"title": "Favourite queue?", "type": "single-choice",
                 "options": [{"text": "Kafka"}, {"text": "SQS"}]},
            ]}],
        }

        created = await tf.save_assessment(job["id"], first)
        replaced = await tf.save_assessment(job["id"], second)
        stored = await tf.api.get_assessment(job["id"])

        assert replaced["id"] == created["id"]
        assert stored["title"] == "Screening v2"
        assert [s["title"] for s in stored["sections"]] == ["Systems"]

    @pytest.mark.asyncio
    async def test_missing_assessment_reads_as_none(self, tf, board):
        job, _ = board
        assert await tf.assessment(job["id"]) is None

    @pytest.mark.asyncio
    async def test_seeded_store(self, test_settings):
        settings = test_settings.model_copy(
            update={"seed_jobs": 3, "seed_candidates": 12, "seed_random_seed": 7}
        )
        async with TalentFlowClient(settings, latency=0, seed=True) as tf:
            jobs = await tf.jobs()
            managers = await tf.hr_managers()

        assert len(jobs) == 3
        assert {m["name"] for m in managers} == {"Admin User", "Jane Doe"}
        assert all("password" not in m for m in managers)


class TestOptimisticUpdates:

    @pytest.mark.asyncio
    async def test_move_is_visible_before_the_server_answers(self, tf, board):
        _, candidate = board
        await tf.candidates()
        await tf.candidates(stage="applied")
        await tf.candidates(stage="tech")

        task = tf.move_candidate(candidate["id"], "tech")

        cache = tf.coordinator
        assert cache.get(query_key("candidates"))[0]["stage"] == "tech"
        assert cache.get(query_key("candidates", stage="applied")) == []
        assert [c["id"] for c in cache.get(query_key("candidates", stage="tech"))] == [candidate["id"]]
        await task
        assert [c["id"] for c in await tf.candidates(stage="tech")] == [candidate["id"]]

    @pytest.mark.asyncio
    async def test_failed_move_rolls_back(self, tf, board, failure_policy):
        _, candidate = board
        everyone = await tf.candidates()
        applied = await tf.candidates(stage="applied")
        failure_policy.push(True)

        task = tf.move_candidate(candidate["id"], "offer")
        assert tf.coordinator.get(query_key("candidates", stage="applied")) == []

        with pytest.raises(InjectedServerError):
            await task

        assert tf.coordinator.get(query_key("candidates")) is everyone
        assert tf.coordinator.get(query_key("candidates", stage="applied")) is applied
        assert (await tf.api.get_candidate(candidate["id"]))["stage"] == "applied"

    @pytest.mark.asyncio
    async def test_archive_drops_job_from_active_list(self, tf, board):
        job, _ = board
        await tf.jobs(status="active")

        task = tf.archive_job(job["id"])

        assert tf.coordinator.get(query_key("jobs", status="active")) == []
        archived = await task
        assert archived["status"] == "archived"

    @pytest.mark.asyncio
    async def test_note_shows_provisionally(self, tf, board):
        _, candidate = board
        await tf.candidate(candidate["id"])

        task = tf.add_note(candidate["id"], "  Strong systems answers.  ")

        notes = tf.coordinator.get(query_key("candidate", id=candidate["id"]))["notes"]
        assert notes[-1]["id"].startswith("pending-")
        assert notes[-1]["content"] == "Strong systems answers."
        saved = await task
        notes = (await tf.candidate(candidate["id"]))["notes"]
        assert [n["id"] for n in notes] == [saved["id"]]

    @pytest.mark.asyncio
    async def test_delete_job_removes_it_from_lists(self, tf, board):
        job, _ = board
        await tf.jobs()

        task = tf.delete_job(job["id"])

        assert tf.coordinator.get(query_key("jobs")) == []
        await task
        assert await tf.jobs() == []

    @pytest.mark.asyncio
    async def test_deleted_job_detail_is_not_served_from_cache(self, tf, board):
        job, _ = board
        await tf.job(job["id"])

        task = tf.delete_job(job["id"])

        assert tf.coordinator.get(query_key("job", id=job["id"])) is None
        await task
        with pytest.raises(NotFoundError):
            await tf.job(job["id"])

    @pytest.mark.asyncio
    async def test_reassigning_jobs_refreshes_counts(self, tf, board):
        job, candidate = board
        other = await tf.create_job({"title": "QA Lead"})
        await tf.jobs()

        await tf.update_candidate(candidate["id"], {"appliedJobs": [{"jobId": other["id"]}]})

        counts = {j["id"]: j["candidatesCount"] for j in await tf.jobs()}
        assert counts == {job["id"]: 0, other["id"]: 1}

    @pytest.mark.asyncio
    async def test_rename_rechecks_search_filter(self, tf, board):
        job, _ = board
        await tf.jobs(search="platform")

        task = tf.update_job(job["id"], {"title": "Site Reliability Engineer"})

        assert tf.coordinator.get(query_key("jobs", search="platform")) == []
        await task

    @pytest.mark.asyncio
    async def test_unarchive_adds_job_to_active_list(self, tf, board):
        job, _ = board
        other = await tf.create_job({"title": "QA Lead"})
        await tf.archive_job(job["id"])
        await tf.job(job["id"])
        assert [j["id"] for j in await tf.jobs(status="active")] == [other["id"]]

        task = tf.unarchive_job(job["id"])

        active = tf.coordinator.get(query_key("jobs", status="active"))
        assert [j["id"] for j in active] == [job["id"], other["id"]]
        assert active[0]["status"] == "active"
        await task
