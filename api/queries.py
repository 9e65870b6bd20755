"""
TalentFlow client facade.

Binds the resource reads and writes of the simulated API to the query cache:

    async with TalentFlowClient(seed=True) as tf:
        board = await tf.candidates(stage="tech")
        task = tf.move_candidate(candidate_id, "offer")
        # every cached candidates list already shows the move
        await task

Queries return cached values while fresh. Mutations return the
coordinator's task: the cache is updated optimistically before the task is
even awaited, and rolled back if the request fails.
"""

import asyncio
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from api.client import SimulatorClient
from api.main import create_app
from core.cache import MutationCoordinator, QueryKey, query_key
from core.config import Settings, settings as default_settings
from core.utils.datetime import now
from database.seed import seed_database
from database.store import Store

logger = logging.getLogger(__name__)

JOBS = "jobs"
JOB = "job"
CANDIDATES = "candidates"
CANDIDATE = "candidate"
ASSESSMENTS = "assessments"
ASSESSMENT = "assessment"
HR_MANAGERS = "hr-managers"


def _replace_where(items: List[Dict], item_id: str, change: Callable[[Dict], Dict]) -> List[Dict]:
    return [change(item) if item.get("id") == item_id else item for item in items]


def _merge(fields: Dict[str, Any]) -> Callable[[Dict], Dict]:
    return lambda item: {**item, **fields}


def _matches_search(candidate: Dict[str, Any], search: Optional[str]) -> bool:
    needle = (search or "").strip().casefold()
    if not needle:
        return True
    return (
        needle in candidate.get("name", "").casefold()
        or needle in candidate.get("email", "").casefold()
    )


def _matches_title(job: Dict[str, Any], search: Optional[str]) -> bool:
    needle = (search or "").strip().casefold()
    return not needle or needle in job.get("title", "").casefold()


class TalentFlowClient:
    """
    Explicitly constructed client stack: store, simulated API, HTTP client
    and query cache. Created on enter and torn down in reverse on exit.

    Args:
        settings: Settings (defaults to the module-level settings)
        failure_policy: Overrides the random fault injection
        latency: Overrides the simulated latency, in seconds
        seed: Repopulate the store with sample data on open
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        failure_policy: Optional[Callable[[str, str], bool]] = None,
        latency: Optional[float] = None,
        seed: bool = False,
    ):
        self.settings = settings or default_settings
        self.failure_policy = failure_policy
        self.latency = latency
        self.seed = seed
        self.store: Optional[Store] = None
        self.api: Optional[SimulatorClient] = None
        self.coordinator: Optional[MutationCoordinator] = None

    async def open(self) -> "TalentFlowClient":
        self.store = await Store(self.settings.store_url, echo=self.settings.store_echo).init()
        if self.seed:
            await seed_database(
                self.store,
                jobs=self.settings.seed_jobs,
                candidates=self.settings.seed_candidates,
                seed=self.settings.seed_random_seed,
            )
        app = create_app(
            self.store,
            self.settings,
            failure_policy=self.failure_policy,
            latency=self.latency,
        )
        self.api = SimulatorClient(app)
        self.coordinator = MutationCoordinator(self.settings.cache_stale_time_seconds)
        logger.info("TalentFlow client opened")
        return self

    async def close(self) -> None:
        if self.coordinator is not None:
            await self.coordinator.close()
            self.coordinator = None
        if self.api is not None:
            await self.api.aclose()
            self.api = None
        if self.store is not None:
            await self.store.close()
            self.store = None
        logger.info("TalentFlow client closed")

    async def __aenter__(self) -> "TalentFlowClient":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ==================== Queries ===================== #

    async def jobs(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Dict]:
        return await self.coordinator.query(
            query_key(JOBS, status=status, search=search),
            lambda: self.api.list_jobs(status=status, search=search),
        )

    async def job(self, job_id: str) -> Dict:
        return await self.coordinator.query(
            query_key(JOB, id=job_id), lambda: self.api.get_job(job_id)
        )

    async def candidates(self, stage: Optional[str] = None, search: Optional[str] = None) -> List[Dict]:
        return await self.coordinator.query(
            query_key(CANDIDATES, stage=stage, search=search),
            lambda: self.api.list_candidates(stage=stage, search=search),
        )

    async def candidate(self, candidate_id: str) -> Dict:
        return await self.coordinator.query(
            query_key(CANDIDATE, id=candidate_id),
            lambda: self.api.get_candidate(candidate_id),
        )

    async def assessments(self) -> List[Dict]:
        return await self.coordinator.query(
            query_key(ASSESSMENTS), self.api.list_assessments
        )

    async def assessment(self, job_id: str) -> Optional[Dict]:
        """The job's assessment, or None when it has none yet."""
        return await self.coordinator.query(
            query_key(ASSESSMENT, job_id=job_id),
            lambda: self.api.get_assessment(job_id),
        )

    async def hr_managers(self) -> List[Dict]:
        return await self.coordinator.query(
            query_key(HR_MANAGERS), self.api.list_hr_managers
        )

    # ==================== Job mutations ===================== #

    def create_job(self, data: Dict[str, Any]) -> asyncio.Task:
        return self.coordinator.mutate(
            lambda: self.api.create_job(data),
            invalidates=[query_key(JOBS)],
        )

    def update_job(self, job_id: str, fields: Dict[str, Any]) -> asyncio.Task:
        """Patch a job; job lists and the job's detail show the change at once."""

        known = self._known_job(job_id)

        def update_list(jobs, key: QueryKey):
            status, search = key.get("status"), key.get("search")
            updated = _replace_where(jobs, job_id, _merge(fields))
            if known is not None and not any(j.get("id") == job_id for j in jobs):
                updated = sorted(
                    [*updated, {**known, **fields}],
                    key=lambda j: (j.get("order", 0), j.get("createdAt", "")),
                )
            return [
                job for job in updated
                if (not status or job.get("status") == status)
                and (job.get("id") != job_id or _matches_title(job, search))
            ]

        return self.coordinator.mutate(
            lambda: self.api.update_job(job_id, fields),
            updates={
                query_key(JOBS): update_list,
                query_key(JOB, id=job_id): lambda job, key: {**job, **fields},
            },
            invalidates=[query_key(ASSESSMENTS)],
        )

    def archive_job(self, job_id: str) -> asyncio.Task:
        return self.update_job(job_id, {"status": "archived"})

    def unarchive_job(self, job_id: str) -> asyncio.Task:
        return self.update_job(job_id, {"status": "active"})

    def delete_job(self, job_id: str) -> asyncio.Task:
        return self.coordinator.mutate(
            lambda: self.api.delete_job(job_id),
            updates={
                query_key(JOBS): lambda jobs, key: [j for j in jobs if j.get("id") != job_id],
                query_key(JOB, id=job_id): lambda job, key: None,
            },
            invalidates=[
                query_key(CANDIDATES),
                query_key(ASSESSMENTS),
                query_key(ASSESSMENT, job_id=job_id),
            ],
        )

    # ==================== Candidate mutations ===================== #

    def create_candidate(self, data: Dict[str, Any]) -> asyncio.Task:
        return self.coordinator.mutate(
            lambda: self.api.create_candidate(data),
            invalidates=[query_key(CANDIDATES), query_key(JOBS), query_key(JOB)],
        )

    def move_candidate(
        self,
        candidate_id: str,
        stage: str,
        actor_id: Optional[str] = None,
        actor_name: Optional[str] = None,
    ) -> asyncio.Task:
        """
        Move a candidate to another pipeline stage.

        Lists filtered to the old stage drop the candidate, lists filtered to
        the new stage gain them, unfiltered lists update in place.
        """
        fields: Dict[str, Any] = {"stage": stage}
        if actor_id:
            fields["actorId"] = actor_id
        if actor_name:
            fields["actorName"] = actor_name
        return self._patch_candidate(candidate_id, fields)

    def update_candidate(self, candidate_id: str, fields: Dict[str, Any]) -> asyncio.Task:
        return self._patch_candidate(candidate_id, fields)

    def add_note(
        self,
        candidate_id: str,
        content: str,
        author_id: Optional[str] = None,
        author_name: Optional[str] = None,
    ) -> asyncio.Task:
        """Append a note; the candidate's detail shows a provisional copy at once."""
        provisional = {
            "id": f"pending-{uuid.uuid4()}",
            "content": content.strip(),
            "authorId": author_id or self.settings.default_actor_id,
            "authorName": author_name or self.settings.default_actor_name,
            "createdAt": now().isoformat(),
        }
        return self.coordinator.mutate(
            lambda: self.api.add_note(candidate_id, content, author_id, author_name),
            updates={
                query_key(CANDIDATE, id=candidate_id): lambda candidate, key: {
                    **candidate,
                    "notes": [*candidate.get("notes", []), provisional],
                },
            },
            invalidates=[query_key(CANDIDATES)],
        )

    def _patch_candidate(self, candidate_id: str, fields: Dict[str, Any]) -> asyncio.Task:
        changes = {k: v for k, v in fields.items() if k not in ("actorId", "actorName")}
        known = self._known_candidate(candidate_id)

        def update_list(candidates, key: QueryKey):
            stage_filter = key.get("stage")
            present = any(c.get("id") == candidate_id for c in candidates)
            updated = _replace_where(candidates, candidate_id, _merge(changes))
            if "stage" not in changes or stage_filter in (None, "all"):
                return updated
            if stage_filter != changes["stage"]:
                return [c for c in updated if c.get("id") != candidate_id]
            if not present and known is not None:
                moved = {**known, **changes}
                if _matches_search(moved, key.get("search")):
                    updated = sorted(
                        [*updated, moved],
                        key=lambda c: (c.get("createdAt", ""), c.get("id", "")),
                    )
            return updated

        invalidates = []
        if "appliedJobs" in changes:
            invalidates = [query_key(JOBS), query_key(JOB)]

        return self.coordinator.mutate(
            lambda: self.api.update_candidate(candidate_id, fields),
            updates={
                query_key(CANDIDATES): update_list,
                query_key(CANDIDATE, id=candidate_id): lambda c, key: {**c, **changes},
            },
            invalidates=invalidates,
        )

    def _known_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Any confirmed copy of a job already in the cache."""
        detail = self.coordinator.cache.get(query_key(JOB, id=job_id))
        if detail is not None and detail.confirmed:
            return detail.confirmed
        for _, entry in self.coordinator.cache.find(query_key(JOBS)):
            for job in entry.confirmed or []:
                if job.get("id") == job_id:
                    return job
        return None

    def _known_candidate(self, candidate_id: str) -> Optional[Dict[str, Any]]:
        """Any confirmed copy of a candidate already in the cache."""
        detail = self.coordinator.cache.get(query_key(CANDIDATE, id=candidate_id))
        if detail is not None and detail.confirmed:
            return {k: v for k, v in detail.confirmed.items() if k != "timeline"}
        for _, entry in self.coordinator.cache.find(query_key(CANDIDATES)):
            for candidate in entry.confirmed or []:
                if candidate.get("id") == candidate_id:
                    return candidate
        return None

    # ==================== Assessment mutations ===================== #

    def save_assessment(self, job_id: str, data: Dict[str, Any]) -> asyncio.Task:
        """Create or replace the job's assessment."""
        document = {**data, "jobId": job_id}

        def set_detail(current, key: QueryKey):
            if current is None:
                return document
            return {**document, "id": current.get("id"), "createdAt": current.get("createdAt")}

        def set_in_list(assessments, key: QueryKey):
            if any(a.get("jobId") == job_id for a in assessments):
                return [
                    {**a, **document, "id": a.get("id")} if a.get("jobId") == job_id else a
                    for a in assessments
                ]
            return [*assessments, document]

        return self.coordinator.mutate(
            lambda: self.api.save_assessment(job_id, data),
            updates={
                query_key(ASSESSMENT, job_id=job_id): set_detail,
                query_key(ASSESSMENTS): set_in_list,
            },
        )

    def delete_assessment(self, job_id: str) -> asyncio.Task:
        return self.coordinator.mutate(
            lambda: self.api.delete_assessment(job_id),
            updates={
                query_key(ASSESSMENT, job_id=job_id): lambda current, key: None,
                query_key(ASSESSMENTS): lambda assessments, key: [
                    a for a in assessments if a.get("jobId") != job_id
                ],
            },
        )
