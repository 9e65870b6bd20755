"""
Seed the store with demo data.

Clears every collection, then creates HR managers, jobs, candidates and each
candidate's initial "Applied" timeline event in a single transaction.

    python -m database.seed
"""

import asyncio
import logging
import random
import uuid
from datetime import timedelta
from typing import Optional

from core.config import Settings, settings as default_settings
from core.middleware.logging import setup_logging
from core.utils.datetime import now
from core.utils.formatting import format_salary_range, slugify
from database.models.candidates import (
    Candidate,
    CandidateApplication,
    CandidateStage,
    CandidateTimelineEvent,
    TimelineActionType,
)
from database.models.jobs import Job, JobStatus
from database.models.users import HRManager
from database.store import Store

logger = logging.getLogger(__name__)

FIRST_NAMES = [
    "Aarav", "Maya", "Liam", "Sofia", "Noah", "Zara", "Ethan", "Priya",
    "Lucas", "Amara", "Mateo", "Hana", "Oliver", "Leila", "Kenji", "Chloe",
]
LAST_NAMES = [
    "Sharma", "Okafor", "Nguyen", "Garcia", "Smith", "Kowalski", "Haddad",
    "Tanaka", "Fischer", "Silva", "Johnson", "Mensah", "Rossi", "Kim",
]
JOB_TITLES = [
    "Frontend Engineer", "Backend Engineer", "Data Analyst", "Product Designer",
    "DevOps Engineer", "QA Engineer", "Product Manager", "Mobile Developer",
    "Machine Learning Engineer", "Technical Writer", "Support Engineer",
    "Security Analyst",
]
COMPANIES = [
    ("Northwind Labs", "Shipping software that ships itself."),
    ("Blue Harbor", "Cloud tooling for small teams."),
    ("Quanta Health", "Better care through better data."),
    ("Fable & Co", "Stories for curious minds."),
    ("Ironleaf", "Infrastructure you can forget about."),
]
INDUSTRIES = ["Software", "Healthcare", "Finance", "Education", "Logistics"]
JOB_TYPES = ["Full-Time", "Internship", "Contract"]
LOCATIONS = ["Bengaluru", "Berlin", "Austin", "Toronto", "Remote", "Lisbon"]
TAGS = ["React", "Node.js", "Remote", "TypeScript", "Agile"]
SKILLS = ["JavaScript", "HTML", "CSS", "REST APIs", "Git"]


def create_hr_manager(name: str, email: str, password: str) -> HRManager:
    return HRManager(
        id=str(uuid.uuid4()),
        name=name,
        email=email,
        password=password,
        role="manager",
        assigned_jobs=[],
        personal_details={},
        created_at=now(),
    )


def create_job(order: int, rng: random.Random) -> Job:
    title = rng.choice(JOB_TITLES)
    company_name, company_description = rng.choice(COMPANIES)
    salary_min = rng.randint(60, 100) * 1000
    salary_max = rng.randint(110, 180) * 1000
    created_at = now() - timedelta(days=rng.randint(10, 365))
    return Job(
        id=str(uuid.uuid4()),
        title=title,
        slug=slugify(title),
        description=f"We are hiring a {title} to join {company_name}.",
        company={
            "name": company_name,
            "description": company_description,
            "avatarUrl": None,
        },
        industry=rng.choice(INDUSTRIES),
        job_type=rng.choice(JOB_TYPES),
        salary={
            "min": salary_min,
            "max": salary_max,
            "currency": "USD",
            "formatted": format_salary_range(salary_min, salary_max),
        },
        status=rng.choice(list(JobStatus)),
        location=rng.choice(LOCATIONS),
        tags=rng.sample(TAGS, rng.randint(1, 4)),
        order=order,
        created_at=created_at,
        updated_at=created_at + timedelta(days=rng.randint(0, 9)),
    )


def create_candidate(
    job_id: str, rng: random.Random, author: HRManager
) -> Candidate:
    first_name = rng.choice(FIRST_NAMES)
    last_name = rng.choice(LAST_NAMES)
    created_at = now() - timedelta(days=rng.randint(1, 120))

    notes = []
    if rng.random() < 0.3:
        notes.append({
            "id": str(uuid.uuid4()),
            "content": "Strong portfolio, follow up after screening.",
            "authorId": author.id,
            "authorName": author.name,
            "createdAt": (created_at + timedelta(hours=2)).isoformat(),
        })

    candidate_id = str(uuid.uuid4())
    return Candidate(
        id=candidate_id,
        name=f"{first_name} {last_name}",
        email=f"{first_name}.{last_name}.{candidate_id[:6]}@example.com".lower(),
        stage=rng.choice(list(CandidateStage)),
        skills=rng.sample(SKILLS, rng.randint(2, 4)),
        notes=notes,
        personal_details={},
        applied_jobs=[
            CandidateApplication(job_id=job_id, status="applied", applied_on=created_at)
        ],
        created_at=created_at,
        updated_at=created_at,
    )


async def seed_database(
    store: Store,
    jobs: int = 25,
    candidates: int = 1000,
    seed: Optional[int] = None,
) -> dict[str, int]:
    """
    Clear and repopulate the store.

    Args:
        store: Initialized store
        jobs: Number of jobs to create
        candidates: Number of candidates to create
        seed: Random seed for reproducible data

    Returns:
        Counts of created entities per collection
    """
    rng = random.Random(seed)
    logger.info("Database seeding started")

    async with store.transaction() as tx:
        await tx.clear()

        # Demo logins from the sample data, stored as given; nothing authenticates against them
        managers = [
            create_hr_manager("Admin User", "admin@talentflow.com", "admin123"),
            create_hr_manager("Jane Doe", "jane@talentflow.com", "jane123"),
        ]
        for manager in managers:
            await tx.hr_managers.add(manager)

        created_jobs = [create_job(order, rng) for order in range(1, jobs + 1)]
        for job in created_jobs:
            tx.session.add(job)
        await tx.session.flush()

        events = 0
        if created_jobs:
            for _ in range(candidates):
                job = rng.choice(created_jobs)
                candidate = create_candidate(job.id, rng, managers[0])
                tx.session.add(candidate)
                tx.session.add(CandidateTimelineEvent(
                    candidate_id=candidate.id,
                    job_id=job.id,
                    action_type=TimelineActionType.APPLIED,
                    details={"note": "Candidate applied via external job board."},
                    actor_id=managers[0].id,
                    actor_name=managers[0].name,
                    timestamp=candidate.created_at,
                ))
                events += 1
        await tx.session.flush()

    counts = {
        "hr_managers": len(managers),
        "jobs": len(created_jobs),
        "candidates": events,
        "timeline": events,
    }
    logger.info(f"Database seeding complete: {counts}")
    return counts


async def main(config: Optional[Settings] = None) -> None:
    config = config or default_settings
    setup_logging(log_level=config.log_level, json_logs=config.json_logs)
    async with Store(config.store_url, echo=config.store_echo) as store:
        await seed_database(
            store,
            jobs=config.seed_jobs,
            candidates=config.seed_candidates,
            seed=config.seed_random_seed,
        )


if __name__ == "__main__":
    asyncio.run(main())
