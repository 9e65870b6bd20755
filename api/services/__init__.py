"""
API Services Layer.

Store operations behind the simulated API endpoints. Each function runs in
its own store transaction and returns wire-format (camelCase) dicts.
"""

from api.services.jobs import (
    list_jobs,
    get_job,
    create_job,
    update_job,
    delete_job,
)

from api.services.candidates import (
    list_candidates,
    get_candidate,
    create_candidate,
    update_candidate,
    add_note,
)

from api.services.assessments import (
    list_assessments,
    get_assessment,
    save_assessment,
    delete_assessment,
)

from api.services.users import list_hr_managers

__all__ = [
    # Jobs
    "list_jobs",
    "get_job",
    "create_job",
    "update_job",
    "delete_job",
    # Candidates
    "list_candidates",
    "get_candidate",
    "create_candidate",
    "update_candidate",
    "add_note",
    # Assessments
    "list_assessments",
    "get_assessment",
    "save_assessment",
    "delete_assessment",
    # HR managers
    "list_hr_managers",
]
