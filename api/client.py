"""
In-process client for the simulated API.

Requests travel through `httpx.ASGITransport` straight into the FastAPI
application, so they pass the same middleware (latency, injected faults,
logging) a networked client would see, without any socket.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import FastAPI

from core.errors import NotFoundError, error_from_response

logger = logging.getLogger(__name__)

BASE_URL = "http://talentflow.local"


class SimulatorClient:
    """
    Thin wrapper issuing virtual HTTP requests and raising domain errors.

    Error responses are turned back into the exception classes of
    `core.errors` (ValidationError, NotFoundError, ConflictError,
    InjectedServerError, ServerError) carrying the server's message.
    """

    def __init__(self, app: FastAPI, base_url: str = BASE_URL):
        """
        Initialize the client.

        Args:
            app: Simulated API application
            base_url: Virtual origin the requests are addressed to
        """
        self.app = app
        self._http = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app, raise_app_exceptions=False),
            base_url=base_url,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "SimulatorClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send a request and decode the response.

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            TalentFlowError: subclass matching the error response
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        response = await self._http.request(method, path, json=json, params=params or None)

        payload = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = None

        if response.is_error:
            error = error_from_response(response.status_code, payload)
            logger.debug(f"{method} {path} -> {response.status_code} {error.code}")
            raise error
        return payload

    # ==================== Jobs ===================== #

    async def list_jobs(
        self, status: Optional[str] = None, search: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.request("GET", "/jobs", params={"status": status, "search": search})

    async def get_job(self, job_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/jobs/{job_id}")

    async def create_job(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", "/jobs", json=data)

    async def update_job(self, job_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("PATCH", f"/jobs/{job_id}", json=fields)

    async def delete_job(self, job_id: str) -> None:
        await self.request("DELETE", f"/jobs/{job_id}")

    # ==================== Candidates ===================== #

    async def list_candidates(
        self, stage: Optional[str] = None, search: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.request(
            "GET", "/candidates", params={"stage": stage, "search": search}
        )

    async def get_candidate(self, candidate_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/candidates/{candidate_id}")

    async def create_candidate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", "/candidates", json=data)

    async def update_candidate(
        self, candidate_id: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.request("PATCH", f"/candidates/{candidate_id}", json=fields)

    async def add_note(
        self,
        candidate_id: str,
        content: str,
        author_id: Optional[str] = None,
        author_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {"content": content}
        if author_id:
            body["authorId"] = author_id
        if author_name:
            body["authorName"] = author_name
        return await self.request("POST", f"/candidates/{candidate_id}/notes", json=body)

    # ==================== Assessments ===================== #

    async def list_assessments(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/assessments")

    async def get_assessment(self, job_id: str) -> Optional[Dict[str, Any]]:
        """The job's assessment, or None when it has none yet."""
        try:
            return await self.request("GET", f"/assessments/{job_id}")
        except NotFoundError:
            return None

    async def save_assessment(self, job_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("PUT", f"/assessments/{job_id}", json=data)

    async def delete_assessment(self, job_id: str) -> None:
        await self.request("DELETE", f"/assessments/{job_id}")

    # ==================== HR managers ===================== #

    async def list_hr_managers(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/hr-managers")
