from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from app.logging_config import get_logger
from app.schemas.agrihaul import AcceptJobRequest, ApiEnvelope, CreateJobRequest, RatingRequest
from app.services.result import Result

logger = get_logger("agrihaul_client")


def filter_jobs_by_pickup(jobs: list[dict], location: str, max_results: int) -> list[dict]:
    """Jobs whose pickup address contains `location`, case-insensitive, first N only."""
    needle = location.lower()
    matches = [job for job in jobs if needle in str(job.get("pickup_address") or "").lower()]
    return matches[:max_results]


class AgriHaulClient:
    """Client for the AgriHaul REST API.

    Every call returns a Result; failures are classified as upstream errors and
    never raised to the caller.
    """

    API_PREFIX = "/api/v1"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _request(self, method: str, path: str, params: Optional[dict] = None, json: Optional[dict] = None) -> Result[Any]:
        url = f"{self.base_url}{self.API_PREFIX}{path}"
        headers = {"x-api-key": self.api_key}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.request(method, url, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error(
                "AgriHaul API unreachable",
                extra={"context": {"method": method, "path": path, "error": str(e)}},
            )
            return Result.upstream_failure(str(e) or type(e).__name__, "network_error")

        envelope: Optional[ApiEnvelope] = None
        try:
            envelope = ApiEnvelope.model_validate(response.json())
        except (ValueError, ValidationError):
            envelope = None

        if not response.is_success:
            error = envelope.error if envelope and envelope.error else f"HTTP {response.status_code}"
            logger.error(
                "AgriHaul API returned error status",
                extra={"context": {"method": method, "path": path, "status": response.status_code, "error": error}},
            )
            return Result.upstream_failure(error, "http_error")

        if envelope is None or not envelope.success:
            error = envelope.error if envelope and envelope.error else "Unsuccessful response envelope"
            logger.error(
                "AgriHaul API rejected request",
                extra={"context": {"method": method, "path": path, "error": error}},
            )
            return Result.upstream_failure(error, "envelope_error")

        return Result.success(envelope.data)

    def create_job(self, payload: CreateJobRequest) -> Result[str]:
        """POST /jobs. Returns the new job id."""
        result = self._request("POST", "/jobs", json=payload.model_dump())
        if not result.ok:
            return result

        data = result.value if isinstance(result.value, dict) else {}
        job = data.get("job") if isinstance(data.get("job"), dict) else {}
        job_id = data.get("id") or job.get("id") or "JOB_UNKNOWN"
        return Result.success(str(job_id))

    def list_open_jobs(self, limit: int = 25) -> Result[list[dict]]:
        """GET /jobs?status=open&limit=N."""
        result = self._request("GET", "/jobs", params={"status": "open", "limit": limit})
        if not result.ok:
            return result
        jobs = result.value if isinstance(result.value, list) else []
        return Result.success([job for job in jobs if isinstance(job, dict)])

    def get_job(self, job_id: str) -> Result[dict]:
        """GET /jobs/{id}."""
        result = self._request("GET", f"/jobs/{quote(job_id, safe='')}")
        if not result.ok:
            return result
        return Result.success(result.value if isinstance(result.value, dict) else {})

    def accept_job(self, job_id: str, carrier_id: str) -> Result[Any]:
        """POST /jobs/{id}/accept on behalf of a carrier."""
        body = AcceptJobRequest(carrier_id=carrier_id)
        return self._request("POST", f"/jobs/{quote(job_id, safe='')}/accept", json=body.model_dump())

    def submit_rating(self, payload: RatingRequest) -> Result[Any]:
        """POST /ratings."""
        return self._request("POST", "/ratings", json=payload.model_dump())
