import json

import httpx
import pytest

from app.schemas.agrihaul import CreateJobRequest, RatingRequest
from app.services.agrihaul_client import AgriHaulClient, filter_jobs_by_pickup
from app.services.result import ErrorKind

BASE_URL = "http://agrihaul.test/"
API_KEY = "test-key"


class Recorder:
    """MockTransport handler that records requests and replies with a fixed response."""

    def __init__(self, status_code=200, payload=None, content=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {"success": True, "data": {}}
        self.content = content
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _client(handler) -> AgriHaulClient:
    return AgriHaulClient(base_url=BASE_URL, api_key=API_KEY, transport=httpx.MockTransport(handler))


def _job_request() -> CreateJobRequest:
    return CreateJobRequest(
        crop="Corn",
        load_size=20.0,
        payout_dollars=2400,
        pickup_address="Fresno, CA",
        dropoff_address="Chicago, IL",
        equipment_needed=["dry van"],
    )


class TestRequests:
    def test_create_job_request(self):
        handler = Recorder(payload={"success": True, "data": {"id": "job-9"}})

        result = _client(handler).create_job(_job_request())

        assert result.ok
        assert result.value == "job-9"
        request = handler.last
        assert request.method == "POST"
        assert str(request.url) == "http://agrihaul.test/api/v1/jobs"
        assert request.headers["x-api-key"] == API_KEY
        body = json.loads(request.content)
        assert body["crop"] == "Corn"
        assert body["load_size"] == 20.0
        assert body["equipment_needed"] == ["dry van"]
        assert body["is_perishable"] is False
        assert body["notes"] == "Posted via WhatsApp"

    def test_create_job_nested_id(self):
        handler = Recorder(payload={"success": True, "data": {"job": {"id": "job-10"}}})

        assert _client(handler).create_job(_job_request()).value == "job-10"

    def test_create_job_without_id(self):
        handler = Recorder(payload={"success": True, "data": {}})

        assert _client(handler).create_job(_job_request()).value == "JOB_UNKNOWN"

    def test_list_open_jobs_params(self):
        handler = Recorder(payload={"success": True, "data": [{"id": "job-1"}, "junk"]})

        result = _client(handler).list_open_jobs(limit=25)

        assert result.value == [{"id": "job-1"}]
        assert handler.last.url.path == "/api/v1/jobs"
        assert handler.last.url.params["status"] == "open"
        assert handler.last.url.params["limit"] == "25"

    def test_get_job_quotes_id(self):
        handler = Recorder(payload={"success": True, "data": {"id": "a/b"}})

        result = _client(handler).get_job("a/b")

        assert result.value == {"id": "a/b"}
        assert handler.last.url.raw_path == b"/api/v1/jobs/a%2Fb"

    def test_accept_job(self):
        handler = Recorder(payload={"success": True, "data": {"status": "accepted"}})

        result = _client(handler).accept_job("job-1", "carrier-12345")

        assert result.ok
        assert handler.last.method == "POST"
        assert handler.last.url.path == "/api/v1/jobs/job-1/accept"
        assert json.loads(handler.last.content) == {"carrier_id": "carrier-12345"}

    def test_submit_rating(self):
        handler = Recorder(payload={"success": True, "data": {"id": "rating-1"}})

        result = _client(handler).submit_rating(RatingRequest.uniform("job-1", "farmer-1", 4, "fine"))

        assert result.ok
        assert handler.last.url.path == "/api/v1/ratings"
        body = json.loads(handler.last.content)
        assert body["on_time"] == 8
        assert body["resolution"] == 8
        assert body["comment"] == "fine"


class TestFailures:
    def test_unsuccessful_envelope(self):
        handler = Recorder(payload={"success": False, "error": "Validation failed"})

        result = _client(handler).get_job("job-1")

        assert not result.ok
        assert result.error == "Validation failed"
        assert result.error_code == "envelope_error"
        assert result.error_kind == ErrorKind.UPSTREAM

    def test_body_not_json(self):
        handler = Recorder(content=b"<html>oops</html>")

        result = _client(handler).get_job("job-1")

        assert result.error_code == "envelope_error"

    def test_http_error_uses_envelope_message(self):
        handler = Recorder(status_code=404, payload={"success": False, "error": "Job not found"})

        result = _client(handler).get_job("job-404")

        assert result.error == "Job not found"
        assert result.error_code == "http_error"

    def test_http_error_without_body(self):
        handler = Recorder(status_code=503, content=b"")

        result = _client(handler).list_open_jobs()

        assert result.error == "HTTP 503"
        assert result.error_code == "http_error"

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = _client(handler).accept_job("job-1", "carrier-12345")

        assert not result.ok
        assert result.error_code == "network_error"
        assert result.error_kind == ErrorKind.UPSTREAM

    def test_timeout_is_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert _client(handler).get_job("job-1").error_code == "network_error"


class TestFilterJobsByPickup:
    JOBS = [
        {"id": "1", "pickup_address": "Fresno, CA"},
        {"id": "2", "pickup_address": None},
        {"id": "3", "pickup_address": "east FRESNO"},
        {"id": "4"},
        {"id": "5", "pickup_address": "Fresno Depot"},
        {"id": "6", "pickup_address": "Fresno Yard"},
    ]

    def test_case_insensitive_substring(self):
        result = filter_jobs_by_pickup(self.JOBS, "fresno", max_results=10)
        assert [job["id"] for job in result] == ["1", "3", "5", "6"]

    def test_limited_in_order(self):
        result = filter_jobs_by_pickup(self.JOBS, "Fresno", max_results=3)
        assert [job["id"] for job in result] == ["1", "3", "5"]

    @pytest.mark.parametrize("location", ["Boise", "zzz"])
    def test_no_match(self, location):
        assert filter_jobs_by_pickup(self.JOBS, location, max_results=3) == []
