# tests/test_sync_client.py
import asyncio
import json

import httpx
import pytest

from course_engine.domain.errors import (
    ConnectionFailure,
    InvalidRequest,
    NotFound,
    ServiceUnavailable,
    SyncError,
    Timeout,
)
from course_engine.domain.schemas import AnswerEvent, EnrollmentRecord
from course_engine.services.sync_client import EnrollmentResult, SyncClient


def make_event(**overrides) -> AnswerEvent:
    fields = dict(
        user_id="anonymous-user",
        question_id="q1",
        course_id="course-1",
        selected_answer="2",
        is_correct=True,
        response_time_ms=1500,
    )
    fields.update(overrides)
    return AnswerEvent(**fields)


@pytest.fixture
def make_client(settings, sleep):
    def factory(service) -> SyncClient:
        return SyncClient(settings, client=service.client(), sleep=sleep)

    return factory


class TestSubmitAnswerEvent:
    async def test_success_posts_wire_payload(self, make_client, fake_service, sleep):
        service = fake_service([httpx.Response(201)])
        client = make_client(service)

        await client.submit_answer_event(make_event())

        assert len(service.requests) == 1
        request = service.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://service.test/rest/v1/user_question_responses"
        assert request.headers["apikey"] == "test-key"
        assert request.headers["Authorization"] == "Bearer test-key"
        assert json.loads(request.content) == {
            "user_id": "anonymous-user",
            "question_id": "q1",
            "selected_answer": 2,
            "is_correct": True,
            "response_time_ms": 1500,
        }
        assert sleep.delays == []

    async def test_non_numeric_answers_are_stored_as_zero(self, make_client, fake_service):
        service = fake_service([httpx.Response(201)])
        await make_client(service).submit_answer_event(
            make_event(selected_answer="skipped", is_correct=False, response_time_ms=None)
        )
        body = json.loads(service.requests[0].content)
        assert body["selected_answer"] == 0
        assert body["response_time_ms"] == 0

    async def test_service_unavailable_retries_with_backoff(self, make_client, fake_service, sleep):
        service = fake_service([httpx.Response(503) for _ in range(3)])

        with pytest.raises(ServiceUnavailable):
            await make_client(service).submit_answer_event(make_event())

        assert len(service.requests) == 3
        assert sleep.delays == [1.0, 2.0]

    async def test_recovers_on_second_attempt(self, make_client, fake_service, sleep):
        request = httpx.Request("POST", "http://service.test")
        service = fake_service([httpx.ConnectError("connection refused", request=request), httpx.Response(201)])

        await make_client(service).submit_answer_event(make_event())

        assert len(service.requests) == 2
        assert sleep.delays == [1.0]

    async def test_timeouts_are_retried(self, make_client, fake_service, sleep):
        request = httpx.Request("POST", "http://service.test")
        service = fake_service([httpx.ReadTimeout("timed out", request=request)] * 3)

        with pytest.raises(Timeout):
            await make_client(service).submit_answer_event(make_event())
        assert len(service.requests) == 3

    async def test_bad_request_aborts_after_first_attempt(self, make_client, fake_service, sleep):
        service = fake_service([httpx.Response(400, json={"message": "bad"})])

        with pytest.raises(InvalidRequest):
            await make_client(service).submit_answer_event(make_event())

        assert len(service.requests) == 1
        assert sleep.delays == []

    async def test_missing_identifier_fails_without_io(self, make_client, fake_service):
        service = fake_service()
        with pytest.raises(InvalidRequest):
            await make_client(service).submit_answer_event(make_event(question_id=""))
        assert service.requests == []


class TestSubmitEnrollment:
    async def test_creates_enrollment_when_missing(self, make_client, fake_service):
        service = fake_service([httpx.Response(200, json=[]), httpx.Response(201)])

        result = await make_client(service).submit_enrollment(
            EnrollmentRecord(user_id="u1", course_id="course-1")
        )

        assert result is EnrollmentResult.CREATED
        lookup, insert = service.requests
        assert lookup.method == "GET"
        assert lookup.url.params["user_id"] == "eq.u1"
        assert lookup.url.params["course_id"] == "eq.course-1"
        assert insert.method == "POST"
        assert json.loads(insert.content) == {
            "user_id": "u1",
            "course_id": "course-1",
            "progress_percentage": 0,
            "current_question_index": 0,
            "total_questions_answered": 0,
            "total_questions_correct": 0,
        }

    async def test_existing_enrollment_is_not_duplicated(self, make_client, fake_service):
        service = fake_service([httpx.Response(200, json=[{"id": "e1"}])])

        result = await make_client(service).submit_enrollment(
            EnrollmentRecord(user_id="u1", course_id="course-1")
        )

        assert result is EnrollmentResult.ALREADY_ENROLLED
        assert len(service.requests) == 1

    async def test_not_found_is_terminal(self, make_client, fake_service, sleep):
        service = fake_service([httpx.Response(404)])
        with pytest.raises(NotFound):
            await make_client(service).submit_enrollment(EnrollmentRecord(user_id="u1", course_id="c"))
        assert sleep.delays == []

    async def test_retries_whole_operation(self, make_client, fake_service, sleep):
        service = fake_service([httpx.Response(502), httpx.Response(200, json=[]), httpx.Response(201)])
        result = await make_client(service).submit_enrollment(EnrollmentRecord(user_id="u1", course_id="c"))
        assert result is EnrollmentResult.CREATED
        assert sleep.delays == [1.0]


class TestBackgroundSubmission:
    async def test_fire_and_forget_swallows_final_failure(self, make_client, fake_service):
        service = fake_service([httpx.Response(503) for _ in range(3)])
        client = make_client(service)

        task = client.fire_answer_event(make_event())
        assert client.pending_count == 1
        await client.drain()

        assert task.done()
        assert task.exception() is None
        assert len(service.requests) == 3
        assert client.pending_count == 0

    async def test_independent_events_run_concurrently(self, make_client, fake_service):
        service = fake_service()
        client = make_client(service)

        client.fire_answer_event(make_event(question_id="q1"))
        client.fire_answer_event(make_event(question_id="q2"))
        await client.drain()

        posted = sorted(json.loads(r.content)["question_id"] for r in service.requests)
        assert posted == ["q1", "q2"]

    async def test_close_abandons_in_flight_retries(self, settings, fake_service):
        blocker = asyncio.Event()

        async def blocking_sleep(_delay):
            await blocker.wait()

        service = fake_service([httpx.Response(503) for _ in range(3)])
        client = SyncClient(settings, client=service.client(), sleep=blocking_sleep)

        task = client.fire_answer_event(make_event())
        await asyncio.sleep(0.01)
        await client.aclose()

        assert task.cancelled()
        assert len(service.requests) == 1


class TestConnectionCheck:
    async def test_connection_ok(self, make_client, fake_service):
        service = fake_service([httpx.Response(200, json=[{"id": "c1"}])])
        assert await make_client(service).check_connection() is True
        assert service.requests[0].url.path == "/rest/v1/courses"

    async def test_connection_down(self, make_client, fake_service):
        request = httpx.Request("GET", "http://service.test")
        service = fake_service([httpx.ConnectError("connection refused", request=request)])
        assert await make_client(service).check_connection() is False


def test_sync_error_is_base_of_all_kinds():
    for kind in (Timeout, ConnectionFailure, ServiceUnavailable, InvalidRequest, NotFound):
        assert issubclass(kind, SyncError)
