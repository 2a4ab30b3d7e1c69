# tests/test_retry.py
import pytest

from course_engine.core.retry import exponential_backoff, with_retry
from course_engine.domain.errors import InvalidRequest, NetworkError, ServiceUnavailable, classify_error


class Flaky:
    def __init__(self, failures):
        self.failures = list(failures)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "ok"


def retryable(error):
    return getattr(error, "retryable", False)


def test_exponential_backoff_schedule():
    schedule = exponential_backoff(1.0)
    assert [schedule(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]
    assert exponential_backoff(0.5)(3) == 2.0


async def test_returns_first_success(sleep):
    operation = Flaky([ServiceUnavailable()])
    assert await with_retry(operation, should_retry=retryable, sleep=sleep) == "ok"
    assert operation.calls == 2
    assert sleep.delays == [1.0]


async def test_exhaustion_raises_last_error(sleep):
    last = NetworkError("temporary glitch")
    operation = Flaky([ServiceUnavailable(), ServiceUnavailable(), last])

    with pytest.raises(NetworkError) as excinfo:
        await with_retry(operation, max_attempts=3, should_retry=retryable, sleep=sleep)

    assert excinfo.value is last
    assert operation.calls == 3
    assert sleep.delays == [1.0, 2.0]


async def test_non_retryable_error_stops_immediately(sleep):
    operation = Flaky([InvalidRequest("missing id"), ServiceUnavailable()])

    with pytest.raises(InvalidRequest):
        await with_retry(operation, should_retry=retryable, sleep=sleep)

    assert operation.calls == 1
    assert sleep.delays == []


async def test_transform_error_wraps_raw_errors(sleep):
    operation = Flaky([RuntimeError("HTTP 503 from upstream")] * 3)

    with pytest.raises(ServiceUnavailable) as excinfo:
        await with_retry(operation, should_retry=retryable, transform_error=classify_error, sleep=sleep)

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert operation.calls == 3


async def test_on_attempt_sees_each_attempt(sleep):
    seen = []
    operation = Flaky([ServiceUnavailable()])
    await with_retry(operation, should_retry=retryable, sleep=sleep, on_attempt=seen.append)
    assert seen == [1, 2]


async def test_rejects_zero_attempts(sleep):
    with pytest.raises(ValueError):
        await with_retry(Flaky([]), max_attempts=0, sleep=sleep)
