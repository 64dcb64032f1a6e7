import pytest

from jobapply.errors import ServiceError, ServiceUnavailable
from jobapply.retry import backoff_delays, retry, wait_for_service

from conftest import WakingGateway


def test_backoff_delays_double_and_cap():
    assert list(backoff_delays(5, base_delay=1.0, max_delay=5.0, jitter=False)) == [1.0, 2.0, 4.0, 5.0]
    assert list(backoff_delays(1)) == []


def test_jittered_delays_stay_within_half_to_one_and_a_half():
    for delay in backoff_delays(4, base_delay=2.0, jitter=True):
        assert 1.0 <= delay <= 12.0
    first = next(backoff_delays(2, base_delay=2.0))
    assert 1.0 <= first <= 3.0


def test_retries_until_success():
    calls = []
    delays = []

    @retry(max_attempts=3, base_delay=1.0, jitter=False, sleep=delays.append)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ServiceUnavailable("http://127.0.0.1:11434")
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3
    assert delays == [1.0, 2.0]


def test_gives_up_after_max_attempts():
    delays = []

    @retry(max_attempts=2, jitter=False, sleep=delays.append)
    def down():
        raise ServiceUnavailable("http://127.0.0.1:11434")

    with pytest.raises(ServiceUnavailable):
        down()
    assert len(delays) == 1


def test_http_errors_are_not_waited_out():
    delays = []

    @retry(max_attempts=5, sleep=delays.append)
    def bad_model():
        raise ServiceError(404, "model not found", "/api/chat")

    with pytest.raises(ServiceError):
        bad_model()
    assert delays == []


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        retry(max_attempts=0)


def test_wait_for_service_reports_each_pause():
    gateway = WakingGateway(down_for=2)
    waits = []
    models = wait_for_service(
        gateway,
        5,
        on_wait=lambda attempt, total, exc, delay: waits.append((attempt, total, type(exc))),
        sleep=lambda _: None,
    )
    assert models == [{"name": "llama3.2:3b"}]
    assert gateway.polls == 3
    assert waits == [(1, 5, ServiceUnavailable), (2, 5, ServiceUnavailable)]


def test_wait_for_service_single_attempt_does_not_sleep():
    slept = []
    with pytest.raises(ServiceUnavailable):
        wait_for_service(WakingGateway(down_for=1), 0, sleep=slept.append)
    assert slept == []
