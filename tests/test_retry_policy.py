import pytest

from navstore.config import CommitConfig
from navstore.error_handling import (
    RetryPolicy, AttemptTracker, AttemptState, ConflictError, RemoteUnavailableError,
    AuthFailureError, SchemaValidationError
)


def test_defaults():
    policy = RetryPolicy()

    assert policy.max_attempts == 3
    assert policy.base_delay == 1.0
    assert policy.max_delay is None


@pytest.mark.parametrize("attempt, expected", [(1, 0.5), (2, 1.0), (3, 1.5), (10, 5.0)])
def test_delay_grows_linearly(attempt, expected):
    assert RetryPolicy(base_delay=0.5).delay_for(attempt) == expected


def test_delay_is_capped():
    policy = RetryPolicy(base_delay=2.0, max_delay=5.0)

    assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [2.0, 4.0, 5.0, 5.0]


@pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"base_delay": -1.0}, {"max_delay": -1.0}])
def test_invalid_policy_is_rejected(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_from_config():
    policy = RetryPolicy.from_config(CommitConfig(max_attempts=5, base_delay=0.25, max_delay=2.0))

    assert policy == RetryPolicy(max_attempts=5, base_delay=0.25, max_delay=2.0)


@pytest.mark.parametrize("error, retryable", [
    (ConflictError("stale"), True),
    (RemoteUnavailableError("502", transient=True), True),
    (RemoteUnavailableError("400", transient=False), False),
    (AuthFailureError("401"), False),
    (SchemaValidationError("bad"), False),
    (ValueError("unrelated"), False),
])
def test_is_retryable(error, retryable):
    assert RetryPolicy().is_retryable(error) is retryable


def test_should_retry_stops_at_budget():
    policy = RetryPolicy(max_attempts=2)

    assert policy.should_retry(ConflictError("stale"), 1) is True
    assert policy.should_retry(ConflictError("stale"), 2) is False


def test_tracker_success_path():
    tracker = AttemptTracker(RetryPolicy())

    assert tracker.begin() == 1
    tracker.succeed()

    assert tracker.state == AttemptState.SUCCEEDED
    assert tracker.finished is True


def test_tracker_retry_then_exhaust():
    tracker = AttemptTracker(RetryPolicy(max_attempts=3, base_delay=1.0))
    states = []
    delays = []

    for _ in range(3):
        tracker.begin()
        delays.append(tracker.fail(ConflictError("stale")))
        states.append(tracker.state)

    assert states == [AttemptState.WAITING, AttemptState.WAITING, AttemptState.EXHAUSTED]
    assert delays == [1.0, 2.0, 0.0]
    assert tracker.attempt == 3
    assert isinstance(tracker.last_error, ConflictError)


def test_tracker_fatal_error_fails_immediately():
    tracker = AttemptTracker(RetryPolicy(max_attempts=5))
    tracker.begin()

    assert tracker.fail(AuthFailureError("401")) == 0.0
    assert tracker.state == AttemptState.FAILED


def test_tracker_refuses_to_restart_when_finished():
    tracker = AttemptTracker(RetryPolicy())
    tracker.begin()
    tracker.succeed()

    with pytest.raises(RuntimeError):
        tracker.begin()
