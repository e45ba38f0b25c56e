"""
Retry policy and attempt state machine for conditioned writes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

from .exceptions import ConflictError, RemoteUnavailableError

if TYPE_CHECKING:
    from ..config import CommitConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff and attempt-budget decisions shared by network operations.

    Attempt ``n`` (1-indexed) that fails with a retryable error waits
    ``base_delay * n`` seconds before attempt ``n + 1``. Growth is linear;
    conflicts come from human-paced edits and clear quickly.
    """
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: Optional[float] = None

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must not be negative, got {self.base_delay}")
        if self.max_delay is not None and self.max_delay < 0:
            raise ValueError(f"max_delay must not be negative, got {self.max_delay}")

    @classmethod
    def from_config(cls, config: "CommitConfig") -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
            max_delay=config.max_delay
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-indexed) failed attempt."""
        delay = self.base_delay * attempt
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def is_retryable(self, error: Exception) -> bool:
        """Conflicts and transient remote failures are retryable; nothing else is."""
        if isinstance(error, ConflictError):
            return True
        if isinstance(error, RemoteUnavailableError):
            return error.transient
        return False

    def should_retry(self, error: Exception, attempt: int) -> bool:
        return self.is_retryable(error) and attempt < self.max_attempts


class AttemptState(Enum):
    """States of a bounded commit loop."""
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


class AttemptTracker:
    """
    Explicit ``Attempting(n) -> {Success | Retry -> Attempting(n+1) | Fatal}``
    state machine.

    Holds no network logic; the committer reports outcomes and asks what to
    do next, which keeps attempt counting and exit conditions testable on
    their own.
    """

    def __init__(self, policy: RetryPolicy):
        self.policy = policy
        self.attempt = 0
        self.state = AttemptState.ATTEMPTING
        self.last_error: Optional[Exception] = None

    @property
    def finished(self) -> bool:
        return self.state in (AttemptState.SUCCEEDED, AttemptState.FAILED, AttemptState.EXHAUSTED)

    def begin(self) -> int:
        """Enter Attempting(n+1) and return the new attempt number."""
        if self.finished:
            raise RuntimeError(f"Cannot start a new attempt from state {self.state.value}")
        self.attempt += 1
        self.state = AttemptState.ATTEMPTING
        return self.attempt

    def succeed(self) -> None:
        self.state = AttemptState.SUCCEEDED
        self.last_error = None

    def fail(self, error: Exception) -> float:
        """
        Record a failed attempt and decide the next state.

        Returns:
            Delay in seconds before the next attempt when the new state is
            WAITING; 0.0 otherwise.
        """
        self.last_error = error

        if not self.policy.is_retryable(error):
            self.state = AttemptState.FAILED
            return 0.0

        if self.attempt >= self.policy.max_attempts:
            self.state = AttemptState.EXHAUSTED
            return 0.0

        self.state = AttemptState.WAITING
        delay = self.policy.delay_for(self.attempt)
        logger.debug(
            f"Attempt {self.attempt}/{self.policy.max_attempts} failed with "
            f"{type(error).__name__}; next attempt in {delay:.2f}s"
        )
        return delay
