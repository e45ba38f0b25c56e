"""
Compare-and-swap committer with bounded retry.
"""

import json
import logging
import time
from typing import Callable, Optional, Dict, Any

from ..error_handling.exceptions import (
    StoreError, ConflictError, RemoteUnavailableError, RetriesExhaustedError,
    SchemaValidationError
)
from ..error_handling.retry_policy import RetryPolicy, AttemptTracker, AttemptState
from ..models import (
    RepositoryCoordinates, CommitRequest, CommitResult, Credential,
    SchemaRegistry, default_registry
)
from .contents_client import ContentsClient
from .reader import AuthenticatedReader

logger = logging.getLogger(__name__)


class Committer:
    """
    Persists blobs with optimistic concurrency control.

    Each attempt re-reads the current revision token through an
    AuthenticatedReader and issues a write conditioned on it. The remote is
    the only source of ordering: no lock is held, a competing writer may
    win, and the loser retries against the new base state until the
    RetryPolicy's budget runs out.

    Instances keep no state between calls and can be shared by concurrent
    callers.
    """

    def __init__(
        self,
        client: ContentsClient,
        coordinates: RepositoryCoordinates,
        policy: Optional[RetryPolicy] = None,
        schemas: Optional[SchemaRegistry] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize committer.

        Args:
            client: Contents API client
            coordinates: Repository and branch to write to
            policy: Retry policy (3 attempts, 1s linear backoff by default)
            schemas: Registry used to validate payloads before any network call
            sleep: Blocking wait used between attempts
        """
        self.client = client
        self.coordinates = coordinates
        self.policy = policy or RetryPolicy()
        self.schemas = schemas if schemas is not None else default_registry()
        self._sleep = sleep

    def commit(
        self,
        path: str,
        payload: bytes,
        message: str,
        credential: Credential,
        expected_revision_token: Optional[str] = None
    ) -> CommitResult:
        """
        Create or replace the blob at ``path``.

        Args:
            path: Repository-relative path
            payload: New content (UTF-8 JSON)
            message: Commit message
            credential: Bearer credential of the editor
            expected_revision_token: Token the caller last observed; a
                mismatch with the remote counts as a conflict

        Returns:
            CommitResult with the new revision token, distinct from the
            previous one. If the remote already holds an identical payload,
            nothing is written and the result has ``changed=False`` with the
            unchanged current token.

        Raises:
            SchemaValidationError: Payload is malformed (no network call made)
            AuthFailureError: Credential rejected (not retried)
            RemoteUnavailableError: Non-transient remote failure (not retried)
            RetriesExhaustedError: Attempt budget consumed
        """
        request = CommitRequest(
            path=path,
            payload=payload,
            message=message,
            expected_revision_token=expected_revision_token
        )
        return self.commit_request(request, credential)

    def commit_request(self, request: CommitRequest, credential: Credential) -> CommitResult:
        """Run the bounded compare-and-swap loop for a CommitRequest."""
        self._validate_payload(request)

        reader = AuthenticatedReader(self.client, self.coordinates, credential, self.schemas)
        tracker = AttemptTracker(self.policy)
        expected = request.expected_revision_token

        while True:
            attempt = tracker.begin()
            try:
                result = self._attempt(reader, request, expected, credential, attempt)
            except StoreError as e:
                delay = tracker.fail(e)

                if tracker.state == AttemptState.FAILED:
                    logger.error(f"Commit of {request.path} failed on attempt {attempt}: {e}")
                    raise

                if tracker.state == AttemptState.EXHAUSTED:
                    logger.warning(
                        f"Commit of {request.path} gave up after {attempt} attempts: {type(e).__name__}"
                    )
                    raise RetriesExhaustedError(
                        f"Could not commit {request.path} after {attempt} attempts",
                        path=request.path,
                        attempts=attempt,
                        last_error=e
                    )

                if isinstance(e, ConflictError):
                    # The retry proceeds from the freshly read base state.
                    expected = None
                    logger.warning(
                        f"Conflict committing {request.path} (attempt {attempt}/{self.policy.max_attempts}); "
                        f"retrying in {delay:.2f}s"
                    )
                else:
                    logger.warning(
                        f"Transient failure committing {request.path} (attempt {attempt}/"
                        f"{self.policy.max_attempts}): {e}; retrying in {delay:.2f}s"
                    )
                self._sleep(delay)
                continue

            tracker.succeed()
            return result

    def _attempt(
        self,
        reader: AuthenticatedReader,
        request: CommitRequest,
        expected: Optional[str],
        credential: Credential,
        attempt: int
    ) -> CommitResult:
        current = reader.fetch_fresh(request.path)
        current_token = current.revision_token

        if expected is not None and expected != current_token:
            raise ConflictError(
                f"Revision of {request.path} changed since it was read",
                path=request.path,
                expected_token=expected,
                current_token=current_token
            )

        if current.exists and current.payload == request.payload:
            logger.info(f"Content of {request.path} unchanged at {current_token[:7]}; nothing to commit")
            return CommitResult(
                path=request.path,
                new_revision_token=current_token,
                previous_revision_token=current_token,
                attempts=attempt,
                changed=False
            )

        response = self.client.put_content(
            self.coordinates,
            request.path,
            request.payload,
            request.message,
            credential,
            sha=current_token
        )

        new_token, commit_sha = self._parse_response(request.path, response)
        if new_token == current_token:
            raise RemoteUnavailableError(
                f"Remote reported an unchanged revision for {request.path} after a write",
                path=request.path
            )

        action = "Created" if current_token is None else "Updated"
        logger.info(
            f"{action} {self.coordinates}:{request.path} -> {new_token[:7]} "
            f"(attempt {attempt}/{self.policy.max_attempts})"
        )
        return CommitResult(
            path=request.path,
            new_revision_token=new_token,
            previous_revision_token=current_token,
            attempts=attempt,
            commit_sha=commit_sha
        )

    @staticmethod
    def _parse_response(path: str, response: Dict[str, Any]) -> tuple:
        content = response.get("content")
        new_token = content.get("sha") if isinstance(content, dict) else None
        if not new_token:
            raise RemoteUnavailableError(f"Write response for {path} has no content sha", path=path)
        commit = response.get("commit")
        commit_sha = commit.get("sha") if isinstance(commit, dict) else None
        return new_token, commit_sha

    def _validate_payload(self, request: CommitRequest) -> None:
        """
        Reject malformed payloads before touching the network.

        Raises:
            SchemaValidationError: If the payload is not UTF-8 JSON or does
                not match the schema registered for the path
        """
        if not request.message or not request.message.strip():
            raise SchemaValidationError("Commit message must not be empty", path=request.path)
        try:
            data = json.loads(request.payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SchemaValidationError(f"Payload for {request.path} is not valid JSON", path=request.path, cause=e)
        self.schemas.validate(request.path, data)
