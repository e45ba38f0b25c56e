"""
GitHub contents API client.

One method call is one HTTP round trip. The client classifies responses into
the store's error taxonomy but never retries; retry decisions belong to the
committer's RetryPolicy.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional, TYPE_CHECKING

import requests

from .. import __version__
from ..error_handling.exceptions import (
    NotFoundError, ConflictError, AuthFailureError, RemoteUnavailableError
)
from ..models import RepositoryCoordinates, ContentBlob, Credential

if TYPE_CHECKING:
    from ..config import RepositoryConfig

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/vnd.github.v3+json"
RAW_MEDIA_TYPE = "application/vnd.github.v3.raw"


@dataclass
class RateLimitInfo:
    """GitHub API rate limit information."""
    limit: int
    remaining: int
    reset_time: datetime
    used: int


class ContentsClient:
    """
    Thin client for ``/repos/{owner}/{repo}/contents/{path}``.

    The session carries only credential-free headers; the Authorization
    header is attached per request, so one client can safely back both the
    public and the authenticated readers.

    The only mutable state is the rate limit seen on the last response. It
    is a best-effort diagnostic: concurrent callers may overwrite each
    other's snapshot, and nothing reads it to decide a read or a write.
    """

    def __init__(
        self,
        api_base_url: str = "https://api.github.com",
        timeout: float = 30,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize contents API client.

        Args:
            api_base_url: GitHub API base URL
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header value
            session: Pre-built session (tests inject a fake here)
        """
        self.base_url = api_base_url
        self.timeout = timeout
        self.user_agent = user_agent or f"navstore/{__version__}"

        self.session = session if session is not None else requests.Session()
        self._setup_session()

        self._rate_limit_info: Optional[RateLimitInfo] = None

    @classmethod
    def from_config(cls, config: "RepositoryConfig", session: Optional[requests.Session] = None) -> "ContentsClient":
        return cls(
            api_base_url=config.api_base_url,
            timeout=config.timeout,
            user_agent=config.user_agent,
            session=session
        )

    def _setup_session(self) -> None:
        """Set up the session with headers shared by every request."""
        self.session.headers.update({
            "Accept": JSON_MEDIA_TYPE,
            "User-Agent": self.user_agent
        })

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ContentsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _make_request(
        self,
        method: str,
        endpoint: str,
        path: str,
        credential: Optional[Credential] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> requests.Response:
        """
        Make a single request to the GitHub API.

        Args:
            method: HTTP method (GET, PUT)
            endpoint: API endpoint (without base URL)
            path: Content path, for error context
            credential: Bearer credential to attach, if any
            headers: Extra request headers
            **kwargs: Additional arguments for requests

        Returns:
            Successful response object

        Raises:
            RemoteError: Classified failure (see _raise_for_status)
        """
        url = f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

        request_headers = dict(headers or {})
        if credential is not None:
            request_headers["Authorization"] = credential.authorization_header()

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=request_headers,
                timeout=self.timeout,
                **kwargs
            )
        except requests.exceptions.Timeout as e:
            raise RemoteUnavailableError(
                f"{method} {path} timed out after {self.timeout}s",
                transient=True,
                path=path,
                cause=e
            )
        except requests.exceptions.RequestException as e:
            raise RemoteUnavailableError(
                f"{method} {path} failed: {e}",
                transient=True,
                path=path,
                cause=e
            )

        self._update_rate_limit_info(response)

        if not response.ok:
            self._raise_for_status(response, method, path)

        return response

    def _raise_for_status(self, response: requests.Response, method: str, path: str) -> None:
        """
        Translate a non-success response into the error taxonomy.

        404 -> NotFoundError; 401 -> AuthFailureError; 403 -> AuthFailureError
        unless it is a rate limit, which is transient; 409 and 422 mentioning
        the sha -> ConflictError; 5xx -> transient RemoteUnavailableError;
        any other 4xx -> non-transient RemoteUnavailableError.
        """
        status = response.status_code
        remote_message = self._remote_message(response)
        message = f"GitHub API {method} {path} failed: {status}"
        if remote_message:
            message += f" - {remote_message}"

        common = {"path": path, "status_code": status, "remote_message": remote_message}

        if status == 404:
            raise NotFoundError(f"No content at {path}", **common)

        if status == 401:
            raise AuthFailureError(message, **common)

        if status == 403:
            if "rate limit" in (remote_message or "").lower() or response.headers.get("X-RateLimit-Remaining") == "0":
                raise RemoteUnavailableError(message, transient=True, **common)
            raise AuthFailureError(message, **common)

        if status == 409 or (status == 422 and "sha" in (remote_message or "").lower()):
            raise ConflictError(message, **common)

        raise RemoteUnavailableError(message, transient=status >= 500, **common)

    @staticmethod
    def _remote_message(response: requests.Response) -> Optional[str]:
        try:
            data = response.json()
        except ValueError:
            text = (response.text or "").strip()
            return text[:200] or response.reason
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return response.reason

    def _update_rate_limit_info(self, response: requests.Response) -> None:
        """
        Update rate limit information from response headers.

        Args:
            response: HTTP response object
        """
        headers = response.headers

        if "X-RateLimit-Limit" in headers:
            try:
                info = RateLimitInfo(
                    limit=int(headers["X-RateLimit-Limit"]),
                    remaining=int(headers.get("X-RateLimit-Remaining", 0)),
                    reset_time=datetime.fromtimestamp(int(headers.get("X-RateLimit-Reset", 0))),
                    used=int(headers.get("X-RateLimit-Used", 0))
                )
            except ValueError:
                logger.debug("Ignoring malformed rate limit headers")
                return

            self._rate_limit_info = info
            if info.remaining < 10:
                logger.warning(
                    f"GitHub rate limit nearly exhausted: {info.remaining} "
                    f"requests left until {info.reset_time.isoformat()}"
                )

    def get_rate_limit_info(self) -> Optional[RateLimitInfo]:
        """
        Get the rate limit reported by the most recent response.

        Best-effort: under concurrent use this is whichever response landed
        last, not necessarily the caller's own.

        Returns:
            Rate limit information or None if no response carried it yet
        """
        return self._rate_limit_info

    def get_content(
        self,
        coordinates: RepositoryCoordinates,
        path: str,
        credential: Optional[Credential] = None,
        raw: bool = False,
        no_cache: bool = False
    ) -> ContentBlob:
        """
        Fetch a blob from the configured branch.

        Args:
            coordinates: Repository and branch to read from
            path: Repository-relative path
            credential: Optional bearer credential
            raw: Request the raw media type (payload only, no revision token)
            no_cache: Ask intermediaries not to serve a cached copy

        Returns:
            ContentBlob with payload and, unless raw, its revision token

        Raises:
            NotFoundError: If the path does not exist on the branch
            RemoteError: For any other failure
        """
        headers = {"Accept": RAW_MEDIA_TYPE if raw else JSON_MEDIA_TYPE}
        if no_cache:
            headers["Cache-Control"] = "no-cache"

        response = self._make_request(
            "GET",
            coordinates.contents_endpoint(path),
            path,
            credential=credential,
            headers=headers,
            params={"ref": coordinates.branch}
        )

        if raw:
            logger.debug(f"Fetched {len(response.content)} raw bytes from {coordinates}:{path}")
            return ContentBlob(path=path, payload=response.content)

        data = self._json_body(response, path)
        if not isinstance(data, dict) or data.get("type", "file") != "file":
            raise RemoteUnavailableError(
                f"Path {path} is not a file",
                path=path,
                status_code=response.status_code
            )

        sha = data.get("sha")
        if not sha:
            raise RemoteUnavailableError(f"Response for {path} has no sha", path=path, status_code=response.status_code)

        if data.get("encoding") == "base64":
            payload = self._decode_base64(data.get("content") or "", path)
        else:
            # Files over 1 MB come back with encoding "none" and no inline content.
            payload = self.get_content(coordinates, path, credential=credential, raw=True, no_cache=no_cache).payload

        logger.debug(f"Fetched {path} from {coordinates} at {sha[:7]}")
        return ContentBlob(path=path, payload=payload, revision_token=sha)

    def put_content(
        self,
        coordinates: RepositoryCoordinates,
        path: str,
        payload: bytes,
        message: str,
        credential: Credential,
        sha: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create or replace a blob with a conditioned write.

        Args:
            coordinates: Repository and branch to write to
            path: Repository-relative path
            payload: New content
            message: Commit message
            credential: Bearer credential (required)
            sha: Revision token the write is conditioned on; None to create

        Returns:
            Decoded response body (``{"content": {"sha": ...}, "commit": {...}}``)

        Raises:
            ConflictError: If the sha no longer matches the remote
            RemoteError: For any other failure
        """
        body: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(payload).decode("ascii"),
            "branch": coordinates.branch
        }
        if sha:
            body["sha"] = sha

        response = self._make_request(
            "PUT",
            coordinates.contents_endpoint(path),
            path,
            credential=credential,
            headers={"Content-Type": "application/json"},
            data=json.dumps(body)
        )

        data = self._json_body(response, path)
        if not isinstance(data, dict):
            raise RemoteUnavailableError(f"Unexpected response body for {path}", path=path, status_code=response.status_code)
        return data

    @staticmethod
    def _json_body(response: requests.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailableError(
                f"Response for {path} is not valid JSON",
                path=path,
                status_code=response.status_code,
                cause=e
            )

    @staticmethod
    def _decode_base64(content: str, path: str) -> bytes:
        try:
            return base64.b64decode("".join(content.split()))
        except (binascii.Error, ValueError) as e:
            raise RemoteUnavailableError(f"Content for {path} is not valid base64", path=path, cause=e)
