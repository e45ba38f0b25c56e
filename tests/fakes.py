"""
In-memory stand-in for the GitHub contents API.

FakeContentsSession is a requests.Session whose request() never touches the
network: it keeps per-branch blobs with git-style SHAs and enforces the
conditional-write rules of the real API (422 when a replace omits the sha,
409 when the sha is stale).
"""

import base64
import hashlib
import json
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import unquote, urlsplit

import requests

Payload = Union[bytes, Dict[str, Any]]

WRITE_TOKEN = "ghp_testtoken1234567890abcdef"


def blob_sha(payload: bytes) -> str:
    """SHA the way git names blobs, so identical content gets an identical token."""
    header = f"blob {len(payload)}\0".encode("ascii")
    return hashlib.sha1(header + payload).hexdigest()


def _to_bytes(payload: Payload) -> bytes:
    if isinstance(payload, bytes):
        return payload
    return json.dumps(payload).encode("utf-8")


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: Dict[str, str]
    params: Dict[str, Any] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None

    @property
    def authorization(self) -> Optional[str]:
        return self.headers.get("Authorization")


class FakeContentsSession(requests.Session):
    """Contents API for one repository, held in memory."""

    def __init__(self, owner: str = "acme", repo: str = "portal", write_tokens: Optional[List[str]] = None):
        super().__init__()
        self.owner = owner
        self.repo = repo
        self.write_tokens = set(write_tokens) if write_tokens is not None else None
        self.blobs: Dict[Tuple[str, str], bytes] = {}
        self.requests: List[RecordedRequest] = []
        self.closed = False
        self._scheduled_failures: Dict[str, List[Union[Exception, Tuple[int, Dict[str, Any], Dict[str, str]]]]] = {
            "GET": [],
            "PUT": []
        }
        self._before_put: List[Callable[["FakeContentsSession"], None]] = []
        self._commit_counter = 0

    # -- test helpers -------------------------------------------------------

    def seed(self, path: str, payload: Payload, branch: str = "main") -> str:
        """Store content directly, as if committed earlier. Returns its SHA."""
        data = _to_bytes(payload)
        self.blobs[(branch, path)] = data
        return blob_sha(data)

    def payload_at(self, path: str, branch: str = "main") -> Optional[bytes]:
        return self.blobs.get((branch, path))

    def sha_at(self, path: str, branch: str = "main") -> Optional[str]:
        data = self.payload_at(path, branch)
        return blob_sha(data) if data is not None else None

    def competing_write(self, path: str, payload: Payload, branch: str = "main") -> Callable[["FakeContentsSession"], None]:
        """Schedule another writer to land between the next read and the next PUT."""
        def write(session: "FakeContentsSession") -> None:
            session.seed(path, payload, branch)
        self._before_put.append(write)
        return write

    def keep_competing(self, path: str, branch: str = "main") -> None:
        """Make another writer win the race before every PUT from now on.

        Each hook re-schedules itself for the following PUT.
        """
        counter = {"n": 0}

        def write(session: "FakeContentsSession") -> None:
            counter["n"] += 1
            session.seed(path, {"competitor": counter["n"]}, branch)
            session._before_put.append(write)

        self._before_put.append(write)

    def respond_next(
        self,
        method: str,
        status: int,
        body: Any,
        headers: Optional[Dict[str, str]] = None
    ) -> None:
        """Answer the next ``method`` request with a canned response."""
        self._scheduled_failures[method].append((status, body, headers or {}))

    def fail_next(
        self,
        method: str,
        status: int,
        message: str = "failure",
        headers: Optional[Dict[str, str]] = None
    ) -> None:
        self.respond_next(method, status, {"message": message}, headers)

    def raise_next(self, method: str, error: Exception) -> None:
        self._scheduled_failures[method].append(error)

    def calls(self, method: Optional[str] = None) -> List[RecordedRequest]:
        return [r for r in self.requests if method is None or r.method == method]

    def close(self) -> None:
        self.closed = True
        super().close()

    # -- requests.Session ---------------------------------------------------

    def request(self, method, url, params=None, data=None, headers=None, **kwargs) -> requests.Response:
        merged_headers = dict(self.headers)
        merged_headers.update(headers or {})
        path = self._content_path(url)
        body = json.loads(data) if data else None
        self.requests.append(RecordedRequest(method, path, merged_headers, dict(params or {}), body))

        failure = self._next_failure(method)
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            status, failure_body, failure_headers = failure
            return self._response(status, url, body=failure_body, headers=failure_headers)

        if path is None:
            return self._response(404, url, body={"message": "Not Found"})
        if method == "GET":
            return self._get(url, path, (params or {}).get("ref", "main"), merged_headers)
        if method == "PUT":
            return self._put(url, path, body or {}, merged_headers)
        return self._response(405, url, body={"message": "Method Not Allowed"})

    def _next_failure(self, method: str):
        queue = self._scheduled_failures.get(method, [])
        return queue.pop(0) if queue else None

    def _content_path(self, url: str) -> Optional[str]:
        prefix = f"/repos/{self.owner}/{self.repo}/contents/"
        url_path = urlsplit(url).path
        if not url_path.startswith(prefix):
            return None
        return unquote(url_path[len(prefix):])

    def _get(self, url: str, path: str, branch: str, headers: Dict[str, str]) -> requests.Response:
        data = self.blobs.get((branch, path))
        if data is None:
            return self._response(404, url, body={"message": "Not Found"})

        if headers.get("Accept", "").endswith(".raw"):
            return self._response(200, url, raw=data)

        encoded = base64.b64encode(data).decode("ascii")
        # The API wraps base64 content at 60 characters
        wrapped = "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60)) + "\n"
        return self._response(200, url, body={
            "type": "file",
            "encoding": "base64",
            "name": path.rsplit("/", 1)[-1],
            "path": path,
            "size": len(data),
            "sha": blob_sha(data),
            "content": wrapped
        })

    def _put(self, url: str, path: str, body: Dict[str, Any], headers: Dict[str, str]) -> requests.Response:
        authorization = headers.get("Authorization")
        if not authorization:
            return self._response(401, url, body={"message": "Requires authentication"})
        if self.write_tokens is not None and authorization.split(" ", 1)[-1] not in self.write_tokens:
            return self._response(401, url, body={"message": "Bad credentials"})

        hooks, self._before_put = self._before_put, []
        for hook in hooks:
            hook(self)

        branch = body.get("branch", "main")
        current = self.blobs.get((branch, path))
        sha = body.get("sha")

        if current is not None and not sha:
            return self._response(422, url, body={"message": "Invalid request.\n\n\"sha\" wasn't supplied."})
        if current is not None and sha != blob_sha(current):
            return self._response(409, url, body={"message": f"{path} does not match {sha}"})
        if current is None and sha:
            return self._response(409, url, body={"message": f"{path} does not match {sha}"})

        payload = base64.b64decode(body["content"])
        self.blobs[(branch, path)] = payload
        self._commit_counter += 1
        return self._response(201 if current is None else 200, url, body={
            "content": {"name": path.rsplit("/", 1)[-1], "path": path, "sha": blob_sha(payload)},
            "commit": {"sha": f"{self._commit_counter:040x}", "message": body.get("message")}
        })

    @staticmethod
    def _response(
        status: int,
        url: str,
        body: Any = None,
        raw: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> requests.Response:
        response = requests.Response()
        response.status_code = status
        response.url = url
        response.reason = HTTPStatus(status).phrase
        response.encoding = "utf-8"
        response.headers.update(headers or {})
        response._content = raw if raw is not None else json.dumps(body).encode("utf-8")
        return response
