"""
Content blob, commit request/result and credential models.
"""

import copy
import json
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Union

from ..error_handling.exceptions import SchemaValidationError


@dataclass(frozen=True)
class ContentBlob:
    """
    A named, versioned unit of content stored at a path.

    ``revision_token`` is the remote content hash (blob SHA). It is None only
    when the blob was fetched through the raw media type, which does not
    carry one.
    """

    path: str
    payload: bytes
    revision_token: Optional[str] = None

    exists = True

    def text(self) -> str:
        return self.payload.decode("utf-8")

    def json(self) -> Dict[str, Any]:
        """
        Decode the payload as a JSON document.

        Raises:
            SchemaValidationError: If the payload is not UTF-8 JSON
        """
        try:
            return json.loads(self.text())
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SchemaValidationError(f"Content at {self.path} is not valid JSON", path=self.path, cause=e)


@dataclass(frozen=True)
class FallbackValue:
    """
    Well-typed default returned in place of a missing blob.

    Never carries a revision token: there is nothing on the remote to
    compare against.
    """

    path: str
    value: Dict[str, Any] = field(default_factory=dict)

    exists = False
    revision_token = None

    @property
    def payload(self) -> bytes:
        return json.dumps(self.value).encode("utf-8")

    def json(self) -> Dict[str, Any]:
        # Callers may mutate the result; the schema constant must stay intact.
        return copy.deepcopy(self.value)


ReadResult = Union[ContentBlob, FallbackValue]


@dataclass(frozen=True)
class CommitRequest:
    """
    A request to persist a new version of a blob.

    ``expected_revision_token`` absent means "create new"; present means
    "replace only if the current token matches".
    """

    path: str
    payload: bytes
    message: str
    expected_revision_token: Optional[str] = None

    @classmethod
    def from_json(
        cls,
        path: str,
        data: Dict[str, Any],
        message: str,
        expected_revision_token: Optional[str] = None
    ) -> "CommitRequest":
        payload = json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8")
        return cls(path, payload, message, expected_revision_token)


@dataclass(frozen=True)
class CommitResult:
    """
    Outcome of a successful conditioned write.

    When ``changed`` is True, ``new_revision_token`` always differs from
    ``previous_revision_token``. A ``changed=False`` result means the remote
    already held the exact payload: no write was issued and both tokens are
    the current one.
    """

    path: str
    new_revision_token: str
    previous_revision_token: Optional[str] = None
    attempts: int = 1
    commit_sha: Optional[str] = None
    changed: bool = True

    @property
    def created(self) -> bool:
        return self.previous_revision_token is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "new_revision_token": self.new_revision_token,
            "previous_revision_token": self.previous_revision_token,
            "attempts": self.attempts,
            "commit_sha": self.commit_sha,
            "changed": self.changed
        }


class Credential:
    """
    Opaque bearer credential supplied per call by the identity provider.

    Never persisted, never logged: repr and str are masked.
    """

    __slots__ = ("_token",)

    def __init__(self, token: str):
        if not token or not token.strip():
            raise ValueError("Credential token must not be empty")
        self._token = token.strip()

    @property
    def token(self) -> str:
        return self._token

    def authorization_header(self) -> str:
        return f"token {self._token}"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Credential) and other._token == self._token

    def __hash__(self) -> int:
        return hash(self._token)

    def __repr__(self) -> str:
        return "Credential(********)"

    __str__ = __repr__
