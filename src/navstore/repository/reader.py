"""
Public and authenticated readers.
"""

import logging
from typing import Optional, Dict, Any

from ..error_handling.exceptions import NotFoundError
from ..models import (
    RepositoryCoordinates, ReadResult, Credential,
    SchemaRegistry, default_registry
)
from .contents_client import ContentsClient

logger = logging.getLogger(__name__)


class PublicReader:
    """
    Fetches blobs without a credential.

    Safe for anonymous and short-lived contexts: every fetch is exactly one
    round trip, and no state is kept between calls. A missing path yields
    the schema fallback; every other failure is raised as-is and never
    retried or masked as empty data.
    """

    def __init__(
        self,
        client: ContentsClient,
        coordinates: RepositoryCoordinates,
        schemas: Optional[SchemaRegistry] = None
    ):
        self.client = client
        self.coordinates = coordinates
        self.schemas = schemas if schemas is not None else default_registry()

    def _credential(self) -> Optional[Credential]:
        return None

    def fetch(self, path: str, raw: bool = False) -> ReadResult:
        """
        Fetch the blob at ``path``.

        Args:
            path: Repository-relative path
            raw: Use the raw media type (no revision token in the result)

        Returns:
            ContentBlob, or the schema FallbackValue if the path does not exist

        Raises:
            AuthFailureError: If the remote rejects the request (401/403)
            RemoteUnavailableError: For any other failure
        """
        try:
            return self.client.get_content(self.coordinates, path, credential=self._credential(), raw=raw)
        except NotFoundError:
            logger.info(f"No content at {self.coordinates}:{path}, returning fallback")
            return self.schemas.fallback_for(path)

    def fetch_json(self, path: str) -> Dict[str, Any]:
        """Fetch and decode the document at ``path``; missing paths give the fallback."""
        return self.fetch(path).json()


class AuthenticatedReader(PublicReader):
    """
    Reader that attaches a bearer credential.

    Used for content that needs elevated visibility and as the revision
    lookup step before a write. The credential is required, so read-write
    capability is visible in the constructor signature.
    """

    def __init__(
        self,
        client: ContentsClient,
        coordinates: RepositoryCoordinates,
        credential: Credential,
        schemas: Optional[SchemaRegistry] = None
    ):
        if not isinstance(credential, Credential):
            raise TypeError("AuthenticatedReader requires a Credential")
        super().__init__(client, coordinates, schemas)
        self.credential = credential

    def _credential(self) -> Optional[Credential]:
        return self.credential

    def current_revision(self, path: str) -> Optional[str]:
        """
        Look up the current revision token for ``path``, bypassing caches.

        Returns:
            The remote SHA, or None if the path does not exist
        """
        try:
            blob = self.client.get_content(self.coordinates, path, credential=self.credential, no_cache=True)
        except NotFoundError:
            return None
        return blob.revision_token

    def fetch_fresh(self, path: str) -> ReadResult:
        """Like fetch(), but asks intermediaries not to serve a cached copy."""
        try:
            return self.client.get_content(self.coordinates, path, credential=self.credential, no_cache=True)
        except NotFoundError:
            return self.schemas.fallback_for(path)
