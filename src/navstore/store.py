"""
Typed facade over the readers and the committer.
"""

import logging
import time
from typing import Callable, Optional

import requests

from .config import AppConfig
from .error_handling import RetryPolicy
from .models import (
    RepositoryCoordinates, CommitRequest, CommitResult, Credential, NavigationData, SiteConfig,
    NavigationStats, navigation_stats, SchemaRegistry, default_registry, ReadResult
)
from .repository import ContentsClient, PublicReader, AuthenticatedReader, Committer

logger = logging.getLogger(__name__)


class ContentStore:
    """
    Navigation and site settings, read publicly and written with CAS commits.

    Holds only immutable wiring (client, coordinates, policy, schemas) and
    can be shared across threads and requests. The one mutable field below it
    is the client's last-seen rate limit, a best-effort diagnostic that no
    read or commit decision depends on.
    """

    def __init__(
        self,
        client: ContentsClient,
        coordinates: RepositoryCoordinates,
        navigation_path: str,
        site_path: str,
        policy: Optional[RetryPolicy] = None,
        schemas: Optional[SchemaRegistry] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.client = client
        self.coordinates = coordinates
        self.navigation_path = navigation_path
        self.site_path = site_path
        self.schemas = schemas if schemas is not None else default_registry()
        self.reader = PublicReader(client, coordinates, self.schemas)
        self.committer = Committer(client, coordinates, policy, self.schemas, sleep=sleep)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep
    ) -> "ContentStore":
        """
        Wire a store from process configuration.

        Raises:
            ConfigurationError: If repository owner or name is missing
        """
        coordinates = RepositoryCoordinates.from_config(config)
        client = ContentsClient.from_config(config.repository, session=session)
        logger.debug(f"Content store bound to {coordinates}")
        return cls(
            client,
            coordinates,
            navigation_path=config.content.navigation_path,
            site_path=config.content.site_path,
            policy=RetryPolicy.from_config(config.commit),
            sleep=sleep
        )

    def authenticated_reader(self, credential: Credential) -> AuthenticatedReader:
        return AuthenticatedReader(self.client, self.coordinates, credential, self.schemas)

    def fetch(self, path: str, credential: Optional[Credential] = None, raw: bool = False) -> ReadResult:
        reader = self.reader if credential is None else self.authenticated_reader(credential)
        return reader.fetch(path, raw=raw)

    def get_navigation(self, credential: Optional[Credential] = None) -> NavigationData:
        return NavigationData.from_dict(self.fetch(self.navigation_path, credential).json())

    def get_site_config(self, credential: Optional[Credential] = None) -> SiteConfig:
        return SiteConfig.from_dict(self.fetch(self.site_path, credential).json())

    def get_navigation_stats(self) -> NavigationStats:
        stats = navigation_stats(self.get_navigation())
        logger.debug(f"Navigation stats: {stats.to_dict()}")
        return stats

    def save_navigation(
        self,
        data: NavigationData,
        credential: Credential,
        message: str = "Update navigation data",
        expected_revision_token: Optional[str] = None
    ) -> CommitResult:
        return self._save_json(self.navigation_path, data.to_dict(), credential, message, expected_revision_token)

    def save_site_config(
        self,
        config: SiteConfig,
        credential: Credential,
        message: str = "Update site configuration",
        expected_revision_token: Optional[str] = None
    ) -> CommitResult:
        return self._save_json(self.site_path, config.to_dict(), credential, message, expected_revision_token)

    def _save_json(self, path, data, credential, message, expected_revision_token) -> CommitResult:
        request = CommitRequest.from_json(path, data, message, expected_revision_token)
        return self.committer.commit_request(request, credential)

    def close(self) -> None:
        self.client.close()
