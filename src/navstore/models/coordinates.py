"""
Repository coordinates model.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote

from ..error_handling.exceptions import ConfigurationError

if TYPE_CHECKING:
    from ..config import AppConfig


@dataclass(frozen=True)
class RepositoryCoordinates:
    """
    Identifies the remote repository and branch holding the content.

    Built once at startup and passed by reference into readers and the
    committer; never mutated.
    """

    owner: str
    repo: str
    branch: str = "main"

    def __post_init__(self):
        if not self.owner or not self.repo:
            raise ConfigurationError(
                "Repository owner and name are required",
                config_section="repository"
            )
        if not self.branch:
            raise ConfigurationError("Repository branch must not be empty", config_section="repository", config_key="branch")

    @classmethod
    def from_config(cls, config: "AppConfig") -> "RepositoryCoordinates":
        config.require_coordinates()
        return cls(
            owner=config.repository.owner,
            repo=config.repository.repo,
            branch=config.repository.branch or "main"
        )

    @property
    def full_name(self) -> str:
        """Get the full repository name (owner/repo)."""
        return f"{self.owner}/{self.repo}"

    def contents_endpoint(self, path: str) -> str:
        """API endpoint for a repository-relative content path."""
        return f"/repos/{self.owner}/{self.repo}/contents/{quote(path.strip('/'))}"

    def __str__(self) -> str:
        return f"{self.full_name}@{self.branch}"
