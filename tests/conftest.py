from typing import List

import pytest

from navstore.config import reset_config_manager
from navstore.error_handling import RetryPolicy
from navstore.models import RepositoryCoordinates, Credential
from navstore.repository import ContentsClient, PublicReader, Committer
from navstore.store import ContentStore

from fakes import FakeContentsSession, WRITE_TOKEN


class SleepRecorder:
    """Replaces time.sleep; records requested delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(autouse=True)
def _fresh_config_manager():
    reset_config_manager()
    yield
    reset_config_manager()


@pytest.fixture
def remote() -> FakeContentsSession:
    return FakeContentsSession(owner="acme", repo="portal", write_tokens=[WRITE_TOKEN])


@pytest.fixture
def coordinates() -> RepositoryCoordinates:
    return RepositoryCoordinates(owner="acme", repo="portal", branch="main")


@pytest.fixture
def client(remote) -> ContentsClient:
    return ContentsClient(session=remote)


@pytest.fixture
def credential() -> Credential:
    return Credential(WRITE_TOKEN)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def reader(client, coordinates) -> PublicReader:
    return PublicReader(client, coordinates)


@pytest.fixture
def committer(client, coordinates, sleeper) -> Committer:
    return Committer(client, coordinates, RetryPolicy(max_attempts=3, base_delay=1.0), sleep=sleeper)


@pytest.fixture
def store(client, coordinates, sleeper) -> ContentStore:
    return ContentStore(
        client,
        coordinates,
        navigation_path="navsphere/content/navigation.json",
        site_path="navsphere/content/site.json",
        sleep=sleeper
    )
