"""Configuration for pytest."""

import pytest

from stackbuddy.config import Config
from stackbuddy.github import GitHubClient
from stackbuddy.tests.fake_github import FakeGithub, FakeRepository
from stackbuddy.tests.utils import RepoContext, create_stacked_repo

@pytest.fixture
def config() -> Config:
    return Config({
        'repo': {
            'github_repo_owner': 'acme',
            'github_repo_name': 'widgets',
        },
    })

@pytest.fixture
def fake_github() -> FakeGithub:
    github = FakeGithub()
    github.create_repo("acme/widgets")
    return github

@pytest.fixture
def fake_repo(fake_github: FakeGithub) -> FakeRepository:
    return fake_github.get_repo("acme/widgets")

@pytest.fixture
def github_client(config: Config, fake_github: FakeGithub) -> GitHubClient:
    return GitHubClient(config, github_client=fake_github)

@pytest.fixture
def stacked_repo(tmp_path) -> RepoContext:
    """main <- feature-a <- feature-b <- feature-c, on feature-c."""
    return create_stacked_repo(str(tmp_path / "repo"))
