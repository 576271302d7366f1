"""Wrap PyGithub objects in the protocols GitHubClient works against.

Only the calls stackbuddy makes are exposed: finding open PRs by head branch,
reading a PR body and replacing it.
"""

from typing import List, Optional
import logging

from github import Github
from github.GithubObject import NotSet
from github.PullRequest import PullRequest
from github.Repository import Repository

from . import (
    GitHubPullRequestProtocol,
    GitHubRefProtocol,
    GitHubRepoProtocol,
    PyGithubProtocol,
)

logger = logging.getLogger(__name__)


class PyGithubPullRequestAdapter(GitHubPullRequestProtocol):
    """A PyGithub pull request, seen as number, head branch and body."""

    def __init__(self, pr: PullRequest) -> None:
        self._pr = pr

    @property
    def number(self) -> int:
        return self._pr.number

    @property
    def body(self) -> Optional[str]:
        return self._pr.body

    @property
    def head(self) -> GitHubRefProtocol:
        return self._pr.head

    def edit(self, body: Optional[str] = None) -> None:
        # PyGithub leaves NotSet fields out of the PATCH payload
        self._pr.edit(body=NotSet if body is None else body)


class PyGithubRepoAdapter(GitHubRepoProtocol):
    """A PyGithub repository, limited to pull request queries."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def get_pull(self, number: int) -> GitHubPullRequestProtocol:
        return PyGithubPullRequestAdapter(self._repo.get_pull(number))

    def get_pulls(self, state: str = "open", head: str = "") -> List[GitHubPullRequestProtocol]:
        """Get pull requests, ``head`` being an ``owner:branch`` filter or empty for all."""
        pulls = self._repo.get_pulls(state=state, head=head or NotSet)
        # get_pulls pages lazily; the filter leaves at most a handful per branch
        result: List[GitHubPullRequestProtocol] = [PyGithubPullRequestAdapter(pr) for pr in pulls]
        logger.debug(f"get_pulls(state={state}, head={head or '*'}) -> {[pr.number for pr in result]}")
        return result


class PyGithubAdapter(PyGithubProtocol):
    """The PyGithub entry point, handing out wrapped repositories."""

    def __init__(self, github: Github) -> None:
        self._github = github

    def get_repo(self, full_name_or_id: str) -> GitHubRepoProtocol:
        logger.debug(f"Opening GitHub repository {full_name_or_id}")
        return PyGithubRepoAdapter(self._github.get_repo(full_name_or_id))
