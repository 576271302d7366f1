"""GitHub interfaces and implementation."""

import os
import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

import yaml
from github import GithubException

from ..config.models import StackBuddyConfig
from ..typing import BranchName, NoteUpdateError, ReviewLookupError, ReviewRef

# Get module logger
logger = logging.getLogger(__name__)

# Define protocols for GitHub objects
@runtime_checkable
class GitHubRefProtocol(Protocol):
    """Protocol for GitHub ref objects (base/head references)."""
    @property
    def ref(self) -> str:
        """Get the ref name (e.g., 'main', 'feature-branch')."""
        ...

@runtime_checkable
class GitHubPullRequestProtocol(Protocol):
    """Protocol for GitHub pull request objects (real or fake)."""
    @property
    def number(self) -> int:
        """Get the PR number."""
        ...

    @property
    def body(self) -> Optional[str]:
        """Get the PR body."""
        ...

    @property
    def head(self) -> GitHubRefProtocol:
        """Get the head reference."""
        ...

    def edit(self, body: Optional[str] = None) -> None:
        """Edit the pull request."""
        ...

@runtime_checkable
class GitHubRepoProtocol(Protocol):
    """Protocol for GitHub repository objects (real or fake)."""
    def get_pull(self, number: int) -> GitHubPullRequestProtocol:
        """Get a pull request by number."""
        ...

    def get_pulls(self, state: str = "open", head: str = "") -> List[GitHubPullRequestProtocol]:
        """Get pull requests with optional filtering."""
        ...

@runtime_checkable
class PyGithubProtocol(Protocol):
    """Protocol for the main PyGithub object (real or fake)."""
    def get_repo(self, full_name_or_id: str) -> GitHubRepoProtocol:
        """Get a repository by full name."""
        ...

def find_github_token(host: str = "github.com") -> Optional[str]:
    """Find GitHub token from env vars, gh CLI config, or `gh auth token`."""
    for var in ("GITHUB_TOKEN", "GH_TOKEN"):
        token = os.environ.get(var)
        if token:
            return token

    # Then try gh CLI config at ~/.config/gh/hosts.yml
    gh_config_path = Path.home() / ".config" / "gh" / "hosts.yml"
    try:
        if gh_config_path.exists():
            with open(gh_config_path, "r") as f:
                gh_config = yaml.safe_load(f)
            if isinstance(gh_config, dict) and isinstance(gh_config.get(host), dict):
                host_config: Dict[str, object] = gh_config[host]
                token = host_config.get("oauth_token")
                if isinstance(token, str) and token:
                    return token
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error reading gh CLI config: {e}")

    # Newer gh versions keep the token in the system keyring
    try:
        p = subprocess.run(
            ["gh", "auth", "token", "--hostname", host],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        logger.debug("gh CLI not available")
        return None
    token = p.stdout.strip()
    return token if p.returncode == 0 and token else None

def connect_github(config: StackBuddyConfig) -> PyGithubProtocol:
    """Create a real PyGithub client wrapped in our adapter."""
    from github import Auth, Github
    from .adapters import PyGithubAdapter

    host = config.repo.github_host
    token = find_github_token(host)
    if not token:
        raise ReviewLookupError(
            "No GitHub token found. Try one of:\n"
            "1. Set GITHUB_TOKEN or GH_TOKEN env var\n"
            "2. Log in with 'gh auth login'"
        )
    if host == "github.com":
        real_github = Github(auth=Auth.Token(token))
    else:
        real_github = Github(auth=Auth.Token(token), base_url=f"https://{host}/api/v3")
    return PyGithubAdapter(real_github)

class GitHubClient:
    """Review lookups and PR body updates for branches of one repository."""
    def __init__(self, config: StackBuddyConfig, github_client: Optional[PyGithubProtocol] = None):
        """Initialize with config and GitHub client implementation.

        Args:
            config: The configuration
            github_client: GitHub client implementation (real or fake).
                           If None, a real client is created on first use.
        """
        self.config = config
        self._client = github_client
        self._repo: Optional[GitHubRepoProtocol] = None

    @property
    def client(self) -> PyGithubProtocol:
        if self._client is None:
            self._client = connect_github(self.config)
            logger.info("Using real GitHub client")
        return self._client

    @property
    def repo(self) -> GitHubRepoProtocol:
        """Get GitHub repository."""
        if self._repo is None:
            owner = self.config.repo.github_repo_owner
            name = self.config.repo.github_repo_name
            if not owner or not name:
                raise ReviewLookupError(
                    "GitHub repository unknown; set repo.github_repo_owner and "
                    "repo.github_repo_name in .stackbuddy.yaml"
                )
            try:
                self._repo = self.client.get_repo(f"{owner}/{name}")
            except (GithubException, OSError) as e:
                raise ReviewLookupError(f"Failed to open GitHub repository {owner}/{name}: {e}") from e
        return self._repo

    @repo.setter
    def repo(self, value: GitHubRepoProtocol) -> None:
        """Set the GitHub repository."""
        self._repo = value

    def review_for(self, branch: BranchName) -> Optional[ReviewRef]:
        """Get the number of the open PR whose head is ``branch``, if any."""
        owner = self.config.repo.github_repo_owner
        head_filter = f"{owner}:{branch}"
        try:
            pulls = list(self.repo.get_pulls(state="open", head=head_filter))
        except (GithubException, OSError) as e:
            raise ReviewLookupError(f"Failed to look up PR for branch {branch}: {e}") from e

        logger.debug(f"GitHub API returned {len(pulls)} PRs for head filter {head_filter}")
        for pr in pulls:
            if pr.head.ref == branch:
                logger.debug(f"Found PR #{pr.number} for branch {branch}")
                return ReviewRef(pr.number)
        logger.debug(f"No PR found for branch {branch}")
        return None

    def get_body(self, review: ReviewRef) -> str:
        try:
            return self.repo.get_pull(review).body or ""
        except (GithubException, OSError) as e:
            raise ReviewLookupError(f"Failed to fetch body of PR #{review}: {e}") from e

    def set_body(self, review: ReviewRef, body: str) -> None:
        """Replace the body of a PR."""
        logger.info(f"Updating body of PR #{review}")
        try:
            self.repo.get_pull(review).edit(body=body)
        except (GithubException, OSError) as e:
            raise NoteUpdateError(f"Failed to update body of PR #{review}: {e}") from e
