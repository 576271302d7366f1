"""Git interfaces and implementation."""

import os
import shlex
import logging
from typing import List, Optional
import git
from git.exc import GitCommandError, GitCommandNotFound, InvalidGitRepositoryError, NoSuchPathError
from ..typing import (
    BranchName, DecoratedCommit, DetachedHeadError, GitInterface, HistoryQueryError, TrunkNotFoundError,
)
from ..config.models import StackBuddyConfig

# Get module logger
logger = logging.getLogger(__name__)

# Checked in this order, so `main` wins when both exist
TRUNK_NAMES = ("main", "master")
DEFAULT_HISTORY_WINDOW = 32
LOCAL_BRANCH_PREFIX = "refs/heads/"

def parse_decorated_log(log_output: str) -> List[DecoratedCommit]:
    """Parse `git log --format=%H%x09%D` output into decorated commits.

    Each line is a commit hash, a tab, then the comma separated decorations.
    Lines without decorations are kept with an empty label list.
    """
    commits: List[DecoratedCommit] = []
    for line in log_output.splitlines():
        line = line.strip()
        if not line:
            continue
        commit_hash, _, decorations = line.partition("\t")
        labels = [label.strip() for label in decorations.split(", ") if label.strip()]
        commits.append(DecoratedCommit(position=len(commits), commit_hash=commit_hash.strip(), labels=labels))
    return commits

class RealGit:
    """Real Git implementation.

    Every command runs against ``directory``; nothing else depends on the
    process working directory. The repository is opened on the first command
    and reused until ``close``.
    """
    def __init__(self, config: StackBuddyConfig, directory: Optional[str] = None):
        """Initialize with config and the repository directory."""
        self.config: StackBuddyConfig = config
        self.directory: str = directory or os.getcwd()
        self._repo: Optional[git.Repo] = None

    @property
    def repo(self) -> git.Repo:
        if self._repo is None:
            self._repo = git.Repo(self.directory, search_parent_directories=True)
        return self._repo

    def close(self) -> None:
        """Release the repository and its git processes."""
        if self._repo is not None:
            self._repo.close()
            self._repo = None

    def run_cmd(self, command: str) -> str:
        """Run git command."""
        cmd_str = command.strip()

        if self.config.user.log_git_commands:
            logger.info(f"> git {cmd_str}")
        else:
            logger.debug(f"> git {cmd_str}")
        try:
            cmd_parts = shlex.split(cmd_str)
            git_command = cmd_parts[0]
            git_args = cmd_parts[1:]
            method = getattr(self.repo.git, git_command.replace('-', '_'))
            result = method(*git_args)
            return result if isinstance(result, str) else str(result)
        except GitCommandError as e:
            raise HistoryQueryError(f"Git command failed: {e}") from e
        except GitCommandNotFound as e:
            raise HistoryQueryError(f"git executable not found: {e}") from e
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise HistoryQueryError(f"Not in a git repository: {self.directory}") from e

    def must_git(self, command: str) -> str:
        """Run git command, failing on error."""
        return self.run_cmd(command)

class GitHistory:
    """Read-only queries against the repository history."""

    def __init__(self, git_cmd: GitInterface):
        self.git_cmd = git_cmd

    def current_branch(self) -> BranchName:
        """Get the checked-out branch.

        Raises DetachedHeadError when HEAD does not point at a branch.
        """
        output = self.git_cmd.must_git("rev-parse --abbrev-ref HEAD").strip()
        if output == "HEAD":
            sha = self.git_cmd.must_git("rev-parse --short HEAD").strip()
            raise DetachedHeadError(sha or "HEAD")
        if not output or any(c.isspace() for c in output):
            raise HistoryQueryError(f"Unexpected output for current branch: {output!r}")
        return BranchName(output)

    def local_branches(self) -> List[BranchName]:
        output = self.git_cmd.must_git(f"for-each-ref --format=%(refname) {LOCAL_BRANCH_PREFIX}")
        branches: List[BranchName] = []
        for line in output.splitlines():
            line = line.strip()
            if line.startswith(LOCAL_BRANCH_PREFIX):
                branches.append(BranchName(line[len(LOCAL_BRANCH_PREFIX):]))
        return branches

    def trunk_branch(self) -> BranchName:
        """Get the trunk branch, `main` taking priority over `master`."""
        branches = set(self.local_branches())
        for name in TRUNK_NAMES:
            if name in branches:
                logger.debug(f"Trunk branch is {name}")
                return BranchName(name)
        raise TrunkNotFoundError()

    def decorated_history(self, branch: str, window: int = DEFAULT_HISTORY_WINDOW) -> List[DecoratedCommit]:
        """Get the decorated first-parent ancestry of a branch.

        Only decorated commits are listed, at most ``window`` of them, and the
        branch tip itself is skipped.
        """
        output = self.git_cmd.must_git(
            "log --first-parent --simplify-by-decoration --decorate=full "
            f"--format=%H%x09%D -n {window} --skip 1 {shlex.quote(branch)} --"
        )
        commits = parse_decorated_log(output)
        logger.debug(f"decorated_history({branch}): {len(commits)} entries")
        return commits
