"""Stack topology: parent resolution and stack walking.

A branch's parent is inferred from commit decorations rather than stored
anywhere: the closest decorated first-parent ancestor that carries a local
branch label is taken to be the branch it was built on. The inference lives
behind ``ParentResolver`` so the walker does not depend on how parents are
found.
"""

import logging
from typing import Iterable, List, Optional, Protocol, Set

from ..git import DEFAULT_HISTORY_WINDOW, LOCAL_BRANCH_PREFIX, GitHistory
from ..typing import BranchName, DecoratedCommit, HistoryQueryError, StackResolutionError

logger = logging.getLogger(__name__)

HEAD_POINTER_PREFIX = "HEAD -> "
TAG_PREFIX = "tag: "
DEFAULT_MAX_STACK_DEPTH = 64


class ParentResolver(Protocol):
    """Finds the branch another branch is built on."""

    def parent(self, branch: BranchName) -> Optional[BranchName]:
        ...


def local_branch_label(label: str) -> Optional[BranchName]:
    """Get the local branch a decoration label names, if any.

    Tags, remote-tracking refs, a detached ``HEAD`` and other refs
    (stash, grafted, notes) are not branches a stack can be built on.
    """
    label = label.strip()
    if label.startswith(HEAD_POINTER_PREFIX):
        label = label[len(HEAD_POINTER_PREFIX):]
    if label.startswith(TAG_PREFIX) or not label.startswith(LOCAL_BRANCH_PREFIX):
        return None
    name = label[len(LOCAL_BRANCH_PREFIX):]
    return BranchName(name) if name else None


def first_local_branch(commits: Iterable[DecoratedCommit]) -> Optional[BranchName]:
    """Get the first local branch label in history order, then label order."""
    for commit in commits:
        for label in commit.labels:
            branch = local_branch_label(label)
            if branch is not None:
                return branch
    return None


class DecorationParentResolver:
    """Resolves parents from the decorated first-parent history window."""

    def __init__(self, history: GitHistory, window: int = DEFAULT_HISTORY_WINDOW):
        self.history = history
        self.window = window

    def parent(self, branch: BranchName) -> Optional[BranchName]:
        commits = self.history.decorated_history(branch, self.window)
        parent = first_local_branch(commits)
        if parent is None:
            logger.debug(f"No parent found for {branch} within {self.window} decorated commits")
        else:
            logger.debug(f"Parent of {branch} is {parent}")
        return parent


class StackWalker:
    """Builds the chain of branches from a branch down to the trunk."""

    def __init__(self, history: GitHistory, resolver: ParentResolver,
                 max_depth: int = DEFAULT_MAX_STACK_DEPTH):
        self.history = history
        self.resolver = resolver
        self.max_depth = max_depth

    def stack_from(self, branch: BranchName) -> List[BranchName]:
        """Get the stack ending in ``branch``, head first, trunk excluded.

        The trunk's own stack is empty.
        """
        trunk = self.history.trunk_branch()
        if branch == trunk:
            return []

        stack: List[BranchName] = [branch]
        seen: Set[BranchName] = {branch}
        current = branch
        while True:
            try:
                parent = self.resolver.parent(current)
            except HistoryQueryError as e:
                raise StackResolutionError(f"Failed to resolve the parent of {current}: {e}") from e

            if parent is None or parent == trunk or parent == current:
                break
            if parent in seen:
                logger.warning(f"Branch {parent} appears twice in the stack of {branch}, stopping")
                break
            if len(stack) >= self.max_depth:
                raise StackResolutionError(
                    f"Stack of {branch} is deeper than {self.max_depth} branches; history looks malformed"
                )
            stack.append(parent)
            seen.add(parent)
            current = parent

        logger.info(f"Stack of {branch}: {' <- '.join(reversed(stack))}")
        return stack

    def current_stack(self) -> List[BranchName]:
        return self.stack_from(self.history.current_branch())
