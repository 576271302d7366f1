"""Common types used across the codebase."""

from dataclasses import dataclass, field
from typing import Callable, List, NewType, Optional, Protocol

# Branch names are opaque; equality is exact string equality
BranchName = NewType('BranchName', str)
# PR number on the hosting service
ReviewRef = NewType('ReviewRef', int)

ReviewLookup = Callable[[BranchName], Optional[ReviewRef]]


@dataclass
class DecoratedCommit:
    """One entry of a branch's decorated first-parent history."""
    position: int
    commit_hash: str
    labels: List[str] = field(default_factory=list)


class GitInterface(Protocol):
    """Protocol for what the history adapter expects from a git runner."""

    def run_cmd(self, command: str) -> str:
        ...

    def must_git(self, command: str) -> str:
        ...


class StackBuddyError(Exception):
    """Base class for all errors raised by stackbuddy."""


class HistoryQueryError(StackBuddyError):
    """A git query failed or returned output that could not be decoded."""


class DetachedHeadError(HistoryQueryError):
    """HEAD does not point at a branch."""

    def __init__(self, ref: str = "HEAD"):
        super().__init__(
            f"HEAD is detached ({ref}); check out a branch or pass a branch name explicitly"
        )
        self.ref = ref


class TrunkNotFoundError(StackBuddyError):
    """Neither `main` nor `master` exists as a local branch."""

    def __init__(self) -> None:
        super().__init__(
            "Main branch not found. Is it named something other than `main` or `master`?"
        )


class StackResolutionError(StackBuddyError):
    """Walking the stack failed part way through."""


class ReviewLookupError(StackBuddyError):
    """The hosting service failed for a reason other than "no PR found"."""


class BranchNotInStackError(StackBuddyError):
    """The focal branch of a note is not part of the stack it is rendered from."""

    def __init__(self, branch: str, stack: List[BranchName]):
        super().__init__(f"branch '{branch}' is not in the stack ({', '.join(stack) or 'empty'})")
        self.branch = branch
        self.stack = stack


class NoteUpdateError(StackBuddyError):
    """Writing a PR body back to the hosting service failed."""
