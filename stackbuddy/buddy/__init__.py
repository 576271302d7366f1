"""Top-level stackbuddy operations."""

import sys
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..config.models import StackBuddyConfig
from ..git import GitHistory
from ..github import GitHubClient
from ..notes import NoteFormat, compose_note, merge_note
from ..stack import DecorationParentResolver, ParentResolver, StackWalker
from ..typing import (
    BranchName, DetachedHeadError, GitInterface, NoteUpdateError, ReviewLookupError, ReviewRef,
)

logger = logging.getLogger(__name__)


@dataclass
class UpdateReport:
    """Outcome of synchronizing notes across a stack."""
    updated: List[Tuple[BranchName, ReviewRef]] = field(default_factory=list)
    unchanged: List[Tuple[BranchName, ReviewRef]] = field(default_factory=list)
    skipped: List[BranchName] = field(default_factory=list)
    failed: List[Tuple[BranchName, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class ReviewCache:
    """Remembers PR lookups for the duration of one operation."""

    def __init__(self, github: GitHubClient):
        self.github = github
        self._reviews: Dict[BranchName, Optional[ReviewRef]] = {}

    def __call__(self, branch: BranchName) -> Optional[ReviewRef]:
        if branch not in self._reviews:
            self._reviews[branch] = self.github.review_for(branch)
        return self._reviews[branch]


class StackBuddy:
    """Stack navigation and PR note synchronization for one repository."""

    def __init__(self, config: StackBuddyConfig, git_cmd: GitInterface, github: GitHubClient,
                 resolver: Optional[ParentResolver] = None):
        """Initialize with config, git runner and GitHub client.

        Args:
            config: The configuration
            git_cmd: Git runner bound to the repository
            github: GitHub client for the repository
            resolver: How parents are found; defaults to decoration based resolution
        """
        self.config = config
        self.git_cmd = git_cmd
        self.github = github
        self.history = GitHistory(git_cmd)
        self.resolver: ParentResolver = resolver or DecorationParentResolver(
            self.history, config.tool.history_window)
        self.walker = StackWalker(self.history, self.resolver, config.tool.max_stack_depth)
        self.output = sys.stdout

    def _branch_or_current(self, branch: Optional[str]) -> BranchName:
        return BranchName(branch) if branch else self.history.current_branch()

    def parent(self, branch: Optional[str] = None) -> Optional[BranchName]:
        return self.resolver.parent(self._branch_or_current(branch))

    def stack(self, branch: Optional[str] = None) -> List[BranchName]:
        return self.walker.stack_from(self._branch_or_current(branch))

    def stack_reviews(self, branch: Optional[str] = None) -> List[ReviewRef]:
        """Get the PR numbers of the stack, head first, skipping branches without one."""
        reviews = ReviewCache(self.github)
        result: List[ReviewRef] = []
        for b in self.stack(branch):
            review = reviews(b)
            if review is not None:
                result.append(review)
        return result

    def note(self, branch: Optional[str] = None, note_format: NoteFormat = NoteFormat.DOUBLE) -> str:
        """Render the note for ``branch`` within the current stack.

        On a detached HEAD there is no current stack, so an explicit branch
        is rendered within its own stack instead.
        """
        try:
            stack = self.walker.current_stack()
        except DetachedHeadError:
            if not branch:
                raise
            stack = self.walker.stack_from(BranchName(branch))
        if branch:
            focal = BranchName(branch)
        elif stack:
            # Head of the current stack is the current branch
            focal = stack[0]
        else:
            focal = self.history.current_branch()
        return compose_note(stack, focal, ReviewCache(self.github), note_format)

    def update_notes(self, branch: Optional[str] = None, note_format: NoteFormat = NoteFormat.DOUBLE,
                     dry_run: bool = False) -> UpdateReport:
        """Write the note into the body of every PR in the stack of ``branch``.

        A failure on one PR is reported and the remaining PRs are still
        processed. Failing to read the stack or to look up its PRs aborts.
        """
        stack = self.stack(branch)
        report = UpdateReport()
        if not stack:
            print("stack is empty, nothing to update", file=self.output)
            return report

        # Every note needs the neighbors' PRs, so resolve them all up front
        reviews = ReviewCache(self.github)
        for b in stack:
            reviews(b)

        for b in stack:
            review = reviews(b)
            if review is None:
                print(f"   {b}: no open PR, skipping", file=self.output)
                report.skipped.append(b)
                continue
            try:
                note = compose_note(stack, b, reviews, note_format)
                body = self.github.get_body(review)
                new_body = merge_note(body, note)
                if new_body == body:
                    print(f"   {b}: PR #{review} note is up to date", file=self.output)
                    report.unchanged.append((b, review))
                    continue
                if dry_run:
                    print(f"   {b}: PR #{review} would be updated to:", file=self.output)
                    print(new_body, file=self.output)
                    print("", file=self.output)
                else:
                    self.github.set_body(review, new_body)
                    print(f"   {b}: updated PR #{review}", file=self.output)
                report.updated.append((b, review))
            except (NoteUpdateError, ReviewLookupError) as e:
                logger.error(f"Failed to update note of {b}: {e}")
                print(f"   {b}: failed to update PR #{review}: {e}", file=self.output)
                report.failed.append((b, str(e)))

        return report
