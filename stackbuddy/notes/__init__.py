"""PR adjacency notes: rendering and merging into PR bodies."""

import enum
import logging
from typing import List, Optional, Sequence, Tuple

from ..typing import BranchName, BranchNotInStackError, ReviewLookup, ReviewRef

logger = logging.getLogger(__name__)

# Re-running against a body written by an earlier version must find these,
# so they must never change.
NOTE_BEGIN = "<!-- stackbuddy:note:begin -->"
NOTE_END = "<!-- stackbuddy:note:end -->"

CALLOUT = "> [!Note]"
ONLY_PR_LINE = "> This is currently the only PR in the stack"
TABLE_HEADER = "| Previous PR | Next PR |"
TABLE_RULE = "|-------------|---------|"
MISSING_REVIEW = "None"


class NoteFormat(str, enum.Enum):
    """How a note describes the neighbors of a PR."""

    # The previous and next PRs, like a doubly linked list
    DOUBLE = "double"
    # The entire stack of PRs in a list
    LIST = "list"
    # The previous and next PRs in two columns of a table
    TABLE = "table"


def neighbors(stack: Sequence[BranchName], branch: BranchName) -> Tuple[Optional[BranchName], Optional[BranchName]]:
    """Get the (previous, next) branches of ``branch`` in a head-first stack.

    Previous is the branch this one is built on; the bottom branch has none,
    since its base is the trunk. Next is the branch built on this one.
    """
    if branch not in stack:
        raise BranchNotInStackError(branch, list(stack))
    index = stack.index(branch)
    previous = stack[index + 1] if index + 1 < len(stack) else None
    next_ = stack[index - 1] if index > 0 else None
    return previous, next_


def render_double(previous: Optional[ReviewRef], next_: Optional[ReviewRef]) -> str:
    lines = [CALLOUT]
    if previous is not None:
        lines.append(f"> - Previous PR: #{previous}")
    if next_ is not None:
        lines.append(f"> - Next PR: #{next_}")
    if len(lines) == 1:
        lines.append(ONLY_PR_LINE)
    return "\n".join(lines)


def render_list(entries: Sequence[Tuple[ReviewRef, bool]]) -> str:
    """Render ``(review, is_focal)`` pairs, already in base-to-head order."""
    lines = [CALLOUT, "> PRs in the stack:"]
    for review, is_focal in entries:
        lines.append(f"> - #{review}" + (" (this)" if is_focal else ""))
    return "\n".join(lines)


def render_table(previous: Optional[ReviewRef], next_: Optional[ReviewRef]) -> str:
    def cell(review: Optional[ReviewRef]) -> str:
        return f"#{review}" if review is not None else MISSING_REVIEW

    return "\n".join([TABLE_HEADER, TABLE_RULE, f"| {cell(previous)} | {cell(next_)} |"])


def compose_note(stack: Sequence[BranchName], branch: BranchName, review_for: ReviewLookup,
                 note_format: NoteFormat = NoteFormat.DOUBLE) -> str:
    """Render the note for ``branch``.

    Args:
        stack: The stack, head first, trunk excluded
        branch: The branch whose PR the note is for
        review_for: Looks up the PR of a branch; only called for the
            branches the format needs
        note_format: Which rendering to produce

    Raises:
        BranchNotInStackError: If ``branch`` is not in ``stack``
    """
    note_format = NoteFormat(note_format)
    previous_branch, next_branch = neighbors(stack, branch)

    if note_format is NoteFormat.LIST:
        entries: List[Tuple[ReviewRef, bool]] = []
        for b in reversed(stack):
            review = review_for(b)
            if review is not None:
                entries.append((review, b == branch))
        return render_list(entries)

    previous = review_for(previous_branch) if previous_branch is not None else None
    next_ = review_for(next_branch) if next_branch is not None else None
    logger.debug(f"Neighbors of {branch}: previous={previous_branch} (#{previous}), next={next_branch} (#{next_})")
    if note_format is NoteFormat.TABLE:
        return render_table(previous, next_)
    return render_double(previous, next_)


def note_block(note: str) -> str:
    return f"{NOTE_BEGIN}\n{note}\n{NOTE_END}"


def find_note(body: str) -> Optional[Tuple[int, int]]:
    """Get the span of the delimited note in ``body``, markers included.

    Only the first begin marker and the first end marker after it count. A
    body with a missing marker, or with the end marker only before the begin
    marker, has no note.
    """
    start = body.find(NOTE_BEGIN)
    if start == -1:
        return None
    end = body.find(NOTE_END, start + len(NOTE_BEGIN))
    if end == -1:
        return None
    return start, end + len(NOTE_END)


def merge_note(body: Optional[str], note: str) -> str:
    """Insert ``note`` into ``body``, replacing the previous note if present.

    Text outside the delimited note is left untouched. Without a recognised
    note, the new note is put in front of the whole body.
    """
    body = body or ""
    block = note_block(note)
    span = find_note(body)
    if span is None:
        return f"{block}\n\n{body}" if body else block
    start, end = span
    return body[:start] + block + body[end:]
