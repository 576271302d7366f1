"""Tests for rendering notes and merging them into PR bodies."""

from typing import Dict, List, Optional

import pytest

from stackbuddy.notes import (
    NOTE_BEGIN, NOTE_END, NoteFormat, compose_note, find_note, merge_note, neighbors, note_block,
)
from stackbuddy.typing import BranchName, BranchNotInStackError, ReviewRef

STACK = [BranchName("feature-c"), BranchName("feature-b"), BranchName("feature-a")]


class RecordingLookup:
    """Review lookup that remembers which branches were asked for."""

    def __init__(self, reviews: Dict[str, int]):
        self.reviews = reviews
        self.calls: List[str] = []

    def __call__(self, branch: BranchName) -> Optional[ReviewRef]:
        self.calls.append(branch)
        review = self.reviews.get(branch)
        return ReviewRef(review) if review is not None else None


@pytest.fixture
def lookup() -> RecordingLookup:
    # feature-c has no PR yet
    return RecordingLookup({"feature-b": 41, "feature-a": 40})


class TestNeighbors:
    """Tests for neighbors."""

    def test_middle(self) -> None:
        assert neighbors(STACK, BranchName("feature-b")) == ("feature-a", "feature-c")

    def test_head_has_no_next(self) -> None:
        assert neighbors(STACK, BranchName("feature-c")) == ("feature-b", None)

    def test_bottom_has_no_previous(self) -> None:
        assert neighbors(STACK, BranchName("feature-a")) == (None, "feature-b")

    def test_not_in_stack(self) -> None:
        with pytest.raises(BranchNotInStackError):
            neighbors(STACK, BranchName("main"))


class TestComposeDouble:
    """Tests for the double format."""

    def test_head_of_stack(self, lookup: RecordingLookup) -> None:
        note = compose_note(STACK, BranchName("feature-c"), lookup, NoteFormat.DOUBLE)
        assert note == "> [!Note]\n> - Previous PR: #41"
        assert "Next PR" not in note

    def test_both_neighbors(self) -> None:
        lookup = RecordingLookup({"feature-c": 42, "feature-b": 41, "feature-a": 40})
        note = compose_note(STACK, BranchName("feature-b"), lookup, NoteFormat.DOUBLE)
        assert note == "> [!Note]\n> - Previous PR: #40\n> - Next PR: #42"

    def test_only_neighbors_are_looked_up(self, lookup: RecordingLookup) -> None:
        compose_note(STACK, BranchName("feature-c"), lookup, NoteFormat.DOUBLE)
        assert lookup.calls == ["feature-b"]

    def test_no_neighbors_falls_back_to_sentence(self) -> None:
        note = compose_note([BranchName("solo")], BranchName("solo"), RecordingLookup({"solo": 7}))
        assert note == "> [!Note]\n> This is currently the only PR in the stack"

    def test_unresolved_neighbors_fall_back_to_sentence(self) -> None:
        note = compose_note(STACK, BranchName("feature-b"), RecordingLookup({}), NoteFormat.DOUBLE)
        assert note.endswith("This is currently the only PR in the stack")
        assert "- " not in note

    def test_format_by_name(self, lookup: RecordingLookup) -> None:
        note = compose_note(STACK, BranchName("feature-c"), lookup, "double")  # type: ignore[arg-type]
        assert note == "> [!Note]\n> - Previous PR: #41"


class TestComposeList:
    """Tests for the list format."""

    def test_base_to_head_with_focal_marked(self, lookup: RecordingLookup) -> None:
        note = compose_note(STACK, BranchName("feature-b"), lookup, NoteFormat.LIST)
        assert note == "> [!Note]\n> PRs in the stack:\n> - #40\n> - #41 (this)"

    def test_every_branch_is_looked_up(self, lookup: RecordingLookup) -> None:
        compose_note(STACK, BranchName("feature-b"), lookup, NoteFormat.LIST)
        assert lookup.calls == ["feature-a", "feature-b", "feature-c"]

    def test_focal_without_review_is_not_listed(self, lookup: RecordingLookup) -> None:
        note = compose_note(STACK, BranchName("feature-c"), lookup, NoteFormat.LIST)
        assert "(this)" not in note
        assert note.splitlines()[-1] == "> - #41"


class TestComposeTable:
    """Tests for the table format."""

    def test_previous_only(self, lookup: RecordingLookup) -> None:
        note = compose_note(STACK, BranchName("feature-c"), lookup, NoteFormat.TABLE)
        assert note == "| Previous PR | Next PR |\n|-------------|---------|\n| #41 | None |"

    def test_both_missing(self) -> None:
        note = compose_note(STACK, BranchName("feature-b"), RecordingLookup({}), NoteFormat.TABLE)
        assert note.splitlines()[-1] == "| None | None |"


def test_compose_for_branch_outside_stack(lookup: RecordingLookup) -> None:
    with pytest.raises(BranchNotInStackError) as exc_info:
        compose_note(STACK, BranchName("hotfix"), lookup)
    assert "hotfix" in str(exc_info.value)
    assert lookup.calls == []


class TestMergeNote:
    """Tests for merge_note."""

    NOTE_1 = "> [!Note]\n> - Previous PR: #41"
    NOTE_2 = "| Previous PR | Next PR |\n|-------------|---------|\n| #41 | #43 |"

    @pytest.mark.parametrize("body", [
        "",
        "Fixes the widget.",
        "Line one\n\nLine two\n",
        f"{NOTE_BEGIN}\nold note\n{NOTE_END}",
        f"Intro\n{NOTE_BEGIN}\nold note\n{NOTE_END}\nOutro",
        f"Dangling {NOTE_BEGIN} marker",
        f"Dangling {NOTE_END} marker",
        f"{NOTE_END} reversed {NOTE_BEGIN}",
    ])
    def test_idempotent(self, body: str) -> None:
        once = merge_note(body, self.NOTE_2)
        assert merge_note(merge_note(body, self.NOTE_1), self.NOTE_2) == once
        assert merge_note(once, self.NOTE_2) == once

    def test_prepends_to_body_without_note(self) -> None:
        body = "Fixes the widget.\n\n- [x] tests"
        merged = merge_note(body, self.NOTE_1)
        assert merged.endswith(body)
        assert merged.startswith(note_block(self.NOTE_1))

    def test_empty_body(self) -> None:
        assert merge_note("", self.NOTE_1) == note_block(self.NOTE_1)
        assert merge_note(None, self.NOTE_1) == note_block(self.NOTE_1)

    def test_replaces_existing_note_in_place(self) -> None:
        body = f"Intro text\n{NOTE_BEGIN}\nstale\n{NOTE_END}\nOutro text"
        merged = merge_note(body, self.NOTE_2)
        assert merged == f"Intro text\n{note_block(self.NOTE_2)}\nOutro text"
        assert "stale" not in merged

    def test_reversed_markers_are_not_a_note(self) -> None:
        body = f"{NOTE_END}\nkeep me\n{NOTE_BEGIN}"
        assert find_note(body) is None
        merged = merge_note(body, self.NOTE_1)
        assert merged == f"{note_block(self.NOTE_1)}\n\n{body}"

    def test_single_marker_is_not_a_note(self) -> None:
        body = f"text {NOTE_BEGIN} more"
        assert find_note(body) is None
        assert merge_note(body, self.NOTE_1).endswith(body)

    def test_find_note_span(self) -> None:
        body = f"ab{NOTE_BEGIN}x{NOTE_END}cd"
        start, end = find_note(body)  # type: ignore[misc]
        assert body[start:end] == f"{NOTE_BEGIN}x{NOTE_END}"

    def test_only_first_note_is_replaced(self) -> None:
        first = f"{NOTE_BEGIN}\none\n{NOTE_END}"
        second = f"{NOTE_BEGIN}\ntwo\n{NOTE_END}"
        merged = merge_note(f"{first}\n{second}", self.NOTE_1)
        assert merged == f"{note_block(self.NOTE_1)}\n{second}"
