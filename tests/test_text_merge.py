"""
Tests for the free-text differencer.
"""

from sdkforge.regen.core.config import RegenConfig
from sdkforge.regen.differ.text import TextDifferencer, compute_hunks, line_mapping


def merge(base, ours, theirs, **config):
    return TextDifferencer(RegenConfig(**config)).merge(base, ours, theirs, "README.md")


# ── Helpers ──────────────────────────────────────────────────────────


class TestLineMapping:
    def test_maps_surviving_lines(self):
        mapping = line_mapping(["a\n", "b\n", "c\n"], ["a\n", "x\n", "b\n", "c\n"])
        assert mapping == {0: 0, 1: 2, 2: 3}

    def test_hunks_skip_equal_runs(self):
        hunks = compute_hunks(["a\n", "b\n", "c\n"], ["a\n", "B\n", "c\n"])
        assert len(hunks) == 1
        assert (hunks[0].base_start, hunks[0].base_end) == (1, 2)
        assert (hunks[0].theirs_start, hunks[0].theirs_end) == (1, 2)


# ── Trivial cases ────────────────────────────────────────────────────


class TestShortcuts:
    def test_unedited_takes_candidate(self):
        outcome = merge("a\n", "a\n", "b\n")
        assert outcome.content == "b\n"
        assert not outcome.had_conflict

    def test_no_upstream_change_keeps_working(self):
        outcome = merge("a\n", "mine\n", "a\n")
        assert outcome.content == "mine\n"

    def test_same_edit_on_both_sides(self):
        outcome = merge("a\n", "b\n", "b\n")
        assert outcome.content == "b\n"
        assert not outcome.had_conflict


# ── Three-way merges ─────────────────────────────────────────────────


class TestCleanMerges:
    def test_upstream_change_with_appended_line(self):
        outcome = merge("A\nB\nC\n", "A\nB\nC\nD (manual)\n", "A\nB\nC-changed\n")

        assert not outcome.had_conflict
        assert outcome.content == "A\nB\nC-changed\nD (manual)\n"

    def test_disjoint_edits(self):
        base = "one\ntwo\nthree\nfour\nfive\n"
        ours = "one\nTWO by hand\nthree\nfour\nfive\n"
        theirs = "one\ntwo\nthree\nfour\nfive v2\n"

        outcome = merge(base, ours, theirs)

        assert not outcome.had_conflict
        assert outcome.content == "one\nTWO by hand\nthree\nfour\nfive v2\n"

    def test_upstream_insertion(self):
        outcome = merge("a\nb\n", "a\nb (edited)\n", "intro\na\nb\n")
        assert outcome.content == "intro\na\nb (edited)\n"
        assert not outcome.had_conflict

    def test_upstream_deletion(self):
        outcome = merge("a\nb\nc\n", "a\nb\nc\nmine\n", "a\nc\n")
        assert outcome.content == "a\nc\nmine\n"

    def test_same_change_already_made_by_hand(self):
        base = "a\nb\nc\n"
        ours = "a\nB\nc\nextra\n"
        theirs = "a\nB\nc\n"
        outcome = merge(base, ours, theirs)
        assert outcome.content == "a\nB\nc\nextra\n"
        assert not outcome.had_conflict

    def test_missing_final_newline_in_working_copy(self):
        outcome = merge("a\nb\n", "a\nb\nmine", "a2\nb\n")
        assert outcome.content == "a2\nb\nmine"


class TestConflicts:
    def test_both_changed_same_line(self):
        outcome = merge("A\nB\nC\n", "A\nB-edited\nC\n", "A\nB-newgen\nC\n")

        assert outcome.had_conflict
        assert outcome.content == (
            "A\n"
            "<<<<<<< generated\n"
            "B-newgen\n"
            "=======\n"
            "B-edited\n"
            ">>>>>>> manual\n"
            "C\n"
        )
        assert len(outcome.conflict_regions) == 1
        region = outcome.conflict_regions[0]
        assert (region.start_line, region.end_line) == (2, 6)
        assert region.generated == "B-newgen\n"
        assert region.manual == "B-edited\n"

    def test_both_appended(self):
        outcome = merge("a\n", "a\nmine\n", "a\ntheirs\n")
        assert outcome.had_conflict
        assert "mine\n" in outcome.content
        assert "theirs\n" in outcome.content

    def test_custom_labels(self):
        outcome = merge(
            "x\n",
            "y\n",
            "z\n",
            conflict_label_generated="upstream",
            conflict_label_manual="local",
        )
        assert outcome.content.startswith("<<<<<<< upstream\nz\n")
        assert outcome.content.endswith(">>>>>>> local\n")

    def test_clean_hunks_still_applied_next_to_conflict(self):
        base = "a\nb\nc\nd\ne\n"
        ours = "a\nb-mine\nc\nd\ne\n"
        theirs = "a\nb-gen\nc\nd\ne-gen\n"

        outcome = merge(base, ours, theirs)

        assert outcome.had_conflict
        assert outcome.content.endswith("d\ne-gen\n")
        assert "b-mine\n" in outcome.content
        assert "b-gen\n" in outcome.content

    def test_no_side_dropped(self):
        outcome = merge("1\n2\n3\n", "1\nmine\n", "1\n2\ntheirs\n")
        assert outcome.had_conflict
        assert "mine" in outcome.content
        assert "theirs" in outcome.content
