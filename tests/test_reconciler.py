"""
Tests for per-file reconciliation.
"""

from sdkforge.regen.core.classifier import ChangeClassifier
from sdkforge.regen.core.reconciler import Reconciler
from sdkforge.regen.core.result import FileOutcome, FileState

from .conftest import write


def make_reconciler(store, output_dir, config):
    return Reconciler(store, ChangeClassifier(store, output_dir), config)


def generated(store, output_dir, path, text):
    """Pretend a previous run wrote ``text`` to ``path``."""
    write(output_dir, path, text)
    store.set_snapshot(path, text)
    store.track(path)


class TestReconciler:
    def test_untracked_returns_candidate(self, store, output_dir, config):
        write(output_dir, "notes.md", "hand written\n")

        result = make_reconciler(store, output_dir, config).reconcile("notes.md", "gen\n")

        assert result.merged_content == "gen\n"
        assert result.state == FileState.CLEAN
        assert result.outcome == FileOutcome.WRITTEN_CLEAN

    def test_unedited_returns_candidate(self, store, output_dir, config):
        generated(store, output_dir, "a.md", "v1\n")

        result = make_reconciler(store, output_dir, config).reconcile("a.md", "v2\n")

        assert result.merged_content == "v2\n"
        assert not result.had_conflict

    def test_deleted_working_file_is_regenerated(self, store, output_dir, config):
        generated(store, output_dir, "a.md", "v1\n")
        (output_dir / "a.md").unlink()

        result = make_reconciler(store, output_dir, config).reconcile("a.md", "v2\n")

        assert result.merged_content == "v2\n"

    def test_no_upstream_change_keeps_edit(self, store, output_dir, config):
        generated(store, output_dir, "a.md", "v1\n")
        write(output_dir, "a.md", "v1 edited\n")

        result = make_reconciler(store, output_dir, config).reconcile("a.md", "v1\n")

        assert result.merged_content == "v1 edited\n"
        assert result.state == FileState.EDITED
        assert result.outcome == FileOutcome.WRITTEN_MERGED

    def test_edit_matching_candidate_is_clean(self, store, output_dir, config):
        generated(store, output_dir, "a.md", "v1\n")
        write(output_dir, "a.md", "v2\n")

        result = make_reconciler(store, output_dir, config).reconcile("a.md", "v2\n")

        assert result.state == FileState.CLEAN

    def test_merged_edit(self, store, output_dir, config):
        generated(store, output_dir, "a.md", "A\nB\nC\n")
        write(output_dir, "a.md", "A\nB\nC\nD (manual)\n")

        result = make_reconciler(store, output_dir, config).reconcile(
            "a.md", "A\nB\nC-changed\n"
        )

        assert result.state == FileState.EDITED
        assert result.merged_content == "A\nB\nC-changed\nD (manual)\n"
        assert result.strategy == "text"

    def test_conflict(self, store, output_dir, config):
        generated(store, output_dir, "a.md", "A\nB\nC\n")
        write(output_dir, "a.md", "A\nB-edited\nC\n")

        result = make_reconciler(store, output_dir, config).reconcile(
            "a.md", "A\nB-newgen\nC\n"
        )

        assert result.had_conflict
        assert result.state == FileState.CONFLICTED
        assert result.outcome == FileOutcome.WRITTEN_WITH_CONFLICT
        assert "B-edited" in result.merged_content
        assert "B-newgen" in result.merged_content
        assert result.warnings and "a.md" in result.warnings[0]

    def test_missing_snapshot_keeps_working_copy(self, store, output_dir, config, caplog):
        write(output_dir, "a.md", "hand edited\n")
        store.track("a.md")

        result = make_reconciler(store, output_dir, config).reconcile("a.md", "gen\n")

        assert result.merged_content == "hand edited\n"
        assert not result.had_conflict
        assert "no snapshot" in caplog.text

    def test_family_routing(self, store, output_dir, config):
        base = '{\n  "a": 1\n}\n'
        generated(store, output_dir, "package.json", base)
        write(output_dir, "package.json", '{\n  "a": 1,\n  "mine": true\n}\n')

        result = make_reconciler(store, output_dir, config).reconcile(
            "package.json", '{\n  "a": 2\n}\n'
        )

        assert result.strategy == "json"
        assert result.merged_content == '{\n  "a": 2,\n  "mine": true\n}\n'
