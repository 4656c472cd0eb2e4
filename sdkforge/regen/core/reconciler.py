"""
Per-file reconciliation.

State machine for one path:

    UNTRACKED -> CLEAN        first write, candidate emitted as is
    CLEAN     -> CLEAN        no manual edit, candidate emitted as is
    EDITED    -> EDITED       family differencer merged without conflict
    EDITED    -> CONFLICTED   merge left conflict markers (plus a warning)

The snapshot is always reset to the raw candidate by the pipeline, so a
merged customisation is detected as an edit again on the next run.
"""

from typing import Optional

from ...logging_config import get_logger
from .classifier import ChangeClassifier
from .config import RegenConfig
from .families import family_for_path
from .result import FileState, ReconciliationResult
from .store import ContentStore

logger = get_logger(__name__)


class Reconciler:
    """Combines classification and differencing for single files."""

    def __init__(
        self,
        store: ContentStore,
        classifier: ChangeClassifier,
        config: Optional[RegenConfig] = None,
        differencers=None,
    ):
        self.store = store
        self.classifier = classifier
        self.config = config or RegenConfig()
        if differencers is None:
            from ..differ import DifferencerTable

            differencers = DifferencerTable(self.config)
        self.differencers = differencers

    def reconcile(self, path: str, candidate: str) -> ReconciliationResult:
        """
        Decide the content to write for one path.

        Args:
            path: Relative path inside the output directory
            candidate: Freshly generated text

        Returns:
            ReconciliationResult with merged content and conflict details
        """
        if not self.store.is_tracked(path):
            return ReconciliationResult(merged_content=candidate, state=FileState.CLEAN)

        working = self.classifier.read_working(path)
        if working is None:
            logger.debug("%s is tracked but missing on disk; regenerating", path)
            return ReconciliationResult(merged_content=candidate, state=FileState.CLEAN)

        base = self.store.get_snapshot(path)
        if base is None:
            logger.warning(
                "%s is tracked but has no snapshot; keeping the working copy this run",
                path,
            )
            base = candidate
        elif not self.classifier.has_manual_edit(path):
            return ReconciliationResult(merged_content=candidate, state=FileState.CLEAN)

        if working == candidate:
            return ReconciliationResult(merged_content=candidate, state=FileState.CLEAN)

        if candidate == base:
            # Nothing upstream to bring in
            return ReconciliationResult(
                merged_content=working, state=FileState.EDITED, strategy="working"
            )

        family = family_for_path(path, self.config.family_overrides)
        outcome = self.differencers.merge(family, base, working, candidate, path)

        if outcome.had_conflict:
            if outcome.conflict_regions:
                action = f"resolve {len(outcome.conflict_regions)} conflict region(s)"
            else:
                action = "review the line-merged result"
            warning = f"{path}: manual edits conflict with regenerated content; {action}"
            logger.warning(warning)
            return ReconciliationResult(
                merged_content=outcome.content,
                had_conflict=True,
                conflict_regions=outcome.conflict_regions,
                state=FileState.CONFLICTED,
                strategy=outcome.strategy,
                warnings=[warning],
            )

        logger.info("%s: merged manual edits (%s)", path, outcome.strategy)
        return ReconciliationResult(
            merged_content=outcome.content,
            state=FileState.EDITED,
            strategy=outcome.strategy,
        )
