"""
Result containers for merges, reconciliations and whole runs.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class FileState(Enum):
    """Reconciliation state of a single path."""

    UNTRACKED = "untracked"
    CLEAN = "clean"
    EDITED = "edited"
    CONFLICTED = "conflicted"


class FileOutcome(Enum):
    """What the pipeline did with a path."""

    WRITTEN_CLEAN = "written-clean"
    WRITTEN_MERGED = "written-merged"
    WRITTEN_WITH_CONFLICT = "written-with-conflict"
    SKIPPED_ERROR = "skipped-error"


@dataclass
class ConflictRegion:
    """A marker-bracketed block in merged output (1-based, inclusive lines)."""

    start_line: int
    end_line: int
    generated: str
    manual: str


@dataclass
class MergeOutcome:
    """Output of a family differencer."""

    content: str
    had_conflict: bool = False
    conflict_regions: List[ConflictRegion] = field(default_factory=list)
    strategy: str = ""


@dataclass
class ReconciliationResult:
    """Merged content for one file plus how it was produced."""

    merged_content: str
    had_conflict: bool = False
    conflict_regions: List[ConflictRegion] = field(default_factory=list)
    state: FileState = FileState.CLEAN
    strategy: str = "candidate"
    warnings: List[str] = field(default_factory=list)

    @property
    def outcome(self) -> FileOutcome:
        if self.had_conflict:
            return FileOutcome.WRITTEN_WITH_CONFLICT
        if self.state == FileState.EDITED:
            return FileOutcome.WRITTEN_MERGED
        return FileOutcome.WRITTEN_CLEAN


@dataclass
class RunReport:
    """Aggregate result of one pipeline run."""

    outcomes: Dict[str, FileOutcome] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    stale_paths: List[str] = field(default_factory=list)
    pending_paths: List[str] = field(default_factory=list)
    cancelled: bool = False

    def record(self, path: str, outcome: FileOutcome, error: Optional[str] = None):
        self.outcomes[path] = outcome
        if error is not None:
            self.errors[path] = error

    @property
    def counts(self) -> Dict[str, int]:
        """Number of files per outcome, every outcome present."""
        tally = Counter(outcome.value for outcome in self.outcomes.values())
        return {outcome.value: tally.get(outcome.value, 0) for outcome in FileOutcome}

    @property
    def failed_paths(self) -> List[str]:
        return sorted(
            path
            for path, outcome in self.outcomes.items()
            if outcome == FileOutcome.SKIPPED_ERROR
        )

    @property
    def conflicted_paths(self) -> List[str]:
        return sorted(
            path
            for path, outcome in self.outcomes.items()
            if outcome == FileOutcome.WRITTEN_WITH_CONFLICT
        )

    @property
    def success(self) -> bool:
        return not self.failed_paths and not self.cancelled
