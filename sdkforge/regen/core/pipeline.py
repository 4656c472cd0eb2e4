"""
Pipeline driver: applies one generation's output to the output directory.

For every (path, candidate) pair it reconciles, writes the result, stores
the raw candidate as the new snapshot and tracks the path. Files are
independent, so they may run on a bounded thread pool; a path-keyed lock
keeps each file's read/merge/write/snapshot sequence atomic.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Mapping, Optional

from ...logging_config import get_logger
from .classifier import ChangeClassifier
from .config import RegenConfig
from .errors import UnsafePathError
from .reconciler import Reconciler
from .result import FileOutcome, ReconciliationResult, RunReport
from .store import ContentStore, atomic_write, normalize_path

logger = get_logger(__name__)


class PathLocks:
    """Lazily created lock per relative path."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def __call__(self, path: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = self._locks[path] = threading.Lock()
            return lock


class PipelineDriver:
    """Reconciles emitter output into an output directory."""

    def __init__(
        self,
        config: Optional[RegenConfig] = None,
        store: Optional[ContentStore] = None,
        reconciler: Optional[Reconciler] = None,
    ):
        self.config = config or RegenConfig()
        self.output_root = self.config.output_path
        self.store = store or ContentStore(self.config.state_path, self.config.encoding)
        self.classifier = ChangeClassifier(self.store, self.output_root)
        self.reconciler = reconciler or Reconciler(
            self.store, self.classifier, self.config
        )
        self._locks = PathLocks()

    def run(
        self,
        files: Mapping[str, str],
        cancel: Optional[threading.Event] = None,
    ) -> RunReport:
        """
        Apply one generation.

        Args:
            files: Relative path -> generated text
            cancel: Set to stop before the next file starts

        Returns:
            RunReport with per-file outcomes and aggregate counts
        """
        report = RunReport()
        candidates: Dict[str, str] = {}

        for raw_path, content in files.items():
            try:
                path = normalize_path(raw_path)
            except UnsafePathError as e:
                logger.error("Skipping %r: %s", raw_path, e)
                report.record(str(raw_path), FileOutcome.SKIPPED_ERROR, str(e))
                continue
            if path in candidates:
                logger.warning("Duplicate entry for %s; using the last one", path)
            candidates[path] = content

        logger.info("Reconciling %d file(s) into %s", len(candidates), self.output_root)

        if self.config.max_workers > 1 and len(candidates) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                futures = [
                    pool.submit(self._process, path, content, report, cancel)
                    for path, content in candidates.items()
                ]
                for future in futures:
                    future.result()
        else:
            for path, content in candidates.items():
                self._process(path, content, report, cancel)

        report.pending_paths.sort()
        if report.pending_paths:
            report.cancelled = True
            logger.warning(
                "Run cancelled; %d file(s) left untouched", len(report.pending_paths)
            )

        if self.config.report_stale:
            report.stale_paths = [
                path for path in self.store.tracked_paths() if path not in candidates
            ]
            for path in report.stale_paths:
                logger.info("%s is tracked but was not generated this run", path)

        if report.failed_paths:
            logger.error(
                "%d file(s) failed: %s",
                len(report.failed_paths),
                ", ".join(report.failed_paths),
            )

        return report

    def _process(
        self,
        path: str,
        candidate: str,
        report: RunReport,
        cancel: Optional[threading.Event],
    ) -> None:
        if cancel is not None and cancel.is_set():
            report.pending_paths.append(path)
            return

        try:
            with self._locks(path):
                result = self.apply(path, candidate)
        except Exception as e:
            logger.error("Failed to reconcile %s: %s", path, e, exc_info=True)
            report.record(path, FileOutcome.SKIPPED_ERROR, str(e))
            return

        report.record(path, result.outcome)
        report.warnings.extend(result.warnings)

    def apply(self, path: str, candidate: str) -> ReconciliationResult:
        """Reconcile, write, snapshot and track a single file."""
        target = self.output_root / path
        target.parent.mkdir(parents=True, exist_ok=True)

        result = self.reconciler.reconcile(path, candidate)

        atomic_write(target, result.merged_content, self.config.encoding)
        self.store.set_snapshot(path, candidate)
        self.store.track(path)

        logger.debug("%s -> %s", path, result.outcome.value)
        return result


def run_pipeline(
    files: Mapping[str, str],
    config: Optional[RegenConfig] = None,
    cancel: Optional[threading.Event] = None,
) -> RunReport:
    """Convenience wrapper: one driver, one run."""
    return PipelineDriver(config).run(files, cancel)
