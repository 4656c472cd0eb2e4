"""
Free-text differencer.

Replays the upstream delta (snapshot -> candidate) as line hunks against the
working copy. Hunks whose base lines are untouched in the working copy apply
cleanly; the rest become conflict blocks:

    <<<<<<< generated
    ...candidate lines...
    =======
    ...working lines...
    >>>>>>> manual
"""

import difflib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ...logging_config import get_logger
from ..core.families import ContentFamily
from ..core.result import ConflictRegion, MergeOutcome
from .base import Differencer, split_lines, terminated

logger = get_logger(__name__)


@dataclass
class Hunk:
    """One non-equal opcode of the snapshot -> candidate diff."""

    base_start: int
    base_end: int
    theirs_start: int
    theirs_end: int


@dataclass
class _Edit:
    """A pending change to the working copy, in working-line coordinates."""

    start: int
    end: int
    theirs_start: int
    theirs_end: int
    lines: List[str] = field(default_factory=list)
    conflict: bool = False


def line_mapping(base: List[str], other: List[str]) -> Dict[int, int]:
    """Map each base line index that survives unchanged to its index in other."""
    matcher = difflib.SequenceMatcher(None, base, other, autojunk=False)
    mapping = {}
    for a, b, size in matcher.get_matching_blocks():
        for offset in range(size):
            mapping[a + offset] = b + offset
    return mapping


def compute_hunks(base: List[str], theirs: List[str]) -> List[Hunk]:
    """Line-based edit script from base to theirs."""
    matcher = difflib.SequenceMatcher(None, base, theirs, autojunk=False)
    return [
        Hunk(i1, i2, j1, j2)
        for tag, i1, i2, j1, j2 in matcher.get_opcodes()
        if tag != "equal"
    ]


class TextDifferencer(Differencer):
    """Line-based three-way merge with conflict markers."""

    @property
    def family(self) -> ContentFamily:
        return ContentFamily.FREE_TEXT

    @property
    def markers(self) -> Tuple[str, str, str]:
        return (
            f"<<<<<<< {self.config.conflict_label_generated}\n",
            "=======\n",
            f">>>>>>> {self.config.conflict_label_manual}\n",
        )

    def merge(self, base: str, ours: str, theirs: str, path: str) -> MergeOutcome:
        if ours == base or ours == theirs:
            return MergeOutcome(content=theirs, strategy="text")
        if theirs == base:
            return MergeOutcome(content=ours, strategy="text")

        base_lines = split_lines(base)
        ours_lines = split_lines(ours)
        theirs_lines = split_lines(theirs)

        mapping = line_mapping(base_lines, ours_lines)
        edits = []

        for hunk in compute_hunks(base_lines, theirs_lines):
            edit = self._place_hunk(hunk, mapping, base_lines, ours_lines, theirs_lines)
            if edit is not None:
                edits.append(edit)

        edits = self._coalesce(edits)
        content, regions = self._render(edits, ours_lines, theirs_lines)

        if regions:
            logger.warning(
                "%s: %d hunk(s) could not be applied; conflict markers written",
                path,
                len(regions),
            )

        return MergeOutcome(
            content=content,
            had_conflict=bool(regions),
            conflict_regions=regions,
            strategy="text",
        )

    def _place_hunk(
        self,
        hunk: Hunk,
        mapping: Dict[int, int],
        base_lines: List[str],
        ours_lines: List[str],
        theirs_lines: List[str],
    ) -> Optional[_Edit]:
        """Locate a hunk in the working copy; None when it is already there."""
        replacement = theirs_lines[hunk.theirs_start : hunk.theirs_end]
        located = self._locate(hunk, mapping, len(base_lines), len(ours_lines))

        if located is not None:
            start, end = located
            return _Edit(start, end, hunk.theirs_start, hunk.theirs_end, replacement)

        start, end = self._disputed_region(hunk, mapping, len(base_lines), len(ours_lines))
        if ours_lines[start:end] == replacement:
            # Same change made by hand
            return None

        return _Edit(
            start, end, hunk.theirs_start, hunk.theirs_end, replacement, conflict=True
        )

    @staticmethod
    def _locate(
        hunk: Hunk, mapping: Dict[int, int], base_len: int, ours_len: int
    ) -> Optional[Tuple[int, int]]:
        """Working-copy range the hunk replaces, or None if it cannot apply."""
        if hunk.base_start < hunk.base_end:
            positions = [mapping.get(i) for i in range(hunk.base_start, hunk.base_end)]
            if None in positions:
                return None
            if any(b - a != 1 for a, b in zip(positions, positions[1:])):
                return None
            return positions[0], positions[-1] + 1

        # Pure insertion between base lines base_start-1 and base_start
        at = hunk.base_start
        if at == 0:
            after = 0
        else:
            after = mapping[at - 1] + 1 if at - 1 in mapping else None

        if at == base_len:
            before = ours_len
        else:
            before = mapping.get(at)

        if after is None and before is None:
            return None
        if after is None:
            return before, before
        if before is None or before == after:
            return after, after
        # Both sides inserted at the same spot
        return None

    @staticmethod
    def _disputed_region(
        hunk: Hunk, mapping: Dict[int, int], base_len: int, ours_len: int
    ) -> Tuple[int, int]:
        """Working lines between the nearest unchanged anchors around a hunk."""
        left = 0
        for i in range(hunk.base_start - 1, -1, -1):
            if i in mapping:
                left = mapping[i] + 1
                break

        right = ours_len
        for i in range(hunk.base_end, base_len):
            if i in mapping:
                right = mapping[i]
                break

        return left, max(left, right)

    @staticmethod
    def _coalesce(edits: List[_Edit]) -> List[_Edit]:
        """Merge overlapping edits; any overlap becomes a conflict."""
        merged: List[_Edit] = []
        for edit in sorted(edits, key=lambda e: (e.start, e.end)):
            if merged and edit.start < merged[-1].end:
                previous = merged[-1]
                merged[-1] = _Edit(
                    start=previous.start,
                    end=max(previous.end, edit.end),
                    theirs_start=min(previous.theirs_start, edit.theirs_start),
                    theirs_end=max(previous.theirs_end, edit.theirs_end),
                    conflict=True,
                )
                continue
            merged.append(edit)
        return merged

    def _render(
        self, edits: List[_Edit], ours_lines: List[str], theirs_lines: List[str]
    ) -> Tuple[str, List[ConflictRegion]]:
        start_marker, separator, end_marker = self.markers
        out: List[str] = []
        regions: List[ConflictRegion] = []
        cursor = 0

        for edit in edits:
            out.extend(ours_lines[cursor : edit.start])
            if out and (edit.conflict or edit.lines):
                out = terminated(out)

            if edit.conflict:
                generated = theirs_lines[edit.theirs_start : edit.theirs_end]
                manual = ours_lines[edit.start : edit.end]

                first_line = len(out) + 1
                out.append(start_marker)
                out.extend(terminated(generated))
                out.append(separator)
                out.extend(terminated(manual))
                out.append(end_marker)
                regions.append(
                    ConflictRegion(
                        start_line=first_line,
                        end_line=len(out),
                        generated="".join(generated),
                        manual="".join(manual),
                    )
                )
            elif edit.end < len(ours_lines):
                out.extend(terminated(edit.lines))
            else:
                out.extend(edit.lines)

            cursor = edit.end

        out.extend(ours_lines[cursor:])
        return "".join(out), regions
