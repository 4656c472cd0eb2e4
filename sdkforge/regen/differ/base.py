"""
Base differencer interface.

Defines the contract every content-family merge strategy implements.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..core.config import RegenConfig
from ..core.families import ContentFamily
from ..core.result import MergeOutcome


class Differencer(ABC):
    """Abstract base class for three-way merge strategies."""

    def __init__(self, config: Optional[RegenConfig] = None):
        self.config = config or RegenConfig()

    @property
    @abstractmethod
    def family(self) -> ContentFamily:
        """Content family handled by this differencer."""
        pass

    @abstractmethod
    def merge(self, base: str, ours: str, theirs: str, path: str) -> MergeOutcome:
        """
        Combine three versions of a file.

        Args:
            base: Snapshot of the previous generation (common ancestor)
            ours: Working copy, possibly edited by hand
            theirs: Candidate from the current generation
            path: Relative path, used to pick parsers and for messages

        Returns:
            MergeOutcome with content and conflict information
        """
        pass


def split_lines(text: str) -> list[str]:
    """Split keeping line endings so joining restores the exact text."""
    return text.splitlines(keepends=True)


def terminated(lines: list[str]) -> list[str]:
    """Copy of ``lines`` whose last line ends with a newline."""
    if lines and not lines[-1].endswith(("\n", "\r")):
        return lines[:-1] + [lines[-1] + "\n"]
    return list(lines)
