"""
Family-specific three-way merge strategies.

``DifferencerTable`` holds one differencer per content family and applies the
downgrade chain when a structural strategy cannot parse its inputs.
"""

from typing import Dict, Optional

from ...logging_config import get_logger
from ..core.config import RegenConfig
from ..core.errors import RegenError, SourceParseError, StructuredParseError
from ..core.families import FALLBACK_FAMILY, ContentFamily
from ..core.result import MergeOutcome
from .base import Differencer
from .source import SourceDifferencer
from .structured import StructuredDifferencer
from .text import TextDifferencer

logger = get_logger(__name__)


class DifferencerTable:
    """One differencer per content family; every family must be covered."""

    def __init__(
        self,
        config: Optional[RegenConfig] = None,
        differencers: Optional[Dict[ContentFamily, Differencer]] = None,
    ):
        self.config = config or RegenConfig()
        self._differencers = differencers or {
            ContentFamily.SOURCE_CODE: SourceDifferencer(self.config),
            ContentFamily.STRUCTURED_DATA: StructuredDifferencer(self.config),
            ContentFamily.FREE_TEXT: TextDifferencer(self.config),
        }

        missing = [f.value for f in ContentFamily if f not in self._differencers]
        if missing:
            raise RegenError(f"No differencer for content families: {', '.join(missing)}")

    def __getitem__(self, family: ContentFamily) -> Differencer:
        return self._differencers[family]

    def merge(
        self, family: ContentFamily, base: str, ours: str, theirs: str, path: str
    ) -> MergeOutcome:
        """Merge with the family's strategy, downgrading on parse failures."""
        current: Optional[ContentFamily] = family
        while current is not None:
            try:
                return self._differencers[current].merge(base, ours, theirs, path)
            except (SourceParseError, StructuredParseError) as e:
                fallback = FALLBACK_FAMILY[current]
                if fallback is None:
                    raise
                logger.warning(
                    "%s: %s; downgrading from %s to %s",
                    path,
                    e,
                    current.value,
                    fallback.value,
                )
                current = fallback
        raise RegenError(f"No strategy could merge {path}")


__all__ = [
    "Differencer",
    "DifferencerTable",
    "SourceDifferencer",
    "StructuredDifferencer",
    "TextDifferencer",
]
