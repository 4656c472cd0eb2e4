"""
Content families.

Every managed path is tagged once, by extension, with the family whose
three-way strategy reconciles it.
"""

from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, Optional


class ContentFamily(Enum):
    """Closed set of reconciliation strategies."""

    SOURCE_CODE = "source-code"
    STRUCTURED_DATA = "structured-data"
    FREE_TEXT = "free-text"


EXTENSION_FAMILIES: Dict[str, ContentFamily] = {
    # Source code
    ".py": ContentFamily.SOURCE_CODE,
    ".pyi": ContentFamily.SOURCE_CODE,
    ".ts": ContentFamily.SOURCE_CODE,
    ".tsx": ContentFamily.SOURCE_CODE,
    ".mts": ContentFamily.SOURCE_CODE,
    ".cts": ContentFamily.SOURCE_CODE,
    ".js": ContentFamily.SOURCE_CODE,
    ".jsx": ContentFamily.SOURCE_CODE,
    ".mjs": ContentFamily.SOURCE_CODE,
    ".cjs": ContentFamily.SOURCE_CODE,
    # Structured data
    ".json": ContentFamily.STRUCTURED_DATA,
    ".yaml": ContentFamily.STRUCTURED_DATA,
    ".yml": ContentFamily.STRUCTURED_DATA,
}

# Families to try when a structural strategy cannot parse its inputs
FALLBACK_FAMILY: Dict[ContentFamily, Optional[ContentFamily]] = {
    ContentFamily.SOURCE_CODE: ContentFamily.FREE_TEXT,
    ContentFamily.STRUCTURED_DATA: ContentFamily.FREE_TEXT,
    ContentFamily.FREE_TEXT: None,
}


def path_extension(path: str) -> str:
    """Lower-cased extension of a relative path ('' when there is none)."""
    return PurePosixPath(path).suffix.lower()


def family_for_path(
    path: str, overrides: Optional[Dict[str, str]] = None
) -> ContentFamily:
    """
    Determine the content family for a path.

    Args:
        path: Relative file path
        overrides: Extension -> family value mapping from configuration

    Returns:
        Content family (free text when the extension is unknown)
    """
    extension = path_extension(path)

    if overrides and extension in overrides:
        return ContentFamily(overrides[extension])

    return EXTENSION_FAMILIES.get(extension, ContentFamily.FREE_TEXT)
