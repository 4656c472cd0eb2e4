"""
Manual edit detection.
"""

from pathlib import Path
from typing import Optional

from .store import ContentStore, normalize_path


class ChangeClassifier:
    """Decides whether a working file differs from its last generation.

    The comparison is byte-for-byte with no normalisation, so only a real
    edit (not a formatting-only regeneration) sends a file to the
    differencers.
    """

    def __init__(self, store: ContentStore, output_root: Path | str):
        self.store = store
        self.output_root = Path(output_root)

    def working_path(self, path: str) -> Path:
        return self.output_root / normalize_path(path)

    def read_working(self, path: str) -> Optional[str]:
        """Return the on-disk text without newline translation, or None."""
        try:
            with open(
                self.working_path(path), "r", encoding=self.store.encoding, newline=""
            ) as f:
                return f.read()
        except FileNotFoundError:
            return None

    def has_manual_edit(self, path: str) -> bool:
        if not self.store.is_tracked(path):
            return False

        working = self.working_path(path)
        if not working.is_file():
            return False

        snapshot = self.store.get_snapshot(path)
        if snapshot is None:
            return False

        return working.read_bytes() != snapshot.encode(self.store.encoding)
