"""
Content store for generated snapshots and the tracked-file registry.

Layout under the state directory:

    tracked-files.json      {"files": [relative path, ...]}
    cache/<encoded path>    exact text of the last generation for that path

The encoded name is URL-safe base64 of the relative path without padding,
so it never contains "/", "+" or "=" and decodes back to the path.
"""

from __future__ import annotations

import base64
import binascii
import json
import tempfile
import threading
from pathlib import Path, PurePosixPath
from typing import List, Optional, Set

from ...logging_config import get_logger
from .errors import UnsafePathError

logger = get_logger(__name__)

REGISTRY_FILE = "tracked-files.json"
CACHE_DIR = "cache"


def normalize_path(path: str) -> str:
    """Normalise a relative path to its POSIX registry key.

    Raises:
        UnsafePathError: If the path is empty, absolute or climbs out with "..".
    """
    raw = str(path).replace("\\", "/")
    pure = PurePosixPath(raw)

    if not raw.strip() or pure.is_absolute() or (len(raw) > 1 and raw[1] == ":"):
        raise UnsafePathError(f"Not a relative path: {path!r}")

    parts = [part for part in pure.parts if part not in ("", ".")]
    if not parts or ".." in parts:
        raise UnsafePathError(f"Path escapes the output directory: {path!r}")

    return "/".join(parts)


def encode_path(path: str) -> str:
    """Encode a relative path into a filesystem-safe cache name."""
    encoded = base64.urlsafe_b64encode(normalize_path(path).encode("utf-8"))
    return encoded.decode("ascii").rstrip("=")


def decode_path(key: str) -> str:
    """Inverse of ``encode_path``."""
    padding = "=" * (-len(key) % 4)
    return base64.urlsafe_b64decode(key + padding).decode("utf-8")


def atomic_write(path: Path, content: str, encoding: str) -> None:
    """Write through a temp file in the same directory, then rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=".part")
    tmp = Path(tmp_name)
    try:
        with open(fd, "w", encoding=encoding, newline="") as f:
            f.write(content)
        tmp.replace(path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


class ContentStore:
    """Snapshots and tracked paths for one output directory.

    One instance is created per generation run; the registry is read once
    on construction and rewritten atomically on every change.
    """

    def __init__(self, state_dir: Path | str, encoding: str = "utf-8"):
        self.state_dir = Path(state_dir)
        self.encoding = encoding
        self._lock = threading.RLock()
        self._tracked: Set[str] = self._load_registry()

    @property
    def registry_path(self) -> Path:
        return self.state_dir / REGISTRY_FILE

    @property
    def cache_dir(self) -> Path:
        return self.state_dir / CACHE_DIR

    def snapshot_path(self, path: str) -> Path:
        return self.cache_dir / encode_path(path)

    # Registry

    def _load_registry(self) -> Set[str]:
        """Read the registry, failing open to an empty set."""
        registry = self.registry_path
        if not registry.is_file():
            logger.debug("No tracking registry at %s", registry)
            return set()

        try:
            data = json.loads(registry.read_text(encoding=self.encoding))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(
                "Tracking registry %s is unreadable (%s); treating every file as untracked",
                registry,
                e,
            )
            return set()

        files = data.get("files") if isinstance(data, dict) else None
        if not isinstance(files, list):
            logger.warning(
                "Tracking registry %s has no file list; treating every file as untracked",
                registry,
            )
            return set()

        tracked = set()
        for entry in files:
            try:
                tracked.add(normalize_path(entry))
            except (UnsafePathError, TypeError):
                logger.warning("Ignoring invalid registry entry %r", entry)
        logger.debug("Loaded %d tracked path(s) from %s", len(tracked), registry)
        return tracked

    def _save_registry(self) -> None:
        content = json.dumps({"files": sorted(self._tracked)}, indent=2) + "\n"
        atomic_write(self.registry_path, content, self.encoding)

    def is_tracked(self, path: str) -> bool:
        with self._lock:
            return normalize_path(path) in self._tracked

    def track(self, path: str) -> None:
        key = normalize_path(path)
        with self._lock:
            if key in self._tracked:
                return
            self._tracked.add(key)
            self._save_registry()
        logger.debug("Tracking %s", key)

    def untrack(self, path: str) -> None:
        """Stop managing a path and forget its snapshot."""
        key = normalize_path(path)
        with self._lock:
            if key in self._tracked:
                self._tracked.discard(key)
                self._save_registry()
            self.snapshot_path(key).unlink(missing_ok=True)
        logger.info("Untracked %s", key)

    def tracked_paths(self) -> List[str]:
        with self._lock:
            return sorted(self._tracked)

    # Snapshots

    def get_snapshot(self, path: str) -> Optional[str]:
        """Return the last generated text for a path, or None."""
        snapshot = self.snapshot_path(path)
        try:
            with open(snapshot, "r", encoding=self.encoding, newline="") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Snapshot for %s is unreadable (%s); ignoring it", path, e)
            return None

    def set_snapshot(self, path: str, text: str) -> None:
        atomic_write(self.snapshot_path(path), text, self.encoding)

    def cached_paths(self) -> List[str]:
        """Paths that have a snapshot blob, decoded from the cache names."""
        if not self.cache_dir.is_dir():
            return []
        paths = []
        for entry in self.cache_dir.iterdir():
            if entry.name.startswith(".tmp_"):
                continue
            try:
                paths.append(decode_path(entry.name))
            except (binascii.Error, UnicodeDecodeError, ValueError):
                logger.debug("Skipping foreign cache entry %s", entry.name)
        return sorted(paths)
