"""
Structured-data differencer for JSON and YAML documents.

Merge policy, applied recursively to mappings:

- a key whose value the user changed keeps the user's value (user deletions
  also stick);
- a key the candidate introduces is always added;
- a key the candidate removed is removed, even if the user customised it;
- a key only the user added is kept next to its working-copy neighbour.

YAML goes through ruamel.yaml's round-trip mode so comments travel with the
keys they are attached to. When a comment added or kept by either side cannot
be placed, the file is merged line by line instead.
"""

import io
import json
import re
from typing import Any, Callable, Dict, List, Optional, Set

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from ...logging_config import get_logger
from ..core.errors import StructuredParseError
from ..core.families import ContentFamily, path_extension
from ..core.result import MergeOutcome
from .base import Differencer
from .text import TextDifferencer

logger = get_logger(__name__)

_MISSING = object()

YAML_EXTENSIONS = {".yaml", ".yml"}

_COMMENT_RE = re.compile(r"(?:^|\s)(#.*)$")


def detect_indent(text: str) -> Optional[int | str]:
    """Indentation unit of a document: a width, "\\t", or None if flat."""
    for line in text.splitlines()[1:]:
        stripped = line.lstrip(" \t")
        if not stripped or stripped.startswith("#"):
            continue
        leading = line[: len(line) - len(stripped)]
        if not leading:
            continue
        if leading.startswith("\t"):
            return "\t"
        return len(leading)
    return None


def merge_values(base: Any, ours: Any, theirs: Any) -> Any:
    """Three-way merge of one value; mappings recurse, anything else is atomic."""
    if isinstance(base, dict) and isinstance(ours, dict) and isinstance(theirs, dict):
        return merge_mappings(base, ours, theirs)
    if ours != base:
        return ours
    return theirs


def merge_mappings(base: Dict, ours: Dict, theirs: Dict) -> Dict:
    merged: Dict = {}

    for key, their_value in theirs.items():
        base_value = base.get(key, _MISSING)
        our_value = ours.get(key, _MISSING)

        if base_value is _MISSING:
            merged[key] = their_value
        elif our_value is _MISSING:
            # Deleted by hand
            continue
        else:
            merged[key] = merge_values(base_value, our_value, their_value)

    user_keys = [key for key in ours if key not in base and key not in theirs]
    if not user_keys:
        return merged

    # Re-insert user keys after the closest preceding working-copy key
    order: List = list(merged)
    our_keys = list(ours)
    for key in user_keys:
        position = 0
        for previous in reversed(our_keys[: our_keys.index(key)]):
            if previous in order:
                position = order.index(previous) + 1
                break
        order.insert(position, key)
        merged[key] = ours[key]

    return {key: merged[key] for key in order}


# ── Round-trip YAML ──────────────────────────────────────────────────


def _comment_text(entry: Any) -> str:
    """Flatten a ruamel comment slot (token, list of tokens, or None)."""
    if entry is None:
        return ""
    if isinstance(entry, list):
        return "".join(_comment_text(item) for item in entry)
    return getattr(entry, "value", "")


def _pick_comment(base_entry: Any, our_entry: Any, their_entry: Any) -> Any:
    if _comment_text(our_entry) != _comment_text(base_entry):
        return our_entry
    return their_entry


def merge_commented(
    base: CommentedMap, ours: CommentedMap, theirs: CommentedMap
) -> CommentedMap:
    """``merge_mappings`` for round-trip mappings, carrying comments along.

    Each key's comments come from the working copy when the user changed
    them, otherwise from the candidate.
    """
    merged = CommentedMap()

    for key in merge_mappings(base, ours, theirs):
        base_value = base.get(key, _MISSING)
        our_value = ours.get(key, _MISSING)
        their_value = theirs.get(key, _MISSING)

        if all(isinstance(v, CommentedMap) for v in (base_value, our_value, their_value)):
            merged[key] = merge_commented(base_value, our_value, their_value)
        elif their_value is _MISSING:
            merged[key] = our_value
        elif base_value is _MISSING or our_value == base_value:
            merged[key] = their_value
        else:
            merged[key] = our_value

        entry = _pick_comment(
            base.ca.items.get(key), ours.ca.items.get(key), theirs.ca.items.get(key)
        )
        if entry is not None:
            merged.ca.items[key] = entry

    header = _pick_comment(base.ca.comment, ours.ca.comment, theirs.ca.comment)
    if header is not None:
        merged.ca.comment = header
    return merged


def comment_lines(text: str) -> Set[str]:
    """The ``#`` comments of a YAML document, stripped."""
    found = set()
    for line in text.splitlines():
        match = _COMMENT_RE.search(line)
        if match:
            found.add(match.group(1).strip())
    return found


def lost_comments(base: str, ours: str, theirs: str, merged: str) -> Set[str]:
    """Comments neither side removed that are missing from the merge."""
    base_c, ours_c, theirs_c = comment_lines(base), comment_lines(ours), comment_lines(theirs)
    required = (ours_c - base_c) | (theirs_c - base_c) | (ours_c & theirs_c)
    return required - comment_lines(merged)


class StructuredDifferencer(Differencer):
    """Key-wise merge of key-ordered documents."""

    def __init__(self, config=None):
        super().__init__(config)
        self.text = TextDifferencer(self.config)

    @property
    def family(self) -> ContentFamily:
        return ContentFamily.STRUCTURED_DATA

    def merge(self, base: str, ours: str, theirs: str, path: str) -> MergeOutcome:
        is_yaml = path_extension(path) in YAML_EXTENSIONS
        load = self._load_yaml if is_yaml else self._load_json

        base_data = load(base, "snapshot", path)
        ours_data = load(ours, "working copy", path)
        theirs_data = load(theirs, "candidate", path)

        indent = detect_indent(ours)
        if indent is None:
            indent = self.config.default_indent

        if is_yaml:
            merged = merge_commented(base_data, ours_data, theirs_data)
        else:
            merged = merge_mappings(base_data, ours_data, theirs_data)

        dump: Callable = self._dump_yaml if is_yaml else self._dump_json
        content = dump(merged, indent)
        if theirs.endswith("\n") and not content.endswith("\n"):
            content += "\n"
        elif not theirs.endswith("\n"):
            content = content.rstrip("\n")

        if is_yaml:
            missing = lost_comments(base, ours, theirs, content)
            if missing:
                logger.info(
                    "%s: %d comment(s) could not be placed; using line merge",
                    path,
                    len(missing),
                )
                outcome = self.text.merge(base, ours, theirs, path)
                outcome.strategy = "yaml->text"
                return outcome

        return MergeOutcome(content=content, strategy="yaml" if is_yaml else "json")

    @staticmethod
    def _load_json(text: str, label: str, path: str) -> Dict:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise StructuredParseError(f"{path}: {label} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StructuredParseError(f"{path}: {label} is not a JSON object")
        return data

    @staticmethod
    def _yaml(indent: int | str = 2) -> YAML:
        width = indent if isinstance(indent, int) and indent >= 2 else 2
        y = YAML(typ="rt")
        y.preserve_quotes = True
        y.width = 4096
        y.indent(mapping=width, sequence=width, offset=0)
        return y

    @classmethod
    def _load_yaml(cls, text: str, label: str, path: str) -> CommentedMap:
        try:
            data = cls._yaml().load(text)
        except YAMLError as e:
            raise StructuredParseError(f"{path}: {label} is not valid YAML: {e}") from e
        if not isinstance(data, CommentedMap):
            raise StructuredParseError(f"{path}: {label} is not a YAML mapping")
        return data

    @staticmethod
    def _dump_json(data: Dict, indent: int | str) -> str:
        return json.dumps(data, indent=indent, ensure_ascii=False)

    @classmethod
    def _dump_yaml(cls, data: CommentedMap, indent: int | str) -> str:
        stream = io.StringIO()
        cls._yaml(indent).dump(data, stream)
        return stream.getvalue()
