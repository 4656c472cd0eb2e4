"""
Source-code differencer.

Finds the top-level declarations a developer added or changed in the working
copy and splices them, verbatim, into the freshly generated file. When the
generator has itself reshaped a declaration the developer touched, or any
version fails to parse, the free-text strategy takes over and the result is
flagged as a conflict.
"""

from typing import Dict, List, Optional

from ....logging_config import get_logger
from ...core.config import RegenConfig
from ...core.errors import SourceParseError
from ...core.families import ContentFamily, path_extension
from ...core.result import MergeOutcome
from ..base import Differencer
from ..text import TextDifferencer
from .declarations import Declaration, index_by_key, loose_lines, splice

logger = get_logger(__name__)


class SourceDifferencer(Differencer):
    """Declaration-level merge for source files."""

    def __init__(self, config: Optional[RegenConfig] = None, registry=None):
        super().__init__(config)
        self._registry = registry
        self.text = TextDifferencer(self.config)

    @property
    def family(self) -> ContentFamily:
        return ContentFamily.SOURCE_CODE

    @property
    def registry(self):
        if self._registry is None:
            from ...registry import get_registry

            self._registry = get_registry()
        return self._registry

    def _parser_for(self, path: str):
        from ...registry import RegistryError

        try:
            return self.registry.get_parser(path_extension(path))
        except RegistryError as e:
            logger.warning("%s: %s; using line merge", path, e)
            return None

    def merge(self, base: str, ours: str, theirs: str, path: str) -> MergeOutcome:
        parser = self._parser_for(path)
        if parser is None:
            return self.text.merge(base, ours, theirs, path)

        try:
            base_decls = parser.parse(base)
            ours_decls = parser.parse(ours)
            theirs_decls = parser.parse(theirs)
        except SourceParseError as e:
            logger.warning("%s: %s; falling back to line merge", path, e)
            return self._fallback(base, ours, theirs, path)

        base_index = index_by_key(base_decls)
        theirs_index = index_by_key(theirs_decls)

        custom = [
            d
            for d in ours_decls
            if d.key not in base_index or base_index[d.key].text != d.text
        ]
        if not custom:
            # Only edits between declarations (or deletions): lines decide
            return self.text.merge(base, ours, theirs, path)

        ours_index = index_by_key(ours_decls)
        deleted = [key for key in base_index if key not in ours_index]
        if deleted or loose_lines(base, base_decls) != loose_lines(ours, ours_decls):
            # Deletions and text between declarations only survive a line merge
            logger.debug(
                "%s: deletions or loose lines in working copy; using line merge", path
            )
            return self.text.merge(base, ours, theirs, path)

        reshaped = {
            key
            for key, declaration in base_index.items()
            if key not in theirs_index or theirs_index[key].text != declaration.text
        }
        reshaped.update(key for key in theirs_index if key not in base_index)

        pending = []
        for declaration in custom:
            if declaration.key in reshaped:
                generated = theirs_index.get(declaration.key)
                if generated is not None and generated.text == declaration.text:
                    continue
                logger.warning(
                    "%s: '%s' was edited by hand and changed by the generator",
                    path,
                    declaration.key,
                )
                return self._fallback(base, ours, theirs, path)
            pending.append(declaration)

        content = self._splice(theirs, theirs_decls, ours_decls, pending, theirs_index)
        return MergeOutcome(content=content, strategy=f"source:{parser.language_name}")

    def _fallback(self, base: str, ours: str, theirs: str, path: str) -> MergeOutcome:
        outcome = self.text.merge(base, ours, theirs, path)
        outcome.had_conflict = True
        outcome.strategy = "source->text"
        return outcome

    @staticmethod
    def _splice(
        theirs: str,
        theirs_decls: List[Declaration],
        ours_decls: List[Declaration],
        pending: List[Declaration],
        theirs_index: Dict[str, Declaration],
    ) -> str:
        pending_keys = {d.key for d in pending}
        replacements: Dict[str, str] = {}
        after: Dict[Optional[str], List[Declaration]] = {}
        before: Dict[str, List[Declaration]] = {}

        for position, declaration in enumerate(ours_decls):
            if declaration.key not in pending_keys:
                continue

            if declaration.key in theirs_index:
                replacements[declaration.key] = declaration.text
                continue

            # Anchor on the nearest preceding declaration the candidate still has
            anchor = None
            for previous in reversed(ours_decls[:position]):
                if previous.key in theirs_index:
                    anchor = previous.key
                    break

            if anchor is not None:
                after.setdefault(anchor, []).append(declaration)
                continue

            following = None
            for nxt in ours_decls[position + 1 :]:
                if nxt.key in theirs_index:
                    following = nxt.key
                    break

            if following is not None:
                before.setdefault(following, []).append(declaration)
            else:
                after.setdefault(None, []).append(declaration)

        return splice(theirs, theirs_decls, replacements, after, before)
