"""
Top-level declaration model shared by the source parsers.

A declaration covers whole lines: its leading comment block, any decorators
and the statement itself. Keys identify a declaration across versions of the
same file: the declared name when there is one (with a "#n" suffix for
repeats), otherwise the statement kind and its position among unnamed
statements of that kind, so an edited import still matches its original.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ...core.errors import SourceParseError


@dataclass
class Declaration:
    """One top-level statement of a source file."""

    key: str
    name: Optional[str]
    kind: str
    start: int  # first line, 0-based, inclusive
    end: int  # last line, exclusive
    text: str
    gap: str = ""  # blank lines directly above, kept for re-insertion


class DeclarationParser(ABC):
    """Splits a source file into top-level declarations."""

    comment_prefixes: Tuple[str, ...] = ()

    @property
    @abstractmethod
    def language_name(self) -> str:
        pass

    @abstractmethod
    def spans(self, text: str) -> Iterable[Tuple[Optional[str], str, int, int]]:
        """
        Yield (name, kind, start_line, end_line) for each top-level statement.

        Lines are 0-based, end exclusive, in file order.

        Raises:
            SourceParseError: If the text does not parse
        """
        pass

    def parse(self, text: str) -> List[Declaration]:
        lines = text.splitlines(keepends=True)
        declarations: List[Declaration] = []
        seen: Dict[str, int] = {}
        previous_end = 0

        for name, kind, start, end in self.spans(text):
            if declarations and start < previous_end:
                # Shares a line with the previous statement
                last = declarations[-1]
                last.end = max(last.end, end)
                last.text = "".join(lines[last.start : last.end])
                previous_end = last.end
                continue

            start = self._attach_comments(lines, start, previous_end)
            gap_start = start
            while gap_start > previous_end and not lines[gap_start - 1].strip():
                gap_start -= 1

            segment = "".join(lines[start:end])
            identity = name if name else f"{kind}:"
            seen[identity] = seen.get(identity, 0) + 1
            if not name:
                key = f"{identity}{seen[identity]}"
            elif seen[identity] == 1:
                key = identity
            else:
                key = f"{identity}#{seen[identity]}"

            declarations.append(
                Declaration(
                    key=key,
                    name=name,
                    kind=kind,
                    start=start,
                    end=end,
                    text=segment,
                    gap="".join(lines[gap_start:start]),
                )
            )
            previous_end = end

        return declarations

    def _attach_comments(self, lines: List[str], start: int, floor: int) -> int:
        """Move start up over a comment block that touches the declaration."""
        if not self.comment_prefixes:
            return start
        while start > floor:
            above = lines[start - 1].strip()
            if not above or not above.startswith(self.comment_prefixes):
                break
            start -= 1
        return start


def index_by_key(declarations: List[Declaration]) -> Dict[str, Declaration]:
    return {declaration.key: declaration for declaration in declarations}


def loose_lines(text: str, declarations: List[Declaration]) -> List[str]:
    """Non-blank lines that belong to no declaration, in file order."""
    lines = text.splitlines()
    covered = set()
    for declaration in declarations:
        covered.update(range(declaration.start, declaration.end))
    return [
        line.strip()
        for number, line in enumerate(lines)
        if number not in covered and line.strip()
    ]


def _ensure_newline(text: str) -> str:
    return text if not text or text.endswith("\n") else text + "\n"


def splice(
    theirs: str,
    theirs_declarations: List[Declaration],
    replacements: Dict[str, str],
    after: Dict[Optional[str], List[Declaration]],
    before: Dict[str, List[Declaration]],
) -> str:
    """
    Rebuild candidate text with custom declarations spliced in.

    Args:
        theirs: Candidate text
        theirs_declarations: Its parsed declarations
        replacements: Candidate key -> working-copy text to use instead
        after: Anchor key -> custom declarations to insert after it
            (key None collects declarations appended at end of file)
        before: Anchor key -> custom declarations to insert before it
    """
    lines = theirs.splitlines(keepends=True)
    out: List[str] = []
    cursor = 0

    def emit(text: str) -> None:
        if out:
            out[-1] = _ensure_newline(out[-1])
        out.append(text)

    for declaration in theirs_declarations:
        if declaration.start > cursor:
            emit("".join(lines[cursor : declaration.start]))

        for custom in before.get(declaration.key, []):
            emit(_ensure_newline(custom.text))
            emit(custom.gap or "\n")

        emit(replacements.get(declaration.key, declaration.text))

        for custom in after.get(declaration.key, []):
            emit(custom.gap or "\n")
            emit(custom.text)

        cursor = declaration.end

    if cursor < len(lines):
        emit("".join(lines[cursor:]))

    for custom in after.get(None, []):
        emit(custom.gap or "\n")
        emit(custom.text)

    result = "".join(out)
    if theirs.endswith("\n"):
        result = _ensure_newline(result)
    return result


__all__ = [
    "Declaration",
    "DeclarationParser",
    "SourceParseError",
    "index_by_key",
    "loose_lines",
    "splice",
]
