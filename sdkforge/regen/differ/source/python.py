"""
Python declaration parser built on the standard library ``ast`` module.
"""

import ast
from typing import Iterable, Optional, Tuple

from .declarations import DeclarationParser, SourceParseError


class PythonDeclarationParser(DeclarationParser):
    """Top-level statements of a Python module."""

    comment_prefixes = ("#",)

    @property
    def language_name(self) -> str:
        return "python"

    def spans(self, text: str) -> Iterable[Tuple[Optional[str], str, int, int]]:
        try:
            module = ast.parse(text)
        except (SyntaxError, ValueError) as e:
            raise SourceParseError(f"Python parse error: {e}") from e

        for node in module.body:
            decorators = getattr(node, "decorator_list", [])
            first = min([node.lineno] + [d.lineno for d in decorators])
            yield self._name_of(node), type(node).__name__, first - 1, node.end_lineno

    @staticmethod
    def _name_of(node: ast.stmt) -> Optional[str]:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            return node.name

        if isinstance(node, ast.Assign) and len(node.targets) == 1:
            target = node.targets[0]
            if isinstance(target, ast.Name):
                return target.id

        if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            return node.target.id

        return None
