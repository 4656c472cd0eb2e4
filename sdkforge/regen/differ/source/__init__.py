"""
Source-code family: declaration parsers and the splicing differencer.
"""

from .declarations import Declaration, DeclarationParser, index_by_key, splice
from .differencer import SourceDifferencer
from .python import PythonDeclarationParser
from .typescript import (
    JavaScriptDeclarationParser,
    TreeSitterDeclarationParser,
    TsxDeclarationParser,
    TypeScriptDeclarationParser,
)

__all__ = [
    "Declaration",
    "DeclarationParser",
    "index_by_key",
    "splice",
    "SourceDifferencer",
    "PythonDeclarationParser",
    "TreeSitterDeclarationParser",
    "TypeScriptDeclarationParser",
    "TsxDeclarationParser",
    "JavaScriptDeclarationParser",
]
