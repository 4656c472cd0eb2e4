"""
TypeScript and JavaScript declaration parsers built on tree-sitter.

Tree-sitter recovers from syntax errors instead of raising, so a tree that
contains ERROR or MISSING nodes is treated as a parse failure.
"""

from typing import Iterable, Optional, Tuple

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .declarations import DeclarationParser, SourceParseError

NAMED_DECLARATIONS = {
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "module",
    "internal_module",
}

VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}

SKIPPED_NODES = {"comment", "hash_bang_line"}


class TreeSitterDeclarationParser(DeclarationParser):
    """Shared tree-sitter traversal; subclasses pick the grammar."""

    comment_prefixes = ("//", "/*", "*", "*/")

    _language: Optional[Language] = None

    @classmethod
    def grammar(cls):
        """Return the grammar capsule from the tree-sitter language package."""
        raise NotImplementedError

    @classmethod
    def language(cls) -> Language:
        if cls.__dict__.get("_language") is None:
            cls._language = Language(cls.grammar())
        return cls._language

    def spans(self, text: str) -> Iterable[Tuple[Optional[str], str, int, int]]:
        source = text.encode("utf-8")
        tree = Parser(self.language()).parse(source)
        root = tree.root_node

        if root.has_error:
            raise SourceParseError(f"{self.language_name} parse error")

        for child in root.named_children:
            if child.type in SKIPPED_NODES:
                continue
            start_row = child.start_point[0]
            end_row, end_column = child.end_point[0], child.end_point[1]
            end = end_row if end_column == 0 and end_row > start_row else end_row + 1
            yield self._name_of(child, source), child.type, start_row, end

    def _name_of(self, node: Node, source: bytes) -> Optional[str]:
        if node.type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is not None:
                return self._name_of(declaration, source)
            if any(child.type == "default" for child in node.children):
                return "default"
            return None

        if node.type == "ambient_declaration":
            for child in node.named_children:
                name = self._name_of(child, source)
                if name:
                    return name
            return None

        if node.type in NAMED_DECLARATIONS:
            return _field_text(node, "name", source)

        if node.type in VARIABLE_DECLARATIONS:
            for child in node.named_children:
                if child.type == "variable_declarator":
                    return _field_text(child, "name", source)

        return None


def _field_text(node: Node, field_name: str, source: bytes) -> Optional[str]:
    child = node.child_by_field_name(field_name)
    if child is None:
        return None
    return source[child.start_byte : child.end_byte].decode("utf-8")


class TypeScriptDeclarationParser(TreeSitterDeclarationParser):
    @property
    def language_name(self) -> str:
        return "typescript"

    @classmethod
    def grammar(cls):
        return tree_sitter_typescript.language_typescript()


class TsxDeclarationParser(TreeSitterDeclarationParser):
    @property
    def language_name(self) -> str:
        return "tsx"

    @classmethod
    def grammar(cls):
        return tree_sitter_typescript.language_tsx()


class JavaScriptDeclarationParser(TreeSitterDeclarationParser):
    @property
    def language_name(self) -> str:
        return "javascript"

    @classmethod
    def grammar(cls):
        return tree_sitter_javascript.language()
