"""
Tests for declaration parsing and the source-code differencer.
"""

import pytest

from sdkforge.regen.core.errors import SourceParseError
from sdkforge.regen.differ.source import (
    PythonDeclarationParser,
    SourceDifferencer,
    TypeScriptDeclarationParser,
)
from sdkforge.regen.registry import ParserRegistry

# ── Parsers ──────────────────────────────────────────────────────────


class TestPythonDeclarationParser:
    def test_keys_and_spans(self):
        text = (
            "import os\n"
            "\n"
            "# helper for users\n"
            "@cache\n"
            "def helper():\n"
            "    pass\n"
            "\n"
            "\n"
            "class Client:\n"
            "    pass\n"
            "TIMEOUT: int = 30\n"
        )

        declarations = PythonDeclarationParser().parse(text)

        assert [d.key for d in declarations] == [
            "Import:1",
            "helper",
            "Client",
            "TIMEOUT",
        ]
        helper = declarations[1]
        assert helper.text.startswith("# helper for users\n@cache\n")
        assert helper.gap == "\n"
        assert declarations[2].gap == "\n\n"

    def test_unnamed_statements_keyed_by_position(self):
        declarations = PythonDeclarationParser().parse('print("x")\nprint("x")\n')
        assert [d.key for d in declarations] == ["Expr:1", "Expr:2"]

    def test_statements_on_one_line_coalesce(self):
        declarations = PythonDeclarationParser().parse("a = 1; b = 2\nc = 3\n")
        assert [d.key for d in declarations] == ["a", "c"]
        assert declarations[0].text == "a = 1; b = 2\n"

    def test_syntax_error(self):
        with pytest.raises(SourceParseError):
            PythonDeclarationParser().parse("def broken(:\n")


class TestTypeScriptDeclarationParser:
    def test_named_declarations(self):
        text = (
            'import { Client } from "./client";\n'
            "\n"
            "/** A user. */\n"
            "export interface User {\n"
            "  id: string;\n"
            "}\n"
            "\n"
            "export const DEFAULT_TIMEOUT = 30;\n"
            "\n"
            "export function getUser(id: string): User {\n"
            "  return Client.get(id);\n"
            "}\n"
            "\n"
            "export default Client;\n"
        )

        declarations = TypeScriptDeclarationParser().parse(text)

        assert [d.key for d in declarations][1:] == [
            "User",
            "DEFAULT_TIMEOUT",
            "getUser",
            "default",
        ]
        assert declarations[1].text.startswith("/** A user. */\n")
        assert declarations[3].text.endswith("}\n")

    def test_syntax_error(self):
        with pytest.raises(SourceParseError):
            TypeScriptDeclarationParser().parse("export function (\n")


# ── Merging ──────────────────────────────────────────────────────────

PY_BASE = (
    "import os\n"
    "\n"
    "\n"
    "def get_user(id):\n"
    "    return client.get(id)\n"
    "\n"
    "\n"
    "def list_users():\n"
    "    return client.list()\n"
)

PY_THEIRS = (
    "import os\n"
    "\n"
    "\n"
    "def get_user(id, timeout=None):\n"
    "    return client.get(id, timeout=timeout)\n"
    "\n"
    "\n"
    "def list_users():\n"
    "    return client.list()\n"
    "\n"
    "\n"
    "def delete_user(id):\n"
    "    return client.delete(id)\n"
)


class TestSourceDifferencerPython:
    def test_added_function_is_spliced(self):
        ours = PY_BASE.replace(
            "def list_users():",
            "def my_helper():\n    return 42\n\n\ndef list_users():",
        )

        outcome = SourceDifferencer().merge(PY_BASE, ours, PY_THEIRS, "client.py")

        assert not outcome.had_conflict
        assert outcome.strategy == "source:python"
        assert outcome.content == PY_THEIRS.replace(
            "def list_users():",
            "def my_helper():\n    return 42\n\n\ndef list_users():",
        )

    def test_edited_function_replaces_generated_one(self):
        ours = PY_BASE.replace("return client.list()", "return client.list(limit=10)")

        outcome = SourceDifferencer().merge(PY_BASE, ours, PY_THEIRS, "client.py")

        assert not outcome.had_conflict
        assert "def get_user(id, timeout=None):" in outcome.content
        assert "return client.list(limit=10)" in outcome.content
        assert "def delete_user(id):" in outcome.content

    def test_helper_at_end_of_file(self):
        ours = PY_BASE + "\n\ndef tail():\n    pass\n"

        outcome = SourceDifferencer().merge(PY_BASE, ours, PY_THEIRS, "client.py")

        assert outcome.content.index("def tail") > outcome.content.index("def list_users")
        assert "def delete_user" in outcome.content

    def test_edit_to_reshaped_declaration_conflicts(self):
        ours = PY_BASE.replace("return client.get(id)", "return client.get(id, retries=3)")

        outcome = SourceDifferencer().merge(PY_BASE, ours, PY_THEIRS, "client.py")

        assert outcome.had_conflict
        assert outcome.strategy == "source->text"
        assert "retries=3" in outcome.content
        assert "timeout=timeout" in outcome.content

    def test_same_edit_as_generator_is_not_a_conflict(self):
        ours = PY_BASE.replace(
            "def get_user(id):\n    return client.get(id)",
            "def get_user(id, timeout=None):\n    return client.get(id, timeout=timeout)",
        )
        ours += "\n\ndef extra():\n    pass\n"

        outcome = SourceDifferencer().merge(PY_BASE, ours, PY_THEIRS, "client.py")

        assert not outcome.had_conflict
        assert "def extra():" in outcome.content

    def test_unparsable_working_copy_conflicts(self):
        ours = PY_BASE + "\ndef half_written(:\n"

        outcome = SourceDifferencer().merge(PY_BASE, ours, PY_THEIRS, "client.py")

        assert outcome.had_conflict
        assert outcome.strategy == "source->text"

    def test_deleted_declaration_stays_deleted(self):
        ours = PY_BASE.replace(
            "\n\ndef list_users():\n    return client.list()\n", ""
        )

        outcome = SourceDifferencer().merge(PY_BASE, ours, PY_THEIRS, "client.py")

        assert "def list_users" not in outcome.content
        assert "timeout=None" in outcome.content

    def test_unknown_extension_uses_line_merge(self):
        differencer = SourceDifferencer(registry=ParserRegistry())
        outcome = differencer.merge("a\n", "a\nb\n", "c\n", "x.py")
        assert outcome.strategy == "text"


MIXED_BASE = (
    "import os\n"
    "\n"
    "\n"
    "def a():\n"
    "    return 1\n"
    "\n"
    "\n"
    "def b():\n"
    "    return 2\n"
    "\n"
    "\n"
    "def c():\n"
    "    return 3\n"
    "\n"
    "\n"
    'if __name__ == "__main__":\n'
    "    a()\n"
)

MIXED_THEIRS = MIXED_BASE.replace("return 3", "return 30")


class TestSourceDifferencerMixedEdits:
    def test_deletion_with_edit_stays_deleted(self):
        ours = MIXED_BASE.replace("def b():\n    return 2\n\n\n", "").replace(
            "return 1", "return 10"
        )

        outcome = SourceDifferencer().merge(MIXED_BASE, ours, MIXED_THEIRS, "mod.py")

        assert not outcome.had_conflict
        assert "def b():" not in outcome.content
        assert "return 10" in outcome.content
        assert "return 30" in outcome.content

    def test_standalone_comment_with_edit_survives(self):
        ours = MIXED_BASE.replace(
            "def c():", "# NOTE: keep this section\n\n\ndef c():"
        ).replace("return 1", "return 10")

        outcome = SourceDifferencer().merge(MIXED_BASE, ours, MIXED_THEIRS, "mod.py")

        assert not outcome.had_conflict
        assert "# NOTE: keep this section" in outcome.content
        assert "return 10" in outcome.content
        assert "return 30" in outcome.content

    def test_edited_main_block_replaces_generated_one(self):
        ours = MIXED_BASE.replace("    a()\n", "    a()\n    c()\n")

        outcome = SourceDifferencer().merge(MIXED_BASE, ours, MIXED_THEIRS, "mod.py")

        assert not outcome.had_conflict
        assert outcome.strategy == "source:python"
        assert outcome.content == MIXED_THEIRS.replace("    a()\n", "    a()\n    c()\n")
        assert outcome.content.count("if __name__") == 1

    def test_edited_import_replaces_generated_one(self):
        ours = MIXED_BASE.replace("import os\n", "import os, sys\n")

        outcome = SourceDifferencer().merge(MIXED_BASE, ours, MIXED_THEIRS, "mod.py")

        assert not outcome.had_conflict
        assert outcome.content == MIXED_THEIRS.replace("import os\n", "import os, sys\n")


TS_BASE = (
    'import { Client } from "./client";\n'
    "\n"
    "export function getUser(id: string) {\n"
    "  return Client.get(id);\n"
    "}\n"
)

TS_THEIRS = (
    'import { Client } from "./client";\n'
    "\n"
    "export function getUser(id: string, signal?: AbortSignal) {\n"
    "  return Client.get(id, { signal });\n"
    "}\n"
    "\n"
    "export function listUsers() {\n"
    "  return Client.list();\n"
    "}\n"
)


class TestSourceDifferencerTypeScript:
    def test_added_function_is_spliced(self):
        helper = (
            "\n"
            "// formats a user id\n"
            "export function formatId(id: string): string {\n"
            "  return id.toUpperCase();\n"
            "}\n"
        )
        ours = TS_BASE + helper

        outcome = SourceDifferencer().merge(TS_BASE, ours, TS_THEIRS, "src/users.ts")

        assert not outcome.had_conflict
        assert outcome.strategy == "source:typescript"
        assert "signal?: AbortSignal" in outcome.content
        assert "// formats a user id\nexport function formatId" in outcome.content
        assert outcome.content.index("formatId") < outcome.content.index("listUsers")

    def test_edit_to_reshaped_function_conflicts(self):
        ours = TS_BASE.replace("Client.get(id)", "Client.get(id).then(log)")

        outcome = SourceDifferencer().merge(TS_BASE, ours, TS_THEIRS, "src/users.ts")

        assert outcome.had_conflict
        assert "then(log)" in outcome.content
