"""
Tests for the declaration parser registry.
"""

import time

import pytest

from sdkforge.regen.differ.source import (
    JavaScriptDeclarationParser,
    PythonDeclarationParser,
    TypeScriptDeclarationParser,
)
from sdkforge.regen.registry import (
    ParserRegistry,
    RegistryError,
    get_registry,
    list_all_parser_info,
)


class TestParserRegistry:
    def test_register_and_lookup(self):
        registry = ParserRegistry()
        registry.register("python", PythonDeclarationParser, extensions=["py", ".PYI"])

        assert registry.language_for_extension(".pyi") == "python"
        assert isinstance(registry.get_parser(".py"), PythonDeclarationParser)
        assert registry.get_parser("python") is registry.get_parser(".py")

    def test_rejects_non_parser(self):
        with pytest.raises(RegistryError):
            ParserRegistry().register("x", dict)

    def test_extension_clash(self):
        registry = ParserRegistry()
        registry.register("typescript", TypeScriptDeclarationParser, extensions=[".ts"])
        with pytest.raises(RegistryError):
            registry.register("other", JavaScriptDeclarationParser, extensions=[".ts"])

    def test_replace(self):
        registry = ParserRegistry()
        registry.register("js", TypeScriptDeclarationParser, extensions=[".js"])
        registry.register(
            "js", JavaScriptDeclarationParser, extensions=[".js"], replace=True
        )
        assert isinstance(registry.get_parser(".js"), JavaScriptDeclarationParser)

    def test_unregister(self):
        registry = ParserRegistry()
        registry.register("python", PythonDeclarationParser, extensions=[".py"])
        registry.unregister("python")
        assert not registry.is_supported(".py")
        with pytest.raises(RegistryError):
            registry.get_parser("python")

    def test_unknown_extension(self):
        with pytest.raises(RegistryError):
            ParserRegistry().get_parser(".rs")


class TestGlobalRegistry:
    def test_builtin_languages(self):
        assert get_registry().list_languages() == [
            "javascript",
            "python",
            "tsx",
            "typescript",
        ]

    def test_every_source_extension_has_a_parser(self):
        from sdkforge.regen.core.families import EXTENSION_FAMILIES, ContentFamily

        registry = get_registry()
        for extension, family in EXTENSION_FAMILIES.items():
            if family == ContentFamily.SOURCE_CODE:
                assert registry.is_supported(extension), extension

    def test_info(self):
        info = list_all_parser_info()["typescript"]
        assert info["class"] == "TypeScriptDeclarationParser"
        assert info["extensions"] == [".cts", ".mts", ".ts"]

    def test_built_once_across_threads(self, monkeypatch):
        from concurrent.futures import ThreadPoolExecutor

        from sdkforge.regen import registry as registry_module

        calls = []
        register = registry_module._auto_register_parsers

        def slow_register(registry):
            calls.append(registry)
            time.sleep(0.05)
            register(registry)

        monkeypatch.setattr(registry_module, "_global_registry", None)
        monkeypatch.setattr(registry_module, "_auto_register_parsers", slow_register)

        with ThreadPoolExecutor(max_workers=8) as pool:
            registries = list(pool.map(lambda _: get_registry(), range(8)))

        assert len(calls) == 1
        assert all(r is registries[0] for r in registries)
