"""
Declaration parser registry.

Maps source languages, and the file extensions that select them, to the
parser classes the source-code differencer uses.
"""

import threading
from typing import Dict, Type, Optional, Any, List

from .differ.source.declarations import DeclarationParser


class RegistryError(Exception):
    """Exception raised for registry-related errors."""

    pass


class ParserRegistry:
    """Registry for declaration parsers keyed by language and extension."""

    def __init__(self):
        self._parsers: Dict[str, Type[DeclarationParser]] = {}
        self._extensions: Dict[str, str] = {}
        self._instances: Dict[str, DeclarationParser] = {}
        self._lock = threading.Lock()

    def register(
        self,
        language: str,
        parser_class: Type[DeclarationParser],
        extensions: Optional[List[str]] = None,
        replace: bool = False,
    ):
        """
        Register a parser for a language.

        Args:
            language: Language name (e.g., 'python', 'typescript')
            parser_class: Class implementing DeclarationParser
            extensions: File extensions handled by this parser ('.py', ...)
            replace: If True, replace existing registration. If False, skip if exists.

        Raises:
            RegistryError: If the class is invalid or an extension is taken
        """
        if not issubclass(parser_class, DeclarationParser):
            raise RegistryError("Parser class must inherit from DeclarationParser")

        language_key = language.lower()

        if language_key in self._parsers and not replace:
            return

        self._parsers[language_key] = parser_class
        self._instances.pop(language_key, None)

        for extension in extensions or []:
            extension_key = extension.lower()
            if not extension_key.startswith("."):
                extension_key = f".{extension_key}"

            current = self._extensions.get(extension_key)
            if current and current != language_key and not replace:
                raise RegistryError(
                    f"Extension '{extension_key}' already handled by '{current}'"
                )
            self._extensions[extension_key] = language_key

    def unregister(self, language: str):
        """Remove a parser and the extensions pointing to it."""
        language_key = language.lower()

        self._parsers.pop(language_key, None)
        self._instances.pop(language_key, None)

        for extension in [e for e, lang in self._extensions.items() if lang == language_key]:
            del self._extensions[extension]

    def language_for_extension(self, extension: str) -> str:
        extension_key = extension.lower()
        if extension_key not in self._extensions:
            raise RegistryError(
                f"No parser registered for extension: {extension}. "
                f"Available: {', '.join(sorted(self._extensions))}"
            )
        return self._extensions[extension_key]

    def get_parser(self, language_or_extension: str) -> DeclarationParser:
        """
        Get a (shared) parser instance.

        Args:
            language_or_extension: 'typescript' or '.ts'

        Raises:
            RegistryError: If nothing is registered
        """
        key = language_or_extension.lower()
        if key.startswith("."):
            key = self.language_for_extension(key)

        if key not in self._parsers:
            raise RegistryError(
                f"No parser registered for language: {language_or_extension}. "
                f"Available: {', '.join(self.list_languages())}"
            )

        with self._lock:
            if key not in self._instances:
                self._instances[key] = self._parsers[key]()
            return self._instances[key]

    def list_languages(self) -> List[str]:
        return sorted(self._parsers.keys())

    def get_extensions_for_language(self, language: str) -> List[str]:
        language_key = language.lower()
        return sorted(e for e, lang in self._extensions.items() if lang == language_key)

    def is_supported(self, extension: str) -> bool:
        return extension.lower() in self._extensions

    def get_language_info(self, language: str) -> Dict[str, Any]:
        language_key = language.lower()
        if language_key not in self._parsers:
            raise RegistryError(f"No parser registered for language: {language}")

        parser_class = self._parsers[language_key]
        return {
            "name": language_key,
            "class": parser_class.__name__,
            "extensions": self.get_extensions_for_language(language_key),
            "module": parser_class.__module__,
        }


_global_registry: Optional[ParserRegistry] = None
_global_registry_lock = threading.Lock()


def get_registry() -> ParserRegistry:
    """Get the global parser registry, initializing if needed.

    Safe to call from worker threads; the registry is built exactly once.
    """
    global _global_registry
    if _global_registry is None:
        with _global_registry_lock:
            if _global_registry is None:
                registry = ParserRegistry()
                _auto_register_parsers(registry)
                _global_registry = registry
    return _global_registry


def _auto_register_parsers(registry: ParserRegistry):
    """Register the built-in parsers with their extensions."""
    from .differ.source.python import PythonDeclarationParser
    from .differ.source.typescript import (
        JavaScriptDeclarationParser,
        TsxDeclarationParser,
        TypeScriptDeclarationParser,
    )

    registry.register("python", PythonDeclarationParser, extensions=[".py", ".pyi"])
    registry.register(
        "typescript", TypeScriptDeclarationParser, extensions=[".ts", ".mts", ".cts"]
    )
    registry.register("tsx", TsxDeclarationParser, extensions=[".tsx"])
    registry.register(
        "javascript",
        JavaScriptDeclarationParser,
        extensions=[".js", ".jsx", ".mjs", ".cjs"],
    )


def register_parser(
    language: str,
    parser_class: Type[DeclarationParser],
    extensions: Optional[List[str]] = None,
):
    """Register a parser in the global registry."""
    get_registry().register(language, parser_class, extensions)


def get_parser(language_or_extension: str) -> DeclarationParser:
    """Get a parser from the global registry."""
    return get_registry().get_parser(language_or_extension)


def list_all_parser_info() -> Dict[str, Dict[str, Any]]:
    """Information about every registered parser."""
    registry = get_registry()
    return {
        language: registry.get_language_info(language)
        for language in registry.list_languages()
    }
