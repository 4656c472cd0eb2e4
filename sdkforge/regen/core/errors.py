"""Exception hierarchy for the regeneration engine."""


class RegenError(Exception):
    """Base exception for regeneration errors."""

    pass


class SourceParseError(RegenError):
    """A source file could not be parsed into declarations."""

    pass


class StructuredParseError(RegenError):
    """A structured document could not be parsed or is not a mapping."""

    pass


class UnsafePathError(RegenError):
    """A generated path is absolute or escapes the output directory."""

    pass
