"""Exceptions raised by dumpheaders.

Parse errors are fatal for a pipeline run and propagate to the caller
unchanged. Missing dependencies and missing augmentation files are not
errors; they are logged and skipped.
"""

from __future__ import annotations

__all__ = [
    "ConfigError",
    "DumpHeadersError",
    "DuplicateTypeError",
    "MalformedDeclarationError",
    "ParseError",
]


class DumpHeadersError(Exception):
    """Base class for all dumpheaders errors."""


class ParseError(DumpHeadersError):
    """The declaration dump could not be turned into a registry."""


class DuplicateTypeError(ParseError):
    """Two declarations claim the same type name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Type {name!r} already exists")
        self.name = name


class MalformedDeclarationError(ParseError):
    """A line does not fit the grammar of the declaration it belongs to.

    :param message: Description of the problem.
    :param line_number: 1-based line in the dump, or None at end of input.
    :param line: The offending line text, if any.
    """

    def __init__(self, message: str, line_number: int | None = None, line: str | None = None) -> None:
        where = f"line {line_number}" if line_number is not None else "end of input"
        text = f"{message} ({where})"
        if line is not None:
            text += f": {line!r}"
        super().__init__(text)
        self.line_number = line_number
        self.line = line


class ConfigError(DumpHeadersError):
    """The configuration document is not valid JSON or has the wrong shape."""
