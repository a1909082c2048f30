"""Parse a declaration dump into a :class:`~dumpheaders.registry.TypeRegistry`.

The dump is the C-like export of a binary-analysis tool: one declaration
header per line, one member per line, bodies closed by ``};`` (structs and
unions) or ``} NAME;`` (enums). Only that restricted grammar is accepted;
this is not a C parser.

Each line kind has a named rule below (a predicate or a matcher plus an
extractor) so that the grammar's edge cases can be tested one at a time.
:class:`DumpParser` dispatches over those rules with a forward cursor.

Example
-------
::

    from dumpheaders.parser import parse_dump

    registry = parse_dump(open("dump.h", encoding="latin-1").read())
    registry.get("UnitAny")
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from dumpheaders.errors import MalformedDeclarationError
from dumpheaders.ir import (
    INTERNAL_TYPES,
    Enum,
    EnumValue,
    Field,
    Struct,
    Typedef,
    strip_pointer,
)
from dumpheaders.registry import TypeRegistry

__all__ = [
    "DumpParser",
    "FunctionPointerMatch",
    "base_type",
    "is_enum_header",
    "is_forward_declaration",
    "is_function_typedef",
    "is_plain_typedef",
    "is_struct_header",
    "is_union_header",
    "match_function_pointer",
    "normalize_line",
    "normalize_lines",
    "parse_dump",
    "parse_enum_value",
    "parse_field",
    "split_comment",
]

logger = logging.getLogger(__name__)

# Keywords dropped from member declarations.
TAG_KEYWORDS = frozenset({"enum", "struct", "union"})

# Terminator of struct and union bodies.
BODY_END = "};"

VARIABLE_SIZE_COMMENT = "/* variable size */"

_FUNCTION_POINTER_RE = re.compile(
    r"^(?P<ret>[^()]*?)\s*\(\s*\*\s*(?P<name>\w+)\s*\)\s*\((?P<args>.*)\)\s*;?$"
)
_ENUM_VALUE_RE = re.compile(r"^[+-]?\d+$")
_ARRAY_SUFFIX_RE = re.compile(r"\[[^\]]*\]$")
_FLEXIBLE_ARRAY = "[0]"
_NON_WORD_RE = re.compile(r"\W")


# =============================================================================
# Normalization
# =============================================================================


def normalize_line(line: str) -> str:
    """Attach pointer markers to the type and collapse repeated spaces.

    ``Unit *pNext;`` becomes ``Unit* pNext;`` and ``char  **pp;`` becomes
    ``char** pp;``.
    """
    while " *" in line:
        line = line.replace(" *", "* ")
    while "  " in line:
        line = line.replace("  ", " ")
    return line


def normalize_lines(text: str) -> list[str]:
    """Split a dump into normalized lines. ``\\r\\n`` and ``\\n`` both end a line."""
    return [normalize_line(line) for line in re.split(r"\r?\n", text)]


def _repair_comment(text: str) -> str:
    # pointer normalization turns " */" into "* /"
    return text.replace("* /", "*/")


def split_comment(line: str) -> tuple[str, str]:
    """Split a member line into its declaration and trailing ``/* ... */`` comment.

    :returns: ``(declaration, comment)``; comment is ``""`` when absent.
    """
    body, sep, rest = line.partition(" /*")
    if not sep:
        return line.strip(), ""
    return body.strip(), _repair_comment("/*" + rest).strip()


def base_type(type_text: str) -> str:
    """Strip pointer markers, array suffixes and tag keywords from a type."""
    text = _ARRAY_SUFFIX_RE.sub("", strip_pointer(type_text))
    return " ".join(word for word in text.split() if word not in TAG_KEYWORDS and word != "const")


# =============================================================================
# Line rules
# =============================================================================


def is_enum_header(words: list[str]) -> bool:
    """``typedef enum NAME {``"""
    return len(words) >= 3 and words[0] == "typedef" and words[1] == "enum"


def is_union_header(words: list[str]) -> bool:
    """``union NAME {``"""
    return len(words) >= 2 and words[0] == "union"


def is_struct_header(words: list[str]) -> bool:
    """``struct NAME { [comment]``"""
    return len(words) >= 2 and words[0] == "struct"


def is_forward_declaration(words: list[str]) -> bool:
    """``struct NAME;`` or ``union NAME;`` with no body."""
    return len(words) == 2 and words[0] in ("struct", "union") and words[1].endswith(";")


def is_plain_typedef(words: list[str]) -> bool:
    """``typedef TYPE NAME;`` where TYPE is not a struct or union body."""
    return len(words) >= 2 and words[0] == "typedef" and words[1] not in ("struct", "union")


def is_function_typedef(line: str) -> bool:
    """``typedef RET (*NAME)(ARGS);``"""
    return line.startswith("typedef ") and "(*" in line


@dataclass
class FunctionPointerMatch:
    """Pieces of a ``RET (*NAME)(ARGS);`` declaration."""

    return_type: str
    name: str
    args: list[str]

    @property
    def args_text(self) -> str:
        return ", ".join(self.args)


def _strip_leading_tag(arg: str) -> str:
    words = arg.split()
    if words and words[0] in ("struct", "union"):
        words = words[1:]
    return " ".join(words)


def match_function_pointer(text: str) -> FunctionPointerMatch | None:
    """Match a function-pointer declaration, or return None.

    Leading ``struct``/``union`` qualifiers are removed from each argument.
    """
    if "(" not in text:
        return None
    m = _FUNCTION_POINTER_RE.match(text.strip())
    if m is None:
        return None
    args = [_strip_leading_tag(arg.strip()) for arg in m.group("args").split(",")]
    return FunctionPointerMatch(
        return_type=_strip_leading_tag(m.group("ret").strip()),
        name=m.group("name"),
        args=[arg for arg in args if arg],
    )


def _argument_dependency(arg: str) -> str | None:
    words = [w for w in arg.split() if w not in TAG_KEYWORDS and w != "const"]
    if not words or words[0] == "...":
        return None
    if strip_pointer(" ".join(words)) in INTERNAL_TYPES:
        return None
    first = strip_pointer(words[0])
    if not first or first in INTERNAL_TYPES or first in ("signed", "unsigned"):
        return None
    return first


def parse_enum_value(line: str, line_number: int | None = None) -> EnumValue:
    """Parse ``LABEL=VALUE`` (an optional trailing comma is allowed).

    :raises MalformedDeclarationError: If there is no ``=`` or VALUE is not a
        signed decimal integer.
    """
    label, sep, value = line.partition("=")
    if not sep or not label.strip():
        raise MalformedDeclarationError("Expected LABEL=VALUE in enum", line_number, line)
    value = value.strip().rstrip(",").strip()
    if not _ENUM_VALUE_RE.match(value):
        raise MalformedDeclarationError(f"Invalid enum value {value!r}", line_number, line)
    return EnumValue(label.strip(), int(value))


def parse_field(text: str, line_number: int | None = None) -> tuple[str, str]:
    """Split a member declaration (comment already removed) into type and name.

    ``struct Unit* pNext;`` -> ``("Unit*", "pNext")``

    :raises MalformedDeclarationError: If the declaration has no type or is
        not terminated by ``;``.
    """
    text = text.strip()
    if not text.endswith(";"):
        raise MalformedDeclarationError("Expected ';' after member", line_number, text)
    words = [word for word in text[:-1].split() if word not in TAG_KEYWORDS]
    if len(words) < 2:
        raise MalformedDeclarationError("Expected TYPE NAME in member", line_number, text)
    return " ".join(words[:-1]), words[-1]


def _fix_flexible_array(field: Field) -> Field:
    if field.name.endswith(_FLEXIBLE_ARRAY):
        return Field(field.name[: -len(_FLEXIBLE_ARRAY)] + "[1]", field.type, VARIABLE_SIZE_COMMENT)
    if field.type.endswith(_FLEXIBLE_ARRAY):
        return Field(field.name, field.type[: -len(_FLEXIBLE_ARRAY)] + "[1]", VARIABLE_SIZE_COMMENT)
    return field


# =============================================================================
# Parser
# =============================================================================


class DumpParser:
    """Single-use parser turning one dump into a fresh registry.

    The callback ticker numbers synthesized function-pointer typedefs across
    the whole parse, so two members ``void (*fn)(...)`` in different structs
    become ``callback_void1fn`` and ``callback_void2fn``.
    """

    def __init__(self) -> None:
        self.registry = TypeRegistry()
        self._lines: list[str] = []
        self._pos = 0
        self._callback_ticker = 0

    def parse(self, text: str) -> TypeRegistry:
        """Parse the dump text.

        :raises DuplicateTypeError: If a name is declared twice.
        :raises MalformedDeclarationError: If a body is unterminated or a
            member line does not fit the grammar.
        """
        self._lines = normalize_lines(text)
        self._pos = 0

        while not self._at_end():
            line = self._next().strip()
            words = line.split()
            if not words:
                continue
            if is_enum_header(words):
                self._parse_enum(words[2].rstrip("{"))
            elif is_forward_declaration(words):
                continue
            elif is_union_header(words):
                self._parse_union(words[1].rstrip("{"))
            elif is_function_typedef(line):
                self._parse_function_typedef(line)
            elif is_plain_typedef(words):
                self._parse_typedef(words)
            elif is_struct_header(words):
                self._parse_struct(words)

        logger.debug("Parsed %d lines into %r", len(self._lines), self.registry)
        return self.registry

    # -- cursor ---------------------------------------------------------------

    def _at_end(self) -> bool:
        return self._pos >= len(self._lines)

    def _next(self) -> str:
        line = self._lines[self._pos]
        self._pos += 1
        return line

    def _peek(self) -> str:
        return self._lines[self._pos]

    @property
    def _line_number(self) -> int:
        """1-based number of the line most recently consumed."""
        return self._pos

    # -- declarations ---------------------------------------------------------

    def _parse_enum(self, name: str) -> None:
        enum = Enum(name)
        self.registry.add(enum)
        terminator = f"}} {name};"
        while not self._at_end():
            line = self._next().strip()
            if line == terminator:
                break
            if not line:
                continue
            enum.values.append(parse_enum_value(line, self._line_number))
        enum.sort_values()

    def _parse_union(self, name: str) -> None:
        union = Struct(name, is_union=True)
        self.registry.add(union)
        start = self._line_number
        while True:
            if self._at_end():
                raise MalformedDeclarationError(f"union {name} declared on line {start} is never closed")
            line = self._next().strip()
            if line == BODY_END:
                return
            if not line:
                continue
            body, comment = split_comment(line)
            field_type, field_name = parse_field(body, self._line_number)
            self._add_dependency(union, field_type)
            union.fields.append(Field(field_name, field_type, comment))

    def _parse_typedef(self, words: list[str]) -> None:
        name = words[-1].replace(";", "")
        underlying = " ".join(words[1:-1])
        if not underlying:
            raise MalformedDeclarationError("Expected typedef TYPE NAME;", self._line_number, " ".join(words))
        typedef = Typedef(name, underlying)
        if strip_pointer(underlying) not in INTERNAL_TYPES:
            typedef.add_dependency(strip_pointer(underlying))
        self.registry.add(typedef)

    def _parse_function_typedef(self, line: str) -> None:
        match = match_function_pointer(line[len("typedef ") :])
        if match is None:
            raise MalformedDeclarationError("Expected typedef RET (*NAME)(ARGS);", self._line_number, line)
        self._add_function_typedef(match.name, match)

    def _parse_struct(self, words: list[str]) -> None:
        name = words[1].rstrip("{")
        comment = ""
        if len(words) > 4:
            comment = _repair_comment(" ".join(words[4:]))
            comment = comment.removesuffix("*/").strip()
        struct = Struct(name, comment=comment)
        self.registry.add(struct)
        start = self._line_number

        # The terminator stays in the stream; the main loop skips it.
        while True:
            if self._at_end():
                raise MalformedDeclarationError(f"struct {name} declared on line {start} is never closed")
            if self._peek().strip() == BODY_END:
                return
            line = self._next().strip()
            if not line:
                continue
            struct.fields.append(self._parse_struct_field(struct, line))

    def _parse_struct_field(self, struct: Struct, line: str) -> Field:
        body, comment = split_comment(line)
        match = match_function_pointer(body)
        if match is not None:
            self._callback_ticker += 1
            typedef_name = _NON_WORD_RE.sub("", f"callback_{match.return_type}{self._callback_ticker}{match.name}")
            self._add_function_typedef(typedef_name, match)
            field = Field(match.name, typedef_name, comment)
        else:
            field_type, field_name = parse_field(body, self._line_number)
            field = _fix_flexible_array(Field(field_name, field_type, comment))
        self._add_dependency(struct, field.type)
        return field

    # -- helpers --------------------------------------------------------------

    def _add_function_typedef(self, name: str, match: FunctionPointerMatch) -> Typedef:
        typedef = Typedef(name, f"{match.return_type} (*{name})({match.args_text})", is_function=True)
        for arg in match.args:
            dep = _argument_dependency(arg)
            if dep:
                typedef.add_dependency(dep)
        self.registry.add(typedef)
        return typedef

    @staticmethod
    def _add_dependency(struct: Struct, field_type: str) -> None:
        dep = base_type(field_type)
        if dep and dep not in INTERNAL_TYPES:
            struct.add_dependency(dep)


def parse_dump(text: str) -> TypeRegistry:
    """Parse a complete dump into a new registry.

    :param text: Dump contents.
    :returns: Registry holding every declaration in the dump.
    """
    return DumpParser().parse(text)
