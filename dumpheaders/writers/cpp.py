"""Render a closure as the three C++ headers.

Every artifact starts with a generated-file banner and ``#pragma once`` and
wraps its declarations in one namespace:

``ghidra.naked.h``
    Forward declarations, so that pointer members can name any struct.
``ghidra.enums.h``
    Enum definitions.
``ghidra.h``
    Includes the two headers above, then the primitive shorthands, the
    typedefs and the struct/union bodies with their methods.

Declarations appear in closure order. Lines end with ``\\r\\n`` unless the
writer is given another ``newline``.
"""

from __future__ import annotations

from dumpheaders.ir import Enum, Struct, TypeKind, Typedef
from dumpheaders.resolver import Closure

__all__ = [
    "BANNER",
    "ENUM_HEADER",
    "MAIN_HEADER",
    "NAKED_HEADER",
    "SHORTHANDS",
    "EnumWriter",
    "MainWriter",
    "NakedWriter",
    "render_enum",
]

BANNER = "// This file is generated, do not edit by hand"

NAKED_HEADER = "ghidra.naked.h"
ENUM_HEADER = "ghidra.enums.h"
MAIN_HEADER = "ghidra.h"

DEFAULT_NAMESPACE = "Ghidra"

# The analysis tool types character buffers as "string" and pointer-sized
# integers as "pointer".
SHORTHANDS: tuple[tuple[str, str], ...] = (
    ("char", "string"),
    ("unsigned int", "pointer"),
)

# Typedef names the target language already defines.
INTRINSIC_TYPEDEFS = frozenset({"bool", "wchar_t"})


class _HeaderWriter:
    """Shared banner, guard and namespace framing."""

    writer_name = ""
    description = ""

    def __init__(self, namespace: str = DEFAULT_NAMESPACE, newline: str = "\r\n") -> None:
        self._namespace = namespace
        self._newline = newline

    def write(self, closure: Closure) -> str:
        lines = [BANNER, "", "#pragma once"]
        lines.extend(self._preamble())
        lines.append(f"namespace {self._namespace} {{")
        lines.extend(self._body(closure))
        lines.append(f"}}; // {self._namespace} namespace")
        return self._newline.join(lines) + self._newline

    def _preamble(self) -> list[str]:
        return []

    def _body(self, closure: Closure) -> list[str]:
        raise NotImplementedError

    @property
    def name(self) -> str:
        return self.writer_name

    @property
    def format_description(self) -> str:
        return self.description


class NakedWriter(_HeaderWriter):
    """Forward declarations of structs, unions and their child classes.

    Example
    -------
    ::

        struct UnitAny;
        struct PlayerUnit;
        union UnitData;
    """

    writer_name = "naked"
    description = "Forward declarations of structs, unions and child classes"

    def _body(self, closure: Closure) -> list[str]:
        lines: list[str] = []
        for decl in closure.declarations(TypeKind.STRUCT, TypeKind.UNION):
            lines.append(f"{decl.keyword} {decl.name};")  # type: ignore[union-attr]
            for child in closure.augmentations.children_of(decl.name):
                lines.append(f"{child.keyword} {child.name};")
        return lines


def render_enum(enum: Enum) -> list[str]:
    """Render one enum as ``typedef enum NAME{ ... }NAME;`` lines."""
    lines = [f"typedef enum {enum.name}{{"]
    last = len(enum.values) - 1
    for i, value in enumerate(enum.values):
        lines.append(f"\t{value}" if i == last else f"\t{value},")
    lines.append(f"}}{enum.name};")
    lines.append("")
    return lines


class EnumWriter(_HeaderWriter):
    """Enum definitions."""

    writer_name = "enums"
    description = "Enum definitions"

    def _body(self, closure: Closure) -> list[str]:
        lines: list[str] = []
        for decl in closure.declarations(TypeKind.ENUM):
            lines.extend(render_enum(decl))  # type: ignore[arg-type]
        return lines


class MainWriter(_HeaderWriter):
    """Typedefs and struct/union bodies with attached methods.

    Options
    -------
    namespace : str
        Namespace wrapping the declarations. Defaults to ``Ghidra``.
    newline : str
        Line ending. Defaults to ``\\r\\n``.
    enum_header, naked_header : str
        File names of the companion headers to include.
    """

    writer_name = "main"
    description = "Typedefs and struct/union bodies with methods"

    def __init__(
        self,
        namespace: str = DEFAULT_NAMESPACE,
        newline: str = "\r\n",
        enum_header: str = ENUM_HEADER,
        naked_header: str = NAKED_HEADER,
    ) -> None:
        super().__init__(namespace, newline)
        self._enum_header = enum_header
        self._naked_header = naked_header

    def _preamble(self) -> list[str]:
        return [
            f'#include "./{self._enum_header}"',
            f'#include "./{self._naked_header}"',
        ]

    def _body(self, closure: Closure) -> list[str]:
        lines = [f"typedef {target} {alias};" for target, alias in SHORTHANDS]
        for decl in closure.declarations(TypeKind.TYPEDEF):
            line = self._typedef_line(decl)  # type: ignore[arg-type]
            if line is not None:
                lines.append(line)
        for decl in closure.declarations(TypeKind.STRUCT, TypeKind.UNION):
            lines.extend(self._struct_lines(decl, closure))  # type: ignore[arg-type]
        return lines

    @staticmethod
    def _typedef_line(typedef: Typedef) -> str | None:
        if typedef.name in INTRINSIC_TYPEDEFS:
            return None
        if typedef.is_function:
            # the alias is already part of the signature
            return f"typedef {typedef.type};"
        return f"typedef {typedef.type} {typedef.name};"

    @staticmethod
    def _struct_lines(struct: Struct, closure: Closure) -> list[str]:
        lines = [f"{struct.keyword} {struct.name}{{"]
        if struct.comment:
            lines.append(f"\t// {struct.comment}")
        for f in struct.fields:
            field_type = f.type
            if closure.registry.get_kind(field_type, TypeKind.ENUM) is not None:
                field_type = f"enum {field_type}"
            parts = [field_type, f"{f.name};"]
            if f.comment:
                parts.append(f.comment)
            lines.append("\t" + " ".join(parts))
        for method in closure.augmentations.methods_for(struct.name):
            lines.append(f"\t{method};")
        lines.append("};")
        lines.append("")
        return lines


# Writers have no external dependencies, so import and registration are
# co-located at the bottom of the module.
from dumpheaders.writers import register_writer  # noqa: E402

register_writer("main", MainWriter)
register_writer("naked", NakedWriter)
register_writer("enums", EnumWriter)
