"""Intermediate Representation for declaration dumps.

The IR is deliberately string-typed: the upstream analysis tool emits a
restricted C-like grammar, and every type expression survives the pipeline
as the text it was written with. Only the information the pipeline needs to
resolve and render declarations is modelled.

Declaration variants
--------------------
:class:`Enum`
    Named integer labels, sorted by value after parsing.
:class:`Typedef`
    An alias for another type, or a function-pointer signature.
:class:`Struct`
    A struct or union body (``is_union`` selects the keyword).

Each variant carries a :class:`TypeKind` tag in ``kind``; pipeline stages
branch on the tag rather than on the Python class.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

__all__ = [
    "INTERNAL_TYPES",
    "ChildClass",
    "Declaration",
    "Enum",
    "EnumValue",
    "Field",
    "Method",
    "Struct",
    "TypeKind",
    "Typedef",
    "strip_pointer",
]

# Primitive names that never produce a dependency edge.
INTERNAL_TYPES: frozenset[str] = frozenset(
    {
        "void",
        "char",
        "unsigned char",
        "short",
        "unsigned short",
        "int",
        "unsigned int",
        "double",
        "float",
        "long",
    }
)


def strip_pointer(type_text: str) -> str:
    """Remove pointer markers from a type, e.g. ``Unit**`` -> ``Unit``."""
    return type_text.replace("*", "").strip()


class TypeKind(enum.Enum):
    """Tag identifying which declaration variant a type is."""

    ENUM = "enum"
    TYPEDEF = "typedef"
    UNION = "union"
    STRUCT = "struct"


# =============================================================================
# Members
# =============================================================================


@dataclass
class Field:
    """A struct or union member.

    :param name: Member name, possibly carrying an array suffix (``buf[16]``).
    :param type: Type text as written in the dump (``Unit*``).
    :param comment: Trailing comment text, ``""`` when absent.
    """

    name: str
    type: str
    comment: str = ""

    def as_tuple(self) -> tuple[str, str, str]:
        """Return the ``(type, name, comment)`` triple."""
        return (self.type, self.name, self.comment)

    def __str__(self) -> str:
        return f"{self.type} {self.name}"


@dataclass
class EnumValue:
    """A single enum label and its integer value."""

    name: str
    value: int

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


# =============================================================================
# Declarations
# =============================================================================


@dataclass
class Enum:
    """Enumeration declaration.

    :param name: Enum name.
    :param values: Labels in emission order.
    """

    name: str
    values: list[EnumValue] = field(default_factory=list)

    @property
    def kind(self) -> TypeKind:
        return TypeKind.ENUM

    def sort_values(self) -> None:
        """Order labels ascending by value; labels with equal values keep input order."""
        self.values.sort(key=lambda v: v.value)

    def __str__(self) -> str:
        return f"enum {self.name}"


@dataclass
class Typedef:
    """Type alias declaration.

    For function-pointer typedefs (``is_function``) the ``type`` text is the
    complete signature with the alias name embedded, e.g.
    ``void (*callback_void1fn)(Unit*)``.

    :param name: Alias name.
    :param type: Underlying type text.
    :param depends: Names of types this alias refers to, without duplicates.
    :param is_function: True for function-pointer signatures.
    """

    name: str
    type: str = ""
    depends: list[str] = field(default_factory=list)
    is_function: bool = False

    @property
    def kind(self) -> TypeKind:
        return TypeKind.TYPEDEF

    def add_dependency(self, name: str) -> None:
        if name not in self.depends:
            self.depends.append(name)

    def __str__(self) -> str:
        return f"typedef {self.name}"


@dataclass
class Struct:
    """Struct or union declaration.

    :param name: Struct name.
    :param fields: Members in declaration order.
    :param depends: Names of non-primitive types referenced by members. May
        contain the struct's own name; the resolver ignores that edge.
    :param comment: Free text captured from the declaration line.
    :param is_union: True for ``union`` declarations.
    """

    name: str
    fields: list[Field] = field(default_factory=list)
    depends: list[str] = field(default_factory=list)
    comment: str = ""
    is_union: bool = False

    @property
    def kind(self) -> TypeKind:
        return TypeKind.UNION if self.is_union else TypeKind.STRUCT

    def add_dependency(self, name: str) -> None:
        if name not in self.depends:
            self.depends.append(name)

    @property
    def keyword(self) -> str:
        return "union" if self.is_union else "struct"

    def __str__(self) -> str:
        return f"{self.keyword} {self.name}"


Declaration = Union[Enum, Typedef, Struct]


# =============================================================================
# Augmentation records
# =============================================================================


@dataclass(frozen=True)
class Method:
    """A method declaration scanned from hand-written source.

    :param struct: Name of the struct the method belongs to.
    :param return_type: Return type text.
    :param name: Method name.
    :param args: Argument list text without the parentheses.
    """

    struct: str
    return_type: str
    name: str
    args: str

    def __str__(self) -> str:
        return f"{self.return_type} {self.name}({self.args})"


@dataclass(frozen=True)
class ChildClass:
    """A user-declared subclass of a dumped struct.

    :param keyword: ``struct`` or ``class``.
    :param name: Derived type name.
    :param visibility: Inheritance visibility (``public`` etc.).
    :param base: Name of the dumped base struct.
    """

    keyword: str
    name: str
    visibility: str
    base: str

    def __str__(self) -> str:
        return f"{self.keyword} {self.name} : {self.visibility} {self.base}"
