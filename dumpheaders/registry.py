"""Name-keyed store of every declaration parsed from one dump.

A :class:`TypeRegistry` is created fresh for each pipeline run and owned by
that run; nothing is shared between runs.
"""

from __future__ import annotations

from collections.abc import Iterator

from dumpheaders.errors import DuplicateTypeError
from dumpheaders.ir import Declaration, TypeKind, strip_pointer

__all__ = ["TypeRegistry"]


class TypeRegistry:
    """Declarations by unique name, with an index of names per kind.

    Example
    -------
    ::

        registry = TypeRegistry()
        registry.add(Struct("Unit"))
        registry.get("Unit*")  # -> Struct("Unit")
        registry.names(TypeKind.STRUCT)  # -> ["Unit"]
    """

    def __init__(self) -> None:
        self._types: dict[str, Declaration] = {}
        self._by_kind: dict[TypeKind, list[str]] = {kind: [] for kind in TypeKind}

    def add(self, decl: Declaration) -> Declaration:
        """Register a declaration.

        :raises DuplicateTypeError: If any declaration already uses the name.
        """
        if decl.name in self._types:
            raise DuplicateTypeError(decl.name)
        self._types[decl.name] = decl
        self._by_kind[decl.kind].append(decl.name)
        return decl

    def get(self, name: str) -> Declaration | None:
        """Look up a declaration by name, ignoring pointer markers."""
        return self._types.get(strip_pointer(name))

    def get_kind(self, name: str, kind: TypeKind) -> Declaration | None:
        """Look up a declaration only if it has the given kind."""
        decl = self.get(name)
        if decl is None or decl.kind is not kind:
            return None
        return decl

    def names(self, kind: TypeKind) -> list[str]:
        """Names of all declarations of one kind, in registration order."""
        return list(self._by_kind[kind])

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and strip_pointer(name) in self._types

    def __iter__(self) -> Iterator[Declaration]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        counts = ", ".join(f"{kind.value}={len(names)}" for kind, names in self._by_kind.items())
        return f"TypeRegistry({counts})"
