"""Select the declarations needed to define a set of root types.

The closure is computed with a depth-first walk that emits a type after
everything it depends on (post-order). A name is marked as passed when its
walk begins, so mutual dependencies terminate: when ``A`` and ``B`` refer to
each other, whichever is reached first is emitted after the other, and the
other relies on the forward declaration of the first. That ordering is kept
as observed; it is correct for pointer members only.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from dumpheaders.augment import Augmentations
from dumpheaders.ir import Declaration, TypeKind, strip_pointer
from dumpheaders.registry import TypeRegistry

__all__ = ["Closure", "resolve_closure"]


@dataclass
class Closure:
    """The ordered result of dependency resolution for one run.

    :param registry: Registry the closure was resolved against.
    :param roots: Requested root names.
    :param types: Name -> declaration in emission order. A name that was
        requested or referenced but never declared maps to None.
    :param augmentations: Methods and child classes for the structs.
    """

    registry: TypeRegistry
    roots: list[str] = field(default_factory=list)
    types: dict[str, Declaration | None] = field(default_factory=dict)
    augmentations: Augmentations = field(default_factory=Augmentations)

    def declarations(self, *kinds: TypeKind) -> Iterator[Declaration]:
        """Resolved declarations in emission order, optionally filtered by kind."""
        for decl in self.types.values():
            if decl is None:
                continue
            if kinds and decl.kind not in kinds:
                continue
            yield decl

    def missing(self) -> list[str]:
        """Names that resolved to no declaration."""
        return [name for name, decl in self.types.items() if decl is None]

    def index(self, name: str) -> int:
        """Position of a name in emission order.

        :raises ValueError: If the name is not part of the closure.
        """
        return list(self.types).index(name)

    def __contains__(self, name: object) -> bool:
        return name in self.types

    def __len__(self) -> int:
        return len(self.types)


def _depends_of(decl: Declaration | None) -> list[str]:
    if decl is None or decl.kind is TypeKind.ENUM:
        return []
    return decl.depends  # type: ignore[union-attr]


def resolve_closure(registry: TypeRegistry, roots: Iterable[str]) -> Closure:
    """Compute the dependency-first closure of the root types.

    Roots are walked in the order given. Each type is inserted after all of
    its dependencies; a dependency on the type itself is skipped, as is any
    type whose walk has already started.

    :param registry: Declarations of the current run.
    :param roots: Names to emit, e.g. the configured enums then structs.
    :returns: The closure, in emission order.
    """
    closure = Closure(registry, roots=list(roots))
    types = closure.types
    passed: set[str] = set()

    for root in closure.roots:
        name = strip_pointer(root)
        passed.add(name)
        # iterative post-order walk
        stack = [(name, iter(_depends_of(registry.get(name))))]
        while stack:
            current, pending = stack[-1]
            for dep in pending:
                dep = strip_pointer(dep)
                if dep == current or dep in passed or dep in types:
                    continue
                passed.add(dep)
                stack.append((dep, iter(_depends_of(registry.get(dep)))))
                break
            else:
                stack.pop()
                types[current] = registry.get(current)

    return closure
