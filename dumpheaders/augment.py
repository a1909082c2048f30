"""Method and subclass declarations scanned from hand-written sources.

Two documents live next to the generated headers and are maintained by
hand:

* a C++ source file with out-of-line method definitions such as
  ``int Ghidra::UnitAny::GetHealth(int nIndex) {`` -- every definition whose
  class is a dumped struct becomes a declaration inside that struct's body;
* a header with user subclasses such as
  ``struct PlayerUnit : public Ghidra::UnitAny {`` -- each becomes an extra
  forward declaration.

Both scans are line-oriented and tolerate any content they do not
recognize. A missing file yields no records.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from dumpheaders.ir import ChildClass, Method, TypeKind
from dumpheaders.parser import normalize_line
from dumpheaders.registry import TypeRegistry

__all__ = [
    "Augmentations",
    "collect_augmentations",
    "read_optional",
    "scan_child_classes",
    "scan_methods",
]

logger = logging.getLogger(__name__)

_METHOD_RE = re.compile(
    r"^\s*(?P<ret>[\w*&]+(?:\s+[\w*&]+)*?)\s+"
    r"(?:(?P<namespace>\w+)\s*::\s*)?"
    r"(?P<struct>\w+)\s*::\s*(?P<name>\w+)\s*"
    r"\((?P<args>.*)\)"
)
_CHILD_RE = re.compile(
    r"^\s*(?P<keyword>struct|class)\s+(?P<name>\w+)\s*:\s*"
    r"(?:(?P<visibility>public|protected|private)\s+)?"
    r"(?:\w+\s*::\s*)*(?P<base>\w+)"
)
_NOT_A_RETURN_TYPE = frozenset({"return", "else", "case", "goto", "delete", "throw", "new"})


def scan_methods(code: str) -> list[Method]:
    """Find out-of-line method definitions.

    Recognizes ``RET [NS::]STRUCT::METHOD(ARGS)`` at the start of a line.
    ARGS runs to the last closing parenthesis, so function-pointer
    parameters are kept whole.
    Lines ending in ``;`` are calls or declarations, not definitions, and
    are ignored.

    :param code: C++ source text.
    :returns: Methods in source order.
    """
    methods: list[Method] = []
    for line in code.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("//") or stripped.endswith(";"):
            continue
        m = _METHOD_RE.match(normalize_line(stripped))
        if m is None or m.group("ret").split()[0] in _NOT_A_RETURN_TYPE:
            continue
        methods.append(
            Method(
                struct=m.group("struct"),
                return_type=m.group("ret"),
                name=m.group("name"),
                args=m.group("args").strip(),
            )
        )
    return methods


def scan_child_classes(code: str) -> list[ChildClass]:
    """Find ``struct|class NAME : [VISIBILITY] [NS::]BASE`` declarations.

    Without an explicit visibility, ``struct`` inherits publicly and
    ``class`` privately.
    """
    children: list[ChildClass] = []
    for line in code.splitlines():
        m = _CHILD_RE.match(line)
        if m is None:
            continue
        keyword = m.group("keyword")
        visibility = m.group("visibility") or ("public" if keyword == "struct" else "private")
        children.append(ChildClass(keyword, m.group("name"), visibility, m.group("base")))
    return children


def read_optional(path: str | Path | None) -> str:
    """Read an augmentation source, or return ``""`` if it does not exist."""
    if path is None:
        return ""
    path = Path(path)
    if not path.is_file():
        logger.debug("Augmentation source %s not found, skipping", path)
        return ""
    return path.read_text(encoding="latin-1")


@dataclass
class Augmentations:
    """Side tables of methods and child classes keyed by struct name.

    Built for one pipeline run from that run's registry.
    """

    methods: dict[str, list[Method]] = field(default_factory=dict)
    children: dict[str, list[ChildClass]] = field(default_factory=dict)

    def methods_for(self, struct: str) -> list[Method]:
        return self.methods.get(struct, [])

    def children_of(self, struct: str) -> list[ChildClass]:
        return self.children.get(struct, [])


def collect_augmentations(
    registry: TypeRegistry,
    methods: Iterable[Method] = (),
    children: Iterable[ChildClass] = (),
) -> Augmentations:
    """Attach scanned records to the structs they name.

    Records whose struct is not a dumped struct (unknown name, or an enum,
    typedef or union) are dropped.
    """
    result = Augmentations()
    for method in methods:
        if registry.get_kind(method.struct, TypeKind.STRUCT) is None:
            logger.debug("Dropping method %s of unknown struct %s", method.name, method.struct)
            continue
        result.methods.setdefault(method.struct, []).append(method)
    for child in children:
        if registry.get_kind(child.base, TypeKind.STRUCT) is None:
            logger.debug("Dropping child class %s of unknown struct %s", child.name, child.base)
            continue
        result.children.setdefault(child.base, []).append(child)
    return result
