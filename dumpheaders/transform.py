"""Rewrite struct members after resolution and before rendering.

Two passes run over the structs of a closure (unions are left alone):

1. **Overrides** replace the type of named members, e.g. to widen a concrete
   subtype into its abstract base pointer.
2. **Compression** collapses runs of unnamed placeholder members
   (``field_0x10``, ``field_0x14``, ...) of one type into a single array
   member. The array covers the same number of elements, so the struct's
   size does not change.

Overrides always run first so that compression sees the final types.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping

from dumpheaders.ir import Field, Struct, TypeKind
from dumpheaders.resolver import Closure

__all__ = [
    "COMPRESSED_COMMENT",
    "apply_overrides",
    "compress_fields",
    "is_placeholder",
    "transform_closure",
]

logger = logging.getLogger(__name__)

COMPRESSED_COMMENT = "// compressed"

# Placeholder names carry no array suffix; an array member is never merged.
_PLACEHOLDER_RE = re.compile(r"^field_\w+$")

Overrides = Mapping[str, Mapping[str, str]]


def is_placeholder(field: Field) -> bool:
    """True for analysis-generated member names such as ``field_0x1c``."""
    return _PLACEHOLDER_RE.match(field.name) is not None


def apply_overrides(structs: Iterable[Struct], overrides: Overrides) -> int:
    """Replace member types named in ``overrides``.

    :param structs: Structs to rewrite in place.
    :param overrides: ``{struct name: {member name: new type}}``.
    :returns: Number of members rewritten.
    """
    count = 0
    for struct in structs:
        table = overrides.get(struct.name)
        if not table:
            continue
        for f in struct.fields:
            if f.name in table:
                logger.debug("Override %s.%s: %s -> %s", struct.name, f.name, f.type, table[f.name])
                f.type = table[f.name]
                count += 1
    return count


def compress_fields(fields: list[Field]) -> list[Field]:
    """Collapse runs of same-typed placeholder members into arrays.

    A run is a maximal sequence of consecutive placeholders sharing one type.
    Runs of two or more become ``TYPE _<i>[<length>]`` with ``i`` counting
    runs from 0; shorter runs are kept as they are.

    ::

        int field_0; int field_4; int field_8;  ->  int _0[3]; // compressed
    """
    result: list[Field] = []
    run: list[Field] = []
    run_index = 0

    def flush() -> None:
        nonlocal run_index
        if len(run) >= 2:
            result.append(Field(f"_{run_index}[{len(run)}]", run[0].type, COMPRESSED_COMMENT))
            run_index += 1
        else:
            result.extend(run)
        run.clear()

    for f in fields:
        if is_placeholder(f):
            if run and run[0].type != f.type:
                flush()
            run.append(f)
        else:
            flush()
            result.append(f)
    flush()
    return result


def transform_closure(closure: Closure, overrides: Overrides | None = None, compress: bool = True) -> None:
    """Apply overrides, then optional compression, to every struct in a closure.

    :param closure: Resolved closure; modified in place.
    :param overrides: Member type overrides, see :func:`apply_overrides`.
    :param compress: Whether to run the compression pass.
    """
    structs = list(closure.declarations(TypeKind.STRUCT))
    if overrides:
        apply_overrides(structs, overrides)
    if not compress:
        return
    for struct in structs:
        before = len(struct.fields)
        struct.fields = compress_fields(struct.fields)
        if len(struct.fields) != before:
            logger.debug("Compressed %s from %d to %d members", struct.name, before, len(struct.fields))
