"""Serialize a resolved closure to JSON.

Useful for inspecting what a configuration selects from a dump, or as input
to custom code generators.
"""

from __future__ import annotations

import json
from typing import Any

from dumpheaders.ir import (
    ChildClass,
    Declaration,
    Enum,
    Field,
    Method,
    Struct,
    Typedef,
)
from dumpheaders.resolver import Closure


def _field_to_dict(f: Field) -> dict[str, Any]:
    """Convert a Field to a dict."""
    d: dict[str, Any] = {"name": f.name, "type": f.type}
    if f.comment:
        d["comment"] = f.comment
    return d


def _method_to_dict(m: Method) -> dict[str, Any]:
    return {"return_type": m.return_type, "name": m.name, "args": m.args}


def _child_to_dict(c: ChildClass) -> dict[str, Any]:
    return {"keyword": c.keyword, "name": c.name, "visibility": c.visibility}


def _decl_to_dict(decl: Declaration, closure: Closure) -> dict[str, Any]:
    """Convert a Declaration to a JSON-serializable dict."""
    if isinstance(decl, Struct):
        d: dict[str, Any] = {
            "kind": decl.kind.value,
            "name": decl.name,
            "fields": [_field_to_dict(f) for f in decl.fields],
        }
        if decl.depends:
            d["depends"] = list(decl.depends)
        if decl.comment:
            d["comment"] = decl.comment
        methods = closure.augmentations.methods_for(decl.name)
        if methods:
            d["methods"] = [_method_to_dict(m) for m in methods]
        children = closure.augmentations.children_of(decl.name)
        if children:
            d["children"] = [_child_to_dict(c) for c in children]
        return d
    elif isinstance(decl, Enum):
        return {
            "kind": "enum",
            "name": decl.name,
            "values": [{"name": v.name, "value": v.value} for v in decl.values],
        }
    elif isinstance(decl, Typedef):
        d = {"kind": "typedef", "name": decl.name, "type": decl.type}
        if decl.depends:
            d["depends"] = list(decl.depends)
        if decl.is_function:
            d["is_function"] = True
        return d
    else:
        return {"kind": "unknown", "repr": repr(decl)}


def closure_to_json_dict(closure: Closure) -> dict[str, Any]:
    """Convert a closure to a JSON-serializable dict (no string encoding).

    :param closure: Resolved closure.
    :returns: Dict with the roots, the declarations in emission order and the
        names that resolved to nothing.
    """
    data: dict[str, Any] = {
        "roots": list(closure.roots),
        "declarations": [_decl_to_dict(d, closure) for d in closure.declarations()],
    }
    missing = closure.missing()
    if missing:
        data["missing"] = missing
    return data


def closure_to_json(closure: Closure, indent: int | None = 2) -> str:
    """Convert a closure to a JSON string.

    :param closure: Resolved closure.
    :param indent: JSON indentation level. None for compact output.
    """
    return json.dumps(closure_to_json_dict(closure), indent=indent)


class JsonWriter:
    """Writer that serializes a closure to JSON.

    Options
    -------
    indent : int | None
        JSON indentation level. Defaults to 2. None for compact output.

    Example
    -------
    ::

        from dumpheaders.writers import get_writer

        writer = get_writer("json", indent=4)
        json_string = writer.write(closure)
    """

    def __init__(self, indent: int | None = 2) -> None:
        self._indent = indent

    def write(self, closure: Closure) -> str:
        """Convert the closure to a JSON string."""
        return closure_to_json(closure, indent=self._indent)

    @property
    def name(self) -> str:
        """Human-readable name of this writer."""
        return "json"

    @property
    def format_description(self) -> str:
        """Short description of the output format."""
        return "JSON dump of the resolved closure for inspection and tooling"


from dumpheaders.writers import register_writer  # noqa: E402

register_writer("json", JsonWriter)
