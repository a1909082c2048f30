"""Tests for dependency resolution."""

from __future__ import annotations

import pytest

from dumpheaders.ir import Enum, Field, Struct, TypeKind, Typedef
from dumpheaders.parser import parse_dump
from dumpheaders.registry import TypeRegistry
from dumpheaders.resolver import resolve_closure


def _registry(*decls) -> TypeRegistry:
    registry = TypeRegistry()
    for decl in decls:
        registry.add(decl)
    return registry


class TestResolveClosure:
    def test_single_self_referencing_struct(self):
        registry = parse_dump("\r\n".join(["struct Foo {", " int a;", " Foo *next;", "};"]))
        closure = resolve_closure(registry, ["Foo"])
        assert list(closure.types) == ["Foo"]
        foo = closure.types["Foo"]
        assert ("int", "a", "") in [f.as_tuple() for f in foo.fields]
        assert ("Foo*", "next", "") in [f.as_tuple() for f in foo.fields]

    def test_dependencies_come_first(self):
        registry = _registry(
            Struct("A", depends=["B"]),
            Struct("B", depends=["C"]),
            Struct("C"),
        )
        closure = resolve_closure(registry, ["A"])
        assert list(closure.types) == ["C", "B", "A"]

    def test_dependency_order_follows_depends_order(self):
        registry = _registry(Struct("A", depends=["Z", "Y"]), Struct("Y"), Struct("Z"))
        assert list(resolve_closure(registry, ["A"]).types) == ["Z", "Y", "A"]

    def test_shared_dependency_listed_once(self):
        registry = _registry(
            Struct("A", depends=["Shared"]),
            Struct("B", depends=["Shared"]),
            Struct("Shared"),
        )
        closure = resolve_closure(registry, ["A", "B"])
        assert list(closure.types) == ["Shared", "A", "B"]

    def test_mutual_dependency_terminates(self):
        registry = _registry(Struct("A", depends=["B"]), Struct("B", depends=["A"]))
        closure = resolve_closure(registry, ["A"])
        # B is reached from A while A's walk is open, so B comes first
        assert list(closure.types) == ["B", "A"]

    def test_typedef_dependencies_followed(self):
        registry = _registry(
            Struct("Unit", depends=["cb"]),
            Typedef("cb", "void (*cb)(Room*)", depends=["Room"], is_function=True),
            Struct("Room"),
        )
        assert list(resolve_closure(registry, ["Unit"]).types) == ["Room", "cb", "Unit"]

    def test_enum_roots(self):
        registry = _registry(Enum("Color"), Struct("Pixel", depends=["Color"]))
        closure = resolve_closure(registry, ["Color", "Pixel"])
        assert list(closure.types) == ["Color", "Pixel"]

    def test_missing_root_maps_to_none(self):
        closure = resolve_closure(TypeRegistry(), ["Ghost"])
        assert closure.types == {"Ghost": None}
        assert closure.missing() == ["Ghost"]
        assert list(closure.declarations()) == []

    def test_missing_dependency_maps_to_none(self):
        registry = _registry(Struct("A", depends=["Ghost"]))
        closure = resolve_closure(registry, ["A"])
        assert list(closure.types) == ["Ghost", "A"]
        assert closure.missing() == ["Ghost"]

    def test_root_pointer_marker_stripped(self):
        registry = _registry(Struct("A"))
        assert list(resolve_closure(registry, ["A*"]).types) == ["A"]

    def test_repeated_root_keeps_first_position(self):
        registry = _registry(Struct("A", depends=["B"]), Struct("B"))
        closure = resolve_closure(registry, ["A", "B"])
        assert list(closure.types) == ["B", "A"]

    def test_deep_chain_does_not_recurse(self):
        decls = [Struct(f"S{i}", depends=[f"S{i + 1}"]) for i in range(5000)]
        decls.append(Struct("S5000"))
        closure = resolve_closure(_registry(*decls), ["S0"])
        assert len(closure) == 5001
        assert closure.index("S5000") == 0
        assert closure.index("S0") == 5000


class TestClosure:
    def test_sample_order(self, sample_registry, sample_order):
        closure = resolve_closure(sample_registry, ["UnitType", "UnitAny"])
        assert list(closure.types) == sample_order
        assert "Unused" not in closure

    def test_declarations_filtered_by_kind(self, sample_registry):
        closure = resolve_closure(sample_registry, ["UnitType", "UnitAny"])
        structs = [d.name for d in closure.declarations(TypeKind.STRUCT)]
        assert structs == ["Player", "Room", "UnitAny"]
        both = [d.name for d in closure.declarations(TypeKind.STRUCT, TypeKind.UNION)]
        assert both == ["Player", "UnitData", "Room", "UnitAny"]

    def test_index_of_unknown_name(self, sample_registry):
        closure = resolve_closure(sample_registry, ["UnitType"])
        with pytest.raises(ValueError):
            closure.index("UnitAny")

    def test_closure_shares_registry_declarations(self, sample_registry):
        closure = resolve_closure(sample_registry, ["UnitAny"])
        assert closure.types["UnitAny"] is sample_registry.get("UnitAny")
        assert closure.registry is sample_registry

    def test_fields_unaffected_by_resolution(self, sample_registry):
        before = [Field(f.name, f.type, f.comment) for f in sample_registry.get("Player").fields]
        resolve_closure(sample_registry, ["Player"])
        assert sample_registry.get("Player").fields == before
