"""Tests for method and child-class scanning."""

from __future__ import annotations

import logging

from dumpheaders.augment import (
    Augmentations,
    collect_augmentations,
    read_optional,
    scan_child_classes,
    scan_methods,
)
from dumpheaders.ir import ChildClass, Enum, Method, Struct
from dumpheaders.registry import TypeRegistry


class TestScanMethods:
    def test_namespaced_definition(self):
        methods = scan_methods("int Ghidra::UnitAny::GetHealth(int nIndex) {")
        assert methods == [Method("UnitAny", "int", "GetHealth", "int nIndex")]

    def test_definition_without_namespace(self):
        methods = scan_methods("void Room::Reveal() {")
        assert methods == [Method("Room", "void", "Reveal", "")]

    def test_multi_word_and_pointer_return_types(self):
        code = "\n".join(
            [
                "unsigned int Ghidra::Room::Count() {",
                "Unit *Ghidra::Room::First(int a, char *b) {",
            ]
        )
        methods = scan_methods(code)
        assert [(m.return_type, m.name) for m in methods] == [("unsigned int", "Count"), ("Unit*", "First")]
        assert methods[1].args == "int a, char* b"

    def test_statements_ignored(self):
        code = "\n".join(
            [
                "    return Ghidra::UnitAny::Other(nIndex);",
                "    int n = Ghidra::UnitAny::Other(1);",
                "// int Ghidra::UnitAny::Commented() {",
                "",
                "}",
                "else Ghidra::UnitAny::Other(2)",
            ]
        )
        assert scan_methods(code) == []

    def test_source_order_kept(self, methods_source):
        names = [(m.struct, m.name) for m in scan_methods(methods_source)]
        assert names == [("UnitAny", "GetHealth"), ("Unused", "Touch"), ("Missing", "Nope")]

    def test_function_pointer_parameter(self):
        methods = scan_methods("void Ghidra::UnitAny::ForEach(void (*cb)(UnitAny*), int n) {")
        assert [m.name for m in methods] == ["ForEach"]
        assert methods[0].args == "void (*cb)(UnitAny*), int n"
        assert str(methods[0]) == "void ForEach(void (*cb)(UnitAny*), int n)"

    def test_crlf_input(self):
        assert len(scan_methods("void A::f() {\r\nvoid A::g() {\r\n")) == 2


class TestScanChildClasses:
    def test_struct_defaults_to_public(self):
        assert scan_child_classes("struct PlayerUnit : Ghidra::UnitAny {") == [
            ChildClass("struct", "PlayerUnit", "public", "UnitAny")
        ]

    def test_class_defaults_to_private(self):
        assert scan_child_classes("class Helper : Room {") == [ChildClass("class", "Helper", "private", "Room")]

    def test_explicit_visibility(self):
        children = scan_child_classes("class Cache : protected Outer::Inner::Room {")
        assert children == [ChildClass("class", "Cache", "protected", "Room")]

    def test_plain_declarations_ignored(self):
        code = "\n".join(["struct Plain {", "namespace Ghidra {", "struct Fwd;", "int x : 3;"])
        assert scan_child_classes(code) == []

    def test_sample(self, extensions_source):
        children = scan_child_classes(extensions_source)
        assert [(c.name, c.base) for c in children] == [
            ("PlayerUnit", "UnitAny"),
            ("Helper", "Room"),
            ("Orphan", "Nothing"),
        ]


class TestReadOptional:
    def test_none(self):
        assert read_optional(None) == ""

    def test_missing_file_is_empty(self, tmp_path, caplog):
        with caplog.at_level(logging.DEBUG, logger="dumpheaders.augment"):
            assert read_optional(tmp_path / "nope.cpp") == ""
        assert "not found" in caplog.text

    def test_reads_latin1(self, tmp_path):
        path = tmp_path / "ext.h"
        path.write_bytes("// caf\xe9\n".encode("latin-1"))
        assert read_optional(path) == "// caf\xe9\n"


class TestCollectAugmentations:
    def setup_method(self):
        self.registry = TypeRegistry()
        self.registry.add(Struct("Unit"))
        self.registry.add(Struct("Data", is_union=True))
        self.registry.add(Enum("Color"))

    def test_methods_grouped_by_struct(self):
        methods = [Method("Unit", "int", "a", ""), Method("Unit", "void", "b", "int x")]
        result = collect_augmentations(self.registry, methods=methods)
        assert result.methods_for("Unit") == methods
        assert result.methods_for("Other") == []

    def test_non_struct_targets_dropped(self):
        methods = [
            Method("Data", "int", "a", ""),
            Method("Color", "int", "b", ""),
            Method("Ghost", "int", "c", ""),
        ]
        children = [ChildClass("struct", "X", "public", "Data"), ChildClass("struct", "Y", "public", "Ghost")]
        result = collect_augmentations(self.registry, methods, children)
        assert result.methods == {}
        assert result.children == {}

    def test_children_grouped_by_base(self):
        children = [ChildClass("struct", "A", "public", "Unit"), ChildClass("class", "B", "private", "Unit")]
        result = collect_augmentations(self.registry, children=children)
        assert [c.name for c in result.children_of("Unit")] == ["A", "B"]

    def test_sample(self, sample_registry, methods_source, extensions_source):
        result = collect_augmentations(
            sample_registry, scan_methods(methods_source), scan_child_classes(extensions_source)
        )
        assert sorted(result.methods) == ["UnitAny", "Unused"]
        assert sorted(result.children) == ["Room", "UnitAny"]

    def test_empty_default(self):
        assert Augmentations().children_of("Unit") == []
