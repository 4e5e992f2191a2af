"""Tests for the source index and name resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from depslice.exceptions import IndexingError
from depslice.parser.index import SourceIndex
from depslice.parser.models import MethodCall, NameRef, ObjectCreation, TypeRef

from conftest import make_index


class TestIndexBuild:
    def test_build_from_directory(self, java_project: Path):
        index = SourceIndex.build(java_project / "src" / "main" / "java")
        stats = index.get_stats()
        assert stats["files"] == 16
        assert stats["types"] == 16
        assert stats["parse_errors"] == 0
        assert index.get_type("com.acme.app.Foo") is not None

    def test_build_missing_root(self, tmp_path: Path):
        with pytest.raises(IndexingError):
            SourceIndex.build(tmp_path / "nope")

    def test_duplicate_type_keeps_first(self):
        index = make_index({
            "a/One.java": "package a;\n\npublic class Dup {\n    int first;\n}\n",
            "a/Two.java": "package a;\n\npublic class Dup {\n    int second;\n}\n",
        })
        assert index.get_type("a.Dup").get_field("first") is not None


class TestSeedResolution:
    def test_method(self, index: SourceIndex):
        decl = index.resolve_declaration("com.acme.app.Foo", "bar")
        assert decl.name == "bar"
        assert decl.owner.name == "Foo"

    def test_constructor(self, index: SourceIndex):
        decl = index.resolve_declaration("com.acme.shapes.Square", "Square")
        assert decl.is_constructor
        assert decl.arity == 0

    def test_field(self, index: SourceIndex):
        decl = index.resolve_declaration("com.acme.util.Strings", "EMPTY")
        assert decl.name == "EMPTY"

    def test_missing(self, index: SourceIndex):
        assert index.resolve_declaration("com.acme.app.Foo", "missing") is None
        assert index.resolve_declaration("com.acme.Nope", "bar") is None


class TestNameResolution:
    def test_explicit_import_of_indexed_type(self, index: SourceIndex):
        foo = index.get_type("com.acme.app.Foo")
        [record] = index.find_import_for(foo.source_file, "Widget")
        assert record.import_decl.name == "com.acme.model.Widget"
        assert record.type is index.get_type("com.acme.model.Widget")

    def test_library_import(self, index: SourceIndex):
        controller = index.get_type("com.acme.web.Controller")
        [record] = index.find_import_for(controller.source_file, "Valid")
        assert record.import_decl.name == "javax.validation.Valid"
        assert record.type is None
        assert record.name == "javax.validation.Valid"

    def test_same_package_needs_no_import(self, index: SourceIndex):
        controller = index.get_type("com.acme.web.Controller")
        [record] = index.find_import_for(controller.source_file, "A")
        assert record.import_decl is None
        assert record.type.qualified_name == "com.acme.web.A"

    def test_unknown_name(self, index: SourceIndex):
        foo = index.get_type("com.acme.app.Foo")
        assert index.find_import_for(foo.source_file, "String") == []

    def test_generic_type_resolves_arguments(self, index: SourceIndex):
        foo = index.get_type("com.acme.app.Foo")
        ref = TypeRef("List", arguments=[TypeRef("Widget")])
        names = [r.name for r in index.find_import_for(foo.source_file, ref)]
        assert names == ["java.util.List", "com.acme.model.Widget"]

    def test_static_import(self, index: SourceIndex):
        report = index.get_type("com.acme.app.Report")
        [record] = index.find_import_for(report.source_file, "lower")
        assert record.import_decl.static
        assert record.owner is index.get_type("com.acme.util.Strings")
        assert record.field is None

    def test_asterisk_import(self):
        index = make_index({
            "a/Widget.java": "package a;\n\npublic class Widget {\n}\n",
            "b/User.java": "package b;\n\nimport a.*;\n\npublic class User {\n}\n",
        })
        user = index.get_type("b.User")
        [record] = index.find_import_for(user.source_file, "Widget")
        assert record.import_decl.asterisk
        assert record.type.qualified_name == "a.Widget"

    def test_static_asterisk_import_field(self):
        index = make_index({
            "a/Limits.java": "package a;\n\npublic class Limits {\n    public static final int MAX = 3;\n}\n",
            "b/User.java": "package b;\n\nimport static a.Limits.*;\n\npublic class User {\n}\n",
        })
        user = index.get_type("b.User")
        [record] = index.find_import_for(user.source_file, "MAX")
        assert record.field.name == "MAX"

    def test_member_types(self):
        index = make_index({
            "a/Outer.java": (
                "package a;\n\npublic class Outer {\n"
                "    public static class Inner {\n    }\n\n"
                "    Inner make() {\n        return null;\n    }\n}\n"
            ),
            "b/User.java": "package b;\n\nimport a.Outer;\n\npublic class User {\n}\n",
            "c/Direct.java": "package c;\n\nimport a.Outer.Inner;\n\npublic class Direct {\n}\n",
        })
        assert index.get_stats()["types"] == 4
        inner = index.get_type("a.Outer.Inner")
        outer = index.get_type("a.Outer")

        [same_file] = index.find_import_for(outer.source_file, "Inner")
        assert same_file.import_decl is None
        assert same_file.type is inner

        user = index.get_type("b.User")
        [record] = index.find_import_for(user.source_file, "Outer.Inner")
        assert record.import_decl.name == "a.Outer"
        assert record.type is inner
        assert index.find_type(user.source_file, "Inner") is None

        direct = index.get_type("c.Direct")
        assert index.find_type(direct.source_file, "Inner") is inner

    def test_fully_qualified_name(self, index: SourceIndex):
        service = index.get_type("com.acme.app.Service")
        assert index.find_fully_qualified_name(service.source_file, "Repository") == "com.acme.app.Repository"
        assert index.find_type(service.source_file, "com.acme.model.Widget").name == "Widget"
        assert index.find_type(service.source_file, "Widget") is None


class TestMemberLookup:
    def test_find_method_by_arity(self, index: SourceIndex):
        widget = index.get_type("com.acme.model.Widget")
        assert index.find_method(widget, "resize", 1).name == "resize"
        assert index.find_method(widget, "resize", 2) is None

    def test_find_method_declaration(self, index: SourceIndex):
        foo = index.get_type("com.acme.app.Foo")
        call = MethodCall(name="label", arguments=[NameRef("x")])
        assert index.find_method_declaration(call, foo).name == "label"

    def test_varargs(self):
        index = make_index({
            "a/Log.java": (
                "package a;\n\npublic class Log {\n"
                "    public void log(String f, Object... args) {\n    }\n\n"
                "    public void log(String f) {\n    }\n}\n"
            ),
        })
        log = index.get_type("a.Log")
        assert not index.find_method(log, "log", 1).is_varargs
        assert index.find_method(log, "log", 3).is_varargs
        assert index.find_method(log, "log", 2).is_varargs

    def test_inherited_field(self, index: SourceIndex):
        square = index.get_type("com.acme.shapes.Square")
        corners = index.find_field(square, "corners")
        assert corners.owner.name == "Base"

    def test_hierarchy(self, index: SourceIndex):
        circle = index.get_type("com.acme.shapes.Circle")
        assert [t.name for t in index.supertypes_of(circle)] == ["Shape"]
        assert index.superclass_of(circle) is None
        assert index.find_method(circle, "describe", 0).owner.name == "Circle"

    def test_constructor_by_arity(self, index: SourceIndex):
        widget = index.get_type("com.acme.model.Widget")
        ctor = index.find_constructor_declaration(ObjectCreation(type=TypeRef("Widget")), widget)
        assert ctor.arity == 0
