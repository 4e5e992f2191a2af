"""Tests for the declaration graph and destination model."""

from __future__ import annotations

from pathlib import Path

import pytest

from depslice.graph.node import DeclKey, DeclKind, EdgeKind, decl_key
from depslice.graph.registry import GraphRegistry
from depslice.output.destination import DestinationFile, member_identity
from depslice.parser.models import (
    FieldDecl,
    ImportDecl,
    Initializer,
    MethodDecl,
    Parameter,
    SourceFile,
    TypeDecl,
    TypeRef,
)


def _type(name: str = "Foo", package: str = "com.acme") -> TypeDecl:
    source_file = SourceFile(path=f"{name}.java", package=package)
    decl = TypeDecl(name=name, header=f"public class {name}", source_file=source_file)
    source_file.types.append(decl)
    return decl


def _method(owner: TypeDecl, name: str, arity: int = 0, constructor: bool = False) -> MethodDecl:
    params = [Parameter(name=f"p{i}", type=TypeRef("int")) for i in range(arity)]
    md = MethodDecl(
        name=name,
        parameters=params,
        text=f"    void {name}/{arity}",
        is_constructor=constructor,
        owner=owner,
    )
    (owner.constructors if constructor else owner.methods).append(md)
    return md


def _field(owner: TypeDecl, name: str) -> FieldDecl:
    fd = FieldDecl(names=[name], type=TypeRef("int"), text=f"    int {name};", owner=owner)
    owner.fields.append(fd)
    return fd


class TestDeclKey:
    def test_keys(self):
        foo = _type()
        assert decl_key(foo) == DeclKey("com.acme.Foo", DeclKind.TYPE)
        assert str(decl_key(foo)) == "com.acme.Foo"
        assert str(decl_key(_method(foo, "bar", 2))) == "com.acme.Foo#bar/2"
        assert decl_key(_method(foo, "Foo", 1, constructor=True)).kind == DeclKind.CONSTRUCTOR
        assert str(decl_key(_field(foo, "count"))) == "com.acme.Foo#count"

    def test_overloads_are_distinct(self):
        foo = _type()
        assert decl_key(_method(foo, "bar", 0)) != decl_key(_method(foo, "bar", 1))

    def test_orphan_member(self):
        with pytest.raises(ValueError):
            decl_key(MethodDecl(name="lost"))


class TestGraphRegistry:
    def test_node_dedup(self):
        registry = GraphRegistry()
        foo = _type()
        bar = _method(foo, "bar")

        first, created = registry.node_for(bar)
        again, created_again = registry.node_for(bar)
        assert created and not created_again
        assert first is again
        assert registry.get(first.key) is first

    def test_shared_destination(self):
        registry = GraphRegistry()
        foo = _type()
        bar, _ = registry.node_for(_method(foo, "bar"))
        count, _ = registry.node_for(_field(foo, "count"))
        type_node, _ = registry.node_for(foo)

        assert bar.destination_file is count.destination_file is type_node.destination_file
        assert len(registry.destinations) == 1

    def test_mark_visited_once(self):
        registry = GraphRegistry()
        node, _ = registry.node_for(_method(_type(), "bar"))
        assert registry.mark_visited(node)
        assert not registry.mark_visited(node)
        assert node.visited

    def test_edges(self):
        registry = GraphRegistry()
        foo = _type()
        bar, _ = registry.node_for(_method(foo, "bar"))
        helper, _ = registry.node_for(_method(foo, "helper"))
        count, _ = registry.node_for(_field(foo, "count"))

        registry.add_edge(None, bar, EdgeKind.SEED)
        registry.add_edge(bar, helper, EdgeKind.CALLS)
        registry.add_edge(bar, helper, EdgeKind.CALLS)
        registry.add_edge(helper, count, EdgeKind.FIELD)
        registry.add_edge(helper, helper, EdgeKind.CALLS)

        assert registry.graph.nodes["com.acme.Foo#bar/0"]["seed"]
        assert registry.graph.number_of_edges() == 2
        assert registry.reachable_from(bar.key) == {
            "com.acme.Foo#bar/0",
            "com.acme.Foo#helper/0",
            "com.acme.Foo#count",
        }
        assert registry.reachable_from(DeclKey("x.Y", DeclKind.TYPE)) == set()

    def test_stats(self):
        registry = GraphRegistry()
        foo = _type()
        bar, _ = registry.node_for(_method(foo, "bar"))
        ctor, _ = registry.node_for(_method(foo, "Foo", constructor=True))
        count, _ = registry.node_for(_field(foo, "count"))
        registry.add_edge(bar, count, EdgeKind.FIELD)
        registry.mark_visited(bar)

        stats = registry.get_stats()
        assert stats["total_nodes"] == 3
        assert stats["total_edges"] == 1
        assert stats["methods"] == 2
        assert stats["fields"] == 1
        assert stats["files"] == 1
        assert stats["visited"] == 1
        assert stats["edge_types"] == {"field": 1}

    def test_finalize_orders_files_by_name(self):
        registry = GraphRegistry()
        registry.node_for(_type("Zed"))
        registry.node_for(_type("Alpha", package="org.example"))
        registry.node_for(_type("Alpha"))

        assert list(registry.finalize()) == ["com.acme.Alpha", "com.acme.Zed", "org.example.Alpha"]


class TestDestination:
    def test_member_identity(self):
        foo = _type()
        assert member_identity(_field(foo, "a")) == ("field", "a")
        assert member_identity(_method(foo, "Foo", 2, constructor=True)) == ("constructor", 2)
        assert member_identity(_method(foo, "m", 1)) == ("method", "m", 1)

    def test_no_duplicate_members(self):
        foo = _type()
        dest = DestinationFile(foo).primary_type
        count = _field(foo, "count")

        assert dest.add_member(count)
        assert not dest.add_member(count)
        # Same name, different declaration: first one wins
        assert not dest.add_member(FieldDecl(names=["count"], type=TypeRef("long"), owner=foo))
        assert dest.fields == [count]
        assert dest.has_field("count")

    def test_member_order(self):
        foo = _type()
        dest = DestinationFile(foo)
        for member in [
            _method(foo, "zeta"),
            _field(foo, "b"),
            _method(foo, "alpha", 2),
            _method(foo, "Foo", 1, constructor=True),
            _method(foo, "alpha", 0),
            _field(foo, "a"),
            _method(foo, "Foo", 0, constructor=True),
        ]:
            dest.primary_type.add_member(member)
        dest.sort()

        order = [member_identity(m) for m in dest.primary_type.members]
        assert order == [
            ("field", "a"),
            ("field", "b"),
            ("constructor", 0),
            ("constructor", 1),
            ("method", "alpha", 0),
            ("method", "alpha", 2),
            ("method", "zeta", 0),
        ]

    def test_imports(self):
        foo = _type()
        dest = DestinationFile(foo)
        assert dest.add_import(ImportDecl("java.util.Map"))
        assert dest.add_import(ImportDecl("java.util.List"))
        assert not dest.add_import(ImportDecl("java.util.List"))
        assert not dest.add_import(ImportDecl("com.acme.Foo"))
        assert dest.add_import(ImportDecl("com.acme.Foo.CONSTANT", static=True))
        dest.sort()

        assert list(dest.imports) == [
            "import static com.acme.Foo.CONSTANT;",
            "import java.util.List;",
            "import java.util.Map;",
        ]

    def test_path(self):
        assert DestinationFile(_type()).path == Path("com", "acme", "Foo.java")
        assert DestinationFile(_type(package="")).path == Path("Foo.java")

    def test_render(self):
        foo = _type()
        dest = DestinationFile(foo)
        dest.add_import(ImportDecl("java.util.List"))
        dest.primary_type.add_member(_method(foo, "bar"))
        dest.primary_type.add_member(_field(foo, "count"))
        dest.sort()

        assert dest.render() == (
            "package com.acme;\n"
            "\n"
            "import java.util.List;\n"
            "\n"
            "public class Foo {\n"
            "    int count;\n"
            "\n"
            "    void bar/0\n"
            "}\n"
        )

    def test_render_empty_type(self):
        dest = DestinationFile(_type(package=""))
        assert dest.render() == "public class Foo {\n}\n"

    def test_member_types_share_the_file(self):
        foo = _type()
        inner = TypeDecl(name="Zed", header="static class Zed", indent=4, outer=foo, source_file=foo.source_file)
        other = TypeDecl(name="Alpha", header="enum Alpha", indent=4, outer=foo, source_file=foo.source_file)
        foo.nested_types.extend([inner, other])
        registry = GraphRegistry()

        assert inner.qualified_name == "com.acme.Foo.Zed"
        assert registry.destination_for(inner) is registry.destination_for(foo)

        dest = registry.destination_for(foo)
        dest.type_for(inner).add_member(
            FieldDecl(names=["n"], type=TypeRef("int"), text="        int n;", owner=inner)
        )
        dest.type_for(other)
        dest.primary_type.add_initializer(Initializer(static=True, text="    static {\n    }", owner=foo))
        dest.primary_type.add_member(_field(foo, "count"))
        dest.sort()

        assert dest.render() == (
            "package com.acme;\n"
            "\n"
            "public class Foo {\n"
            "    int count;\n"
            "\n"
            "    static {\n"
            "    }\n"
            "\n"
            "    enum Alpha {\n"
            "    }\n"
            "\n"
            "    static class Zed {\n"
            "        int n;\n"
            "    }\n"
            "}\n"
        )
