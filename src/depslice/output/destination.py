"""Pruned output counterparts of source types and files.

A DestinationFile is created once per top-level type and shared by every
graph node whose declaration lives in that type or in one of its member
types, so members found along different paths converge into the same
output.
"""

from __future__ import annotations

from pathlib import Path

from depslice.parser.models import FieldDecl, ImportDecl, Initializer, MethodDecl, TypeDecl

Member = FieldDecl | MethodDecl


def member_identity(member: Member) -> tuple:
    """Fields are unique by name, callables by name and arity."""
    if isinstance(member, FieldDecl):
        return ("field", member.name)
    if member.is_constructor:
        return ("constructor", member.arity)
    return ("method", member.name, member.arity)


class DestinationType:
    """A partial copy of a type that accumulates only the members that are needed."""

    def __init__(self, source: TypeDecl) -> None:
        self.source = source
        self.members: list[Member] = []
        self.initializers: list[Initializer] = []
        self.nested: list[DestinationType] = []
        self.header_resolved = False
        self.initializers_resolved = False
        self._identities: set[tuple] = set()

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def qualified_name(self) -> str:
        return self.source.qualified_name

    def add_member(self, member: Member) -> bool:
        """Insert a member unless one with the same identity is already present."""
        identity = member_identity(member)
        if identity in self._identities:
            return False
        self._identities.add(identity)
        self.members.append(member)
        return True

    def add_initializer(self, initializer: Initializer) -> bool:
        if any(i is initializer for i in self.initializers):
            return False
        self.initializers.append(initializer)
        return True

    def has_field(self, name: str) -> bool:
        return ("field", name) in self._identities

    def nested_type(self, source: TypeDecl) -> DestinationType:
        """The destination of a member type, created on first request."""
        for dest in self.nested:
            if dest.source is source:
                return dest
        dest = DestinationType(source)
        self.nested.append(dest)
        return dest

    @property
    def fields(self) -> list[FieldDecl]:
        return [m for m in self.members if isinstance(m, FieldDecl)]

    @property
    def constructors(self) -> list[MethodDecl]:
        return [m for m in self.members if isinstance(m, MethodDecl) and m.is_constructor]

    @property
    def methods(self) -> list[MethodDecl]:
        return [m for m in self.members if isinstance(m, MethodDecl) and not m.is_constructor]

    def sort_members(self) -> None:
        """Replace the member list with sorted fields, constructors, then sorted methods.

        Initializer blocks keep source order. Member types are ordered by name.
        """
        fields = sorted(self.fields, key=lambda f: f.name)
        constructors = sorted(self.constructors, key=lambda c: c.arity)
        methods = sorted(self.methods, key=lambda m: (m.name, m.arity))
        self.members = fields + constructors + methods
        order = {id(init): i for i, init in enumerate(self.source.initializers)}
        self.initializers.sort(key=lambda init: order.get(id(init), len(order)))
        self.nested.sort(key=lambda d: d.name)
        for dest in self.nested:
            dest.sort_members()

    def render(self) -> str:
        blocks = []
        if self.source.preamble:
            blocks.append(self.source.preamble)
        blocks.extend(m.text for m in self.fields)
        blocks.extend(i.text for i in self.initializers)
        blocks.extend(m.text for m in self.constructors + self.methods)
        blocks.extend(d.render().rstrip("\n") for d in self.nested)

        pad = " " * self.source.indent
        body = "\n\n".join(blocks)
        if not body:
            return f"{pad}{self.source.header} {{\n{pad}}}\n"
        return f"{pad}{self.source.header} {{\n{body}\n{pad}}}\n"


class DestinationFile:
    """The output compilation unit for one top-level type."""

    def __init__(self, source: TypeDecl) -> None:
        self.qualified_name = source.qualified_name
        self.package = source.source_file.package if source.source_file else ""
        self.imports: dict[str, ImportDecl] = {}
        self.types: list[DestinationType] = [DestinationType(source)]

    @property
    def primary_type(self) -> DestinationType:
        return self.types[0]

    def type_for(self, type_decl: TypeDecl) -> DestinationType:
        """The destination of a type in this file, member types included."""
        if type_decl.outer is None:
            return self.primary_type
        return self.type_for(type_decl.outer).nested_type(type_decl)

    @property
    def path(self) -> Path:
        """Path relative to the output source root, e.g. ``com/acme/Foo.java``."""
        parts = self.package.split(".") if self.package else []
        return Path(*parts, f"{self.primary_type.name}.java")

    def add_import(self, imp: ImportDecl) -> bool:
        key = str(imp)
        if key in self.imports or (not imp.static and imp.name == self.qualified_name):
            return False
        self.imports[key] = imp
        return True

    def sort(self) -> None:
        """Sort imports by name and every type's members."""
        self.imports = dict(sorted(self.imports.items(), key=lambda kv: (kv[1].name, kv[0])))
        for dest_type in self.types:
            dest_type.sort_members()

    def render(self) -> str:
        lines = []
        if self.package:
            lines.append(f"package {self.package};")
            lines.append("")
        if self.imports:
            lines.extend(self.imports)
            lines.append("")
        text = "\n".join(lines)
        if text:
            text += "\n"
        return text + "\n".join(t.render() for t in self.types)
