"""Graph nodes: one per declaration discovered during the walk."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from depslice.output.destination import DestinationFile, DestinationType
from depslice.parser.models import Declaration, FieldDecl, ImportDecl, MethodDecl, SourceFile, TypeDecl


class DeclKind(str, Enum):
    """Kinds of declarations a graph node can wrap."""

    TYPE = "type"
    FIELD = "field"
    METHOD = "method"
    CONSTRUCTOR = "constructor"


class EdgeKind(str, Enum):
    """Why one declaration pulled in another."""

    SEED = "seed"
    CALLS = "calls"
    CREATES = "creates"
    FIELD = "field"
    TYPE = "type"
    ANNOTATION = "annotation"
    EXTENDS = "extends"
    OVERRIDES = "overrides"
    MEMBER = "member"
    ENCLOSES = "encloses"


@dataclass(frozen=True)
class DeclKey:
    """Identity of a declaration: owner type, kind, and member discriminator."""

    owner: str
    kind: DeclKind
    member: str = ""

    def __str__(self) -> str:
        return f"{self.owner}#{self.member}" if self.member else self.owner


def enclosing_type_of(decl: Declaration) -> TypeDecl:
    if isinstance(decl, TypeDecl):
        return decl
    if decl.owner is None:
        raise ValueError(f"Declaration {decl!r} has no enclosing type")
    return decl.owner


def decl_key(decl: Declaration) -> DeclKey:
    owner = enclosing_type_of(decl).qualified_name
    if isinstance(decl, TypeDecl):
        return DeclKey(owner, DeclKind.TYPE)
    if isinstance(decl, FieldDecl):
        return DeclKey(owner, DeclKind.FIELD, decl.name)
    if isinstance(decl, MethodDecl):
        kind = DeclKind.CONSTRUCTOR if decl.is_constructor else DeclKind.METHOD
        return DeclKey(owner, kind, f"{decl.name}/{decl.arity}")
    raise TypeError(f"Not a declaration: {decl!r}")


class GraphNode:
    """A declaration plus its visitation state and output destination.

    The destination file is shared with every other node of the same
    enclosing type; the node holds a reference to it, never a copy.
    """

    def __init__(self, decl: Declaration, destination: DestinationFile) -> None:
        self.decl = decl
        self.key = decl_key(decl)
        self.enclosing_type = enclosing_type_of(decl)
        self.destination_file = destination
        self.visited = False

    @property
    def kind(self) -> DeclKind:
        return self.key.kind

    @property
    def destination_type(self) -> DestinationType:
        return self.destination_file.type_for(self.enclosing_type)

    @property
    def source_file(self) -> SourceFile | None:
        return self.enclosing_type.source_file

    def add_import(self, imp: ImportDecl) -> bool:
        return self.destination_file.add_import(imp)

    def add_member(self, member: FieldDecl | MethodDecl) -> bool:
        return self.destination_type.add_member(member)

    def __repr__(self) -> str:
        state = "visited" if self.visited else "pending"
        return f"GraphNode({self.key}, {self.kind.value}, {state})"
