"""Dependency solver: iterative depth-first walk over the declaration graph."""

from __future__ import annotations

import logging
from typing import Iterable

from depslice.config import parse_seed
from depslice.exceptions import DepsolverError, DepSliceError
from depslice.graph.node import DeclKind, EdgeKind, GraphNode
from depslice.graph.registry import GraphRegistry
from depslice.output.destination import DestinationFile
from depslice.parser.index import ImportRecord, SourceIndex
from depslice.parser.models import Annotation, Declaration, Parameter, TypeRef
from depslice.solver.visitors import TraversalContext, visit_body, visit_member

logger = logging.getLogger("depslice.solver")


class DepSolver:
    """Computes the closure of declarations reachable from a set of seeds.

    The worklist is an explicit stack. A node is scanned the first time it
    is popped and never again, so reference cycles terminate.
    """

    def __init__(self, index: SourceIndex, registry: GraphRegistry | None = None) -> None:
        self.index = index
        self.registry = registry or GraphRegistry()
        self.stack: list[GraphNode] = []
        self.unresolved_seeds: list[str] = []

    def solve(self, seeds: Iterable[str]) -> dict[str, DestinationFile]:
        """Walk from every seed and return the sorted destination files."""
        for seed in seeds:
            self.process_seed(seed)
        return self.registry.finalize()

    def process_seed(self, seed: str) -> GraphNode | None:
        """Resolve one ``Owner#member`` seed and drain the worklist from it."""
        owner, member = parse_seed(seed)
        decl = self.index.resolve_declaration(owner, member)
        if decl is None:
            logger.warning("Seed %s could not be resolved", seed)
            self.unresolved_seeds.append(seed)
            return None
        logger.info("Solving dependencies of %s", seed)
        node = self.push(decl, None, EdgeKind.SEED)
        self.dfs()
        return node

    def push(self, decl: Declaration, source: GraphNode | None, kind: EdgeKind) -> GraphNode:
        """Get or create the node for a declaration and queue it if unvisited."""
        node, created = self.registry.node_for(decl)
        self.registry.add_edge(source, node, kind)
        if created:
            logger.debug("Discovered %s via %s", node.key, kind.value)
        if not node.visited:
            self.stack.append(node)
        return node

    def dfs(self) -> None:
        """Iterative depth-first search."""
        while self.stack:
            node = self.stack.pop()
            if not self.registry.mark_visited(node):
                continue
            try:
                self.resolve_header(node)
                self.type_search(node)
                self.field_search(node)
                self.method_search(node)
                self.constructor_search(node)
            except DepSliceError:
                raise
            except Exception as e:
                raise DepsolverError(f"{type(e).__name__}: {e}", str(node.key)) from e

    # ------------------------------------------------------------------
    # Structural scanners
    # ------------------------------------------------------------------

    def resolve_header(self, node: GraphNode) -> None:
        """Resolve the headers of the node's type and of every type enclosing it, once each.

        Enum constants are part of the header: each one runs the enum
        constructor its arguments select, and its arguments and body are
        walked like any other code.
        """
        for type_decl in node.enclosing_type.enclosing_types():
            dest = node.destination_file.type_for(type_decl)
            if dest.header_resolved:
                continue
            dest.header_resolved = True
            owner = node
            if type_decl is not node.enclosing_type:
                owner, _ = self.registry.node_for(type_decl)
                self.registry.add_edge(node, owner, EdgeKind.ENCLOSES)
            self._search_annotations(owner, type_decl.annotations)
            for supertype in type_decl.supertypes:
                self.solve_type(owner, supertype, EdgeKind.EXTENDS)
            self._search_parameters(owner, type_decl.components)
            for constant in type_decl.constants:
                ctor = self.index.find_constructor_declaration(constant, type_decl)
                if ctor is not None:
                    self.push(ctor, owner, EdgeKind.CREATES)
                if constant.arguments or constant.body:
                    visit_body(TraversalContext(self, owner), constant.arguments + constant.body)

    def type_search(self, node: GraphNode) -> None:
        """A referenced type is most likely a DTO or entity: keep all of its fields."""
        if node.kind != DeclKind.TYPE:
            return
        for fd in node.enclosing_type.fields:
            self.push(fd, node, EdgeKind.MEMBER)

    def field_search(self, node: GraphNode) -> None:
        if node.kind != DeclKind.FIELD:
            return
        fd = node.decl
        self._search_annotations(node, fd.annotations)
        self.solve_type(node, fd.type)
        if not node.destination_type.has_field(fd.name):
            node.add_member(fd)
        if fd.initializers:
            visit_body(TraversalContext(self, node), fd.initializers)
        self._search_initializers(node)

    def _search_initializers(self, node: GraphNode) -> None:
        """Initializer blocks are emitted, and walked, with the first kept field of their type."""
        dest = node.destination_type
        if dest.initializers_resolved:
            return
        dest.initializers_resolved = True
        for init in node.enclosing_type.initializers:
            dest.add_initializer(init)
            visit_body(TraversalContext(self, node), init.body)

    def method_search(self, node: GraphNode) -> None:
        """Search in methods.

        The return type, the parameters and their annotations, and every
        local declared inside the body are searchable.
        """
        if node.kind != DeclKind.METHOD:
            return
        md = node.decl
        node.add_member(md)
        self._search_parameters(node, md.parameters)
        if md.return_type is not None and not md.return_type.is_primitive:
            self.solve_type(node, md.return_type)
        self._search_callable(node)

    def constructor_search(self, node: GraphNode) -> None:
        if node.kind != DeclKind.CONSTRUCTOR:
            return
        node.add_member(node.decl)
        self._search_parameters(node, node.decl.parameters)
        self._search_callable(node)

    def _search_callable(self, node: GraphNode) -> None:
        md = node.decl
        self._search_annotations(node, md.annotations)
        for thrown in md.throws:
            self.solve_type(node, thrown)
        if md.has_annotation("Override"):
            for supertype in self.index.supertypes_of(node.enclosing_type):
                overridden = self.index.find_method(supertype, md.name, md.arity)
                if overridden is not None:
                    self.push(overridden, node, EdgeKind.OVERRIDES)
        visit_member(TraversalContext(self, node), md)

    def _search_parameters(self, node: GraphNode, parameters: list[Parameter]) -> None:
        for param in parameters:
            if param.type is not None:
                self.solve_type(node, param.type)
            self._search_annotations(node, param.annotations)

    def _search_annotations(self, node: GraphNode, annotations: list[Annotation]) -> None:
        for ann in annotations:
            self.resolve_annotation(node, ann)

    # ------------------------------------------------------------------
    # Edge helpers shared with the visitors
    # ------------------------------------------------------------------

    def resolve_annotation(self, node: GraphNode, ann: Annotation) -> None:
        for record in self.index.find_import_for(node.source_file, ann.name):
            self.search_class(node, record, EdgeKind.ANNOTATION)

    def solve_type(self, node: GraphNode, type_ref: TypeRef, kind: EdgeKind = EdgeKind.TYPE) -> None:
        """Resolve a type (generic arguments and type annotations included)."""
        if type_ref.is_var:
            return
        for record in self.index.find_import_for(node.source_file, type_ref):
            self.search_class(node, record, kind)
            if record.field is not None:
                self.push(record.field, node, EdgeKind.FIELD)

    def search_class(
        self, node: GraphNode, record: ImportRecord | None, kind: EdgeKind = EdgeKind.TYPE
    ) -> None:
        """Follow an outgoing edge to another type through its import."""
        if record is None:
            return
        if record.import_decl is not None:
            node.add_import(record.import_decl)
        if record.type is not None:
            self.push(record.type, node, kind)

    def get_stats(self) -> dict:
        stats = self.registry.get_stats()
        stats["unresolved_seeds"] = len(self.unresolved_seeds)
        return stats
