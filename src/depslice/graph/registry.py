"""Registry of graph nodes and their shared destination files."""

from __future__ import annotations

import networkx as nx

from depslice.graph.node import DeclKey, EdgeKind, GraphNode, decl_key, enclosing_type_of
from depslice.output.destination import DestinationFile
from depslice.parser.models import Declaration, TypeDecl


class GraphRegistry:
    """Deduplicates graph nodes by identity and owns the destination files.

    Besides the node map and the visited set, every discovered edge is
    recorded in a NetworkX directed graph so the closure can be inspected
    after the walk.
    """

    def __init__(self) -> None:
        self.nodes: dict[DeclKey, GraphNode] = {}
        self.destinations: dict[str, DestinationFile] = {}
        self.visited: set[DeclKey] = set()
        self.graph = nx.DiGraph()

    def destination_for(self, type_decl: TypeDecl) -> DestinationFile:
        """The destination file for a type, created on first request.

        Member types share the file of their top-level type.
        """
        top = type_decl.top_level
        dest = self.destinations.get(top.qualified_name)
        if dest is None:
            dest = DestinationFile(top)
            self.destinations[top.qualified_name] = dest
        return dest

    def get(self, key: DeclKey) -> GraphNode | None:
        return self.nodes.get(key)

    def node_for(self, decl: Declaration) -> tuple[GraphNode, bool]:
        """Return the node for a declaration and whether it was just created."""
        key = decl_key(decl)
        node = self.nodes.get(key)
        if node is not None:
            return node, False
        node = GraphNode(decl, self.destination_for(enclosing_type_of(decl)))
        self.nodes[key] = node
        self.graph.add_node(
            str(key),
            kind=node.kind.value,
            owner=node.enclosing_type.qualified_name,
        )
        return node, True

    def add_edge(self, source: GraphNode | None, target: GraphNode, kind: EdgeKind) -> None:
        if source is None:
            if kind == EdgeKind.SEED:
                self.graph.nodes[str(target.key)]["seed"] = True
            return
        if source is target:
            return
        if not self.graph.has_edge(str(source.key), str(target.key)):
            self.graph.add_edge(str(source.key), str(target.key), kind=kind.value)

    def mark_visited(self, node: GraphNode) -> bool:
        """Mark a node visited; False if it already was."""
        if node.visited or node.key in self.visited:
            return False
        node.visited = True
        self.visited.add(node.key)
        return True

    def finalize(self) -> dict[str, DestinationFile]:
        """Sort every destination and return them keyed by qualified name, in name order."""
        for dest in self.destinations.values():
            dest.sort()
        return {name: self.destinations[name] for name in sorted(self.destinations)}

    def get_stats(self) -> dict:
        node_types: dict[str, int] = {}
        edge_types: dict[str, int] = {}

        for _, data in self.graph.nodes(data=True):
            kind = data.get("kind", "unknown")
            node_types[kind] = node_types.get(kind, 0) + 1

        for _, _, data in self.graph.edges(data=True):
            kind = data.get("kind", "unknown")
            edge_types[kind] = edge_types.get(kind, 0) + 1

        return {
            "total_nodes": self.graph.number_of_nodes(),
            "total_edges": self.graph.number_of_edges(),
            "visited": len(self.visited),
            "node_types": node_types,
            "edge_types": edge_types,
            "files": len(self.destinations),
            "methods": node_types.get("method", 0) + node_types.get("constructor", 0),
            "fields": node_types.get("field", 0),
        }

    def reachable_from(self, key: DeclKey) -> set[str]:
        """Identity strings of everything the walk reached from one node."""
        name = str(key)
        if not self.graph.has_node(name):
            return set()
        return {name} | nx.descendants(self.graph, name)
