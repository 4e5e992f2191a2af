"""Declaration graph for the dependency walk."""

from depslice.graph.node import DeclKey, DeclKind, EdgeKind, GraphNode
from depslice.graph.registry import GraphRegistry

__all__ = ["DeclKey", "DeclKind", "EdgeKind", "GraphNode", "GraphRegistry"]
