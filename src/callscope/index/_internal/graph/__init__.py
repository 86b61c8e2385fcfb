"""Project-level graphs: file imports and calls."""

from callscope.index._internal.graph.call_graph import (
    CallEdge,
    CallGraph,
    CallGraphNode,
    EntryPoint,
    EntryPointReason,
    ModuleInvocation,
    strongly_connected_components,
)
from callscope.index._internal.graph.import_graph import ImportGraph

__all__ = [
    "CallEdge",
    "CallGraph",
    "CallGraphNode",
    "EntryPoint",
    "EntryPointReason",
    "ImportGraph",
    "ModuleInvocation",
    "strongly_connected_components",
]
