"""Call graph built from resolved call references.

Nodes are functions, methods and constructors. A resolved call inside a
callable body becomes an edge; a resolved call with no enclosing callable
(top-level script code, class bodies) is a module-level invocation. It
marks the callee as called but adds no edge.

Unresolved calls add nothing. Entry points are therefore an upper bound:
a function only reached through an unresolvable call shows up as one.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from callscope.index._internal.indexing.semantic_index import SemanticIndex
from callscope.index._internal.resolution.resolution_registry import ResolutionRegistry
from callscope.index.models import (
    CALLABLE_KINDS,
    Definition,
    Location,
    Reference,
    ReferenceKind,
    Resolved,
    SymbolKind,
)

log = structlog.get_logger(__name__)


class EntryPointReason(str, Enum):
    UNCALLED = "uncalled"  # no resolved call names it
    DEAD_CYCLE = "dead_cycle"  # only called from inside its own cycle


@dataclass(frozen=True, slots=True)
class CallGraphNode:
    symbol_id: str
    name: str
    kind: SymbolKind
    location: Location

    @property
    def file_path(self) -> str:
        return self.location.file_path


@dataclass(frozen=True, slots=True)
class CallEdge:
    caller: str
    callee: str
    location: Location  # the call site


@dataclass(frozen=True, slots=True)
class ModuleInvocation:
    file_path: str
    callee: str
    location: Location


@dataclass(frozen=True, slots=True)
class EntryPoint:
    """A callable nothing in the project is known to call.

    ``cluster`` lists the members of the dead cycle for ``DEAD_CYCLE``.
    """

    symbol_id: str
    name: str
    file_path: str
    reason: EntryPointReason
    cluster: tuple[str, ...] = ()


def _location_dict(location: Location) -> dict[str, Any]:
    return {
        "file_path": location.file_path,
        "start_line": location.start_line,
        "start_column": location.start_column,
        "end_line": location.end_line,
        "end_column": location.end_column,
    }


def strongly_connected_components(
    nodes: Iterable[str], successors: Mapping[str, Iterable[str]]
) -> list[list[str]]:
    """Tarjan's algorithm, iterative so deep call chains cannot overflow the stack."""
    index_of: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    components: list[list[str]] = []
    counter = 0

    for root in nodes:
        if root in index_of:
            continue
        work: list[tuple[str, list[str]]] = [(root, sorted(successors.get(root, ())))]
        index_of[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        while work:
            node, pending = work[-1]
            if pending:
                succ = pending.pop()
                if succ not in index_of:
                    index_of[succ] = lowlink[succ] = counter
                    counter += 1
                    stack.append(succ)
                    on_stack.add(succ)
                    work.append((succ, sorted(successors.get(succ, ()))))
                elif succ in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[succ])
                continue
            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])
            if lowlink[node] == index_of[node]:
                component: list[str] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(sorted(component))
    return components


class CallGraph:
    """Immutable call graph for one project snapshot."""

    def __init__(
        self,
        nodes: Mapping[str, CallGraphNode],
        edges: Iterable[CallEdge],
        module_invocations: Iterable[ModuleInvocation],
        named: Iterable[str] = (),
    ) -> None:
        self.nodes = dict(nodes)
        self.edges = tuple(edges)
        self.module_invocations = tuple(module_invocations)
        self._named = frozenset(named) | {e.callee for e in self.edges} | {
            m.callee for m in self.module_invocations
        }
        self._callees: dict[str, set[str]] = {}
        self._callers: dict[str, set[str]] = {}
        for edge in self.edges:
            self._callees.setdefault(edge.caller, set()).add(edge.callee)
            self._callers.setdefault(edge.callee, set()).add(edge.caller)
        self._entry_points: list[EntryPoint] | None = None

    @classmethod
    def build(
        cls, indices: Mapping[str, SemanticIndex], resolutions: ResolutionRegistry
    ) -> CallGraph:
        symbols = resolutions.symbols
        nodes: dict[str, CallGraphNode] = {}
        for definition in symbols:
            if definition.kind in CALLABLE_KINDS:
                nodes[definition.symbol_id] = CallGraphNode(
                    definition.symbol_id, definition.name, definition.kind, definition.location
                )

        edges: list[CallEdge] = []
        invocations: list[ModuleInvocation] = []
        named: set[str] = set()
        constructors: dict[str, str | None] = {}

        for file_path in sorted(indices):
            index = indices[file_path]
            resolved = resolutions.resolutions_for(file_path)
            for reference in index.references:
                if reference.kind != ReferenceKind.CALL:
                    continue
                resolution = resolved.get(reference.key)
                if not isinstance(resolution, Resolved):
                    continue
                target = symbols.get(resolution.symbol_id)
                if target is None:
                    continue
                named.add(target.symbol_id)
                callee = cls._callee_for(target, resolutions, constructors)
                if callee is None:
                    continue
                caller = cls._caller_for(reference, resolutions)
                if caller is None:
                    invocations.append(ModuleInvocation(file_path, callee, reference.location))
                else:
                    edges.append(CallEdge(caller, callee, reference.location))

        graph = cls(nodes, edges, invocations, named)
        log.info(
            "call_graph.built",
            nodes=len(nodes),
            edges=len(edges),
            module_invocations=len(invocations),
        )
        return graph

    @staticmethod
    def _callee_for(
        target: Definition,
        resolutions: ResolutionRegistry,
        constructors: dict[str, str | None],
    ) -> str | None:
        """Node id a call to ``target`` lands on; classes map to their constructor."""
        if target.kind in CALLABLE_KINDS:
            return target.symbol_id
        if not target.is_type:
            return None
        if target.symbol_id not in constructors:
            constructors[target.symbol_id] = next(
                (
                    m.symbol_id
                    for m in resolutions.types.members_of(target.symbol_id)
                    if m.kind == SymbolKind.CONSTRUCTOR
                ),
                None,
            )
        return constructors[target.symbol_id]

    @staticmethod
    def _caller_for(reference: Reference, resolutions: ResolutionRegistry) -> str | None:
        """Nearest callable whose body encloses the call site."""
        symbols = resolutions.symbols
        tree = symbols.tree(reference.file_path)
        if tree is None:
            return None
        for sid in tree.ancestors(reference.enclosing_scope_id):
            owner = symbols.owner_of_scope(reference.file_path, sid)
            if owner is not None and owner.kind in CALLABLE_KINDS:
                return owner.symbol_id
        return None

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def callers_of(self, symbol_id: str) -> list[str]:
        return sorted(self._callers.get(symbol_id, ()))

    def callees_of(self, symbol_id: str) -> list[str]:
        return sorted(self._callees.get(symbol_id, ()))

    def is_called(self, symbol_id: str) -> bool:
        """Named by at least one resolved call, anywhere."""
        return symbol_id in self._named

    @property
    def entry_points(self) -> list[EntryPoint]:
        if self._entry_points is None:
            self._entry_points = self._compute_entry_points()
        return list(self._entry_points)

    def _compute_entry_points(self) -> list[EntryPoint]:
        found: dict[str, EntryPoint] = {}
        for node in self.nodes.values():
            if node.symbol_id not in self._named:
                found[node.symbol_id] = EntryPoint(
                    node.symbol_id, node.name, node.file_path, EntryPointReason.UNCALLED
                )

        invoked = {m.callee for m in self.module_invocations}
        for component in strongly_connected_components(sorted(self.nodes), self._callees):
            members = set(component)
            cyclic = len(component) > 1 or component[0] in self._callees.get(component[0], ())
            if not cyclic or members & invoked:
                continue
            if any(self._callers.get(m, set()) - members for m in component):
                continue
            for member in component:
                node = self.nodes[member]
                found[member] = EntryPoint(
                    member,
                    node.name,
                    node.file_path,
                    EntryPointReason.DEAD_CYCLE,
                    cluster=tuple(component),
                )

        return sorted(
            found.values(),
            key=lambda e: (e.file_path, self.nodes[e.symbol_id].location.start, e.symbol_id),
        )

    def to_dict(self, include_module_invocations: bool = True) -> dict[str, Any]:
        """JSON-compatible form of the graph."""
        data: dict[str, Any] = {
            "nodes": [
                {
                    "symbol_id": n.symbol_id,
                    "name": n.name,
                    "kind": n.kind.value,
                    "location": _location_dict(n.location),
                }
                for n in sorted(self.nodes.values(), key=lambda n: n.symbol_id)
            ],
            "edges": [
                {"caller": e.caller, "callee": e.callee, "location": _location_dict(e.location)}
                for e in self.edges
            ],
            "entry_points": [
                {
                    "symbol_id": e.symbol_id,
                    "name": e.name,
                    "file_path": e.file_path,
                    "reason": e.reason.value,
                    "cluster": list(e.cluster),
                }
                for e in self.entry_points
            ],
        }
        if include_module_invocations:
            data["module_invocations"] = [
                {
                    "file_path": m.file_path,
                    "callee": m.callee,
                    "location": _location_dict(m.location),
                }
                for m in self.module_invocations
            ]
        return data
