"""Unit tests for call_graph.py.

Tests cover:
- Edges from resolved calls, callers/callees
- Entry points: a long linear chain, external callers, dead cycles
- Constructor calls landing on the class's constructor
- Module-level invocations and the exported dict form
"""

from __future__ import annotations

import string
from collections.abc import Callable

from callscope.index._internal.graph.call_graph import (
    CallGraph,
    EntryPointReason,
    strongly_connected_components,
)
from callscope.index.models import SymbolKind
from callscope.index.ops import Project
from tests.index.conftest import SourceBuilder, definition_named

BuildProject = Callable[..., Project]

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _chain() -> SourceBuilder:
    """A() calls B(), B() calls C(), ... Y() calls Z(). Three lines each::

        export function A() {
          B();
        }
    """
    src = SourceBuilder("src/chain.ts")
    letters = string.ascii_uppercase
    for i, name in enumerate(letters):
        line = 3 * i + 1
        src.function(name, line, line + 2, exported=True)
        if i + 1 < len(letters):
            src.call(letters[i + 1], line + 1)
    return src


def _cycle() -> SourceBuilder:
    """
    1  function p() {
    2    q();
    3  }
    4  function q() {
    5    r();
    6  }
    7  function r() {
    8    p();
    9  }
    10 function rec() {
    11   rec();
    12 }
    """
    src = SourceBuilder("src/cycle.ts")
    calls = [("p", "q"), ("q", "r"), ("r", "p"), ("rec", "rec")]
    for i, (name, callee) in enumerate(calls):
        line = 3 * i + 1
        src.function(name, line, line + 2)
        src.call(callee, line + 1)
    return src


def _ids(project: Project, file_path: str, *names: str) -> list[str]:
    index = project.indices[file_path]
    return [definition_named(index, name).symbol_id for name in names]


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


class TestEntryPoints:
    """Callables nothing in the project calls."""

    def test_given_linear_chain_when_built_then_only_head_is_entry_point(
        self, build_project: BuildProject
    ) -> None:
        # Given / When
        project = build_project(_chain())

        # Then
        entry_points = project.entry_points
        assert [e.name for e in entry_points] == ["A"]
        assert entry_points[0].reason == EntryPointReason.UNCALLED
        assert len(project.call_graph.edges) == 25

    def test_external_caller_keeps_callee_off_the_list(self, build_project: BuildProject) -> None:
        """
        src/other.ts
        1 import { B } from "./chain";
        2 function ext() {
        3   B();
        4 }
        """
        other = SourceBuilder("src/other.ts")
        other.imp("named", "B", "./chain", 1, 9)
        other.function("ext", 2, 4)
        other.call("B", 3)

        project = build_project(_chain(), other)

        assert [(e.file_path, e.name) for e in project.entry_points] == [
            ("src/chain.ts", "A"),
            ("src/other.ts", "ext"),
        ]
        (a_id, b_id) = _ids(project, "src/chain.ts", "A", "B")
        (ext_id,) = _ids(project, "src/other.ts", "ext")
        assert project.call_graph.callers_of(b_id) == sorted([a_id, ext_id])

    def test_given_uncalled_cycle_when_built_then_every_member_is_dead_cycle(
        self, build_project: BuildProject
    ) -> None:
        # Given / When
        project = build_project(_cycle())

        # Then
        cluster = tuple(sorted(_ids(project, "src/cycle.ts", "p", "q", "r")))
        (rec_id,) = _ids(project, "src/cycle.ts", "rec")
        by_name = {e.name: e for e in project.entry_points}
        assert sorted(by_name) == ["p", "q", "r", "rec"]
        assert all(by_name[n].reason == EntryPointReason.DEAD_CYCLE for n in by_name)
        assert by_name["p"].cluster == cluster
        assert by_name["q"].cluster == cluster
        assert by_name["rec"].cluster == (rec_id,)

    def test_cycle_called_from_outside_is_not_entry_point(
        self, build_project: BuildProject
    ) -> None:
        src = _cycle()
        src.function("main", 13, 15)
        src.call("p", 14)

        project = build_project(src)

        assert [e.name for e in project.entry_points] == ["rec", "main"]
        (main,) = [e for e in project.entry_points if e.name == "main"]
        assert main.reason == EntryPointReason.UNCALLED

    def test_module_level_call_marks_cycle_as_called(self, build_project: BuildProject) -> None:
        src = _cycle()
        src.call("p", 13, 0)

        project = build_project(src)

        assert [e.name for e in project.entry_points] == ["rec"]
        (p_id,) = _ids(project, "src/cycle.ts", "p")
        assert project.call_graph.is_called(p_id)
        assert [m.callee for m in project.call_graph.module_invocations] == [p_id]

    def test_unresolved_calls_add_nothing(self, build_project: BuildProject) -> None:
        src = SourceBuilder("src/a.ts")
        src.function("main", 1, 3)
        src.call("missing", 2)

        project = build_project(src)

        assert project.call_graph.edges == ()
        assert [e.name for e in project.entry_points] == ["main"]


# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------


class TestEdges:
    def test_constructor_call_lands_on_constructor(self, build_project: BuildProject) -> None:
        """
        1 class Widget {
        2   constructor() {}
        3 }
        4 function make() {
        5   new Widget();
        6 }
        """
        src = SourceBuilder("src/widget.ts")
        src.define("class", "Widget", 1, 0, 3, 1)
        src.scope("class", 1, 13, 3, 1)
        src.define("method", "constructor", 2, 2, 2, 17)
        src.scope("constructor", 2, 16, 2, 17)
        src.function("make", 4, 6)
        src.ref("constructor", "Widget", 5, 6)

        project = build_project(src)

        index = project.indices["src/widget.ts"]
        ctor = definition_named(index, "constructor")
        make = definition_named(index, "make")
        assert ctor.kind == SymbolKind.CONSTRUCTOR
        assert project.call_graph.callees_of(make.symbol_id) == [ctor.symbol_id]
        assert [e.name for e in project.entry_points] == ["make"]

    def test_nested_function_call_belongs_to_nearest_callable(
        self, build_project: BuildProject
    ) -> None:
        """
        1 function outer() {
        2   function inner() {
        3     target();
        4   }
        5 }
        6 function target() {}
        """
        src = SourceBuilder("src/nested.ts")
        src.function("outer", 1, 5)
        src.define("function", "inner", 2, 2, 4, 3)
        src.scope("function", 2, 18, 4, 3)
        src.call("target", 3, 4)
        src.function("target", 6, 6)

        project = build_project(src)

        (inner_id, target_id) = _ids(project, "src/nested.ts", "inner", "target")
        assert project.call_graph.callers_of(target_id) == [inner_id]


class TestExport:
    def test_to_dict(self, build_project: BuildProject) -> None:
        src = _cycle()
        src.call("p", 13, 0)
        graph = build_project(src).call_graph

        data = graph.to_dict()
        without = graph.to_dict(include_module_invocations=False)

        assert sorted(data) == ["edges", "entry_points", "module_invocations", "nodes"]
        assert "module_invocations" not in without
        assert len(data["nodes"]) == 4
        assert len(data["edges"]) == 4
        assert data["entry_points"][0]["reason"] == "dead_cycle"
        assert data["module_invocations"][0]["location"]["start_line"] == 13


class TestStronglyConnectedComponents:
    def test_components(self) -> None:
        successors = {"a": ["b"], "b": ["c"], "c": ["a"], "d": ["d"], "e": ["a"]}

        components = strongly_connected_components(sorted(successors), successors)

        assert sorted(components) == [["a", "b", "c"], ["d"], ["e"]]

    def test_deep_chain_does_not_overflow(self) -> None:
        n = 20000
        successors = {str(i): [str(i + 1)] for i in range(n)}

        components = strongly_connected_components([str(i) for i in range(n)], successors)

        assert len(components) == n + 1

    def test_empty_graph(self) -> None:
        graph = CallGraph({}, (), ())
        assert graph.entry_points == []
        assert graph.to_dict()["nodes"] == []
