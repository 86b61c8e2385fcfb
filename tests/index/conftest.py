"""Shared fixtures for index tests.

Grammar adapters are out of scope for the core, so tests write capture
streams by hand through ``SourceBuilder``. Locations follow the capture
conventions: 1-based lines, 0-based columns, scope captures cover the
construct's body only.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from callscope.config.models import CallscopeConfig
from callscope.index._internal.indexing.file_indexer import FileCaptures, index_file
from callscope.index._internal.indexing.semantic_index import SemanticIndex
from callscope.index.captures import Capture
from callscope.index.models import Definition, Location, Reference, ReferenceKind, Resolution
from callscope.index.ops import Project


class SourceBuilder:
    """Writes the capture stream a grammar adapter would emit for one file.

    Every ``add``-style method returns the capture's location so tests can
    point receivers and assertions at it.
    """

    def __init__(self, file_path: str, language: str = "typescript", line_count: int | None = None):
        self.file_path = file_path
        self.language = language
        self.line_count = line_count
        self.captures: list[Capture] = []

    def loc(self, sl: int, sc: int, el: int, ec: int) -> Location:
        return Location(self.file_path, sl, sc, el, ec)

    def add(self, name: str, location: Location, text: str = "", **attrs: Any) -> Location:
        self.captures.append(Capture.from_name(name, location, text, attrs or None))
        return location

    def scope(self, entity: str, sl: int, sc: int, el: int, ec: int) -> Location:
        return self.add(f"scope.{entity}", self.loc(sl, sc, el, ec))

    def define(
        self, entity: str, name: str, sl: int, sc: int, el: int, ec: int, **attrs: Any
    ) -> Location:
        return self.add(f"definition.{entity}", self.loc(sl, sc, el, ec), name, **attrs)

    def ref(self, entity: str, name: str, line: int, col: int, **attrs: Any) -> Location:
        location = self.loc(line, col, line, col + len(name))
        return self.add(f"reference.{entity}", location, name, **attrs)

    def imp(
        self, entity: str, local_name: str, source: str, line: int, col: int = 0, **attrs: Any
    ) -> Location:
        location = self.loc(line, col, line, col + max(len(local_name), 1))
        return self.add(f"import.{entity}", location, local_name, source=source, **attrs)

    def export(self, entity: str, name: str, line: int, col: int = 0, **attrs: Any) -> Location:
        location = self.loc(line, col, line, col + max(len(name), 1))
        return self.add(f"export.{entity}", location, name, **attrs)

    def function(
        self, name: str, line: int, end_line: int, *, entity: str = "function", **attrs: Any
    ) -> Location:
        """``function name() {`` on ``line`` through ``}`` on ``end_line``.

        A one-line function is written ``function name() {}``.
        """
        body_start = len(f"function {name}")
        end_column = 1 if end_line > line else body_start + 4
        self.scope("function", line, body_start, end_line, end_column)
        return self.define(entity, name, line, 0, end_line, end_column, **attrs)

    def call(self, name: str, line: int, col: int = 2, **attrs: Any) -> Location:
        return self.ref("call", name, line, col, **attrs)

    def build(self) -> FileCaptures:
        return FileCaptures(self.file_path, self.language, tuple(self.captures), self.line_count)

    def index(self) -> SemanticIndex:
        return index_file(self.file_path, self.language, self.captures, self.line_count)


def definition_named(
    index: SemanticIndex, name: str, kind: str | None = None
) -> Definition:
    """The single definition called ``name`` (optionally of ``kind``)."""
    found = [
        d for d in index.definitions if d.name == name and (kind is None or d.kind.value == kind)
    ]
    assert len(found) == 1, f"expected one definition {name!r}, got {found}"
    return found[0]


def references_named(
    index: SemanticIndex, name: str, kind: ReferenceKind | None = None
) -> list[Reference]:
    return [r for r in index.references if r.name == name and (kind is None or r.kind == kind)]


def resolve_call(project: Project, file_path: str, name: str, occurrence: int = 0) -> Resolution:
    """Resolution of the ``occurrence``-th call of ``name`` in ``file_path``."""
    calls = references_named(project.indices[file_path], name, ReferenceKind.CALL)
    return project.resolve(calls[occurrence])


@pytest.fixture
def source() -> Callable[..., SourceBuilder]:
    """Factory for per-file capture builders."""
    return SourceBuilder


@pytest.fixture
def build_project() -> Callable[..., Project]:
    """Build a Project from SourceBuilders."""

    def _build(*files: SourceBuilder, config: CallscopeConfig | None = None) -> Project:
        return Project.build([f.build() for f in files], config)

    return _build
