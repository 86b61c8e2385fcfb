"""Unit tests for export_registry.py.

Tests cover:
- Export tables: exported definitions, export statements, re-exporting imports
- Re-export chains of depth 1, 2 and 5 ending at the original definition
- Cycles (named and wildcard) and the depth bound
- Namespace and wildcard re-exports, Python package and Rust ``pub use`` re-exports
"""

from __future__ import annotations

import pytest

from callscope.index._internal.indexing.semantic_index import SemanticIndex
from callscope.index._internal.resolution.export_registry import (
    ExportEntryKind,
    ExportRegistry,
)
from callscope.index._internal.resolution.import_registry import ImportRegistry
from tests.index.conftest import SourceBuilder, definition_named

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _registry(*sources: SourceBuilder, max_depth: int = 10) -> ExportRegistry:
    indices = _indices(*sources)
    return ExportRegistry(indices, ImportRegistry(indices), max_depth=max_depth)


def _indices(*sources: SourceBuilder) -> dict[str, SemanticIndex]:
    return {src.file_path: src.index() for src in sources}


def _origin() -> SourceBuilder:
    """
    1 export function target() {}
    2 export default function main() {}
    3 function hidden() {}
    """
    src = SourceBuilder("src/origin.ts")
    src.function("target", 1, 1, exported=True)
    src.function("main", 2, 2, exported=True, default=True)
    src.function("hidden", 3, 3)
    return src


def _reexport_chain(depth: int) -> list[SourceBuilder]:
    """``hopN.ts`` re-exports ``target`` from ``hop(N-1).ts`` ... from ``origin.ts``."""
    sources = [_origin()]
    for k in range(1, depth + 1):
        hop = SourceBuilder(f"src/hop{k}.ts")
        previous = "./origin" if k == 1 else f"./hop{k - 1}"
        hop.export("named", "target", 1, 9, source=previous)
        sources.append(hop)
    return sources


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


class TestExportTable:
    """What a single file exports."""

    def test_exported_definitions(self) -> None:
        registry = _registry(_origin())

        assert registry.exported_names("src/origin.ts") == ["default", "target"]
        entry = registry.entry("src/origin.ts", "default")
        assert entry is not None
        assert entry.kind == ExportEntryKind.LOCAL
        assert entry.definition is not None
        assert entry.definition.name == "main"

    def test_unknown_file_exports_nothing(self) -> None:
        registry = _registry(_origin())

        assert registry.exported_names("src/nowhere.ts") == []
        assert not registry.resolve_export("src/nowhere.ts", "target").found

    def test_private_definition_is_not_exported(self) -> None:
        registry = _registry(_origin())

        result = registry.resolve_export("src/origin.ts", "hidden")

        assert not result.found
        assert result.chain == ("src/origin.ts:hidden",)

    def test_export_of_imported_name(self) -> None:
        """
        1 import { target as t } from "./origin";
        2 export { t };
        """
        barrel = SourceBuilder("src/barrel.ts")
        barrel.imp("named", "t", "./origin", 1, 19, imported_name="target")
        barrel.export("named", "t", 2, 9)
        origin = _origin()
        registry = _registry(origin, barrel)

        result = registry.resolve_export("src/barrel.ts", "t")

        assert result.definition == definition_named(origin.index(), "target")
        assert result.chain == ("src/barrel.ts:t", "src/origin.ts:target")


# ---------------------------------------------------------------------------
# Chains
# ---------------------------------------------------------------------------


class TestReexportChains:
    """Following re-export hops."""

    @pytest.mark.parametrize("depth", [1, 2, 5])
    def test_given_chain_when_resolved_then_reaches_original_definition(
        self, depth: int
    ) -> None:
        # Given
        sources = _reexport_chain(depth)
        registry = _registry(*sources)
        original = definition_named(sources[0].index(), "target")

        # When
        result = registry.resolve_export(f"src/hop{depth}.ts", "target")

        # Then
        assert result.definition == original
        assert result.definition == registry.resolve_export("src/origin.ts", "target").definition
        assert len(result.chain) == depth + 1
        assert result.chain[-1] == "src/origin.ts:target"
        assert not result.is_circular

    def test_given_cycle_when_resolved_then_circular_with_chain(self) -> None:
        # Given
        a = SourceBuilder("src/a.ts")
        a.export("named", "x", 1, 9, source="./b")
        b = SourceBuilder("src/b.ts")
        b.export("named", "x", 1, 9, source="./a")
        registry = _registry(a, b)

        # When
        result = registry.resolve_export("src/a.ts", "x")

        # Then
        assert result.is_circular
        assert not result.found
        assert result.chain == ("src/a.ts:x", "src/b.ts:x", "src/a.ts:x")

    def test_wildcard_cycle_terminates(self) -> None:
        a = SourceBuilder("src/a.ts")
        a.export("all", "", 1, 0, source="./b")
        b = SourceBuilder("src/b.ts")
        b.export("all", "", 1, 0, source="./a")

        result = _registry(a, b).resolve_export("src/a.ts", "y")

        assert result.is_circular
        assert len(result.chain) == 3

    def test_depth_bound_stops_long_chains(self) -> None:
        registry = _registry(*_reexport_chain(5), max_depth=3)

        result = registry.resolve_export("src/hop5.ts", "target")

        assert result.depth_exceeded
        assert not result.found
        assert len(result.chain) == 5

    def test_unresolvable_source(self) -> None:
        barrel = SourceBuilder("src/barrel.ts")
        barrel.export("named", "x", 1, 9, source="./missing")

        result = _registry(barrel).resolve_export("src/barrel.ts", "x")

        assert result.import_unresolved
        assert not result.found


class TestWildcardAndNamespace:
    """``export *`` and ``export * as ns``."""

    def test_wildcard_forwards_named_exports(self) -> None:
        barrel = SourceBuilder("src/barrel.ts")
        barrel.export("all", "", 1, 0, source="./origin")
        origin = _origin()

        result = _registry(origin, barrel).resolve_export("src/barrel.ts", "target")

        assert result.definition == definition_named(origin.index(), "target")

    def test_wildcard_does_not_forward_default(self) -> None:
        barrel = SourceBuilder("src/barrel.ts")
        barrel.export("all", "", 1, 0, source="./origin")

        result = _registry(_origin(), barrel).resolve_export("src/barrel.ts", "default")

        assert not result.found

    def test_namespace_export_names_a_module(self) -> None:
        barrel = SourceBuilder("src/barrel.ts")
        barrel.export("namespace", "tools", 1, 12, source="./origin")

        result = _registry(_origin(), barrel).resolve_export("src/barrel.ts", "tools")

        assert result.module_file == "src/origin.ts"
        assert result.definition is None


class TestLanguageReexports:
    """Re-exports that come from imports."""

    def test_python_package_reexports_module_imports(self) -> None:
        init = SourceBuilder("pkg/__init__.py", language="python")
        init.imp("named", "Thing", ".impl", 1, 17)
        impl = SourceBuilder("pkg/impl.py", language="python")
        impl.define("class", "Thing", 1, 0, 2, 8)
        impl.scope("class", 1, 11, 2, 8)
        registry = _registry(init, impl)

        result = registry.resolve_export("pkg/__init__.py", "Thing")

        assert result.definition == definition_named(impl.index(), "Thing")
        assert registry.submodule("pkg/__init__.py", ".", "impl") == "pkg/impl.py"

    def test_python_submodule_import(self) -> None:
        init = SourceBuilder("pkg/__init__.py", language="python")
        impl = SourceBuilder("pkg/impl.py", language="python")
        main = SourceBuilder("main.py", language="python")
        registry = _registry(init, impl, main)

        assert registry.submodule("main.py", "pkg", "impl") == "pkg/impl.py"

    def test_typescript_has_no_submodule_imports(self) -> None:
        registry = _registry(_origin())
        assert registry.submodule("src/origin.ts", ".", "origin") is None

    def test_rust_pub_use(self) -> None:
        lib = SourceBuilder("src/lib.rs", language="rust")
        lib.imp("named", "Circle", "crate::shapes::Circle", 1, 24, reexport=True)
        lib.imp("named", "Square", "crate::shapes::Square", 2, 20)
        shapes = SourceBuilder("src/shapes.rs", language="rust")
        shapes.define("struct", "Circle", 1, 0, 1, 20, exported=True)
        registry = _registry(lib, shapes)

        result = registry.resolve_export("src/lib.rs", "Circle")

        assert result.definition == definition_named(shapes.index(), "Circle")
        assert registry.exported_names("src/lib.rs") == ["Circle"]

    def test_python_underscore_names_import_by_name_only(self) -> None:
        """
        pkg/impl.py
        1 def public(): ...
        2 def _hidden(): ...

        pkg/__init__.py
        1 from .impl import *
        """
        impl = SourceBuilder("pkg/impl.py", language="python")
        impl.define("function", "public", 1, 0, 1, 18)
        impl.define("function", "_hidden", 2, 0, 2, 19)
        init = SourceBuilder("pkg/__init__.py", language="python")
        init.export("all", "", 1, 0, source=".impl")
        registry = _registry(init, impl)

        direct = registry.resolve_export("pkg/impl.py", "_hidden")
        forwarded = registry.resolve_export("pkg/__init__.py", "_hidden")

        assert registry.exported_names("pkg/impl.py") == ["_hidden", "public"]
        assert direct.definition == definition_named(impl.index(), "_hidden")
        assert not forwarded.found
        assert registry.resolve_export("pkg/__init__.py", "public").found
