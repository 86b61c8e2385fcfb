"""Unit tests for definition_builder.py.

Tests cover:
- Deterministic symbol ids
- Defining scopes, including hoisted JS ``var``
- Visibility per language (explicit exports, Python top-level names)
- Kind-specific payload and type bindings
- Body scope linking and export statements marking definitions
"""

from __future__ import annotations

from callscope.index._internal.indexing.definition_builder import (
    DefinitionBuilder,
    make_symbol_id,
)
from callscope.index._internal.indexing.scope_builder import build_scope_tree
from callscope.index.captures import Capture
from callscope.index.languages import get_language_config
from callscope.index.models import (
    ExportKind,
    Location,
    ScopeKind,
    SymbolKind,
    TypeBindingSource,
    VisibilityKind,
)
from tests.index.conftest import SourceBuilder, definition_named


class TestSymbolId:
    def test_encodes_kind_location_and_name(self) -> None:
        location = Location("src/a.ts", 3, 0, 7, 1)
        assert make_symbol_id(SymbolKind.CLASS, "Foo", location) == "class:src/a.ts:3:0:7:1:Foo"

    def test_same_captures_give_same_ids(self) -> None:
        src = SourceBuilder("src/a.ts")
        src.function("f", 1, 3)

        first = src.index()
        second = src.index()

        assert [d.symbol_id for d in first.definitions] == [
            d.symbol_id for d in second.definitions
        ]


class TestDefiningScope:
    """Scope anchoring of declarations."""

    def test_var_is_hoisted_out_of_blocks(self) -> None:
        """
        1 function f() {
        2   if (x) {
        3     var hoisted = 1; let local = 2;
        4   }
        5 }
        """
        src = SourceBuilder("src/a.js", language="javascript")
        src.function("f", 1, 5)
        src.scope("block", 2, 9, 4, 3)
        src.define("var", "hoisted", 3, 8, 3, 19)
        src.define("let", "local", 3, 25, 3, 34)

        index = src.index()
        function_body = definition_named(index, "f").body_scope_id
        block = next(s.id for s in index.scopes if s.kind == ScopeKind.BLOCK)

        assert definition_named(index, "hoisted").defining_scope_id == function_body
        assert definition_named(index, "local").defining_scope_id == block
        assert definition_named(index, "local").visibility.kind == VisibilityKind.SCOPE_CHILDREN

    def test_parameters_belong_to_function_body(self) -> None:
        src = SourceBuilder("src/a.py", language="python")
        src.define("function", "public", 1, 0, 2, 8)
        src.scope("function", 1, 10, 2, 8)
        src.define("parameter", "a", 1, 11, 1, 17, type_annotation="int")

        index = src.index()
        param = definition_named(index, "a")

        assert param.kind == SymbolKind.PARAMETER
        assert param.defining_scope_id == definition_named(index, "public").body_scope_id
        assert param.visibility.kind == VisibilityKind.SCOPE_CHILDREN


class TestBodyScopes:
    """Linking callables and types to their body scopes."""

    def test_nested_function_keeps_its_own_body(self) -> None:
        """
        1 function outer() {
        2   function inner() {
        3   }
        4 }
        """
        src = SourceBuilder("src/a.ts")
        src.function("outer", 1, 4)
        src.define("function", "inner", 2, 2, 3, 3)
        src.scope("function", 2, 18, 3, 3)

        index = src.index()
        outer = definition_named(index, "outer")
        inner = definition_named(index, "inner")

        assert inner.defining_scope_id == outer.body_scope_id
        assert inner.body_scope_id is not None
        assert inner.body_scope_id != outer.body_scope_id

    def test_given_outer_without_body_capture_when_built_then_nested_body_not_claimed(
        self,
    ) -> None:
        """
        1 def outer():      <- no scope capture for outer
        2     def inner():
        3         pass
        """
        # Given
        src = SourceBuilder("pkg/mod.py", language="python")
        src.define("function", "outer", 1, 0, 3, 12)
        src.define("function", "inner", 2, 4, 3, 12)
        src.scope("function", 2, 16, 3, 12)

        # When
        index = src.index()

        # Then
        inner_body = next(s.id for s in index.scopes if s.kind == ScopeKind.FUNCTION)
        assert definition_named(index, "inner").body_scope_id == inner_body
        assert definition_named(index, "outer").body_scope_id is None

    def test_grandchild_scopes_are_never_bodies(self) -> None:
        """
        1 function f() {     <- definition only; the block is not f's body
        2   {
        3     function g() {}
        4   }
        5 }
        """
        src = SourceBuilder("src/a.js", language="javascript")
        src.define("function", "f", 1, 0, 5, 1)
        src.scope("block", 2, 2, 4, 3)
        src.function("g", 3, 3)

        index = src.index()

        assert definition_named(index, "f").body_scope_id is None
        assert definition_named(index, "g").body_scope_id is not None


class TestVisibility:
    """Visibility tags from declaration facts."""

    def test_python_top_level_names_are_exported_unless_private(self) -> None:
        src = SourceBuilder("pkg/mod.py", language="python")
        src.define("function", "public", 1, 0, 2, 8)
        src.scope("function", 1, 10, 2, 8)
        src.define("function", "_private", 3, 0, 3, 20)
        src.scope("function", 3, 12, 3, 20)

        index = src.index()

        assert definition_named(index, "public").visibility.is_exported
        assert definition_named(index, "_private").visibility.kind == VisibilityKind.FILE

    def test_typescript_top_level_names_need_explicit_export(self) -> None:
        src = SourceBuilder("src/a.ts")
        src.function("internal", 1, 2)
        src.function("shared", 3, 4, exported=True)

        index = src.index()

        assert definition_named(index, "internal").visibility.kind == VisibilityKind.FILE
        assert definition_named(index, "shared").visibility.kind == VisibilityKind.EXPORTED

    def test_export_statements_mark_existing_definitions(self) -> None:
        """
        1 function helper() {}
        2 function main() {}
        3 export { helper };
        4 export default main;
        """
        src = SourceBuilder("src/a.ts")
        src.function("helper", 1, 1)
        src.function("main", 2, 2)
        src.export("named", "helper", 3, 9)
        src.export("default", "main", 4, 15)

        index = src.index()

        assert definition_named(index, "helper").visibility.export_kind == ExportKind.NAMED
        assert definition_named(index, "main").visibility.export_kind == ExportKind.DEFAULT

    def test_class_members_are_scope_local(self) -> None:
        src = _point()
        index = src.index()

        assert definition_named(index, "x").visibility.kind == VisibilityKind.SCOPE_LOCAL


def _point() -> SourceBuilder:
    """
    1 export default class Point extends Base implements Shape, Named {
    2   constructor() {}
    3   private static x = 1;
    4   @logged move() {}
    5 }
    """
    src = SourceBuilder("src/point.ts")
    src.define(
        "class",
        "Point",
        1,
        0,
        5,
        1,
        exported=True,
        default=True,
        extends="Base",
        implements=["Shape", "Named"],
    )
    src.scope("class", 1, 65, 5, 1)
    src.define("method", "constructor", 2, 2, 2, 18)
    src.scope("method", 2, 15, 2, 18)
    src.define("property", "x", 3, 2, 3, 23, access="private", static=True)
    src.define("method", "move", 4, 2, 4, 19, decorators="logged", parameters=[])
    src.scope("method", 4, 14, 4, 19)
    return src


class TestPayload:
    """Kind-specific fields from adapter attributes."""

    def test_class_payload(self) -> None:
        index = _point().index()
        point = definition_named(index, "Point")

        assert point.kind == SymbolKind.CLASS
        assert point.visibility.export_kind == ExportKind.DEFAULT
        assert point.extends == ("Base",)
        assert point.implements == ("Shape", "Named")

    def test_constructor_names_become_constructors(self) -> None:
        index = _point().index()
        ctor = definition_named(index, "constructor")

        assert ctor.kind == SymbolKind.CONSTRUCTOR
        assert ctor.body_scope_id is not None

    def test_member_modifiers_and_decorators(self) -> None:
        index = _point().index()

        x = definition_named(index, "x")
        assert x.access == "private"
        assert x.is_static
        assert definition_named(index, "move").decorators == ("logged",)

    def test_enum_variants(self) -> None:
        src = SourceBuilder("src/lib.rs", language="rust")
        src.define("enum", "Color", 1, 0, 1, 28, variants=["Red", "Green"], exported=True)
        src.scope("enum", 1, 11, 1, 28)

        color = definition_named(src.index(), "Color")

        assert color.kind == SymbolKind.ENUM
        assert color.variants == ("Red", "Green")
        assert color.visibility.is_exported

    def test_unknown_entity_or_missing_name_is_skipped(self) -> None:
        tree = build_scope_tree("src/a.ts", [], get_language_config("typescript"))
        builder = DefinitionBuilder(tree, get_language_config("typescript"))
        location = Location("src/a.ts", 1, 0, 1, 5)

        assert builder.add(Capture.from_name("definition.gizmo", location, "g")) is None
        assert builder.add(Capture.from_name("definition.function", location, "")) is None
        assert builder.build() == ([], [])


class TestTypeBindings:
    """Annotations and constructor assignments on definitions."""

    def test_annotation_constructor_and_precedence(self) -> None:
        """
        1 counter: Optional[Foo] = Foo()
        2 made = Bar()
        3 both: Baz = Qux()
        """
        src = SourceBuilder("pkg/mod.py", language="python")
        counter = src.define("variable", "counter", 1, 0, 1, 30, type_annotation="Optional[Foo]")
        made = src.define("variable", "made", 2, 0, 2, 12, constructor_target="Bar")
        both = src.define(
            "variable", "both", 3, 0, 3, 17, type_annotation="Baz", constructor_target="Qux"
        )

        bindings = {b.location: b for b in src.index().type_bindings}

        assert bindings[counter].type_name == "Foo"
        assert bindings[counter].source == TypeBindingSource.ANNOTATION
        assert bindings[made].type_name == "Bar"
        assert bindings[made].source == TypeBindingSource.CONSTRUCTOR
        assert bindings[both].type_name == "Baz"
        assert bindings[both].source == TypeBindingSource.ANNOTATION
        assert definition_named(src.index(), "counter").type_annotation == "Foo"
