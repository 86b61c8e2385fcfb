"""Unit tests for language configs.

Tests cover:
- Registry lookup, extension matching and runtime registration
- Type annotation normalizers for TypeScript, Python and Rust
- Capture table differences between languages
"""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import patch

import pytest

from callscope.core.errors import ErrorCode, IndexingError
from callscope.index.languages import (
    JAVASCRIPT,
    PYTHON,
    RUST,
    TYPESCRIPT,
    get_language_config,
    language_for_path,
    register_language,
    registered_languages,
)
from callscope.index.languages.python import normalize_python_type
from callscope.index.languages.rust import normalize_rust_type
from callscope.index.languages.typescript import normalize_typescript_type
from callscope.index.models import ScopeKind, SymbolKind


class TestRegistry:
    """Language lookup."""

    def test_builtin_languages(self) -> None:
        assert registered_languages() == ["javascript", "python", "rust", "typescript"]
        assert get_language_config("rust") is RUST

    def test_unknown_language_raises(self) -> None:
        with pytest.raises(IndexingError) as exc_info:
            get_language_config("cobol")
        assert exc_info.value.code == ErrorCode.INDEX_UNKNOWN_LANGUAGE

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/app.ts", "typescript"),
            ("src/view.tsx", "typescript"),
            ("src/types.d.ts", "typescript"),
            ("lib/index.mjs", "javascript"),
            ("pkg/mod.pyi", "python"),
            ("src/main.rs", "rust"),
            ("README.md", None),
        ],
    )
    def test_language_for_path(self, path: str, expected: str | None) -> None:
        config = language_for_path(path)
        assert (config.name if config else None) == expected

    def test_register_language_replaces_config(self) -> None:
        custom = replace(JAVASCRIPT, hoisted_definitions=frozenset())

        with patch.dict("callscope.index.languages._LANGUAGES"):
            register_language(custom)
            assert get_language_config("javascript") is custom

        assert get_language_config("javascript") is JAVASCRIPT


class TestTypeScriptNormalizer:
    @pytest.mark.parametrize(
        ("annotation", "expected"),
        [
            ("Foo", "Foo"),
            (": Foo", "Foo"),
            ("Map<string, Foo>", "Map"),
            ("Foo | null", "Foo"),
            ("Foo | undefined | null", "Foo"),
            ("Foo | Bar", None),
            ("Foo[]", None),
            ("'literal'", None),
            ("{ a: number }", None),
            ("ns.Foo", "ns.Foo"),
        ],
    )
    def test_normalize(self, annotation: str, expected: str | None) -> None:
        assert normalize_typescript_type(annotation) == expected


class TestPythonNormalizer:
    @pytest.mark.parametrize(
        ("annotation", "expected"),
        [
            ("Foo", "Foo"),
            ('"Foo"', "Foo"),
            ("Optional[Foo]", "Foo"),
            ("typing.Optional['Foo']", "Foo"),
            ("Foo | None", "Foo"),
            ("list[Foo]", "list"),
            ("models.User", "models.User"),
            ("Foo | Bar", None),
            ("None", None),
        ],
    )
    def test_normalize(self, annotation: str, expected: str | None) -> None:
        assert normalize_python_type(annotation) == expected


class TestRustNormalizer:
    @pytest.mark.parametrize(
        ("annotation", "expected"),
        [
            ("Foo", "Foo"),
            ("&Foo", "Foo"),
            ("&mut Foo", "Foo"),
            ("&'a Foo", "Foo"),
            ("Box<Foo>", "Foo"),
            ("Arc<Mutex<Foo>>", "Foo"),
            ("Vec<Foo>", "Vec"),
            ("crate::shapes::Circle", "crate::shapes::Circle"),
            ("&dyn Shape", "Shape"),
            ("(i32, i32)", None),
            ("impl Fn()", None),
        ],
    )
    def test_normalize(self, annotation: str, expected: str | None) -> None:
        assert normalize_rust_type(annotation) == expected


class TestCaptureTables:
    """Per-language mapping differences."""

    def test_rust_struct_and_trait(self) -> None:
        assert RUST.scope_kinds["struct"] == ScopeKind.CLASS
        assert RUST.definition_kinds["trait"] == SymbolKind.INTERFACE
        assert RUST.self_names == frozenset({"self", "Self"})

    def test_python_export_rules(self) -> None:
        assert PYTHON.exports_top_level
        assert PYTHON.private_prefix == "_"
        assert PYTHON.constructor_names == frozenset({"__init__"})

    def test_typescript_extends_javascript(self) -> None:
        assert TYPESCRIPT.hoisted_definitions == JAVASCRIPT.hoisted_definitions
        assert TYPESCRIPT.scope_kinds["namespace"] == ScopeKind.NAMESPACE
        assert TYPESCRIPT.definition_kinds["abstract_class"] == SymbolKind.CLASS
