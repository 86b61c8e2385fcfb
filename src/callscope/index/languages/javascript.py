"""JavaScript language config."""

from __future__ import annotations

from callscope.index._internal.resolution.module_resolution import resolve_javascript_module
from callscope.index.languages.base import (
    COMMON_DEFINITION_KINDS,
    COMMON_SCOPE_KINDS,
    LanguageConfig,
)
from callscope.index.models import ScopeKind, SymbolKind

JS_DEFINITION_KINDS = {
    **COMMON_DEFINITION_KINDS,
    "var": SymbolKind.VARIABLE,
    "let": SymbolKind.VARIABLE,
    "const": SymbolKind.VARIABLE,
    "generator": SymbolKind.FUNCTION,
    "getter": SymbolKind.PROPERTY,
    "setter": SymbolKind.PROPERTY,
}

JS_SCOPE_KINDS = {
    **COMMON_SCOPE_KINDS,
    "arrow_function": ScopeKind.LAMBDA,
    "for": ScopeKind.BLOCK,
    "catch": ScopeKind.BLOCK,
}

JAVASCRIPT = LanguageConfig(
    name="javascript",
    extensions=frozenset({".js", ".jsx", ".mjs", ".cjs"}),
    module_resolver=resolve_javascript_module,
    scope_kinds=JS_SCOPE_KINDS,
    definition_kinds=JS_DEFINITION_KINDS,
    hoisted_definitions=frozenset({"var"}),
    constructor_names=frozenset({"constructor"}),
    self_names=frozenset({"this"}),
)
