"""TypeScript language config.

Shares the JavaScript capture tables and adds interfaces, enums, type
aliases and annotation normalization.
"""

from __future__ import annotations

from callscope.index._internal.resolution.module_resolution import resolve_typescript_module
from callscope.index.languages.base import LanguageConfig, strip_generics
from callscope.index.languages.javascript import JS_DEFINITION_KINDS, JS_SCOPE_KINDS
from callscope.index.models import ScopeKind, SymbolKind

_NULLISH = frozenset({"null", "undefined", "void"})


def normalize_typescript_type(type_name: str) -> str | None:
    """``Foo<T> | null`` -> ``Foo``; arrays, unions and literals -> None."""
    text = type_name.strip().lstrip(":").strip()
    members = [m.strip() for m in text.split("|") if m.strip() and m.strip() not in _NULLISH]
    if len(members) != 1:
        return None
    member = members[0]
    if member.endswith("[]") or member[:1] in ("'", '"', "{", "(") or member[:1].isdigit():
        return None
    return strip_generics(member) or None


TYPESCRIPT = LanguageConfig(
    name="typescript",
    extensions=frozenset({".ts", ".tsx", ".mts", ".cts"}),
    module_resolver=resolve_typescript_module,
    scope_kinds={**JS_SCOPE_KINDS, "namespace": ScopeKind.NAMESPACE},
    definition_kinds={
        **JS_DEFINITION_KINDS,
        "abstract_class": SymbolKind.CLASS,
        "namespace": SymbolKind.VARIABLE,
    },
    hoisted_definitions=frozenset({"var"}),
    constructor_names=frozenset({"constructor"}),
    self_names=frozenset({"this"}),
    normalize_type=normalize_typescript_type,
)
