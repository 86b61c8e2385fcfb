"""Rust language config."""

from __future__ import annotations

from callscope.index._internal.resolution.module_resolution import resolve_rust_module
from callscope.index.languages.base import (
    COMMON_DEFINITION_KINDS,
    COMMON_SCOPE_KINDS,
    LanguageConfig,
)
from callscope.index.models import ScopeKind, SymbolKind

# Wrappers whose first type argument is what methods are called on
_TRANSPARENT_WRAPPERS = frozenset({"Box", "Rc", "Arc", "RefCell", "Cell", "Mutex", "RwLock"})


def normalize_rust_type(type_name: str) -> str | None:
    """``&mut Box<Foo>`` -> ``Foo``; ``crate::a::Foo`` is kept as a path."""
    text = type_name.strip()
    while True:
        stripped = text.lstrip("&").strip()
        if stripped.startswith("'"):
            stripped = stripped.split(None, 1)[1] if " " in stripped else ""
        if stripped.startswith("mut "):
            stripped = stripped[4:].strip()
        if stripped.startswith("dyn "):
            stripped = stripped[4:].strip()
        if stripped == text:
            break
        text = stripped
    if not text or text.startswith(("(", "[", "impl ", "fn")):
        return None
    base, _, rest = text.partition("<")
    base = base.strip()
    if base.rsplit("::", 1)[-1] in _TRANSPARENT_WRAPPERS and rest:
        inner = rest.rsplit(">", 1)[0].split(",", 1)[0]
        return normalize_rust_type(inner)
    return base or None


RUST = LanguageConfig(
    name="rust",
    extensions=frozenset({".rs"}),
    module_resolver=resolve_rust_module,
    scope_kinds={
        **COMMON_SCOPE_KINDS,
        "struct": ScopeKind.CLASS,
        "trait": ScopeKind.INTERFACE,
        "mod": ScopeKind.NAMESPACE,
        "closure": ScopeKind.LAMBDA,
    },
    definition_kinds={
        **COMMON_DEFINITION_KINDS,
        "struct": SymbolKind.CLASS,
        "trait": SymbolKind.INTERFACE,
        "associated_function": SymbolKind.METHOD,
        "const": SymbolKind.VARIABLE,
        "static": SymbolKind.VARIABLE,
        "let": SymbolKind.VARIABLE,
    },
    self_names=frozenset({"self", "Self"}),
    normalize_type=normalize_rust_type,
)
