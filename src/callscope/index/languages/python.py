"""Python language config."""

from __future__ import annotations

import re

from callscope.index._internal.resolution.module_resolution import resolve_python_module
from callscope.index.languages.base import (
    COMMON_DEFINITION_KINDS,
    COMMON_SCOPE_KINDS,
    LanguageConfig,
)
from callscope.index.models import ScopeKind, SymbolKind

_OPTIONAL_RE = re.compile(r"^(?:typing\.)?Optional\[(.+)\]$")
_NONE = frozenset({"None", "NoneType"})


def normalize_python_type(type_name: str) -> str | None:
    """``Optional["Foo"]`` / ``Foo | None`` -> ``Foo``. Dotted names are kept."""
    text = type_name.strip().strip("'\"")
    match = _OPTIONAL_RE.match(text)
    if match:
        text = match.group(1).strip().strip("'\"")
    members = [m.strip().strip("'\"") for m in text.split("|")]
    members = [m for m in members if m and m not in _NONE]
    if len(members) != 1:
        return None
    name = members[0].split("[", 1)[0].strip()
    return name if name.replace(".", "").replace("_", "").isalnum() else None


PYTHON = LanguageConfig(
    name="python",
    extensions=frozenset({".py", ".pyi"}),
    module_resolver=resolve_python_module,
    scope_kinds={**COMMON_SCOPE_KINDS, "async_function": ScopeKind.FUNCTION},
    definition_kinds={
        **COMMON_DEFINITION_KINDS,
        "async_function": SymbolKind.FUNCTION,
        "decorated_function": SymbolKind.FUNCTION,
        "attribute": SymbolKind.PROPERTY,
    },
    constructor_names=frozenset({"__init__"}),
    self_names=frozenset({"self", "cls"}),
    exports_top_level=True,
    private_prefix="_",
    reexports_module_imports=True,
    submodule_imports=True,
    normalize_type=normalize_python_type,
)
