"""Declarative per-language configuration.

Every supported language is one frozen ``LanguageConfig`` value. The
scope, definition, resolution and call-graph algorithms only consult
these tables and hooks, never the language name, so adding a language
means adding a config, not a subclass.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from callscope.index.models import (
    ExportKind,
    ImportKind,
    Location,
    ReferenceKind,
    ScopeKind,
    SymbolKind,
)

ModuleResolver = Callable[[str, str, frozenset[str]], str | None]
TypeNormalizer = Callable[[str], str | None]


# ---------------------------------------------------------------------------
# Metadata extractors
# ---------------------------------------------------------------------------


def _as_location(value: Any) -> Location | None:
    if value is None or isinstance(value, Location):
        return value
    if isinstance(value, Mapping):
        return Location(**value)
    return Location(*value)


def mapping_receiver_location(node: Any) -> Location | None:
    """Receiver span of a member call, from a mapping-shaped node."""
    if not isinstance(node, Mapping):
        return None
    return _as_location(node.get("receiver_location"))


def mapping_property_chain(node: Any) -> tuple[str, ...]:
    if not isinstance(node, Mapping):
        return ()
    return tuple(node.get("property_chain") or ())


def mapping_type_annotation(node: Any) -> str | None:
    if not isinstance(node, Mapping):
        return None
    return node.get("type_annotation")


def mapping_constructor_target(node: Any) -> str | None:
    if not isinstance(node, Mapping):
        return None
    return node.get("constructor_target")


@dataclass(frozen=True, slots=True)
class MetadataExtractors:
    """Hooks translating an opaque node handle into core-level values.

    The defaults read adapters that pre-compute metadata into a mapping.
    A tree-sitter based adapter would swap in functions walking the node.
    """

    extract_receiver_location: Callable[[Any], Location | None] = mapping_receiver_location
    extract_property_chain: Callable[[Any], tuple[str, ...]] = mapping_property_chain
    extract_type_annotation: Callable[[Any], str | None] = mapping_type_annotation
    extract_constructor_target: Callable[[Any], str | None] = mapping_constructor_target


DEFAULT_EXTRACTORS = MetadataExtractors()


# ---------------------------------------------------------------------------
# Shared capture tables
# ---------------------------------------------------------------------------

COMMON_SCOPE_KINDS: Mapping[str, ScopeKind] = {kind.value: kind for kind in ScopeKind}

COMMON_DEFINITION_KINDS: Mapping[str, SymbolKind] = {
    **{kind.value: kind for kind in SymbolKind},
    "type": SymbolKind.TYPE_ALIAS,
    "field": SymbolKind.PROPERTY,
    "constant": SymbolKind.VARIABLE,
    "arrow_function": SymbolKind.FUNCTION,
}

COMMON_REFERENCE_KINDS: Mapping[str, ReferenceKind] = {
    **{kind.value: kind for kind in ReferenceKind},
    "method_call": ReferenceKind.CALL,
    "constructor": ReferenceKind.CALL,
    "property": ReferenceKind.MEMBER_ACCESS,
    "type": ReferenceKind.TYPE_ANNOTATION,
    "variable": ReferenceKind.READ,
}

COMMON_IMPORT_KINDS: Mapping[str, ImportKind] = {kind.value: kind for kind in ImportKind}

COMMON_EXPORT_KINDS: Mapping[str, ExportKind] = {
    **{kind.value: kind for kind in ExportKind},
    "all": ExportKind.WILDCARD,
}


def strip_generics(type_name: str) -> str:
    """``Map<string, Foo>`` -> ``Map``."""
    return type_name.split("<", 1)[0].split("[", 1)[0].strip()


def identity_type(type_name: str) -> str | None:
    name = strip_generics(type_name)
    return name or None


# ---------------------------------------------------------------------------
# LanguageConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LanguageConfig:
    """Capture-to-builder mapping for one language.

    Attributes:
        name: Language identifier ("python", "typescript", ...).
        extensions: File extensions including the dot.
        module_resolver: Raw import path -> repo file, or None.
        scope_kinds: Capture entity -> ScopeKind for ``scope.*`` captures.
        definition_kinds: Capture entity -> SymbolKind for ``definition.*``.
        reference_kinds: Capture entity -> ReferenceKind for ``reference.*``.
        import_kinds: Capture entity -> ImportKind for ``import.*``.
        export_kinds: Capture entity -> ExportKind for ``export.*``.
        hoisted_definitions: Definition entities anchored to the nearest
            function or module scope instead of their block (JS ``var``).
        constructor_names: Method names treated as constructors.
        self_names: Receiver names meaning "the enclosing type".
        exports_top_level: Top-level definitions are exported unless
            private by name (Python).
        private_prefix: Top-level names with this prefix stay importable by
            name but never travel through wildcard re-exports.
        reexports_module_imports: Module-level imports are importable from
            this module (Python).
        submodule_imports: ``from pkg import mod`` may name a submodule.
        normalize_type: Annotation text -> bare type name, or None.
        extractors: Node metadata hooks.
    """

    name: str
    extensions: frozenset[str]
    module_resolver: ModuleResolver
    scope_kinds: Mapping[str, ScopeKind] = field(default_factory=lambda: COMMON_SCOPE_KINDS)
    definition_kinds: Mapping[str, SymbolKind] = field(
        default_factory=lambda: COMMON_DEFINITION_KINDS
    )
    reference_kinds: Mapping[str, ReferenceKind] = field(
        default_factory=lambda: COMMON_REFERENCE_KINDS
    )
    import_kinds: Mapping[str, ImportKind] = field(default_factory=lambda: COMMON_IMPORT_KINDS)
    export_kinds: Mapping[str, ExportKind] = field(default_factory=lambda: COMMON_EXPORT_KINDS)
    hoisted_definitions: frozenset[str] = frozenset()
    constructor_names: frozenset[str] = frozenset()
    self_names: frozenset[str] = frozenset()
    exports_top_level: bool = False
    private_prefix: str | None = None
    reexports_module_imports: bool = False
    submodule_imports: bool = False
    normalize_type: TypeNormalizer = identity_type
    extractors: MetadataExtractors = DEFAULT_EXTRACTORS

    def handles(self, path: str) -> bool:
        return any(path.endswith(ext) for ext in self.extensions)
