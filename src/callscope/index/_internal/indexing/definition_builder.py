"""Definition records from ``definition.*`` captures.

Each definition is anchored to the scope its declaration *starts* in.
Using the full declaration span instead would attribute a class to the
innermost method scope inside it, which breaks every lookup downstream.
"""

from __future__ import annotations

from dataclasses import replace

from callscope.index._internal.indexing.scope_builder import ScopeTree
from callscope.index._internal.indexing.visibility import compute_visibility
from callscope.index.captures import Capture, CaptureCategory
from callscope.index.languages.base import LanguageConfig
from callscope.index.models import (
    CALLABLE_KINDS,
    CALLABLE_SCOPE_KINDS,
    HOISTING_SCOPE_KINDS,
    TYPE_KINDS,
    TYPE_SCOPE_KINDS,
    Definition,
    ExportKind,
    Location,
    ScopeKind,
    SymbolKind,
    TypeBinding,
    TypeBindingSource,
    Visibility,
)

_BLOCK_SCOPE_KINDS = frozenset({ScopeKind.BLOCK, ScopeKind.COMPREHENSION})


def make_symbol_id(kind: SymbolKind, name: str, location: Location) -> str:
    """Deterministic symbol id: ``kind:file:sl:sc:el:ec:name``."""
    return f"{kind.value}:{location.key}:{name}"


def _tuple_attr(capture: Capture, key: str) -> tuple[str, ...]:
    value = capture.attr(key)
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


class DefinitionBuilder:
    """Accumulates definitions for one file, in source order."""

    def __init__(self, tree: ScopeTree, config: LanguageConfig) -> None:
        self._tree = tree
        self._config = config
        self._definitions: list[Definition] = []
        self._bindings: list[TypeBinding] = []

    def add(self, capture: Capture) -> Definition | None:
        """Build a definition from one capture; None if the entity is unknown."""
        if capture.category != CaptureCategory.DEFINITION:
            return None
        kind = self._config.definition_kinds.get(capture.entity)
        if kind is None:
            return None

        name = capture.attr("name") or capture.text
        if not name:
            return None
        if kind == SymbolKind.METHOD and name in self._config.constructor_names:
            kind = SymbolKind.CONSTRUCTOR

        tree = self._tree
        scope_id = tree.defining_scope(capture.location)
        if capture.entity in self._config.hoisted_definitions:
            hoisted = tree.nearest(scope_id, HOISTING_SCOPE_KINDS)
            scope_id = hoisted.id if hoisted else tree.root_id
        scope = tree.get(scope_id) or tree.root

        is_top_level = scope_id == tree.root_id
        is_parameter_or_block_local = (
            kind == SymbolKind.PARAMETER or scope.kind in _BLOCK_SCOPE_KINDS
        )
        is_exported = bool(capture.attr("exported")) or (
            self._config.exports_top_level
            and is_top_level
            and kind != SymbolKind.PARAMETER
            and not (self._config.private_prefix and name.startswith(self._config.private_prefix))
        )
        export_kind = (
            ExportKind.DEFAULT
            if capture.attr("default") or capture.attr("export_kind") == "default"
            else ExportKind.NAMED
        )

        extractors = self._config.extractors
        annotation = extractors.extract_type_annotation(capture.node)
        constructor_target = extractors.extract_constructor_target(capture.node)
        type_annotation = self._config.normalize_type(annotation) if annotation else None

        definition = Definition(
            symbol_id=make_symbol_id(kind, name, capture.location),
            name=name,
            kind=kind,
            location=capture.location,
            defining_scope_id=scope_id,
            visibility=compute_visibility(
                is_exported,
                is_top_level,
                is_parameter_or_block_local,
                is_type_member=scope.kind in TYPE_SCOPE_KINDS,
                export_kind=export_kind,
            ),
            type_annotation=type_annotation,
            parameters=_tuple_attr(capture, "parameters"),
            return_type=capture.attr("return_type"),
            extends=_tuple_attr(capture, "extends"),
            implements=_tuple_attr(capture, "implements"),
            decorators=_tuple_attr(capture, "decorators"),
            variants=_tuple_attr(capture, "variants"),
            owner_type=capture.attr("owner_type"),
            access=capture.attr("access"),
            is_static=bool(capture.attr("static")),
        )
        self._definitions.append(definition)

        # Explicit annotation wins over a constructor at the same location
        if type_annotation:
            self._bindings.append(
                TypeBinding(
                    capture.location, type_annotation, TypeBindingSource.ANNOTATION, scope_id
                )
            )
        elif constructor_target:
            target = self._config.normalize_type(constructor_target)
            if target:
                self._bindings.append(
                    TypeBinding(capture.location, target, TypeBindingSource.CONSTRUCTOR, scope_id)
                )
        return definition

    def mark_exported(self, local_name: str, export_kind: ExportKind) -> bool:
        """Re-tag top-level definitions named ``local_name`` as exported.

        Used for export statements separate from the declaration
        (``export { foo }``). Returns False if nothing matched.
        """
        matched = False
        for i, definition in enumerate(self._definitions):
            if definition.name != local_name or definition.defining_scope_id != self._tree.root_id:
                continue
            matched = True
            if not definition.visibility.is_exported:
                self._definitions[i] = replace(
                    definition, visibility=Visibility.exported(export_kind)
                )
        return matched

    def build(self) -> tuple[list[Definition], list[TypeBinding]]:
        """Link body scopes and return definitions plus their type bindings."""
        claimed: set[str] = set()
        result = list(self._definitions)
        # A body scope belongs to the tightest declaration covering its start
        order = sorted(range(len(result)), key=lambda i: result[i].location.span_size())
        for i in order:
            body = self._find_body_scope(result[i], claimed)
            if body is not None:
                claimed.add(body)
                result[i] = replace(result[i], body_scope_id=body)
        return result, list(self._bindings)

    def _find_body_scope(self, definition: Definition, claimed: set[str]) -> str | None:
        if definition.kind in CALLABLE_KINDS:
            wanted = CALLABLE_SCOPE_KINDS
        elif definition.kind in TYPE_KINDS:
            wanted = TYPE_SCOPE_KINDS
        else:
            return None
        scopes = self._tree.children_within(definition.defining_scope_id, definition.location)
        for scope in scopes:
            if scope.kind in wanted and scope.id not in claimed:
                return scope.id
        return None
