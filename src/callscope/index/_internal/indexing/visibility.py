"""Visibility computation and reference-centric visibility checks.

Visibility is always evaluated relative to the asking location: the same
definition can be visible from one scope and invisible from its sibling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from callscope.index.models import Definition, ExportKind, Visibility, VisibilityKind

if TYPE_CHECKING:
    from callscope.index._internal.indexing.scope_builder import ScopeTree


def compute_visibility(
    is_exported: bool,
    is_top_level_of_file: bool,
    is_parameter_or_block_local: bool,
    *,
    is_type_member: bool = False,
    export_kind: ExportKind = ExportKind.NAMED,
) -> Visibility:
    """Pick the visibility tag for a new definition.

    Args:
        is_exported: The declaration is exported from its module.
        is_top_level_of_file: Declared directly in the root scope.
        is_parameter_or_block_local: A parameter or a block-scoped binding.
        is_type_member: Declared in a class/interface/enum/impl body. Members
            are reached through a receiver, not by bare name from nested
            scopes.
        export_kind: Named or default, for exported declarations.
    """
    if is_exported:
        return Visibility.exported(export_kind)
    if is_top_level_of_file:
        return Visibility.file()
    if is_parameter_or_block_local:
        return Visibility.scope_children()
    if is_type_member:
        return Visibility.scope_local()
    return Visibility.scope_children()


def is_visible(
    definition: Definition,
    reference_scope_id: str,
    reference_file: str,
    scopes: ScopeTree | None = None,
) -> bool:
    """Can code in ``reference_scope_id`` of ``reference_file`` see ``definition``?

    ``scopes`` is the scope tree of the definition's file; it is needed only
    for ``scope_children`` checks. Exported definitions are visible from any
    file here; whether the reference actually imports them is decided by
    the resolution registry.
    """
    kind = definition.visibility.kind
    if kind == VisibilityKind.EXPORTED:
        return True
    if reference_file != definition.file_path:
        return False
    if kind == VisibilityKind.FILE:
        return True
    if kind == VisibilityKind.SCOPE_LOCAL:
        return reference_scope_id == definition.defining_scope_id
    if scopes is None:
        return reference_scope_id == definition.defining_scope_id
    return scopes.is_ancestor_or_self(definition.defining_scope_id, reference_scope_id)
