"""Reference, import and export records from captures.

References are anchored to the innermost scope containing their whole
span. Imports are bindings and, like definitions, are anchored to the
scope their statement starts in.
"""

from __future__ import annotations

import structlog

from callscope.index._internal.indexing.scope_builder import ScopeTree
from callscope.index.captures import Capture, CaptureCategory
from callscope.index.languages.base import LanguageConfig
from callscope.index.models import (
    ExportKind,
    ExportRecord,
    ImportKind,
    ImportRecord,
    Reference,
    ReferenceKind,
    TypeBinding,
    TypeBindingSource,
)

log = structlog.get_logger(__name__)


class ReferenceBuilder:
    """Turns reference, import, export and type captures into records."""

    def __init__(self, tree: ScopeTree, config: LanguageConfig) -> None:
        self._tree = tree
        self._config = config
        self.references: list[Reference] = []
        self.imports: list[ImportRecord] = []
        self.exports: list[ExportRecord] = []
        self.type_bindings: list[TypeBinding] = []
        self.skipped = 0

    def add(self, capture: Capture) -> None:
        handler = {
            CaptureCategory.REFERENCE: self._add_reference,
            CaptureCategory.IMPORT: self._add_import,
            CaptureCategory.EXPORT: self._add_export,
            CaptureCategory.TYPE: self._add_type,
        }.get(capture.category)
        if handler is None:
            return
        if not handler(capture):
            self.skipped += 1

    # ------------------------------------------------------------------
    # references
    # ------------------------------------------------------------------

    def _add_reference(self, capture: Capture) -> bool:
        kind = self._config.reference_kinds.get(capture.entity)
        name = capture.attr("name") or capture.text
        if kind is None or not name:
            return False

        extractors = self._config.extractors
        normalize = self._config.normalize_type
        assignment_type = None
        constructor_target = None
        if kind == ReferenceKind.ASSIGNMENT:
            annotation = extractors.extract_type_annotation(capture.node)
            target = extractors.extract_constructor_target(capture.node)
            assignment_type = normalize(annotation) if annotation else None
            constructor_target = normalize(target) if target else None

        reference = Reference(
            kind=kind,
            name=name,
            location=capture.location,
            enclosing_scope_id=self._tree.innermost_scope(capture.location),
            receiver_location=extractors.extract_receiver_location(capture.node),
            property_chain=tuple(extractors.extract_property_chain(capture.node) or ()),
            assignment_type=assignment_type,
            constructor_target=constructor_target,
            nullable_safe_access=bool(
                capture.attr("nullable_safe_access") or capture.attr("optional_chaining")
            ),
            is_constructor_call=kind == ReferenceKind.CALL
            and (capture.entity == "constructor" or bool(capture.attr("construct"))),
        )
        self.references.append(reference)

        if assignment_type:
            self.type_bindings.append(
                TypeBinding(
                    capture.location,
                    assignment_type,
                    TypeBindingSource.ANNOTATION,
                    reference.enclosing_scope_id,
                )
            )
        elif constructor_target:
            self.type_bindings.append(
                TypeBinding(
                    capture.location,
                    constructor_target,
                    TypeBindingSource.CONSTRUCTOR,
                    reference.enclosing_scope_id,
                )
            )
        return True

    # ------------------------------------------------------------------
    # imports
    # ------------------------------------------------------------------

    def _add_import(self, capture: Capture) -> bool:
        kind = self._config.import_kinds.get(capture.entity)
        source = capture.attr("source")
        if kind is None or not source:
            log.debug(
                "reference_builder.import_skipped",
                file=self._tree.file_path,
                capture=capture.name,
            )
            return False

        local_name = capture.attr("alias") or capture.text or ""
        if kind == ImportKind.SIDE_EFFECT:
            imported_name = None
            local_name = ""
        elif kind == ImportKind.NAMESPACE:
            imported_name = None
        elif kind == ImportKind.DEFAULT:
            imported_name = "default"
        else:
            imported_name = capture.attr("imported_name") or capture.text or None

        if kind != ImportKind.SIDE_EFFECT and not local_name:
            return False

        self.imports.append(
            ImportRecord(
                local_name=local_name,
                imported_name=imported_name,
                source=source,
                kind=kind,
                location=capture.location,
                scope_id=self._tree.defining_scope(capture.location),
                alias=capture.attr("alias"),
                is_reexport=kind == ImportKind.REEXPORT or bool(capture.attr("reexport")),
            )
        )
        return True

    # ------------------------------------------------------------------
    # exports
    # ------------------------------------------------------------------

    def _add_export(self, capture: Capture) -> bool:
        kind = self._config.export_kinds.get(capture.entity)
        if kind is None:
            return False
        source = capture.attr("source")
        if kind in (ExportKind.WILDCARD, ExportKind.NAMESPACE) and not source:
            return False

        if kind == ExportKind.WILDCARD:
            exported_name = "*"
            local_name = None
        elif kind == ExportKind.DEFAULT:
            exported_name = "default"
            local_name = capture.attr("local_name") or capture.text or None
        else:
            exported_name = capture.attr("exported_name") or capture.text
            local_name = capture.attr("local_name") or capture.text or None
            if not exported_name:
                return False

        self.exports.append(
            ExportRecord(
                exported_name=exported_name,
                kind=kind,
                location=capture.location,
                local_name=None if kind == ExportKind.NAMESPACE else local_name,
                source=source,
            )
        )
        return True

    # ------------------------------------------------------------------
    # standalone type captures
    # ------------------------------------------------------------------

    def _add_type(self, capture: Capture) -> bool:
        """``type.annotation`` / ``type.constructor`` captured apart from a definition."""
        try:
            source = TypeBindingSource(capture.entity)
        except ValueError:
            return False
        type_name = self._config.normalize_type(capture.text) if capture.text else None
        if not type_name:
            return False
        self.type_bindings.append(
            TypeBinding(
                capture.location,
                type_name,
                source,
                self._tree.defining_scope(capture.location),
            )
        )
        return True
