"""What each file exports, and where re-export chains end.

A file's export table is assembled from three sources:

- definitions tagged EXPORTED (``export function f``, Python top-level names)
- explicit export statements, including re-exports from other modules
- re-exporting imports (Rust ``pub use``, Python module-level imports)

``resolve_export`` follows re-export hops until it reaches a definition or
a whole module. Chains are bounded by ``max_depth`` and cycles are
detected by ``file:name`` keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

import structlog

from callscope.core.errors import CallscopeError
from callscope.index._internal.indexing.semantic_index import SemanticIndex
from callscope.index._internal.resolution.import_registry import ImportRegistry
from callscope.index.languages import LanguageConfig, get_language_config
from callscope.index.models import Definition, ExportKind, ImportKind, ImportRecord, Location

log = structlog.get_logger(__name__)


class ExportEntryKind(str, Enum):
    LOCAL = "local"  # a definition in this file
    REEXPORT = "reexport"  # a name from another module
    MODULE = "module"  # a whole module (export * as ns, import * as ns)


@dataclass(frozen=True, slots=True)
class ExportEntry:
    """One name in a file's export table."""

    exported_name: str
    kind: ExportEntryKind
    location: Location
    definition: Definition | None = None
    source: str | None = None
    imported_name: str | None = None
    wildcard: bool = True  # travels through `export *`


@dataclass(frozen=True, slots=True)
class ExportResolution:
    """Outcome of following an exported name to its origin.

    Exactly one of ``definition`` / ``module_file`` is set when found.
    ``chain`` holds every ``file:name`` visited, starting with the request.
    """

    definition: Definition | None = None
    module_file: str | None = None
    chain: tuple[str, ...] = ()
    is_circular: bool = False
    depth_exceeded: bool = False
    import_unresolved: bool = False

    @property
    def found(self) -> bool:
        return self.definition is not None or self.module_file is not None


@dataclass(frozen=True, slots=True)
class _ExportTable:
    named: dict[str, ExportEntry]
    wildcards: tuple[str, ...]


def _submodule_source(source: str, name: str) -> str:
    return f"{source}{name}" if source.endswith(".") else f"{source}.{name}"


class ExportRegistry:
    """Export tables for every file, built lazily."""

    def __init__(
        self,
        indices: Mapping[str, SemanticIndex],
        imports: ImportRegistry,
        *,
        max_depth: int = 10,
    ) -> None:
        self._indices = dict(indices)
        self._imports = imports
        self._max_depth = max_depth
        self._tables: dict[str, _ExportTable] = {}

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def exported_names(self, file_path: str) -> list[str]:
        """Names this file exports directly (wildcard re-exports not expanded)."""
        return sorted(self._table(file_path).named)

    def entry(self, file_path: str, name: str) -> ExportEntry | None:
        return self._table(file_path).named.get(name)

    def resolve_export(self, file_path: str, name: str) -> ExportResolution:
        """Follow ``name`` exported by ``file_path`` to its definition or module."""
        result = self._resolve(file_path, name, ())
        if result.is_circular:
            log.info("export_registry.circular_reexport", chain=list(result.chain))
        elif result.depth_exceeded:
            log.info(
                "export_registry.depth_exceeded",
                chain=list(result.chain),
                max_depth=self._max_depth,
            )
        return result

    # -------------------------------------------------------------------------
    # Chain walking
    # -------------------------------------------------------------------------

    def _resolve(
        self,
        file_path: str,
        name: str,
        chain: tuple[str, ...],
        *,
        via_wildcard: bool = False,
    ) -> ExportResolution:
        key = f"{file_path}:{name}"
        if key in chain:
            return ExportResolution(chain=(*chain, key), is_circular=True)
        chain = (*chain, key)
        # The first hop is the request itself, not a re-export
        if len(chain) - 1 > self._max_depth:
            return ExportResolution(chain=chain, depth_exceeded=True)

        table = self._table(file_path)
        entry = table.named.get(name)
        if entry is not None and via_wildcard and not entry.wildcard:
            entry = None
        if entry is None:
            return self._resolve_wildcards(file_path, name, table.wildcards, chain)

        if entry.kind == ExportEntryKind.LOCAL:
            return ExportResolution(definition=entry.definition, chain=chain)

        target = self._imports.resolve_module(entry.source or "", file_path)
        if target is None:
            return ExportResolution(chain=chain, import_unresolved=True)
        if entry.kind == ExportEntryKind.MODULE or entry.imported_name is None:
            return ExportResolution(module_file=target, chain=chain)

        result = self._resolve(target, entry.imported_name, chain)
        if not result.found and not result.depth_exceeded:
            submodule = self.submodule(file_path, entry.source or "", entry.imported_name)
            if submodule is not None:
                return ExportResolution(module_file=submodule, chain=chain)
        return result

    def _resolve_wildcards(
        self,
        file_path: str,
        name: str,
        wildcards: tuple[str, ...],
        chain: tuple[str, ...],
    ) -> ExportResolution:
        # "default" never travels through export *
        if name == "default":
            return ExportResolution(chain=chain)
        fallback = ExportResolution(chain=chain)
        for source in wildcards:
            target = self._imports.resolve_module(source, file_path)
            if target is None:
                continue
            result = self._resolve(target, name, chain, via_wildcard=True)
            if result.found:
                return result
            if result.is_circular or result.depth_exceeded:
                fallback = result
        return fallback

    def submodule(self, file_path: str, source: str, name: str) -> str | None:
        """``from pkg import mod`` where ``mod`` is a module, not a name."""
        language = self._imports.language_of(file_path)
        if language is None:
            return None
        try:
            config = get_language_config(language)
        except CallscopeError:
            return None
        if not config.submodule_imports:
            return None
        return self._imports.resolve_module(_submodule_source(source, name), file_path)

    # -------------------------------------------------------------------------
    # Table construction
    # -------------------------------------------------------------------------

    def _table(self, file_path: str) -> _ExportTable:
        table = self._tables.get(file_path)
        if table is None:
            table = self._build_table(file_path)
            self._tables[file_path] = table
        return table

    def _build_table(self, file_path: str) -> _ExportTable:
        index = self._indices.get(file_path)
        if index is None:
            return _ExportTable({}, ())

        named: dict[str, ExportEntry] = {}
        wildcards: list[str] = []
        root_id = index.root_scope_id
        config = self._language_config(index.language)
        # Private-by-name top-level names are still importable by name
        implicit_private = config is not None and config.exports_top_level

        for definition in index.definitions:
            if definition.defining_scope_id != root_id:
                continue
            if not (definition.visibility.is_exported or implicit_private):
                continue
            exported = (
                "default"
                if definition.visibility.export_kind == ExportKind.DEFAULT
                else definition.name
            )
            named.setdefault(
                exported,
                ExportEntry(
                    exported,
                    ExportEntryKind.LOCAL,
                    definition.location,
                    definition=definition,
                    wildcard=definition.visibility.is_exported,
                ),
            )

        for record in index.exports:
            if record.kind == ExportKind.WILDCARD:
                if record.source:
                    wildcards.append(record.source)
                continue
            if record.kind == ExportKind.NAMESPACE:
                named[record.exported_name] = ExportEntry(
                    record.exported_name,
                    ExportEntryKind.MODULE,
                    record.location,
                    source=record.source,
                )
                continue
            if record.source is not None:
                named[record.exported_name] = ExportEntry(
                    record.exported_name,
                    ExportEntryKind.REEXPORT,
                    record.location,
                    source=record.source,
                    imported_name=record.local_name or record.exported_name,
                )
                continue
            entry = self._local_export(index, record.local_name or record.exported_name)
            if entry is not None:
                named[record.exported_name] = ExportEntry(
                    record.exported_name,
                    entry.kind,
                    record.location,
                    definition=entry.definition,
                    source=entry.source,
                    imported_name=entry.imported_name,
                )

        implicit = config is not None and config.reexports_module_imports
        for record in index.imports:
            if record.kind == ImportKind.SIDE_EFFECT or not record.local_name:
                continue
            if not (record.is_reexport or (implicit and record.scope_id == root_id)):
                continue
            # Explicit exports and local definitions take precedence
            if record.local_name in named:
                continue
            named[record.local_name] = self._import_entry(record.local_name, record)

        return _ExportTable(named, tuple(wildcards))

    def _local_export(self, index: SemanticIndex, local_name: str) -> ExportEntry | None:
        """Entry for ``export { local_name }``: a local definition or an import."""
        for definition in index.definitions_named(local_name):
            if definition.defining_scope_id == index.root_scope_id:
                return ExportEntry(
                    local_name, ExportEntryKind.LOCAL, definition.location, definition=definition
                )
        for record in index.imports:
            if record.local_name == local_name and record.scope_id == index.root_scope_id:
                return self._import_entry(local_name, record)
        return None

    @staticmethod
    def _import_entry(exported_name: str, record: ImportRecord) -> ExportEntry:
        if record.kind == ImportKind.NAMESPACE or record.imported_name is None:
            return ExportEntry(
                exported_name, ExportEntryKind.MODULE, record.location, source=record.source
            )
        return ExportEntry(
            exported_name,
            ExportEntryKind.REEXPORT,
            record.location,
            source=record.source,
            imported_name=record.imported_name,
        )

    @staticmethod
    def _language_config(language: str) -> LanguageConfig | None:
        try:
            return get_language_config(language)
        except CallscopeError:
            return None
