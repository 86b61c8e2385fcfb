"""Import bindings and module path resolution.

Module resolution is delegated to the importing file's language config
(``LanguageConfig.module_resolver``) and cached per importing file.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from callscope.core.errors import CallscopeError
from callscope.index._internal.indexing.semantic_index import SemanticIndex
from callscope.index.languages import get_language_config
from callscope.index.models import ImportKind, ImportRecord

log = structlog.get_logger(__name__)


@dataclass
class ImportStats:
    """Module resolution counters."""

    lookups: int = 0
    cache_hits: int = 0
    resolved: int = 0
    unresolved: int = 0


class ImportRegistry:
    """Per-file import records plus cached module resolution."""

    def __init__(
        self,
        indices: Mapping[str, SemanticIndex],
        *,
        cache: bool = True,
    ) -> None:
        self._indices = dict(indices)
        self._files = frozenset(self._indices)
        self._use_cache = cache
        self._cache: dict[tuple[str, str, str], str | None] = {}
        self.stats = ImportStats()

    @property
    def files(self) -> frozenset[str]:
        return self._files

    def clear(self) -> None:
        """Drop cached module resolutions."""
        self._cache.clear()

    def imports_of(self, file_path: str) -> tuple[ImportRecord, ...]:
        index = self._indices.get(file_path)
        return index.imports if index else ()

    def language_of(self, file_path: str) -> str | None:
        index = self._indices.get(file_path)
        return index.language if index else None

    def resolve_module(
        self,
        source: str,
        importing_file: str,
        language: str | None = None,
    ) -> str | None:
        """Raw module path -> project file, or None.

        Args:
            source: Module path as written in the import.
            importing_file: File containing the import.
            language: Override the importing file's language.
        """
        language = language or self.language_of(importing_file)
        if language is None:
            return None
        key = (language, importing_file, source)
        self.stats.lookups += 1
        if self._use_cache and key in self._cache:
            self.stats.cache_hits += 1
            return self._cache[key]

        try:
            resolver = get_language_config(language).module_resolver
        except CallscopeError:
            log.debug("import_registry.unknown_language", language=language)
            return None
        target = resolver(source, importing_file, self._files)
        if target is not None and target not in self._files:
            target = None

        if target is None:
            self.stats.unresolved += 1
        else:
            self.stats.resolved += 1
        if self._use_cache:
            self._cache[key] = target
        return target

    def resolve_record(self, record: ImportRecord) -> str | None:
        return self.resolve_module(record.source, record.file_path)

    def binding(self, file_path: str, local_name: str, scope_id: str) -> ImportRecord | None:
        """Nearest import of ``local_name`` visible from ``scope_id``.

        Imports in deeper scopes shadow outer ones; within one scope the
        first import in source order wins.
        """
        index = self._indices.get(file_path)
        if index is None or not local_name:
            return None
        tree = index.scope_tree
        by_scope: dict[str, ImportRecord] = {}
        for record in index.imports:
            if record.local_name == local_name and record.kind != ImportKind.SIDE_EFFECT:
                by_scope.setdefault(record.scope_id, record)
        if not by_scope:
            return None
        for sid in tree.ancestors(scope_id):
            if sid in by_scope:
                return by_scope[sid]
        return None

    def bindings_named(self, file_path: str, local_name: str) -> list[ImportRecord]:
        """All same-file imports binding ``local_name``, in source order."""
        return [r for r in self.imports_of(file_path) if r.local_name == local_name]

    def targets_of(self, file_path: str) -> set[str]:
        """Project files imported or re-exported from by ``file_path``."""
        sources = [record.source for record in self.imports_of(file_path)]
        index = self._indices.get(file_path)
        if index is not None:
            sources.extend(record.source for record in index.exports if record.source)
        targets: set[str] = set()
        for source in sources:
            target = self.resolve_module(source, file_path)
            if target is not None and target != file_path:
                targets.add(target)
        return targets
