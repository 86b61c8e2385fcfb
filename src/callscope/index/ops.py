"""High-level orchestration of indexing, resolution and the call graph.

``Project`` owns one immutable ``ProjectSnapshot`` at a time. Every change
(new or edited files, removals, loaded indices) builds a complete new
snapshot off to the side and swaps it in under a lock; readers holding the
old snapshot keep a consistent view.

Incremental updates re-index only the changed files. Resolutions of files
that can not be affected (neither changed nor a transitive dependent of a
changed file) are carried over from the previous snapshot.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from callscope.config.models import CallscopeConfig
from callscope.core.errors import IndexingError
from callscope.core.logging import set_run_id
from callscope.index._internal.graph.call_graph import CallGraph, EntryPoint
from callscope.index._internal.graph.import_graph import ImportGraph
from callscope.index._internal.indexing.file_indexer import FileCaptures, FileIndexer
from callscope.index._internal.indexing.semantic_index import SemanticIndex, SemanticIndexStats
from callscope.index._internal.resolution.resolution_registry import ResolutionRegistry
from callscope.index._internal.resolution.symbol_registry import SymbolRegistry
from callscope.index._internal.resolution.type_context import TypeContext
from callscope.index.models import Definition, Location, Reference, Resolution, Unresolved

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProjectSnapshot:
    """Everything derived from one set of file indices."""

    generation: int
    indices: Mapping[str, SemanticIndex]
    resolutions: ResolutionRegistry
    import_graph: ImportGraph
    call_graph: CallGraph

    @property
    def symbols(self) -> SymbolRegistry:
        return self.resolutions.symbols

    @property
    def types(self) -> TypeContext:
        return self.resolutions.types


@dataclass
class UpdateResult:
    """Outcome of a build or an incremental update."""

    indexed: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    affected: list[str] = field(default_factory=list)
    reused: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    duration_ms: int = 0


class Project:
    """Project-wide semantic model over capture streams.

    Usage::

        project = Project.build(files, config)
        project.entry_points
        project.update_files([changed_file_captures])
    """

    def __init__(self, config: CallscopeConfig | None = None) -> None:
        self.config = config or CallscopeConfig()
        self._indexer = FileIndexer(max_workers=self.config.indexer.max_workers)
        # Only one snapshot builder at a time; reads need no lock
        self._swap_lock = threading.Lock()
        self._failures: dict[str, str] = {}
        self._snapshot = self._make_snapshot({}, previous=None, affected=set(), removed=set())

    @classmethod
    def build(
        cls, files: Sequence[FileCaptures], config: CallscopeConfig | None = None
    ) -> Project:
        """Index ``files`` and build the first full snapshot."""
        project = cls(config)
        run_id = set_run_id()
        start = time.monotonic()
        result = project.update_files(files)
        stats = SemanticIndexStats()
        for index in project.indices.values():
            stats.add(index)
        stats.failed_files = sorted(result.failed)
        log.info(
            "project.built",
            run_id=run_id,
            files=stats.files,
            definitions=stats.definitions,
            references=stats.references,
            failed=len(stats.failed_files),
            entry_points=len(project.entry_points),
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return project

    # -------------------------------------------------------------------------
    # Snapshot access
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> ProjectSnapshot:
        return self._snapshot

    @property
    def indices(self) -> Mapping[str, SemanticIndex]:
        return self._snapshot.indices

    @property
    def resolutions(self) -> ResolutionRegistry:
        return self._snapshot.resolutions

    @property
    def import_graph(self) -> ImportGraph:
        return self._snapshot.import_graph

    @property
    def call_graph(self) -> CallGraph:
        return self._snapshot.call_graph

    @property
    def entry_points(self) -> list[EntryPoint]:
        return self._snapshot.call_graph.entry_points

    @property
    def failures(self) -> dict[str, str]:
        """File -> error for files whose last indexing attempt failed."""
        with self._swap_lock:
            return dict(self._failures)

    # -------------------------------------------------------------------------
    # Mutation (rebuild and swap)
    # -------------------------------------------------------------------------

    def update_files(self, changed: Sequence[FileCaptures]) -> UpdateResult:
        """Re-index changed or new files and swap in a new snapshot."""
        start = time.monotonic()
        enabled = set(self.config.indexer.languages)
        wanted = []
        for item in changed:
            if item.language in enabled:
                wanted.append(item)
            else:
                log.debug("project.language_disabled", file=item.file_path, language=item.language)

        results = self._indexer.index_all(wanted)
        result = self._apply(
            {r.file_path: r.index for r in results},
            removed=set(),
            errors={r.file_path: r.error for r in results},
        )
        result.duration_ms = int((time.monotonic() - start) * 1000)
        log.info(
            "project.updated",
            indexed=len(result.indexed),
            affected=len(result.affected),
            reused=len(result.reused),
            failed=len(result.failed),
        )
        return result

    def remove_file(self, file_path: str) -> UpdateResult:
        """Drop a file; its dependents are re-resolved."""
        if file_path not in self._snapshot.indices:
            return UpdateResult()
        result = self._apply({}, removed={file_path})
        log.info("project.file_removed", file=file_path, affected=len(result.affected))
        return result

    def load_index(self, data: Mapping[str, Any]) -> SemanticIndex:
        """Install a serialized per-file index (``SemanticIndex.to_dict()``).

        A malformed index is replaced by an empty one for its file and
        logged; it never raises.
        """
        try:
            index = SemanticIndex.from_dict(dict(data))
        except IndexingError as e:
            file_path = str(data.get("file_path") or "")
            language = str(data.get("language") or "")
            log.warning("project.malformed_index", file=file_path or None, error=str(e))
            index = SemanticIndex.empty(file_path, language)
            if not file_path:
                return index
            self._apply({file_path: index}, removed=set(), errors={file_path: e.message})
            return index
        self._apply({index.file_path: index}, removed=set(), errors={index.file_path: None})
        return index

    def _apply(
        self,
        new_indices: Mapping[str, SemanticIndex],
        removed: set[str],
        errors: Mapping[str, str | None] | None = None,
    ) -> UpdateResult:
        failed: dict[str, str] = {}
        with self._swap_lock:
            previous = self._snapshot
            for file_path, error in (errors or {}).items():
                if error:
                    self._failures[file_path] = error
                    failed[file_path] = error
                else:
                    self._failures.pop(file_path, None)
            for file_path in removed:
                self._failures.pop(file_path, None)

            indices = {k: v for k, v in previous.indices.items() if k not in removed}
            indices.update(new_indices)

            affected = set(new_indices) | removed
            for file_path in list(affected):
                affected |= previous.import_graph.dependents_of(file_path)
            if new_indices or removed:
                # Unresolved references depend on names anywhere in the project
                affected |= self._files_with_unresolved(previous)
            affected &= set(indices) | removed

            snapshot = self._make_snapshot(
                indices, previous=previous, affected=affected, removed=removed
            )
            self._snapshot = snapshot

        return UpdateResult(
            indexed=sorted(new_indices),
            removed=sorted(removed),
            affected=sorted(affected - removed),
            reused=sorted(set(indices) - affected),
            failed=failed,
        )

    @staticmethod
    def _files_with_unresolved(snapshot: ProjectSnapshot) -> set[str]:
        found = set()
        for file_path in snapshot.indices:
            resolutions = snapshot.resolutions.resolutions_for(file_path)
            if any(isinstance(r, Unresolved) for r in resolutions.values()):
                found.add(file_path)
        return found

    def _make_snapshot(
        self,
        indices: Mapping[str, SemanticIndex],
        *,
        previous: ProjectSnapshot | None,
        affected: set[str],
        removed: set[str],
    ) -> ProjectSnapshot:
        resolutions = ResolutionRegistry(indices, config=self.config.resolution)
        if previous is None:
            import_graph = ImportGraph.build(indices, resolutions.imports)
        else:
            for file_path in indices:
                if file_path not in affected:
                    resolutions.adopt(
                        file_path, previous.resolutions.resolutions_for(file_path)
                    )
            import_graph = previous.import_graph.copy()
            for file_path in sorted(removed):
                import_graph.remove_file(file_path)
            for file_path in sorted(affected - removed):
                import_graph.update_file(file_path, resolutions.imports.targets_of(file_path))
        resolutions.resolve_names()
        call_graph = CallGraph.build(indices, resolutions)
        generation = previous.generation + 1 if previous is not None else 0
        return ProjectSnapshot(generation, dict(indices), resolutions, import_graph, call_graph)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def resolve(self, reference: Reference) -> Resolution:
        """Resolution of ``reference`` in the current snapshot."""
        resolutions = self._snapshot.resolutions
        cached = resolutions.resolutions_for(reference.file_path).get(reference.key)
        return cached if cached is not None else resolutions.resolve(reference)

    def export_call_graph(self) -> dict[str, Any]:
        """``CallGraph.to_dict()`` honoring ``call_graph.include_module_invocations``."""
        include = self.config.call_graph.include_module_invocations
        return self._snapshot.call_graph.to_dict(include_module_invocations=include)

    def definition_at(self, location: Location) -> Definition | None:
        """Definition behind the code at ``location``.

        The smallest reference covering ``location`` is resolved; failing
        that, the smallest definition whose span covers it is returned.
        """
        snapshot = self._snapshot
        index = snapshot.indices.get(location.file_path)
        if index is None:
            return None

        covering = [r for r in index.references if r.location.contains(location)]
        if covering:
            reference = min(covering, key=lambda r: r.location.span_size())
            resolution = self.resolve(reference)
            if not isinstance(resolution, Unresolved):
                return snapshot.symbols.get(resolution.symbol_id)

        containing = [d for d in index.definitions if d.location.contains(location)]
        if containing:
            return min(containing, key=lambda d: d.location.span_size())
        return None
