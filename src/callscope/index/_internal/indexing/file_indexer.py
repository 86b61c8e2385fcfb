"""Capture stream -> SemanticIndex, one file at a time.

Indexing a file is pure: it reads only its own captures and the language
config, so files can be indexed in worker processes. A failing file yields
a ``FileIndexResult`` with an error and an empty index; it never stops the
rest of the batch.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field

import structlog

from callscope.core.errors import CallscopeError
from callscope.index._internal.indexing.definition_builder import DefinitionBuilder
from callscope.index._internal.indexing.reference_builder import ReferenceBuilder
from callscope.index._internal.indexing.scope_builder import build_scope_tree
from callscope.index._internal.indexing.semantic_index import SemanticIndex
from callscope.index.captures import Capture, CaptureCategory, sort_captures
from callscope.index.languages import get_language_config
from callscope.index.models import (
    CaptureGap,
    ExportKind,
    FileIndexStats,
    Location,
    TypeBinding,
    TypeBindingSource,
)

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FileCaptures:
    """Input for one file: its language and capture stream."""

    file_path: str
    language: str
    captures: tuple[Capture, ...]
    line_count: int | None = None


@dataclass
class FileIndexResult:
    """Result of indexing a single file."""

    file_path: str
    language: str
    index: SemanticIndex
    stats: FileIndexStats = field(default_factory=FileIndexStats)
    error: str | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def merge_type_bindings(bindings: Sequence[TypeBinding]) -> tuple[TypeBinding, ...]:
    """One binding per location; an annotation replaces a constructor binding."""
    by_location: dict[Location, TypeBinding] = {}
    for binding in bindings:
        existing = by_location.get(binding.location)
        if existing is None or (
            existing.source == TypeBindingSource.CONSTRUCTOR
            and binding.source == TypeBindingSource.ANNOTATION
        ):
            by_location[binding.location] = binding
    return tuple(sorted(by_location.values(), key=lambda b: (b.location.start, b.location.end)))


def index_file(
    file_path: str,
    language: str,
    captures: Sequence[Capture],
    line_count: int | None = None,
    stats: FileIndexStats | None = None,
) -> SemanticIndex:
    """Build the semantic index of one file.

    Args:
        file_path: Repo-relative POSIX path.
        language: Registered language name.
        captures: The file's capture stream, in any order.
        line_count: Number of lines, used to size a synthesized root scope.
        stats: Optional counters to fill in.

    Raises:
        IndexingError: If the language has no registered config.
    """
    config = get_language_config(language)
    stats = stats if stats is not None else FileIndexStats()
    ordered = sort_captures(list(captures))
    stats.captures = len(ordered)

    tree = build_scope_tree(file_path, ordered, config, line_count)
    stats.scopes = len(tree)

    definitions = DefinitionBuilder(tree, config)
    references = ReferenceBuilder(tree, config)
    for capture in ordered:
        if capture.category == CaptureCategory.SCOPE:
            continue
        if not tree.covers(capture.location):
            stats.gaps.append(CaptureGap(capture.location, capture.name))
        if capture.category == CaptureCategory.DEFINITION:
            if definitions.add(capture) is None:
                stats.skipped_captures += 1
        else:
            references.add(capture)
    stats.skipped_captures += references.skipped

    for export in references.exports:
        if export.source is None and export.local_name:
            kind = ExportKind.DEFAULT if export.kind == ExportKind.DEFAULT else ExportKind.NAMED
            definitions.mark_exported(export.local_name, kind)

    built, definition_bindings = definitions.build()
    stats.definitions = len(built)
    stats.references = len(references.references)
    stats.imports = len(references.imports)
    stats.exports = len(references.exports)

    if stats.gaps:
        log.debug("file_indexer.capture_gaps", file=file_path, count=len(stats.gaps))

    return SemanticIndex(
        file_path=file_path,
        language=language,
        root_scope_id=tree.root_id,
        scopes=tuple(tree),
        definitions=tuple(built),
        references=tuple(references.references),
        imports=tuple(references.imports),
        exports=tuple(references.exports),
        type_bindings=merge_type_bindings([*definition_bindings, *references.type_bindings]),
    )


def _index_one(item: FileCaptures) -> FileIndexResult:
    """Index a single file (worker function). Never raises."""
    start = time.monotonic()
    stats = FileIndexStats()
    try:
        index = index_file(item.file_path, item.language, item.captures, item.line_count, stats)
        error = None
    except CallscopeError as e:
        index = _fallback_index(item)
        error = str(e)
    except Exception as e:  # noqa: BLE001
        index = _fallback_index(item)
        error = f"{type(e).__name__}: {e}"
    return FileIndexResult(
        file_path=item.file_path,
        language=item.language,
        index=index,
        stats=stats,
        error=error,
        duration_ms=int((time.monotonic() - start) * 1000),
    )


def _fallback_index(item: FileCaptures) -> SemanticIndex:
    return SemanticIndex.empty(item.file_path, item.language)


class FileIndexer:
    """Indexes batches of files, in-process or across worker processes."""

    def __init__(self, max_workers: int = 1) -> None:
        self.max_workers = max_workers

    def index_all(self, files: Sequence[FileCaptures]) -> list[FileIndexResult]:
        """Index every file; results come back in input order."""
        if self.max_workers <= 1 or len(files) <= 1:
            results = self._sequential_index(files)
        else:
            results = self._parallel_index(files, self.max_workers)

        for result in results:
            if result.error:
                log.warning("file_indexer.failed", file=result.file_path, error=result.error)
        order = {item.file_path: i for i, item in enumerate(files)}
        results.sort(key=lambda r: order.get(r.file_path, len(order)))
        return results

    def _sequential_index(self, files: Sequence[FileCaptures]) -> list[FileIndexResult]:
        return [_index_one(item) for item in files]

    def _parallel_index(self, files: Sequence[FileCaptures], workers: int) -> list[FileIndexResult]:
        """Index in parallel using a process pool."""
        results: list[FileIndexResult] = []
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(_index_one, item): item for item in files}
            for future in as_completed(futures):
                item = futures[future]
                try:
                    results.append(future.result())
                except Exception as e:  # noqa: BLE001
                    results.append(
                        FileIndexResult(
                            file_path=item.file_path,
                            language=item.language,
                            index=_fallback_index(item),
                            error=f"worker failed: {e}",
                        )
                    )
        return results
