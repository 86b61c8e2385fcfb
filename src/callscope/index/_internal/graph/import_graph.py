"""File-level import graph with reverse lookup.

Edges point from the importing file to the imported file. The reverse
adjacency answers "which files could change meaning if this one changes",
which drives incremental invalidation.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping

from callscope.index._internal.indexing.semantic_index import SemanticIndex
from callscope.index._internal.resolution.import_registry import ImportRegistry


class ImportGraph:
    """Forward and reverse import edges between project files.

    Mutated only by the snapshot builder that owns it; readers get a
    ``copy()``.
    """

    def __init__(self) -> None:
        self._forward: dict[str, set[str]] = {}
        self._reverse: dict[str, set[str]] = {}

    @classmethod
    def build(
        cls, indices: Mapping[str, SemanticIndex], imports: ImportRegistry
    ) -> ImportGraph:
        graph = cls()
        for file_path in sorted(indices):
            graph.update_file(file_path, imports.targets_of(file_path))
        return graph

    def __contains__(self, file_path: object) -> bool:
        return file_path in self._forward

    @property
    def files(self) -> list[str]:
        return sorted(self._forward)

    def edges(self) -> list[tuple[str, str]]:
        return sorted((src, dst) for src, targets in self._forward.items() for dst in targets)

    def dependencies_of(self, file_path: str) -> set[str]:
        """Files ``file_path`` imports directly."""
        return set(self._forward.get(file_path, ()))

    def dependents_of(self, file_path: str, transitive: bool = True) -> set[str]:
        """Files that import ``file_path``, directly or (by default) transitively.

        The file itself is never included, even inside an import cycle.
        """
        direct = self._reverse.get(file_path, set())
        if not transitive:
            return set(direct) - {file_path}

        seen: set[str] = set()
        queue = deque(direct)
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            queue.extend(self._reverse.get(current, ()))
        seen.discard(file_path)
        return seen

    def update_file(self, file_path: str, targets: Iterable[str]) -> None:
        """Replace the outgoing edges of ``file_path``."""
        for old in self._forward.get(file_path, ()):
            self._reverse.get(old, set()).discard(file_path)
        new_targets = {t for t in targets if t != file_path}
        self._forward[file_path] = new_targets
        for target in new_targets:
            self._reverse.setdefault(target, set()).add(file_path)

    def remove_file(self, file_path: str) -> None:
        """Drop the file's outgoing edges. Incoming edges stay until their owners update."""
        for old in self._forward.pop(file_path, ()):
            self._reverse.get(old, set()).discard(file_path)

    def copy(self) -> ImportGraph:
        clone = ImportGraph()
        clone._forward = {k: set(v) for k, v in self._forward.items()}
        clone._reverse = {k: set(v) for k, v in self._reverse.items()}
        return clone
