"""Project-wide definition lookup by name, id, file and scope."""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from callscope.index._internal.indexing.scope_builder import ScopeTree
from callscope.index._internal.indexing.semantic_index import SemanticIndex
from callscope.index._internal.indexing.visibility import is_visible
from callscope.index.models import Definition


class SymbolRegistry:
    """Immutable snapshot of every definition in the project.

    Files are merged in sorted path order and definitions keep source
    order, so "first declared" is deterministic across runs.
    """

    def __init__(self, indices: Mapping[str, SemanticIndex]) -> None:
        self._indices = dict(indices)
        self._by_id: dict[str, Definition] = {}
        self._by_name: dict[str, list[Definition]] = {}
        self._by_body_scope: dict[tuple[str, str], Definition] = {}
        for file_path in sorted(self._indices):
            for definition in self._indices[file_path].definitions:
                self._by_id[definition.symbol_id] = definition
                self._by_name.setdefault(definition.name, []).append(definition)
                if definition.body_scope_id is not None:
                    self._by_body_scope[(file_path, definition.body_scope_id)] = definition

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Definition]:
        return iter(self._by_id.values())

    @property
    def files(self) -> list[str]:
        return sorted(self._indices)

    def index(self, file_path: str) -> SemanticIndex | None:
        return self._indices.get(file_path)

    def tree(self, file_path: str) -> ScopeTree | None:
        index = self._indices.get(file_path)
        return index.scope_tree if index else None

    def get(self, symbol_id: str) -> Definition | None:
        return self._by_id.get(symbol_id)

    def named(self, name: str) -> list[Definition]:
        """Every definition called ``name``, project-wide."""
        return list(self._by_name.get(name, ()))

    def in_file(self, file_path: str, name: str) -> list[Definition]:
        index = self._indices.get(file_path)
        return list(index.definitions_named(name)) if index else []

    def in_scope(self, file_path: str, scope_id: str, name: str) -> list[Definition]:
        """Definitions of ``name`` whose defining scope is exactly ``scope_id``."""
        return [d for d in self.in_file(file_path, name) if d.defining_scope_id == scope_id]

    def owner_of_scope(self, file_path: str, scope_id: str) -> Definition | None:
        """The callable or type whose body is ``scope_id``."""
        return self._by_body_scope.get((file_path, scope_id))

    def candidates(
        self,
        name: str,
        *,
        file_path: str | None = None,
        scope_id: str | None = None,
        visible_from: tuple[str, str] | None = None,
    ) -> list[Definition]:
        """Disambiguate same-named definitions.

        Args:
            name: Symbol name.
            file_path: Keep only definitions in this file.
            scope_id: Keep only definitions whose defining scope is this one.
            visible_from: ``(file, scope_id)`` of a reference; keep only
                definitions visible from there.
        """
        found = self.in_file(file_path, name) if file_path else self.named(name)
        if scope_id is not None:
            found = [d for d in found if d.defining_scope_id == scope_id]
        if visible_from is not None:
            ref_file, ref_scope = visible_from
            found = [
                d
                for d in found
                if is_visible(d, ref_scope, ref_file, self.tree(d.file_path))
            ]
        return found
