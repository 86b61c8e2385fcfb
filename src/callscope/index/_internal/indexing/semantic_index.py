"""Per-file semantic index: the serializable output of indexing one file."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from pydantic import TypeAdapter, ValidationError

from callscope.config.constants import ROOT_SCOPE_END
from callscope.core.errors import IndexingError
from callscope.index._internal.indexing.scope_builder import (
    ScopeTree,
    make_scope_id,
    tree_from_scopes,
)
from callscope.index.models import (
    Definition,
    ExportRecord,
    ImportRecord,
    Location,
    Reference,
    Scope,
    ScopeKind,
    TypeBinding,
)


@dataclass(frozen=True)
class SemanticIndex:
    """Scopes, definitions, references, imports, exports and type bindings of one file.

    Immutable once built. ``to_dict()``/``from_dict()`` give a stable,
    JSON-compatible form for external caches.
    """

    file_path: str
    language: str
    root_scope_id: str
    scopes: tuple[Scope, ...] = ()
    definitions: tuple[Definition, ...] = ()
    references: tuple[Reference, ...] = ()
    imports: tuple[ImportRecord, ...] = ()
    exports: tuple[ExportRecord, ...] = ()
    type_bindings: tuple[TypeBinding, ...] = ()

    @classmethod
    def empty(cls, file_path: str, language: str) -> SemanticIndex:
        """Index with only a root scope; stands in for files that failed."""
        location = Location(file_path, 1, 0, ROOT_SCOPE_END, ROOT_SCOPE_END)
        root = Scope(
            id=make_scope_id(ScopeKind.MODULE, location),
            kind=ScopeKind.MODULE,
            location=location,
        )
        return cls(file_path=file_path, language=language, root_scope_id=root.id, scopes=(root,))

    @cached_property
    def scope_tree(self) -> ScopeTree:
        return tree_from_scopes(self.file_path, self.scopes, self.root_scope_id)

    @cached_property
    def _definitions_by_name(self) -> dict[str, tuple[Definition, ...]]:
        by_name: dict[str, list[Definition]] = {}
        for definition in self.definitions:
            by_name.setdefault(definition.name, []).append(definition)
        return {name: tuple(defs) for name, defs in by_name.items()}

    def definitions_named(self, name: str) -> tuple[Definition, ...]:
        """Same-file definitions named ``name``, in source order."""
        return self._definitions_by_name.get(name, ())

    @property
    def is_empty(self) -> bool:
        return not (self.definitions or self.references or self.imports or self.exports)

    def to_dict(self) -> dict[str, Any]:
        return _ADAPTER.dump_python(self, mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SemanticIndex:
        """Inverse of ``to_dict``.

        Raises:
            IndexingError: If ``data`` is not a valid serialized index.
        """
        try:
            return _ADAPTER.validate_python(data)
        except ValidationError as e:
            path = data.get("file_path", "<unknown>") if isinstance(data, dict) else "<unknown>"
            raise IndexingError.malformed_index(str(path), str(e.errors()[0]["msg"])) from e


@dataclass
class SemanticIndexStats:
    """Aggregate counts over a set of indices."""

    files: int = 0
    scopes: int = 0
    definitions: int = 0
    references: int = 0
    imports: int = 0
    exports: int = 0
    failed_files: list[str] = field(default_factory=list)

    def add(self, index: SemanticIndex) -> None:
        self.files += 1
        self.scopes += len(index.scopes)
        self.definitions += len(index.definitions)
        self.references += len(index.references)
        self.imports += len(index.imports)
        self.exports += len(index.exports)


_ADAPTER: TypeAdapter[SemanticIndex] = TypeAdapter(SemanticIndex)
