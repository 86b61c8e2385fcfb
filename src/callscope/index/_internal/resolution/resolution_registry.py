"""Reference -> definition resolution.

``resolve`` tries, in order:

1. receiver type: ``obj.method()`` looks ``method`` up on the type of
   ``obj`` (own members, then inherited); a namespace import receiver
   (``utils.helper()``) looks the name up in that module's exports
2. the scope chain, innermost first, honoring visibility
3. other same-file definitions visible file-wide
4. the file's import binding, followed through re-export chains

Failures are values (``Unresolved``) with a reason, never exceptions.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field

import structlog

from callscope.config.models import ResolutionConfig
from callscope.index._internal.indexing.semantic_index import SemanticIndex
from callscope.index._internal.indexing.visibility import is_visible
from callscope.index._internal.resolution.export_registry import (
    ExportRegistry,
    ExportResolution,
)
from callscope.index._internal.resolution.import_registry import ImportRegistry
from callscope.index._internal.resolution.symbol_registry import SymbolRegistry
from callscope.index._internal.resolution.type_context import NameTarget, TypeContext
from callscope.index.models import (
    CALLABLE_KINDS,
    Definition,
    ImportKind,
    ImportRecord,
    Reference,
    Resolution,
    ResolutionMethod,
    Resolved,
    Unresolved,
    UnresolvedReason,
    VisibilityKind,
)

log = structlog.get_logger(__name__)


@dataclass
class ResolutionStats:
    """Counts over every cached resolution."""

    references: int = 0
    resolved: int = 0
    unresolved: int = 0
    low_confidence: int = 0
    by_method: Counter[str] = field(default_factory=Counter)
    by_reason: Counter[str] = field(default_factory=Counter)


def _resolved(
    definition: Definition,
    method: ResolutionMethod,
    *,
    low_confidence: bool = False,
    chain: tuple[str, ...] = (),
) -> Resolved:
    return Resolved(
        symbol_id=definition.symbol_id,
        file_path=definition.file_path,
        method=method,
        low_confidence=low_confidence,
        chain=chain,
    )


def _receiver_names(reference: Reference) -> tuple[str, ...]:
    """Receiver path from a property chain such as ``("this", "calc", "add")``."""
    chain = reference.property_chain
    if chain and chain[-1] == reference.name:
        return chain[:-1]
    return chain


class ResolutionRegistry:
    """Resolves references across a whole project snapshot."""

    def __init__(
        self,
        indices: Mapping[str, SemanticIndex],
        *,
        config: ResolutionConfig | None = None,
        symbols: SymbolRegistry | None = None,
        imports: ImportRegistry | None = None,
        exports: ExportRegistry | None = None,
    ) -> None:
        config = config or ResolutionConfig()
        self._indices = dict(indices)
        self.symbols = symbols or SymbolRegistry(self._indices)
        self.imports = imports or ImportRegistry(
            self._indices, cache=config.cache_module_resolution
        )
        self.exports = exports or ExportRegistry(
            self._indices, self.imports, max_depth=config.max_reexport_depth
        )
        self.types = TypeContext.build(
            self._indices, self.lookup_name, symbols=self.symbols, exports=self.exports
        )
        self._by_file: dict[str, dict[str, Resolution]] = {}

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def resolve(
        self,
        reference: Reference,
        scope_id: str | None = None,
        file_path: str | None = None,
    ) -> Resolution:
        """Resolve one reference.

        Args:
            reference: The reference to resolve.
            scope_id: Scope to resolve from. Defaults to the reference's
                enclosing scope.
            file_path: File to resolve in. Defaults to the reference's file.
        """
        scope_id = scope_id or reference.enclosing_scope_id
        file_path = file_path or reference.file_path
        if reference.receiver_location is not None or _receiver_names(reference):
            return self._resolve_member(reference, scope_id, file_path)
        return self.resolve_name(reference.name, scope_id, file_path)

    def resolve_name(self, name: str, scope_id: str, file_path: str) -> Resolution:
        """Resolve a bare name: scope chain, then same file, then imports."""
        resolution, _ = self._resolve_name(name, scope_id, file_path)
        return resolution

    def lookup_name(self, name: str, scope_id: str, file_path: str) -> NameTarget | None:
        """Like ``resolve_name`` but also reports names bound to whole modules."""
        _, target = self._resolve_name(name, scope_id, file_path)
        return target

    def resolutions_for(self, file_path: str) -> dict[str, Resolution]:
        """Resolution of every reference in ``file_path``, keyed by ``Reference.key``."""
        cached = self._by_file.get(file_path)
        if cached is not None:
            return cached
        index = self._indices.get(file_path)
        results: dict[str, Resolution] = {}
        if index is not None:
            for reference in index.references:
                results[reference.key] = self.resolve(reference)
        self._by_file[file_path] = results
        return results

    def resolve_names(self) -> dict[str, dict[str, Resolution]]:
        """Resolve every reference in the project; results are cached per file."""
        results = {path: self.resolutions_for(path) for path in sorted(self._indices)}
        stats = self.stats
        log.info(
            "resolution_registry.resolved",
            files=len(results),
            references=stats.references,
            resolved=stats.resolved,
            unresolved=stats.unresolved,
        )
        return results

    def adopt(self, file_path: str, resolutions: Mapping[str, Resolution]) -> None:
        """Reuse resolutions computed by an earlier snapshot for an unaffected file."""
        self._by_file[file_path] = dict(resolutions)

    def references_to(self, symbol_id: str) -> list[Reference]:
        """References resolving to ``symbol_id``, in file then source order."""
        found: list[Reference] = []
        for file_path in sorted(self._indices):
            resolutions = self.resolutions_for(file_path)
            for reference in self._indices[file_path].references:
                resolution = resolutions.get(reference.key)
                if isinstance(resolution, Resolved) and resolution.symbol_id == symbol_id:
                    found.append(reference)
        return found

    @property
    def stats(self) -> ResolutionStats:
        stats = ResolutionStats()
        for resolutions in self._by_file.values():
            for resolution in resolutions.values():
                stats.references += 1
                if isinstance(resolution, Resolved):
                    stats.resolved += 1
                    stats.by_method[resolution.method.value] += 1
                    if resolution.low_confidence:
                        stats.low_confidence += 1
                else:
                    stats.unresolved += 1
                    stats.by_reason[resolution.reason.value] += 1
        return stats

    # -------------------------------------------------------------------------
    # Receiver-qualified references
    # -------------------------------------------------------------------------

    def _resolve_member(self, reference: Reference, scope_id: str, file_path: str) -> Resolution:
        types = self.types
        receivers = _receiver_names(reference)
        type_id: str | None = None
        if reference.receiver_location is not None:
            type_id = types.type_at_location(reference.receiver_location, scope_id)
        if type_id is None and receivers:
            type_id = self._type_of_path(receivers, scope_id, file_path)

        if type_id is not None:
            member = types.find_member(type_id, reference.name)
            if member is None:
                return Unresolved(
                    UnresolvedReason.NOT_FOUND, f"{reference.name} is not a member of {type_id}"
                )
            if not self._accessible(member, scope_id, file_path):
                return Unresolved(UnresolvedReason.NOT_FOUND, f"{member.symbol_id} is private")
            return _resolved(member, ResolutionMethod.RECEIVER_TYPE)

        receiver = None
        if reference.receiver_location is not None:
            receiver = types.identifier_at(reference.receiver_location)
        if receiver is None and len(receivers) == 1:
            receiver = receivers[0]
        if receiver is not None:
            target = self.lookup_name(receiver, scope_id, file_path)
            if target is not None and target.module_file is not None:
                result = self.exports.resolve_export(target.module_file, reference.name)
                return self._from_export(result, ResolutionMethod.NAMESPACE_MEMBER)

        # No receiver type: never guess between same-named members
        candidates = [
            d
            for d in self.symbols.named(reference.name)
            if d.kind in CALLABLE_KINDS
            and (d.owner_type or d.visibility.kind == VisibilityKind.SCOPE_LOCAL)
        ]
        if len(candidates) > 1:
            return Unresolved(
                UnresolvedReason.AMBIGUOUS,
                f"receiver type unknown; {len(candidates)} members named {reference.name}",
            )
        return Unresolved(UnresolvedReason.NOT_FOUND, "receiver type unknown")

    def _type_of_path(self, names: tuple[str, ...], scope_id: str, file_path: str) -> str | None:
        """Type of ``a.b.c`` by walking annotated members from the root name."""
        types = self.types
        type_id = types.type_of_name(names[0], file_path, scope_id)
        for name in names[1:]:
            if type_id is None:
                return None
            member = types.find_member(type_id, name)
            if member is None:
                return None
            type_id = member.symbol_id if member.is_type else types.symbol_type(member.symbol_id)
        return type_id

    def _accessible(self, member: Definition, scope_id: str, file_path: str) -> bool:
        if member.access != "private":
            return True
        if member.file_path != file_path:
            return False
        tree = self.symbols.tree(file_path)
        return tree is not None and tree.is_ancestor_or_self(member.defining_scope_id, scope_id)

    # -------------------------------------------------------------------------
    # Bare names
    # -------------------------------------------------------------------------

    def _resolve_name(
        self, name: str, scope_id: str, file_path: str
    ) -> tuple[Resolution, NameTarget | None]:
        index = self._indices.get(file_path)
        if index is None:
            return Unresolved(UnresolvedReason.NOT_FOUND, f"unknown file {file_path}"), None
        tree = index.scope_tree
        if scope_id not in tree:
            scope_id = tree.root_id

        # Step 2: scope chain. At each level local definitions come before
        # imports declared at that same level.
        binding = self.imports.binding(file_path, name, scope_id)
        for sid in tree.ancestors(scope_id):
            local = [
                d
                for d in self.symbols.in_scope(file_path, sid, name)
                if is_visible(d, scope_id, file_path, tree)
            ]
            if local:
                resolution = _resolved(
                    local[0], ResolutionMethod.LOCAL_SCOPE, low_confidence=len(local) > 1
                )
                return resolution, NameTarget(definition=local[0])
            if binding is not None and binding.scope_id == sid:
                return self._resolve_import(binding)

        # Step 3: same-file definitions visible file-wide
        same_file = [
            d
            for d in index.definitions_named(name)
            if d.visibility.kind in (VisibilityKind.FILE, VisibilityKind.EXPORTED)
        ]
        if same_file:
            resolution = _resolved(
                same_file[0], ResolutionMethod.SAME_FILE, low_confidence=len(same_file) > 1
            )
            return resolution, NameTarget(definition=same_file[0])

        # Step 4: imports the scope walk did not reach
        if binding is not None:
            return self._resolve_import(binding)
        return Unresolved(UnresolvedReason.NOT_FOUND, name), None

    def _resolve_import(self, record: ImportRecord) -> tuple[Resolution, NameTarget | None]:
        same_level = [
            r
            for r in self.imports.bindings_named(record.file_path, record.local_name)
            if r.scope_id == record.scope_id and r.kind != ImportKind.SIDE_EFFECT
        ]
        low_confidence = len(same_level) > 1

        target_file = self.imports.resolve_record(record)
        if target_file is None:
            return Unresolved(UnresolvedReason.IMPORT_UNRESOLVED, record.source), None
        if record.kind == ImportKind.NAMESPACE or record.imported_name is None:
            return (
                Unresolved(UnresolvedReason.NOT_FOUND, f"{record.local_name} names a module"),
                NameTarget(module_file=target_file),
            )

        result = self.exports.resolve_export(target_file, record.imported_name)
        if not result.found and not result.depth_exceeded:
            submodule = self.exports.submodule(
                record.file_path, record.source, record.imported_name
            )
            if submodule is not None:
                return (
                    Unresolved(UnresolvedReason.NOT_FOUND, f"{record.local_name} names a module"),
                    NameTarget(module_file=submodule),
                )

        resolution = self._from_export(
            result, ResolutionMethod.IMPORT, low_confidence=low_confidence
        )
        if result.definition is not None:
            return resolution, NameTarget(definition=result.definition)
        if result.module_file is not None:
            return resolution, NameTarget(module_file=result.module_file)
        return resolution, None

    @staticmethod
    def _from_export(
        result: ExportResolution,
        method: ResolutionMethod,
        *,
        low_confidence: bool = False,
    ) -> Resolution:
        if result.definition is not None:
            return _resolved(
                result.definition, method, low_confidence=low_confidence, chain=result.chain
            )
        if result.module_file is not None:
            return Unresolved(
                UnresolvedReason.NOT_FOUND, f"names module {result.module_file}", result.chain
            )
        if result.is_circular:
            return Unresolved(UnresolvedReason.CIRCULAR_REEXPORT, "", result.chain)
        if result.import_unresolved:
            return Unresolved(UnresolvedReason.IMPORT_UNRESOLVED, "", result.chain)
        if result.depth_exceeded:
            return Unresolved(UnresolvedReason.NOT_FOUND, "re-export depth exceeded", result.chain)
        return Unresolved(UnresolvedReason.NOT_FOUND, "not exported", result.chain)
