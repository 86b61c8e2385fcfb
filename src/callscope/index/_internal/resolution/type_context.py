"""Type knowledge: which type a symbol or expression has, and its members.

Types come from two sources only: explicit annotations and constructor
assignments (``x = new Foo()``, ``x = Foo()``, ``Foo::new()``). There is
no inference beyond that. Type names are resolved through the scope-chain
lookup supplied by the resolution registry, so an annotation means the
same thing a bare reference at that spot would.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass

import structlog

from callscope.config.constants import MAX_INHERITANCE_DEPTH
from callscope.core.errors import CallscopeError
from callscope.index._internal.indexing.semantic_index import SemanticIndex
from callscope.index._internal.resolution.export_registry import ExportRegistry
from callscope.index._internal.resolution.symbol_registry import SymbolRegistry
from callscope.index.languages import get_language_config
from callscope.index.models import (
    Definition,
    Location,
    Reference,
    ReferenceKind,
    SymbolKind,
    TypeBinding,
)

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class NameTarget:
    """What a bare name resolves to: a definition, or a whole module."""

    definition: Definition | None = None
    module_file: str | None = None


NameLookup = Callable[[str, str, str], "NameTarget | None"]
"""``lookup(name, scope_id, file)``: scope chain, then same file, then imports."""


def _split_type_path(type_name: str) -> list[str]:
    separator = "::" if "::" in type_name else "."
    return [part for part in type_name.split(separator) if part]


class TypeContext:
    """Type bindings, type members and inheritance for a whole project."""

    def __init__(
        self,
        symbols: SymbolRegistry,
        lookup: NameLookup,
        exports: ExportRegistry | None = None,
    ) -> None:
        self._symbols = symbols
        self._lookup = lookup
        self._exports = exports

        self._bindings: dict[Location, TypeBinding] = {}
        self._identifiers: dict[Location, str] = {}
        self._definitions_at: dict[Location, Definition] = {}
        self._assignments: dict[tuple[str, str], list[Reference]] = {}
        self._by_scope: dict[tuple[str, str], list[Definition]] = {}
        self._self_names: dict[str, frozenset[str]] = {}

        for file_path in symbols.files:
            index = symbols.index(file_path)
            if index is not None:
                self._add_index(index)

        self._symbol_types: dict[str, str | None] = {}
        self._owned: dict[str, list[Definition]] | None = None

    @classmethod
    def build(
        cls,
        indices: Mapping[str, SemanticIndex],
        lookup: NameLookup,
        *,
        symbols: SymbolRegistry | None = None,
        exports: ExportRegistry | None = None,
    ) -> TypeContext:
        """Type context over ``indices``.

        ``lookup`` is the scope-chain name lookup used to turn annotation
        text into type definitions. Pass ``symbols`` to share an existing
        registry instead of indexing ``indices`` again.
        """
        return cls(symbols or SymbolRegistry(indices), lookup, exports)

    def _add_index(self, index: SemanticIndex) -> None:
        for binding in index.type_bindings:
            self._bindings[binding.location] = binding
        for reference in index.references:
            if reference.kind == ReferenceKind.READ:
                self._identifiers.setdefault(reference.location, reference.name)
            elif reference.kind == ReferenceKind.ASSIGNMENT and (
                reference.assignment_type or reference.constructor_target
            ):
                key = (index.file_path, reference.name)
                self._assignments.setdefault(key, []).append(reference)
        for definition in index.definitions:
            self._definitions_at.setdefault(definition.location, definition)
            key = (index.file_path, definition.defining_scope_id)
            self._by_scope.setdefault(key, []).append(definition)
        try:
            self._self_names[index.file_path] = get_language_config(index.language).self_names
        except CallscopeError:
            self._self_names[index.file_path] = frozenset()

    # -------------------------------------------------------------------------
    # Types of symbols and expressions
    # -------------------------------------------------------------------------

    def resolve_type_name(self, type_name: str, file_path: str, scope_id: str) -> str | None:
        """Resolve a normalized type name to a type definition's symbol id.

        ``ns.Type`` and ``module::Type`` go through the namespace's exports;
        if the qualified path does not resolve, the last segment is tried
        on its own.
        """
        parts = _split_type_path(type_name)
        if not parts:
            return None
        head = self._lookup(parts[0], scope_id, file_path)
        if len(parts) == 1:
            return self._type_id(head)

        found = self._resolve_qualified(head, parts[1:])
        if found is not None:
            return found
        return self._type_id(self._lookup(parts[-1], scope_id, file_path))

    def _resolve_qualified(self, head: NameTarget | None, rest: list[str]) -> str | None:
        if head is None:
            return None
        if head.definition is not None:
            if not head.definition.is_type:
                return None
            current = head.definition.symbol_id
            for part in rest:
                member = self.find_member(current, part)
                if member is None or not member.is_type:
                    return None
                current = member.symbol_id
            return current

        module_file = head.module_file
        if self._exports is None or module_file is None:
            return None
        for i, part in enumerate(rest):
            result = self._exports.resolve_export(module_file, part)
            if result.definition is not None:
                if i == len(rest) - 1:
                    return result.definition.symbol_id if result.definition.is_type else None
                head = NameTarget(definition=result.definition)
                return self._resolve_qualified(head, rest[i + 1 :])
            if result.module_file is None:
                return None
            module_file = result.module_file
        return None

    @staticmethod
    def _type_id(target: NameTarget | None) -> str | None:
        if target is None or target.definition is None or not target.definition.is_type:
            return None
        return target.definition.symbol_id

    def symbol_type(self, symbol_id: str) -> str | None:
        """Type of a variable, parameter or property, as a type symbol id.

        Uses the binding at the declaration (annotation beats constructor),
        then falls back to a typed assignment later bound to the same symbol.
        """
        if symbol_id in self._symbol_types:
            return self._symbol_types[symbol_id]
        # Guards re-entry while the assignment fallback resolves names
        self._symbol_types[symbol_id] = None

        definition = self._symbols.get(symbol_id)
        result: str | None = None
        if definition is not None and not definition.is_type:
            binding = self._bindings.get(definition.location)
            if binding is not None:
                result = self.resolve_type_name(
                    binding.type_name,
                    definition.file_path,
                    binding.scope_id or definition.defining_scope_id,
                )
            if result is None:
                result = self._type_from_assignments(definition)

        self._symbol_types[symbol_id] = result
        return result

    def _type_from_assignments(self, definition: Definition) -> str | None:
        file_path = definition.file_path
        for reference in self._assignments.get((file_path, definition.name), ()):
            target = self._lookup(reference.name, reference.enclosing_scope_id, file_path)
            if target is None or target.definition is None:
                continue
            if target.definition.symbol_id != definition.symbol_id:
                continue
            type_name = reference.assignment_type or reference.constructor_target
            binding = self._bindings.get(reference.location)
            if binding is not None:
                type_name = binding.type_name
            if type_name:
                found = self.resolve_type_name(type_name, file_path, reference.enclosing_scope_id)
                if found is not None:
                    return found
        return None

    def identifier_at(self, location: Location) -> str | None:
        """Name of the identifier captured exactly at ``location``, if any."""
        name = self._identifiers.get(location)
        if name is not None:
            return name
        definition = self._definitions_at.get(location)
        return definition.name if definition else None

    def type_at_location(self, location: Location, scope_id: str) -> str | None:
        """Type of the expression at ``location``, seen from ``scope_id``.

        A type binding at the location wins. Otherwise the identifier there
        is resolved: a receiver such as ``this``/``self`` means the enclosing
        type, a name of a type means the type itself (static access), and
        any other name means that symbol's type.
        """
        file_path = location.file_path
        binding = self._bindings.get(location)
        if binding is not None:
            found = self.resolve_type_name(binding.type_name, file_path, scope_id)
            if found is not None:
                return found

        definition = self._definitions_at.get(location)
        if definition is not None:
            return definition.symbol_id if definition.is_type else self.symbol_type(
                definition.symbol_id
            )

        name = self._identifiers.get(location)
        if name is None:
            return None
        return self.type_of_name(name, file_path, scope_id)

    def type_of_name(self, name: str, file_path: str, scope_id: str) -> str | None:
        """Type of the bare identifier ``name`` used in ``scope_id``."""
        if name in self._self_names.get(file_path, frozenset()):
            return self.enclosing_type(file_path, scope_id)
        target = self._lookup(name, scope_id, file_path)
        if target is None or target.definition is None:
            return None
        if target.definition.is_type:
            return target.definition.symbol_id
        return self.symbol_type(target.definition.symbol_id)

    def enclosing_type(self, file_path: str, scope_id: str) -> str | None:
        """The class-like type whose body (or member body) contains ``scope_id``."""
        tree = self._symbols.tree(file_path)
        if tree is None:
            return None
        for sid in tree.ancestors(scope_id):
            owner = self._symbols.owner_of_scope(file_path, sid)
            if owner is None:
                continue
            if owner.is_type:
                return owner.symbol_id
            if owner.owner_type:
                found = self.resolve_type_name(
                    owner.owner_type, file_path, owner.defining_scope_id
                )
                if found is not None:
                    return found
        return None

    # -------------------------------------------------------------------------
    # Members and inheritance
    # -------------------------------------------------------------------------

    def _owned_members(self) -> dict[str, list[Definition]]:
        """Out-of-line members grouped by the type their owner name resolves to."""
        if self._owned is None:
            # Owner names resolved while building see no out-of-line members yet
            self._owned = {}
            owned: dict[str, list[Definition]] = {}
            for definition in self._symbols:
                if not definition.owner_type:
                    continue
                type_id = self.resolve_type_name(
                    definition.owner_type, definition.file_path, definition.defining_scope_id
                )
                if type_id is None:
                    log.debug(
                        "type_context.owner_unresolved",
                        symbol_id=definition.symbol_id,
                        owner=definition.owner_type,
                    )
                    continue
                owned.setdefault(type_id, []).append(definition)
            self._owned = owned
        return self._owned

    def members_of(self, type_id: str) -> list[Definition]:
        """Members declared in the type's body plus out-of-line members."""
        definition = self._symbols.get(type_id)
        if definition is None:
            return []
        members: list[Definition] = []
        if definition.body_scope_id is not None:
            members.extend(
                d
                for d in self._by_scope.get((definition.file_path, definition.body_scope_id), ())
                if d.symbol_id != type_id
            )
        seen = {d.symbol_id for d in members}
        owned = self._owned_members().get(type_id, ())
        members.extend(d for d in owned if d.symbol_id not in seen)
        return members

    def parent_of(self, type_id: str) -> str | None:
        """The first ``extends`` entry, resolved from the type's own scope."""
        definition = self._symbols.get(type_id)
        if definition is None or not definition.extends:
            return None
        return self.resolve_type_name(
            definition.extends[0], definition.file_path, definition.defining_scope_id
        )

    def inheritance_chain(self, type_id: str) -> list[str]:
        """``type_id`` followed by its parents, nearest first. Cycle-safe."""
        chain = [type_id]
        seen = {type_id}
        current = self.parent_of(type_id)
        while current is not None and current not in seen and len(chain) < MAX_INHERITANCE_DEPTH:
            chain.append(current)
            seen.add(current)
            current = self.parent_of(current)
        return chain

    def _interfaces_of(self, type_id: str) -> Iterator[str]:
        definition = self._symbols.get(type_id)
        if definition is None:
            return
        names = definition.implements
        # Interfaces extend other interfaces
        if definition.kind == SymbolKind.INTERFACE:
            names = names + definition.extends[1:]
        for name in names:
            found = self.resolve_type_name(name, definition.file_path, definition.defining_scope_id)
            if found is not None:
                yield found

    def find_member(self, type_id: str, name: str) -> Definition | None:
        """Member ``name`` of a type: own, then parent chain, then interfaces."""
        chain = self.inheritance_chain(type_id)
        for current in chain:
            for member in self.members_of(current):
                if member.name == name:
                    return member

        seen = set(chain)
        pending = [iface for current in chain for iface in self._interfaces_of(current)]
        while pending and len(seen) < MAX_INHERITANCE_DEPTH:
            iface = pending.pop(0)
            if iface in seen:
                continue
            seen.add(iface)
            for ancestor in self.inheritance_chain(iface):
                for member in self.members_of(ancestor):
                    if member.name == name:
                        return member
                seen.add(ancestor)
                pending.extend(self._interfaces_of(ancestor))
        return None
