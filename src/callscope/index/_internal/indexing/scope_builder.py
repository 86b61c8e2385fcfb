"""Scope tree construction and lookup.

Scope captures arrive keyed by their construct's body span. The tree is
built by containment: a scope's parent is the smallest scope strictly
containing it. A root module scope always exists, either from a
``scope.module`` capture or synthesized to cover the whole file.

Two lookups matter:

- ``innermost_scope(location)``: deepest scope containing the whole span.
- ``defining_scope(location)``: the same lookup on the span's zero-width
  start point. A declaration's full span can contain scopes of its own
  (a class containing methods); only its start point says which scope the
  declaration belongs to. Every language goes through this one helper.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

import structlog

from callscope.config.constants import ROOT_SCOPE_END
from callscope.index.captures import Capture, CaptureCategory, sort_captures
from callscope.index.languages.base import LanguageConfig
from callscope.index.models import Location, Scope, ScopeKind

log = structlog.get_logger(__name__)


def make_scope_id(kind: ScopeKind, location: Location) -> str:
    """Deterministic scope id: ``kind:file:sl:sc:el:ec``."""
    return f"{kind.value}:{location.key}"


class ScopeTree:
    """Immutable scope tree for one file."""

    def __init__(self, file_path: str, scopes: Mapping[str, Scope], root_id: str) -> None:
        self.file_path = file_path
        self.root_id = root_id
        self._scopes = dict(scopes)

    def __len__(self) -> int:
        return len(self._scopes)

    def __iter__(self) -> Iterator[Scope]:
        return iter(self._scopes.values())

    def __contains__(self, scope_id: object) -> bool:
        return scope_id in self._scopes

    @property
    def root(self) -> Scope:
        return self._scopes[self.root_id]

    def get(self, scope_id: str) -> Scope | None:
        return self._scopes.get(scope_id)

    def parent_of(self, scope_id: str) -> str | None:
        scope = self._scopes.get(scope_id)
        return scope.parent_id if scope else None

    def ancestors(self, scope_id: str, *, include_self: bool = True) -> Iterator[str]:
        """Yield scope ids from ``scope_id`` outward to the root."""
        current: str | None = scope_id if include_self else self.parent_of(scope_id)
        while current is not None and current in self._scopes:
            yield current
            current = self._scopes[current].parent_id

    def is_ancestor_or_self(self, ancestor_id: str, scope_id: str) -> bool:
        return any(sid == ancestor_id for sid in self.ancestors(scope_id))

    def depth(self, scope_id: str) -> int:
        return sum(1 for _ in self.ancestors(scope_id)) - 1

    def covers(self, location: Location) -> bool:
        """False when the location falls outside the root scope (a capture gap)."""
        return self.root.location.contains(location)

    def innermost_scope(self, location: Location) -> str:
        """Deepest scope whose body contains ``location``.

        Siblings never overlap in well-formed input; if an adapter emits
        overlapping siblings, the smallest span wins. Never fails: a
        location outside every scope maps to the root.
        """
        if not self.covers(location):
            log.debug("scope_builder.capture_gap", file=self.file_path, location=location.key)
            return self.root_id

        current = self.root
        while True:
            best: Scope | None = None
            for child_id in current.child_ids:
                child = self._scopes[child_id]
                if child.location.contains(location) and (
                    best is None or child.location.span_size() < best.location.span_size()
                ):
                    best = child
            if best is None:
                return current.id
            current = best

    def defining_scope(self, location: Location) -> str:
        """Scope a declaration starting at ``location`` is a member of."""
        return self.innermost_scope(location.start_point())

    def nearest(self, scope_id: str, kinds: Iterable[ScopeKind]) -> Scope | None:
        """Closest ancestor-or-self scope whose kind is in ``kinds``."""
        wanted = frozenset(kinds)
        for sid in self.ancestors(scope_id):
            scope = self._scopes[sid]
            if scope.kind in wanted:
                return scope
        return None

    def children_within(self, scope_id: str, location: Location) -> Iterator[Scope]:
        """Direct children of ``scope_id`` starting inside ``location``, in source order."""
        parent = self._scopes.get(scope_id)
        if parent is None:
            return
        for child_id in parent.child_ids:
            scope = self._scopes[child_id]
            if location.contains(scope.location.start_point()):
                yield scope


def build_scope_tree(
    file_path: str,
    captures: Iterable[Capture],
    config: LanguageConfig,
    line_count: int | None = None,
) -> ScopeTree:
    """Build the scope tree from a file's ``scope.*`` captures.

    Captures with unknown entities are ignored. Duplicate spans collapse to
    the first capture in source order.
    """
    entries: list[tuple[ScopeKind, Location]] = []
    seen: set[Location] = set()
    for capture in sort_captures([c for c in captures if c.category == CaptureCategory.SCOPE]):
        kind = config.scope_kinds.get(capture.entity)
        if kind is None or capture.location in seen:
            continue
        seen.add(capture.location)
        entries.append((kind, capture.location))

    root_location: Location | None = None
    for kind, location in entries:
        if kind == ScopeKind.MODULE and all(location.contains(loc) for _, loc in entries):
            root_location = location
            break
    if root_location is None:
        end_line = line_count if line_count else ROOT_SCOPE_END
        root_location = Location(file_path, 1, 0, end_line, ROOT_SCOPE_END)
    else:
        entries = [(k, loc) for k, loc in entries if loc != root_location]

    root_id = make_scope_id(ScopeKind.MODULE, root_location)
    parents: dict[str, str] = {}
    children: dict[str, list[str]] = {root_id: []}
    kinds: dict[str, tuple[ScopeKind, Location]] = {root_id: (ScopeKind.MODULE, root_location)}

    # Sorted by start ascending, end descending: a stack of open scopes
    # always ends with the smallest scope that can contain the next one.
    stack: list[tuple[str, Location]] = []
    for kind, location in entries:
        scope_id = make_scope_id(kind, location)
        while stack and not stack[-1][1].contains(location):
            stack.pop()
        parent_id = stack[-1][0] if stack else root_id
        parents[scope_id] = parent_id
        children.setdefault(parent_id, []).append(scope_id)
        children.setdefault(scope_id, [])
        kinds[scope_id] = (kind, location)
        stack.append((scope_id, location))

    scopes = {
        sid: Scope(
            id=sid,
            kind=kind,
            location=location,
            parent_id=parents.get(sid),
            child_ids=tuple(children.get(sid, ())),
        )
        for sid, (kind, location) in kinds.items()
    }
    return ScopeTree(file_path, scopes, root_id)


def tree_from_scopes(file_path: str, scopes: Iterable[Scope], root_id: str) -> ScopeTree:
    """Rebuild a tree from already-built scopes (deserialized indices)."""
    return ScopeTree(file_path, {s.id: s for s in scopes}, root_id)
