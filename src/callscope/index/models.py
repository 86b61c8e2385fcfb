"""Value types shared by every indexing and resolution layer.

Everything here is an immutable dataclass or a string enum so that a
per-file SemanticIndex can be pickled across worker processes and
serialized with pydantic without custom encoders.

Positions use 1-based lines and 0-based columns. Spans are inclusive of
both end points, so a zero-width point at a scope's first character is
inside that scope.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

# ============================================================================
# ENUMS
# ============================================================================


class ScopeKind(str, Enum):
    """Lexical scope kind."""

    MODULE = "module"
    NAMESPACE = "namespace"
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    IMPL = "impl"
    FUNCTION = "function"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    LAMBDA = "lambda"
    BLOCK = "block"
    COMPREHENSION = "comprehension"


CALLABLE_SCOPE_KINDS: frozenset[ScopeKind] = frozenset(
    {ScopeKind.FUNCTION, ScopeKind.METHOD, ScopeKind.CONSTRUCTOR, ScopeKind.LAMBDA}
)
TYPE_SCOPE_KINDS: frozenset[ScopeKind] = frozenset(
    {ScopeKind.CLASS, ScopeKind.INTERFACE, ScopeKind.ENUM, ScopeKind.IMPL}
)
HOISTING_SCOPE_KINDS: frozenset[ScopeKind] = CALLABLE_SCOPE_KINDS | {
    ScopeKind.MODULE,
    ScopeKind.NAMESPACE,
}


class SymbolKind(str, Enum):
    """Definition kind."""

    FUNCTION = "function"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    TYPE_ALIAS = "type_alias"
    VARIABLE = "variable"
    PARAMETER = "parameter"
    PROPERTY = "property"


CALLABLE_KINDS: frozenset[SymbolKind] = frozenset(
    {SymbolKind.FUNCTION, SymbolKind.METHOD, SymbolKind.CONSTRUCTOR}
)
TYPE_KINDS: frozenset[SymbolKind] = frozenset(
    {SymbolKind.CLASS, SymbolKind.INTERFACE, SymbolKind.ENUM, SymbolKind.TYPE_ALIAS}
)


class VisibilityKind(str, Enum):
    """Reference-centric visibility of a definition."""

    SCOPE_LOCAL = "scope_local"  # exact defining scope only
    SCOPE_CHILDREN = "scope_children"  # defining scope and descendants
    FILE = "file"  # anywhere in the same file
    EXPORTED = "exported"  # other files, through an import


class ExportKind(str, Enum):
    """How a name leaves its module."""

    NAMED = "named"
    DEFAULT = "default"
    NAMESPACE = "namespace"  # export * as ns from "./x"
    WILDCARD = "wildcard"  # export * from "./x"


class ImportKind(str, Enum):
    """Import statement shape."""

    NAMED = "named"
    DEFAULT = "default"
    NAMESPACE = "namespace"
    SIDE_EFFECT = "side_effect"
    REEXPORT = "reexport"


class ReferenceKind(str, Enum):
    """What a reference does with the name it mentions."""

    CALL = "call"
    MEMBER_ACCESS = "member_access"
    ASSIGNMENT = "assignment"
    RETURN = "return"
    TYPE_ANNOTATION = "type_annotation"
    READ = "read"


class TypeBindingSource(str, Enum):
    """Where a TypeBinding came from. Annotation outranks constructor."""

    ANNOTATION = "annotation"
    CONSTRUCTOR = "constructor"


# ============================================================================
# LOCATIONS
# ============================================================================


@dataclass(frozen=True, slots=True)
class Location:
    """A span in a file."""

    file_path: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @property
    def start(self) -> tuple[int, int]:
        return (self.start_line, self.start_column)

    @property
    def end(self) -> tuple[int, int]:
        return (self.end_line, self.end_column)

    @property
    def key(self) -> str:
        return (
            f"{self.file_path}:{self.start_line}:{self.start_column}"
            f":{self.end_line}:{self.end_column}"
        )

    def start_point(self) -> Location:
        """Zero-width location at this span's first character."""
        return replace(self, end_line=self.start_line, end_column=self.start_column)

    def contains(self, other: Location) -> bool:
        """True if ``other`` lies entirely inside this span (same file)."""
        return (
            self.file_path == other.file_path
            and self.start <= other.start
            and other.end <= self.end
        )

    def span_size(self) -> tuple[int, int]:
        """Ordering key: fewer lines first, then fewer columns."""
        return (self.end_line - self.start_line, self.end_column - self.start_column)

    @classmethod
    def point(cls, file_path: str, line: int, column: int) -> Location:
        return cls(file_path, line, column, line, column)


# ============================================================================
# PER-FILE RECORDS
# ============================================================================


@dataclass(frozen=True, slots=True)
class Visibility:
    """Visibility tag. ``export_kind`` is set only for EXPORTED."""

    kind: VisibilityKind
    export_kind: ExportKind | None = None

    @classmethod
    def scope_local(cls) -> Visibility:
        return cls(VisibilityKind.SCOPE_LOCAL)

    @classmethod
    def scope_children(cls) -> Visibility:
        return cls(VisibilityKind.SCOPE_CHILDREN)

    @classmethod
    def file(cls) -> Visibility:
        return cls(VisibilityKind.FILE)

    @classmethod
    def exported(cls, export_kind: ExportKind = ExportKind.NAMED) -> Visibility:
        return cls(VisibilityKind.EXPORTED, export_kind)

    @property
    def is_exported(self) -> bool:
        return self.kind == VisibilityKind.EXPORTED


@dataclass(frozen=True, slots=True)
class Scope:
    """A node of the scope tree, keyed by its construct's body span."""

    id: str
    kind: ScopeKind
    location: Location
    parent_id: str | None = None
    child_ids: tuple[str, ...] = ()

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True, slots=True)
class Definition:
    """A declared symbol.

    ``location`` is the full declaration span and may contain nested
    scopes; ``defining_scope_id`` is the scope the declaration is a member
    of, computed from the span's start point. ``body_scope_id`` is the
    scope the declaration's own body creates, if any.
    """

    symbol_id: str
    name: str
    kind: SymbolKind
    location: Location
    defining_scope_id: str
    visibility: Visibility
    body_scope_id: str | None = None
    type_annotation: str | None = None
    parameters: tuple[str, ...] = ()
    return_type: str | None = None
    extends: tuple[str, ...] = ()
    implements: tuple[str, ...] = ()
    decorators: tuple[str, ...] = ()
    variants: tuple[str, ...] = ()
    owner_type: str | None = None  # out-of-line member, e.g. Rust impl block
    access: str | None = None  # public / private / protected
    is_static: bool = False

    @property
    def file_path(self) -> str:
        return self.location.file_path

    @property
    def is_callable(self) -> bool:
        return self.kind in CALLABLE_KINDS

    @property
    def is_type(self) -> bool:
        return self.kind in TYPE_KINDS


@dataclass(frozen=True, slots=True)
class Reference:
    """A use of a name."""

    kind: ReferenceKind
    name: str
    location: Location
    enclosing_scope_id: str
    receiver_location: Location | None = None
    property_chain: tuple[str, ...] = ()
    assignment_type: str | None = None
    constructor_target: str | None = None
    nullable_safe_access: bool = False
    is_constructor_call: bool = False

    @property
    def file_path(self) -> str:
        return self.location.file_path

    @property
    def key(self) -> str:
        """Stable identity used to cache resolutions."""
        return f"{self.kind.value}:{self.location.key}:{self.name}"


@dataclass(frozen=True, slots=True)
class ImportRecord:
    """An import binding as written, before module resolution.

    ``imported_name`` is the name in the source module (``default`` for
    default imports, None for namespace and side-effect imports).
    ``local_name`` is what the importing file sees.
    """

    local_name: str
    imported_name: str | None
    source: str
    kind: ImportKind
    location: Location
    scope_id: str
    alias: str | None = None
    is_reexport: bool = False

    @property
    def file_path(self) -> str:
        return self.location.file_path


@dataclass(frozen=True, slots=True)
class ExportRecord:
    """An explicit export statement.

    ``source`` is set for re-exports (``export {x} from "./y"``).
    """

    exported_name: str
    kind: ExportKind
    location: Location
    local_name: str | None = None
    source: str | None = None

    @property
    def is_reexport(self) -> bool:
        return self.source is not None


@dataclass(frozen=True, slots=True)
class TypeBinding:
    """A location carrying a type name."""

    location: Location
    type_name: str
    source: TypeBindingSource = TypeBindingSource.ANNOTATION
    scope_id: str | None = None


@dataclass(frozen=True, slots=True)
class CaptureGap:
    """A location that no scope contained; recorded, never fatal."""

    location: Location
    capture_name: str


@dataclass
class FileIndexStats:
    """Counters collected while indexing a single file."""

    captures: int = 0
    scopes: int = 0
    definitions: int = 0
    references: int = 0
    imports: int = 0
    exports: int = 0
    skipped_captures: int = 0
    gaps: list[CaptureGap] = field(default_factory=list)


# ============================================================================
# RESOLUTION RESULTS
# ============================================================================


class ResolutionMethod(str, Enum):
    """Which resolution step produced a result."""

    RECEIVER_TYPE = "receiver_type"
    NAMESPACE_MEMBER = "namespace_member"
    LOCAL_SCOPE = "local_scope"
    SAME_FILE = "same_file"
    IMPORT = "import"


class UnresolvedReason(str, Enum):
    """Why a reference did not resolve."""

    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    IMPORT_UNRESOLVED = "import_unresolved"
    CIRCULAR_REEXPORT = "circular_reexport"


@dataclass(frozen=True, slots=True)
class Resolved:
    """A reference bound to exactly one definition.

    ``low_confidence`` is set when several candidates tied and the first in
    source order was picked. ``chain`` lists the ``file:name`` hops taken
    through re-exports, if any.
    """

    symbol_id: str
    file_path: str
    method: ResolutionMethod
    low_confidence: bool = False
    chain: tuple[str, ...] = ()

    @property
    def is_resolved(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Unresolved:
    """A reference with no target, and the reason why."""

    reason: UnresolvedReason
    detail: str = ""
    chain: tuple[str, ...] = ()

    @property
    def is_resolved(self) -> bool:
        return False


Resolution = Resolved | Unresolved
