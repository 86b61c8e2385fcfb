"""Index module - multi-language scope, resolution and call graph engine.

This module provides:
- Capture model: located, tagged syntax units from grammar adapters
- Per-file indexing: scope tree, definitions, references, SemanticIndex
- Resolution: symbol/import/export registries, type context, name resolution
- Graphs: file import graph and call graph with entry points

Public API is in `callscope.index.ops`:
- Project: build, incremental update, queries
- ProjectSnapshot, UpdateResult: Result types

Internal implementations are in `callscope.index._internal/`.

See DESIGN.md for architecture details.
"""

from callscope.index._internal.graph import (
    CallEdge,
    CallGraph,
    CallGraphNode,
    EntryPoint,
    EntryPointReason,
    ImportGraph,
    ModuleInvocation,
)
from callscope.index._internal.indexing import FileCaptures, FileIndexResult, SemanticIndex
from callscope.index._internal.resolution.export_registry import ExportResolution
from callscope.index._internal.resolution.resolution_registry import ResolutionRegistry
from callscope.index._internal.resolution.type_context import TypeContext
from callscope.index.captures import Capture, CaptureCategory
from callscope.index.languages import (
    LanguageConfig,
    MetadataExtractors,
    get_language_config,
    language_for_path,
    register_language,
)
from callscope.index.models import (
    Definition,
    ExportKind,
    ImportKind,
    Location,
    Reference,
    ReferenceKind,
    Resolution,
    ResolutionMethod,
    Resolved,
    Scope,
    ScopeKind,
    SymbolKind,
    Unresolved,
    UnresolvedReason,
    Visibility,
    VisibilityKind,
)
from callscope.index.ops import Project, ProjectSnapshot, UpdateResult

__all__ = [
    # Public API (ops.py)
    "Project",
    "ProjectSnapshot",
    "UpdateResult",
    # Captures and languages
    "Capture",
    "CaptureCategory",
    "FileCaptures",
    "LanguageConfig",
    "MetadataExtractors",
    "get_language_config",
    "language_for_path",
    "register_language",
    # Per-file model
    "Location",
    "Scope",
    "ScopeKind",
    "Definition",
    "SymbolKind",
    "Visibility",
    "VisibilityKind",
    "Reference",
    "ReferenceKind",
    "ImportKind",
    "ExportKind",
    "SemanticIndex",
    "FileIndexResult",
    # Resolution
    "ResolutionRegistry",
    "TypeContext",
    "ExportResolution",
    "Resolution",
    "Resolved",
    "Unresolved",
    "ResolutionMethod",
    "UnresolvedReason",
    # Graphs
    "CallGraph",
    "CallGraphNode",
    "CallEdge",
    "ModuleInvocation",
    "EntryPoint",
    "EntryPointReason",
    "ImportGraph",
]
