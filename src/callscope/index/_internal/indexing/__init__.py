"""Per-file indexing: scopes, definitions, references, SemanticIndex."""

from callscope.index._internal.indexing.definition_builder import DefinitionBuilder, make_symbol_id
from callscope.index._internal.indexing.file_indexer import (
    FileCaptures,
    FileIndexer,
    FileIndexResult,
    index_file,
)
from callscope.index._internal.indexing.reference_builder import ReferenceBuilder
from callscope.index._internal.indexing.scope_builder import (
    ScopeTree,
    build_scope_tree,
    make_scope_id,
)
from callscope.index._internal.indexing.semantic_index import SemanticIndex, SemanticIndexStats
from callscope.index._internal.indexing.visibility import compute_visibility, is_visible

__all__ = [
    # Scopes
    "ScopeTree",
    "build_scope_tree",
    "make_scope_id",
    # Definitions and references
    "DefinitionBuilder",
    "ReferenceBuilder",
    "make_symbol_id",
    "compute_visibility",
    "is_visible",
    # Per-file output
    "SemanticIndex",
    "SemanticIndexStats",
    "FileCaptures",
    "FileIndexer",
    "FileIndexResult",
    "index_file",
]
