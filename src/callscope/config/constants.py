"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.

For configurable values, see models.py (IndexerConfig, ResolutionConfig, etc.).
"""

# =============================================================================
# Languages
# =============================================================================

SUPPORTED_LANGUAGES: tuple[str, ...] = ("javascript", "typescript", "python", "rust")
"""Languages shipped with a built-in LanguageConfig."""

# =============================================================================
# Resolution Limits
# =============================================================================

MAX_REEXPORT_DEPTH_HARD_LIMIT = 64
"""Upper bound for ResolutionConfig.max_reexport_depth."""

MAX_INHERITANCE_DEPTH = 32
"""Maximum parent-class hops walked when looking up a type member."""

ROOT_SCOPE_END = 2**31 - 1
"""End line and column of a synthesized root scope when the file length is unknown."""
