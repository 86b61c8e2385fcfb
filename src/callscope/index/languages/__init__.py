"""Language configs and the registry that looks them up.

Built-in configs: javascript, typescript, python, rust. Callers may
register replacements (for example with tree-sitter backed extractors)
through ``register_language``. Configs registered at runtime are only
visible to the current process; parallel indexing workers see the
built-in set.
"""

from __future__ import annotations

from callscope.core.errors import IndexingError
from callscope.index.languages.base import (
    DEFAULT_EXTRACTORS,
    LanguageConfig,
    MetadataExtractors,
    ModuleResolver,
)
from callscope.index.languages.javascript import JAVASCRIPT
from callscope.index.languages.python import PYTHON
from callscope.index.languages.rust import RUST
from callscope.index.languages.typescript import TYPESCRIPT

_LANGUAGES: dict[str, LanguageConfig] = {
    config.name: config for config in (JAVASCRIPT, TYPESCRIPT, PYTHON, RUST)
}


def register_language(config: LanguageConfig) -> None:
    """Add or replace a language config."""
    _LANGUAGES[config.name] = config


def get_language_config(name: str) -> LanguageConfig:
    """Look up a config by language name.

    Raises:
        IndexingError: If no config is registered under ``name``.
    """
    try:
        return _LANGUAGES[name]
    except KeyError:
        raise IndexingError.unknown_language(name) from None


def language_for_path(path: str) -> LanguageConfig | None:
    """Config whose extensions match ``path``. Longest extension wins."""
    best: LanguageConfig | None = None
    best_len = 0
    for config in _LANGUAGES.values():
        for ext in config.extensions:
            if path.endswith(ext) and len(ext) > best_len:
                best, best_len = config, len(ext)
    return best


def registered_languages() -> list[str]:
    return sorted(_LANGUAGES)


__all__ = [
    "DEFAULT_EXTRACTORS",
    "JAVASCRIPT",
    "LanguageConfig",
    "MetadataExtractors",
    "ModuleResolver",
    "PYTHON",
    "RUST",
    "TYPESCRIPT",
    "get_language_config",
    "language_for_path",
    "register_language",
    "registered_languages",
]
