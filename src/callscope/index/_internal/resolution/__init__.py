"""Cross-file resolution: symbol, import, export and resolution registries.

Submodules are imported directly. The language configs import
``module_resolution`` from here while the indexing layer is still loading,
so this package must not import its siblings eagerly.
"""
